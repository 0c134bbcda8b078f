"""Exception hierarchy for wpi-gpio.

Only the hardware provider and configuration loading raise. The simulator
never fails.
"""

from enum import Enum
from typing import Any, Sequence


class ErrorSeverity(Enum):
    """Error severity levels for logging."""

    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class WpiGpioError(Exception):
    """Base exception for all wpi-gpio errors.

    Attributes:
        message: Human-readable error message
        details: Additional context as key-value pairs
        severity: Error severity level
    """

    severity: ErrorSeverity = ErrorSeverity.ERROR

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.cause = cause

    def __str__(self) -> str:
        if self.details:
            detail_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({detail_str})"
        return self.message

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to a dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "severity": self.severity.value,
            "details": self.details,
        }


class ConfigurationError(WpiGpioError):
    """Configuration validation or loading error.

    Raised when:
    - Config values fail validation on update
    - Config file cannot be written
    """

    pass


class HardwareError(WpiGpioError):
    """The gpio utility could not be run.

    Raised when:
    - The command binary is missing or not executable
    - A non-waiting command exceeds its timeout
    """

    severity = ErrorSeverity.CRITICAL


class CommandError(HardwareError):
    """The gpio utility exited with a non-zero status.

    The diagnostic text written by the command is kept in ``stderr``.
    """

    def __init__(
        self,
        message: str,
        args: Sequence[str] = (),
        returncode: int | None = None,
        stderr: str = "",
    ) -> None:
        super().__init__(
            message,
            details={"args": " ".join(args), "returncode": returncode},
        )
        self.command_args = list(args)
        self.returncode = returncode
        self.stderr = stderr
