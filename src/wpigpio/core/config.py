"""Configuration management with Pydantic validation.

Provides type-safe configuration with:
- Pydantic models for validation
- YAML file persistence
- Thread-safe updates
"""

import logging
import threading
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("/etc/wpi-gpio/config.yaml")


# =============================================================================
# Configuration Models
# =============================================================================


class GPIOConfig(BaseModel):
    """GPIO provider configuration."""

    provider: Literal["auto", "hardware", "simulator"] = Field(
        "auto", description="auto probes the gpio utility and falls back to the simulator"
    )
    command: str = Field("gpio", min_length=1, description="WiringPi gpio utility")
    bcm_gpio: bool = Field(False, description="Use BCM pin numbering (gpio -g)")
    command_timeout: float = Field(
        10.0, gt=0, description="Timeout for non-waiting gpio commands in seconds"
    )
    probe_timeout: float = Field(5.0, gt=0, description="Timeout for the hardware probe")
    sequence_delay: float = Field(
        0.1, ge=0, le=10.0, description="Delay after each write of a sequence in seconds"
    )

    @field_validator("command")
    @classmethod
    def validate_command(cls, v: str) -> str:
        """Reject commands with embedded whitespace (no shell is used)."""
        if any(ch.isspace() for ch in v):
            raise ValueError("command must be a single executable name or path")
        return v


class SimulatorConfig(BaseModel):
    """Simulator configuration."""

    keyboard: bool = Field(True, description="Toggle input pins on keypress in the CLI")


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field("INFO", description="Log level")
    format: Literal["simple", "structured"] = Field("simple", description="Log format")
    file: str | None = Field(None, description="Log file path")
    max_size_mb: int = Field(10, ge=1, description="Max log file size")
    backup_count: int = Field(3, ge=0, description="Number of backup files")


class Config(BaseModel):
    """Root configuration model."""

    gpio: GPIOConfig = Field(default_factory=GPIOConfig)
    simulator: SimulatorConfig = Field(default_factory=SimulatorConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


# =============================================================================
# Configuration Manager
# =============================================================================


class ConfigManager:
    """Thread-safe configuration manager with file persistence.

    A missing file is not an error: defaults are used and nothing is
    written until ``update`` is called.

    Usage:
        config_manager = ConfigManager("/path/to/config.yaml")
        config = config_manager.get()
        config_manager.update(gpio={"bcm_gpio": True})
    """

    _instance: "ConfigManager | None" = None
    _instance_lock: threading.Lock = threading.Lock()

    def __init__(self, config_path: str | Path) -> None:
        self._config_path = Path(config_path)
        self._config: Config
        self._lock = threading.RLock()
        self._load()

    @classmethod
    def get_instance(cls, config_path: str | Path | None = None) -> "ConfigManager":
        """Get singleton instance.

        Args:
            config_path: Path to config file (only used on first call)

        Returns:
            ConfigManager singleton instance
        """
        with cls._instance_lock:
            if cls._instance is None:
                if config_path is None:
                    config_path = DEFAULT_CONFIG_PATH
                cls._instance = cls(config_path)
            return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        """Reset singleton instance (for testing)."""
        with cls._instance_lock:
            cls._instance = None

    @property
    def path(self) -> Path:
        return self._config_path

    def _load(self) -> None:
        """Load and validate configuration from file."""
        if not self._config_path.exists():
            logger.debug("Config file %s not found, using defaults", self._config_path)
            self._config = Config()
            return

        try:
            with open(self._config_path, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
            self._config = Config.model_validate(data)
            logger.info("Loaded config from %s", self._config_path)
        except (OSError, yaml.YAMLError, ValidationError) as e:
            logger.warning("Failed to load config, using defaults: %s", e)
            self._config = Config()

    def _save(self) -> None:
        """Persist configuration to file."""
        try:
            self._config_path.parent.mkdir(parents=True, exist_ok=True)

            data = self._config.model_dump(mode="json")

            # Write atomically via temp file
            temp_path = self._config_path.with_suffix(".tmp")
            with open(temp_path, "w", encoding="utf-8") as f:
                yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)
            temp_path.replace(self._config_path)

            logger.debug("Saved config to %s", self._config_path)
        except OSError as e:
            logger.error("Failed to save config: %s", e)
            raise ConfigurationError(
                "Failed to save config", details={"path": str(self._config_path)}, cause=e
            ) from e

    def get(self) -> Config:
        """Get current configuration (thread-safe copy).

        Returns:
            Deep copy of current configuration
        """
        with self._lock:
            return self._config.model_copy(deep=True)

    def update(self, **kwargs: Any) -> None:
        """Update top-level config sections and persist them.

        Args:
            **kwargs: Section names and their new values

        Raises:
            ConfigurationError: If the result fails validation
        """
        with self._lock:
            data = self._config.model_dump()
            for key, value in kwargs.items():
                if key in data and isinstance(value, dict):
                    data[key].update(value)
                else:
                    data[key] = value
            try:
                self._config = Config.model_validate(data)
            except ValidationError as e:
                raise ConfigurationError(
                    "Invalid configuration", details={"sections": ",".join(kwargs)}, cause=e
                ) from e
            self._save()


# =============================================================================
# Convenience Functions
# =============================================================================


def get_config() -> Config:
    """Get current configuration from singleton manager.

    Returns:
        Current configuration
    """
    return ConfigManager.get_instance().get()


def get_config_manager() -> ConfigManager:
    """Get the singleton ConfigManager instance.

    Returns:
        ConfigManager instance
    """
    return ConfigManager.get_instance()
