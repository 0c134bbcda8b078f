"""Logging setup for wpi-gpio.

Pin activity is logged with its context in ``extra`` (``pin``, ``edge``,
``level``, ...). Both formatters render those fields: the console one as a
``pin=3 edge=rising`` suffix, the JSON one as top-level keys, so a log file
can be filtered by pin.
"""

import json
import logging
import logging.handlers
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

# ``extra`` keys carried by GPIO log records, in display order
CONTEXT_FIELDS = ("provider", "pin", "mode", "edge", "level", "pins", "command", "returncode")


def record_context(record: logging.LogRecord) -> dict[str, Any]:
    """GPIO context fields present on a record."""
    return {
        key: getattr(record, key) for key in CONTEXT_FIELDS if getattr(record, key, None) is not None
    }


class JSONFormatter(logging.Formatter):
    """One JSON object per record, with the GPIO context as top-level keys."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level_name": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update(record_context(record))
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class ConsoleFormatter(logging.Formatter):
    """Short console lines; levels are colored on a terminal."""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def __init__(self, use_colors: bool = False) -> None:
        super().__init__()
        self.use_colors = use_colors

    def format(self, record: logging.LogRecord) -> str:
        level = f"{record.levelname:8}"
        if self.use_colors and record.levelname in self.COLORS:
            level = f"{self.COLORS[record.levelname]}{level}{self.RESET}"

        parts = [
            datetime.fromtimestamp(record.created).strftime("%H:%M:%S"),
            level,
            f"[{record.name.rsplit('.', 1)[-1]}]",
            record.getMessage(),
        ]
        context = record_context(record)
        if context:
            parts.append(" ".join(f"{k}={v}" for k, v in context.items()))

        line = " ".join(parts)
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def setup_logging(
    level: str = "INFO",
    log_format: str = "simple",
    log_file: str | Path | None = None,
    max_size_mb: int = 10,
    backup_count: int = 3,
) -> None:
    """Configure the root logger.

    Console output goes to stderr so command results printed on stdout
    (``wpi-gpio read``) stay machine-readable. Calling it again replaces the
    previous handlers, which lets the CLI reconfigure once the config file
    is loaded.

    Args:
        level: Logging level name
        log_format: "simple" for console lines, "structured" for JSON
        log_file: Optional path of a rotating JSON log file
        max_size_mb: Size at which the log file rotates
        backup_count: Number of rotated files to keep
    """
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler(sys.stderr)
    if log_format == "structured":
        console.setFormatter(JSONFormatter())
    else:
        console.setFormatter(ConsoleFormatter(use_colors=sys.stderr.isatty()))
    root.addHandler(console)

    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            path,
            maxBytes=max_size_mb * 1024 * 1024,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setFormatter(JSONFormatter())
        root.addHandler(file_handler)

    # asyncio reports slow callbacks at DEBUG, which drowns pin traces
    logging.getLogger("asyncio").setLevel(logging.WARNING)
