"""Core infrastructure module.

Provides foundational components:
- Configuration management with validation
- Custom exception hierarchy
- Structured logging
"""

from .config import Config, ConfigManager, GPIOConfig, get_config
from .errors import (
    WpiGpioError,
    ConfigurationError,
    HardwareError,
    CommandError,
)
from .logging import setup_logging

__all__ = [
    # Config
    "Config",
    "ConfigManager",
    "GPIOConfig",
    "get_config",
    # Errors
    "WpiGpioError",
    "ConfigurationError",
    "HardwareError",
    "CommandError",
    # Logging
    "setup_logging",
]
