"""GPIO providers.

Provides:
- GPIOProvider contract with shared sequencing operations
- HardwareGPIO wrapping the gpio utility
- SimulatedGPIO with keyboard-driven input events
- Provider selection
"""

from .base import HIGH, LOW, Edge, GPIOProvider, PinMode, normalize_pin
from .hardware import HardwareGPIO
from .keypress import KeypressDriver
from .registry import PinRegistry, PinState
from .selector import create_gpio, get_gpio, probe_hardware, reset_gpio
from .simulator import SimulatedGPIO

__all__ = [
    "HIGH",
    "LOW",
    "Edge",
    "GPIOProvider",
    "PinMode",
    "normalize_pin",
    "HardwareGPIO",
    "KeypressDriver",
    "PinRegistry",
    "PinState",
    "SimulatedGPIO",
    "create_gpio",
    "get_gpio",
    "probe_hardware",
    "reset_gpio",
]
