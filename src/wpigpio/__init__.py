"""Asynchronous GPIO access for the Raspberry Pi.

Wraps the WiringPi ``gpio`` utility and falls back to an in-process
simulator when the utility is not available:
- mode, read and write operations
- non-busy waits for rising, falling and any edges
- timed output sequences and edge iteration
"""

from .gpio import (
    HIGH,
    LOW,
    Edge,
    GPIOProvider,
    HardwareGPIO,
    PinMode,
    SimulatedGPIO,
    get_gpio,
)

__version__ = "1.0.0"

__all__ = [
    "HIGH",
    "LOW",
    "Edge",
    "GPIOProvider",
    "HardwareGPIO",
    "PinMode",
    "SimulatedGPIO",
    "get_gpio",
]
