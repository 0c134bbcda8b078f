"""Provider selection.

Probes for a working ``gpio`` utility once and hands out a single provider
instance for the process.
"""

import asyncio
import logging
import threading

from ..core.config import Config, get_config
from .base import GPIOProvider
from .hardware import HardwareGPIO
from .simulator import SimulatedGPIO

logger = logging.getLogger(__name__)


async def probe_hardware(command: str = "gpio", timeout: float = 5.0) -> bool:
    """Check whether the gpio utility works on this machine.

    Runs ``gpio readall`` and reports success. Never raises.

    Args:
        command: Name or path of the gpio utility
        timeout: Seconds to wait for the probe

    Returns:
        True if the command exited with status 0
    """
    try:
        proc = await asyncio.create_subprocess_exec(
            command,
            "readall",
            stdout=asyncio.subprocess.DEVNULL,
            stderr=asyncio.subprocess.DEVNULL,
        )
    except OSError as e:
        logger.debug("Probe could not start %s: %s", command, e)
        return False

    try:
        returncode = await asyncio.wait_for(proc.wait(), timeout=timeout)
    except asyncio.TimeoutError:
        proc.kill()
        await proc.wait()
        logger.debug("Probe of %s timed out after %.1fs", command, timeout)
        return False

    return returncode == 0


async def create_gpio(config: Config | None = None) -> GPIOProvider:
    """Create a provider as configured.

    With ``provider: auto`` the hardware is probed and the simulator is used
    when the probe fails.

    Args:
        config: Configuration, defaults to the global one

    Returns:
        A new provider instance
    """
    if config is None:
        config = get_config()
    gpio_config = config.gpio

    provider = gpio_config.provider
    if provider == "auto":
        if await probe_hardware(gpio_config.command, gpio_config.probe_timeout):
            provider = "hardware"
        else:
            logger.info("%s not working, using simulator", gpio_config.command)
            provider = "simulator"

    if provider == "hardware":
        gpio: GPIOProvider = HardwareGPIO(
            command=gpio_config.command,
            bcm_gpio=gpio_config.bcm_gpio,
            command_timeout=gpio_config.command_timeout,
            sequence_delay=gpio_config.sequence_delay,
        )
    else:
        gpio = SimulatedGPIO(sequence_delay=gpio_config.sequence_delay)
        gpio.bcm_gpio = gpio_config.bcm_gpio

    logger.info("Using %s GPIO provider", gpio.name, extra={"provider": gpio.name})
    return gpio


# =============================================================================
# Singleton Instance
# =============================================================================

_gpio: GPIOProvider | None = None
_gpio_lock = threading.Lock()


async def get_gpio(config: Config | None = None) -> GPIOProvider:
    """Get the process-wide provider, creating it on first call.

    Args:
        config: Configuration used on first call only

    Returns:
        GPIOProvider singleton instance
    """
    global _gpio
    with _gpio_lock:
        if _gpio is not None:
            return _gpio

    gpio = await create_gpio(config)

    with _gpio_lock:
        # Another task may have finished its probe first
        if _gpio is None:
            _gpio = gpio
        return _gpio


def reset_gpio() -> None:
    """Reset the provider singleton (for testing)."""
    global _gpio
    with _gpio_lock:
        _gpio = None
