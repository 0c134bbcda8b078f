"""GPIO provider contract and the sequencing operations shared by providers.

Both providers expose the same asynchronous surface. Subclasses implement the
primitive pin operations; ``sequence``, ``tap`` and the ``i*`` edge iterators
are built on top of those primitives here, so the hardware provider and the
simulator behave identically for them.
"""

import asyncio
import logging
import re
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Callable, Iterable

logger = logging.getLogger(__name__)

LOW = 0
HIGH = 1

# Delay after every write of a sequence, in seconds
SEQUENCE_DELAY = 0.1

TAP_SEQUENCE = (HIGH, LOW, HIGH)

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")

PinId = int | str
EdgeCallback = Callable[[int, Any], Any]


class PinMode(Enum):
    """Direction of a pin."""

    OUTPUT = "out"
    INPUT = "in"


class Edge(Enum):
    """Transition an edge wait is interested in.

    The values are the ``gpio wfi`` keywords.
    """

    RISING = "rising"
    FALLING = "falling"
    BOTH = "both"


def normalize_pin(pin: Any) -> int:
    """Normalize a pin identifier to a non-negative integer.

    Integers are kept, floats truncated and strings parsed by their leading
    decimal digits. Anything else, and any negative result, becomes 0.

    Args:
        pin: Pin number as given by the caller

    Returns:
        Normalized pin number
    """
    if isinstance(pin, bool):
        return 0
    if isinstance(pin, int):
        value = pin
    elif isinstance(pin, float):
        if pin != pin or pin in (float("inf"), float("-inf")):
            return 0
        value = int(pin)
    elif isinstance(pin, str):
        match = _LEADING_INT.match(pin)
        if not match:
            return 0
        value = int(match.group(1))
    else:
        return 0
    return value if value > 0 else 0


def to_level(value: Any) -> int:
    """Coerce a written value to HIGH or LOW by truthiness."""
    return HIGH if value else LOW


class GPIOProvider(ABC):
    """Asynchronous GPIO capability contract.

    Usage:
        gpio = await get_gpio()
        await gpio.output(4, 1)
        await gpio.input(3)
        await gpio.rising(3)
        count = await gpio.iedge(3, lambda n, _: n < 10)
    """

    name = "base"

    def __init__(self, sequence_delay: float = SEQUENCE_DELAY) -> None:
        self.sequence_delay = sequence_delay
        # BCM numbering only changes the hardware provider's commands
        self.bcm_gpio = False

    # -------------------------------------------------------------------------
    # Primitive operations
    # -------------------------------------------------------------------------

    @abstractmethod
    async def input(self, pin: PinId) -> Any:
        """Set a pin as input."""

    @abstractmethod
    async def output(self, pin: PinId, value: Any = None) -> Any:
        """Set a pin as output.

        The value, if given, is written before the mode changes so the pin
        already carries its level when it starts driving.
        """

    @abstractmethod
    async def write(self, pin: PinId, value: Any = None) -> Any:
        """Write HIGH or LOW to a pin. ``None`` writes nothing."""

    @abstractmethod
    async def read(self, pin: PinId) -> int:
        """Read the current level of a pin."""

    @abstractmethod
    async def pull_up(self, pin: PinId) -> Any:
        """Enable the pull-up resistor of a pin."""

    @abstractmethod
    async def pull_down(self, pin: PinId) -> Any:
        """Enable the pull-down resistor of a pin."""

    @abstractmethod
    async def tri_state(self, pin: PinId) -> Any:
        """Disable the pull resistors of a pin."""

    @abstractmethod
    async def rising(self, pin: PinId) -> Any:
        """Wait, without busy looping, for the next rising edge of a pin."""

    @abstractmethod
    async def falling(self, pin: PinId) -> Any:
        """Wait, without busy looping, for the next falling edge of a pin."""

    @abstractmethod
    async def edge(self, pin: PinId) -> Any:
        """Wait, without busy looping, for the next edge of a pin."""

    # -------------------------------------------------------------------------
    # Sequencing
    # -------------------------------------------------------------------------

    async def sequence(self, pin: PinId, values: Iterable[Any]) -> None:
        """Write a sequence of values to an output pin.

        The pin is switched to output first. Each write is followed by
        ``sequence_delay`` seconds before the next one starts, including the
        last.

        Args:
            pin: Pin number
            values: Levels to write, in order
        """
        await self.output(pin)
        for value in values:
            await self.write(pin, value)
            await asyncio.sleep(self.sequence_delay)

    async def tap(self, pin: PinId) -> None:
        """Pulse an output pin: HIGH, LOW, HIGH."""
        await self.sequence(pin, TAP_SEQUENCE)

    async def irising(self, pin: PinId, callback: EdgeCallback) -> int:
        """Wait for rising edges until ``callback`` returns a falsy value.

        Args:
            pin: Pin number
            callback: Called as ``callback(count, value)`` after each edge,
                with a 1-based count

        Returns:
            Number of edges seen
        """
        return await self._iterate(self.rising, pin, callback)

    async def ifalling(self, pin: PinId, callback: EdgeCallback) -> int:
        """Wait for falling edges until ``callback`` returns a falsy value."""
        return await self._iterate(self.falling, pin, callback)

    async def iedge(self, pin: PinId, callback: EdgeCallback) -> int:
        """Wait for edges until ``callback`` returns a falsy value."""
        return await self._iterate(self.edge, pin, callback)

    async def _iterate(
        self,
        wait: Callable[[PinId], Any],
        pin: PinId,
        callback: EdgeCallback,
    ) -> int:
        count = 1
        while True:
            value = await wait(pin)
            if not callback(count, value):
                return count
            count += 1

    # -------------------------------------------------------------------------
    # Generic access
    # -------------------------------------------------------------------------

    async def wait_for(self, pin: PinId, edge: Edge) -> Any:
        """Wait for the next transition of the given kind."""
        if edge is Edge.RISING:
            return await self.rising(pin)
        if edge is Edge.FALLING:
            return await self.falling(pin)
        return await self.edge(pin)

    async def iterate(self, pin: PinId, edge: Edge, callback: EdgeCallback) -> int:
        """Dispatch to ``irising``, ``ifalling`` or ``iedge``."""
        if edge is Edge.RISING:
            return await self.irising(pin, callback)
        if edge is Edge.FALLING:
            return await self.ifalling(pin, callback)
        return await self.iedge(pin, callback)

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} bcm_gpio={self.bcm_gpio}>"
