"""Per-pin state records of the simulator."""

import asyncio
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Iterator

from .base import LOW, PinMode, normalize_pin


@dataclass
class PinState:
    """Simulated state of one pin.

    ``value`` is what was last written and is what an output pin reads back.
    ``read_value`` is the sensed level of an input pin; only input events
    change it.
    """

    pin: int
    mode: PinMode = PinMode.OUTPUT
    value: int = LOW
    read_value: int = LOW
    rising: deque[asyncio.Future] = field(default_factory=deque, repr=False)
    falling: deque[asyncio.Future] = field(default_factory=deque, repr=False)
    edge: deque[asyncio.Future] = field(default_factory=deque, repr=False)

    @property
    def level(self) -> int:
        """Level a read returns for the current mode."""
        return self.value if self.mode is PinMode.OUTPUT else self.read_value

    @property
    def pending(self) -> int:
        """Number of registered waiters that are still outstanding."""
        return sum(
            1 for queue in (self.rising, self.falling, self.edge) for fut in queue if not fut.done()
        )


class PinRegistry:
    """Lazily-created pin records keyed by normalized pin number.

    Records are never removed; the same record is returned for the same pin
    for the lifetime of the registry.
    """

    def __init__(self) -> None:
        self._pins: dict[int, PinState] = {}

    def get(self, pin: Any) -> PinState:
        """Get the record of a pin, creating it with defaults if needed."""
        number = normalize_pin(pin)
        state = self._pins.get(number)
        if state is None:
            state = PinState(number)
            self._pins[number] = state
        return state

    def pins(self) -> list[PinState]:
        """All records in ascending pin order."""
        return [self._pins[number] for number in sorted(self._pins)]

    def inputs(self) -> list[PinState]:
        """Records currently in input mode, in ascending pin order."""
        return [state for state in self.pins() if state.mode is PinMode.INPUT]

    def __contains__(self, pin: Any) -> bool:
        return normalize_pin(pin) in self._pins

    def __iter__(self) -> Iterator[PinState]:
        return iter(self.pins())

    def __len__(self) -> int:
        return len(self._pins)
