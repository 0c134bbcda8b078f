"""In-process GPIO simulator.

Used when the gpio utility is not available. Pin state lives in a
``PinRegistry`` owned by the simulator instance. Input pins only change when
an input event is injected through ``fire`` or ``toggle_inputs`` (the
``KeypressDriver`` does this for a terminal), which then wakes the edge
waiters registered on the pin.

Everything runs on the event loop thread, so no locking is needed. Callers
that drive a simulator from other threads must hand events over with
``loop.call_soon_threadsafe``.
"""

import asyncio
import logging
from collections import deque
from typing import Any

from .base import HIGH, SEQUENCE_DELAY, Edge, GPIOProvider, PinId, PinMode, to_level
from .registry import PinRegistry, PinState

logger = logging.getLogger(__name__)

# What a resolved edge wait returns, matching the empty output of ``gpio wfi``
EDGE_RESULT = ""


class SimulatedGPIO(GPIOProvider):
    """GPIO provider backed by simulated pins.

    No operation ever fails: unknown pins are created on first use and
    malformed pin numbers are coerced to 0.

    Usage:
        gpio = SimulatedGPIO()
        await gpio.input(3)
        task = asyncio.create_task(gpio.rising(3))
        gpio.fire(3)
        await task
    """

    name = "simulator"

    def __init__(
        self,
        registry: PinRegistry | None = None,
        sequence_delay: float = SEQUENCE_DELAY,
    ) -> None:
        super().__init__(sequence_delay=sequence_delay)
        self._registry = registry if registry is not None else PinRegistry()

    @property
    def registry(self) -> PinRegistry:
        """Pin records of this simulator."""
        return self._registry

    def pin(self, pin: PinId) -> PinState:
        """Get the record of a pin (creating it)."""
        return self._registry.get(pin)

    # -------------------------------------------------------------------------
    # Mode and value
    # -------------------------------------------------------------------------

    async def mode(self, pin: PinId, mode: PinMode) -> int:
        """Set the mode of a pin."""
        state = self._registry.get(pin)
        state.mode = mode
        logger.debug("Mode set", extra={"pin": state.pin, "mode": mode.value})
        return 0

    async def input(self, pin: PinId) -> int:
        return await self.mode(pin, PinMode.INPUT)

    async def output(self, pin: PinId, value: Any = None) -> int:
        await self.write(pin, value)
        return await self.mode(pin, PinMode.OUTPUT)

    async def write(self, pin: PinId, value: Any = None) -> int | None:
        if value is None:
            return None
        state = self._registry.get(pin)
        state.value = to_level(value)
        logger.debug("Value written", extra={"pin": state.pin, "level": state.value})
        return 0

    async def read(self, pin: PinId) -> int:
        return self._registry.get(pin).level

    async def pull_up(self, pin: PinId) -> int:
        self._registry.get(pin)
        return 0

    async def pull_down(self, pin: PinId) -> int:
        self._registry.get(pin)
        return 0

    async def tri_state(self, pin: PinId) -> int:
        self._registry.get(pin)
        return 0

    # -------------------------------------------------------------------------
    # Edge waits
    # -------------------------------------------------------------------------

    async def rising(self, pin: PinId) -> str:
        return await self._wait(self._registry.get(pin).rising)

    async def falling(self, pin: PinId) -> str:
        return await self._wait(self._registry.get(pin).falling)

    async def edge(self, pin: PinId) -> str:
        return await self._wait(self._registry.get(pin).edge)

    async def _wait(self, waiters: deque[asyncio.Future]) -> str:
        waiter = asyncio.get_running_loop().create_future()
        waiters.append(waiter)
        return await waiter

    # -------------------------------------------------------------------------
    # Input events
    # -------------------------------------------------------------------------

    def fire(self, pin: PinId) -> bool:
        """Inject an input event on one pin.

        Returns:
            True if the pin is an input and was toggled, False otherwise
        """
        state = self._registry.get(pin)
        if state.mode is not PinMode.INPUT:
            logger.debug("Not an input, event ignored", extra={"pin": state.pin})
            return False
        self._toggle(state)
        return True

    def toggle_inputs(self) -> list[int]:
        """Inject an input event on every input pin.

        Returns:
            The toggled pin numbers, in ascending order
        """
        toggled = []
        for state in self._registry.inputs():
            self._toggle(state)
            toggled.append(state.pin)
        return toggled

    def _toggle(self, state: PinState) -> None:
        state.read_value = HIGH - state.read_value
        edge = Edge.RISING if state.read_value == HIGH else Edge.FALLING
        logger.debug(
            "Input toggled",
            extra={"pin": state.pin, "edge": edge.value, "level": state.read_value},
        )
        self._notify_edge(state)

    def _notify_edge(self, state: PinState) -> None:
        """Wake the waiters interested in the transition that just happened."""
        self._resolve(state.edge)
        if state.read_value == HIGH:
            self._resolve(state.rising)
        else:
            self._resolve(state.falling)

    @staticmethod
    def _resolve(waiters: deque[asyncio.Future]) -> None:
        # Waiters registered from here on belong to the next event
        pending = list(waiters)
        waiters.clear()
        for waiter in pending:
            # Cancelled by the caller, e.g. through asyncio.wait_for
            if not waiter.done():
                waiter.set_result(EDGE_RESULT)
