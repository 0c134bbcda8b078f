"""Keyboard stimulus for the simulator.

Every key pressed on the terminal toggles all simulated input pins, which
stands in for the electrical edges the hardware would see. Ctrl-C does not
toggle; it ends the session.
"""

import asyncio
import logging
import os
import sys
import termios
from typing import Callable, TextIO

from .simulator import SimulatedGPIO

logger = logging.getLogger(__name__)

INTERRUPT = "\x03"  # Ctrl-C


class KeypressDriver:
    """Turns terminal keypresses into simulator input events.

    The terminal is switched to unbuffered, no-echo input with signal keys
    disabled so Ctrl-C arrives as a character. The original terminal
    attributes are restored by ``stop``.

    Usage:
        driver = KeypressDriver(gpio)
        driver.start()
        await driver.wait_interrupted()
        driver.stop()
    """

    def __init__(self, gpio: SimulatedGPIO, stream: TextIO | None = None) -> None:
        """Initialize the driver.

        Args:
            gpio: Simulator receiving the input events
            stream: Terminal to read from, defaults to stdin
        """
        self._gpio = gpio
        self._stream = stream if stream is not None else sys.stdin
        self._loop: asyncio.AbstractEventLoop | None = None
        self._fd: int | None = None
        self._saved_attrs: list | None = None
        self._interrupted = asyncio.Event()

        # Callbacks
        self.on_toggle: Callable[[list[int]], None] | None = None
        self.on_interrupt: Callable[[], None] | None = None

    @property
    def is_running(self) -> bool:
        """Check if the driver is reading the terminal."""
        return self._fd is not None

    @property
    def interrupted(self) -> bool:
        """Check if Ctrl-C was received."""
        return self._interrupted.is_set()

    def start(self) -> None:
        """Start reading keypresses on the running event loop.

        Raises:
            RuntimeError: If called outside a running event loop
        """
        if self.is_running:
            logger.warning("Keypress driver already running")
            return

        self._loop = asyncio.get_running_loop()
        fd = self._stream.fileno()

        if os.isatty(fd):
            self._saved_attrs = termios.tcgetattr(fd)
            attrs = termios.tcgetattr(fd)
            attrs[3] &= ~(termios.ICANON | termios.ECHO | termios.ISIG)
            attrs[6][termios.VMIN] = 1
            attrs[6][termios.VTIME] = 0
            termios.tcsetattr(fd, termios.TCSANOW, attrs)

        self._loop.add_reader(fd, self._on_readable)
        self._fd = fd
        logger.info("Keypress driver started, press any key to toggle inputs, Ctrl-C to quit")

    def stop(self) -> None:
        """Stop reading and restore the terminal."""
        if self._loop is None or self._fd is None:
            return

        self._loop.remove_reader(self._fd)
        if self._saved_attrs is not None:
            termios.tcsetattr(self._fd, termios.TCSADRAIN, self._saved_attrs)
            self._saved_attrs = None
        self._fd = None
        logger.info("Keypress driver stopped")

    async def wait_interrupted(self) -> None:
        """Wait until Ctrl-C is received."""
        await self._interrupted.wait()

    def _on_readable(self) -> None:
        if self._fd is None:
            return
        data = os.read(self._fd, 64)
        if not data:
            # EOF on the stream: nothing more will ever toggle the pins
            logger.info("Keypress input closed")
            self.stop()
            self._interrupt()
            return
        self.feed(data.decode(errors="replace"))

    def feed(self, data: str) -> None:
        """Handle received characters.

        Each character toggles every input pin once. Characters after a
        Ctrl-C are dropped.

        Args:
            data: Characters read from the terminal
        """
        for ch in data:
            if ch == INTERRUPT:
                self._interrupt()
                return

            logger.debug("Keypress %r", ch)
            toggled = self._gpio.toggle_inputs()
            if toggled:
                logger.info("Input pins toggled", extra={"pins": toggled})

            if self.on_toggle:
                try:
                    self.on_toggle(toggled)
                except Exception as e:
                    logger.exception("Error in toggle callback: %s", e)

    def _interrupt(self) -> None:
        logger.info("Interrupt received")
        self._interrupted.set()
        if self.on_interrupt:
            try:
                self.on_interrupt()
            except Exception as e:
                logger.exception("Error in interrupt callback: %s", e)
