"""GPIO provider wrapping the WiringPi ``gpio`` command-line utility.

Every operation runs one ``gpio`` invocation with an argument list (no
shell). Edge waits use ``gpio wfi``, which blocks in the utility until the
interrupt fires, so they are not subject to ``command_timeout``.
"""

import asyncio
import logging
from typing import Any

from ..core.errors import CommandError, HardwareError
from .base import SEQUENCE_DELAY, Edge, GPIOProvider, PinId, normalize_pin, to_level

logger = logging.getLogger(__name__)


class HardwareGPIO(GPIOProvider):
    """GPIO provider backed by the ``gpio`` utility.

    Usage:
        gpio = HardwareGPIO(bcm_gpio=True)
        await gpio.output(17, 1)
        level = await gpio.read(27)
    """

    name = "hardware"

    def __init__(
        self,
        command: str = "gpio",
        bcm_gpio: bool = False,
        command_timeout: float | None = 10.0,
        sequence_delay: float = SEQUENCE_DELAY,
    ) -> None:
        """Initialize the hardware provider.

        Args:
            command: Name or path of the gpio utility
            bcm_gpio: Address pins by BCM number (``gpio -g``)
            command_timeout: Timeout for non-waiting commands, None for none
            sequence_delay: Delay after each write of a sequence
        """
        super().__init__(sequence_delay=sequence_delay)
        self.command = command
        self.bcm_gpio = bcm_gpio
        self.command_timeout = command_timeout

    def build_args(self, method: str, pin: PinId, *args: Any) -> list[str]:
        """Build the argument vector of one gpio call.

        Args:
            method: gpio sub-command (mode, read, write, wfi)
            pin: Pin number
            *args: Extra arguments of the sub-command

        Returns:
            Full argument list, starting with the command
        """
        cmd = [self.command]
        if self.bcm_gpio:
            cmd.append("-g")
        cmd.extend([method, str(normalize_pin(pin))])
        cmd.extend(str(arg) for arg in args)
        return cmd

    async def _exec(
        self,
        method: str,
        pin: PinId,
        *args: Any,
        timeout: float | None = None,
    ) -> str:
        """Run one gpio call.

        Returns:
            Command stdout

        Raises:
            HardwareError: If the command cannot be started or times out
            CommandError: If the command exits with a non-zero status
        """
        cmd = self.build_args(method, pin, *args)
        logger.debug(
            "Running %s", method, extra={"pin": normalize_pin(pin), "command": " ".join(cmd)}
        )

        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise HardwareError(
                f"Cannot run {self.command}", details={"args": " ".join(cmd)}, cause=e
            ) from e

        try:
            stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=timeout)
        except asyncio.TimeoutError:
            proc.kill()
            await proc.wait()
            raise HardwareError(
                f"{self.command} timed out", details={"args": " ".join(cmd), "timeout": timeout}
            )
        except asyncio.CancelledError:
            # A cancelled wfi would otherwise keep waiting in the background
            if proc.returncode is None:
                proc.kill()
                try:
                    await asyncio.shield(proc.wait())
                except asyncio.CancelledError:
                    pass
            raise

        if proc.returncode != 0:
            error_msg = stderr.decode().strip() if stderr else ""
            logger.warning(
                "%s failed: %s",
                self.command,
                error_msg or "no output",
                extra={
                    "pin": normalize_pin(pin),
                    "command": " ".join(cmd),
                    "returncode": proc.returncode,
                },
            )
            raise CommandError(
                error_msg or f"{self.command} failed",
                args=cmd,
                returncode=proc.returncode,
                stderr=error_msg,
            )

        return stdout.decode() if stdout else ""

    async def _command(self, method: str, pin: PinId, *args: Any) -> str:
        return await self._exec(method, pin, *args, timeout=self.command_timeout)

    async def input(self, pin: PinId) -> str:
        return await self._command("mode", pin, "in")

    async def output(self, pin: PinId, value: Any = None) -> str:
        await self.write(pin, value)
        return await self._command("mode", pin, "out")

    async def pull_up(self, pin: PinId) -> str:
        return await self._command("mode", pin, "up")

    async def pull_down(self, pin: PinId) -> str:
        return await self._command("mode", pin, "down")

    async def tri_state(self, pin: PinId) -> str:
        return await self._command("mode", pin, "tri")

    async def read(self, pin: PinId) -> int:
        out = await self._command("read", pin)
        try:
            return int(out.strip())
        except ValueError:
            raise CommandError(
                f"Unexpected output from {self.command} read: {out.strip()!r}",
                args=self.build_args("read", pin),
                returncode=0,
            ) from None

    async def write(self, pin: PinId, value: Any = None) -> str | None:
        if value is None:
            return None
        return await self._command("write", pin, to_level(value))

    async def rising(self, pin: PinId) -> str:
        return await self._exec("wfi", pin, Edge.RISING.value)

    async def falling(self, pin: PinId) -> str:
        return await self._exec("wfi", pin, Edge.FALLING.value)

    async def edge(self, pin: PinId) -> str:
        return await self._exec("wfi", pin, Edge.BOTH.value)
