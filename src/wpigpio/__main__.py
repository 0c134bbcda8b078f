"""wpi-gpio command-line entry point.

Usage:
    python -m wpigpio [options] COMMAND ...

Commands:
    mode PIN {in,out,up,down,tri}   Set the mode of a pin
    read PIN                        Print the level of a pin
    write PIN {0,1}                 Write a level to a pin
    wfi PIN {rising,falling,both}   Wait for one edge
    sequence PIN V [V ...]          Write a timed sequence
    tap PIN                         Pulse a pin HIGH, LOW, HIGH
    watch PIN [--edge E] [--count N]
                                    Log edges; with the simulator every
                                    keypress toggles the input pins

Options:
    --config PATH     Path to config file (default: /etc/wpi-gpio/config.yaml)
    --mock            Force the simulator (no hardware required)
    --bcm             Use BCM pin numbering
    --debug           Enable debug logging
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Awaitable, TextIO, TypeVar

from .core.config import DEFAULT_CONFIG_PATH, Config, ConfigManager
from .core.errors import WpiGpioError
from .core.logging import setup_logging
from .gpio.base import Edge, GPIOProvider, normalize_pin
from .gpio.keypress import KeypressDriver
from .gpio.selector import create_gpio
from .gpio.simulator import SimulatedGPIO

logger = logging.getLogger(__name__)

MODES = ("in", "out", "up", "down", "tri")

T = TypeVar("T")


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="wpi-gpio",
        description="Raspberry Pi GPIO access with a simulator fallback",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--config",
        type=Path,
        default=DEFAULT_CONFIG_PATH,
        help="Path to config file",
    )
    parser.add_argument(
        "--mock",
        action="store_true",
        help="Force the simulator (no hardware required)",
    )
    parser.add_argument(
        "--bcm",
        action="store_true",
        help="Use BCM pin numbering",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )

    commands = parser.add_subparsers(dest="command", required=True)

    mode = commands.add_parser("mode", help="Set the mode of a pin")
    mode.add_argument("pin")
    mode.add_argument("mode", choices=MODES)

    read = commands.add_parser("read", help="Print the level of a pin")
    read.add_argument("pin")

    write = commands.add_parser("write", help="Write a level to a pin")
    write.add_argument("pin")
    write.add_argument("value", type=int, choices=(0, 1))

    wfi = commands.add_parser("wfi", help="Wait for one edge")
    wfi.add_argument("pin")
    wfi.add_argument("edge", choices=[e.value for e in Edge])

    sequence = commands.add_parser("sequence", help="Write a timed sequence")
    sequence.add_argument("pin")
    sequence.add_argument("values", type=int, choices=(0, 1), nargs="+")

    tap = commands.add_parser("tap", help="Pulse a pin HIGH, LOW, HIGH")
    tap.add_argument("pin")

    watch = commands.add_parser("watch", help="Log edges of an input pin")
    watch.add_argument("pin")
    watch.add_argument(
        "--edge",
        choices=[e.value for e in Edge],
        default=Edge.BOTH.value,
        help="Edges to report (default: both)",
    )
    watch.add_argument(
        "--count",
        type=int,
        default=None,
        help="Stop after this many edges (default: run until interrupted)",
    )

    return parser


async def set_mode(gpio: GPIOProvider, pin: str, mode: str) -> None:
    """Apply a ``gpio mode`` keyword."""
    if mode == "in":
        await gpio.input(pin)
    elif mode == "out":
        await gpio.output(pin)
    elif mode == "up":
        await gpio.pull_up(pin)
    elif mode == "down":
        await gpio.pull_down(pin)
    else:
        await gpio.tri_state(pin)


async def with_stimulus(
    gpio: GPIOProvider,
    waiting: Awaitable[T],
    keyboard: bool = True,
    stream: TextIO | None = None,
) -> T | None:
    """Await ``waiting`` while the simulator receives keypress events.

    On hardware the edges come from the pins, so ``waiting`` is simply
    awaited. On the simulator a ``KeypressDriver`` reads ``stream`` (stdin
    when it is a terminal) for as long as ``waiting`` runs.

    Returns:
        The result of ``waiting``, or None if Ctrl-C came first
    """
    task = asyncio.ensure_future(waiting)

    driver: KeypressDriver | None = None
    if keyboard and isinstance(gpio, SimulatedGPIO):
        if stream is not None or sys.stdin.isatty():
            driver = KeypressDriver(gpio, stream=stream)
            driver.start()

    try:
        if driver is None:
            return await task

        interrupted = asyncio.create_task(driver.wait_interrupted())
        done, _ = await asyncio.wait({task, interrupted}, return_when=asyncio.FIRST_COMPLETED)
        if task in done:
            interrupted.cancel()
            return task.result()
        task.cancel()
        await asyncio.gather(task, return_exceptions=True)
        return None
    finally:
        if driver is not None:
            driver.stop()


async def wfi(
    gpio: GPIOProvider,
    pin: str,
    edge: Edge,
    keyboard: bool = True,
    stream: TextIO | None = None,
) -> None:
    """Wait for one edge of a pin."""
    if isinstance(gpio, SimulatedGPIO):
        # Only input pins receive simulated events
        await gpio.input(pin)
    if await with_stimulus(gpio, gpio.wait_for(pin, edge), keyboard, stream) is None:
        logger.info("Stopped waiting", extra={"pin": normalize_pin(pin), "edge": edge.value})


async def watch(
    gpio: GPIOProvider,
    pin: str,
    edge: Edge,
    count: int | None,
    keyboard: bool = True,
    stream: TextIO | None = None,
) -> int:
    """Log edges of a pin until ``count`` edges were seen or Ctrl-C.

    Returns:
        Number of edges seen, 0 when interrupted
    """
    await gpio.input(pin)

    def on_edge(n: int, _value: object) -> bool:
        logger.info("Edge #%d", n, extra={"pin": normalize_pin(pin), "edge": edge.value})
        print(n, flush=True)
        return count is None or n < count

    seen = await with_stimulus(gpio, gpio.iterate(pin, edge, on_edge), keyboard, stream)
    if seen is None:
        logger.info("Stopped watching", extra={"pin": normalize_pin(pin), "edge": edge.value})
        return 0
    return seen


async def run(args: argparse.Namespace, config: Config, stream: TextIO | None = None) -> int:
    """Run one command against the configured provider.

    Args:
        args: Parsed command line
        config: Configuration
        stream: Keypress source for the simulator, defaults to a stdin terminal
    """
    if args.mock:
        config.gpio.provider = "simulator"
    if args.bcm:
        config.gpio.bcm_gpio = True

    gpio = await create_gpio(config)
    keyboard = config.simulator.keyboard

    if args.command == "mode":
        await set_mode(gpio, args.pin, args.mode)
    elif args.command == "read":
        print(await gpio.read(args.pin))
    elif args.command == "write":
        await gpio.write(args.pin, args.value)
    elif args.command == "wfi":
        await wfi(gpio, args.pin, Edge(args.edge), keyboard, stream)
    elif args.command == "sequence":
        await gpio.sequence(args.pin, args.values)
    elif args.command == "tap":
        await gpio.tap(args.pin)
    elif args.command == "watch":
        await watch(gpio, args.pin, Edge(args.edge), args.count, keyboard, stream)
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    # Setup initial logging
    setup_logging(level="DEBUG" if args.debug else "INFO")

    config = ConfigManager.get_instance(args.config).get()
    setup_logging(
        level="DEBUG" if args.debug else config.logging.level,
        log_format=config.logging.format,
        log_file=config.logging.file,
        max_size_mb=config.logging.max_size_mb,
        backup_count=config.logging.backup_count,
    )

    try:
        return asyncio.run(run(args, config))
    except WpiGpioError as e:
        logger.error(
            "%s",
            e,
            extra={"error_type": type(e).__name__, "severity": e.severity.value},
        )
        return 1
    except KeyboardInterrupt:
        logger.info("Interrupted")
        return 0


if __name__ == "__main__":
    sys.exit(main())
