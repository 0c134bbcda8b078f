"""
Pytest configuration and shared fixtures for the wpi-gpio test suite.
"""

import asyncio
import sys
from pathlib import Path

import pytest

# Ensure src/ is on PYTHONPATH so 'wpigpio' can be imported without install
SRC_ROOT = Path(__file__).resolve().parent.parent / "src"
if str(SRC_ROOT) not in sys.path:
    sys.path.insert(0, str(SRC_ROOT))

from wpigpio.core.config import ConfigManager  # noqa: E402
from wpigpio.gpio.selector import reset_gpio  # noqa: E402
from wpigpio.gpio.simulator import SimulatedGPIO  # noqa: E402

# Short enough to keep the suite fast, long enough to be measurable
FAST_DELAY = 0.01


async def settle(turns: int = 5) -> None:
    """Give woken tasks a few event loop turns to run."""
    for _ in range(turns):
        await asyncio.sleep(0)


@pytest.fixture
def gpio():
    """Simulator with a short sequence delay."""
    return SimulatedGPIO(sequence_delay=FAST_DELAY)


@pytest.fixture(autouse=True)
def reset_singletons():
    """Drop module-level singletons between tests."""
    ConfigManager.reset_instance()
    reset_gpio()
    yield
    ConfigManager.reset_instance()
    reset_gpio()


@pytest.fixture
def temp_config_path(tmp_path):
    """Path of a config file that does not exist yet."""
    return tmp_path / "config" / "config.yaml"


def pytest_configure(config):
    """
    Hook for initial pytest configuration.

    Used to add custom markers.
    """
    config.addinivalue_line(
        "markers",
        "slow: marks tests as slow (deselect with '-m \"not slow\"')",
    )
