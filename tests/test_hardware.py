"""Tests for the gpio utility wrapper.

The utility is replaced by a recorder, so these tests check the exact
commands that would run on a Raspberry Pi.
"""

import asyncio

import pytest

from wpigpio.core.errors import CommandError, HardwareError
from wpigpio.gpio.hardware import HardwareGPIO


class FakeProcess:
    def __init__(self, stdout=b"", stderr=b"", returncode=0, hang=False):
        self._stdout = stdout
        self._stderr = stderr
        self._hang = hang
        self.returncode = None
        self._exit_code = returncode
        self.killed = False
        self.reaped = False

    async def communicate(self):
        if self._hang:
            await asyncio.sleep(3600)
        self.returncode = self._exit_code
        return self._stdout, self._stderr

    def kill(self):
        self.killed = True
        self.returncode = -9

    async def wait(self):
        self.reaped = True
        return self.returncode


class Recorder:
    """Stands in for asyncio.create_subprocess_exec."""

    def __init__(self):
        self.cmds = []
        self.stdout = b""
        self.stderr = b""
        self.returncode = 0
        self.hang = False
        self.error = None
        self.processes = []

    async def __call__(self, *cmd, stdout=None, stderr=None):
        if self.error is not None:
            raise self.error
        self.cmds.append(" ".join(cmd))
        proc = FakeProcess(self.stdout, self.stderr, self.returncode, self.hang)
        self.processes.append(proc)
        return proc


@pytest.fixture
def recorder(monkeypatch):
    rec = Recorder()
    monkeypatch.setattr(asyncio, "create_subprocess_exec", rec)
    return rec


@pytest.fixture
def hw():
    return HardwareGPIO(sequence_delay=0.001)


def both_numberings(hw, recorder, operation):
    """Run an operation with WiringPi and with BCM numbering."""

    async def scenario():
        await operation()
        plain = list(recorder.cmds)
        recorder.cmds.clear()
        hw.bcm_gpio = True
        await operation()
        return plain, list(recorder.cmds)

    return asyncio.run(scenario())


class TestCommands:
    def test_input(self, hw, recorder):
        plain, bcm = both_numberings(hw, recorder, lambda: hw.input(3))
        assert plain == ["gpio mode 3 in"]
        assert bcm == ["gpio -g mode 3 in"]

    def test_output(self, hw, recorder):
        plain, bcm = both_numberings(hw, recorder, lambda: hw.output(4))
        assert plain == ["gpio mode 4 out"]
        assert bcm == ["gpio -g mode 4 out"]

    def test_output_with_initial_value(self, hw, recorder):
        plain, bcm = both_numberings(hw, recorder, lambda: hw.output(5, 1))
        assert plain == ["gpio write 5 1", "gpio mode 5 out"]
        assert bcm == ["gpio -g write 5 1", "gpio -g mode 5 out"]

    @pytest.mark.parametrize(
        "method, keyword",
        [("pull_up", "up"), ("pull_down", "down"), ("tri_state", "tri")],
    )
    def test_pull_modes(self, hw, recorder, method, keyword):
        plain, bcm = both_numberings(hw, recorder, lambda: getattr(hw, method)(4))
        assert plain == [f"gpio mode 4 {keyword}"]
        assert bcm == [f"gpio -g mode 4 {keyword}"]

    def test_read(self, hw, recorder):
        recorder.stdout = b"1\n"
        plain, bcm = both_numberings(hw, recorder, lambda: hw.read(6))
        assert plain == ["gpio read 6"]
        assert bcm == ["gpio -g read 6"]
        assert asyncio.run(hw.read(6)) == 1

    def test_write(self, hw, recorder):
        plain, bcm = both_numberings(hw, recorder, lambda: hw.write(7, 0))
        assert plain == ["gpio write 7 0"]
        assert bcm == ["gpio -g write 7 0"]

    def test_write_without_value_runs_nothing(self, hw, recorder):
        assert asyncio.run(hw.write(7)) is None
        assert recorder.cmds == []

    def test_write_coerces_value(self, hw, recorder):
        asyncio.run(hw.write(7, "on"))
        assert recorder.cmds == ["gpio write 7 1"]

    @pytest.mark.parametrize(
        "method, keyword",
        [("rising", "rising"), ("falling", "falling"), ("edge", "both")],
    )
    def test_edge_waits(self, hw, recorder, method, keyword):
        plain, bcm = both_numberings(hw, recorder, lambda: getattr(hw, method)(3))
        assert plain == [f"gpio wfi 3 {keyword}"]
        assert bcm == [f"gpio -g wfi 3 {keyword}"]

    def test_pin_is_normalized(self, hw, recorder):
        asyncio.run(hw.read("12abc"))
        asyncio.run(hw.read("junk"))
        assert recorder.cmds == ["gpio read 12", "gpio read 0"]

    def test_custom_command(self, recorder):
        hw = HardwareGPIO(command="/usr/local/bin/gpio")
        asyncio.run(hw.input(1))
        assert recorder.cmds == ["/usr/local/bin/gpio mode 1 in"]


class TestSequencing:
    def test_sequence(self, hw, recorder):
        plain, bcm = both_numberings(hw, recorder, lambda: hw.sequence(8, [1, 0, 1, 1]))
        assert plain == [
            "gpio mode 8 out",
            "gpio write 8 1",
            "gpio write 8 0",
            "gpio write 8 1",
            "gpio write 8 1",
        ]
        assert bcm == [cmd.replace("gpio ", "gpio -g ", 1) for cmd in plain]

    def test_tap(self, hw, recorder):
        asyncio.run(hw.tap(9))
        assert recorder.cmds == [
            "gpio mode 9 out",
            "gpio write 9 1",
            "gpio write 9 0",
            "gpio write 9 1",
        ]

    @pytest.mark.parametrize(
        "method, keyword",
        [("irising", "rising"), ("ifalling", "falling"), ("iedge", "both")],
    )
    @pytest.mark.parametrize("times", [1, 2, 5])
    def test_iteration(self, hw, recorder, method, keyword, times):
        calls = []

        def callback(count, value):
            calls.append(count)
            return count < times

        result = asyncio.run(getattr(hw, method)(3, callback))
        assert result == times
        assert calls == list(range(1, times + 1))
        assert recorder.cmds == [f"gpio wfi 3 {keyword}"] * times


class TestErrors:
    def test_nonzero_exit_raises_with_stderr(self, hw, recorder):
        recorder.returncode = 1
        recorder.stderr = b"Unable to open GPIO direction interface\n"
        with pytest.raises(CommandError) as excinfo:
            asyncio.run(hw.input(3))
        err = excinfo.value
        assert err.stderr == "Unable to open GPIO direction interface"
        assert err.returncode == 1
        assert err.command_args == ["gpio", "mode", "3", "in"]
        assert "Unable to open" in str(err)

    def test_command_error_is_hardware_error(self):
        assert issubclass(CommandError, HardwareError)

    def test_missing_binary(self, hw, recorder):
        recorder.error = FileNotFoundError("gpio")
        with pytest.raises(HardwareError):
            asyncio.run(hw.read(1))

    def test_unparseable_read(self, hw, recorder):
        recorder.stdout = b"garbage"
        with pytest.raises(CommandError):
            asyncio.run(hw.read(1))

    def test_timeout_kills_command(self, recorder):
        hw = HardwareGPIO(command_timeout=0.01)
        recorder.hang = True
        with pytest.raises(HardwareError) as excinfo:
            asyncio.run(hw.write(1, 1))
        assert not isinstance(excinfo.value, CommandError)
        assert recorder.processes[0].killed

    def test_edge_waits_are_not_timed_out(self, recorder):
        hw = HardwareGPIO(command_timeout=0.01)
        recorder.hang = True

        async def scenario():
            task = asyncio.create_task(hw.rising(3))
            await asyncio.sleep(0.05)
            assert not task.done()
            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task

        asyncio.run(scenario())
        assert recorder.processes[0].killed
        assert recorder.processes[0].reaped
