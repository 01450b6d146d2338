import signal
import subprocess
import sys

import pytest

from inigo.stop_process import StopProcessesError, stop_processes


class FakeProcess:
    def __init__(self, exits_on=()):
        self.exits_on = set(exits_on)
        self.signals = []

    def send_signal(self, sig):
        self.signals.append(sig)

    def kill(self):
        self.signals.append(signal.SIGKILL)

    def wait(self, timeout=None):
        if self.exits_on.intersection(self.signals):
            return 0
        raise subprocess.TimeoutExpired("fake", timeout)


def test_graceful_process_gets_sigterm_only():
    process = FakeProcess(exits_on=[signal.SIGTERM])
    stop_processes(process)
    assert process.signals == [signal.SIGTERM]


def test_none_entries_are_skipped():
    process = FakeProcess(exits_on=[signal.SIGTERM])
    stop_processes(None, process, None)
    assert process.signals == [signal.SIGTERM]


def test_no_processes_is_fine():
    assert stop_processes() is None


def test_stubborn_process_gets_sigquit_and_fails():
    process = FakeProcess(exits_on=[signal.SIGQUIT])
    with pytest.raises(StopProcessesError) as excinfo:
        stop_processes(process)
    assert process.signals == [signal.SIGTERM, signal.SIGQUIT]
    assert excinfo.value.failures == ["process did not shut down cleanly; SIGQUIT sent"]
    assert "at least one process failed to shut down cleanly" in str(excinfo.value)


def test_unkillable_process_reports_both_failures():
    process = FakeProcess()
    with pytest.raises(StopProcessesError) as excinfo:
        stop_processes(process)
    assert any("SIGQUIT sent" in failure for failure in excinfo.value.failures)
    assert any("did not exit within" in failure for failure in excinfo.value.failures)


def test_later_processes_are_still_stopped_after_a_failure():
    stubborn = FakeProcess(exits_on=[signal.SIGQUIT])
    graceful = FakeProcess(exits_on=[signal.SIGTERM])
    with pytest.raises(StopProcessesError):
        stop_processes(stubborn, graceful)
    assert graceful.signals == [signal.SIGTERM]


def test_real_process_is_terminated():
    process = subprocess.Popen([sys.executable, "-c", "import time; time.sleep(60)"])
    stop_processes(process)
    assert process.returncode == -signal.SIGTERM