"""Stopping the processes a test started, and reporting those that resist."""

import logging
import signal
import subprocess
import sys

logger = logging.getLogger(__name__)

STOP_TIMEOUT = 20.0
QUIT_TIMEOUT = 10.0


class StopProcessesError(Exception):
    """At least one process did not shut down cleanly."""

    def __init__(self, failures):
        self.failures = list(failures)
        super().__init__(
            "at least one process failed to shut down cleanly: " + "; ".join(self.failures)
        )


def _signal(process, signum):
    if sys.platform == "win32":
        process.kill()
    else:
        process.send_signal(signum)


def stop_processes(*processes):
    """SIGTERM each process (skipping None); SIGQUIT those still up after STOP_TIMEOUT.

    Raises StopProcessesError after every process has been dealt with.
    """
    failures = []
    for process in processes:
        if process is None:
            continue
        _signal(process, signal.SIGTERM)
        try:
            process.wait(timeout=STOP_TIMEOUT)
            continue
        except subprocess.TimeoutExpired:
            logger.warning("!!!!!!!!!!!!!!!! STOP TIMEOUT !!!!!!!!!!!!!!!!")

        _signal(process, getattr(signal, "SIGQUIT", signal.SIGTERM))
        try:
            process.wait(timeout=QUIT_TIMEOUT)
        except subprocess.TimeoutExpired:
            failures.append(f"process did not exit within {QUIT_TIMEOUT} seconds of SIGQUIT")
        failures.append("process did not shut down cleanly; SIGQUIT sent")

    if failures:
        raise StopProcessesError(failures)