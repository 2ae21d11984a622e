"""Kill a process with a trail in both the operational and the kernel log."""

import logging

from ork.errors import KillError, NameResolutionError
from ork.kmsg import KernelLog
from ork.models import ProcessRef

logger = logging.getLogger(__name__)


class ProcessHandle:
    """Invokes the termination primitive exactly once, with no retry or escalation."""

    def __init__(self, kernel_log: KernelLog) -> None:
        self._kernel_log = kernel_log

    def kill(self, proc: ProcessRef) -> None:
        """
        Kill ``proc``.

        Raises:
            KillError: The termination primitive failed; re-raised unchanged
                after being logged to both sinks.
        """
        pid = proc.pid
        try:
            name = proc.name()
        except NameResolutionError:
            logger.error("Error getting process name for %s", pid)
            name = "unknown"

        self._kernel_log.write("attempting to kill process with pid %s and name %s", pid, name)
        logger.info("Attempting to kill process %s %s", pid, name)

        try:
            proc.kill()
        except KillError:
            self._kernel_log.write("error killing process with pid %s and name %s", pid, name)
            logger.error("Error killing process %s %s", pid, name)
            raise

        self._kernel_log.write("successfully killed process with pid %s and name %s", pid, name)
        logger.info("Successfully killed process %s %s", pid, name)
