"""Kernel-visible log sink."""

import logging

logger = logging.getLogger(__name__)

PREFIX = "ORK: "


class KernelLog:
    """
    Writes records to the kernel ring buffer through /dev/kmsg.

    Each record is written with its own open/write so a line lands even if
    the host is about to run out of memory. Write failures are logged and
    otherwise ignored; the kernel log is never a reason to stop a kill.
    """

    def __init__(self, path: str = "/dev/kmsg") -> None:
        self._path = path

    @property
    def path(self) -> str:
        return self._path

    def write(self, fmt: str, *args) -> None:
        line = PREFIX + (fmt % args if args else fmt)
        if not line.endswith("\n"):
            line += "\n"
        try:
            with open(self._path, "a") as f:
                f.write(line)
        except OSError as e:
            logger.warning("Cannot write to kernel log %s: %s", self._path, e)
