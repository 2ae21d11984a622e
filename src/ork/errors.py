"""Error kinds raised by the ork decision core."""


class OrkError(Exception):
    """Base class for every ork error."""


class EnumerationError(OrkError):
    """The process table, or a single process in it, could not be read."""


class NameResolutionError(OrkError):
    """A process name could not be resolved."""


class AncestryResolutionError(OrkError):
    """A parent process could not be resolved while walking the ancestor chain."""


class CycleDetectedError(AncestryResolutionError):
    """The ancestor chain loops back on itself."""

    def __init__(self, pid: int, chain: list[int]) -> None:
        self.pid = pid
        self.chain = chain
        super().__init__(f"Ancestor chain of process {pid} loops: {' -> '.join(map(str, chain))}")


class MetricsError(OrkError):
    """CPU time or memory usage could not be read for a process."""


class KillError(OrkError):
    """The termination primitive failed."""


class CycleInProgressError(OrkError):
    """A sampling cycle was started while another one was still running."""
