"""Data models for ork."""

from dataclasses import dataclass

import psutil

from ork.errors import AncestryResolutionError, KillError, MetricsError, NameResolutionError
from ork.ewma import CounterDelta, MovingAverage

# Rank weight a pressure-response policy may apply to a candidate.
DEFAULT_PRIORITY = 10

BYTES_PER_MEGABYTE = 1024 * 1024
NANOSECONDS_PER_SECOND = 1_000_000_000


class ProcessRef:
    """
    Handle to one OS process for the duration of a sampling cycle.

    Every accessor goes to the live process, so a process that exits
    mid-cycle surfaces as an OrkError instead of stale data.
    """

    __slots__ = ("_process",)

    def __init__(self, process: psutil.Process) -> None:
        self._process = process

    @classmethod
    def lookup(cls, pid: int) -> "ProcessRef":
        """Look up a process by pid. Raises psutil.Error if it is gone."""
        return cls(psutil.Process(pid))

    @property
    def pid(self) -> int:
        return self._process.pid

    def name(self) -> str:
        try:
            return self._process.name()
        except psutil.Error as e:
            raise NameResolutionError(f"Cannot resolve name of process {self.pid}: {e}") from e

    def ppid(self) -> int:
        # psutil does not cache ppid on POSIX, so reparenting is observed.
        try:
            return self._process.ppid()
        except psutil.Error as e:
            raise AncestryResolutionError(f"Cannot resolve parent of process {self.pid}: {e}") from e

    def cpu_time(self) -> float:
        """Get accumulated user + system CPU time in seconds."""
        try:
            times = self._process.cpu_times()
        except psutil.Error as e:
            raise MetricsError(f"Cannot read cpu times of process {self.pid}: {e}") from e
        return times.user + times.system

    def memory_rss(self) -> int:
        """Get resident set size in bytes."""
        try:
            return self._process.memory_info().rss
        except psutil.Error as e:
            raise MetricsError(f"Cannot read memory info of process {self.pid}: {e}") from e

    def kill(self) -> None:
        try:
            self._process.kill()
        except psutil.Error as e:
            raise KillError(f"Cannot kill process {self.pid}: {e}") from e

    def __repr__(self) -> str:
        return f"ProcessRef(pid={self.pid})"


# pid -> ProcessRef, consistent within one cycle only
Snapshot = dict[int, ProcessRef]


@dataclass(slots=True)
class ScoreEntry:
    """Smoothed resource usage of one killable process, kept across cycles."""

    pid: int
    name: str
    process: ProcessRef
    cpu_average: MovingAverage
    cpu_delta: CounterDelta
    memory_mb: int = 0

    @property
    def cpu(self) -> float:
        """Get the smoothed CPU score (nanoseconds of CPU per cycle)."""
        return self.cpu_average.value

    @property
    def memory(self) -> int:
        """Get the last observed resident memory in whole megabytes."""
        return self.memory_mb

    @property
    def priority(self) -> int:
        return DEFAULT_PRIORITY


@dataclass(slots=True, frozen=True)
class CandidateSnapshot:
    """Immutable view of a ScoreEntry for display."""

    pid: int
    name: str
    cpu_score: float
    memory_mb: int
    priority: int

    @classmethod
    def from_entry(cls, entry: ScoreEntry) -> "CandidateSnapshot":
        return cls(
            pid=entry.pid,
            name=entry.name,
            cpu_score=entry.cpu,
            memory_mb=entry.memory,
            priority=entry.priority,
        )
