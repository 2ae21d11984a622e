"""Per-process resource scores kept across sampling cycles."""

import logging
from typing import Literal

from ork.config import OrkConfig
from ork.errors import MetricsError, NameResolutionError
from ork.ewma import CounterDelta, MovingAverage
from ork.models import BYTES_PER_MEGABYTE, NANOSECONDS_PER_SECOND, ProcessRef, ScoreEntry
from ork.ttlstore import TTLStore

logger = logging.getLogger(__name__)

RankKey = Literal["cpu", "memory"]


class ResourceScoreTracker:
    """
    Smoothed CPU score and current memory usage for every killable process.

    Entries live in a TTLStore keyed by pid. An entry that is not refreshed
    within ``config.score_ttl`` seconds disappears, which is how exited or
    no-longer-killable processes drop out of the ranking.
    """

    def __init__(self, config: OrkConfig, store: TTLStore | None = None) -> None:
        self._config = config
        self._store = store if store is not None else TTLStore()

    @property
    def store(self) -> TTLStore:
        return self._store

    def update(self, pid: int, proc: ProcessRef) -> bool:
        """
        Take one CPU and memory sample of ``proc`` and refresh its entry.

        Returns False if the metrics could not be read; the failure is
        logged and the entry is left untouched for this cycle.
        """
        try:
            cpu_ns = int(proc.cpu_time() * NANOSECONDS_PER_SECOND)
            rss = proc.memory_rss()
        except MetricsError as e:
            logger.error("Error getting metrics for process %s: %s", pid, e)
            return False

        entry, found = self._store.get(pid)
        if found:
            entry.cpu_average.add(entry.cpu_delta(cpu_ns))
            entry.process = proc
            try:
                # pid may have been reused by another program
                entry.name = proc.name()
            except NameResolutionError:
                pass
        else:
            entry = ScoreEntry(
                pid=pid,
                name=self._resolve_name(pid, proc),
                process=proc,
                cpu_average=MovingAverage(self._config.ewma_window),
                cpu_delta=CounterDelta(cpu_ns),
            )
        # Sub-megabyte precision is dropped on purpose
        entry.memory_mb = rss // BYTES_PER_MEGABYTE
        self._store.set(pid, entry, self._config.score_ttl)
        return True

    def entry(self, pid: int) -> ScoreEntry | None:
        entry, _ = self._store.get(pid)
        return entry

    def candidates(self, key: RankKey = "cpu") -> list[ScoreEntry]:
        """Return the live entries ranked from heaviest to lightest."""
        entries = [entry for _, entry in self._store.items()]
        if key == "cpu":
            return sorted(entries, key=lambda e: (e.cpu, e.memory), reverse=True)
        if key == "memory":
            return sorted(entries, key=lambda e: (e.memory, e.cpu), reverse=True)
        raise ValueError(f"Unknown rank key: {key!r}")

    def __len__(self) -> int:
        return len(self._store)

    @staticmethod
    def _resolve_name(pid: int, proc: ProcessRef) -> str:
        try:
            return proc.name()
        except NameResolutionError:
            return str(pid)
