"""One sampling cycle: snapshot, protection sets, killability, scores."""

import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass

from ork.config import OrkConfig
from ork.errors import AncestryResolutionError, CycleInProgressError, EnumerationError
from ork.killability import is_killable
from ork.models import Snapshot
from ork.protection import build_protection_sets
from ork.snapshot import take_snapshot
from ork.tracker import ResourceScoreTracker

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class CycleReport:
    """What one sampling cycle saw and did."""

    processes: int = 0
    protected: int = 0
    exempt: int = 0
    killable: int = 0
    scored: int = 0
    ancestry_errors: int = 0
    metrics_errors: int = 0
    tracked: int = 0
    duration: float = 0.0  # Seconds
    enumeration_failed: bool = False


class SamplingCycle:
    """
    Runs sampling cycles against a shared ResourceScoreTracker.

    Cycles are synchronous and must not overlap; ``run`` raises
    CycleInProgressError instead of running two cycles at once.
    """

    def __init__(
        self,
        config: OrkConfig,
        tracker: ResourceScoreTracker | None = None,
        snapshot_source: Callable[[], Snapshot] = take_snapshot,
    ) -> None:
        """
        Initialize the SamplingCycle.

        Args:
            config: Names and tuning for every cycle.
            tracker: Score tracker shared across cycles. Created from config if omitted.
            snapshot_source: Callable returning the process table for one cycle.
        """
        self._config = config
        self._tracker = tracker if tracker is not None else ResourceScoreTracker(config)
        self._snapshot_source = snapshot_source
        self._running = threading.Lock()

    @property
    def config(self) -> OrkConfig:
        return self._config

    @property
    def tracker(self) -> ResourceScoreTracker:
        return self._tracker

    def run(self) -> CycleReport:
        """Run one cycle to completion and report on it."""
        if not self._running.acquire(blocking=False):
            raise CycleInProgressError("A sampling cycle is already running")
        try:
            return self._run()
        finally:
            self._running.release()

    def _run(self) -> CycleReport:
        started = time.monotonic()
        try:
            snapshot = self._snapshot_source()
        except EnumerationError as e:
            logger.error("Error getting processes: %s", e)
            return CycleReport(
                tracked=len(self._tracker),
                duration=time.monotonic() - started,
                enumeration_failed=True,
            )

        sets = build_protection_sets(snapshot, self._config)

        killable = scored = ancestry_errors = metrics_errors = 0
        for pid, proc in snapshot.items():
            try:
                if not is_killable(pid, snapshot, sets):
                    continue
            except AncestryResolutionError as e:
                logger.warning("Error checking if process %s is killable: %s", pid, e)
                ancestry_errors += 1
                continue

            killable += 1
            if self._tracker.update(pid, proc):
                scored += 1
            else:
                metrics_errors += 1

        self._tracker.store.purge_expired()
        report = CycleReport(
            processes=len(snapshot),
            protected=len(sets.protected),
            exempt=len(sets.exempt),
            killable=killable,
            scored=scored,
            ancestry_errors=ancestry_errors,
            metrics_errors=metrics_errors,
            tracked=len(self._tracker),
            duration=time.monotonic() - started,
        )
        logger.debug("Cycle finished: %s", report)
        return report
