"""Periodic driver for sampling cycles."""

import logging
import threading
from collections import deque
from dataclasses import dataclass
from queue import Queue

from ork.cycle import CycleReport, SamplingCycle
from ork.models import CandidateSnapshot, ScoreEntry

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class MonitorUpdate:
    """Result of one cycle, as pushed to the update queue."""

    report: CycleReport
    candidates: list[CandidateSnapshot]


class OrkMonitor:
    """
    Runs a SamplingCycle every ``poll_rate`` seconds in a daemon thread.

    Cycles never overlap: the single thread runs one to completion before
    waiting for the next tick. Results are pushed to a thread-safe Queue.
    """

    def __init__(
        self,
        cycle: SamplingCycle,
        update_queue: Queue[MonitorUpdate],
        poll_rate: float | None = None,
    ) -> None:
        """
        Initialize the OrkMonitor.

        Args:
            cycle: The sampling cycle to drive.
            update_queue: Thread-safe queue to push updates to.
            poll_rate: Seconds between cycles. Defaults to the cycle's config.
        """
        self._cycle = cycle
        self._queue = update_queue
        self._poll_rate = cycle.config.poll_rate if poll_rate is None else max(0.1, poll_rate)
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._history: deque[CycleReport] = deque(maxlen=60)

    @property
    def poll_rate(self) -> float:
        """Get the current poll rate."""
        return self._poll_rate

    @poll_rate.setter
    def poll_rate(self, value: float) -> None:
        """Set the poll rate."""
        self._poll_rate = max(0.1, value)  # Minimum 0.1 seconds

    @property
    def is_running(self) -> bool:
        """Check if the monitor thread is running."""
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start the monitoring thread."""
        if self.is_running:
            return

        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._poll_loop,
            daemon=True,
            name="OrkMonitor",
        )
        self._thread.start()

    def stop(self, timeout: float | None = 5.0) -> None:
        """
        Stop the monitoring thread.

        Args:
            timeout: How long to wait for thread to stop (seconds).
        """
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            self._thread = None

    def entry(self, pid: int) -> ScoreEntry | None:
        """Look up the tracked entry of ``pid``, if it is still live."""
        return self._cycle.tracker.entry(pid)

    def get_history(self) -> list[CycleReport]:
        """Get the reports of the most recent cycles, oldest first."""
        return list(self._history)

    def _poll_loop(self) -> None:
        """Main polling loop running in the background thread."""
        while not self._stop_event.is_set():
            try:
                self._queue.put(self.run_once())
            except Exception:
                # Keep the loop running; the next tick gets a fresh snapshot
                logger.exception("Sampling cycle failed")

            # Wait for poll_rate seconds or until stop is requested
            self._stop_event.wait(timeout=self._poll_rate)

    def run_once(self) -> MonitorUpdate:
        """Run one cycle and collect the ranked candidates."""
        report = self._cycle.run()
        self._history.append(report)
        candidates = [CandidateSnapshot.from_entry(entry) for entry in self._cycle.tracker.candidates()]
        return MonitorUpdate(report=report, candidates=candidates)
