"""ork - Textual dashboard and command line entry point."""

import argparse
import logging
import time
from enum import Enum
from queue import Empty, Queue

from textual.app import App, ComposeResult
from textual.containers import Container
from textual.widgets import DataTable, Footer, Static

from ork.config import OrkConfig, load_config
from ork.cycle import CycleReport, SamplingCycle
from ork.errors import KillError
from ork.handle import ProcessHandle
from ork.kmsg import KernelLog
from ork.models import CandidateSnapshot
from ork.monitor import MonitorUpdate, OrkMonitor

logger = logging.getLogger(__name__)


class SortKey(Enum):
    """Sort keys for the candidate table."""

    CPU = "cpu"
    MEM = "mem"
    PID = "pid"
    NAME = "name"


def format_megabytes(size: int) -> str:
    """Format a whole number of megabytes as human-readable string."""
    if size < 1024:
        return f"{size:5d}M"
    return f"{size / 1024:5.1f}G"


def format_cpu_score(score: float) -> str:
    """Format a smoothed CPU score (nanoseconds per cycle) as milliseconds."""
    return f"{score / 1_000_000:9.1f}ms"


class CycleStats(Static):
    """Header widget showing statistics of the last sampling cycle."""

    DEFAULT_CSS = """
    CycleStats {
        height: auto;
        min-height: 4;
        padding: 1;
        background: $surface;
    }
    """

    def __init__(self, *args, **kwargs) -> None:
        """Initialize CycleStats."""
        super().__init__(*args, **kwargs)
        self._report: CycleReport | None = None

    @property
    def report(self) -> CycleReport | None:
        return self._report

    def update_stats(self, report: CycleReport) -> None:
        """Update the statistics from a cycle report."""
        self._report = report
        self.update(self._get_stats())

    def on_mount(self) -> None:
        self.update(self._get_stats())

    def _get_stats(self) -> str:
        report = self._report
        if report is None:
            return "Waiting for first sampling cycle..."
        if report.enumeration_failed:
            return "[red]Could not list processes[/red]"
        return (
            f"Processes: {report.processes}  Protected: {report.protected} "
            f"(exempt {report.exempt})  Killable: {report.killable}\n"
            f"Scored: {report.scored}  Tracked: {report.tracked}  "
            f"Ancestry errors: {report.ancestry_errors}  Metrics errors: {report.metrics_errors}\n"
            f"Cycle took {report.duration * 1000:.0f}ms"
        )


class CandidateTable(Container):
    """Container for the kill candidate table."""

    DEFAULT_CSS = """
    CandidateTable {
        height: 1fr;
        border: solid $primary;
    }
    """

    def __init__(self, *args, **kwargs) -> None:
        """Initialize CandidateTable."""
        super().__init__(*args, **kwargs)
        self._current_pids: set[int] = set()
        self._sort_key: SortKey = SortKey.CPU
        self._sort_reverse: bool = True  # Default: descending for CPU

    @property
    def sort_key(self) -> SortKey:
        """Get current sort key."""
        return self._sort_key

    def cycle_sort(self) -> SortKey:
        """Cycle to the next sort key and return it."""
        keys = list(SortKey)
        current_index = keys.index(self._sort_key)
        next_index = (current_index + 1) % len(keys)
        self._sort_key = keys[next_index]
        self._sort_reverse = self._sort_key in (SortKey.CPU, SortKey.MEM)
        return self._sort_key

    def compose(self) -> ComposeResult:
        """Compose the candidate table."""
        yield DataTable(id="candidate-table")

    def on_mount(self) -> None:
        """Initialize the data table when mounted."""
        table = self.query_one("#candidate-table", DataTable)
        table.cursor_type = "row"

        table.add_column("PID", key="pid", width=8)
        table.add_column("CPU", key="cpu", width=12)
        table.add_column("MEM", key="mem", width=8)
        table.add_column("PRI", key="priority", width=4)
        table.add_column("Name", key="name")

    def selected_pid(self) -> int | None:
        """Get the pid of the highlighted row."""
        table = self.query_one("#candidate-table", DataTable)
        if table.row_count == 0:
            return None
        try:
            row_key, _ = table.coordinate_to_cell_key(table.cursor_coordinate)
        except Exception:
            return None
        return int(row_key.value)

    def update_candidates(self, candidates: list[CandidateSnapshot]) -> None:
        """
        Replace the table contents with ``candidates``.

        The table is rebuilt in sort order so the ranking on screen matches
        the ranking a policy would see.
        """
        table = self.query_one("#candidate-table", DataTable)
        selected = self.selected_pid()

        table.clear()
        for candidate in self._sort_candidates(candidates):
            table.add_row(
                str(candidate.pid),
                format_cpu_score(candidate.cpu_score),
                format_megabytes(candidate.memory_mb),
                str(candidate.priority),
                candidate.name[:50],
                key=str(candidate.pid),
            )
        self._current_pids = {candidate.pid for candidate in candidates}

        if selected in self._current_pids:
            table.move_cursor(row=table.get_row_index(str(selected)))

    def _sort_candidates(self, candidates: list[CandidateSnapshot]) -> list[CandidateSnapshot]:
        """Sort candidates based on the current sort key."""
        key_func = {
            SortKey.CPU: lambda c: c.cpu_score,
            SortKey.MEM: lambda c: c.memory_mb,
            SortKey.PID: lambda c: c.pid,
            SortKey.NAME: lambda c: c.name.lower(),
        }
        return sorted(candidates, key=key_func[self._sort_key], reverse=self._sort_reverse)


class OrkApp(App):
    """Dashboard over the ork decision core."""

    TITLE = "ork"
    SUB_TITLE = "Out-of-resource kill candidates"

    CSS = """
    Screen {
        layout: vertical;
    }

    #cycle-stats {
        dock: top;
        height: auto;
        min-height: 5;
    }
    """

    BINDINGS = [
        ("q", "quit", "Quit"),
        ("f6", "sort", "Sort"),
        ("k", "kill", "Kill"),
    ]

    def __init__(self, config: OrkConfig | None = None) -> None:
        """Initialize the OrkApp."""
        super().__init__()
        self._config = config if config is not None else OrkConfig()
        self._update_queue: Queue[MonitorUpdate] = Queue()
        self._monitor = OrkMonitor(SamplingCycle(self._config), self._update_queue)
        self._handle = ProcessHandle(KernelLog(self._config.kernel_log_path))

    def compose(self) -> ComposeResult:
        """Compose the application layout."""
        yield CycleStats(id="cycle-stats")
        yield CandidateTable()
        yield Footer()

    def on_mount(self) -> None:
        """Start the monitor when the app is mounted."""
        self._monitor.start()
        self.set_interval(0.5, self._check_for_updates)

    def _check_for_updates(self) -> None:
        """Check the queue for cycle results and refresh the UI."""
        update = None
        while True:
            try:
                update = self._update_queue.get_nowait()
            except Empty:
                break

        if update is not None:
            self._update_ui(update)

    def _update_ui(self, update: MonitorUpdate) -> None:
        """Update the UI with the result of a cycle."""
        self.query_one("#cycle-stats", CycleStats).update_stats(update.report)
        self.query_one(CandidateTable).update_candidates(update.candidates)

    def action_sort(self) -> None:
        """Handle sort action - cycle through sort keys."""
        new_sort_key = self.query_one(CandidateTable).cycle_sort()
        self.notify(f"Sort: {new_sort_key.value.upper()}")

    def action_kill(self) -> None:
        """Kill the highlighted candidate."""
        pid = self.query_one(CandidateTable).selected_pid()
        if pid is None:
            return
        entry = self._monitor.entry(pid)
        if entry is None:
            self.notify(f"Process {pid} is no longer tracked", severity="warning")
            return
        try:
            self._handle.kill(entry.process)
        except KillError as e:
            self.notify(str(e), severity="error")
            return
        self.notify(f"Killed {pid} ({entry.name})")

    def action_quit(self) -> None:
        """Handle quit action with graceful cleanup."""
        self._monitor.stop()
        self.exit()


def create_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ork",
        description="Track which processes may be killed under resource pressure, and how heavy they are.",
    )
    parser.add_argument(
        "--protected",
        dest="protected_names",
        nargs="*",
        help="Process names that must never be killed",
    )
    parser.add_argument(
        "--exempt-children",
        dest="exempt_children_names",
        nargs="*",
        help="Protected process names whose children may still be killed",
    )
    parser.add_argument("--ewma-window", dest="ewma_window", type=int, help="CPU smoothing window in cycles")
    parser.add_argument("--score-ttl", dest="score_ttl", type=float, help="Seconds a score survives without refresh")
    parser.add_argument("--poll-rate", dest="poll_rate", type=float, help="Seconds between sampling cycles")
    parser.add_argument("--kernel-log", dest="kernel_log_path", help="Kernel log device (default /dev/kmsg)")
    parser.add_argument("--headless", action="store_true", help="Run cycles in the foreground without the dashboard")
    parser.add_argument("--top", type=int, default=5, help="Candidates to log per cycle in headless mode")
    parser.add_argument("--log-file", help="Write the log to this file")
    parser.add_argument("--debug-logging", action="store_true", help="Enable debug logging")
    return parser


def setup_logging(log_file: str | None, debug: bool, headless: bool) -> None:
    level = logging.DEBUG if debug else logging.INFO
    fmt = "%(asctime)s %(name)s %(levelname)s %(message)s"
    if log_file:
        logging.basicConfig(filename=log_file, level=level, format=fmt)
    elif headless:
        logging.basicConfig(level=level, format=fmt)
    else:
        # The dashboard owns the terminal
        logging.basicConfig(handlers=[logging.NullHandler()], level=level)


def run_headless_cycle(cycle: SamplingCycle, top: int) -> bool:
    """Run one headless cycle and log the heaviest candidates. Returns False if it failed."""
    try:
        report = cycle.run()
    except Exception:
        # Keep the daemon running; the next tick gets a fresh snapshot
        logger.exception("Sampling cycle failed")
        return False
    logger.info(
        "processes=%s protected=%s killable=%s tracked=%s errors=%s",
        report.processes,
        report.protected,
        report.killable,
        report.tracked,
        report.ancestry_errors + report.metrics_errors,
    )
    for entry in cycle.tracker.candidates()[:top]:
        logger.info("candidate pid=%s name=%s cpu=%.0f mem=%sMB", entry.pid, entry.name, entry.cpu, entry.memory)
    return True


def run_headless(config: OrkConfig, top: int) -> None:
    """Run sampling cycles forever, logging the heaviest candidates."""
    cycle = SamplingCycle(config)
    while True:
        run_headless_cycle(cycle, top)
        time.sleep(config.poll_rate)


def main(argv: list[str] | None = None) -> None:
    """Entry point for the ork command."""
    args = create_argument_parser().parse_args(argv)
    setup_logging(args.log_file, args.debug_logging, args.headless)
    config = load_config(
        protected_names=args.protected_names,
        exempt_children_names=args.exempt_children_names,
        ewma_window=args.ewma_window,
        score_ttl=args.score_ttl,
        poll_rate=args.poll_rate,
        kernel_log_path=args.kernel_log_path,
    )
    if args.headless:
        try:
            run_headless(config, args.top)
        except KeyboardInterrupt:
            pass
        return
    OrkApp(config).run()


if __name__ == "__main__":
    main()
