"""Decide whether a process may be killed by walking its ancestors."""

from ork.errors import AncestryResolutionError, CycleDetectedError
from ork.models import Snapshot
from ork.protection import ProtectionSets


def is_killable(pid: int, snapshot: Snapshot, sets: ProtectionSets) -> bool:
    """
    Check if the process ``pid`` may be killed.

    A protected process is never killable. Otherwise the nearest protected
    ancestor decides: its descendants are killable only if it is exempt.
    More distant ancestors are never consulted.

    Raises:
        AncestryResolutionError: The chain broke before a protected ancestor
            was found (a parent exited, or the root was reached). The process
            must be treated as not killable.
        CycleDetectedError: The parent links loop back on themselves.
    """
    if pid in sets.protected:
        return False

    current = snapshot.get(pid)
    if current is None:
        raise AncestryResolutionError(f"Process {pid} is not in the process map")

    chain = [pid]
    visited = {pid}
    while True:
        parent_pid = current.ppid()

        if parent_pid in sets.protected:
            return parent_pid in sets.exempt

        if parent_pid in visited:
            chain.append(parent_pid)
            raise CycleDetectedError(pid, chain)

        parent = snapshot.get(parent_pid)
        if parent is None:
            raise AncestryResolutionError(
                f"Error getting parent process {parent_pid} of process {current.pid} from process map"
            )

        chain.append(parent_pid)
        visited.add(parent_pid)
        current = parent
