"""One pass over the live process table."""

import logging

import psutil

from ork.errors import EnumerationError
from ork.models import ProcessRef, Snapshot

logger = logging.getLogger(__name__)


def take_snapshot() -> Snapshot:
    """
    Build a pid -> ProcessRef mapping of every live process.

    Raises EnumerationError if the process table cannot be listed at all.
    A process that vanishes between listing and lookup is logged and left
    out; it does not abort the snapshot.
    """
    try:
        pids = psutil.pids()
    except (psutil.Error, OSError) as e:
        raise EnumerationError(f"Cannot list processes: {e}") from e

    snapshot: Snapshot = {}
    for pid in pids:
        try:
            snapshot[pid] = ProcessRef.lookup(pid)
        except psutil.Error as e:
            # Handle processes that died between listing and lookup
            logger.error("Error looking up process %s: %s", pid, e)
    return snapshot
