"""Resolve the configured protected names against a snapshot."""

import logging
from dataclasses import dataclass

from ork.config import OrkConfig
from ork.errors import NameResolutionError
from ork.models import Snapshot

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class ProtectionSets:
    """Pids protected this cycle, and the subset whose children are killable."""

    protected: frozenset[int] = frozenset()
    exempt: frozenset[int] = frozenset()


def build_protection_sets(snapshot: Snapshot, config: OrkConfig) -> ProtectionSets:
    """
    Match every process name in ``snapshot`` against the configured names.

    A process whose name cannot be resolved is treated as unprotected for
    this cycle. This is fail-open: a protected process racing with its own
    exit, or hidden by permissions, can momentarily lose its protection.
    """
    protected: set[int] = set()
    exempt: set[int] = set()
    for pid, proc in snapshot.items():
        try:
            name = proc.name()
        except NameResolutionError as e:
            logger.error("Error getting process name for %s: %s", pid, e)
            continue

        if name not in config.protected_names:
            continue
        protected.add(pid)
        if name in config.exempt_children_names:
            exempt.add(pid)

    return ProtectionSets(protected=frozenset(protected), exempt=frozenset(exempt))
