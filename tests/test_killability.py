"""Tests for the ancestor-chain killability check."""

import pytest

from fakes import FakeProcess, make_snapshot
from ork.config import OrkConfig
from ork.errors import AncestryResolutionError, CycleDetectedError
from ork.killability import is_killable
from ork.protection import ProtectionSets, build_protection_sets


def core_tree(extra=()):
    """core0(1) -> worker(2) -> shell(3)"""
    return make_snapshot(
        FakeProcess(1, "core0", 0),
        FakeProcess(2, "worker", 1),
        FakeProcess(3, "shell", 2),
        *extra,
    )


class TestScenarios:
    """Tests for the documented example trees."""

    def test_exempt_root_children_are_killable(self):
        """Test children at any depth below an exempt protected root are killable."""
        snapshot = core_tree()
        config = OrkConfig(protected_names=frozenset({"core0"}), exempt_children_names=frozenset({"core0"}))
        sets = build_protection_sets(snapshot, config)

        assert is_killable(1, snapshot, sets) is False
        assert is_killable(2, snapshot, sets) is True
        assert is_killable(3, snapshot, sets) is True

    def test_non_exempt_root_protects_children(self):
        """Test descendants of a non-exempt protected process are not killable."""
        snapshot = core_tree(extra=[FakeProcess(4, "core0", 0)])
        config = OrkConfig(protected_names=frozenset({"core0"}), exempt_children_names=frozenset())
        sets = build_protection_sets(snapshot, config)

        assert is_killable(2, snapshot, sets) is False
        assert is_killable(3, snapshot, sets) is False
        assert is_killable(4, snapshot, sets) is False

    def test_reaped_intermediate_parent_is_an_error(self):
        """Test a parent missing from the snapshot never yields killable."""
        snapshot = make_snapshot(
            FakeProcess(1, "core0", 0),
            FakeProcess(3, "shell", 2),  # pid 2 already exited
        )
        sets = ProtectionSets(protected=frozenset({1}), exempt=frozenset({1}))

        with pytest.raises(AncestryResolutionError, match="parent process 2"):
            is_killable(3, snapshot, sets)


class TestProtection:
    """Tests for protected processes and the nearest protected ancestor."""

    def test_protected_process_never_killable(self):
        """Test a protected process is not killable even below an exempt ancestor."""
        snapshot = make_snapshot(
            FakeProcess(1, "core0", 0),
            FakeProcess(2, "libvirtd", 1),
        )
        sets = ProtectionSets(protected=frozenset({1, 2}), exempt=frozenset({1}))

        assert is_killable(2, snapshot, sets) is False

    def test_protected_process_skips_ancestry_lookup(self):
        """Test a protected process is decided without reading its parent."""
        proc = FakeProcess(5, "qemu-system-x86_64", None)
        snapshot = make_snapshot(proc)
        sets = ProtectionSets(protected=frozenset({5}))

        assert is_killable(5, snapshot, sets) is False
        assert proc.ppid_calls == 0

    def test_nearest_non_exempt_ancestor_wins_over_distant_exempt(self):
        """Test a non-exempt protected ancestor shields descendants from an exempt root."""
        snapshot = make_snapshot(
            FakeProcess(1, "core0", 0),
            FakeProcess(10, "libvirtd", 1),
            FakeProcess(11, "helper", 10),
            FakeProcess(12, "qemu-helper", 11),
            FakeProcess(13, "leaf", 12),
        )
        sets = ProtectionSets(protected=frozenset({1, 10}), exempt=frozenset({1}))

        for pid in (11, 12, 13):
            assert is_killable(pid, snapshot, sets) is False

    def test_nearest_exempt_ancestor_wins_over_distant_protected(self):
        """Test the walk stops at the first protected ancestor."""
        snapshot = make_snapshot(
            FakeProcess(1, "kthreadd", 0),
            FakeProcess(2, "coreX", 1),
            FakeProcess(3, "app", 2),
            FakeProcess(4, "app-worker", 3),
        )
        sets = ProtectionSets(protected=frozenset({1, 2}), exempt=frozenset({2}))

        assert is_killable(3, snapshot, sets) is True
        assert is_killable(4, snapshot, sets) is True

    def test_deep_chain_below_exempt_ancestor(self):
        """Test depth does not matter below an exempt ancestor."""
        procs = [FakeProcess(1, "core0", 0)]
        procs += [FakeProcess(pid, f"p{pid}", pid - 1) for pid in range(2, 200)]
        snapshot = make_snapshot(*procs)
        sets = ProtectionSets(protected=frozenset({1}), exempt=frozenset({1}))

        assert is_killable(199, snapshot, sets) is True


class TestAncestryErrors:
    """Tests for chains that cannot be resolved."""

    def test_chain_reaching_untracked_root(self):
        """Test a chain without any protected ancestor is an error."""
        snapshot = make_snapshot(
            FakeProcess(1, "systemd", 0),
            FakeProcess(2, "bash", 1),
        )
        sets = ProtectionSets()

        with pytest.raises(AncestryResolutionError):
            is_killable(2, snapshot, sets)

    def test_parent_lookup_failure(self):
        """Test a failing parent lookup is reported, not swallowed."""
        snapshot = make_snapshot(
            FakeProcess(1, "core0", 0),
            FakeProcess(2, "worker", None),
        )
        sets = ProtectionSets(protected=frozenset({1}), exempt=frozenset({1}))

        with pytest.raises(AncestryResolutionError):
            is_killable(2, snapshot, sets)

    def test_pid_missing_from_snapshot(self):
        """Test asking about a pid outside the snapshot is an error."""
        with pytest.raises(AncestryResolutionError):
            is_killable(42, {}, ProtectionSets())

    def test_cycle_detected(self):
        """Test a parent loop raises instead of spinning forever."""
        snapshot = make_snapshot(
            FakeProcess(2, "a", 3),
            FakeProcess(3, "b", 4),
            FakeProcess(4, "c", 2),
        )

        with pytest.raises(CycleDetectedError) as excinfo:
            is_killable(2, snapshot, ProtectionSets())

        assert excinfo.value.chain == [2, 3, 4, 2]

    def test_self_parent_cycle(self):
        """Test a process listed as its own parent is a cycle."""
        snapshot = make_snapshot(FakeProcess(7, "odd", 7))

        with pytest.raises(CycleDetectedError):
            is_killable(7, snapshot, ProtectionSets())

    def test_cycle_is_an_ancestry_error(self):
        """Test callers catching AncestryResolutionError also catch cycles."""
        assert issubclass(CycleDetectedError, AncestryResolutionError)
