"""Tests for ork configuration."""

import pytest

from ork.config import DEFAULT_EXEMPT_CHILDREN_NAMES, DEFAULT_PROTECTED_NAMES, OrkConfig, load_config, load_from_env


def test_defaults():
    """Test OrkConfig defaults."""
    config = OrkConfig()
    assert config.protected_names == DEFAULT_PROTECTED_NAMES
    assert config.exempt_children_names == DEFAULT_EXEMPT_CHILDREN_NAMES
    assert config.ewma_window == 60
    assert config.score_ttl == 60.0
    assert config.kernel_log_path == "/dev/kmsg"


def test_default_exempt_names_are_protected():
    """Test the shipped exempt names are all protected."""
    assert DEFAULT_EXEMPT_CHILDREN_NAMES <= DEFAULT_PROTECTED_NAMES


def test_config_is_frozen():
    """Test OrkConfig is immutable."""
    config = OrkConfig()
    with pytest.raises(AttributeError):
        config.ewma_window = 5


def test_names_normalized_to_frozenset():
    """Test name collections become frozensets."""
    config = OrkConfig(protected_names=["a", "b"], exempt_children_names=["a"])
    assert config.protected_names == frozenset({"a", "b"})
    assert isinstance(config.exempt_children_names, frozenset)


def test_stray_exempt_names_dropped(caplog):
    """Test exempt names that are not protected are ignored with a warning."""
    config = OrkConfig(protected_names=frozenset({"a"}), exempt_children_names=frozenset({"a", "b"}))
    assert config.exempt_children_names == {"a"}
    assert "not protected: b" in caplog.text


def test_poll_rate_minimum():
    """Test the poll rate is clamped to a minimum."""
    assert OrkConfig(poll_rate=0.0).poll_rate >= 0.1


@pytest.mark.parametrize("kwargs", [{"ewma_window": 0}, {"score_ttl": 0}, {"score_ttl": -1.0}])
def test_invalid_values_rejected(kwargs):
    """Test out-of-range tuning values are rejected."""
    with pytest.raises(ValueError):
        OrkConfig(**kwargs)


def test_load_from_env():
    """Test environment variables are parsed."""
    env = {
        "ORK_PROTECTED_NAMES": "core0 sshd",
        "ORK_EXEMPT_CHILDREN_NAMES": "core0",
        "ORK_EWMA_WINDOW": "30",
        "ORK_SCORE_TTL": "120",
        "ORK_KERNEL_LOG": "/tmp/kmsg",
    }
    values = load_from_env(env)
    assert values == {
        "protected_names": frozenset({"core0", "sshd"}),
        "exempt_children_names": frozenset({"core0"}),
        "ewma_window": 30,
        "score_ttl": 120.0,
        "kernel_log_path": "/tmp/kmsg",
    }


def test_invalid_env_value_ignored(caplog):
    """Test an unparsable environment value is skipped and logged."""
    assert load_from_env({"ORK_EWMA_WINDOW": "sixty"}) == {}
    assert "Invalid value for ORK_EWMA_WINDOW" in caplog.text


def test_overrides_win_over_env():
    """Test explicit overrides beat the environment, and None is ignored."""
    config = load_config({"ORK_EWMA_WINDOW": "30", "ORK_SCORE_TTL": "90"}, ewma_window=10, score_ttl=None)
    assert config.ewma_window == 10
    assert config.score_ttl == 90.0


def test_invalid_override_falls_back(caplog):
    """Test one bad value does not discard the good ones."""
    config = load_config({}, ewma_window=0, score_ttl=30.0)
    assert config.ewma_window == 60
    assert config.score_ttl == 30.0
