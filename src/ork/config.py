"""Configuration for ork."""

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, replace

logger = logging.getLogger(__name__)

# Processes that must never be killed.
DEFAULT_PROTECTED_NAMES = frozenset(
    {
        "0-ork",
        "ork",
        "qemu-system-x86_64",
        "libvirtd",
        "coreX",
        "core0",
        "kthreadd",
        "g8ufs",
    }
)

# Protected processes whose children are still fair game.
DEFAULT_EXEMPT_CHILDREN_NAMES = frozenset({"core0", "coreX"})

MIN_POLL_RATE = 0.1


@dataclass(slots=True, frozen=True)
class OrkConfig:
    """Immutable configuration value passed into every cycle."""

    protected_names: frozenset[str] = DEFAULT_PROTECTED_NAMES
    exempt_children_names: frozenset[str] = DEFAULT_EXEMPT_CHILDREN_NAMES
    ewma_window: int = 60
    score_ttl: float = 60.0  # Seconds
    poll_rate: float = 10.0  # Seconds between cycles
    kernel_log_path: str = "/dev/kmsg"

    def __post_init__(self) -> None:
        if self.ewma_window < 1:
            raise ValueError(f"ewma_window must be at least 1, got {self.ewma_window}")
        if self.score_ttl <= 0:
            raise ValueError(f"score_ttl must be positive, got {self.score_ttl}")
        # frozen, so go through object.__setattr__
        object.__setattr__(self, "protected_names", frozenset(self.protected_names))
        object.__setattr__(self, "exempt_children_names", frozenset(self.exempt_children_names))
        object.__setattr__(self, "poll_rate", max(MIN_POLL_RATE, float(self.poll_rate)))
        stray = self.exempt_children_names - self.protected_names
        if stray:
            logger.warning("Ignoring exempt-children names that are not protected: %s", " ".join(sorted(stray)))
            object.__setattr__(self, "exempt_children_names", self.exempt_children_names & self.protected_names)


def _parse_names(value: str) -> frozenset[str]:
    """Parse a space-separated list of process names."""
    return frozenset(value.split())


# config field -> (converter, environment variable)
CONFIG_SCHEMA = {
    "protected_names": (_parse_names, "ORK_PROTECTED_NAMES"),
    "exempt_children_names": (_parse_names, "ORK_EXEMPT_CHILDREN_NAMES"),
    "ewma_window": (int, "ORK_EWMA_WINDOW"),
    "score_ttl": (float, "ORK_SCORE_TTL"),
    "poll_rate": (float, "ORK_POLL_RATE"),
    "kernel_log_path": (str, "ORK_KERNEL_LOG"),
}


def load_from_env(env: Mapping[str, str] | None = None) -> dict:
    """Read configuration overrides from environment variables."""
    if env is None:
        env = os.environ
    values = {}
    for key, (converter, env_var) in CONFIG_SCHEMA.items():
        raw = env.get(env_var)
        if raw is None:
            continue
        try:
            values[key] = converter(raw)
        except ValueError as e:
            logger.warning("Invalid value for %s: %r - %s", env_var, raw, e)
    return values


def load_config(env: Mapping[str, str] | None = None, **overrides) -> OrkConfig:
    """
    Build an OrkConfig from defaults, environment variables and explicit overrides.

    Overrides whose value is None are ignored, so argparse namespaces can be
    passed straight through.
    """
    values = load_from_env(env)
    values.update({key: value for key, value in overrides.items() if value is not None})
    try:
        return OrkConfig(**values)
    except ValueError as e:
        logger.warning("Invalid configuration, falling back to defaults for bad fields: %s", e)
        config = OrkConfig()
        for key, value in values.items():
            try:
                config = replace(config, **{key: value})
            except ValueError:
                logger.warning("Ignoring invalid value for %s: %r", key, value)
        return config
