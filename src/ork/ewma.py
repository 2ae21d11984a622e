"""Smoothing primitives for per-process CPU scores."""

# Samples averaged plainly before the exponential decay takes over.
WARMUP_SAMPLES = 10


class MovingAverage:
    """
    Exponentially weighted moving average over an effective window of samples.

    A window of N samples gives a decay of 2 / (N + 1). The first
    WARMUP_SAMPLES samples are averaged plainly and that mean seeds the
    exponential average; until then ``value`` reads 0.0 so a process seen for
    only a few cycles cannot outrank long-running ones.
    """

    __slots__ = ("_decay", "_value", "_count")

    def __init__(self, window: int = 60) -> None:
        if window < 1:
            raise ValueError(f"window must be at least 1, got {window}")
        self._decay = 2 / (window + 1)
        self._value = 0.0
        self._count = 0

    @property
    def value(self) -> float:
        """Get the smoothed value, 0.0 while warming up."""
        if self._count <= WARMUP_SAMPLES:
            return 0.0
        return self._value

    @property
    def count(self) -> int:
        """Get how many samples were seen, saturating after warm-up."""
        return self._count

    def add(self, sample: float) -> None:
        """Add one sample."""
        if self._count < WARMUP_SAMPLES:
            self._count += 1
            self._value += sample
            return
        if self._count == WARMUP_SAMPLES:
            self._count += 1
            self._value = self._value / WARMUP_SAMPLES
        self._value = sample * self._decay + self._value * (1 - self._decay)


class CounterDelta:
    """Turn readings of a cumulative counter into per-reading increments."""

    __slots__ = ("_previous",)

    def __init__(self, initial: int) -> None:
        self._previous = initial

    @property
    def previous(self) -> int:
        return self._previous

    def __call__(self, current: int) -> int:
        """
        Return the increase since the previous reading and remember ``current``.

        A counter that went backwards (pid reuse, counter reset) yields 0.
        """
        delta = max(0, current - self._previous)
        self._previous = current
        return delta
