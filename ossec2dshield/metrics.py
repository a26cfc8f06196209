"""
ossec2dshield/metrics.py

Per-run counters for the log processing pipeline.
No external dependencies. One RunMetrics instance is created per run and
returned with the result, so repeated runs in one process never share
counts.

Usage:
    metrics = RunMetrics()
    metrics.lines_read.inc()
    print(metrics.as_dict())
"""


class Counter:
    """A plain integer counter."""

    __slots__ = ("_value",)

    def __init__(self) -> None:
        self._value = 0

    def inc(self, amount: int = 1) -> None:
        self._value += amount

    @property
    def value(self) -> int:
        return self._value

    def __repr__(self) -> str:  # pragma: no cover
        return f"Counter({self._value})"


class RunMetrics:
    """Counters for one pass over the firewall log."""

    def __init__(self) -> None:
        self.lines_read: Counter = Counter()
        """Every line read from the input file."""

        self.lines_candidate: Counter = Counter()
        """Lines mentioning DROP or BLOCK."""

        self.lines_malformed: Counter = Counter()
        """Candidate lines that did not parse (layout, month, IP shape)."""

        self.events_port_filtered: Counter = Counter()
        """Events rejected by the destination-port filter."""

        self.events_private_source: Counter = Counter()
        """Events dropped by the RFC1918 source rule."""

        self.events_already_seen: Counter = Counter()
        """Events at or before the stored cutoff timestamp."""

        self.events_aggregated: Counter = Counter()
        """Events accepted by the aggregator (including repeats)."""

    def as_dict(self) -> dict:
        """Return all counters as a plain dict."""
        return {
            name: counter.value
            for name, counter in vars(self).items()
            if isinstance(counter, Counter)
        }
