"""Core domain models for telemetry events and aggregated metrics."""

from dataclasses import dataclass, field
from enum import Enum


class LogLevel(str, Enum):
    """Severity of a log event, serialized by value."""

    ERROR = "ERROR"
    WARN = "WARN"
    INFO = "INFO"
    DEBUG = "DEBUG"
    TRACE = "TRACE"


class MetricKind(str, Enum):
    """Aggregation kind of a raw metric event."""

    COUNTER = "counter"
    GAUGE = "gauge"
    HISTOGRAM = "histogram"


@dataclass(frozen=True)
class Log:
    """A structured log event.

    The attributes mapping is enriched in place exactly once, by the
    attribute provider, before the log is queued.

    Attributes:
        timestamp: High-precision ISO-8601 UTC timestamp.
        body: The log message.
        level: Log severity.
        attributes: Additional string key/value pairs.
    """

    timestamp: str
    body: str
    level: LogLevel
    attributes: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class Alert:
    """An alert event, de-duplicated by title on the collector side.

    Attributes:
        timestamp: High-precision ISO-8601 UTC timestamp.
        title: Alert title.
        attributes: Additional string key/value pairs.
    """

    timestamp: str
    title: str
    attributes: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class MetricEvent:
    """A single raw metric observation.

    Attributes:
        name: Metric name (e.g., http_requests_total).
        value: Observed value.
        tags: Key-value pairs for metric dimensions.
        kind: Counter, gauge or histogram.
        timestamp: Unix timestamp in seconds, used to select the time bucket.
    """

    name: str
    value: float
    tags: dict[str, str]
    kind: MetricKind
    timestamp: float


@dataclass(frozen=True)
class CounterMessage:
    """Summed counter value for one series in one bucket."""

    timestamp: str
    metric_name: str
    value: float
    tags: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class GaugeMessage:
    """Last gauge value for one series at the end of one bucket."""

    timestamp: str
    metric_name: str
    value: float
    tags: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class HistogramMessage:
    """All raw observations for one histogram series in one bucket."""

    timestamp: str
    metric_name: str
    values: list[float]
    tags: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class AggregatedMetrics:
    """One finalized bucket, ready to be sent."""

    counters: list[CounterMessage] = field(default_factory=list)
    gauges: list[GaugeMessage] = field(default_factory=list)
    histograms: list[HistogramMessage] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not (self.counters or self.gauges or self.histograms)


def series_key(name: str, tags: dict[str, str]) -> tuple[str, tuple[tuple[str, str], ...]]:
    """Return the identity of a metric series.

    Tag order does not matter: ``{"a": "1", "b": "2"}`` and
    ``{"b": "2", "a": "1"}`` produce the same key.
    """
    return (name, tuple(sorted(tags.items())))
