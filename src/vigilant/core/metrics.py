"""Metric helper functions for creating MetricEvent objects."""

import time
from collections.abc import Mapping
from typing import Any

from vigilant.core.models import MetricEvent, MetricKind
from vigilant.core.validation import gate_metric_name, gate_metric_value, gate_tags


def metric_event(
    kind: MetricKind,
    name: Any,
    value: Any,
    tags: Mapping[str, str] | None = None,
) -> MetricEvent | None:
    """Create a raw metric event with the current timestamp.

    Returns:
        MetricEvent, or None if the name is empty or the value is not a
        finite number. Non-string tag items are dropped.
    """
    if not gate_metric_name(name) or not gate_metric_value(value):
        return None
    return MetricEvent(
        name=name,
        value=float(value),
        tags=gate_tags(tags),
        kind=kind,
        timestamp=time.time(),
    )


def counter(
    name: str,
    value: float = 1.0,
    tags: Mapping[str, str] | None = None,
) -> MetricEvent | None:
    """Create a counter event.

    Args:
        name: Metric name (e.g., "http_requests_total")
        value: Increment value (default: 1.0)
        tags: Optional dimension tags
    """
    return metric_event(MetricKind.COUNTER, name, value, tags)


def gauge(
    name: str,
    value: float,
    tags: Mapping[str, str] | None = None,
) -> MetricEvent | None:
    """Create a gauge event.

    Args:
        name: Metric name (e.g., "cpu_percent")
        value: Current gauge value
        tags: Optional dimension tags
    """
    return metric_event(MetricKind.GAUGE, name, value, tags)


def histogram(
    name: str,
    value: float,
    tags: Mapping[str, str] | None = None,
) -> MetricEvent | None:
    """Create a histogram observation.

    Observations are shipped unaggregated; percentiles are computed by the
    collector service.

    Args:
        name: Metric name (e.g., "http_request_duration_seconds")
        value: Observed value
        tags: Optional dimension tags
    """
    return metric_event(MetricKind.HISTOGRAM, name, value, tags)
