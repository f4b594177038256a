"""JSON payload encoders for log, alert and metrics messages.

The encoders build plain dicts; the transport serializes them as the JSON
body of a POST to ``/api/message``.
"""

from collections.abc import Iterable
from typing import Any

from vigilant.core.models import AggregatedMetrics, Alert, Log


def encode_log(log: Log) -> dict[str, Any]:
    return {
        "timestamp": log.timestamp,
        "body": log.body,
        "level": log.level.value,
        "attributes": dict(log.attributes),
    }


def encode_alert(alert: Alert) -> dict[str, Any]:
    return {
        "timestamp": alert.timestamp,
        "title": alert.title,
        "attributes": dict(alert.attributes),
    }


def encode_batch(
    token: str,
    type_: str,
    key: str,
    items: Iterable[Log | Alert],
) -> dict[str, Any]:
    """Encode a batch of logs or alerts.

    Args:
        token: API token.
        type_: Message type, "logs" or "alerts".
        key: Payload key holding the items, matching type_.
        items: Events to encode, in queue order.

    Returns:
        ``{"token": ..., "type": type_, key: [...]}``
    """
    encoded = []
    for item in items:
        if isinstance(item, Log):
            encoded.append(encode_log(item))
        else:
            encoded.append(encode_alert(item))
    return {"token": token, "type": type_, key: encoded}


def encode_metrics(token: str, metrics: AggregatedMetrics) -> dict[str, Any]:
    """Encode one finalized metrics bucket."""
    return {
        "token": token,
        "metrics_counters": [
            {
                "timestamp": counter.timestamp,
                "metric_name": counter.metric_name,
                "value": counter.value,
                "tags": dict(counter.tags),
            }
            for counter in metrics.counters
        ],
        "metrics_gauges": [
            {
                "timestamp": gauge.timestamp,
                "metric_name": gauge.metric_name,
                "value": gauge.value,
                "tags": dict(gauge.tags),
            }
            for gauge in metrics.gauges
        ],
        "metrics_histograms": [
            {
                "timestamp": histogram.timestamp,
                "metric_name": histogram.metric_name,
                "values": list(histogram.values),
                "tags": dict(histogram.tags),
            }
            for histogram in metrics.histograms
        ],
    }
