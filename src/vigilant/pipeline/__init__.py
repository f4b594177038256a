"""Batching, aggregation and delivery of telemetry."""

from vigilant.pipeline.base import QueueFlusher
from vigilant.pipeline.batcher import Batcher, create_alert_batcher, create_log_batcher
from vigilant.pipeline.collector import CollectorState, MetricsCollector, TimeBucket
from vigilant.pipeline.sender import MetricsSender

__all__ = [
    "Batcher",
    "CollectorState",
    "MetricsCollector",
    "MetricsSender",
    "QueueFlusher",
    "TimeBucket",
    "create_alert_batcher",
    "create_log_batcher",
]
