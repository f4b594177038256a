"""Metrics collector aggregating raw events into time-aligned buckets.

Two loops run while the collector is started:

- the processor drains the raw counter/gauge/histogram queues into buckets
  every process_interval seconds;
- the ticker fires once per interval, one second after each wall-clock
  boundary, and hands every bucket whose interval has closed to the sender.

A bucket is keyed by the start of its interval (a multiple of interval) and
is sent exactly once, either by the tick that closes it or by the final
drain on shutdown.

Counters sum and histograms collect raw values; both start empty in every
bucket. Gauges are last-write-wins and carry forward: once seen, a gauge
series is reported in every later snapshot with its most recent value.
"""

import asyncio
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum

from vigilant.core.models import (
    AggregatedMetrics,
    CounterMessage,
    GaugeMessage,
    HistogramMessage,
    MetricEvent,
    series_key,
)
from vigilant.core.ports import MetricsSenderPort
from vigilant.core.timestamps import interval_start_ms, iso_from_ms, to_millis

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL = 60.0
DEFAULT_PROCESS_INTERVAL = 1.0

# Ticks fire this long after a boundary so events stamped just before it
# have been drained into their bucket.
TICK_OFFSET_MS = 1000

SeriesKey = tuple[str, tuple[tuple[str, str], ...]]


class CollectorState(Enum):
    STOPPED = "stopped"
    RUNNING = "running"
    STOPPING = "stopping"


@dataclass
class CounterSeries:
    name: str
    tags: dict[str, str]
    value: float = 0.0


@dataclass
class GaugeSeries:
    name: str
    tags: dict[str, str]
    value: float = 0.0


@dataclass
class HistogramSeries:
    name: str
    tags: dict[str, str]
    values: list[float] = field(default_factory=list)


@dataclass
class TimeBucket:
    """Series accumulated for one interval starting at start_ms."""

    start_ms: int
    counters: dict[SeriesKey, CounterSeries] = field(default_factory=dict)
    gauges: dict[SeriesKey, GaugeSeries] = field(default_factory=dict)
    histograms: dict[SeriesKey, HistogramSeries] = field(default_factory=dict)

    @property
    def timestamp(self) -> str:
        return iso_from_ms(self.start_ms)

    def add_counter(self, event: MetricEvent) -> None:
        key = series_key(event.name, event.tags)
        series = self.counters.get(key)
        if series is None:
            series = self.counters[key] = CounterSeries(event.name, dict(event.tags))
        series.value += event.value

    def add_gauge(self, event: MetricEvent) -> None:
        key = series_key(event.name, event.tags)
        series = self.gauges.get(key)
        if series is None:
            series = self.gauges[key] = GaugeSeries(event.name, dict(event.tags))
        series.value = event.value

    def add_histogram(self, event: MetricEvent) -> None:
        key = series_key(event.name, event.tags)
        series = self.histograms.get(key)
        if series is None:
            series = self.histograms[key] = HistogramSeries(event.name, dict(event.tags))
        series.values.append(event.value)


class MetricsCollector:
    """Aggregates raw metric events and emits one snapshot per interval.

    Loop-bound: every method must be called on the event loop that runs
    the collector.

    Args:
        sender: Receives finalized AggregatedMetrics snapshots.
        interval: Bucket width in seconds.
        process_interval: Seconds between raw queue drains.
        clock: Returns the current Unix time in seconds.
    """

    def __init__(
        self,
        sender: MetricsSenderPort,
        interval: float = DEFAULT_INTERVAL,
        process_interval: float = DEFAULT_PROCESS_INTERVAL,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._sender = sender
        self._interval_ms = int(interval * 1000)
        if self._interval_ms < 1:
            raise ValueError(f"interval must be at least 1ms, got {interval}")
        self._process_interval = process_interval
        self._clock = clock

        self._counter_queue: list[MetricEvent] = []
        self._gauge_queue: list[MetricEvent] = []
        self._histogram_queue: list[MetricEvent] = []

        self._buckets: dict[int, TimeBucket] = {}
        self._gauges: dict[SeriesKey, GaugeSeries] = {}
        self._last_finalized_ms: int | None = None

        self._state = CollectorState.STOPPED
        self._stop_event: asyncio.Event | None = None
        self._tasks: list[asyncio.Task[None]] = []

    @property
    def state(self) -> CollectorState:
        return self._state

    @property
    def buckets(self) -> dict[int, TimeBucket]:
        """Open buckets by interval start in milliseconds."""
        return self._buckets

    def add_counter(self, event: MetricEvent) -> None:
        self._counter_queue.append(event)

    def add_gauge(self, event: MetricEvent) -> None:
        self._gauge_queue.append(event)

    def add_histogram(self, event: MetricEvent) -> None:
        self._histogram_queue.append(event)

    def start(self) -> None:
        """Start the sender, the processor loop and the boundary ticker."""
        if self._state is not CollectorState.STOPPED:
            return
        self._state = CollectorState.RUNNING
        self._stop_event = asyncio.Event()
        self._sender.start()
        loop = asyncio.get_running_loop()
        self._tasks = [
            loop.create_task(self._run_ticker(), name="vigilant-metrics-ticker"),
            loop.create_task(self._run_processor(), name="vigilant-metrics-processor"),
        ]

    async def shutdown(self) -> None:
        """Stop both loops, send every outstanding bucket and stop the sender.

        Does nothing unless the collector is running.
        """
        if self._state is not CollectorState.RUNNING or self._stop_event is None:
            return
        self._state = CollectorState.STOPPING
        self._stop_event.set()
        await asyncio.gather(*self._tasks)
        self._tasks = []

        self.process_queues()
        for start_ms in sorted(self._buckets):
            self._finalize(self._buckets.pop(start_ms))

        self._state = CollectorState.STOPPED
        await self._sender.shutdown()

    def process_queues(self) -> None:
        """Move every queued raw event into the bucket of its interval."""
        counters, self._counter_queue = self._counter_queue, []
        gauges, self._gauge_queue = self._gauge_queue, []
        histograms, self._histogram_queue = self._histogram_queue, []

        for event in counters:
            self._bucket_for(event).add_counter(event)
        for event in gauges:
            self._bucket_for(event).add_gauge(event)
        for event in histograms:
            self._bucket_for(event).add_histogram(event)

    def process_tick(self, tick_ms: int) -> None:
        """Send every bucket whose interval closed before tick_ms.

        The interval that just closed is the one before the interval
        containing tick_ms. If it holds no bucket but gauges are known, a
        gauge-only snapshot is sent for it.
        """
        self.process_queues()
        closed_ms = interval_start_ms(tick_ms, self._interval_ms) - self._interval_ms
        if self._last_finalized_ms is not None and closed_ms <= self._last_finalized_ms:
            return

        closed = sorted(start for start in self._buckets if start <= closed_ms)
        for start_ms in closed:
            self._finalize(self._buckets.pop(start_ms))
        if closed_ms not in closed and self._gauges:
            self._finalize(TimeBucket(closed_ms))

    def _bucket_for(self, event: MetricEvent) -> TimeBucket:
        start_ms = interval_start_ms(to_millis(event.timestamp), self._interval_ms)
        if self._last_finalized_ms is not None and start_ms <= self._last_finalized_ms:
            # the event's interval was already sent; fold it into the first open one
            start_ms = self._last_finalized_ms + self._interval_ms
        bucket = self._buckets.get(start_ms)
        if bucket is None:
            bucket = self._buckets[start_ms] = TimeBucket(start_ms)
        return bucket

    def _finalize(self, bucket: TimeBucket) -> None:
        for key, series in bucket.gauges.items():
            self._gauges[key] = GaugeSeries(series.name, series.tags, series.value)
        if self._last_finalized_ms is None or bucket.start_ms > self._last_finalized_ms:
            self._last_finalized_ms = bucket.start_ms

        timestamp = bucket.timestamp
        metrics = AggregatedMetrics(
            counters=[
                CounterMessage(timestamp, series.name, series.value, dict(series.tags))
                for series in bucket.counters.values()
            ],
            gauges=[
                GaugeMessage(timestamp, series.name, series.value, dict(series.tags))
                for series in self._gauges.values()
            ],
            histograms=[
                HistogramMessage(
                    timestamp, series.name, list(series.values), dict(series.tags)
                )
                for series in bucket.histograms.values()
            ],
        )
        if metrics.is_empty():
            return
        logger.debug(
            "Finalized metrics bucket %s: %d counters, %d gauges, %d histograms",
            timestamp,
            len(metrics.counters),
            len(metrics.gauges),
            len(metrics.histograms),
        )
        self._sender.add(metrics)

    def _now_ms(self) -> int:
        return to_millis(self._clock())

    async def _wait_for_stop(self, timeout: float) -> bool:
        assert self._stop_event is not None
        try:
            await asyncio.wait_for(self._stop_event.wait(), timeout)
        except asyncio.TimeoutError:
            return False
        return True

    async def _run_processor(self) -> None:
        while not await self._wait_for_stop(self._process_interval):
            self.process_queues()

    async def _run_ticker(self) -> None:
        now_ms = self._now_ms()
        next_tick_ms = (
            interval_start_ms(now_ms, self._interval_ms)
            + self._interval_ms
            + TICK_OFFSET_MS
        )
        while True:
            delay = max(next_tick_ms - self._now_ms(), 0) / 1000
            if await self._wait_for_stop(delay):
                return
            self.process_tick(next_tick_ms)
            next_tick_ms += self._interval_ms
