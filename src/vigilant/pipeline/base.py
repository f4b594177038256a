"""Queue-and-flush loop shared by the event batcher and the metrics sender.

Delivery is best effort: a batch is removed from the queue before it is
sent and is never re-queued, so a failed send drops it. Failures are logged
and the loop keeps running; they never propagate to the code that added
the items.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from collections import deque
from typing import Generic, TypeVar

from vigilant.core.errors import TransportError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class QueueFlusher(ABC, Generic[T]):
    """FIFO queue drained by a periodic loop and by a size trigger.

    Loop-bound: add(), start() and shutdown() must be called on the event
    loop that runs the flusher.

    Args:
        name: Label used in log messages.
        interval: Seconds to wait between loop flushes.
        batch_size: Maximum number of items per send.
        flush_threshold: Queue length at which add() sends immediately.
    """

    def __init__(
        self,
        name: str,
        interval: float,
        batch_size: int,
        flush_threshold: int,
    ) -> None:
        if batch_size < 1:
            raise ValueError(f"batch_size must be >= 1, got {batch_size}")
        self._name = name
        self._interval = interval
        self._batch_size = batch_size
        self._flush_threshold = flush_threshold
        self._queue: deque[T] = deque()
        self._loop_task: asyncio.Task[None] | None = None
        self._stop_event: asyncio.Event | None = None
        self._in_flight: set[asyncio.Task[None]] = set()

    @property
    def pending(self) -> int:
        """Number of queued items not yet taken for sending."""
        return len(self._queue)

    @property
    def running(self) -> bool:
        return self._loop_task is not None

    def add(self, item: T) -> None:
        """Append an item; send a batch right away once the queue is full."""
        self._queue.append(item)
        if len(self._queue) >= self._flush_threshold:
            self._spawn_delivery(self._take_batch())

    def start(self) -> None:
        """Start the flush loop on the running event loop."""
        if self._loop_task is not None:
            return
        self._stop_event = asyncio.Event()
        self._loop_task = asyncio.get_running_loop().create_task(
            self._run(), name=f"vigilant-{self._name}"
        )

    async def shutdown(self) -> None:
        """Stop the loop after a final flush that drains the whole queue.

        Does nothing if the flusher was never started. In-flight sends
        triggered by add() are awaited as well.
        """
        if self._loop_task is None or self._stop_event is None:
            return
        self._stop_event.set()
        await self._loop_task
        self._loop_task = None
        if self._in_flight:
            await asyncio.gather(*self._in_flight)

    async def flush(self, force: bool = False) -> None:
        """Send one batch from the head of the queue, or all of them if force."""
        while self._queue:
            await self._deliver(self._take_batch())
            if not force:
                break

    async def _run(self) -> None:
        assert self._stop_event is not None
        while not self._stop_event.is_set():
            await self.flush()
            if await self._wait_for_stop(self._interval):
                break
        await self.flush(force=True)

    async def _wait_for_stop(self, timeout: float) -> bool:
        """Sleep up to timeout seconds; return True if stop was requested."""
        assert self._stop_event is not None
        try:
            await asyncio.wait_for(self._stop_event.wait(), timeout)
        except asyncio.TimeoutError:
            return False
        return True

    def _take_batch(self) -> list[T]:
        count = min(self._batch_size, len(self._queue))
        return [self._queue.popleft() for _ in range(count)]

    def _spawn_delivery(self, batch: list[T]) -> None:
        task = asyncio.get_running_loop().create_task(self._deliver(batch))
        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)

    async def _deliver(self, batch: list[T]) -> None:
        try:
            await self._send(batch)
        except TransportError as e:
            logger.warning(
                "Dropped %d %s after failed delivery: %s", len(batch), self._name, e
            )
        except Exception:
            # telemetry must never take down the host application
            logger.exception("Unexpected error delivering %s", self._name)

    @abstractmethod
    async def _send(self, batch: list[T]) -> None:
        """Transmit one batch."""
