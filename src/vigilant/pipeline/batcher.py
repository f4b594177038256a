"""Batcher for logs and alerts."""

from vigilant.core.encoding.payloads import encode_batch
from vigilant.core.models import Alert, Log
from vigilant.core.ports import TransportPort
from vigilant.pipeline.base import QueueFlusher

DEFAULT_BATCH_INTERVAL = 0.1
DEFAULT_MAX_BATCH_SIZE = 1000


class Batcher(QueueFlusher[Log | Alert]):
    """Buffers logs or alerts and posts them in batches.

    A batch is sent every batch_interval seconds, and immediately when the
    queue reaches max_batch_size. On shutdown the queue is drained in
    batches of at most max_batch_size.

    Example:
        ```python
        batcher = Batcher(transport, token, "logs", "logs")
        batcher.start()
        batcher.add(log)
        await batcher.shutdown()
        ```
    """

    def __init__(
        self,
        transport: TransportPort,
        token: str,
        type_: str,
        key: str,
        batch_interval: float = DEFAULT_BATCH_INTERVAL,
        max_batch_size: int = DEFAULT_MAX_BATCH_SIZE,
    ) -> None:
        super().__init__(
            name=key,
            interval=batch_interval,
            batch_size=max_batch_size,
            flush_threshold=max_batch_size,
        )
        self._transport = transport
        self._token = token
        self._type = type_
        self._key = key

    async def _send(self, batch: list[Log | Alert]) -> None:
        await self._transport.post(encode_batch(self._token, self._type, self._key, batch))


def create_log_batcher(
    transport: TransportPort,
    token: str,
    batch_interval: float = DEFAULT_BATCH_INTERVAL,
    max_batch_size: int = DEFAULT_MAX_BATCH_SIZE,
) -> Batcher:
    return Batcher(transport, token, "logs", "logs", batch_interval, max_batch_size)


def create_alert_batcher(
    transport: TransportPort,
    token: str,
    batch_interval: float = DEFAULT_BATCH_INTERVAL,
    max_batch_size: int = DEFAULT_MAX_BATCH_SIZE,
) -> Batcher:
    return Batcher(transport, token, "alerts", "alerts", batch_interval, max_batch_size)
