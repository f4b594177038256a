"""Sender for pre-aggregated metrics payloads."""

from vigilant.core.encoding.payloads import encode_metrics
from vigilant.core.models import AggregatedMetrics
from vigilant.core.ports import TransportPort
from vigilant.pipeline.base import QueueFlusher

DEFAULT_SENDER_INTERVAL = 1.0


class MetricsSender(QueueFlusher[AggregatedMetrics]):
    """Posts each finalized metrics bucket as its own payload.

    add() attempts delivery immediately; the loop picks up anything left
    and shutdown drains the queue completely.
    """

    def __init__(
        self,
        transport: TransportPort,
        token: str,
        interval: float = DEFAULT_SENDER_INTERVAL,
    ) -> None:
        super().__init__(name="metrics", interval=interval, batch_size=1, flush_threshold=1)
        self._transport = transport
        self._token = token

    async def _send(self, batch: list[AggregatedMetrics]) -> None:
        for metrics in batch:
            await self._transport.post(encode_metrics(self._token, metrics))
