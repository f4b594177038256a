"""Port interfaces for pipeline collaborators.

These protocols define the contracts that adapters must implement.
The pipeline depends only on these interfaces, not concrete implementations.
"""

from collections.abc import Callable
from typing import Any, Protocol, runtime_checkable

from vigilant.core.models import AggregatedMetrics, LogLevel

LogFn = Callable[[LogLevel, str], None]
PassthroughFn = Callable[[str], None]


@runtime_checkable
class TransportPort(Protocol):
    """Port for delivering one JSON payload to the collector.

    Examples: HttpTransport, or a recording fake in tests.
    """

    async def post(self, payload: dict[str, Any]) -> None:
        """Send a payload.

        Raises:
            InvalidTokenError: If the collector rejected the token.
            ServerError: On any other failed delivery.
        """
        ...

    async def aclose(self) -> None:
        """Release network resources."""
        ...


@runtime_checkable
class AttributeAppender(Protocol):
    """Port for one step of attribute enrichment."""

    def append(self, attributes: dict[str, str]) -> None:
        """Modify attributes in place."""
        ...


@runtime_checkable
class MetricsSenderPort(Protocol):
    """Port the metrics collector hands finalized buckets to."""

    def add(self, metrics: AggregatedMetrics) -> None: ...

    def start(self) -> None: ...

    async def shutdown(self) -> None: ...


@runtime_checkable
class OutputProvider(Protocol):
    """Port for capturing process output and writing passthrough lines.

    Examples: NullProvider, StdStreamProvider.
    """

    def enable(self, log_fn: LogFn) -> None:
        """Start routing captured output to log_fn."""
        ...

    def disable(self) -> None:
        """Stop capturing and restore the original output."""
        ...

    def passthrough_writer(self, level: LogLevel) -> PassthroughFn:
        """Return the writer used to echo an event of the given level."""
        ...
