"""The Vigilant agent and the process-wide lifecycle functions.

``init()`` returns an explicit handle that can be passed around; the
module-level emit functions delegate to the handle created by the last
``init()`` call and raise NotInitializedError before it.

Example:
    ```python
    import vigilant

    agent = vigilant.init(vigilant.Config(name="backend", token="tk"))
    vigilant.log_info("server started", {"port": "8080"})
    agent.metric_counter("requests_total", 1, {"route": "/"})
    vigilant.shutdown()
    ```
"""

import asyncio
import logging
import threading
import time
from collections.abc import Callable, Mapping
from typing import Any

from vigilant.adapters.autocapture import create_output_provider
from vigilant.adapters.transport import HttpTransport
from vigilant.attributes.provider import create_attribute_provider
from vigilant.core import logs, metrics
from vigilant.core.config import Config, gate_config
from vigilant.core.errors import NotInitializedError
from vigilant.core.models import Alert, Log, LogLevel, MetricEvent
from vigilant.core.passthrough import format_alert, format_log
from vigilant.core.ports import OutputProvider, TransportPort
from vigilant.pipeline.batcher import create_alert_batcher, create_log_batcher
from vigilant.pipeline.collector import MetricsCollector
from vigilant.pipeline.sender import MetricsSender
from vigilant.runtime import EventLoopThread, ShutdownHooks

logger = logging.getLogger(__name__)


class Vigilant:
    """Sends logs, alerts and metrics to Vigilant.

    Owns a background event loop running a logs batcher, an alerts batcher
    and a metrics collector. Emit methods are synchronous and thread-safe:
    attributes are enriched in the caller's context (so ambient attributes
    apply) and the event is then handed to the loop.

    An event emitted by one thread while another thread is shutting the
    agent down can reach the loop after the final flush. It is dropped and
    logged at debug level.

    Args:
        config: Validated agent configuration.
        transport: Delivery adapter; defaults to HttpTransport(config.url).
        output_provider: Passthrough/autocapture provider; chosen from
            config.autocapture when omitted.
        clock: Time source for metrics buckets, in Unix seconds.
    """

    def __init__(
        self,
        config: Config,
        transport: TransportPort | None = None,
        output_provider: OutputProvider | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._config = config
        self._transport = transport or HttpTransport(config.url)
        self._runner = EventLoopThread()
        self._logs = create_log_batcher(
            self._transport, config.token, config.batch_interval, config.max_batch_size
        )
        self._alerts = create_alert_batcher(
            self._transport, config.token, config.batch_interval, config.max_batch_size
        )
        self._collector = MetricsCollector(
            MetricsSender(self._transport, config.token, config.sender_interval),
            interval=config.metrics_interval,
            process_interval=config.metrics_process_interval,
            clock=clock,
        )
        self._attributes = create_attribute_provider(config.name, config.attributes)
        self._output = output_provider or create_output_provider(config.autocapture)
        self._lock = threading.Lock()
        self._started = False
        self._closing = False
        self._stopped = False
        self._drained = False

    @property
    def config(self) -> Config:
        return self._config

    @property
    def running(self) -> bool:
        return self._started and not self._stopped

    def start(self) -> None:
        """Start the event loop thread, the pipeline and autocapture."""
        with self._lock:
            if self._started:
                return
            self._started = True
        self._runner.start()
        self._runner.run(self._start_pipeline())
        self._output.enable(self._capture)

    def shutdown(self, timeout: float | None = None) -> None:
        """Flush everything queued and stop. Later calls do nothing.

        Args:
            timeout: Seconds to wait for the final flush; None waits until
                every pending send has completed or failed.
        """
        with self._lock:
            if not self._started or self._closing:
                return
            self._closing = True
        # partial lines flushed by disable() are still queued
        self._output.disable()
        self._stopped = True
        try:
            self._runner.run(self._shutdown_pipeline(), timeout)
        finally:
            self._runner.stop()

    async def _start_pipeline(self) -> None:
        self._logs.start()
        self._alerts.start()
        self._collector.start()

    async def _shutdown_pipeline(self) -> None:
        await asyncio.gather(
            self._logs.shutdown(),
            self._alerts.shutdown(),
            self._collector.shutdown(),
        )
        self._drained = True
        await self._transport.aclose()

    # --- Emitters ---

    def log(
        self,
        level: LogLevel,
        message: str,
        attributes: Mapping[str, str] | None = None,
    ) -> None:
        entry = logs.log(level, message, attributes)
        if entry is not None:
            self.send_log(entry)

    def log_info(self, message: str, attributes: Mapping[str, str] | None = None) -> None:
        self.log(LogLevel.INFO, message, attributes)

    def log_debug(self, message: str, attributes: Mapping[str, str] | None = None) -> None:
        self.log(LogLevel.DEBUG, message, attributes)

    def log_warn(self, message: str, attributes: Mapping[str, str] | None = None) -> None:
        self.log(LogLevel.WARN, message, attributes)

    def log_error(self, message: str, attributes: Mapping[str, str] | None = None) -> None:
        self.log(LogLevel.ERROR, message, attributes)

    def log_trace(self, message: str, attributes: Mapping[str, str] | None = None) -> None:
        self.log(LogLevel.TRACE, message, attributes)

    def create_alert(self, title: str, attributes: Mapping[str, str] | None = None) -> None:
        alert = logs.alert(title, attributes)
        if alert is not None:
            self.send_alert(alert)

    def metric_counter(
        self, name: str, value: float, tags: Mapping[str, str] | None = None
    ) -> None:
        event = metrics.counter(name, value, tags)
        if event is not None:
            self._send_metric(self._collector.add_counter, event)

    def metric_gauge(
        self, name: str, value: float, tags: Mapping[str, str] | None = None
    ) -> None:
        event = metrics.gauge(name, value, tags)
        if event is not None:
            self._send_metric(self._collector.add_gauge, event)

    def metric_histogram(
        self, name: str, value: float, tags: Mapping[str, str] | None = None
    ) -> None:
        event = metrics.histogram(name, value, tags)
        if event is not None:
            self._send_metric(self._collector.add_histogram, event)

    def send_log(self, log: Log) -> None:
        """Enrich, echo (if passthrough) and queue a log."""
        self._attributes.update(log.attributes)
        if self._config.passthrough:
            self._output.passthrough_writer(log.level)(format_log(log))
        if self._config.noop:
            return
        self._dispatch(self._logs.add, log)

    def send_alert(self, alert: Alert) -> None:
        """Enrich, echo (if passthrough) and queue an alert."""
        self._attributes.update(alert.attributes)
        if self._config.passthrough:
            self._output.passthrough_writer(LogLevel.WARN)(format_alert(alert))
        if self._config.noop:
            return
        self._dispatch(self._alerts.add, alert)

    def _send_metric(
        self, add: Callable[[MetricEvent], None], event: MetricEvent
    ) -> None:
        if self._config.noop:
            return
        self._dispatch(add, event)

    def _capture(self, level: LogLevel, line: str) -> None:
        self.log(level, line)

    def _dispatch(self, add: Callable[[Any], None], item: Any) -> None:
        if not self.running:
            logger.debug("Agent is not running; dropping %s", type(item).__name__)
            return
        try:
            self._runner.call_soon(self._enqueue, add, item)
        except RuntimeError:
            # the loop closed between the running check and the call
            logger.debug("Agent loop is closed; dropping %s", type(item).__name__)

    def _enqueue(self, add: Callable[[Any], None], item: Any) -> None:
        # runs on the loop; the queues are not drained again after shutdown
        if self._drained:
            logger.debug("Agent already flushed; dropping %s", type(item).__name__)
            return
        add(item)


# --- Process-wide instance ---

_instance: Vigilant | None = None
_hooks: ShutdownHooks | None = None
_lifecycle_lock = threading.Lock()


def init(config: Config, transport: TransportPort | None = None) -> Vigilant:
    """Create, start and register the process-wide agent.

    Shutdown hooks for interpreter exit, SIGINT and SIGTERM are registered
    and removed again once shutdown completes.

    Raises:
        ConfigError: If the configuration is invalid.
    """
    global _instance, _hooks
    gate_config(config)
    agent = Vigilant(config, transport=transport)
    agent.start()

    hooks = ShutdownHooks(_shutdown_hook)
    with _lifecycle_lock:
        if _instance is not None:
            logger.warning(
                "init() called while an agent is active; the previous agent is "
                "no longer reachable and will not be flushed."
            )
        previous_hooks = _hooks
        _instance, _hooks = agent, hooks
    if previous_hooks is not None:
        previous_hooks.uninstall()
    hooks.install()
    return agent


def _teardown() -> bool:
    global _instance, _hooks
    with _lifecycle_lock:
        agent, hooks = _instance, _hooks
        _instance, _hooks = None, None
    if agent is None:
        return False
    try:
        agent.shutdown()
    finally:
        if hooks is not None:
            hooks.uninstall()
    return True


def _shutdown_hook() -> None:
    _teardown()


def shutdown() -> None:
    """Flush and stop the process-wide agent.

    Raises:
        NotInitializedError: If no agent is active.
    """
    if not _teardown():
        raise NotInitializedError()


def get_instance() -> Vigilant:
    """Return the process-wide agent.

    Raises:
        NotInitializedError: If init() has not been called.
    """
    agent = _instance
    if agent is None:
        raise NotInitializedError()
    return agent


def log_info(message: str, attributes: Mapping[str, str] | None = None) -> None:
    """Log an info message.

    Example:
        log_info("Hello, world!", {"user": "John Doe"})
    """
    get_instance().log_info(message, attributes)


def log_debug(message: str, attributes: Mapping[str, str] | None = None) -> None:
    """Log a debug message."""
    get_instance().log_debug(message, attributes)


def log_warn(message: str, attributes: Mapping[str, str] | None = None) -> None:
    """Log a warning message."""
    get_instance().log_warn(message, attributes)


def log_error(message: str, attributes: Mapping[str, str] | None = None) -> None:
    """Log an error message."""
    get_instance().log_error(message, attributes)


def log_trace(message: str, attributes: Mapping[str, str] | None = None) -> None:
    """Log a trace message."""
    get_instance().log_trace(message, attributes)


def create_alert(title: str, attributes: Mapping[str, str] | None = None) -> None:
    """Create an alert, notifying through the project's enabled alert methods.

    Alerts are de-duplicated on the title.

    Example:
        create_alert("db query failed", {"db.query": "SELECT * FROM users"})
    """
    get_instance().create_alert(title, attributes)


def metric_counter(name: str, value: float, tags: Mapping[str, str] | None = None) -> None:
    """Add value to a counter; counters are summed per interval."""
    get_instance().metric_counter(name, value, tags)


def metric_gauge(name: str, value: float, tags: Mapping[str, str] | None = None) -> None:
    """Set a gauge; the last value in an interval is reported."""
    get_instance().metric_gauge(name, value, tags)


def metric_histogram(name: str, value: float, tags: Mapping[str, str] | None = None) -> None:
    """Record one histogram observation."""
    get_instance().metric_histogram(name, value, tags)
