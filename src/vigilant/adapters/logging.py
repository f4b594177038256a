"""Python logging handler adapter for vigilant.

This adapter bridges Python's standard library logging module to a Vigilant
agent, so existing ``logger.info(...)`` calls are shipped as logs.
"""

import logging
import traceback
from typing import TYPE_CHECKING

from vigilant.core.errors import NotInitializedError
from vigilant.core.models import LogLevel

if TYPE_CHECKING:
    from vigilant.agent import Vigilant

# Standard LogRecord attributes that should not be treated as extra fields
_STANDARD_LOGRECORD_ATTRS = frozenset(
    {
        "args",
        "asctime",
        "created",
        "exc_info",
        "exc_text",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "message",
        "module",
        "msecs",
        "msg",
        "name",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "taskName",
        "thread",
        "threadName",
    }
)

# Records from the package itself would loop back into the pipeline
_INTERNAL_LOGGER = "vigilant"


def level_for(levelno: int) -> LogLevel:
    """Map a stdlib logging level number to a Vigilant log level."""
    if levelno >= logging.ERROR:
        return LogLevel.ERROR
    if levelno >= logging.WARNING:
        return LogLevel.WARN
    if levelno >= logging.INFO:
        return LogLevel.INFO
    if levelno >= logging.DEBUG:
        return LogLevel.DEBUG
    return LogLevel.TRACE


class VigilantHandler(logging.Handler):
    """Logging handler that forwards log records to a Vigilant agent.

    Example:
        ```python
        import logging
        import vigilant
        from vigilant.adapters.logging import VigilantHandler

        vigilant.init(vigilant.Config(name="backend", token="tk"))
        logging.getLogger().addHandler(VigilantHandler())
        ```
    """

    def __init__(self, agent: "Vigilant | None" = None, level: int = logging.NOTSET) -> None:
        """Initialize the handler.

        Args:
            agent: Agent to forward to. Defaults to the process-wide agent,
                looked up on every record; records are dropped while none
                is initialized.
            level: Minimum record level handled.
        """
        super().__init__(level)
        self._agent = agent

    def _target(self) -> "Vigilant | None":
        if self._agent is not None:
            return self._agent
        from vigilant.agent import get_instance

        try:
            return get_instance()
        except NotInitializedError:
            return None

    def emit(self, record: logging.LogRecord) -> None:
        """Forward a log record to the agent.

        Args:
            record: The log record to emit.
        """
        if record.name == _INTERNAL_LOGGER or record.name.startswith(_INTERNAL_LOGGER + "."):
            return
        agent = self._target()
        if agent is None:
            return
        try:
            agent.log(level_for(record.levelno), record.getMessage(), self._attributes(record))
        except Exception:
            self.handleError(record)

    def _attributes(self, record: logging.LogRecord) -> dict[str, str]:
        attributes = {"logger": record.name}

        # Only string extras; everything else is dropped by validation anyway
        for key, value in record.__dict__.items():
            if key not in _STANDARD_LOGRECORD_ATTRS and isinstance(value, str):
                attributes[key] = value

        if record.exc_info:
            exc_type, exc_value, exc_tb = record.exc_info
            if exc_type is not None:
                attributes["exc_type"] = exc_type.__name__
            if exc_value is not None:
                attributes["exc_message"] = str(exc_value)
            if exc_tb is not None:
                attributes["exc_traceback"] = "".join(
                    traceback.format_exception(exc_type, exc_value, exc_tb)
                )
        return attributes
