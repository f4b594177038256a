"""Log and alert helper functions for creating event objects."""

from collections.abc import Mapping
from typing import Any

from vigilant.core.models import Alert, Log, LogLevel
from vigilant.core.timestamps import current_time
from vigilant.core.validation import gate_attributes, gate_message


def log(
    level: LogLevel,
    message: Any,
    attributes: Mapping[str, str] | None = None,
) -> Log | None:
    """Create a log with automatic timestamp.

    Args:
        level: Log level.
        message: The log message.
        attributes: Additional string key/value pairs.

    Returns:
        Log with the current timestamp, or None if message is not a string.
        Non-string attribute items are dropped.
    """
    if not gate_message(message):
        return None
    return Log(
        timestamp=current_time(),
        body=message,
        level=level,
        attributes=gate_attributes(attributes),
    )


def info(message: Any, attributes: Mapping[str, str] | None = None) -> Log | None:
    """Create an INFO log with automatic timestamp."""
    return log(LogLevel.INFO, message, attributes)


def error(message: Any, attributes: Mapping[str, str] | None = None) -> Log | None:
    """Create an ERROR log with automatic timestamp."""
    return log(LogLevel.ERROR, message, attributes)


def debug(message: Any, attributes: Mapping[str, str] | None = None) -> Log | None:
    """Create a DEBUG log with automatic timestamp."""
    return log(LogLevel.DEBUG, message, attributes)


def warn(message: Any, attributes: Mapping[str, str] | None = None) -> Log | None:
    """Create a WARN log with automatic timestamp."""
    return log(LogLevel.WARN, message, attributes)


def trace(message: Any, attributes: Mapping[str, str] | None = None) -> Log | None:
    """Create a TRACE log with automatic timestamp."""
    return log(LogLevel.TRACE, message, attributes)


def alert(title: Any, attributes: Mapping[str, str] | None = None) -> Alert | None:
    """Create an alert with automatic timestamp.

    Alerts are de-duplicated on the title by the collector, so alerts that
    should be grouped must share a title.

    Returns:
        Alert with the current timestamp, or None if title is not a string.
    """
    if not gate_message(title):
        return None
    return Alert(
        timestamp=current_time(),
        title=title,
        attributes=gate_attributes(attributes),
    )
