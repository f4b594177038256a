"""Console formatting for passthrough output."""

from vigilant.core.models import Alert, Log


def _format_attributes(attributes: dict[str, str]) -> str:
    return ", ".join(f"{key}={value}" for key, value in attributes.items())


def format_log(log: Log) -> str:
    """Format a log as ``[LEVEL] body k=v, k2=v2``."""
    line = f"[{log.level.value}] {log.body}"
    attributes = _format_attributes(log.attributes)
    if attributes:
        line += f" {attributes}"
    return line


def format_alert(alert: Alert) -> str:
    """Format an alert as ``[title] k=v, k2=v2``."""
    line = f"[{alert.title}]"
    attributes = _format_attributes(alert.attributes)
    if attributes:
        line += f" {attributes}"
    return line
