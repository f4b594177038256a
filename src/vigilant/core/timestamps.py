"""Timestamp formatting and interval alignment helpers."""

import time
from datetime import datetime, timedelta, timezone

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def current_time() -> str:
    """Return the current UTC time as ISO-8601 with nanosecond precision.

    Example: ``2024-05-01T12:00:00.123456789Z``
    """
    now_ns = time.time_ns()
    seconds, nanos = divmod(now_ns, 1_000_000_000)
    base = datetime.fromtimestamp(seconds, tz=timezone.utc)
    return f"{base.strftime('%Y-%m-%dT%H:%M:%S')}.{nanos:09d}Z"


def to_millis(timestamp: float) -> int:
    """Convert a Unix timestamp in seconds to integer milliseconds."""
    return int(timestamp * 1000)


def interval_start_ms(time_ms: int, interval_ms: int) -> int:
    """Align a millisecond timestamp down to its interval boundary."""
    return (time_ms // interval_ms) * interval_ms


def iso_from_ms(time_ms: int) -> str:
    """Format milliseconds since the epoch as ``YYYY-MM-DDTHH:MM:SS.mmmZ``."""
    moment = _EPOCH + timedelta(milliseconds=time_ms)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")
