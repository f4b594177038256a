"""Input gating for caller-supplied messages, attributes and metrics.

Invalid input never raises: offending attributes are filtered out and
invalid messages or metric names cause the call to be dropped, each with a
logged warning.
"""

import logging
import math
import numbers
from collections.abc import Mapping
from typing import Any

from vigilant.core.errors import (
    INVALID_ATTRIBUTES_WARNING,
    INVALID_MESSAGE_WARNING,
    INVALID_METRIC_NAME_WARNING,
    INVALID_METRIC_VALUE_WARNING,
    INVALID_TAGS_WARNING,
)

logger = logging.getLogger(__name__)


def gate_message(message: Any) -> bool:
    """Return True if message is a string, otherwise warn and return False."""
    if isinstance(message, str):
        return True
    logger.warning(INVALID_MESSAGE_WARNING)
    return False


def _gate_mapping(values: Any, warning: str) -> dict[str, str]:
    if values is None:
        return {}
    if not isinstance(values, Mapping):
        logger.warning(warning)
        return {}

    gated: dict[str, str] = {}
    for key, value in values.items():
        if isinstance(key, str) and isinstance(value, str):
            gated[key] = value
        else:
            logger.warning("%s\nDropped item: %r=%r", warning, key, value)
    return gated


def gate_attributes(attributes: Any) -> dict[str, str]:
    """Return a copy of attributes containing only string keys and values.

    Args:
        attributes: Caller-supplied mapping, or None.

    Returns:
        A new dict. Non-string items are dropped with a warning; a
        non-mapping argument yields an empty dict.
    """
    return _gate_mapping(attributes, INVALID_ATTRIBUTES_WARNING)


def gate_tags(tags: Any) -> dict[str, str]:
    """Tag counterpart of gate_attributes."""
    return _gate_mapping(tags, INVALID_TAGS_WARNING)


def gate_metric_name(name: Any) -> bool:
    if isinstance(name, str) and name.strip():
        return True
    logger.warning(INVALID_METRIC_NAME_WARNING)
    return False


def gate_metric_value(value: Any) -> bool:
    if isinstance(value, numbers.Real) and not isinstance(value, bool):
        try:
            finite = math.isfinite(float(value))
        except (OverflowError, TypeError, ValueError):
            # ints beyond float range
            finite = False
        if finite:
            return True
    logger.warning(INVALID_METRIC_VALUE_WARNING)
    return False
