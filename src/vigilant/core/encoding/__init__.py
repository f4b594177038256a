"""Payload encoders for the collector wire format."""

from vigilant.core.encoding.payloads import (
    encode_alert,
    encode_batch,
    encode_log,
    encode_metrics,
)

__all__ = ["encode_alert", "encode_batch", "encode_log", "encode_metrics"]
