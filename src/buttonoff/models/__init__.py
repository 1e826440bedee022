"""Data models for buttonoff."""

from buttonoff.models.events import (
    Event,
    Message,
    MessagePayload,
    format_timestamp,
    normalize_hw_addr,
    utcnow,
)

__all__ = [
    "Event",
    "Message",
    "MessagePayload",
    "format_timestamp",
    "normalize_hw_addr",
    "utcnow",
]
