from __future__ import annotations

import json
import logging
import string
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)


def normalize_hw_addr(value: str) -> str:
    """Return the lowercase colon separated form of a MAC address."""
    value = value.strip()
    if not value:
        return ""
    cleaned = value.replace(":", "").replace("-", "").replace(".", "")
    if len(cleaned) == 12 and all(ch in string.hexdigits for ch in cleaned):
        pairs = [cleaned[i : i + 2] for i in range(0, 12, 2)]
        return ":".join(pair.lower() for pair in pairs)
    return value.lower()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(ts: datetime) -> str:
    """Format ``ts`` as RFC 3339 in UTC with nine fractional digits."""
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    ts = ts.astimezone(timezone.utc)
    return f"{ts:%Y-%m-%dT%H:%M:%S}.{ts.microsecond * 1000:09d}Z"


class Event(BaseModel):
    model_config = {"frozen": True, "extra": "forbid"}

    hw_addr: str
    timestamp: datetime = Field(default_factory=utcnow)

    @field_validator("hw_addr")
    @classmethod
    def _normalize_hw_addr(cls, value: str) -> str:
        return normalize_hw_addr(value)


class Message(BaseModel):
    model_config = {"frozen": True, "extra": "forbid"}

    topic: str
    payload: bytes


class MessagePayload(BaseModel):
    model_config = {"frozen": True, "extra": "forbid"}

    button_id: str
    timestamp: str

    @classmethod
    def for_event(cls, button_id: str, event: Event) -> MessagePayload:
        return cls(button_id=button_id, timestamp=format_timestamp(event.timestamp))

    def to_json_bytes(self, dumps: Callable[[Any], str] = json.dumps) -> bytes:
        """Encode as a JSON object, or the raw button id if encoding fails."""
        try:
            return dumps(self.model_dump()).encode("utf-8")
        except (TypeError, ValueError) as exc:
            logger.error("Could not encode message payload %r: %s", self, exc)
            logger.debug("Falling back to button id as payload: %r", self.button_id)
            return self.button_id.encode("utf-8")
