"""buttonoff - turn network button presses into debounced MQTT events."""

from __future__ import annotations

from importlib.metadata import version

from .config import ButtonConfig, Settings, get_settings
from .core import ButtonEventHandler, MQTTPublisher, PcapListener, PressRateLimiter
from .models import Event, Message, MessagePayload

__all__ = [
    "ButtonConfig",
    "ButtonEventHandler",
    "Event",
    "MQTTPublisher",
    "Message",
    "MessagePayload",
    "PcapListener",
    "PressRateLimiter",
    "Settings",
    "__version__",
    "get_settings",
]

__version__ = version("buttonoff")
