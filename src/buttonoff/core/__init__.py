from __future__ import annotations

from .capture import BOOTP_FILTER, PcapListener, check_interface, decode_hw_addr
from .handler import (
    ButtonEventHandler,
    EventHandler,
    Publisher,
    check_topic_template,
    render_topic,
)
from .limiter import Accepter, PressRateLimiter, TokenBucket
from .publisher import MQTTPublisher, parse_broker_addr
from .registry import ButtonRegistry, RegistryEntry
from .runner import install_signal_handlers, run_all

__all__ = [
    "BOOTP_FILTER",
    "Accepter",
    "ButtonEventHandler",
    "ButtonRegistry",
    "EventHandler",
    "MQTTPublisher",
    "PcapListener",
    "PressRateLimiter",
    "Publisher",
    "RegistryEntry",
    "TokenBucket",
    "check_interface",
    "check_topic_template",
    "decode_hw_addr",
    "install_signal_handlers",
    "parse_broker_addr",
    "render_topic",
    "run_all",
]
