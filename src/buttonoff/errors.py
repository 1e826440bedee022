"""Exceptions raised by buttonoff components."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from buttonoff.models import Event


class ButtonoffError(Exception):
    """Base class for all buttonoff errors."""


class ConfigError(ButtonoffError, ValueError):
    """Invalid configuration detected at start-up."""


class RegistryError(ConfigError):
    def __init__(self, index: int, message: str) -> None:
        super().__init__(message)
        self.index = index


class CaptureError(ButtonoffError):
    """The capture socket could not be opened, activated or filtered."""


class DecodeError(ButtonoffError):
    """A filtered frame did not decode as a DHCP/BOOTP packet."""


class TopicRenderError(ButtonoffError):
    def __init__(self, event: Event, cause: Exception) -> None:
        super().__init__(f"could not format topic for event {event}: {cause}")
        self.event = event


class PublisherError(ButtonoffError):
    pass


class ConnectTimeoutError(PublisherError):
    pass


class ConnectError(PublisherError):
    pass


class DisconnectedError(PublisherError):
    pass


class PublishTimeoutError(PublisherError):
    pass


class PublishError(PublisherError):
    pass
