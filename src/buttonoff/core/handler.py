from __future__ import annotations

import logging
import string
from collections.abc import Iterable
from typing import Protocol

from buttonoff.config import ButtonConfig, GeneralConfig
from buttonoff.errors import ConfigError, TopicRenderError
from buttonoff.models import Event, Message, MessagePayload

from .limiter import Accepter, PressRateLimiter
from .registry import ButtonRegistry

TOPIC_FIELD = "ButtonID"


class Publisher(Protocol):
    def publish(self, message: Message) -> None: ...

    def close(self) -> None: ...


class EventHandler(Protocol):
    def handle_event(self, event: Event) -> None: ...


def check_topic_template(template: str) -> str:
    """Reject templates that are malformed or use unknown fields."""
    try:
        fields = [name for _, name, _, _ in string.Formatter().parse(template)]
    except ValueError as exc:
        raise ConfigError(f"invalid topic_template {template!r}: {exc}") from exc

    for name in fields:
        if name is not None and name != TOPIC_FIELD:
            raise ConfigError(
                f"invalid topic_template {template!r}: "
                f"only {{{TOPIC_FIELD}}} may be substituted, got {{{name}}}"
            )
    return template


def render_topic(template: str, button_id: str) -> str:
    return template.format_map({TOPIC_FIELD: button_id})


class ButtonEventHandler:
    """Turns captured button events into published MQTT messages."""

    def __init__(
        self,
        general: GeneralConfig,
        buttons: Iterable[ButtonConfig],
        publisher: Publisher,
        limiter: Accepter | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._log = logger or logging.getLogger(__name__)
        self._topic_template = check_topic_template(general.topic_template)
        self._only_known = general.drop_unconfigured
        self._registry = ButtonRegistry(buttons, logger=self._log)
        if limiter is None:
            limiter = PressRateLimiter(general.debounce_period)
        self._limiter = limiter
        self._publisher = publisher

    @property
    def registry(self) -> ButtonRegistry:
        return self._registry

    def handle_event(self, event: Event) -> None:
        if not self.should_accept(event):
            self._log.debug("Dropping unacceptable event: %s", event)
            return
        self.publish(event)

    def should_accept(self, event: Event) -> bool:
        if self._only_known and not self._registry.is_configured(event.hw_addr):
            self._log.debug("Ignoring unconfigured button %s", event.hw_addr)
            return False
        return self._limiter.accept(event.hw_addr)

    def build_message(self, event: Event) -> Message:
        button_id = self._registry.resolve(event.hw_addr)
        payload = MessagePayload.for_event(button_id, event)

        try:
            topic = render_topic(self._topic_template, button_id)
        except (KeyError, IndexError, ValueError) as exc:
            raise TopicRenderError(event, exc) from exc

        return Message(topic=topic, payload=payload.to_json_bytes())

    def publish(self, event: Event) -> None:
        message = self.build_message(event)
        self._log.info(
            "Button %s pressed, publishing to %s", event.hw_addr, message.topic
        )
        self._publisher.publish(message)
