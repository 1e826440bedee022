from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Any
from urllib.parse import urlparse

import paho.mqtt.client as mqtt
from paho.mqtt.enums import CallbackAPIVersion

from buttonoff.config import MQTTConfig
from buttonoff.errors import (
    ConfigError,
    ConnectError,
    ConnectTimeoutError,
    DisconnectedError,
    PublishError,
    PublishTimeoutError,
)
from buttonoff.models import Message

CLIENT_ID = "buttonoff"
PUBLISH_TIMEOUT = 5.0
CONNECT_TIMEOUT = 30.0
MIN_RECONNECT_DELAY = 1
MAX_RECONNECT_DELAY = 300
DISCONNECT_GRACE = 0.150

_SCHEMES: dict[str, tuple[str, int, bool]] = {
    # scheme: (transport, default port, tls)
    "tcp": ("tcp", 1883, False),
    "mqtt": ("tcp", 1883, False),
    "ssl": ("tcp", 8883, True),
    "tls": ("tcp", 8883, True),
    "mqtts": ("tcp", 8883, True),
    "ws": ("websockets", 80, False),
    "wss": ("websockets", 443, True),
}


@dataclass(frozen=True)
class BrokerAddress:
    host: str
    port: int
    transport: str = "tcp"
    tls: bool = False
    path: str = ""


def parse_broker_addr(value: str) -> BrokerAddress:
    """Parse a broker URI such as ``tcp://127.0.0.1:1883``."""
    hint = "broker_addr must be in the form tcp://127.0.0.1:1883"
    parsed = urlparse(value)
    scheme = parsed.scheme.lower()
    if scheme not in _SCHEMES:
        raise ConfigError(f"unsupported broker scheme in {value!r}; {hint}")
    try:
        port = parsed.port
    except ValueError as exc:
        raise ConfigError(f"invalid broker port in {value!r}; {hint}") from exc
    if not parsed.hostname:
        raise ConfigError(f"missing broker host in {value!r}; {hint}")

    transport, default_port, tls = _SCHEMES[scheme]
    return BrokerAddress(
        host=parsed.hostname,
        port=port or default_port,
        transport=transport,
        tls=tls,
        path=parsed.path,
    )


def create_client(config: MQTTConfig, broker: BrokerAddress) -> mqtt.Client:
    client = mqtt.Client(
        callback_api_version=CallbackAPIVersion.VERSION2,
        client_id=CLIENT_ID,
        transport=broker.transport,
    )
    if config.username:
        client.username_pw_set(config.username, config.password or None)
    if broker.tls:
        client.tls_set()
    if broker.transport == "websockets" and broker.path:
        client.ws_set_options(path=broker.path)
    client.reconnect_delay_set(
        min_delay=MIN_RECONNECT_DELAY, max_delay=MAX_RECONNECT_DELAY
    )
    return client


class MQTTPublisher:
    """Owns the broker connection and publishes button messages.

    The paho network loop runs in its own thread and reconnects on its own;
    :meth:`publish` never queues, it fails fast while disconnected.
    """

    def __init__(
        self,
        config: MQTTConfig,
        logger: logging.Logger | None = None,
        client: Any | None = None,
        connect_timeout: float = CONNECT_TIMEOUT,
        publish_timeout: float = PUBLISH_TIMEOUT,
        disconnect_grace: float = DISCONNECT_GRACE,
    ) -> None:
        self._log = logger or logging.getLogger(__name__)
        self._broker = parse_broker_addr(config.broker_addr)
        self._client = (
            client if client is not None else create_client(config, self._broker)
        )
        self._connect_timeout = connect_timeout
        self._publish_timeout = publish_timeout
        self._disconnect_grace = disconnect_grace

        self._connect_done = threading.Event()
        self._connect_error: str | None = None
        self._disconnected = threading.Event()
        self._closed = False

        self._client.on_connect = self._on_connect
        self._client.on_connect_fail = self._on_connect_fail
        self._client.on_disconnect = self._on_disconnect

    @property
    def is_connected(self) -> bool:
        return bool(self._client.is_connected())

    def _on_connect(
        self, _client, _userdata, _flags, reason_code, _properties
    ) -> None:
        if reason_code.is_failure:
            self._log.error("Broker refused connection: %s", reason_code)
            if not self._connect_done.is_set():
                self._connect_error = str(reason_code)
                self._connect_done.set()
            return
        self._log.info(
            "Connected to MQTT broker at %s:%d", self._broker.host, self._broker.port
        )
        self._disconnected.clear()
        self._connect_done.set()

    def _on_connect_fail(self, _client, _userdata) -> None:
        self._log.warning(
            "Could not reach MQTT broker at %s:%d", self._broker.host, self._broker.port
        )
        if not self._connect_done.is_set():
            self._connect_error = (
                f"could not connect to {self._broker.host}:{self._broker.port}"
            )
            self._connect_done.set()

    def _on_disconnect(
        self, _client, _userdata, _flags, reason_code, _properties
    ) -> None:
        if reason_code.is_failure:
            self._log.warning("Disconnected from MQTT broker: %s", reason_code)
        else:
            self._log.debug("Disconnected from MQTT broker")
        self._disconnected.set()

    def connect(self) -> None:
        self._log.debug(
            "Connecting to MQTT broker at %s:%d", self._broker.host, self._broker.port
        )
        self._client.connect_async(self._broker.host, self._broker.port)
        self._client.loop_start()

        if not self._connect_done.wait(self._connect_timeout):
            self._client.loop_stop()
            raise ConnectTimeoutError(
                f"MQTT connect timeout after {self._connect_timeout}s"
            )
        if self._connect_error is not None:
            self._client.loop_stop()
            raise ConnectError(self._connect_error)

    def publish(self, message: Message) -> None:
        if not self._client.is_connected():
            raise DisconnectedError("Disconnected from MQTT broker")

        info = self._client.publish(
            message.topic, message.payload, qos=0, retain=False
        )
        try:
            info.wait_for_publish(timeout=self._publish_timeout)
        except (ValueError, RuntimeError) as exc:
            self._log.error("Could not publish message to %s: %s", message.topic, exc)
            raise PublishError(
                f"could not publish message to {message.topic}: {exc}"
            ) from exc

        if not info.is_published():
            raise PublishTimeoutError(
                f"MQTT publish timeout after {self._publish_timeout}s"
            )
        self._log.debug("Published message to %s", message.topic)

    def run(self, stop: threading.Event) -> None:
        stop.wait()
        self._log.info("Shutting down")
        self.close()

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True

        if self._client.is_connected():
            self._log.debug("Disconnecting broker connection")
            self._client.disconnect()
            self._disconnected.wait(self._disconnect_grace)
            self._log.debug("Disconnect request completed")
        else:
            self._log.warning("Cannot disconnect, already disconnected")
        self._client.loop_stop()
