"""Tests for the MQTT publisher."""

from __future__ import annotations

import threading

import pytest
from paho.mqtt.packettypes import PacketTypes
from paho.mqtt.reasoncodes import ReasonCode

from buttonoff.config import MQTTConfig
from buttonoff.core.publisher import MQTTPublisher, parse_broker_addr
from buttonoff.errors import (
    ConfigError,
    ConnectError,
    ConnectTimeoutError,
    DisconnectedError,
    PublishError,
    PublishTimeoutError,
)
from buttonoff.models import Message

CONFIG = MQTTConfig(broker_addr="tcp://127.0.0.1:1883")


class FakeInfo:
    def __init__(self, published: bool = True, error: Exception | None = None):
        self.published = published
        self.error = error
        self.timeout: float | None = None

    def wait_for_publish(self, timeout: float | None = None) -> None:
        self.timeout = timeout
        if self.error is not None:
            raise self.error

    def is_published(self) -> bool:
        return self.published


class FakeClient:
    """Stands in for paho's Client; callbacks fire from loop_start()."""

    def __init__(self, connack: str | None = "Success", reachable: bool = True):
        self.connack = connack
        self.reachable = reachable
        self.connected = False
        self.loop_running = False
        self.published: list[tuple[str, bytes, int, bool]] = []
        self.next_info = FakeInfo()
        self.disconnects = 0
        self.on_connect = None
        self.on_connect_fail = None
        self.on_disconnect = None

    def connect_async(self, host: str, port: int) -> None:
        self.target = (host, port)

    def loop_start(self) -> None:
        self.loop_running = True
        if not self.reachable:
            self.on_connect_fail(self, None)
            return
        if self.connack is None:
            return
        reason = ReasonCode(PacketTypes.CONNACK, self.connack)
        self.connected = not reason.is_failure
        self.on_connect(self, None, None, reason, None)

    def loop_stop(self) -> None:
        self.loop_running = False

    def is_connected(self) -> bool:
        return self.connected

    def publish(self, topic, payload, qos=0, retain=False):
        self.published.append((topic, payload, qos, retain))
        return self.next_info

    def disconnect(self) -> None:
        self.disconnects += 1
        self.connected = False
        reason = ReasonCode(PacketTypes.DISCONNECT, "Normal disconnection")
        self.on_disconnect(self, None, None, reason, None)


def _connected() -> tuple[MQTTPublisher, FakeClient]:
    client = FakeClient()
    publisher = MQTTPublisher(CONFIG, client=client)
    publisher.connect()
    return publisher, client


@pytest.mark.parametrize(
    ("addr", "host", "port", "tls"),
    [
        ("tcp://127.0.0.1:1883", "127.0.0.1", 1883, False),
        ("mqtt://broker.local", "broker.local", 1883, False),
        ("ssl://broker.local", "broker.local", 8883, True),
        ("wss://broker.local/mqtt", "broker.local", 443, True),
    ],
)
def test_parse_broker_addr(addr, host, port, tls):
    broker = parse_broker_addr(addr)
    assert (broker.host, broker.port, broker.tls) == (host, port, tls)


@pytest.mark.parametrize(
    "addr", ["127.0.0.1:1883", "http://broker", "tcp://", "tcp://host:notaport"]
)
def test_parse_broker_addr_rejects_bad_addresses(addr):
    with pytest.raises(ConfigError):
        parse_broker_addr(addr)


def test_connect_succeeds():
    publisher, client = _connected()
    assert client.target == ("127.0.0.1", 1883)
    assert publisher.is_connected


def test_connect_refused_by_broker():
    client = FakeClient(connack="Not authorized")
    publisher = MQTTPublisher(CONFIG, client=client)

    with pytest.raises(ConnectError, match="Not authorized"):
        publisher.connect()
    assert not client.loop_running


def test_connect_unreachable_broker():
    client = FakeClient(reachable=False)
    publisher = MQTTPublisher(CONFIG, client=client)

    with pytest.raises(ConnectError):
        publisher.connect()


def test_connect_timeout():
    client = FakeClient(connack=None)
    publisher = MQTTPublisher(CONFIG, client=client, connect_timeout=0.01)

    with pytest.raises(ConnectTimeoutError):
        publisher.connect()
    assert not client.loop_running


def test_publish_uses_qos0_without_retain():
    publisher, client = _connected()

    publisher.publish(Message(topic="/buttonoff/foo/pressed", payload=b"{}"))

    assert client.published == [("/buttonoff/foo/pressed", b"{}", 0, False)]
    assert client.next_info.timeout == 5.0


def test_publish_fails_fast_when_disconnected():
    client = FakeClient()
    publisher = MQTTPublisher(CONFIG, client=client)

    with pytest.raises(DisconnectedError):
        publisher.publish(Message(topic="t", payload=b"x"))
    assert client.published == []


def test_publish_timeout():
    publisher, client = _connected()
    client.next_info = FakeInfo(published=False)

    with pytest.raises(PublishTimeoutError):
        publisher.publish(Message(topic="t", payload=b"x"))


def test_publish_error_is_logged_and_raised(caplog):
    publisher, client = _connected()
    client.next_info = FakeInfo(error=RuntimeError("Message publish failed"))
    caplog.set_level("ERROR")

    with pytest.raises(PublishError):
        publisher.publish(Message(topic="t", payload=b"x"))
    assert "Could not publish message to t" in caplog.text


def test_run_disconnects_when_stopped():
    publisher, client = _connected()
    stop = threading.Event()
    stop.set()

    publisher.run(stop)

    assert client.disconnects == 1
    assert not client.loop_running


def test_close_when_already_disconnected_is_not_an_error(caplog):
    client = FakeClient()
    publisher = MQTTPublisher(CONFIG, client=client)
    caplog.set_level("WARNING")

    publisher.close()
    publisher.close()

    assert client.disconnects == 0
    assert "already disconnected" in caplog.text
