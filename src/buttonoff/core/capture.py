from __future__ import annotations

import logging
import socket
import threading
from collections.abc import Callable
from typing import Any

from scapy.config import conf
from scapy.error import Scapy_Exception
from scapy.layers.dhcp import BOOTP
from scapy.packet import Packet
from scapy.sendrecv import sniff

from buttonoff.errors import ButtonoffError, CaptureError, DecodeError
from buttonoff.models import Event, utcnow

from .handler import EventHandler

logger = logging.getLogger(__name__)

BOOTP_FILTER = "udp and (port 67 or port 68)"
SNIFF_TIMEOUT = 1

SocketFactory = Callable[[str, str], Any]


def open_capture_socket(interface: str, bpf: str) -> Any:
    return conf.L2listen(iface=interface, promisc=True, filter=bpf)


def interface_names() -> list[str]:
    return [name for _, name in socket.if_nameindex()]


def check_interface(interface: str, log: logging.Logger = logger) -> bool:
    """Log whether ``interface`` is among the host's network devices."""
    try:
        names = interface_names()
    except OSError as exc:
        raise CaptureError(f"enumeration of network devices failed: {exc}") from exc

    if interface in names:
        log.debug("Found device in enumerated network interfaces: %s", interface)
        return True
    log.warning(
        "Interface %s not found among network devices (%s)",
        interface,
        ", ".join(names) or "none",
    )
    return False


def decode_hw_addr(packet: Packet) -> str:
    """Return the client hardware address carried by a BOOTP/DHCP frame."""
    bootp = packet.getlayer(BOOTP)
    if bootp is None:
        raise DecodeError("filtered packet received but not decode-able as BOOTP")

    hlen = int(bootp.hlen or 0)
    chaddr = bytes(bootp.chaddr or b"")
    if not 0 < hlen <= 16 or len(chaddr) < hlen:
        raise DecodeError(f"invalid client hardware address (hlen={hlen})")
    return ":".join(f"{byte:02x}" for byte in chaddr[:hlen])


class PcapListener:
    """Captures DHCP broadcasts and feeds button events to ``handler``.

    The handler runs synchronously inside the capture loop, so a slow publish
    delays reading of the next frame.
    """

    def __init__(
        self,
        interface: str,
        handler: EventHandler,
        logger: logging.Logger | None = None,
        socket_factory: SocketFactory = open_capture_socket,
    ) -> None:
        self._log = logger or logging.getLogger(__name__)
        self._interface = interface
        self._handler = handler

        check_interface(interface, self._log)
        try:
            self._socket = socket_factory(interface, BOOTP_FILTER)
        except (Scapy_Exception, OSError) as exc:
            self._log.error("Could not open capture on %s: %s", interface, exc)
            raise CaptureError(
                f"could not open capture on {interface}: {exc}"
            ) from exc
        self._closed = False
        self._log.info("Listening on %s with filter %r", interface, BOOTP_FILTER)

    @property
    def interface(self) -> str:
        return self._interface

    def process_packet(self, packet: Packet) -> None:
        try:
            hw_addr = decode_hw_addr(packet)
        except DecodeError as exc:
            self._log.warning("Dropping frame: %s", exc)
            return

        event = Event(hw_addr=hw_addr, timestamp=utcnow())
        self._log.debug("Submitting event %s", event)
        try:
            self._handler.handle_event(event)
        except ButtonoffError as exc:
            self._log.error("Could not handle event from %s: %s", hw_addr, exc)

    def run(self, stop: threading.Event) -> None:
        self._log.debug("Running capture processor")
        try:
            # timed sniff so a stop request is seen even when no frames arrive
            while not stop.is_set():
                sniff(
                    opened_socket=self._socket,
                    prn=self.process_packet,
                    store=False,
                    timeout=SNIFF_TIMEOUT,
                    stop_filter=lambda _packet: stop.is_set(),
                )
        finally:
            self.close()

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._log.debug("Closing capture socket")
        self._socket.close()
