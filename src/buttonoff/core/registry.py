from __future__ import annotations

import logging
import threading
from collections.abc import Iterable
from dataclasses import dataclass

from buttonoff.config import ButtonConfig
from buttonoff.errors import RegistryError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RegistryEntry:
    button_id: str
    hw_addr: str
    configured: bool = True


def build_entries(
    buttons: Iterable[ButtonConfig], log: logging.Logger = logger
) -> dict[str, RegistryEntry]:
    entries: dict[str, RegistryEntry] = {}
    for index, button in enumerate(buttons):
        hw_addr = button.hw_addr
        if not hw_addr:
            raise RegistryError(
                index,
                f"config for button {index} is missing hw_addr, add it to continue",
            )

        button_id = button.button_id
        if not button_id:
            button_id = hw_addr
            log.debug(
                "No button_id provided for button %d (%s), using %s",
                index,
                hw_addr,
                button_id,
            )

        entries[hw_addr] = RegistryEntry(button_id=button_id, hw_addr=hw_addr)
    return entries


class ButtonRegistry:
    """Maps hardware addresses to logical button ids.

    Built from the configured buttons; addresses seen at runtime but absent
    from the configuration are registered under their own address.
    """

    def __init__(
        self, buttons: Iterable[ButtonConfig], logger: logging.Logger | None = None
    ) -> None:
        self._log = logger or logging.getLogger(__name__)
        self._lock = threading.Lock()
        self._entries = build_entries(buttons, self._log)

    def resolve(self, hw_addr: str) -> str:
        with self._lock:
            entry = self._entries.get(hw_addr)
            if entry is None:
                entry = RegistryEntry(
                    button_id=hw_addr, hw_addr=hw_addr, configured=False
                )
                self._entries[hw_addr] = entry
                self._log.info("Registered unconfigured button %s", hw_addr)
            return entry.button_id

    def is_configured(self, hw_addr: str) -> bool:
        with self._lock:
            entry = self._entries.get(hw_addr)
            return entry is not None and entry.configured

    def entries(self) -> list[RegistryEntry]:
        with self._lock:
            return list(self._entries.values())

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
