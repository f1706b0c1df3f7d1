"""Process-wide registry of adapter controllers."""

from __future__ import annotations

import threading
from typing import Callable

from bluez_hci.hci.base import HciInterfaceManager
from bluez_hci.hci.interface import DBusHciInterface
from bluez_hci.logging import LoggerFactory

log = LoggerFactory.for_system()


class DBusHciInterfaceManager(HciInterfaceManager):
    """Creates one DBusHciInterface per adapter name and keeps it.

    Controllers are never evicted; close() tears all of them down.
    """

    def __init__(
        self, factory: Callable[[str], DBusHciInterface] = DBusHciInterface
    ) -> None:
        self._factory = factory
        self._interfaces: dict[str, DBusHciInterface] = {}
        self._lock = threading.Lock()

    def lookup(self, name: str) -> DBusHciInterface:
        with self._lock:
            hci = self._interfaces.get(name)
            if hci is None:
                log.debug(f"creating controller for {name}")
                hci = self._factory(name)
                self._interfaces[name] = hci
            return hci

    def close(self) -> None:
        with self._lock:
            interfaces = list(self._interfaces.values())

        for hci in interfaces:
            hci.close()
