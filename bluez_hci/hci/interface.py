"""Control of one Bluetooth adapter through BlueZ over D-Bus.

Locking:
    status lock     - serializes power transitions (up/down), held for the
                      whole confirmation poll
    discovery lock  - serializes discovery filter/start/stop
    wait condition  - where lescan() sleeps; down() notifies it

The status and discovery locks are never held at the same time, so a slow
power confirmation never blocks a discovery stop and vice versa.
"""

from __future__ import annotations

import threading
from typing import Callable

from bluez_hci.config.settings import (
    DEFAULT_POWER_CHANGE_ATTEMPTS,
    DEFAULT_POWER_CHANGE_DELAY,
    get_bool,
    get_float,
    get_int,
)
from bluez_hci.domain.models import HciInfo, MACAddress, Transport
from bluez_hci.hci.base import ClassicInquiry, HciInterface
from bluez_hci.hci.bus import BluezBus, create_adapter_path, create_device_path
from bluez_hci.hci.connection import DBusHciConnection
from bluez_hci.hci.exceptions import HciTimeoutError
from bluez_hci.hci.legacy import LegacyHciInterface
from bluez_hci.hci.loop import EventLoopThread
from bluez_hci.hci.scan import LEScanSession
from bluez_hci.logging import LoggerFactory


class DBusHciInterface(HciInterface):
    """Power, discovery, LE scan and connect for a single adapter.

    The adapter's event loop thread is started here and runs until close().
    """

    def __init__(
        self,
        name: str,
        bus: BluezBus | None = None,
        loop_thread: EventLoopThread | None = None,
        inquiry_factory: Callable[[str], ClassicInquiry] = LegacyHciInterface,
    ) -> None:
        self.name = name
        self.adapter_path = create_adapter_path(name)
        self.log = LoggerFactory.for_hci(name)

        self._status_lock = threading.Lock()
        self._poll_condition = threading.Condition()
        self._discovery_lock = threading.Lock()
        self._wait_condition = threading.Condition()
        self._inquiry_factory = inquiry_factory
        self._closed = False

        # The GLib main loop must be installed before the bus is opened
        self.loop_thread = loop_thread or EventLoopThread(name)
        self.bus = bus or BluezBus()
        self._adapter = self.bus.adapter(self.adapter_path)
        self.loop_thread.start()

    # -----------------------------
    # Power
    # -----------------------------

    def up(self) -> None:
        self.log.debug(f"bringing up {self.name}")

        filter_asserted = False
        while True:
            with self._status_lock:
                if self._adapter.powered:
                    return

                if filter_asserted:
                    self._adapter.set_powered(True)
                    self._wait_until_powered_change(True)
                    break

            # Powered is re-checked under the status lock on the next pass
            self._init_discovery_filter(Transport.LE)
            filter_asserted = True

        self.log.info(f"{self.name} is up")

    def down(self) -> None:
        self.log.debug(f"switching down {self.name}")

        # Release any lescan() still waiting on this adapter
        with self._wait_condition:
            self._wait_condition.notify_all()

        with self._status_lock:
            if not self._adapter.powered:
                return

            self._adapter.set_powered(False)
            self._wait_until_powered_change(False)

        self.log.info(f"{self.name} is down")

    def reset(self) -> None:
        self.down()
        self.up()

    def _wait_until_powered_change(self, powered: bool) -> None:
        """Poll Powered until it equals ``powered``; caller holds the status lock."""
        attempts = get_int("power_change_attempts", DEFAULT_POWER_CHANGE_ATTEMPTS)
        delay = get_float("power_change_delay", DEFAULT_POWER_CHANGE_DELAY)

        for _ in range(attempts):
            if self._adapter.powered == powered:
                return
            with self._poll_condition:
                self._poll_condition.wait(delay)

        raise HciTimeoutError(self.name, powered)

    # -----------------------------
    # Discovery
    # -----------------------------

    def start_discovery(self, transport: Transport = Transport.LE) -> None:
        with self._discovery_lock:
            if self._adapter.discovering:
                return

            self._adapter.set_discovery_filter(transport)
            self._adapter.start_discovery()
            self.log.debug(f"discovery ({transport.value}) started on {self.name}")

    def stop_discovery(self) -> None:
        with self._discovery_lock:
            if not self._adapter.discovering:
                return

            self._adapter.stop_discovery()
            self.log.debug(f"discovery stopped on {self.name}")

    def _init_discovery_filter(self, transport: Transport) -> None:
        with self._discovery_lock:
            self._adapter.set_discovery_filter(transport)

    # -----------------------------
    # Scanning and connections
    # -----------------------------

    def wait(self, timeout: float) -> bool:
        """Block for ``timeout`` seconds or until down() is called.

        Returns True when woken by down().
        """
        with self._wait_condition:
            return self._wait_condition.wait(timeout)

    def lescan(self, timeout: float) -> dict[MACAddress, str]:
        found = LEScanSession(self, timeout).run()
        if get_bool("stop_discovery_after_lescan"):
            self.stop_discovery()
        return found

    def connect(self, address: MACAddress, timeout: float) -> DBusHciConnection:
        self.log.debug(f"connecting to device {address}")

        device = self.bus.device(create_device_path(self.name, address))
        if not device.connected:
            device.connect(timeout)
            self.log.info(f"connected to device {address}")

        return DBusHciConnection(self.name, device, timeout)

    def detect(self, address: MACAddress) -> bool:
        return self._inquiry_factory(self.name).detect(address)

    def scan(self) -> dict[MACAddress, str]:
        return self._inquiry_factory(self.name).scan()

    def info(self) -> HciInfo:
        return self._inquiry_factory(self.name).info()

    # -----------------------------
    # Teardown
    # -----------------------------

    def close(self) -> None:
        """Stop discovery and the event loop. Never raises."""
        if self._closed:
            return
        self._closed = True

        try:
            self.stop_discovery()
        except Exception as e:
            self.log.warning(f"failed to stop discovery on {self.name}: {e}")

        self.loop_thread.stop()
