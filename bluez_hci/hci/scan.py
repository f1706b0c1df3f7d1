"""Low-energy scan: known devices plus live InterfacesAdded notifications.

Devices enter the accumulator from two sources:

1. a snapshot of org.bluez.Device1 objects already registered under the
   adapter when the scan starts;
2. InterfacesAdded signals received while the scan waits. These arrive on
   the adapter's event loop thread and are posted to a queue, which the
   calling thread drains only after the wait is over.

At the end every accumulated device is re-queried, and only devices with a
non-zero RSSI at that moment are reported.
"""

from __future__ import annotations

import queue
from typing import TYPE_CHECKING, Any

from bluez_hci.domain.models import DeviceObservation, MACAddress, Transport
from bluez_hci.hci.bus import DEVICE_INTERFACE, BluezObjectManager, create_device_path
from bluez_hci.hci.exceptions import HciIOError, ParseError
from bluez_hci.logging import LoggerFactory, operation_context

if TYPE_CHECKING:
    from bluez_hci.hci.interface import DBusHciInterface


class LEScanSession:
    """One lescan() call. Not reusable."""

    def __init__(self, hci: DBusHciInterface, timeout: float) -> None:
        self.hci = hci
        self.timeout = timeout
        self.log = LoggerFactory.for_scan(hci.name)
        self._observation_log = LoggerFactory.for_observation(hci.name)
        self._device_prefix = hci.adapter_path + "/"
        self._observations: queue.SimpleQueue[DeviceObservation] = queue.SimpleQueue()

    def run(self) -> dict[MACAddress, str]:
        self.log.info(f"starting BLE scan for {self.timeout:g} seconds")

        with operation_context("lescan", self.log, timeout=self.timeout):
            manager = self.hci.bus.object_manager()

            devices: dict[MACAddress, str] = {}
            self._process_known_devices(manager, devices)

            match = manager.on_interfaces_added(self._on_interfaces_added)
            try:
                self.hci.start_discovery(Transport.LE)
                self.hci.wait(self.timeout)
            finally:
                match.remove()

            self._drain_observations(devices)
            found = self._filter_observable(devices)

        self.log.info(f"BLE scan has finished, found {len(found)} device(s)")
        return found

    def _process_known_devices(
        self, manager: BluezObjectManager, devices: dict[MACAddress, str]
    ) -> None:
        for path, interfaces in manager.managed_objects().items():
            # Example of path: /org/bluez/hci0/dev_FF_FF_FF_FF_FF_FF
            if not path.startswith(self._device_prefix):
                continue

            properties = interfaces.get(DEVICE_INTERFACE)
            if properties is None:
                continue

            try:
                observation = DeviceObservation.from_properties(properties)
            except ParseError as e:
                self.log.warning(f"skipping known device {path}: {e}")
                continue

            devices.setdefault(observation.address, observation.name)

    def _on_interfaces_added(self, path: str, interfaces: dict[str, Any]) -> None:
        """InterfacesAdded handler; runs on the event loop thread."""
        path = str(path)
        if not path.startswith(self._device_prefix):
            return

        properties = interfaces.get(DEVICE_INTERFACE)
        if properties is None:
            return

        try:
            observation = DeviceObservation.from_properties(dict(properties))
        except ParseError as e:
            self.log.warning(f"skipping new device {path}: {e}")
            return

        self._observation_log.trace(f"new device {observation.address} ({observation.name})")
        self._observations.put(observation)

    def _drain_observations(self, devices: dict[MACAddress, str]) -> None:
        while True:
            try:
                observation = self._observations.get_nowait()
            except queue.Empty:
                return
            devices.setdefault(observation.address, observation.name)

    def _filter_observable(self, devices: dict[MACAddress, str]) -> dict[MACAddress, str]:
        found: dict[MACAddress, str] = {}
        for address, name in devices.items():
            path = create_device_path(self.hci.name, address)
            try:
                rssi = self.hci.bus.device(path).rssi
            except HciIOError as e:
                # BlueZ drops devices it has not seen for a while
                self._observation_log.debug(f"device {address} is gone: {e}")
                continue

            if rssi == 0:
                continue

            found[address] = name
            self._observation_log.debug(
                f"found BLE device {name} by address {address} ({rssi})"
            )
        return found
