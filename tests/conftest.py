"""
Pytest configuration and shared fixtures for bluez-hci tests.

Provides an in-process stand-in for the BlueZ objects the controller talks
to, so power, discovery, scan and connect logic run without a system bus.
"""

import sys
import threading
from typing import Any, Callable, Dict, List, Optional
from unittest.mock import MagicMock, Mock

import pytest


# Mock system D-Bus/GLib bindings before other imports
# This allows tests to run on machines without BlueZ or gobject-introspection
sys.modules["dbus"] = MagicMock()
sys.modules["dbus.mainloop"] = MagicMock()
sys.modules["dbus.mainloop.glib"] = MagicMock()
sys.modules["gi"] = MagicMock()
sys.modules["gi.repository"] = MagicMock()

from bluez_hci.config import settings  # noqa: E402
from bluez_hci.domain.models import MACAddress  # noqa: E402
from bluez_hci.hci.bus import DEVICE_INTERFACE, create_device_path  # noqa: E402
from bluez_hci.hci.exceptions import HciIOError  # noqa: E402
from bluez_hci.hci.interface import DBusHciInterface  # noqa: E402


# ==============================================================================
# Fake BlueZ Objects
# ==============================================================================


class FakeAdapter:
    """org.bluez.Adapter1 stand-in.

    ``confirm_after`` is the number of Powered reads that still return the old
    value after set_powered(); ``confirms=False`` means the change never lands.
    """

    def __init__(
        self,
        powered: bool = False,
        discovering: bool = False,
        confirm_after: int = 0,
        confirms: bool = True,
    ):
        self._powered = powered
        self.discovering = discovering
        self.confirm_after = confirm_after
        self.confirms = confirms
        self.calls: List[tuple] = []
        self.powered_reads = 0
        self._pending: Optional[bool] = None
        self._reads_left = 0

    @property
    def powered(self) -> bool:
        self.powered_reads += 1
        if self._pending is not None:
            if self._reads_left <= 0:
                self._powered = self._pending
                self._pending = None
            else:
                self._reads_left -= 1
        return self._powered

    def set_powered(self, powered: bool) -> None:
        self.calls.append(("set_powered", powered))
        if self.confirms:
            self._pending = powered
            self._reads_left = self.confirm_after

    def set_discovery_filter(self, transport) -> None:
        self.calls.append(("set_discovery_filter", transport))

    def start_discovery(self) -> None:
        self.calls.append(("start_discovery",))
        self.discovering = True

    def stop_discovery(self) -> None:
        self.calls.append(("stop_discovery",))
        self.discovering = False

    def count(self, name: str) -> int:
        return sum(1 for call in self.calls if call[0] == name)


class FakeDevice:
    def __init__(self, path: str, address: str, rssi: int = 0, connected: bool = False):
        self.path = path
        self.address = MACAddress.parse(address)
        self.rssi = rssi
        self.connected = connected
        self.connect_calls: List[float] = []
        self.connect_error: Optional[Exception] = None

    def connect(self, timeout: float) -> None:
        self.connect_calls.append(timeout)
        if self.connect_error is not None:
            raise self.connect_error
        self.connected = True


class FakeObjectManager:
    def __init__(self, objects: Dict[str, Dict[str, Dict[str, Any]]]):
        self.objects = objects
        self.callback: Optional[Callable] = None
        self.match = Mock()

    def managed_objects(self):
        return self.objects

    def on_interfaces_added(self, callback):
        self.callback = callback
        return self.match

    def emit(self, path: str, interfaces: Dict[str, Dict[str, Any]]) -> None:
        assert self.callback is not None, "nobody subscribed to InterfacesAdded"
        self.callback(path, interfaces)


class FakeBus:
    """BluezBus stand-in holding one adapter and a set of devices."""

    def __init__(self, adapter: FakeAdapter, name: str = "hci0"):
        self.name = name
        self.adapter_obj = adapter
        self.devices: Dict[str, FakeDevice] = {}
        self.manager = FakeObjectManager({})
        self.adapter_paths: List[str] = []

    def add_device(
        self,
        address: str,
        name: Optional[str] = None,
        rssi: int = 0,
        known: bool = True,
        connected: bool = False,
    ) -> FakeDevice:
        path = create_device_path(self.name, MACAddress.parse(address))
        device = FakeDevice(path, address, rssi=rssi, connected=connected)
        self.devices[path] = device
        if known:
            self.manager.objects[path] = {DEVICE_INTERFACE: device_properties(address, name)}
        return device

    def adapter(self, path: str) -> FakeAdapter:
        self.adapter_paths.append(path)
        return self.adapter_obj

    def device(self, path: str) -> FakeDevice:
        if path not in self.devices:
            raise HciIOError(
                f"Method \"GetAll\" with signature \"s\" on interface "
                f"\"org.freedesktop.DBus.Properties\" doesn't exist",
                dbus_name="org.freedesktop.DBus.Error.UnknownObject",
            )
        return self.devices[path]

    def object_manager(self) -> FakeObjectManager:
        return self.manager


class FakeLoopThread:
    def __init__(self):
        self.started = False
        self.stopped = False

    def start(self) -> None:
        self.started = True

    def stop(self, timeout: float = 5.0) -> None:
        self.stopped = True


def device_properties(address: str, name: Optional[str] = None) -> Dict[str, Any]:
    properties: Dict[str, Any] = {"Address": address}
    if name is not None:
        properties["Name"] = name
    return properties


def run_in_thread(target: Callable[[], None]) -> None:
    """Run ``target`` on a separate thread and wait for it."""
    thread = threading.Thread(target=target)
    thread.start()
    thread.join(5)


# ==============================================================================
# Fixtures
# ==============================================================================


@pytest.fixture(autouse=True)
def default_settings(tmp_path, monkeypatch):
    """Isolate every test from the user's settings file."""
    monkeypatch.setattr(settings, "SETTINGS_PATH", tmp_path / "settings.json")
    settings.settings_store.values = dict(settings.DEFAULT_SETTINGS)
    yield settings.settings_store.values
    settings.settings_store.values = dict(settings.DEFAULT_SETTINGS)


@pytest.fixture
def fast_power_polls(default_settings):
    """Shorten the delay between power confirmation polls."""
    default_settings["power_change_delay"] = 0.01
    return default_settings


@pytest.fixture
def fake_adapter() -> FakeAdapter:
    return FakeAdapter(powered=False)


@pytest.fixture
def fake_bus(fake_adapter) -> FakeBus:
    return FakeBus(fake_adapter)


@pytest.fixture
def fake_loop() -> FakeLoopThread:
    return FakeLoopThread()


@pytest.fixture
def inquiry():
    """Classic inquiry provider mock; the factory returns it for any name."""
    return MagicMock()


@pytest.fixture
def hci(fake_bus, fake_loop, inquiry) -> DBusHciInterface:
    controller = DBusHciInterface(
        "hci0",
        bus=fake_bus,
        loop_thread=fake_loop,
        inquiry_factory=lambda name: inquiry,
    )
    yield controller
    controller.close()
