"""Thin dbus-python wrappers around the BlueZ objects used by the controller.

Every DBusException raised by dbus-python is translated into HciIOError here,
so the rest of the package never sees dbus-python exception types.

Object paths:
    adapter: /org/bluez/<name>
    device:  /org/bluez/<name>/dev_AA_BB_CC_DD_EE_FF
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Callable

import dbus

from bluez_hci.domain.models import MACAddress, Transport
from bluez_hci.hci.exceptions import HciIOError

# D-Bus constants for BlueZ
BLUEZ_SERVICE = "org.bluez"
BLUEZ_ROOT = "/org/bluez"
ADAPTER_INTERFACE = "org.bluez.Adapter1"
DEVICE_INTERFACE = "org.bluez.Device1"
DBUS_PROPERTIES = "org.freedesktop.DBus.Properties"
DBUS_OBJECT_MANAGER = "org.freedesktop.DBus.ObjectManager"


def create_adapter_path(name: str) -> str:
    return f"{BLUEZ_ROOT}/{name}"


def create_device_path(name: str, address: MACAddress) -> str:
    return f"{create_adapter_path(name)}/dev_{address.to_string('_')}"


@contextmanager
def translate_dbus_errors():
    """Re-raise any DBusException as HciIOError with the native message."""
    try:
        yield
    except dbus.exceptions.DBusException as error:
        message = error.get_dbus_message() or str(error)
        raise HciIOError(message, dbus_name=error.get_dbus_name()) from error


class BluezProxy:
    """One BlueZ object seen through a single interface plus its properties."""

    interface = ""

    def __init__(self, connection, path: str):
        self.path = path
        with translate_dbus_errors():
            obj = connection.get_object(BLUEZ_SERVICE, path)
            self._iface = dbus.Interface(obj, self.interface)
            self._props = dbus.Interface(obj, DBUS_PROPERTIES)

    def get(self, name: str) -> Any:
        with translate_dbus_errors():
            return self._props.Get(self.interface, name)

    def get_all(self) -> dict[str, Any]:
        with translate_dbus_errors():
            return dict(self._props.GetAll(self.interface))

    def set(self, name: str, value: Any) -> None:
        with translate_dbus_errors():
            self._props.Set(self.interface, name, value)


class BluezAdapter(BluezProxy):
    """org.bluez.Adapter1."""

    interface = ADAPTER_INTERFACE

    @property
    def powered(self) -> bool:
        return bool(self.get("Powered"))

    def set_powered(self, powered: bool) -> None:
        self.set("Powered", dbus.Boolean(powered))

    @property
    def discovering(self) -> bool:
        return bool(self.get("Discovering"))

    def set_discovery_filter(self, transport: Transport) -> None:
        arguments = dbus.Dictionary(
            {"Transport": dbus.String(transport.value)}, signature="sv"
        )
        with translate_dbus_errors():
            self._iface.SetDiscoveryFilter(arguments)

    def start_discovery(self) -> None:
        with translate_dbus_errors():
            self._iface.StartDiscovery()

    def stop_discovery(self) -> None:
        with translate_dbus_errors():
            self._iface.StopDiscovery()


class BluezDevice(BluezProxy):
    """org.bluez.Device1."""

    interface = DEVICE_INTERFACE

    @property
    def address(self) -> MACAddress:
        return MACAddress.parse(str(self.get("Address")), ":")

    @property
    def rssi(self) -> int:
        """Live signal strength; 0 when BlueZ currently has no reading."""
        return int(self.get_all().get("RSSI", 0))

    @property
    def connected(self) -> bool:
        return bool(self.get("Connected"))

    def connect(self, timeout: float) -> None:
        """Synchronous Connect() using ``timeout`` seconds as the call deadline."""
        with translate_dbus_errors():
            self._iface.Connect(timeout=timeout)


class BluezObjectManager:
    """org.freedesktop.DBus.ObjectManager rooted at "/"."""

    def __init__(self, connection):
        with translate_dbus_errors():
            self._manager = dbus.Interface(
                connection.get_object(BLUEZ_SERVICE, "/"), DBUS_OBJECT_MANAGER
            )

    def managed_objects(self) -> dict[str, dict[str, dict[str, Any]]]:
        with translate_dbus_errors():
            return {
                str(path): {str(name): dict(props) for name, props in ifaces.items()}
                for path, ifaces in self._manager.GetManagedObjects().items()
            }

    def on_interfaces_added(self, callback: Callable[[str, dict], None]):
        """Subscribe to InterfacesAdded; returns a match with ``remove()``.

        The callback runs on whichever thread iterates the GLib main loop.
        """
        with translate_dbus_errors():
            return self._manager.connect_to_signal("InterfacesAdded", callback)


class BluezBus:
    """Factory for BlueZ proxies on the system bus."""

    def __init__(self, connection=None):
        self._connection = connection

    @property
    def connection(self):
        if self._connection is None:
            with translate_dbus_errors():
                self._connection = dbus.SystemBus()
        return self._connection

    def adapter(self, path: str) -> BluezAdapter:
        return BluezAdapter(self.connection, path)

    def device(self, path: str) -> BluezDevice:
        return BluezDevice(self.connection, path)

    def object_manager(self) -> BluezObjectManager:
        return BluezObjectManager(self.connection)
