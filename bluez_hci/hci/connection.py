"""Connection handle returned by DBusHciInterface.connect()."""

from __future__ import annotations

from bluez_hci.domain.models import MACAddress
from bluez_hci.hci.bus import BluezDevice


class DBusHciConnection:
    """A connected remote device, owned by the caller."""

    def __init__(self, adapter_name: str, device: BluezDevice, timeout: float):
        self.adapter_name = adapter_name
        self.device = device
        self.timeout = timeout

    @property
    def path(self) -> str:
        return self.device.path

    @property
    def address(self) -> MACAddress:
        return self.device.address

    @property
    def connected(self) -> bool:
        return self.device.connected

    def __repr__(self) -> str:
        return (
            f"DBusHciConnection(adapter={self.adapter_name!r}, "
            f"path={self.path!r}, timeout={self.timeout!r})"
        )
