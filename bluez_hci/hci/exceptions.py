"""Custom exceptions for HCI adapter operations.

Exception Hierarchy:
    HciError (base)
        ├── HciIOError        (also an IOError)
        ├── HciTimeoutError   (also a TimeoutError)
        └── ParseError        (also a ValueError)

Absence of a device is never an error: scans report it as an empty mapping.

Usage:
    from bluez_hci.hci.exceptions import HciIOError

    try:
        hci.connect(address, timeout=10)
    except HciIOError as error:
        log.warning(f"Connect failed: {error}")
"""

from __future__ import annotations


class HciError(Exception):
    """Base exception for all HCI operations."""


class HciIOError(HciError, IOError):
    """An underlying bus or tool call failed.

    The native message is passed through verbatim.
    """

    def __init__(self, message: str, dbus_name: str | None = None):
        self.dbus_name = dbus_name
        super().__init__(message)

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else ""


class HciTimeoutError(HciError, TimeoutError):
    """Power state of an adapter was never confirmed."""

    def __init__(self, interface_name: str, powered: bool):
        self.interface_name = interface_name
        self.powered = powered
        state = "on" if powered else "off"
        super().__init__(
            f"failed to change power of interface {interface_name} to {state}"
        )

    def __str__(self) -> str:
        return str(self.args[0])


class ParseError(HciError, ValueError):
    """Malformed hardware address."""

    def __init__(self, text: str, reason: str = ""):
        self.text = text
        self.reason = reason
        msg = f"Invalid MAC address: {text!r}"
        if reason:
            msg += f" ({reason})"
        super().__init__(msg)
