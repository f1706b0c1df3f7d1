"""Domain model for Bluetooth adapter control.

Type-safe value objects shared by the D-Bus controller, the legacy
command-line provider and the scan logic.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from functools import total_ordering
from typing import Any

from bluez_hci.hci.exceptions import ParseError


UNKNOWN_DEVICE_NAME = "unknown"


# ==============================================================================
# Hardware Address
# ==============================================================================


_HEX_GROUP = re.compile(r"[0-9A-Fa-f]{2}")


@total_ordering
@dataclass(frozen=True)
class MACAddress:
    """48-bit Bluetooth device address.

    Stored as an integer so that "aa:bb:..." and "AA:BB:..." compare equal.
    """

    value: int

    @classmethod
    def parse(cls, text: str, separator: str = ":") -> MACAddress:
        """Parse six hex groups joined by ``separator``.

        Raises:
            ParseError: If the text is not a well-formed address
        """
        if not isinstance(text, str):
            raise ParseError(repr(text), "not a string")

        groups = text.strip().split(separator)
        if len(groups) != 6:
            raise ParseError(text, f"expected 6 groups separated by {separator!r}")

        value = 0
        for group in groups:
            if not _HEX_GROUP.fullmatch(group):
                raise ParseError(text, f"bad group {group!r}")
            value = (value << 8) | int(group, 16)
        return cls(value)

    def to_string(self, separator: str = ":") -> str:
        octets = [(self.value >> shift) & 0xFF for shift in range(40, -8, -8)]
        return separator.join(f"{octet:02X}" for octet in octets)

    def __str__(self) -> str:
        return self.to_string(":")

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, MACAddress):
            return NotImplemented
        return self.value < other.value


# ==============================================================================
# Discovery
# ==============================================================================


class Transport(Enum):
    """Transport selector used in the discovery filter."""

    BREDR = "bredr"
    LE = "le"
    AUTO = "auto"


@dataclass(frozen=True)
class DeviceObservation:
    """A (hardware address, display name) pair seen on the bus."""

    address: MACAddress
    name: str = UNKNOWN_DEVICE_NAME

    @classmethod
    def from_properties(cls, properties: dict[str, Any]) -> DeviceObservation:
        """Build an observation from org.bluez.Device1 properties.

        Raises:
            ParseError: If the Address property is missing or malformed
        """
        if "Address" not in properties:
            raise ParseError("", "no Address property")
        address = MACAddress.parse(str(properties["Address"]), ":")
        name = properties.get("Name")
        return cls(address=address, name=str(name) if name else UNKNOWN_DEVICE_NAME)


# ==============================================================================
# Adapter Metadata
# ==============================================================================


@dataclass(frozen=True)
class HciInfo:
    """Adapter metadata as reported by ``hciconfig``."""

    name: str
    address: MACAddress | None = None
    bus: str | None = None  # e.g., "USB", "UART"
    acl_mtu: str | None = None  # e.g., "310:10"
    sco_mtu: str | None = None
    flags: tuple[str, ...] = field(default_factory=tuple)  # e.g., ("UP", "RUNNING")
    rx_bytes: int = 0
    tx_bytes: int = 0

    @property
    def is_up(self) -> bool:
        return "UP" in self.flags
