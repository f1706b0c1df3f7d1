"""Control of BlueZ Bluetooth adapters: power, discovery, LE scan and connect."""

from __future__ import annotations

from .__version__ import __version__
from .domain.models import DeviceObservation, HciInfo, MACAddress, Transport
from .hci.base import ClassicInquiry, HciInterface, HciInterfaceManager
from .hci.connection import DBusHciConnection
from .hci.exceptions import HciError, HciIOError, HciTimeoutError, ParseError
from .hci.interface import DBusHciInterface
from .hci.legacy import LegacyHciInterface
from .hci.manager import DBusHciInterfaceManager


__all__ = [
    "__version__",
    "ClassicInquiry",
    "DBusHciConnection",
    "DBusHciInterface",
    "DBusHciInterfaceManager",
    "DeviceObservation",
    "HciError",
    "HciIOError",
    "HciInfo",
    "HciInterface",
    "HciInterfaceManager",
    "HciTimeoutError",
    "LegacyHciInterface",
    "MACAddress",
    "ParseError",
    "Transport",
]
