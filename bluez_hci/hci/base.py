"""Capability interfaces implemented by the adapter backends.

Two variants exist: DBusHciInterface (BlueZ over D-Bus, asynchronous
notifications) and LegacyHciInterface (synchronous BlueZ command-line tools).
The D-Bus variant delegates classic inquiry to the legacy one per call.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from bluez_hci.domain.models import HciInfo, MACAddress


class ClassicInquiry(ABC):
    """Classic (BR/EDR) inquiry and adapter metadata."""

    @abstractmethod
    def detect(self, address: MACAddress) -> bool:
        """Return True if the device answers a remote name request."""

    @abstractmethod
    def scan(self) -> dict[MACAddress, str]:
        """Run a classic inquiry and return address -> name."""

    @abstractmethod
    def info(self) -> HciInfo:
        """Return adapter metadata."""


class HciInterface(ClassicInquiry):
    """Full control of one adapter."""

    @abstractmethod
    def up(self) -> None:
        """Power the adapter on."""

    @abstractmethod
    def down(self) -> None:
        """Power the adapter off."""

    @abstractmethod
    def reset(self) -> None:
        """Power-cycle the adapter."""

    @abstractmethod
    def lescan(self, timeout: float) -> dict[MACAddress, str]:
        """Scan for low-energy devices for ``timeout`` seconds."""

    @abstractmethod
    def connect(self, address: MACAddress, timeout: float):
        """Ensure ``address`` is connected and return a connection handle."""


class HciInterfaceManager(ABC):
    @abstractmethod
    def lookup(self, name: str) -> HciInterface:
        """Return the interface for adapter ``name``."""
