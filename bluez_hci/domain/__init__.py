"""Domain models for Bluetooth adapter control."""

from __future__ import annotations

from .models import (
    UNKNOWN_DEVICE_NAME,
    DeviceObservation,
    HciInfo,
    MACAddress,
    Transport,
)


__all__ = [
    "UNKNOWN_DEVICE_NAME",
    "DeviceObservation",
    "HciInfo",
    "MACAddress",
    "Transport",
]
