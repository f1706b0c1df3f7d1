"""Settings storage for adapter control configuration."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any


SETTINGS_PATH = Path(
    os.environ.get(
        "BLUEZ_HCI_SETTINGS_PATH",
        Path.home() / ".config" / "bluez-hci" / "settings.json",
    )
)

# Default values - use these constants instead of hardcoding values elsewhere
DEFAULT_POWER_CHANGE_ATTEMPTS = 5
DEFAULT_POWER_CHANGE_DELAY = 0.2
DEFAULT_LESCAN_TIMEOUT = 10.0
DEFAULT_CONNECT_TIMEOUT = 30.0
DEFAULT_INQUIRY_TIMEOUT = 30.0

DEFAULT_SETTINGS: dict[str, Any] = {
    "power_change_attempts": DEFAULT_POWER_CHANGE_ATTEMPTS,
    "power_change_delay": DEFAULT_POWER_CHANGE_DELAY,
    "lescan_timeout": DEFAULT_LESCAN_TIMEOUT,
    "connect_timeout": DEFAULT_CONNECT_TIMEOUT,
    "stop_discovery_after_lescan": False,
    "inquiry_timeout": DEFAULT_INQUIRY_TIMEOUT,
}


@dataclass
class SettingsStore:
    values: dict[str, Any] = field(default_factory=dict)


settings_store = SettingsStore()


def load_settings() -> None:
    settings_store.values = dict(DEFAULT_SETTINGS)
    if not SETTINGS_PATH.exists():
        return
    try:
        data = json.loads(SETTINGS_PATH.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError):
        return
    if isinstance(data, dict):
        settings_store.values.update(data)


def save_settings() -> None:
    SETTINGS_PATH.parent.mkdir(parents=True, exist_ok=True)
    SETTINGS_PATH.write_text(
        json.dumps(settings_store.values, indent=2, sort_keys=True),
        encoding="utf-8",
    )


def get_setting(key: str, default: Any | None = None) -> Any:
    return settings_store.values.get(key, default)


def set_setting(key: str, value: Any) -> None:
    settings_store.values[key] = value
    save_settings()


def get_bool(key: str, default: bool = False) -> bool:
    return bool(get_setting(key, default))


def set_bool(key: str, value: bool) -> None:
    set_setting(key, bool(value))


def get_int(key: str, default: int = 0) -> int:
    value = get_setting(key, default)
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def get_float(key: str, default: float = 0.0) -> float:
    """Read a numeric setting, falling back to ``default`` on junk values."""
    value = get_setting(key, default)
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


load_settings()
