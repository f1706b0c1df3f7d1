"""BlueZ adapter control over D-Bus and the legacy HCI tools."""
