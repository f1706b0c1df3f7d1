"""Configuration for bluez-hci."""
