"""Classic inquiry through the BlueZ command-line tools (hcitool, hciconfig).

This is the synchronous variant of the adapter interface. It is used by
DBusHciInterface for detect/scan/info, which BlueZ does not expose as
D-Bus calls, and can also toggle the adapter without D-Bus.
"""

from __future__ import annotations

import re
import subprocess

from bluez_hci.config.settings import DEFAULT_INQUIRY_TIMEOUT, get_float
from bluez_hci.domain.models import UNKNOWN_DEVICE_NAME, HciInfo, MACAddress
from bluez_hci.hci.base import ClassicInquiry
from bluez_hci.hci.exceptions import HciIOError, ParseError
from bluez_hci.logging import LoggerFactory

NAME_REQUEST_TIMEOUT = 10

_SCAN_LINE = re.compile(r"^\s*([0-9A-Fa-f]{2}(?::[0-9A-Fa-f]{2}){5})\s*(.*)$")
_BD_ADDRESS = re.compile(r"BD Address:\s*([0-9A-Fa-f:]{17})")
_BUS = re.compile(r"Bus:\s*(\S+)")
_ACL_MTU = re.compile(r"ACL MTU:\s*(\S+)")
_SCO_MTU = re.compile(r"SCO MTU:\s*(\S+)")
_RX_BYTES = re.compile(r"RX bytes:(\d+)")
_TX_BYTES = re.compile(r"TX bytes:(\d+)")
_FLAG_LINE = re.compile(r"^\s*([A-Z]+(?:\s+[A-Z]+)*)\s*$")


class LegacyHciInterface(ClassicInquiry):
    def __init__(self, name: str) -> None:
        self.name = name
        self.log = LoggerFactory.for_hci(name)

    def _run_command(
        self, cmd: list[str], timeout: float
    ) -> subprocess.CompletedProcess[str]:
        """Run a tool with logging; any failure becomes HciIOError."""
        self.log.debug(f"Running: {' '.join(cmd)}")
        try:
            result = subprocess.run(
                cmd, capture_output=True, text=True, check=True, timeout=timeout
            )
        except subprocess.CalledProcessError as e:
            message = (e.stderr or "").strip() or str(e)
            raise HciIOError(message) from e
        except subprocess.TimeoutExpired as e:
            raise HciIOError(f"{cmd[0]} timed out after {timeout:g}s") from e
        except FileNotFoundError as e:
            raise HciIOError(f"{cmd[0]} not found") from e

        if result.stdout:
            self.log.trace(f"stdout: {result.stdout.strip()}")
        return result

    def detect(self, address: MACAddress) -> bool:
        result = self._run_command(
            ["hcitool", "-i", self.name, "name", address.to_string(":")],
            timeout=NAME_REQUEST_TIMEOUT,
        )
        found = bool(result.stdout.strip())
        self.log.debug(f"device {address} {'detected' if found else 'not detected'}")
        return found

    def scan(self) -> dict[MACAddress, str]:
        self.log.info(f"starting inquiry on {self.name}")
        result = self._run_command(
            ["hcitool", "-i", self.name, "scan", "--flush"],
            timeout=get_float("inquiry_timeout", DEFAULT_INQUIRY_TIMEOUT),
        )

        devices: dict[MACAddress, str] = {}
        for line in result.stdout.splitlines():
            # Line format: "\tAA:BB:CC:DD:EE:FF\tDevice Name"
            match = _SCAN_LINE.match(line)
            if not match:
                continue
            try:
                address = MACAddress.parse(match.group(1), ":")
            except ParseError as e:
                self.log.warning(f"skipping inquiry result: {e}")
                continue
            devices.setdefault(address, match.group(2).strip() or UNKNOWN_DEVICE_NAME)

        self.log.info(f"inquiry has finished, found {len(devices)} device(s)")
        return devices

    def info(self) -> HciInfo:
        result = self._run_command(["hciconfig", self.name], timeout=NAME_REQUEST_TIMEOUT)
        return parse_hciconfig(self.name, result.stdout)

    def up(self) -> None:
        self._run_command(["hciconfig", self.name, "up"], timeout=NAME_REQUEST_TIMEOUT)

    def down(self) -> None:
        self._run_command(["hciconfig", self.name, "down"], timeout=NAME_REQUEST_TIMEOUT)

    def reset(self) -> None:
        self._run_command(["hciconfig", self.name, "reset"], timeout=NAME_REQUEST_TIMEOUT)


def parse_hciconfig(name: str, output: str) -> HciInfo:
    """Parse ``hciconfig <name>`` output.

    Example input:
        hci0:   Type: Primary  Bus: USB
                BD Address: 00:1A:7D:DA:71:13  ACL MTU: 310:10  SCO MTU: 64:8
                UP RUNNING PSCAN
                RX bytes:1234 acl:0 sco:0 events:56 errors:0
                TX bytes:789 acl:0 sco:0 commands:45 errors:0
    """
    if not output.strip():
        raise HciIOError(f"no such interface: {name}")

    def _search(pattern: re.Pattern[str]) -> str | None:
        match = pattern.search(output)
        return match.group(1) if match else None

    address_text = _search(_BD_ADDRESS)
    address = MACAddress.parse(address_text, ":") if address_text else None

    flags: tuple[str, ...] = ()
    for line in output.splitlines()[1:]:
        match = _FLAG_LINE.match(line)
        if match:
            flags = tuple(match.group(1).split())
            break

    return HciInfo(
        name=name,
        address=address,
        bus=_search(_BUS),
        acl_mtu=_search(_ACL_MTU),
        sco_mtu=_search(_SCO_MTU),
        flags=flags,
        rx_bytes=int(_search(_RX_BYTES) or 0),
        tx_bytes=int(_search(_TX_BYTES) or 0),
    )
