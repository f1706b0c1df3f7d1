import argparse
import sys

from bluez_hci.config.settings import (
    DEFAULT_CONNECT_TIMEOUT,
    DEFAULT_LESCAN_TIMEOUT,
    get_float,
)
from bluez_hci.domain.models import MACAddress
from bluez_hci.hci.exceptions import HciError
from bluez_hci.hci.manager import DBusHciInterfaceManager
from bluez_hci.logging import LoggerFactory, setup_logging


def _print_devices(devices):
    for address, name in sorted(devices.items()):
        print(f"{address}\t{name}")


def build_parser():
    parser = argparse.ArgumentParser(description="Control a BlueZ Bluetooth adapter")
    parser.add_argument("-i", "--interface", default="hci0", help="Adapter name (default: hci0)")
    parser.add_argument("-d", "--debug", action="store_true", help="Enable verbose debug output")
    parser.add_argument("--trace", action="store_true", help="Also log every scanned device")

    commands = parser.add_subparsers(dest="command", required=True)
    commands.add_parser("up", help="Power the adapter on")
    commands.add_parser("down", help="Power the adapter off")
    commands.add_parser("reset", help="Power-cycle the adapter")
    commands.add_parser("info", help="Show adapter information")
    commands.add_parser("scan", help="Classic inquiry")

    lescan = commands.add_parser("lescan", help="Low-energy scan")
    lescan.add_argument(
        "-t",
        "--timeout",
        type=float,
        default=get_float("lescan_timeout", DEFAULT_LESCAN_TIMEOUT),
        help="Scan window in seconds",
    )

    detect = commands.add_parser("detect", help="Check whether a device answers")
    detect.add_argument("address", type=MACAddress.parse)

    connect = commands.add_parser("connect", help="Connect to a device")
    connect.add_argument("address", type=MACAddress.parse)
    connect.add_argument(
        "-t",
        "--timeout",
        type=float,
        default=get_float("connect_timeout", DEFAULT_CONNECT_TIMEOUT),
        help="Connect deadline in seconds",
    )
    return parser


def run_command(hci, args):
    if args.command == "up":
        hci.up()
    elif args.command == "down":
        hci.down()
    elif args.command == "reset":
        hci.reset()
    elif args.command == "info":
        info = hci.info()
        print(f"{info.name}\t{info.address or '-'}\t{' '.join(info.flags)}")
    elif args.command == "scan":
        _print_devices(hci.scan())
    elif args.command == "lescan":
        _print_devices(hci.lescan(args.timeout))
    elif args.command == "detect":
        found = hci.detect(args.address)
        print("present" if found else "absent")
        return 0 if found else 1
    elif args.command == "connect":
        connection = hci.connect(args.address, args.timeout)
        print(f"connected {connection.address} via {connection.adapter_name}")
    return 0


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(debug=args.debug, trace=args.trace)
    log = LoggerFactory.for_system()

    manager = DBusHciInterfaceManager()
    try:
        hci = manager.lookup(args.interface)
        return run_command(hci, args)
    except HciError as error:
        log.error(f"{args.command} failed: {error}")
        return 1
    finally:
        manager.close()


if __name__ == "__main__":
    sys.exit(main())
