"""Tests for the bluez-hci command line entry point."""

from unittest.mock import MagicMock

import pytest

from bluez_hci import main as main_module
from bluez_hci.domain.models import HciInfo, MACAddress
from bluez_hci.hci.exceptions import HciIOError, HciTimeoutError


@pytest.fixture
def controller(mocker):
    hci = MagicMock()
    manager = MagicMock()
    manager.lookup.return_value = hci
    mocker.patch.object(main_module, "DBusHciInterfaceManager", return_value=manager)
    mocker.patch.object(main_module, "setup_logging")
    hci.manager = manager
    return hci


class TestParser:
    def test_defaults(self):
        args = main_module.build_parser().parse_args(["lescan"])

        assert args.interface == "hci0"
        assert args.timeout == 10.0
        assert args.debug is False

    def test_address_is_parsed(self):
        args = main_module.build_parser().parse_args(
            ["-i", "hci1", "connect", "aa:bb:cc:dd:ee:ff", "-t", "5"]
        )

        assert args.interface == "hci1"
        assert args.address == MACAddress.parse("AA:BB:CC:DD:EE:FF")
        assert args.timeout == 5.0

    def test_bad_address_exits(self):
        with pytest.raises(SystemExit):
            main_module.build_parser().parse_args(["detect", "not-an-address"])

    def test_command_required(self):
        with pytest.raises(SystemExit):
            main_module.build_parser().parse_args([])


class TestMain:
    @pytest.mark.parametrize("command", ["up", "down", "reset"])
    def test_power_commands(self, controller, command):
        assert main_module.main([command]) == 0

        getattr(controller, command).assert_called_once_with()
        controller.manager.lookup.assert_called_once_with("hci0")
        controller.manager.close.assert_called_once()

    def test_lescan_prints_devices(self, controller, capsys):
        controller.lescan.return_value = {
            MACAddress.parse("00:00:00:00:00:02"): "bar",
            MACAddress.parse("00:00:00:00:00:01"): "foo",
        }

        assert main_module.main(["lescan", "-t", "2"]) == 0

        controller.lescan.assert_called_once_with(2.0)
        out = capsys.readouterr().out.splitlines()
        assert out == ["00:00:00:00:00:01\tfoo", "00:00:00:00:00:02\tbar"]

    def test_detect_absent_returns_one(self, controller, capsys):
        controller.detect.return_value = False

        assert main_module.main(["detect", "AA:BB:CC:DD:EE:FF"]) == 1
        assert capsys.readouterr().out.strip() == "absent"

    def test_info(self, controller, capsys):
        controller.info.return_value = HciInfo(
            name="hci0",
            address=MACAddress.parse("00:1A:7D:DA:71:13"),
            flags=("UP", "RUNNING"),
        )

        assert main_module.main(["info"]) == 0
        assert capsys.readouterr().out.strip() == "hci0\t00:1A:7D:DA:71:13\tUP RUNNING"

    def test_connect(self, controller, capsys):
        connection = MagicMock(address=MACAddress.parse("AA:BB:CC:DD:EE:FF"), adapter_name="hci0")
        controller.connect.return_value = connection

        assert main_module.main(["connect", "AA:BB:CC:DD:EE:FF"]) == 0

        controller.connect.assert_called_once_with(MACAddress.parse("AA:BB:CC:DD:EE:FF"), 30.0)
        assert "connected AA:BB:CC:DD:EE:FF via hci0" in capsys.readouterr().out

    @pytest.mark.parametrize(
        "error", [HciTimeoutError("hci0", True), HciIOError("Operation not permitted")]
    )
    def test_hci_error_returns_one(self, controller, error):
        controller.up.side_effect = error

        assert main_module.main(["up"]) == 1
        controller.manager.close.assert_called_once()

    def test_unexpected_error_propagates(self, controller):
        controller.up.side_effect = RuntimeError("boom")

        with pytest.raises(RuntimeError):
            main_module.main(["up"])
        controller.manager.close.assert_called_once()
