"""Background GLib main loop that dispatches D-Bus signals for one adapter."""

from __future__ import annotations

import threading
from typing import Callable

import dbus.mainloop.glib
from gi.repository import GLib

from bluez_hci.logging import LoggerFactory

DEFAULT_JOIN_TIMEOUT = 5.0

_main_loop_lock = threading.Lock()
_main_loop_installed = False


def install_default_main_loop() -> None:
    """Make GLib the default dbus-python main loop.

    Must run before the system bus connection is opened, otherwise signal
    handlers are never dispatched.
    """
    global _main_loop_installed
    with _main_loop_lock:
        if not _main_loop_installed:
            dbus.mainloop.glib.DBusGMainLoop(set_as_default=True)
            _main_loop_installed = True


class EventLoopThread:
    """Runs a GLib.MainLoop on a dedicated daemon thread.

    This thread is the only place signal callbacks (such as InterfacesAdded
    during an LE scan) are executed. It never performs caller work itself.
    """

    def __init__(
        self,
        name: str,
        loop_factory: Callable[[], GLib.MainLoop] | None = None,
    ) -> None:
        self.name = name
        self.log = LoggerFactory.for_hci(name)
        install_default_main_loop()
        self._loop = (loop_factory or GLib.MainLoop)()
        self._thread = threading.Thread(
            target=self._run, name=f"{name}-event-loop", daemon=True
        )

    def _run(self) -> None:
        self.log.debug(f"event loop of {self.name} started")
        self._loop.run()
        self.log.debug(f"event loop of {self.name} finished")

    def start(self) -> None:
        self._thread.start()

    def is_alive(self) -> bool:
        return self._thread.is_alive()

    def _on_stop_loop(self) -> bool:
        self._loop.quit()
        return False

    def stop(self, timeout: float = DEFAULT_JOIN_TIMEOUT) -> None:
        """Quit the loop and join the thread. Never raises."""
        try:
            # Scheduled on the loop itself so a quit before run() is not lost
            GLib.idle_add(self._on_stop_loop)
            self._thread.join(timeout)
        except Exception as e:
            self.log.error(f"failed to stop event loop of {self.name}: {e}")
            return

        if self._thread.is_alive():
            self.log.warning(
                f"event loop of {self.name} did not finish within {timeout:g}s"
            )
