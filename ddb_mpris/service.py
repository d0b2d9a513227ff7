"""
Service lifecycle: owns the session bus connection and the GLib loop.

The engine thread calls handle_event(); the listen thread runs the GLib
main loop that dispatches incoming D-Bus calls. Outgoing signals are
queued onto that loop with GLib.idle_add so only the listen thread ever
touches the connection.
"""

import threading
from typing import Dict, Optional

import dbus
import dbus.exceptions
import dbus.mainloop.glib
import dbus.service
from gi.repository import GLib

from . import config
from .engine import EngineApi
from .errors import ServiceInitError, ServiceStateError
from .events import EngineEvent
from .log import log
from .mpris import MediaPlayer2
from .router import EventRouter
from .state import PlayerCommands, PlayerState


def run_until(stop: threading.Event, interval_ms: int, context: Optional[GLib.MainContext] = None):
    """
    Run a GLib main loop until `stop` is set.

    The flag is checked every interval_ms, so shutdown takes at most one
    interval after it is set.
    """
    loop = GLib.MainLoop(context)

    def check_stop():
        if stop.is_set():
            loop.quit()
            return False
        return True

    source = GLib.Timeout(interval_ms)
    source.set_callback(lambda *args: check_stop())
    source.attach(context)
    try:
        if not stop.is_set():
            loop.run()
    finally:
        source.destroy()


class MprisService:
    """
    Registers DeaDBeeF as org.mpris.MediaPlayer2.<name> on the session bus.

    init() once, then start() (or listen() on a thread of your own),
    handle_event() for every engine message, exit() to stop.
    """

    def __init__(self, api: EngineApi, bus_name: str = config.BUS_NAME,
                 listen_interval_ms: int = config.LISTEN_INTERVAL_MS):
        self.api = api
        self.bus_name = bus_name
        self.listen_interval_ms = listen_interval_ms

        self.bus = None
        self.player: Optional[MediaPlayer2] = None
        self.router: Optional[EventRouter] = None
        self._name = None
        self._exit = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def ready(self) -> bool:
        return self.router is not None

    def init(self):
        """Connect to the session bus, claim the name and export the player"""
        if self.ready:
            log("[Init] Already initialized")
            return

        try:
            dbus.mainloop.glib.DBusGMainLoop(set_as_default=True)
            self.bus = dbus.SessionBus()
            self._name = dbus.service.BusName(
                self.bus_name, self.bus,
                allow_replacement=True, replace_existing=True, do_not_queue=False,
            )
        except dbus.exceptions.DBusException as e:
            raise ServiceInitError(f"cannot register {self.bus_name} on the session bus: {e}") from e

        self.player = MediaPlayer2(
            PlayerState(self.api), PlayerCommands(self.api),
            conn=self.bus, object_path=config.OBJECT_PATH,
        )
        self.router = EventRouter(self.api, self.emit)
        log(f"[Init] Registered {self.bus_name} at {config.OBJECT_PATH}")

    def listen(self):
        """Dispatch bus traffic until exit() is called"""
        if not self.ready:
            raise ServiceStateError("listen() called before init()")

        log("[DBus] Starting GLib main loop...")
        run_until(self._exit, self.listen_interval_ms)
        log("[DBus] Main loop stopped")

    def start(self) -> threading.Thread:
        """Run listen() on a background thread"""
        if self._thread is not None and self._thread.is_alive():
            return self._thread
        if not self.ready:
            raise ServiceStateError("start() called before init()")

        self._thread = threading.Thread(target=self.listen, name="mpris-listen", daemon=True)
        self._thread.start()
        return self._thread

    def exit(self):
        """Ask the listen loop to stop; returns without waiting"""
        log("[Main] Exit requested")
        self._exit.set()

    @property
    def exiting(self) -> bool:
        return self._exit.is_set()

    def handle_event(self, kind: int, context=None, p1: int = 0, p2: int = 0):
        """Entry point for the engine's message hook"""
        if not self.ready:
            raise ServiceStateError("handle_event() called before init()")
        self.router.route(EngineEvent(kind, context, p1, p2))

    def emit(self, changed: Dict[str, object]):
        """Queue a PropertiesChanged emission on the listen loop"""
        GLib.idle_add(self._send_properties_changed, changed)

    def _send_properties_changed(self, changed: Dict[str, object]) -> bool:
        try:
            self.player.emit_player_properties(changed)
        except (dbus.exceptions.DBusException, TypeError, ValueError) as e:
            log(f"[Error] Failed to emit PropertiesChanged {list(changed.keys())}: {e}")
        return False
