"""
Routes DeaDBeeF engine events to MPRIS PropertiesChanged emissions.

Runs on the engine's message thread. The router keeps no state between
events: everything it needs is read from the event or the engine.
"""

from typing import Callable, Dict

from .engine import EngineApi, EventKind
from .errors import BridgeError, EventDecodeError, UnknownEventError
from .events import DecodedEvent, EngineEvent, decode_event
from .log import debug, log
from .metadata import build_track_metadata
from .state import PlaybackState

# Receives the changed Player properties, e.g. {"PlaybackStatus": "Playing"}
Emitter = Callable[[Dict[str, object]], None]


class EventRouter:
    def __init__(self, api: EngineApi, emit: Emitter):
        self.api = api
        self.emit = emit
        self._handlers = {
            EventKind.SONGCHANGED: self._on_song_changed,
            EventKind.SONGSTARTED: self._on_song_started,
            EventKind.PAUSED: self._on_paused,
        }

    def route(self, event: EngineEvent):
        """Handle one engine event. Never raises."""
        try:
            decoded = decode_event(event)
        except UnknownEventError:
            log(f"[Event] Ignoring unknown event: id={event.kind}, p1={event.p1}, p2={event.p2}")
            return
        except EventDecodeError as e:
            log(f"[Error] Dropping event: {e}")
            return

        handler = self._handlers.get(decoded.kind)
        if handler is None:
            debug(f"[Event] {decoded.kind.name}: {decoded.payload}, {decoded.p1}, {decoded.p2}")
            return

        try:
            handler(decoded)
        except BridgeError as e:
            log(f"[Error] {decoded.kind.name} handling failed: {e}")

    def _on_song_changed(self, event: DecodedEvent):
        track = event.payload.to_track
        if track is None:
            # playback ended; clear metadata like a Get would
            log("[Event] Song changed: nothing playing")
            self.emit({"Metadata": {}})
            return
        metadata = build_track_metadata(self.api, track, track.identifier)
        log(f"[Event] Song changed: track={track.identifier}, p1={event.p1}, p2={event.p2}")
        self.emit({"Metadata": metadata})

    def _on_song_started(self, event: DecodedEvent):
        debug(f"[Event] Song started: {event.payload}, {event.p1}, {event.p2}")
        self._change_playback_status(PlaybackState.PLAYING)

    def _on_paused(self, event: DecodedEvent):
        debug(f"[Event] Paused: {event.p1}, {event.p2}")
        state = PlaybackState.PAUSED if event.p1 > 0 else PlaybackState.PLAYING
        self._change_playback_status(state)

    def _change_playback_status(self, state: PlaybackState):
        self.emit({"PlaybackStatus": state.value})
