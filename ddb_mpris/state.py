"""
Point-in-time queries against the engine, plus the commands the MPRIS
Player interface forwards to it.
"""

from enum import Enum

from . import config
from .engine import STATE_PAUSED, STATE_PLAYING, STATE_STOPPED, EngineApi, EventKind
from .errors import InvalidPlaybackStateError, MissingCapabilityError
from .log import debug, log
from .metadata import TrackMetadata, build_track_metadata


class PlaybackState(Enum):
    STOPPED = "Stopped"
    PLAYING = "Playing"
    PAUSED = "Paused"


STATE_CODES = {
    STATE_STOPPED: PlaybackState.STOPPED,
    STATE_PLAYING: PlaybackState.PLAYING,
    STATE_PAUSED: PlaybackState.PAUSED,
}

# Values the engine doesn't expose; reported as constants
FIXED_RATE = 1.0
FIXED_VOLUME = 1.0
FIXED_POSITION = 0

ROOT_CAPABILITIES = {
    "CanQuit": False,
    "CanRaise": False,
    "CanSetFullscreen": False,
    "HasTrackList": False,
}
PLAYER_CAPABILITIES = {
    "CanGoNext": True,
    "CanGoPrevious": True,
    "CanPlay": True,
    "CanPause": True,
    "CanSeek": False,
    "CanControl": True,
}


class PlayerState:
    """Read-side facade over EngineApi. Nothing here is cached."""

    def __init__(self, api: EngineApi):
        self.api = api

    # Dynamic queries

    def playback_state(self) -> PlaybackState:
        get_output = self.api.require("get_output", "get output device")
        output = get_output()
        if output is None:
            # no output device means nothing is playing
            return PlaybackState.STOPPED

        if output.state is None:
            raise MissingCapabilityError("state", "get playback state for output")
        code = output.state()
        try:
            return STATE_CODES[code]
        except KeyError:
            raise InvalidPlaybackStateError(code) from None

    def shuffle_enabled(self) -> bool:
        get_shuffle = self.api.require("get_shuffle", "get shuffle status")
        return get_shuffle() > 0

    def current_metadata(self) -> TrackMetadata:
        get_track = self.api.require("get_playing_track", "get playing track")
        track = get_track()
        if track is None:
            debug("[Metadata] Nothing playing")
            return {}
        return build_track_metadata(self.api, track, track.identifier)

    # Fixed properties

    @property
    def identity(self) -> str:
        return config.IDENTITY

    @property
    def desktop_entry(self) -> str:
        return config.DESKTOP_ENTRY

    @property
    def rate(self) -> float:
        return FIXED_RATE

    @property
    def volume(self) -> float:
        return FIXED_VOLUME

    @property
    def position(self) -> int:
        return FIXED_POSITION


class PlayerCommands:
    """Command sink: forwards MPRIS transport calls to the engine"""

    def __init__(self, api: EngineApi):
        self.api = api

    def send(self, kind: EventKind):
        send_command = self.api.require("send_command", "send engine command")
        log(f"[Control] Sending {kind.name}")
        send_command(int(kind))

    def pause(self):
        """Pause the output device, then tell the engine"""
        get_output = self.api.require("get_output", "get output device")
        output = get_output()
        if output is None:
            log("[Control] No output device, skipping device pause")
        else:
            if output.pause is None:
                raise MissingCapabilityError("pause", "pause on output")
            output.pause()
        self.send(EventKind.PAUSE)
