"""
Typed view of the DeaDBeeF engine as seen by the bridge.

The host plugin shim fills an EngineApi with callables wrapping the
engine's function table. Any of them may be None when the host does not
provide it; callers go through EngineApi.require() so that a missing
capability fails only the operation that needed it.
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Callable, Optional

from .errors import MissingCapabilityError


class EventKind(IntEnum):
    """DeaDBeeF message ids (DB_EV_*)"""

    NEXT = 1
    PREV = 2
    PLAY_CURRENT = 3
    PLAY_NUM = 4
    STOP = 5
    PAUSE = 6
    PLAY_RANDOM = 7
    TERMINATE = 8
    PLAYLIST_REFRESH = 9
    REINIT_SOUND = 10
    CONFIGCHANGED = 11
    TOGGLE_PAUSE = 12
    ACTIVATED = 13
    PAUSED = 14
    PLAYLISTCHANGED = 15
    VOLUMECHANGED = 16
    OUTPUTCHANGED = 17
    PLAYLISTSWITCHED = 18
    SEEK = 19
    ACTIONSCHANGED = 20
    DSPCHAINCHANGED = 21
    SELCHANGED = 22
    PLUGINSLOADED = 23
    FOCUS_SELECTION = 24

    # Structured events, context points at a typed record
    SONGCHANGED = 1000
    SONGSTARTED = 1001
    SONGFINISHED = 1002
    TRACKINFOCHANGED = 1004
    SEEKED = 1005
    TRACKFOCUSCURRENT = 1006
    CURSOR_MOVED = 1007


# Output device state codes (DDB_PLAYBACK_STATE_*)
STATE_STOPPED = 0
STATE_PLAYING = 1
STATE_PAUSED = 2


@dataclass(frozen=True)
class TrackHandle:
    """Engine-owned track; identifier is supplied by the host"""

    identifier: int
    ref: Any = None


@dataclass
class TagRecord:
    """One key/value metadata entry, linked to the next (None terminates)"""

    key: str
    value: str
    next: Optional["TagRecord"] = None


@dataclass
class OutputDevice:
    pause: Optional[Callable[[], Any]] = None
    state: Optional[Callable[[], int]] = None


@dataclass
class EngineApi:
    """Capability table handed to the bridge by the plugin shim"""

    send_command: Optional[Callable[[int], Any]] = None
    get_output: Optional[Callable[[], Optional[OutputDevice]]] = None
    get_playing_track: Optional[Callable[[], Optional[TrackHandle]]] = None
    get_metadata_head: Optional[Callable[[TrackHandle], Optional[TagRecord]]] = None
    lock: Optional[Callable[[], Any]] = None
    unlock: Optional[Callable[[], Any]] = None
    get_shuffle: Optional[Callable[[], int]] = None

    def require(self, capability: str, action: str) -> Callable:
        """Return the named capability or raise MissingCapabilityError"""
        fn = getattr(self, capability, None)
        if fn is None:
            raise MissingCapabilityError(capability, action)
        return fn
