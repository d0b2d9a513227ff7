"""
Engine events and the decode step at the ingestion boundary.

DeaDBeeF passes a context pointer whose shape depends on the event id.
The plugin shim converts it into one of the records below; decode_event()
checks the record against the kind before anything reads it.
"""

from dataclasses import dataclass
from typing import Any, Optional, Union

from .engine import EventKind, TrackHandle
from .errors import EventDecodeError, UnknownEventError


@dataclass
class EngineEvent:
    kind: int
    context: Any = None
    p1: int = 0
    p2: int = 0


@dataclass
class TrackChange:
    """ddb_event_trackchange_t"""

    from_track: Optional[TrackHandle]
    to_track: Optional[TrackHandle]
    playtime: float = 0.0
    started_timestamp: int = 0


@dataclass
class TrackEvent:
    """ddb_event_track_t"""

    track: Optional[TrackHandle]
    playtime: float = 0.0
    started_timestamp: int = 0


@dataclass
class PlayPosition:
    """ddb_event_playpos_t"""

    track: Optional[TrackHandle]
    playpos: float = 0.0


Payload = Union[TrackChange, TrackEvent, PlayPosition, None]

PAYLOAD_TYPES = {
    EventKind.SONGCHANGED: TrackChange,
    EventKind.SONGSTARTED: TrackEvent,
    EventKind.SONGFINISHED: TrackEvent,
    EventKind.TRACKINFOCHANGED: TrackEvent,
    EventKind.SEEKED: PlayPosition,
    EventKind.TRACKFOCUSCURRENT: TrackEvent,
    EventKind.CURSOR_MOVED: TrackEvent,
}


@dataclass
class DecodedEvent:
    kind: EventKind
    payload: Payload
    p1: int
    p2: int


def decode_event(event: EngineEvent) -> DecodedEvent:
    """
    Resolve the event kind and check its context against the payload type.

    Raises UnknownEventError for ids outside EventKind and EventDecodeError
    when a structured event carries the wrong record. Plain events ignore
    their context.
    """
    try:
        kind = EventKind(event.kind)
    except ValueError:
        raise UnknownEventError(event.kind) from None

    expected = PAYLOAD_TYPES.get(kind)
    if expected is None:
        return DecodedEvent(kind, None, event.p1, event.p2)

    if not isinstance(event.context, expected):
        raise EventDecodeError(
            f"{kind.name} expects {expected.__name__} context, got {type(event.context).__name__}"
        )
    return DecodedEvent(kind, event.context, event.p1, event.p2)
