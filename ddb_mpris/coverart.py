"""Cover art lookup next to the playing file."""

from pathlib import Path
from typing import Optional, Union

from .log import debug, log

COVER_NAMES = ("folder.jpg", "folder.png")


def find_cover_art(track_path: Union[str, Path]) -> Optional[str]:
    """
    Return a file:// URI for folder.jpg/folder.png beside the track.
    Relative paths give None.

    Names match case-insensitively. Candidates are taken in sorted order so
    the result doesn't depend on directory enumeration order.
    """
    path = Path(track_path)
    if not path.is_absolute():
        # a relative path would resolve against our cwd, not the player's
        debug(f"[Artwork] Skipping relative path: {path}")
        return None

    directory = path.parent
    try:
        names = sorted(entry.name for entry in directory.iterdir() if entry.is_file())
    except OSError as e:
        log(f"[Artwork] Cannot list {directory}: {e}")
        return None

    for name in names:
        if name.lower() in COVER_NAMES:
            return f"file://{directory / name}"
    return None
