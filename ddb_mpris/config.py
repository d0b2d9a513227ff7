"""Runtime configuration: protocol constants plus environment overrides."""

import os
import sys
from typing import Optional

# MPRIS / D-Bus constants
OBJECT_PATH = "/org/mpris/MediaPlayer2"
ROOT_IFACE = "org.mpris.MediaPlayer2"
PLAYER_IFACE = "org.mpris.MediaPlayer2.Player"
PROPERTIES_IFACE = "org.freedesktop.DBus.Properties"
TRACK_ID_PREFIX = "/org/mpris/MediaPlayer2/tracks"

IDENTITY = "DeaDBeeF"
DESKTOP_ENTRY = "deadbeef"

DEFAULT_BUS_NAME = "org.mpris.MediaPlayer2.DeaDBeeF"
DEFAULT_LISTEN_INTERVAL_MS = 100

_TRUTHY = ("1", "true", "yes", "on")


def _env_flag(name: str) -> bool:
    return os.environ.get(name, "").strip().lower() in _TRUTHY


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        value = 0
    if value <= 0:
        # log imports config, so report through stderr directly
        print(f"[Config] Ignoring {name}={raw!r}, using {default}", file=sys.stderr, flush=True)
        return default
    return value


BUS_NAME = os.environ.get("DDB_MPRIS_BUS_NAME", DEFAULT_BUS_NAME)
LOG_FILE: Optional[str] = os.environ.get("DDB_MPRIS_LOG_FILE") or None
DEBUG = _env_flag("DDB_MPRIS_DEBUG")
LISTEN_INTERVAL_MS = _env_int("DDB_MPRIS_LISTEN_INTERVAL_MS", DEFAULT_LISTEN_INTERVAL_MS)
