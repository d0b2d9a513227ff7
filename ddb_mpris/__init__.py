"""
ddb-mpris: exposes the DeaDBeeF player engine as an MPRIS 2 media player
on the session D-Bus.

The host plugin shim builds an EngineApi from DeaDBeeF's function table,
then drives an MprisService:

    service = MprisService(api)
    service.init()
    service.start()                       # listen loop on its own thread
    service.handle_event(kind, ctx, p1, p2)  # from the engine message hook
    service.exit()
"""

from .engine import EngineApi, EventKind, OutputDevice, TagRecord, TrackHandle
from .service import MprisService

__all__ = [
    "EngineApi",
    "EventKind",
    "MprisService",
    "OutputDevice",
    "TagRecord",
    "TrackHandle",
]

__version__ = "1.0.0"
