"""Scoped hold on the engine's playlist/metadata lock."""

from .engine import EngineApi


class MetadataLock:
    """
    Context manager around the engine's pl_lock/pl_unlock.

    Both capabilities are resolved before locking, so a host missing
    unlock() never leaves the engine locked. The lock is released on
    every exit path out of the with-block.
    """

    def __init__(self, api: EngineApi):
        self._lock = api.require("lock", "lock track metadata")
        self._unlock = api.require("unlock", "unlock track metadata")

    def __enter__(self):
        self._lock()
        return self

    def __exit__(self, exc_type, exc, tb):
        self._unlock()
        return False
