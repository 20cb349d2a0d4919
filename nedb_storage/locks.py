from __future__ import annotations

import threading
from pathlib import Path


class PathLockRegistry:
    """
    Provides a stable lock per normalized file path, so that every datastore or
    JSON collection file bound to the same path serializes its I/O.

    Locks are re-entrant: `Datastore.update` with upsert calls `insert`, and
    `JsonCollectionFile.modify` calls `load`/`save`, while already holding it.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[str, threading.RLock] = {}

    def lock_for(self, path: Path) -> threading.RLock:
        key = str(path.resolve())
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.RLock()
                self._locks[key] = lock
            return lock


GLOBAL_PATH_LOCKS = PathLockRegistry()
