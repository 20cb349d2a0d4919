from __future__ import annotations

import asyncio
import logging
import threading
from pathlib import Path
from typing import Any, Mapping

from .datastore import Datastore
from .errors import LoadFailedError

logger = logging.getLogger(__name__)

DEFAULT_RETRY_DELAY = 0.1


class StoreHandle:
    """
    Lazily loaded connection to one datastore file.

    The file is loaded on the first `open()`. A failed load (typically the file
    being held by a concurrent loader) is retried after a fixed delay; with
    `max_attempts=None` it is retried forever, otherwise LoadFailedError is
    raised once the attempts are used up. Once loaded, `open()` returns the
    cached datastore without touching the file.
    """

    def __init__(
        self,
        path: Path,
        *,
        retry_delay: float = DEFAULT_RETRY_DELAY,
        max_attempts: int | None = None,
        corrupt_alert_threshold: float = 0.1,
    ) -> None:
        if max_attempts is not None and max_attempts < 1:
            raise ValueError("max_attempts must be positive or None")
        self._datastore = Datastore(path, corrupt_alert_threshold=corrupt_alert_threshold)
        self._retry_delay = retry_delay
        self._max_attempts = max_attempts
        self._open_lock: asyncio.Lock | None = None
        self._open_lock_loop: asyncio.AbstractEventLoop | None = None

    @property
    def path(self) -> Path:
        return self._datastore.path

    @property
    def loaded(self) -> bool:
        return self._datastore.loaded

    async def open(self) -> Datastore:
        if self._datastore.loaded:
            return self._datastore

        async with self._lock_for_running_loop():
            attempts = 0
            while not self._datastore.loaded:
                attempts += 1
                try:
                    await asyncio.to_thread(self._datastore.load_database)
                except Exception as e:
                    if self._max_attempts is not None and attempts >= self._max_attempts:
                        logger.error("DATASTORE OPEN: giving up on %s after %d attempt(s)", self.path, attempts)
                        raise LoadFailedError(str(self.path), attempts) from e
                    logger.warning("DATASTORE OPEN: failed to load %s (attempt %d): %r", self.path, attempts, e)
                    await asyncio.sleep(self._retry_delay)
        return self._datastore

    def _lock_for_running_loop(self) -> asyncio.Lock:
        # shared handles outlive a single asyncio.run(); keep one lock per loop
        loop = asyncio.get_running_loop()
        if self._open_lock is None or self._open_lock_loop is not loop:
            self._open_lock = asyncio.Lock()
            self._open_lock_loop = loop
        return self._open_lock

    async def find(self, query: Mapping[str, Any]) -> list[dict[str, Any]]:
        ds = await self.open()
        return await asyncio.to_thread(ds.find, query)

    async def insert(self, doc: Mapping[str, Any]) -> dict[str, Any]:
        ds = await self.open()
        return await asyncio.to_thread(ds.insert, doc)

    async def update(self, query: Mapping[str, Any], update: Mapping[str, Any], *, upsert: bool = False) -> int:
        ds = await self.open()
        return await asyncio.to_thread(ds.update, query, update, upsert=upsert)

    async def remove(self, query: Mapping[str, Any]) -> int:
        ds = await self.open()
        return await asyncio.to_thread(ds.remove, query)


class StoreHandleRegistry:
    """
    One StoreHandle per resolved datastore path, shared by every adapter in the
    process, so that all of them see a single in-memory index per file.

    The options of the first caller for a path win.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._handles: dict[str, StoreHandle] = {}

    def handle_for(self, path: Path, **options: Any) -> StoreHandle:
        key = str(Path(path).resolve())
        with self._guard:
            handle = self._handles.get(key)
            if handle is None:
                handle = StoreHandle(path, **options)
                self._handles[key] = handle
            return handle

    def clear(self) -> None:
        """Forget every handle; the next adapter reloads its file from disk."""
        with self._guard:
            self._handles.clear()


GLOBAL_STORE_HANDLES = StoreHandleRegistry()
