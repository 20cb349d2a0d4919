from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, AsyncIterator, Mapping

from .disk_store import JsonCollectionFile
from .errors import AlreadyExistsError, NotFoundError
from .interfaces import StorageAdapter
from .models import Document, validate_document
from .paths import collection_path, storage_root


class FileSystemStorageAdapter(StorageAdapter):
    """
    Filesystem-backed storage: the whole collection lives in one JSON object
    `{key: document}` at `path`.

    `path` defaults to `<storage_root>/<name>` and may be reassigned (import and
    export point it at another directory).

    File I/O runs in a worker thread so the event loop never blocks.
    """

    def __init__(self, name: str, path: str | Path | None = None):
        self.name = name
        self.path = Path(path) if path is not None else collection_path(storage_root(), name)

    def _file(self) -> JsonCollectionFile:
        return JsonCollectionFile(Path(self.path))

    def _read(self) -> dict[str, Document]:
        return self._file().load()

    def _modify(self, fn) -> Document:
        return dict(self._file().modify(fn))

    def __aiter__(self) -> AsyncIterator[tuple[str, Document]]:
        return self.iterate()

    async def iterate(self) -> AsyncIterator[tuple[str, Document]]:
        db = await self.all()
        for key, doc in db.items():
            yield key, doc

    async def all(self) -> dict[str, Document]:
        return await asyncio.to_thread(self._read)

    async def get(self, key: str) -> Document:
        data = await asyncio.to_thread(self._read)
        if key not in data:
            raise NotFoundError(key)
        return data[key]

    async def set(self, key: str, value: Mapping[str, Any]) -> Document:
        doc = validate_document(value)

        def _set(data: dict[str, Any]) -> Document:
            data[key] = doc
            return doc

        return await asyncio.to_thread(self._modify, _set)

    async def insert(self, key: str, value: Mapping[str, Any]) -> Document:
        doc = validate_document(value)

        def _insert(data: dict[str, Any]) -> Document:
            if key in data:
                raise AlreadyExistsError(key)
            data[key] = doc
            return doc

        return await asyncio.to_thread(self._modify, _insert)

    async def update(self, key: str, value: Mapping[str, Any]) -> Document:
        patch = validate_document(value)

        def _update(data: dict[str, Any]) -> Document:
            if key not in data:
                raise NotFoundError(key)
            data[key] = {**data[key], **patch}
            return data[key]

        return await asyncio.to_thread(self._modify, _update)

    async def remove(self, key: str) -> None:
        def _remove(data: dict[str, Any]) -> Document:
            if key not in data:
                raise NotFoundError(key)
            return data.pop(key)

        await asyncio.to_thread(self._modify, _remove)
