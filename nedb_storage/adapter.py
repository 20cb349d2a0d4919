from __future__ import annotations

import logging
from typing import Any, AsyncIterator, Mapping

from settings import get_settings

from .datastore import ID_FIELD
from .errors import AlreadyExistsError, NotFoundError, UniqueConstraintError
from .handle import GLOBAL_STORE_HANDLES, StoreHandle
from .interfaces import StorageAdapter
from .models import Document, validate_document
from .paths import collection_path, nedb_root

logger = logging.getLogger(__name__)


def _strip_id(doc: dict[str, Any]) -> Document:
    doc.pop(ID_FIELD, None)
    return doc


class NeDbStorageAdapter(StorageAdapter):
    """
    Key/value document storage for one named collection, backed by an embedded
    datastore file at `<nedb_root>/<name>`.

    Keys are stored in the datastore's `_id` field, which never appears in the
    documents handed back to callers.

    Every adapter for the same collection file shares one StoreHandle, so two
    adapters created by `StorageRegistry.create` never see stale data.
    """

    def __init__(self, name: str, path: str | None = None, *, handle: StoreHandle | None = None):
        # `path` belongs to the filesystem adapter's signature; the datastore
        # location is always derived from the configured root.
        self.name = name
        if handle is None:
            settings = get_settings()
            handle = GLOBAL_STORE_HANDLES.handle_for(
                collection_path(nedb_root(), name),
                retry_delay=settings.load_retry_delay,
                max_attempts=settings.load_max_attempts,
                corrupt_alert_threshold=settings.corrupt_alert_threshold,
            )
        self._handle = handle

    @property
    def handle(self) -> StoreHandle:
        return self._handle

    def __aiter__(self) -> AsyncIterator[tuple[str, Document]]:
        return self.iterate()

    async def iterate(self) -> AsyncIterator[tuple[str, Document]]:
        db = await self.all()
        for key, doc in db.items():
            yield key, doc

    async def all(self) -> dict[str, Document]:
        docs = await self._handle.find({})
        data: dict[str, Document] = {}
        for doc in docs:
            key = doc[ID_FIELD]
            data[key] = _strip_id(doc)
        return data

    async def get(self, key: str) -> Document:
        docs = await self._handle.find({ID_FIELD: key})
        data = docs[0] if docs else None
        if data is None or data.get(ID_FIELD) != key:
            raise NotFoundError(key)
        return _strip_id(data)

    async def set(self, key: str, value: Mapping[str, Any]) -> Document:
        doc = validate_document(value)
        doc[ID_FIELD] = key
        await self._handle.update({ID_FIELD: key}, doc, upsert=True)
        return await self.get(key)

    async def insert(self, key: str, value: Mapping[str, Any]) -> Document:
        doc = validate_document(value)
        doc[ID_FIELD] = key
        try:
            inserted = await self._handle.insert(doc)
        except UniqueConstraintError as e:
            raise AlreadyExistsError(key) from e
        return _strip_id(inserted)

    async def update(self, key: str, value: Mapping[str, Any]) -> Document:
        patch = validate_document(value)
        if patch.pop(ID_FIELD, None) is not None:
            logger.debug("NEDB UPDATE: ignoring %s in patch for `%s`", ID_FIELD, key)
        if patch:
            replaced = await self._handle.update({ID_FIELD: key}, {"$set": patch})
        else:
            # an empty patch still has to report a missing key
            replaced = len(await self._handle.find({ID_FIELD: key}))
        if replaced == 0:
            raise NotFoundError(key)
        return await self.get(key)

    async def remove(self, key: str) -> None:
        removed = await self._handle.remove({ID_FIELD: key})
        if removed == 0:
            raise NotFoundError(key)
