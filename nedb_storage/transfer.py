from __future__ import annotations

import logging
from pathlib import Path

from .fs_adapter import FileSystemStorageAdapter
from .interfaces import TransferableCollection
from .models import TransferReport
from .registry import STORAGE, StorageRegistry

logger = logging.getLogger(__name__)


async def transfer(source: TransferableCollection, destination: TransferableCollection) -> int:
    """
    Copy every entry of `source` into `destination`, one awaited `set` at a time.

    Returns the number of keys written; 0 means the source had no data and
    nothing was written. A failing `set` aborts the run and propagates, leaving
    the keys already written in place.
    """
    db = await source.all()
    if not db:
        logger.warning("TRANSFER: no data in %r", getattr(source, "name", source))
        return 0

    count = 0
    for key, doc in db.items():
        await destination.set(key, doc)
        count += 1
    logger.debug("TRANSFER: wrote %d key(s)", count)
    return count


def _fs_adapter(name: str, base: str | None) -> FileSystemStorageAdapter:
    fs_adapter = FileSystemStorageAdapter(name)
    if base:
        fs_adapter.path = Path(base).resolve() / name
    return fs_adapter


async def import_collection(
    name: str, import_path: str | None = None, *, storage: StorageRegistry = STORAGE
) -> TransferReport:
    """Filesystem collection `name` (optionally under `import_path`) -> storage collection `name`."""
    nedb_adapter = storage.create(name)
    fs_adapter = _fs_adapter(name, import_path)

    count = await transfer(fs_adapter, nedb_adapter)
    return TransferReport(
        name=name,
        direction="import",
        source=str(fs_adapter.path),
        destination=name,
        count=count,
    )


async def export_collection(
    name: str, export_path: str | None = None, *, storage: StorageRegistry = STORAGE
) -> TransferReport:
    """Storage collection `name` -> filesystem collection `name` (optionally under `export_path`)."""
    nedb_adapter = storage.create(name)
    fs_adapter = _fs_adapter(name, export_path)

    count = await transfer(nedb_adapter, fs_adapter)
    return TransferReport(
        name=name,
        direction="export",
        source=name,
        destination=str(fs_adapter.path),
        count=count,
    )
