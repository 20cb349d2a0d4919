from __future__ import annotations

from .adapter import NeDbStorageAdapter
from .datastore import Datastore
from .errors import (
    ERR_ALREADY_EXISTS,
    ERR_INVALID_DOCUMENT,
    ERR_LOAD_FAILED,
    ERR_NOT_FOUND,
    AlreadyExistsError,
    InvalidDocumentError,
    LoadFailedError,
    NotFoundError,
    StorageError,
)
from .fs_adapter import FileSystemStorageAdapter
from .handle import GLOBAL_STORE_HANDLES, StoreHandle
from .registry import STORAGE, StorageRegistry, install
from .transfer import export_collection, import_collection, transfer

__all__ = [
    "NeDbStorageAdapter",
    "FileSystemStorageAdapter",
    "Datastore",
    "StoreHandle",
    "GLOBAL_STORE_HANDLES",
    "StorageError",
    "NotFoundError",
    "AlreadyExistsError",
    "LoadFailedError",
    "InvalidDocumentError",
    "ERR_NOT_FOUND",
    "ERR_ALREADY_EXISTS",
    "ERR_LOAD_FAILED",
    "ERR_INVALID_DOCUMENT",
    "STORAGE",
    "StorageRegistry",
    "install",
    "transfer",
    "import_collection",
    "export_collection",
]
