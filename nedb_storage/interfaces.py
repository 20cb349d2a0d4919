from __future__ import annotations

from typing import Any, AsyncIterator, Protocol


class KeyValueDocumentStore(Protocol):
    """
    Minimal file-friendly interface: a single JSON-like document persisted under a path.
    """

    def load(self) -> dict[str, Any]:
        """Load and return the full document (never None)."""
        ...

    def save(self, doc: dict[str, Any]) -> None:
        """Persist the full document atomically."""
        ...


class TransferableCollection(Protocol):
    """
    The capability import/export needs from either side: a full scan and an upsert.
    """

    async def all(self) -> dict[str, dict[str, Any]]: ...
    async def set(self, key: str, value: dict[str, Any]) -> dict[str, Any]: ...


class StorageAdapter(TransferableCollection, Protocol):
    """
    Host-level key/value document contract shared by every storage backend.

    get/update/remove raise NotFoundError for absent keys; insert raises
    AlreadyExistsError for present ones.
    """

    name: str

    async def get(self, key: str) -> dict[str, Any]: ...
    async def insert(self, key: str, value: dict[str, Any]) -> dict[str, Any]: ...
    async def update(self, key: str, value: dict[str, Any]) -> dict[str, Any]: ...
    async def remove(self, key: str) -> None: ...
    def iterate(self) -> AsyncIterator[tuple[str, dict[str, Any]]]: ...
