from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, TypeVar

from json_store import atomic_write_json, read_json

from .interfaces import KeyValueDocumentStore
from .locks import GLOBAL_PATH_LOCKS

T = TypeVar("T")


class JsonCollectionFile(KeyValueDocumentStore):
    """
    A whole collection `{key: document}` stored as one JSON object at a fixed path.

    - Always loads a dict of dicts (empty on missing/invalid JSON, non-object
      entries are dropped).
    - Writes atomically, under the per-path lock.
    """

    def __init__(self, path: Path):
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> dict[str, dict[str, Any]]:
        with GLOBAL_PATH_LOCKS.lock_for(self._path):
            raw = read_json(self._path)
        if not isinstance(raw, dict):
            return {}
        return {str(k): v for k, v in raw.items() if isinstance(v, dict)}

    def save(self, doc: dict[str, Any]) -> None:
        with GLOBAL_PATH_LOCKS.lock_for(self._path):
            atomic_write_json(self._path, doc)

    def modify(self, fn: Callable[[dict[str, dict[str, Any]]], T]) -> T:
        """
        Load, apply `fn` in place, save. If `fn` raises, nothing is written.
        """
        with GLOBAL_PATH_LOCKS.lock_for(self._path):
            docs = self.load()
            result = fn(docs)
            self.save(docs)
            return result
