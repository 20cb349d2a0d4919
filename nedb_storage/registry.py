from __future__ import annotations

import logging
from typing import Callable

from .adapter import NeDbStorageAdapter
from .fs_adapter import FileSystemStorageAdapter
from .interfaces import StorageAdapter

logger = logging.getLogger(__name__)

MIN_HOST_VERSION = (0, 7)

AdapterFactory = Callable[..., StorageAdapter]


def _parse_version(version: str) -> tuple[int, ...]:
    parts: list[int] = []
    for piece in version.strip().lstrip("v").split("."):
        digits = "".join(ch for ch in piece if ch.isdigit())
        if not digits:
            break
        parts.append(int(digits))
    return tuple(parts)


class StorageRegistry:
    """
    The host's "storage" extension point: `adapter` is the class every
    `create(name)` call instantiates. Plugins replace it.
    """

    def __init__(self, adapter: AdapterFactory = FileSystemStorageAdapter, *, version: str | None = None) -> None:
        self.adapter = adapter
        self.version = version

    def create(self, name: str, path: str | None = None) -> StorageAdapter:
        return self.adapter(name, path)


def install(storage: StorageRegistry) -> None:
    """
    Register the datastore-backed adapter with the host storage registry.
    """
    if not storage.version:
        raise RuntimeError("unsupported version of `whaler` installed, require `whaler@>=0.7`")
    if _parse_version(storage.version) < MIN_HOST_VERSION:
        raise RuntimeError(
            f"unsupported version of `whaler` installed ({storage.version}), require `whaler@>=0.7`"
        )
    storage.adapter = NeDbStorageAdapter
    logger.debug("STORAGE: adapter set to %s", NeDbStorageAdapter.__name__)


STORAGE = StorageRegistry(version="0.7.0")
install(STORAGE)
