from __future__ import annotations

from pathlib import Path

from settings import get_settings


def storage_root() -> Path:
    return Path(get_settings().storage_root)


def nedb_root() -> Path:
    return Path(get_settings().nedb_root)


def ensure_dir(path: Path) -> Path:
    path.mkdir(parents=True, exist_ok=True)
    return path


def check_collection_name(name: str) -> str:
    """
    A collection name maps to exactly one file directly under a storage root,
    so it must be a single, non-empty path segment.
    """
    if not isinstance(name, str) or not name.strip():
        raise ValueError("collection name is required")
    if "/" in name or "\\" in name or name in (".", ".."):
        raise ValueError(f"invalid collection name: {name!r}")
    return name


def collection_path(root: Path, name: str) -> Path:
    return root / check_collection_name(name)
