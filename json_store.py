from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Iterable, Iterator

logger = logging.getLogger(__name__)


def read_json(path: Path) -> Any | None:
    """
    Read JSON from disk.

    Returns None for missing files, empty files, or invalid JSON.
    """
    try:
        if not path.exists():
            return None
        raw = path.read_text(encoding="utf-8")
        if not raw.strip():
            return None
        return json.loads(raw)
    except (OSError, ValueError) as e:
        logger.warning("JSON READ: failed to read %s: %r", path, e)
        return None


def atomic_write_json(path: Path, payload: Any, *, indent: int = 2, sort_keys: bool = True) -> None:
    """
    Atomically write JSON to disk by writing to a temp file then replacing.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    with tmp_path.open("w", encoding="utf-8") as f:
        json.dump(payload, f, indent=indent, sort_keys=sort_keys)
        f.write("\n")
    tmp_path.replace(path)


def iter_json_lines(path: Path) -> Iterator[tuple[int, str]]:
    """
    Yield (line_number, raw_line) for every non-blank line of a newline-delimited file.

    Missing files yield nothing. Unlike read_json, OSErrors propagate.
    """
    if not path.exists():
        return
    with path.open("r", encoding="utf-8") as f:
        for lineno, line in enumerate(f, start=1):
            if line.strip():
                yield lineno, line


def dump_json_line(payload: Any) -> str:
    return json.dumps(payload, separators=(",", ":"), ensure_ascii=False) + "\n"


def atomic_write_json_lines(path: Path, payloads: Iterable[Any]) -> None:
    """
    Atomically replace a newline-delimited JSON file, one payload per line.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_name(path.name + "~")
    with tmp_path.open("w", encoding="utf-8") as f:
        for payload in payloads:
            f.write(dump_json_line(payload))
    tmp_path.replace(path)


def append_json_lines(path: Path, payloads: Iterable[Any]) -> None:
    """
    Append payloads to a newline-delimited JSON file (created if missing).
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("a", encoding="utf-8") as f:
        for payload in payloads:
            f.write(dump_json_line(payload))
