from __future__ import annotations

import copy
import json
import logging
import secrets
import string
from pathlib import Path
from typing import Any, Mapping

from json_store import append_json_lines, atomic_write_json_lines, iter_json_lines

from .errors import DatastoreError, DatastoreLoadError, InvalidFieldError, UniqueConstraintError
from .locks import GLOBAL_PATH_LOCKS

logger = logging.getLogger(__name__)

ID_FIELD = "_id"
DELETED_FIELD = "$$deleted"
MODIFIERS = ("$set", "$unset")

_ID_ALPHABET = string.ascii_letters + string.digits


def generate_id(length: int = 16) -> str:
    return "".join(secrets.choice(_ID_ALPHABET) for _ in range(length))


def matches(doc: Mapping[str, Any], query: Mapping[str, Any]) -> bool:
    """Exact field equality on every query field; an empty query matches everything."""
    for field, expected in query.items():
        if field not in doc or doc[field] != expected:
            return False
    return True


def check_field_names(value: Any) -> None:
    """
    Reject any field name, at any depth, that begins with `$`; those names are
    reserved for modifiers and journal markers.
    """
    if isinstance(value, Mapping):
        for field, item in value.items():
            if isinstance(field, str) and field.startswith("$"):
                raise InvalidFieldError(field)
            check_field_names(item)
    elif isinstance(value, list):
        for item in value:
            check_field_names(item)


def is_tombstone(doc: Mapping[str, Any]) -> bool:
    return set(doc) == {ID_FIELD, DELETED_FIELD} and doc[DELETED_FIELD] is True


def is_modifier(update: Mapping[str, Any]) -> bool:
    """
    True for `{"$set": {...}}`-style updates, False for replacement documents.
    Mixing modifiers with plain fields is rejected.
    """
    dollar = [k for k in update if k.startswith("$")]
    if not dollar:
        return False
    unknown = [k for k in dollar if k not in MODIFIERS]
    if len(dollar) != len(update):
        if unknown:
            # a replacement document carrying a reserved field name
            raise InvalidFieldError(unknown[0])
        raise ValueError("cannot mix modifiers and normal fields in an update")
    if unknown:
        raise ValueError(f"unknown modifier: {unknown[0]}")
    return True


def apply_modifier(doc: Mapping[str, Any], update: Mapping[str, Any]) -> dict[str, Any]:
    result = copy.deepcopy(dict(doc))
    for field, value in (update.get("$set") or {}).items():
        result[field] = copy.deepcopy(value)
    for field in (update.get("$unset") or {}):
        result.pop(field, None)
    return result


class Datastore:
    """
    Embedded document collection persisted to a single file.

    On-disk format is an append-only journal: one JSON document per line, the
    last line for a given `_id` wins and `{"_id": ..., "$$deleted": true}`
    removes it. The journal is compacted (one line per live document) every
    time it is loaded.

    All mutation happens under the per-path lock so that concurrent threads in
    one process never interleave journal writes.
    """

    def __init__(self, filename: Path, *, corrupt_alert_threshold: float = 0.1):
        self._path = Path(filename)
        self._corrupt_alert_threshold = corrupt_alert_threshold
        self._docs: dict[str, dict[str, Any]] = {}
        self._loaded = False

    @property
    def path(self) -> Path:
        return self._path

    @property
    def loaded(self) -> bool:
        return self._loaded

    def load_database(self) -> None:
        lock = GLOBAL_PATH_LOCKS.lock_for(self._path)
        with lock:
            docs: dict[str, dict[str, Any]] = {}
            total = 0
            corrupt = 0
            for lineno, line in iter_json_lines(self._path):
                total += 1
                try:
                    doc = json.loads(line)
                except ValueError:
                    corrupt += 1
                    logger.debug("DATASTORE LOAD: corrupt line %d in %s", lineno, self._path)
                    continue
                if not isinstance(doc, dict) or not isinstance(doc.get(ID_FIELD), str):
                    corrupt += 1
                    continue
                if is_tombstone(doc):
                    docs.pop(doc[ID_FIELD], None)
                else:
                    docs[doc[ID_FIELD]] = doc

            if total and corrupt / total > self._corrupt_alert_threshold:
                raise DatastoreLoadError(
                    f"{corrupt} of {total} lines in {self._path} are corrupt, "
                    f"more than the {self._corrupt_alert_threshold:.0%} threshold"
                )

            atomic_write_json_lines(self._path, docs.values())
            self._docs = docs
            self._loaded = True
        logger.debug("DATASTORE LOAD: %s (%d documents)", self._path, len(docs))

    def find(self, query: Mapping[str, Any]) -> list[dict[str, Any]]:
        self._ensure_loaded()
        with GLOBAL_PATH_LOCKS.lock_for(self._path):
            return [copy.deepcopy(d) for d in self._candidates(query)]

    def insert(self, doc: Mapping[str, Any]) -> dict[str, Any]:
        self._ensure_loaded()
        new_doc = copy.deepcopy(dict(doc))
        check_field_names(new_doc)
        if ID_FIELD not in new_doc:
            new_doc[ID_FIELD] = generate_id()
        doc_id = new_doc[ID_FIELD]
        if not isinstance(doc_id, str):
            raise ValueError("_id must be a string")

        with GLOBAL_PATH_LOCKS.lock_for(self._path):
            if doc_id in self._docs:
                raise UniqueConstraintError(doc_id)
            append_json_lines(self._path, [new_doc])
            self._docs[doc_id] = new_doc
        return copy.deepcopy(new_doc)

    def update(
        self,
        query: Mapping[str, Any],
        update: Mapping[str, Any],
        *,
        upsert: bool = False,
        multi: bool = False,
    ) -> int:
        self._ensure_loaded()
        modifier = is_modifier(update)
        check_field_names((update.get("$set") or {}) if modifier else update)

        with GLOBAL_PATH_LOCKS.lock_for(self._path):
            targets = self._candidates(query)
            if not multi:
                targets = targets[:1]

            if not targets:
                if not upsert:
                    return 0
                self.insert(self._upsert_document(query, update, modifier))
                return 1

            written: list[dict[str, Any]] = []
            for old in targets:
                if modifier:
                    new_doc = apply_modifier(old, update)
                else:
                    new_doc = copy.deepcopy(dict(update))
                    new_doc.setdefault(ID_FIELD, old[ID_FIELD])
                if new_doc.get(ID_FIELD) != old[ID_FIELD]:
                    raise ValueError("cannot change a document's _id")
                written.append(new_doc)

            append_json_lines(self._path, written)
            for new_doc in written:
                self._docs[new_doc[ID_FIELD]] = new_doc
            return len(written)

    def remove(self, query: Mapping[str, Any], *, multi: bool = False) -> int:
        self._ensure_loaded()
        with GLOBAL_PATH_LOCKS.lock_for(self._path):
            targets = self._candidates(query)
            if not multi:
                targets = targets[:1]
            if not targets:
                return 0
            ids = [d[ID_FIELD] for d in targets]
            append_json_lines(self._path, [{ID_FIELD: i, DELETED_FIELD: True} for i in ids])
            for i in ids:
                self._docs.pop(i, None)
            return len(ids)

    def count(self) -> int:
        self._ensure_loaded()
        return len(self._docs)

    def _candidates(self, query: Mapping[str, Any]) -> list[dict[str, Any]]:
        doc_id = query.get(ID_FIELD)
        if isinstance(doc_id, str):
            # direct index hit
            doc = self._docs.get(doc_id)
            return [doc] if doc is not None and matches(doc, query) else []
        return [d for d in self._docs.values() if matches(d, query)]

    def _upsert_document(
        self, query: Mapping[str, Any], update: Mapping[str, Any], modifier: bool
    ) -> dict[str, Any]:
        if modifier:
            base = {k: v for k, v in query.items() if not k.startswith("$")}
            return apply_modifier(base, update)
        doc = copy.deepcopy(dict(update))
        if ID_FIELD not in doc and isinstance(query.get(ID_FIELD), str):
            doc[ID_FIELD] = query[ID_FIELD]
        return doc

    def _ensure_loaded(self) -> None:
        if not self._loaded:
            raise DatastoreError(f"datastore {self._path} is not loaded")
