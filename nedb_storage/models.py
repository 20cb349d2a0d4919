from __future__ import annotations

from typing import Any, Literal, Mapping

from pydantic import BaseModel, JsonValue, TypeAdapter

from .datastore import check_field_names
from .errors import InvalidDocumentError, InvalidFieldError

Document = dict[str, Any]

_DOCUMENT_ADAPTER: TypeAdapter[dict[str, JsonValue]] = TypeAdapter(dict[str, JsonValue])


def validate_document(doc: Mapping[str, Any]) -> Document:
    """
    Check that a caller-supplied document is a JSON-serializable mapping whose
    field names do not begin with `$`, and return a detached copy of it.

    Raises pydantic.ValidationError for non-JSON input and InvalidDocumentError
    for reserved field names. Every adapter write path goes through here.
    """
    validated = _DOCUMENT_ADAPTER.validate_python(dict(doc) if isinstance(doc, Mapping) else doc)
    try:
        check_field_names(validated)
    except InvalidFieldError as e:
        raise InvalidDocumentError(str(e)) from e
    return validated


class TransferReport(BaseModel):
    """Outcome of one import/export run."""

    name: str
    direction: Literal["import", "export"]
    source: str
    destination: str
    count: int = 0

    @property
    def empty(self) -> bool:
        return self.count == 0
