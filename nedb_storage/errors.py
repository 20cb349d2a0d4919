from __future__ import annotations

ERR_NOT_FOUND = "ERR_NOT_FOUND"
ERR_ALREADY_EXISTS = "ERR_ALREADY_EXISTS"
ERR_LOAD_FAILED = "ERR_LOAD_FAILED"
ERR_INVALID_DOCUMENT = "ERR_INVALID_DOCUMENT"


class StorageError(Exception):
    """Error surfaced by a storage adapter; `code` is stable and machine-readable."""

    def __init__(self, message: str, code: str):
        super().__init__(message)
        self.code = code


class NotFoundError(StorageError):
    def __init__(self, key: str):
        super().__init__(f"`{key}` not found.", ERR_NOT_FOUND)
        self.key = key


class AlreadyExistsError(StorageError):
    def __init__(self, key: str):
        super().__init__(f"`{key}` already exists.", ERR_ALREADY_EXISTS)
        self.key = key


class LoadFailedError(StorageError):
    def __init__(self, path: str, attempts: int):
        super().__init__(f"`{path}` could not be loaded after {attempts} attempt(s).", ERR_LOAD_FAILED)
        self.path = path
        self.attempts = attempts


class InvalidDocumentError(StorageError):
    def __init__(self, message: str):
        super().__init__(message, ERR_INVALID_DOCUMENT)


class DatastoreError(Exception):
    """Raised by the embedded datastore itself."""


class DatastoreLoadError(DatastoreError):
    pass


class UniqueConstraintError(DatastoreError):
    def __init__(self, doc_id: str):
        super().__init__(f"unique constraint violated for _id {doc_id!r}")
        self.doc_id = doc_id


class InvalidFieldError(DatastoreError, ValueError):
    def __init__(self, field: str):
        super().__init__(f"field names cannot begin with the $ character: {field!r}")
        self.field = field
