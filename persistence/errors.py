from __future__ import annotations


class StorageError(Exception):
    """
    Base class for every failure the document store surfaces.

    Carries the offending collection and record id (when known) so callers can
    report which data could not be loaded or saved.
    """

    def __init__(self, message: str, *, collection: str | None = None, record_id: str | None = None):
        super().__init__(message)
        self.collection = collection
        self.record_id = record_id


class AdapterIOError(StorageError):
    """The underlying key/value persistence failed."""

    def __init__(self, message: str, *, key: str, collection: str | None = None):
        super().__init__(message, collection=collection)
        self.key = key


class SerializationError(StorageError):
    """A stored payload is malformed, or a record cannot be represented as JSON."""


class RecordNotFoundError(StorageError):
    def __init__(self, collection: str, record_id: str):
        super().__init__(
            f"Record with id {record_id} not found in {collection}",
            collection=collection,
            record_id=record_id,
        )


class DuplicateIdError(StorageError):
    def __init__(self, collection: str, record_id: str):
        super().__init__(
            f"Record with id {record_id} already exists in {collection}",
            collection=collection,
            record_id=record_id,
        )


class ImmutableFieldError(StorageError):
    def __init__(self, collection: str, record_id: str, field: str):
        super().__init__(
            f"Field {field!r} of {collection}/{record_id} cannot be changed",
            collection=collection,
            record_id=record_id,
        )
        self.field = field


class InitializationError(StorageError):
    """Initialization could not leave every known collection persisted."""
