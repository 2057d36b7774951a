from __future__ import annotations

from .adapters import AsyncStorageAdapter, disk_adapter, memory_adapter
from .disk_store import DiskKeyValueStorage
from .document_store import DocumentStore
from .errors import (
    AdapterIOError,
    DuplicateIdError,
    ImmutableFieldError,
    InitializationError,
    RecordNotFoundError,
    SerializationError,
    StorageError,
)
from .interfaces import AsyncKeyValueAdapter, KeyValueStorage
from .memory_store import MemoryKeyValueStorage
from .records import DashboardStats, OrderBy, SelectOptions

__all__ = [
    "AsyncKeyValueAdapter",
    "AsyncStorageAdapter",
    "DiskKeyValueStorage",
    "DocumentStore",
    "KeyValueStorage",
    "MemoryKeyValueStorage",
    "disk_adapter",
    "memory_adapter",
    "DashboardStats",
    "OrderBy",
    "SelectOptions",
    "StorageError",
    "AdapterIOError",
    "SerializationError",
    "RecordNotFoundError",
    "DuplicateIdError",
    "ImmutableFieldError",
    "InitializationError",
]
