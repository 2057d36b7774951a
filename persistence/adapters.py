from __future__ import annotations

import asyncio
from pathlib import Path

from .disk_store import DiskKeyValueStorage
from .errors import AdapterIOError
from .interfaces import AsyncKeyValueAdapter, KeyValueStorage
from .memory_store import MemoryKeyValueStorage


class AsyncStorageAdapter(AsyncKeyValueAdapter):
    """
    Async wrapper around a synchronous key/value storage.
    Uses asyncio.to_thread to avoid blocking the event loop on file I/O.

    OS-level failures surface as AdapterIOError carrying the key.
    """

    def __init__(self, storage: KeyValueStorage) -> None:
        self._storage = storage

    @property
    def storage(self) -> KeyValueStorage:
        return self._storage

    async def get(self, key: str) -> str | None:
        try:
            return await asyncio.to_thread(self._storage.get, key)
        except OSError as e:
            raise AdapterIOError(f"failed to read {key}: {e}", key=key) from e

    async def set(self, key: str, value: str) -> None:
        try:
            await asyncio.to_thread(self._storage.set, key, value)
        except OSError as e:
            raise AdapterIOError(f"failed to write {key}: {e}", key=key) from e

    async def remove(self, key: str) -> None:
        try:
            await asyncio.to_thread(self._storage.remove, key)
        except OSError as e:
            raise AdapterIOError(f"failed to remove {key}: {e}", key=key) from e


def disk_adapter(base_dir: Path) -> AsyncStorageAdapter:
    return AsyncStorageAdapter(DiskKeyValueStorage(base_dir))


def memory_adapter(initial: dict[str, str] | None = None) -> AsyncStorageAdapter:
    return AsyncStorageAdapter(MemoryKeyValueStorage(initial))
