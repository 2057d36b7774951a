from __future__ import annotations

import asyncio
import threading
from pathlib import Path


class FileLockRegistry:
    """
    One threading lock per storage file, keyed by its resolved path.

    The disk storage runs in worker threads (asyncio.to_thread), so two stores pointed
    at the same directory still serialize their reads and writes of a given key file.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[Path, threading.Lock] = {}

    def lock_for(self, path: Path) -> threading.Lock:
        key = path.resolve()
        with self._guard:
            return self._locks.setdefault(key, threading.Lock())

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)


class CollectionLockRegistry:
    """
    One asyncio lock per collection name, so read-modify-write on a collection is serialized
    while different collections proceed independently.

    Must be used from a single event loop.
    """

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}

    def lock_for(self, collection: str) -> asyncio.Lock:
        lock = self._locks.get(collection)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[collection] = lock
        return lock


FILE_LOCKS = FileLockRegistry()
