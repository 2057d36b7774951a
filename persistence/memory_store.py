from __future__ import annotations

import threading

from .interfaces import KeyValueStorage


class MemoryKeyValueStorage(KeyValueStorage):
    """
    Process-local storage. Used when PERSIST_TO_DISK is off and in tests.
    """

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._lock = threading.Lock()
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = value

    def remove(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def keys(self) -> list[str]:
        with self._lock:
            return sorted(self._data)
