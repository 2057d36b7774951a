from __future__ import annotations

from typing import Protocol


class KeyValueStorage(Protocol):
    """
    Minimal synchronous medium: one string payload persisted under a key.
    """

    def get(self, key: str) -> str | None:
        """Return the stored payload, or None if the key has never been written."""
        ...

    def set(self, key: str, value: str) -> None:
        """Persist the full payload atomically."""
        ...

    def remove(self, key: str) -> None:
        """Forget the key. Removing an absent key is not an error."""
        ...


class AsyncKeyValueAdapter(Protocol):
    """
    What the document store consumes. Every call may suspend; none is retried by the store.
    """

    async def get(self, key: str) -> str | None: ...
    async def set(self, key: str, value: str) -> None: ...
    async def remove(self, key: str) -> None: ...
