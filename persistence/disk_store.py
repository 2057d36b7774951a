from __future__ import annotations

import re
from pathlib import Path

from json_store import atomic_write_text, read_text, remove_file

from .interfaces import KeyValueStorage
from .locks import FILE_LOCKS

KEY_RE = re.compile(r"^[A-Za-z0-9_.-]+$")


class DiskKeyValueStorage(KeyValueStorage):
    """
    Stores each key as a single file under a base directory:

    - data/tables/table_rooms.json
    - data/tables/table_orders.json

    Writes are atomic (temp file + replace) and serialized per path.
    """

    def __init__(self, base_dir: Path):
        self._base_dir = base_dir

    @property
    def base_dir(self) -> Path:
        return self._base_dir

    def path_for(self, key: str) -> Path:
        if not KEY_RE.match(key) or key in (".", ".."):
            raise ValueError(f"invalid storage key: {key!r}")
        return self._base_dir / f"{key}.json"

    def get(self, key: str) -> str | None:
        path = self.path_for(key)
        with FILE_LOCKS.lock_for(path):
            return read_text(path)

    def set(self, key: str, value: str) -> None:
        path = self.path_for(key)
        with FILE_LOCKS.lock_for(path):
            atomic_write_text(path, value)

    def remove(self, key: str) -> None:
        path = self.path_for(key)
        with FILE_LOCKS.lock_for(path):
            remove_file(path)
