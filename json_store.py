from __future__ import annotations

import json
from pathlib import Path
from typing import Any


def read_text(path: Path) -> str | None:
    """
    Read a stored payload from disk.

    Returns None for missing or empty files. OS errors propagate.
    """
    if not path.exists():
        return None
    raw = path.read_text(encoding="utf-8")
    if not raw.strip():
        return None
    return raw


def atomic_write_text(path: Path, payload: str) -> None:
    """
    Atomically write text to disk by writing to a temp file then replacing.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    with tmp_path.open("w", encoding="utf-8") as f:
        f.write(payload)
    tmp_path.replace(path)


def remove_file(path: Path) -> None:
    path.unlink(missing_ok=True)


def dumps_records(records: list[dict[str, Any]]) -> str:
    # Compact, insertion-ordered keys: the payload is a cache of the mirror, not a human document.
    return json.dumps(records, ensure_ascii=False, separators=(",", ":"), allow_nan=False)


def loads_records(raw: str) -> list[dict[str, Any]]:
    """
    Parse a collection payload. Raises ValueError if it is not a JSON array of objects.
    """
    data = json.loads(raw)
    if not isinstance(data, list):
        raise ValueError(f"expected a JSON array, got {type(data).__name__}")
    for i, item in enumerate(data):
        if not isinstance(item, dict):
            raise ValueError(f"item {i} is {type(item).__name__}, expected an object")
    return data
