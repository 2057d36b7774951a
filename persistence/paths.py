from __future__ import annotations

from pathlib import Path

TABLES_SUBDIR = "tables"


def project_root() -> Path:
    return Path(__file__).resolve().parents[1]


def ensure_dir(path: Path) -> Path:
    path.mkdir(parents=True, exist_ok=True)
    return path


def data_dir() -> Path:
    """Default data root (`<project root>/data`), used when STORE_DATA_DIR is unset."""
    return ensure_dir(project_root() / "data")


def tables_dir(base: Path | None = None) -> Path:
    """
    Directory holding one JSON file per collection key (`<base>/tables/table_orders.json`).
    `base` falls back to data_dir().
    """
    root = data_dir() if base is None else Path(base).expanduser()
    return ensure_dir(root / TABLES_SUBDIR)
