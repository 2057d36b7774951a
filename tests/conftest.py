from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path
import sys


import pytest


# Ensure the repository root (parent of ./tests) is importable during pytest collection.
# This avoids ModuleNotFoundError for imports like `import persistence...` under pytest import modes
# that don't automatically prepend the cwd/rootdir to sys.path.
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))


from persistence.adapters import AsyncStorageAdapter  # noqa: E402
from persistence.document_store import DocumentStore  # noqa: E402
from persistence.memory_store import MemoryKeyValueStorage  # noqa: E402


class FakeClock:
    def __init__(self, start: datetime) -> None:
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> None:
        self.current = self.current + timedelta(**kwargs)


class FlakyStorage(MemoryKeyValueStorage):
    """
    Memory storage that raises OSError for selected keys, to exercise failure paths.
    """

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        super().__init__(initial)
        self.fail_reads: set[str] = set()
        self.fail_writes: set[str] = set()
        self.fail_removes: set[str] = set()
        self.writes: list[str] = []

    def get(self, key: str) -> str | None:
        if key in self.fail_reads:
            raise OSError(f"read failed for {key}")
        return super().get(key)

    def set(self, key: str, value: str) -> None:
        if key in self.fail_writes:
            raise OSError(f"write failed for {key}")
        self.writes.append(key)
        super().set(key, value)

    def remove(self, key: str) -> None:
        if key in self.fail_removes:
            raise OSError(f"remove failed for {key}")
        super().remove(key)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2025, 3, 14, 9, 30, tzinfo=timezone.utc))


@pytest.fixture
def storage() -> FlakyStorage:
    return FlakyStorage()


@pytest.fixture
def store(storage: FlakyStorage, clock: FakeClock) -> DocumentStore:
    return DocumentStore(AsyncStorageAdapter(storage), clock=clock)


@pytest.fixture
def sandbox_project(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    """
    Redirect persistence paths to a temp project directory so tests never touch real ./data.
    """
    import persistence.paths as paths

    def _project_root() -> Path:
        return tmp_path

    def _data_dir() -> Path:
        p = tmp_path / "data"
        p.mkdir(parents=True, exist_ok=True)
        return p

    monkeypatch.setattr(paths, "project_root", _project_root)
    monkeypatch.setattr(paths, "data_dir", _data_dir)
    monkeypatch.delenv("STORE_DATA_DIR", raising=False)
    return tmp_path
