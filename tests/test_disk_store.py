from __future__ import annotations

import asyncio
import json
from pathlib import Path

import pytest

from persistence.adapters import AsyncStorageAdapter, disk_adapter
from persistence.disk_store import DiskKeyValueStorage
from persistence.document_store import DocumentStore
from persistence.errors import AdapterIOError
from persistence.locks import FileLockRegistry
from persistence.paths import tables_dir


def test_disk_storage_roundtrip(tmp_path: Path):
    storage = DiskKeyValueStorage(tmp_path / "tables")

    assert storage.get("table_rooms") is None
    storage.set("table_rooms", "[]")
    assert storage.get("table_rooms") == "[]"
    assert (tmp_path / "tables" / "table_rooms.json").exists()
    assert not (tmp_path / "tables" / "table_rooms.json.tmp").exists()

    storage.remove("table_rooms")
    storage.remove("table_rooms")
    assert storage.get("table_rooms") is None


def test_disk_storage_rejects_path_like_keys(tmp_path: Path):
    storage = DiskKeyValueStorage(tmp_path)
    for key in ("../escape", "a/b", "", ".."):
        with pytest.raises(ValueError):
            storage.get(key)


def test_os_errors_surface_as_adapter_errors(tmp_path: Path):
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("file", encoding="utf-8")
    adapter = AsyncStorageAdapter(DiskKeyValueStorage(blocker))

    async def _run():
        with pytest.raises(AdapterIOError) as exc:
            await adapter.set("table_rooms", "[]")
        assert exc.value.key == "table_rooms"

    asyncio.run(_run())


def test_document_store_on_disk_survives_restart(sandbox_project: Path):
    base = tables_dir()
    assert base == sandbox_project / "data" / "tables"

    async def _run():
        store = DocumentStore(disk_adapter(base))
        await store.initialize()
        created = await store.insert("orders", {"order_number": "R-1", "status": "pending"})

        on_disk = json.loads((base / "table_orders.json").read_text(encoding="utf-8"))
        assert on_disk == [created]

        reopened = DocumentStore(disk_adapter(base))
        await reopened.initialize()
        assert await reopened.select("orders") == [created]
        assert len(await reopened.select("profiles")) == 1

    asyncio.run(_run())


def test_tables_dir_honours_an_explicit_base(tmp_path: Path):
    base = tables_dir(tmp_path / "custom")
    assert base == tmp_path / "custom" / "tables"
    assert base.is_dir()


def test_file_locks_are_shared_per_resolved_path(tmp_path: Path):
    (tmp_path / "tables").mkdir()
    registry = FileLockRegistry()
    a = registry.lock_for(tmp_path / "tables" / "table_rooms.json")
    b = registry.lock_for(tmp_path / "tables" / ".." / "tables" / "table_rooms.json")
    c = registry.lock_for(tmp_path / "tables" / "table_orders.json")

    assert a is b
    assert a is not c
    assert len(registry) == 2
