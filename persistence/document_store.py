from __future__ import annotations

import asyncio
import copy
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, Mapping, TypeVar

from pydantic import BaseModel

from json_store import dumps_records, loads_records

from .dashboard import compute_dashboard_stats
from .errors import (
    AdapterIOError,
    DuplicateIdError,
    ImmutableFieldError,
    InitializationError,
    RecordNotFoundError,
    SerializationError,
)
from .interfaces import AsyncKeyValueAdapter
from .locks import CollectionLockRegistry
from .query import run_query
from .records import DashboardStats, SelectOptions
from .schema import ANCHOR_COLLECTION, DEFAULT_KEY_PREFIX, KNOWN_COLLECTIONS, storage_key, validate_collection_name
from .seed import baseline_records

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

Document = dict[str, Any]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def isoformat_z(dt: datetime) -> str:
    # Millisecond precision with a Z suffix, e.g. 2025-01-01T09:30:00.000Z
    return dt.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class DocumentStore:
    """
    A small multi-collection database emulated on top of a flat async key/value adapter.

    Each collection is a JSON array stored under `<key_prefix><collection>`. The store keeps
    an in-memory mirror of every collection it has touched; every mutation rewrites the
    whole collection through the adapter before returning.

    - `initialize()` hydrates the known schema, persists empty collections and seeds the
      baseline data when the anchor collection is empty. It is idempotent.
    - `select` / `insert` / `update` / `delete` hydrate a collection on first use but never seed.
    - Mutations on one collection are serialized by a per-collection lock.
    - Callers always receive deep copies.
    """

    def __init__(
        self,
        adapter: AsyncKeyValueAdapter,
        *,
        collections: Iterable[str] = KNOWN_COLLECTIONS,
        anchor_collection: str = ANCHOR_COLLECTION,
        key_prefix: str = DEFAULT_KEY_PREFIX,
        seed: Callable[[str], dict[str, list[Document]]] | None = baseline_records,
        clock: Callable[[], datetime] = utc_now,
        id_factory: Callable[[], str] = lambda: str(uuid.uuid4()),
    ) -> None:
        self._adapter = adapter
        self._known = tuple(validate_collection_name(c) for c in collections)
        self._anchor = validate_collection_name(anchor_collection)
        self._key_prefix = key_prefix
        self._seed = seed
        self._clock = clock
        self._id_factory = id_factory

        self._data: dict[str, list[Document]] = {}
        self._degraded: set[str] = set()
        self._initialized = False
        self._init_lock = asyncio.Lock()
        self._locks = CollectionLockRegistry()

    @property
    def adapter(self) -> AsyncKeyValueAdapter:
        return self._adapter

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    @property
    def degraded_collections(self) -> list[str]:
        """Collections whose stored payload could not be loaded and were started empty."""
        return sorted(self._degraded)

    def collection_names(self) -> list[str]:
        return sorted(set(self._known) | set(self._data))

    def now(self) -> str:
        return isoformat_z(self._clock())

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def initialize(self) -> None:
        if self._initialized:
            return
        async with self._init_lock:
            if self._initialized:
                return

            logger.info("STORE INIT: hydrating %d collections", len(self._known))
            for name in self._known:
                async with self._locks.lock_for(name):
                    records = await self._hydrate(name)
                    if records is None:
                        # Nothing stored yet: persist an empty array so every known key exists.
                        await self._write_during_init(name, [])
                        records = []
                    self._data[name] = records

            if self._anchor in self._degraded:
                logger.warning("STORE SEED: anchor collection %s could not be loaded, not seeding", self._anchor)
            elif not self._data.get(self._anchor):
                await self._seed_baseline()

            self._initialized = True
            if self._degraded:
                logger.warning("STORE INIT: completed with degraded collections: %s", self.degraded_collections)
            else:
                logger.info("STORE INIT: ready")

    async def _seed_baseline(self) -> None:
        if self._seed is None:
            return
        logger.info("STORE SEED: anchor collection %s is empty, seeding baseline data", self._anchor)
        baseline = self._seed(self.now())
        # Anchor last: a non-empty anchor means seeding completed.
        order = sorted(baseline, key=lambda name: name == self._anchor)
        for name in order:
            validate_collection_name(name)
            async with self._locks.lock_for(name):
                existing = self._data.get(name)
                if existing is None:
                    existing = await self._hydrate(name) or []
                if existing or name in self._degraded:
                    logger.info("STORE SEED: %s already has %d records, leaving it alone", name, len(existing))
                    self._data[name] = existing
                    continue
                records = copy.deepcopy(baseline[name])
                await self._write_during_init(name, records)
                self._data[name] = records

    async def _write_during_init(self, name: str, records: list[Document]) -> None:
        try:
            await self._adapter.set(self._key(name), self._encode(name, records))
        except AdapterIOError as e:
            logger.error("STORE INIT: failed to persist %s: %r", name, e)
            raise InitializationError(f"failed to persist {name} during initialization", collection=name) from e
        self._degraded.discard(name)

    async def clear_all_data(self) -> None:
        """
        Empty every known (and implicitly created) collection and remove its stored key.
        The next initialize() starts from scratch and seeds again.

        A collection's mirror is emptied only after its key is removed. A failed remove
        propagates and leaves that collection intact; the store stays un-initialized
        so the next initialize() rehydrates from the adapter.
        """
        async with self._init_lock:
            names = self.collection_names()
            logger.warning("STORE CLEAR: removing %d collections", len(names))
            try:
                for name in names:
                    async with self._locks.lock_for(name):
                        await self._adapter.remove(self._key(name))
                        self._data[name] = []
                        self._degraded.discard(name)
            finally:
                self._initialized = False

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def select(
        self,
        collection: str,
        options: SelectOptions | Mapping[str, Any] | None = None,
        *,
        model: type[ModelT] | None = None,
    ) -> list[Any]:
        """
        Return copies of the records matching `options` (filters AND-ed, then order_by, then limit).
        With `model`, each record is validated into that pydantic type.
        """
        validate_collection_name(collection)
        opts = options if isinstance(options, SelectOptions) else SelectOptions.model_validate(options or {})
        async with self._locks.lock_for(collection):
            records = await self._collection(collection)
            results = run_query(records, opts)
            logger.debug("STORE SELECT: %s matched %d/%d", collection, len(results), len(records))
            return [self._export(r, model) for r in results]

    async def get(self, collection: str, record_id: str, *, model: type[ModelT] | None = None) -> Any:
        """Single-record lookup by id. Raises RecordNotFoundError."""
        rows = await self.select(collection, SelectOptions(filters={"id": record_id}, limit=1), model=model)
        if not rows:
            raise RecordNotFoundError(collection, record_id)
        return rows[0]

    async def get_dashboard_stats(self) -> DashboardStats:
        snapshot: dict[str, list[Document]] = {}
        for name in ("rooms", "bookings", "orders", "inventory", "transactions"):
            async with self._locks.lock_for(name):
                snapshot[name] = await self._collection(name)
        return compute_dashboard_stats(now=self._clock(), **snapshot)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def insert(self, collection: str, data: Mapping[str, Any] | BaseModel, *, model: type[ModelT] | None = None) -> Any:
        """
        Store a new record. Generates `id` when absent; a caller-supplied id that already
        exists raises DuplicateIdError. `created_at` and `updated_at` are set to now.
        """
        validate_collection_name(collection)
        record = self._import(data, partial=False)
        async with self._locks.lock_for(collection):
            records = await self._collection(collection)
            existing_ids = {r.get("id") for r in records}

            record_id = record.get("id")
            if record_id is None or record_id == "":
                record_id = self._id_factory()
                while record_id in existing_ids:
                    record_id = self._id_factory()
            elif not isinstance(record_id, str):
                raise TypeError(f"record id must be a string, got {type(record_id).__name__}")
            elif record_id in existing_ids:
                raise DuplicateIdError(collection, record_id)

            now = self.now()
            record["id"] = record_id
            record["created_at"] = now
            record["updated_at"] = now

            await self._commit(collection, [*records, record])
            logger.debug("STORE INSERT: %s/%s", collection, record_id)
            return self._export(record, model)

    async def update(
        self,
        collection: str,
        record_id: str,
        patch: Mapping[str, Any] | BaseModel,
        *,
        model: type[ModelT] | None = None,
    ) -> Any:
        """
        Shallow-merge `patch` over the record. Unspecified fields are preserved,
        `updated_at` is refreshed, `id` and `created_at` cannot change.
        """
        validate_collection_name(collection)
        changes = self._import(patch, partial=True)
        async with self._locks.lock_for(collection):
            records = await self._collection(collection)
            index = next((i for i, r in enumerate(records) if r.get("id") == record_id), None)
            if index is None:
                raise RecordNotFoundError(collection, record_id)

            current = records[index]
            for field in ("id", "created_at"):
                if field in changes and changes[field] != current.get(field):
                    raise ImmutableFieldError(collection, record_id, field)
            changes.pop("updated_at", None)

            updated = {**current, **changes, "updated_at": self.now()}
            new_records = list(records)
            new_records[index] = updated

            await self._commit(collection, new_records)
            logger.debug("STORE UPDATE: %s/%s fields=%s", collection, record_id, sorted(changes))
            return self._export(updated, model)

    async def delete(self, collection: str, record_id: str) -> None:
        """Remove the record if present. Deleting a missing id is a no-op that still persists."""
        validate_collection_name(collection)
        async with self._locks.lock_for(collection):
            records = await self._collection(collection)
            remaining = [r for r in records if r.get("id") != record_id]
            await self._commit(collection, remaining)
            logger.debug("STORE DELETE: %s/%s removed=%d", collection, record_id, len(records) - len(remaining))

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _key(self, collection: str) -> str:
        return storage_key(collection, prefix=self._key_prefix)

    async def _collection(self, name: str) -> list[Document]:
        # Caller holds the collection lock.
        records = self._data.get(name)
        if records is None:
            records = await self._hydrate(name) or []
            self._data[name] = records
        return records

    async def _hydrate(self, name: str) -> list[Document] | None:
        """
        Load one collection from the adapter. Returns None when nothing is stored.

        A read failure or malformed payload degrades the collection to empty and is
        reported at WARNING; the stored payload is left in place until the next write.
        """
        key = self._key(name)
        try:
            raw = await self._adapter.get(key)
        except AdapterIOError as e:
            logger.warning("STORE LOAD: failed to read %s, starting empty: %r", name, e)
            self._degraded.add(name)
            return []
        if raw is None:
            return None
        try:
            records = loads_records(raw)
        except ValueError as e:
            err = SerializationError(f"malformed payload for {name}: {e}", collection=name)
            logger.warning("STORE LOAD: %s, starting empty", err)
            self._degraded.add(name)
            return []

        self._degraded.discard(name)
        return self._dedupe(name, records)

    def _dedupe(self, name: str, records: list[Document]) -> list[Document]:
        seen: set[Any] = set()
        unique: list[Document] = []
        for r in records:
            rid = r.get("id")
            if isinstance(rid, str):
                if rid in seen:
                    logger.warning("STORE LOAD: dropping duplicate id %s in %s", rid, name)
                    continue
                seen.add(rid)
            unique.append(r)
        return unique

    def _encode(self, name: str, records: list[Document]) -> str:
        try:
            return dumps_records(records)
        except (TypeError, ValueError) as e:
            raise SerializationError(f"{name} contains a value that is not JSON-serializable: {e}", collection=name) from e

    async def _commit(self, name: str, records: list[Document]) -> None:
        """
        Swap in the new collection contents, then persist them.
        On a failed write the previous contents are restored and the error re-raised.
        """
        payload = self._encode(name, records)
        previous = self._data.get(name, [])
        self._data[name] = records
        try:
            await self._adapter.set(self._key(name), payload)
        except AdapterIOError as e:
            self._data[name] = previous
            e.collection = name
            logger.error("STORE WRITE: failed to persist %s: %r", name, e)
            raise
        self._degraded.discard(name)

    @staticmethod
    def _import(data: Mapping[str, Any] | BaseModel, *, partial: bool) -> Document:
        if isinstance(data, BaseModel):
            return data.model_dump(mode="json", exclude_unset=partial)
        if isinstance(data, Mapping):
            return copy.deepcopy(dict(data))
        raise TypeError(f"expected a mapping or pydantic model, got {type(data).__name__}")

    @staticmethod
    def _export(record: Document, model: type[ModelT] | None) -> Any:
        doc = copy.deepcopy(record)
        if model is None:
            return doc
        return model.model_validate(doc)
