from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Body, HTTPException, Request, Response
from pydantic import ValidationError

from persistence.document_store import DocumentStore
from persistence.errors import (
    AdapterIOError,
    DuplicateIdError,
    ImmutableFieldError,
    RecordNotFoundError,
    SerializationError,
    StorageError,
)
from persistence.records import SelectOptions
from persistence.schema import validate_collection_name

router = APIRouter(tags=["store"])
logger = logging.getLogger(__name__)


def get_store(request: Request) -> DocumentStore:
    store = getattr(request.app.state, "store", None)
    if store is None:
        raise HTTPException(status_code=503, detail="store_unavailable")
    return store


def http_error_for(e: StorageError) -> HTTPException:
    if isinstance(e, RecordNotFoundError):
        return HTTPException(status_code=404, detail=f"not_found: {e.collection}/{e.record_id}")
    if isinstance(e, DuplicateIdError):
        return HTTPException(status_code=409, detail=f"duplicate_id: {e.collection}/{e.record_id}")
    if isinstance(e, ImmutableFieldError):
        return HTTPException(status_code=409, detail=f"immutable_field: {e.field}")
    if isinstance(e, SerializationError):
        return HTTPException(status_code=422, detail=f"serialization_error: {e.collection}")
    if isinstance(e, AdapterIOError):
        logger.warning("STORE HTTP: adapter failure on %s: %r", e.collection or e.key, e)
        return HTTPException(status_code=503, detail="storage_unavailable")
    logger.error("STORE HTTP: unexpected storage error: %r", e)
    return HTTPException(status_code=500, detail="storage_error")


def _collection(name: str) -> str:
    try:
        return validate_collection_name(name)
    except ValueError:
        raise HTTPException(status_code=400, detail="invalid_collection") from None


@router.get("/health")
async def health(request: Request) -> dict[str, Any]:
    store = get_store(request)
    return {
        "status": "ok" if store.is_initialized else "starting",
        "degraded_collections": store.degraded_collections,
    }


@router.get("/collections")
async def list_collections(request: Request) -> dict[str, list[str]]:
    return {"collections": get_store(request).collection_names()}


@router.post("/collections/{name}/query")
async def query_collection(name: str, request: Request, body: dict[str, Any] | None = Body(default=None)):
    store = get_store(request)
    try:
        options = SelectOptions.model_validate(body or {})
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=f"invalid_options: {e.error_count()} error(s)") from None
    try:
        return await store.select(_collection(name), options)
    except StorageError as e:
        raise http_error_for(e) from e


@router.get("/collections/{name}/{record_id}")
async def get_record(name: str, record_id: str, request: Request):
    store = get_store(request)
    try:
        return await store.get(_collection(name), record_id)
    except StorageError as e:
        raise http_error_for(e) from e


@router.post("/collections/{name}", status_code=201)
async def insert_record(name: str, request: Request, body: dict[str, Any] = Body(...)):
    store = get_store(request)
    try:
        return await store.insert(_collection(name), body)
    except TypeError:
        raise HTTPException(status_code=400, detail="id must be a string") from None
    except StorageError as e:
        raise http_error_for(e) from e


@router.patch("/collections/{name}/{record_id}")
async def update_record(name: str, record_id: str, request: Request, body: dict[str, Any] = Body(...)):
    store = get_store(request)
    try:
        return await store.update(_collection(name), record_id, body)
    except StorageError as e:
        raise http_error_for(e) from e


@router.delete("/collections/{name}/{record_id}", status_code=204)
async def delete_record(name: str, record_id: str, request: Request) -> Response:
    store = get_store(request)
    try:
        await store.delete(_collection(name), record_id)
    except StorageError as e:
        raise http_error_for(e) from e
    return Response(status_code=204)


@router.get("/dashboard")
async def dashboard(request: Request):
    store = get_store(request)
    try:
        stats = await store.get_dashboard_stats()
    except StorageError as e:
        raise http_error_for(e) from e
    return stats.model_dump(by_alias=True)


@router.post("/admin/clear", status_code=204)
async def clear_all(request: Request) -> Response:
    store = get_store(request)
    try:
        await store.clear_all_data()
        await store.initialize()
    except StorageError as e:
        raise http_error_for(e) from e
    logger.warning("STORE HTTP: all data cleared and re-seeded")
    return Response(status_code=204)
