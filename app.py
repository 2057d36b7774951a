"""
FastAPI entry point.

There is no module-level app: building one opens the data directory and loads `local.env`,
so importing this module stays side-effect free. Run it through the factory:

    uvicorn app:create_app --factory --host 0.0.0.0 --port 8000
"""

from __future__ import annotations

import contextlib
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from dotenv import load_dotenv

logger = logging.getLogger(__name__)


def build_store(settings, adapter=None):
    """
    Composition root for persistence: exactly one DocumentStore per app.
    """
    from persistence import paths
    from persistence.adapters import disk_adapter, memory_adapter
    from persistence.document_store import DocumentStore

    if adapter is None:
        if settings.persist_to_disk:
            base = paths.tables_dir(settings.data_dir)
            adapter = disk_adapter(base)
            logger.info("STORE: persisting to %s", base)
        else:
            adapter = memory_adapter()
            logger.info("STORE: PERSIST_TO_DISK is off, data lives in memory only")
    return DocumentStore(adapter, key_prefix=settings.key_prefix)


@contextlib.asynccontextmanager
async def lifespan(app: FastAPI):
    store = app.state.store
    await store.initialize()
    yield


def create_app(settings=None, adapter=None) -> FastAPI:
    load_dotenv("local.env")

    from endpoints.order_endpoints import router as orders_router
    from endpoints.store_endpoints import router as store_router
    from services.order_manager import OrderManager
    from settings import get_settings

    settings = settings or get_settings()
    logging.basicConfig(level=settings.log_level)

    app = FastAPI(lifespan=lifespan)
    app.state.settings = settings
    app.state.store = build_store(settings, adapter)
    app.state.order_manager = OrderManager(
        app.state.store,
        tax_rate=settings.default_tax_rate,
        service_charge_rate=settings.default_service_charge_rate,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    if settings.debug_log_requests:

        @app.middleware("http")
        async def log_requests(request, call_next):
            response = await call_next(request)
            logger.info("REQUEST %s %s -> %s", request.method, request.url.path, response.status_code)
            return response

    @app.get("/")
    async def root():
        return JSONResponse({"service": "pos-document-store", "collections": app.state.store.collection_names()})

    app.include_router(store_router)
    app.include_router(orders_router)

    return app
