"""
tablestore.api.app

FastAPI app factory for the tablestore service.

Responsibilities:
- Build the FastAPI application and register the table router/middleware.
- Own the single `TableEngine` for the process and load its snapshot on startup.
- Provide a single composition root where cross-cutting concerns live.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from starlette.concurrency import run_in_threadpool

from tablestore import __version__
from tablestore.api.errors import install_error_handlers
from tablestore.api.routers.tables import router as tables_router
from tablestore.observability.logging import configure_logging, get_logger
from tablestore.observability.middleware import RequestContextMiddleware
from tablestore.settings import Settings
from tablestore.store.engine import TableEngine
from tablestore.store.snapshot import SnapshotStore

log = get_logger(__name__)


def build_engine(settings: Settings) -> TableEngine:
    return TableEngine(
        SnapshotStore(settings.snapshot_path),
        rollback_on_persist_failure=settings.rollback_on_persist_failure,
    )


def create_app(*, settings: Settings, engine: TableEngine | None = None) -> FastAPI:
    configure_logging(
        service_name=settings.service_name,
        level=settings.log_level,
        log_format=settings.log_format,
    )
    engine = engine if engine is not None else build_engine(settings)

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        # CorruptSnapshotError propagates out of here and aborts startup.
        await run_in_threadpool(engine.load)
        log.info(
            "startup",
            env=settings.env,
            listen_address=settings.listen_address,
            snapshot_path=str(settings.snapshot_path),
            tables=len(engine.tables()),
        )
        yield
        # Every mutation already saved synchronously; nothing to flush.
        log.info("shutdown")

    # Docs routes are disabled: every top-level path is a table name.
    app = FastAPI(
        title="tablestore",
        version=__version__,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
        # `/users/` must reach the empty-position route, not redirect to `/users`.
        redirect_slashes=False,
        lifespan=lifespan,
    )
    app.state.engine = engine

    app.add_middleware(RequestContextMiddleware)
    install_error_handlers(app)
    app.include_router(tables_router, tags=["tables"])

    return app


# --- Module Notes -----------------------------------------------------------
# Tests pass a prebuilt engine (e.g. with a failing snapshot) through `engine=`.
