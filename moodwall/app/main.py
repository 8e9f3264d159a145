from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import Depends, FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from moodwall.db import create_engine, create_session_factory, init_db

from .api.v1.routes import router as v1_router
from .core.config import Settings, get_settings
from .core.errors import register_exception_handlers
from .core.logging import configure_logging
from .middleware import RequestLoggingMiddleware
from .services.storage import StorageService

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Build the engine and repository once and share them through app state."""

    configure_logging()
    settings: Settings = get_settings()

    engine = create_engine(settings.database_url)
    session_factory = create_session_factory(engine)
    await init_db(engine, session_factory, seed=settings.seed_emotions)

    app.state.settings = settings
    app.state.db_engine = engine
    app.state.db_session_factory = session_factory
    app.state.storage_service = StorageService(session_factory)

    logger.info("Starting MoodWall %s", settings.version)

    try:
        yield
    finally:
        await app.state.db_engine.dispose()


def create_app() -> FastAPI:
    settings = get_settings()
    application = FastAPI(title="MoodWall", version=settings.version, lifespan=lifespan)

    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    application.add_middleware(RequestLoggingMiddleware)
    register_exception_handlers(application)
    application.include_router(v1_router)

    @application.get("/healthz")
    async def healthz(settings: Settings = Depends(get_settings)) -> dict[str, str]:
        return {"status": "ok", "version": settings.version}

    @application.get("/readyz")
    async def readyz(request: Request) -> dict[str, Any]:
        storage: StorageService = request.app.state.storage_service
        db_ok = True
        db_detail = "ok"
        try:
            await storage.healthcheck()
        except Exception as exc:
            logger.warning("Database readiness check failed: %s", exc, exc_info=True)
            db_ok = False
            db_detail = "unavailable"
        return {"ready": db_ok, "db": {"ok": db_ok, "detail": db_detail}}

    @application.get("/metrics")
    async def metrics() -> Response:
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    return application


app = create_app()
