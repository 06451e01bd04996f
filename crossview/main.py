from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from crossview.core.config import Settings, get_settings
from crossview.core.logging import CorrelationIDMiddleware, configure_logging, get_logger
from crossview.core.scheduler import get_scheduler
from crossview.db.session import dispose_engine, init_db
from crossview.routers import (
    analysis_router,
    health_router,
    perspective_router,
    stories_router,
    survey_router,
)

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle (startup and shutdown)."""
    settings: Settings = app.state.settings
    configure_logging(log_level=settings.log_level, json_format=settings.log_json)
    await init_db()

    scheduler = get_scheduler()
    if settings.scheduler_enabled:
        scheduler.start()
    logger.info("application_started", scheduler_enabled=settings.scheduler_enabled)
    yield
    scheduler.shutdown()
    await dispose_engine()
    logger.info("application_stopped")


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    app = FastAPI(title="Crossview", version="0.1.0", lifespan=lifespan)
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )
    app.add_middleware(CorrelationIDMiddleware)

    app.include_router(stories_router)
    app.include_router(perspective_router)
    app.include_router(survey_router)
    app.include_router(analysis_router)
    app.include_router(health_router)
    return app


app = create_app()
