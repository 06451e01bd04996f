"""Database session management utilities."""

from __future__ import annotations

from collections.abc import AsyncIterator
from pathlib import Path
from typing import Any, Dict, Optional

from sqlalchemy import event, make_url, text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from crossview.core.config import get_settings
from crossview.core.logging import get_logger
from crossview.db.models import Base

logger = get_logger(__name__)

_engine: Optional[AsyncEngine] = None
_session_factory: Optional[async_sessionmaker[AsyncSession]] = None


def _engine_options(database_url: str) -> Dict[str, Any]:
    if database_url.startswith("sqlite"):
        return {}
    return {
        "pool_pre_ping": True,
        "pool_recycle": 300,
        "pool_size": 10,
        "max_overflow": 15,
    }


def _enable_sqlite_savepoints(engine: AsyncEngine) -> None:
    """Let SQLAlchemy emit BEGIN itself so SAVEPOINT/ROLLBACK TO behave on SQLite."""

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):  # type: ignore[no-untyped-def]
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):  # type: ignore[no-untyped-def]
        conn.exec_driver_sql("BEGIN")


def _ensure_sqlite_directory(database_url: str) -> None:
    database = make_url(database_url).database
    if database and database != ":memory:":
        Path(database).parent.mkdir(parents=True, exist_ok=True)


def create_session_factory(database_url: str) -> tuple[AsyncEngine, async_sessionmaker[AsyncSession]]:
    """Create a new engine and session factory for the given URL."""
    engine = create_async_engine(database_url, echo=False, **_engine_options(database_url))
    if database_url.startswith("sqlite"):
        _enable_sqlite_savepoints(engine)
        _ensure_sqlite_directory(database_url)
    factory = async_sessionmaker(
        engine,
        expire_on_commit=False,
        class_=AsyncSession,
    )
    return engine, factory


def get_engine() -> AsyncEngine:
    """Return singleton async engine based on current settings."""
    global _engine, _session_factory

    if _engine is None:
        settings = get_settings()
        logger.info("initialising_database_engine", url=settings.database_url)
        _engine, _session_factory = create_session_factory(settings.database_url)

    return _engine


def get_sessionmaker() -> async_sessionmaker[AsyncSession]:
    """Return async sessionmaker tied to the engine."""
    if _session_factory is None:
        get_engine()
    assert _session_factory is not None
    return _session_factory


async def check_db_connection() -> bool:
    """Return True when a trivial query succeeds against the engine."""
    if _engine is None:
        return False

    try:
        async with _engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.warning("database_connection_check_failed", error=str(e))
        return False


async def dispose_engine() -> None:
    global _engine, _session_factory

    if _engine is not None:
        logger.info("disposing_database_engine")
        await _engine.dispose()
    _engine = None
    _session_factory = None


async def get_async_session() -> AsyncIterator[AsyncSession]:
    """FastAPI dependency helper for providing a session per request."""
    sessionmaker = get_sessionmaker()
    async with sessionmaker() as session:
        yield session


async def init_db(engine: Optional[AsyncEngine] = None) -> None:
    """Create database tables if they do not yet exist."""
    engine = engine or get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
