"""Shared fixtures: a throwaway SQLite database and an article builder."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Any, AsyncIterator, Callable

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from crossview.db.session import create_session_factory, init_db
from crossview.feeds.base import Article

PUBLISHED = datetime(2024, 3, 5, 12, 0, tzinfo=timezone.utc)


@pytest_asyncio.fixture
async def session_factory(tmp_path: Path) -> AsyncIterator[async_sessionmaker[AsyncSession]]:
    engine, factory = create_session_factory(f"sqlite+aiosqlite:///{tmp_path / 'crossview.db'}")
    await init_db(engine)
    try:
        yield factory
    finally:
        await engine.dispose()


@pytest.fixture
def make_article() -> Callable[..., Article]:
    def _make(title: str, source_id: str, **kwargs: Any) -> Article:
        kwargs.setdefault("source_name", source_id.upper())
        kwargs.setdefault("url", f"https://{source_id}.example.com/{abs(hash(title))}")
        kwargs.setdefault("published_at", PUBLISHED)
        return Article(title=title, source_id=source_id, **kwargs)

    return _make
