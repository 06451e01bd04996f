from __future__ import annotations

from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock

import pytest
from sqlalchemy import func, select

from crossview.core.config import Settings
from crossview.db.models import SourceBiasRecord, Story, StorySource
from crossview.feeds.base import Article, FeedReader, FeedReaderError
from crossview.repositories.story_repo import StoryRepository
from crossview.services.aggregation_service import AggregationService
from crossview.services.image_service import CATEGORY_IMAGES


class FakeReader(FeedReader):
    def __init__(self, reader_id: str, articles: List[Article], error: Optional[Exception] = None):
        self._reader_id = reader_id
        self._articles = articles
        self._error = error
        super().__init__()

    @property
    def id(self) -> str:
        return self._reader_id

    @property
    def source_metadata(self) -> Dict[str, Any]:
        return {"name": self._reader_id}

    async def fetch(self) -> List[Article]:
        if self._error is not None:
            raise self._error
        return self._articles


def _settings(**overrides) -> Settings:
    values: Dict[str, Any] = {
        "_env_file": None,
        "brave_api_key": None,
        "enrichment_on_aggregate": False,
        "cluster_max_stories": 10,
    }
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def outlet_readers(make_article):
    def build(category, live, client):
        budget_description = (
            "Lawmakers approved the spending plan after a long debate over tax cuts and border security."
        )
        return [
            FakeReader(
                "cnn",
                [
                    make_article(
                        "Senate passes budget bill",
                        "cnn",
                        description="Democrats hailed funding for universal healthcare and climate crisis programs.",
                    )
                ],
            ),
            FakeReader(
                "fox-news",
                [make_article("Senate passes budget bill", "fox-news", description=budget_description)],
            ),
            FakeReader(
                "bbc-news",
                [
                    make_article(
                        "Senate passes budget bill",
                        "bbc-news",
                        description="The measure now goes to the House for a final vote.",
                        image_url="https://bbc.example.com/senate.jpg",
                    )
                ],
            ),
            FakeReader("espn", [make_article("Coach fired after championship loss", "espn")]),
            FakeReader("reuters", [], error=FeedReaderError("HTTP 401 fetching reuters")),
        ]

    return build


@pytest.mark.asyncio
async def test_static_run_clusters_and_persists_stories(session_factory, outlet_readers) -> None:
    service = AggregationService(
        session_factory=session_factory,
        settings=_settings(),
        readers_factory=outlet_readers,
    )

    stats = await service.run()

    assert stats["fetched"] == 4
    assert stats["clusters"] == 2
    assert stats["stories"] == 2
    assert stats["persisted"] == 2
    assert stats["failed_sources"] == ["reuters"]
    assert stats["enriched"] == 0

    async with session_factory() as session:
        repo = StoryRepository(session)
        stories = {story.headline: story for story in await repo.list_stories(limit=10)}

        budget = stories["Senate passes budget bill"]
        assert budget.category == "politics"
        assert budget.news_type == "static"
        assert budget.image_url == "https://bbc.example.com/senate.jpg"
        assert {row.source for row in budget.sources} == {"CNN", "FOX-NEWS", "BBC-NEWS"}
        biases = {row.source: row.bias for row in budget.biases}
        assert biases["CNN"] == "left"
        assert biases["FOX-NEWS"] == "right"
        assert "BBC-NEWS" not in biases

        sports = stories["Coach fired after championship loss"]
        assert sports.category == "sports"
        assert sports.image_url == CATEGORY_IMAGES["sports"]
        assert len(sports.sources) == 1


@pytest.mark.asyncio
async def test_static_run_with_category_keeps_matching_stories(session_factory, outlet_readers) -> None:
    service = AggregationService(
        session_factory=session_factory,
        settings=_settings(),
        readers_factory=outlet_readers,
    )

    stats = await service.run(category="Politics")

    assert stats["stories"] == 1
    async with session_factory() as session:
        headlines = [story.headline for story in await StoryRepository(session).list_stories()]
    assert headlines == ["Senate passes budget bill"]


@pytest.mark.asyncio
async def test_live_run_tags_requested_category(session_factory, make_article) -> None:
    requested: Dict[str, Any] = {}

    def readers(category, live, client):
        requested.update(category=category, live=live)
        return [
            FakeReader("newsapi-category:technology", [make_article("Chipmaker unveils new processor", "the-verge")]),
        ]

    service = AggregationService(
        session_factory=session_factory,
        settings=_settings(),
        readers_factory=readers,
    )

    stats = await service.run(category="tech", live=True)

    assert requested == {"category": "technology", "live": True}
    assert stats["persisted"] == 1
    async with session_factory() as session:
        story = await StoryRepository(session).get_story(stats["story_ids"][0])
    assert story.category == "technology"
    assert story.news_type == "dynamic"


@pytest.mark.asyncio
async def test_run_enriches_new_stories_when_enabled(session_factory, outlet_readers) -> None:
    analysis_service = AsyncMock()
    analysis_service.enrich_many.return_value = [
        {"story_id": "a", "status": "created"},
        {"story_id": "b", "status": "failed", "error": "boom"},
    ]
    service = AggregationService(
        session_factory=session_factory,
        settings=_settings(enrichment_timeout_seconds=30),
        readers_factory=outlet_readers,
        analysis_service=analysis_service,
    )

    stats = await service.run(enrich=True)

    assert stats["enriched"] == 1
    analysis_service.enrich_many.assert_awaited_once()
    args, kwargs = analysis_service.enrich_many.call_args
    assert list(args[0]) == stats["story_ids"]
    assert kwargs["timeout"] == 30


@pytest.mark.asyncio
async def test_run_with_no_articles_persists_nothing(session_factory) -> None:
    service = AggregationService(
        session_factory=session_factory,
        settings=_settings(),
        readers_factory=lambda category, live, client: [FakeReader("cnn", [])],
    )

    stats = await service.run()

    assert stats["stories"] == 0
    assert stats["story_ids"] == []
    async with session_factory() as session:
        assert await session.scalar(select(func.count()).select_from(Story)) == 0
        assert await session.scalar(select(func.count()).select_from(StorySource)) == 0
        assert await session.scalar(select(func.count()).select_from(SourceBiasRecord)) == 0
