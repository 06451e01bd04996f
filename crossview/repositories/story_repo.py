"""Repository helpers for persisting synthesized stories and their sub-rows."""

from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional, Sequence

from sqlalchemy import desc, func, select
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from crossview.core.logging import get_logger
from crossview.db.models import SourceBiasRecord, Story, StoryAnalysis, StorySource

logger = get_logger(__name__)


class StoryRepository:
    """Encapsulates read/write operations for stories, sources and source bias rows."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.log = logger.bind(component="StoryRepository")

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.5, min=0.5, max=2),
        retry=retry_if_exception_type(OperationalError),
        reraise=True,
    )
    async def create_story(
        self,
        *,
        headline: str,
        summary: str,
        category: str,
        published_at: Optional[datetime] = None,
        full_content: Optional[str] = None,
        common_facts: Optional[str] = None,
        image_url: Optional[str] = None,
        news_type: str = "static",
    ) -> Story:
        story = Story(
            headline=headline,
            summary=summary,
            category=category,
            published_at=published_at,
            full_content=full_content,
            common_facts=common_facts,
            image_url=image_url,
            news_type=news_type,
        )
        self.session.add(story)
        await self.session.flush()
        self.log.info("story_created", story_id=story.id, category=category)
        return story

    async def add_source(
        self, story_id: str, *, position: int, title: str, source: str, link: str
    ) -> StorySource:
        row = StorySource(story_id=story_id, position=position, title=title, source=source, link=link)
        self.session.add(row)
        await self.session.flush()
        return row

    async def add_source_bias(
        self, story_id: str, *, position: int, source: str, bias: str, quotes: Sequence[str]
    ) -> SourceBiasRecord:
        row = SourceBiasRecord(
            story_id=story_id,
            position=position,
            source=source,
            bias=bias,
            quotes=list(quotes),
        )
        self.session.add(row)
        await self.session.flush()
        return row

    async def get_story(self, story_id: str) -> Optional[Story]:
        result = await self.session.execute(select(Story).where(Story.id == story_id))
        return result.scalar_one_or_none()

    async def list_stories(
        self,
        *,
        category: Optional[str] = None,
        news_type: Optional[str] = None,
        limit: int = 10,
    ) -> List[Story]:
        """Return the newest stories, optionally restricted to one category."""
        stmt = select(Story)
        if category:
            stmt = stmt.where(Story.category == category)
        if news_type:
            stmt = stmt.where(Story.news_type == news_type)
        stmt = stmt.order_by(desc(Story.created_at)).limit(limit)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    def _without_analysis(self):
        analysed = select(StoryAnalysis.story_id)
        return Story.id.notin_(analysed)

    async def list_story_ids_without_analysis(self, limit: int = 5) -> List[str]:
        """Return IDs of the newest stories that have no analysis yet."""
        stmt = (
            select(Story.id)
            .where(self._without_analysis())
            .order_by(desc(Story.created_at))
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def count_stories_without_analysis(self) -> int:
        stmt = select(func.count()).select_from(Story).where(self._without_analysis())
        result = await self.session.execute(stmt)
        return int(result.scalar_one())

    async def count_stories(self) -> int:
        result = await self.session.execute(select(func.count()).select_from(Story))
        return int(result.scalar_one())

    async def get_analyses(self, story_ids: Sequence[str]) -> Dict[str, StoryAnalysis]:
        """Map story ID to its analysis for the given stories."""
        if not story_ids:
            return {}
        stmt = select(StoryAnalysis).where(StoryAnalysis.story_id.in_(list(story_ids)))
        result = await self.session.execute(stmt)
        return {analysis.story_id: analysis for analysis in result.scalars().all()}


__all__ = ["StoryRepository"]
