"""Repository helpers for persisting story analyses."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from crossview.core.logging import get_logger
from crossview.db.models import StoryAnalysis, utcnow

logger = get_logger(__name__)


@dataclass
class AnalysisPersistenceResult:
    """Describe the outcome of an analysis persistence operation."""

    analysis: StoryAnalysis
    created: bool


class AnalysisRepository:
    """Encapsulates read/write operations for story analyses."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.log = logger.bind(component="AnalysisRepository")

    async def get_by_story_id(self, story_id: str) -> Optional[StoryAnalysis]:
        stmt = select(StoryAnalysis).where(StoryAnalysis.story_id == story_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def upsert_analysis(
        self,
        *,
        story_id: str,
        provider: str,
        model: str,
        sources: List[Dict[str, Any]],
        unique_claims: List[Dict[str, Any]],
        source_bias: List[Dict[str, Any]],
        raw_response: str | None = None,
    ) -> AnalysisPersistenceResult:
        """Create the analysis for a story or replace the existing one."""

        existing = await self.get_by_story_id(story_id)
        created = False

        if existing:
            existing.provider = provider
            existing.model = model
            existing.sources = sources
            existing.unique_claims = unique_claims
            existing.source_bias = source_bias
            existing.raw_response = raw_response
            existing.updated_at = utcnow()
            analysis = existing
            self.log.info("story_analysis_updated", story_id=story_id, provider=provider)
        else:
            analysis = StoryAnalysis(
                story_id=story_id,
                provider=provider,
                model=model,
                sources=sources,
                unique_claims=unique_claims,
                source_bias=source_bias,
                raw_response=raw_response,
            )
            self.session.add(analysis)
            created = True
            self.log.info("story_analysis_created", story_id=story_id, provider=provider)

        await self.session.flush()
        return AnalysisPersistenceResult(analysis=analysis, created=created)


__all__ = ["AnalysisRepository", "AnalysisPersistenceResult"]
