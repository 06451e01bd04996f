"""REST API endpoints for story retrieval."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from crossview.core.logging import get_logger
from crossview.db.models import Story, StoryAnalysis
from crossview.db.session import get_async_session
from crossview.models import (
    SourceBiasResponse,
    StoryListMeta,
    StoryResponse,
    StorySourceResponse,
    UniqueClaimResponse,
)
from crossview.repositories.story_repo import StoryRepository
from crossview.services.aggregation_service import AggregationService, get_aggregation_service
from crossview.services.story_service import normalize_category

logger = get_logger(__name__)

router = APIRouter(prefix="/api/v1", tags=["stories"])


def _analysis_bias(analysis: StoryAnalysis) -> List[SourceBiasResponse]:
    entries: List[SourceBiasResponse] = []
    for entry in analysis.source_bias or []:
        if not isinstance(entry, dict) or not entry.get("source"):
            continue
        entries.append(
            SourceBiasResponse(
                source=entry["source"],
                bias=entry.get("bias") or "unknown",
                quotes=list(entry.get("bias_quotes") or []),
            )
        )
    return entries


def story_to_response(story: Story, analysis: Optional[StoryAnalysis] = None) -> StoryResponse:
    """Build the API view of a story; analysis bias replaces lexical bias when present."""
    source_bias = [
        SourceBiasResponse(source=row.source, bias=row.bias, quotes=list(row.quotes or []))
        for row in story.biases
    ]
    unique_claims: List[UniqueClaimResponse] = []
    if analysis is not None:
        source_bias = _analysis_bias(analysis) or source_bias
        unique_claims = [
            UniqueClaimResponse(claim=entry.get("claim", ""), source=entry.get("source", ""))
            for entry in analysis.unique_claims or []
            if isinstance(entry, dict) and entry.get("claim")
        ]

    return StoryResponse(
        id=story.id,
        headline=story.headline,
        summary=story.summary,
        category=story.category,
        news_type=story.news_type,
        published_at=story.published_at,
        created_at=story.created_at,
        full_content=story.full_content,
        common_facts=story.common_facts,
        image_url=story.image_url,
        sources=[
            StorySourceResponse(title=row.title, source=row.source, link=row.link or "#")
            for row in story.sources
        ],
        source_bias=source_bias,
        unique_claims=unique_claims,
        analysis_provider=analysis.provider if analysis is not None else None,
    )


async def load_story_responses(
    session: AsyncSession,
    *,
    category: Optional[str] = None,
    limit: int = 10,
) -> List[StoryResponse]:
    repo = StoryRepository(session)
    stories = await repo.list_stories(category=category, limit=limit)
    analyses = await repo.get_analyses([story.id for story in stories])
    return [story_to_response(story, analyses.get(story.id)) for story in stories]


@router.get("/stories")
async def list_stories(
    category: Optional[str] = Query(default=None),
    refresh: bool = Query(default=False),
    limit: int = Query(default=10, ge=1, le=50),
    session: AsyncSession = Depends(get_async_session),
    aggregation: AggregationService = Depends(get_aggregation_service),
) -> Dict[str, Any]:
    """List the newest stories, optionally running a live refresh first.

    A failed refresh is logged and the stored stories are served anyway.
    """
    normalized = normalize_category(category) if category else None
    refresh_stats: Optional[Dict[str, Any]] = None

    if refresh:
        try:
            refresh_stats = await aggregation.run(category=normalized, live=normalized is not None)
        except Exception as exc:
            logger.error("story_refresh_failed", category=normalized, error=str(exc))
            refresh_stats = {"error": str(exc)}

    items = await load_story_responses(session, category=normalized, limit=limit)
    meta = StoryListMeta(
        total=len(items),
        category=normalized,
        refreshed=refresh,
        refresh_stats=refresh_stats,
        generated_at=datetime.now(timezone.utc),
    )
    return {
        "data": [item.model_dump(mode="json") for item in items],
        "meta": meta.model_dump(mode="json"),
    }


@router.get("/stories/{story_id}")
async def get_story(
    story_id: str,
    session: AsyncSession = Depends(get_async_session),
) -> Dict[str, Any]:
    repo = StoryRepository(session)
    story = await repo.get_story(story_id)
    if story is None:
        raise HTTPException(status_code=404, detail=f"Story {story_id} not found")

    analyses = await repo.get_analyses([story.id])
    response = story_to_response(story, analyses.get(story.id))
    return {
        "data": response.model_dump(mode="json"),
        "meta": {"analysed": story.id in analyses},
    }
