"""REST API endpoints for story enrichment and neutral summaries."""

from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from crossview.core.logging import generate_correlation_id, get_logger
from crossview.llm.client import LLMAuthenticationError, LLMClientError
from crossview.llm.prompt_builder import PromptBuilderError
from crossview.models import BackfillResponse, SummarizeRequest, SummarizeResponse
from crossview.services.analysis_service import AnalysisService, get_analysis_service

logger = get_logger(__name__)

router = APIRouter(prefix="/api/v1", tags=["analysis"])


def _provider_error(exc: LLMClientError) -> HTTPException:
    if isinstance(exc, LLMAuthenticationError):
        return HTTPException(status_code=503, detail="Text-synthesis provider is not configured")
    return HTTPException(status_code=502, detail=f"Text-synthesis provider failed: {exc}")


@router.post("/analysis/backfill")
async def backfill_analysis(
    batch_size: Optional[int] = Query(default=None, ge=1, le=20),
    service: AnalysisService = Depends(get_analysis_service),
) -> Dict[str, Any]:
    """Enrich a bounded batch of stories lacking analysis; safe to call repeatedly."""
    correlation_id = generate_correlation_id()
    stats = await service.backfill_missing(batch_size=batch_size, correlation_id=correlation_id)
    return {
        "data": BackfillResponse(**stats).model_dump(),
        "meta": {"correlation_id": correlation_id},
    }


@router.post("/analysis/{story_id}")
async def analyze_story(
    story_id: str,
    service: AnalysisService = Depends(get_analysis_service),
) -> Dict[str, Any]:
    try:
        outcome = await service.enrich_story(story_id)
    except ValueError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except LLMClientError as exc:
        logger.warning("story_analysis_request_failed", story_id=story_id, error=str(exc))
        raise _provider_error(exc) from exc

    analysis = outcome.analysis
    data: Dict[str, Any] = outcome.as_dict()
    if analysis is not None:
        data.update(
            provider=analysis.provider,
            model=analysis.model,
            sources=analysis.sources or [],
            unique_claims=analysis.unique_claims or [],
            source_bias=analysis.source_bias or [],
        )
    return {"data": data, "meta": {}}


@router.post("/summarize")
async def summarize(
    request: SummarizeRequest,
    service: AnalysisService = Depends(get_analysis_service),
) -> Dict[str, Any]:
    try:
        summary = await service.summarize(request.text)
    except PromptBuilderError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except LLMClientError as exc:
        logger.warning("summary_request_failed", error=str(exc))
        raise _provider_error(exc) from exc

    return {"data": SummarizeResponse(summary=summary).model_dump(), "meta": {}}
