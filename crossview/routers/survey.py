"""REST API endpoints for the political survey."""

from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException

from crossview.core.logging import get_logger
from crossview.models import SurveyResultResponse, SurveySubmission
from crossview.services.survey_service import SurveyService, get_survey_service
from crossview.survey.questions import QUESTIONS

logger = get_logger(__name__)

router = APIRouter(prefix="/api/v1", tags=["survey"])


@router.get("/survey/questions")
async def list_questions() -> Dict[str, Any]:
    data = [
        {
            "index": index,
            "text": question.text,
            "category": question.category,
            "options": [
                {"text": option.text, "value": option.value, "weight": option.weight}
                for option in question.options
            ],
        }
        for index, question in enumerate(QUESTIONS)
    ]
    return {"data": data, "meta": {"count": len(data)}}


@router.post("/survey")
async def submit_survey(
    submission: SurveySubmission,
    service: SurveyService = Depends(get_survey_service),
) -> Dict[str, Any]:
    """Score the answers and, when an email is given, store them as the user's profile."""
    outcome = await service.submit(submission.responses, email=submission.email)
    response = SurveyResultResponse(
        email=submission.email,
        persisted=outcome.persisted,
        **outcome.result.as_dict(),
    )
    return {
        "data": response.model_dump(mode="json"),
        "meta": {"created": outcome.created, "answered": sum(1 for r in submission.responses if r and r.value)},
    }


@router.get("/survey/{email}")
async def get_survey_profile(
    email: str,
    service: SurveyService = Depends(get_survey_service),
) -> Dict[str, Any]:
    profile = await service.get_profile(email)
    if profile is None:
        raise HTTPException(status_code=404, detail="User profile not found")

    response = SurveyResultResponse(
        email=profile.email,
        category_scores=profile.category_scores or {},
        political_axes=profile.political_axes or {},
        political_type=profile.political_type or "",
        engagement_score=profile.engagement_score,
        anti_polarization_score=profile.anti_polarization_score,
        anti_polarization_level=profile.anti_polarization_level,
        persisted=True,
        updated_at=profile.updated_at,
    )
    return {"data": response.model_dump(mode="json"), "meta": {}}
