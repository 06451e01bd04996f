from __future__ import annotations

import pytest
from fastapi import HTTPException
from pydantic import ValidationError

from crossview.models import SurveySubmission
from crossview.routers.survey import get_survey_profile, list_questions, submit_survey
from crossview.services.survey_service import SurveyService
from crossview.survey.questions import QUESTION_COUNT


def _submission(value: float = 10, email: str | None = "Reader@Example.com") -> SurveySubmission:
    return SurveySubmission(
        email=email,
        responses=[{"value": value, "weight": 1} for _ in range(QUESTION_COUNT)],
    )


@pytest.mark.asyncio
async def test_questions_list_every_option() -> None:
    payload = await list_questions()

    assert payload["meta"]["count"] == QUESTION_COUNT
    first = payload["data"][0]
    assert first["index"] == 0
    assert first["options"]
    assert set(first["options"][0]) == {"text", "value", "weight"}


@pytest.mark.asyncio
async def test_submit_scores_and_stores_profile(session_factory) -> None:
    service = SurveyService(session_factory=session_factory)

    payload = await submit_survey(_submission(), service=service)

    data = payload["data"]
    assert payload["meta"] == {"created": True, "answered": QUESTION_COUNT}
    assert data["email"] == "reader@example.com"
    assert data["persisted"] is True
    assert data["political_type"] == "Globalist Pragmatic Progressive Libertarian"
    assert data["engagement_score"] == 100

    stored = await get_survey_profile("reader@example.com", service=service)
    assert stored["data"]["political_type"] == data["political_type"]
    assert stored["data"]["category_scores"] == data["category_scores"]
    assert stored["data"]["updated_at"] is not None


@pytest.mark.asyncio
async def test_resubmission_replaces_profile(session_factory) -> None:
    service = SurveyService(session_factory=session_factory)
    await submit_survey(_submission(10), service=service)

    payload = await submit_survey(_submission(1), service=service)

    assert payload["meta"]["created"] is False
    stored = await get_survey_profile("READER@example.com", service=service)
    assert stored["data"]["political_axes"]["social_score"] == payload["data"]["political_axes"]["social_score"]
    assert stored["data"]["political_axes"]["social_score"] < 0


@pytest.mark.asyncio
async def test_anonymous_submission_is_not_stored(session_factory) -> None:
    service = SurveyService(session_factory=session_factory)

    payload = await submit_survey(_submission(email=""), service=service)

    assert payload["data"]["persisted"] is False
    assert payload["data"]["email"] is None
    assert payload["meta"]["created"] is False


@pytest.mark.asyncio
async def test_unknown_profile_returns_404(session_factory) -> None:
    with pytest.raises(HTTPException) as excinfo:
        await get_survey_profile("nobody@example.com", service=SurveyService(session_factory=session_factory))

    assert excinfo.value.status_code == 404


def test_submission_validation() -> None:
    with pytest.raises(ValidationError):
        SurveySubmission(email="not-an-email", responses=[])
    with pytest.raises(ValidationError):
        SurveySubmission(responses=[{"value": 11}])
    with pytest.raises(ValidationError):
        SurveySubmission(responses=[{"value": 5}] * (QUESTION_COUNT + 1))

    partial = SurveySubmission(responses=[None, {"value": 4}])
    assert partial.responses[0] is None
    assert partial.responses[1].weight == 1
