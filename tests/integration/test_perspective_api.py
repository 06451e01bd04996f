from __future__ import annotations

import pytest
from fastapi import HTTPException

from crossview.core.config import Settings
from crossview.db.models import UserProfile
from crossview.routers.perspective import get_perspective
from crossview.services.story_service import SourceBias, SourceRef, StoryService, SynthesizedStory
from crossview.services.survey_service import SurveyService
from crossview.survey.questions import (
    ECONOMIC_SYSTEMS,
    GOVERNMENT_ROLE,
    INDIVIDUAL_RIGHTS,
    QUESTION_COUNT,
    SOCIAL_ISSUES,
)
from crossview.survey.scoring import score_survey


class Answer:
    def __init__(self, value: float, weight: float = 1.0) -> None:
        self.value = value
        self.weight = weight


SETTINGS = Settings(_env_file=None, perspective_story_window=50, perspective_bucket_limit=10)


async def _seed_stories(session_factory) -> None:
    service = StoryService(session_factory=session_factory)
    for headline, labels in (
        ("Left story", ["left"]),
        ("Right story", ["right"]),
        ("Center story", ["center"]),
        ("Unlabelled story", []),
    ):
        await service.persist(
            SynthesizedStory(
                headline=headline,
                summary=headline,
                category="politics",
                sources=[SourceRef(title=headline, source="Outlet", link="#")],
                source_bias=[
                    SourceBias(source=f"Outlet {index}", bias=label, quotes=("Quote.",))
                    for index, label in enumerate(labels)
                ],
            )
        )


def _headlines(stories) -> set:
    return {story["headline"] for story in stories}


@pytest.mark.asyncio
async def test_social_axis_profile_split(session_factory) -> None:
    await _seed_stories(session_factory)
    await SurveyService(session_factory=session_factory).submit(
        [Answer(10)] * QUESTION_COUNT, email="reader@example.com"
    )

    async with session_factory() as session:
        payload = await get_perspective(
            email="reader@example.com", type="all", session=session, settings=SETTINGS
        )

    assert payload["meta"]["policy"] == "social_axis"
    assert payload["meta"]["stories_considered"] == 4
    assert _headlines(payload["data"]["affirming"]) == {"Left story"}
    assert _headlines(payload["data"]["challenging"]) == {"Right story", "Center story"}


@pytest.mark.asyncio
async def test_category_score_profile_split(session_factory) -> None:
    await _seed_stories(session_factory)
    result = score_survey([Answer(8)] * QUESTION_COUNT)
    async with session_factory() as session:
        session.add(
            UserProfile(
                email="legacy@example.com",
                category_scores={
                    INDIVIDUAL_RIGHTS: 8.0,
                    ECONOMIC_SYSTEMS: 8.0,
                    GOVERNMENT_ROLE: 8.0,
                    SOCIAL_ISSUES: 8.0,
                },
                political_axes=None,
                political_type=result.political_type,
            )
        )
        await session.commit()

    async with session_factory() as session:
        payload = await get_perspective(
            email="legacy@example.com", type="all", session=session, settings=SETTINGS
        )

    assert payload["meta"]["policy"] == "category_scores"
    assert _headlines(payload["data"]["affirming"]) == {"Left story"}
    assert _headlines(payload["data"]["challenging"]) == {
        "Right story",
        "Center story",
        "Unlabelled story",
    }


@pytest.mark.asyncio
async def test_type_filter_limits_buckets(session_factory) -> None:
    await _seed_stories(session_factory)
    await SurveyService(session_factory=session_factory).submit(
        [Answer(10)] * QUESTION_COUNT, email="reader@example.com"
    )

    async with session_factory() as session:
        align = await get_perspective(
            email="reader@example.com", type="align", session=session, settings=SETTINGS
        )
        challenge = await get_perspective(
            email="reader@example.com", type="challenge", session=session, settings=SETTINGS
        )

    assert align["data"]["challenging"] == []
    assert _headlines(align["data"]["affirming"]) == {"Left story"}
    assert challenge["data"]["affirming"] == []
    assert len(challenge["data"]["challenging"]) == 2


@pytest.mark.asyncio
@pytest.mark.parametrize(("email", "status"), [(None, 400), ("  ", 400), ("nobody@example.com", 404)])
async def test_missing_email_or_profile(session_factory, email, status) -> None:
    async with session_factory() as session:
        with pytest.raises(HTTPException) as excinfo:
            await get_perspective(email=email, type="all", session=session, settings=SETTINGS)

    assert excinfo.value.status_code == status
