"""Survey submission: score answers and keep the resulting profile per user."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from crossview.core.logging import get_logger
from crossview.db.models import UserProfile
from crossview.db.session import get_sessionmaker
from crossview.repositories.profile_repo import ProfileRepository
from crossview.survey.scoring import SurveyResult, WeightedAnswer, score_survey

logger = get_logger(__name__).bind(component="SurveyService")


@dataclass(slots=True)
class SurveyOutcome:
    result: SurveyResult
    persisted: bool = False
    created: bool = False


class SurveyService:
    """Scores questionnaires; persists the profile only when the user is identified."""

    def __init__(
        self,
        *,
        session_factory: async_sessionmaker[AsyncSession] | None = None,
    ) -> None:
        self.session_factory = session_factory or get_sessionmaker()

    async def submit(
        self,
        responses: Sequence[Optional[WeightedAnswer]],
        *,
        email: Optional[str] = None,
    ) -> SurveyOutcome:
        result = score_survey(responses)
        if not email:
            logger.info("survey_scored_anonymous", political_type=result.political_type)
            return SurveyOutcome(result=result)

        stored: List[Dict[str, Any]] = [
            {"value": answer.value, "weight": answer.weight} if answer is not None else None
            for answer in responses
        ]
        async with self.session_factory() as session:
            persistence = await ProfileRepository(session).upsert_profile(
                email,
                responses=stored,
                result=result,
            )
            await session.commit()

        return SurveyOutcome(result=result, persisted=True, created=persistence.created)

    async def get_profile(self, email: str) -> Optional[UserProfile]:
        async with self.session_factory() as session:
            return await ProfileRepository(session).get_by_email(email)


_service_instance: SurveyService | None = None


def get_survey_service() -> SurveyService:
    global _service_instance
    if _service_instance is None:
        _service_instance = SurveyService()
    return _service_instance


__all__ = ["SurveyOutcome", "SurveyService", "get_survey_service"]
