"""Repository helpers for persisting user political profiles."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from crossview.core.logging import get_logger
from crossview.db.models import UserProfile, utcnow
from crossview.survey.scoring import SurveyResult

logger = get_logger(__name__)


@dataclass
class ProfilePersistenceResult:
    profile: UserProfile
    created: bool


class ProfileRepository:
    """Encapsulates read/write operations for user profiles keyed by email."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.log = logger.bind(component="ProfileRepository")

    async def get_by_email(self, email: str) -> Optional[UserProfile]:
        stmt = select(UserProfile).where(UserProfile.email == email.strip().lower())
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def upsert_profile(
        self,
        email: str,
        *,
        responses: List[Dict[str, Any]],
        result: SurveyResult,
    ) -> ProfilePersistenceResult:
        """Store the latest survey result for a user, replacing any previous one."""

        email = email.strip().lower()
        existing = await self.get_by_email(email)
        created = existing is None
        profile = existing or UserProfile(email=email)

        profile.responses = responses
        profile.category_scores = dict(result.category_scores)
        profile.political_axes = result.axes.as_dict()
        profile.political_type = result.political_type
        profile.engagement_score = result.engagement_score
        profile.anti_polarization_score = result.anti_polarization_score
        profile.anti_polarization_level = result.anti_polarization_level
        profile.updated_at = utcnow()

        if created:
            self.session.add(profile)
        await self.session.flush()
        self.log.info(
            "user_profile_created" if created else "user_profile_updated",
            political_type=result.political_type,
        )
        return ProfilePersistenceResult(profile=profile, created=created)


__all__ = ["ProfileRepository", "ProfilePersistenceResult"]
