"""REST API endpoint for the personalized affirming/challenging story split."""

from __future__ import annotations

from typing import Any, Dict, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from crossview.core.config import Settings, get_settings
from crossview.core.logging import get_logger
from crossview.db.session import get_async_session
from crossview.models import PerspectiveData, PerspectiveMeta
from crossview.repositories.profile_repo import ProfileRepository
from crossview.routers.stories import load_story_responses
from crossview.services.personalization import ProfileView, categorize, select_policy

logger = get_logger(__name__)

router = APIRouter(prefix="/api/v1", tags=["perspective"])


@router.get("/perspective")
async def get_perspective(
    email: Optional[str] = Query(default=None),
    type: Literal["align", "challenge", "all"] = Query(default="all"),
    session: AsyncSession = Depends(get_async_session),
    settings: Settings = Depends(get_settings),
) -> Dict[str, Any]:
    """Split the most recent stories into those affirming or challenging the user's leaning."""
    if not email or not email.strip():
        raise HTTPException(status_code=400, detail="Email parameter is required")

    profile = await ProfileRepository(session).get_by_email(email)
    if profile is None:
        raise HTTPException(status_code=404, detail="User profile not found")

    stories = await load_story_responses(session, limit=settings.perspective_story_window)
    view = ProfileView.from_record(profile)
    policy = select_policy(view, limit=settings.perspective_bucket_limit)
    split = categorize(stories, view, policy=policy)

    data = PerspectiveData(
        affirming=split.affirming if type in ("align", "all") else [],
        challenging=split.challenging if type in ("challenge", "all") else [],
    )
    meta = PerspectiveMeta(
        email=profile.email,
        type=type,
        policy=policy.name,
        political_type=profile.political_type,
        stories_considered=len(stories),
    )
    logger.info(
        "perspective_served",
        policy=policy.name,
        affirming=len(data.affirming),
        challenging=len(data.challenging),
    )
    return {"data": data.model_dump(mode="json"), "meta": meta.model_dump(mode="json")}
