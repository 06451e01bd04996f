"""
Split stories into those affirming and those challenging a user's political leaning.

Two policies exist. ``CategoryScorePolicy`` works from raw survey category scores and
looks only at the first listed source bias. ``SocialAxisPolicy`` works from the stored
social axis and averages every source bias of a story.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Generic, List, Mapping, Optional, Protocol, Sequence, TypeVar

from crossview.core.logging import get_logger
from crossview.survey.questions import (
    ECONOMIC_SYSTEMS,
    GOVERNMENT_ROLE,
    INDIVIDUAL_RIGHTS,
    SOCIAL_ISSUES,
)

logger = get_logger(__name__)

S = TypeVar("S")

NEUTRAL_SCORE = 5.0
USER_SCALAR_CATEGORIES = (INDIVIDUAL_RIGHTS, ECONOMIC_SYSTEMS, GOVERNMENT_ROLE, SOCIAL_ISSUES)

CATEGORY_POLICY_VALUES = {"left": 8.0, "right": 2.0, "center": 5.0}
CATEGORY_POLICY_THRESHOLD = 3.0

SOCIAL_POLICY_VALUES = {"left": 7.0, "right": 3.0, "center": 5.0}
SOCIAL_POLICY_THRESHOLD = 7.0
SOCIAL_POLICY_LIMIT = 10


@dataclass
class PersonalizedSplit(Generic[S]):
    affirming: List[S] = field(default_factory=list)
    challenging: List[S] = field(default_factory=list)


@dataclass(frozen=True)
class ProfileView:
    """The parts of a stored profile the policies read."""

    category_scores: Mapping[str, float]
    social_score: Optional[float] = None

    @classmethod
    def from_record(cls, profile: Any) -> "ProfileView":
        """Accept a ``UserProfile`` row, a plain mapping or an existing view."""
        if isinstance(profile, ProfileView):
            return profile
        if isinstance(profile, Mapping):
            scores = profile.get("category_scores") or {}
            axes = profile.get("political_axes") or {}
        else:
            scores = getattr(profile, "category_scores", None) or {}
            axes = getattr(profile, "political_axes", None) or {}
        social = axes.get("social_score") if isinstance(axes, Mapping) else None
        return cls(
            category_scores=dict(scores),
            social_score=float(social) if social is not None else None,
        )


def story_bias_labels(story: Any) -> List[str]:
    """Return the bias labels of a story in listed order."""
    if isinstance(story, Mapping):
        entries = story.get("source_bias") or story.get("sourceBias") or []
    else:
        entries = getattr(story, "source_bias", None)
        if entries is None:
            entries = getattr(story, "biases", None) or []

    labels: List[str] = []
    for entry in entries:
        label = entry.get("bias") if isinstance(entry, Mapping) else getattr(entry, "bias", None)
        if label:
            labels.append(str(label).lower())
    return labels


class PersonalizationPolicy(Protocol):
    name: str

    def categorize(self, stories: Sequence[S], profile: ProfileView) -> PersonalizedSplit[S]:
        ...


class CategoryScorePolicy:
    """Compare a 0..10 user scalar against the first source bias of each story."""

    name = "category_scores"

    def user_scalar(self, profile: ProfileView) -> float:
        values = []
        for category in USER_SCALAR_CATEGORIES:
            value = profile.category_scores.get(category)
            values.append(NEUTRAL_SCORE if value is None else float(value))
        return sum(values) / len(values)

    def story_scalar(self, story: Any) -> float:
        labels = story_bias_labels(story)
        first = labels[0] if labels else "center"
        return CATEGORY_POLICY_VALUES.get(first, CATEGORY_POLICY_VALUES["center"])

    def categorize(self, stories: Sequence[S], profile: ProfileView) -> PersonalizedSplit[S]:
        user = self.user_scalar(profile)
        split: PersonalizedSplit[S] = PersonalizedSplit()
        for story in stories:
            if abs(user - self.story_scalar(story)) < CATEGORY_POLICY_THRESHOLD:
                split.affirming.append(story)
            else:
                split.challenging.append(story)
        return split


class SocialAxisPolicy:
    """Compare the -10..10 social axis against the averaged bias of every source."""

    name = "social_axis"

    def __init__(self, limit: int = SOCIAL_POLICY_LIMIT) -> None:
        self.limit = limit

    def story_leaning(self, story: Any) -> Optional[float]:
        values = [
            SOCIAL_POLICY_VALUES[label]
            for label in story_bias_labels(story)
            if label in SOCIAL_POLICY_VALUES
        ]
        if not values:
            return None
        average = sum(values) / len(values)
        return (average - NEUTRAL_SCORE) * 2

    def categorize(self, stories: Sequence[S], profile: ProfileView) -> PersonalizedSplit[S]:
        user = profile.social_score if profile.social_score is not None else 0.0
        split: PersonalizedSplit[S] = PersonalizedSplit()
        for story in stories:
            leaning = self.story_leaning(story)
            if leaning is None:
                continue
            bucket = split.affirming if abs(user - leaning) < SOCIAL_POLICY_THRESHOLD else split.challenging
            if len(bucket) < self.limit:
                bucket.append(story)
        return split


def select_policy(profile: ProfileView, *, limit: int = SOCIAL_POLICY_LIMIT) -> PersonalizationPolicy:
    if profile.social_score is not None:
        return SocialAxisPolicy(limit=limit)
    return CategoryScorePolicy()


def categorize(
    stories: Sequence[S],
    profile: Any,
    *,
    policy: Optional[PersonalizationPolicy] = None,
) -> PersonalizedSplit[S]:
    """Split ``stories`` for ``profile`` using ``policy`` or the one its data supports."""
    view = ProfileView.from_record(profile)
    chosen = policy or select_policy(view)
    split = chosen.categorize(stories, view)
    logger.debug(
        "stories_personalized",
        policy=chosen.name,
        stories=len(stories),
        affirming=len(split.affirming),
        challenging=len(split.challenging),
    )
    return split


__all__ = [
    "CategoryScorePolicy",
    "PersonalizationPolicy",
    "PersonalizedSplit",
    "ProfileView",
    "SocialAxisPolicy",
    "categorize",
    "select_policy",
    "story_bias_labels",
]
