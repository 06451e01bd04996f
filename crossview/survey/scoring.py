"""Survey scoring: category scores, political axes, type label and dialogue metrics.

Every derived value is a pure function of the category scores, so recomputing a
stored profile from its category scores reproduces the same axes and label.

Axis formulas (c(X) is the 0..10 category score of X):

    liberty   = ((0.4*c(IR) + 0.4*c(CL) + 0.2*(10 - c(GR))) - 5) * 2
    social    = ((0.5*c(SI) + 0.25*c(Env) + 0.25*c(Econ)) - 5) * 2
    globalist = ((0.6*c(FP) + 0.4*c(NS)) - 5) * 2
    pragmatic = ((0.5*c(OM) + 0.3*c(TS) + 0.2*c(DT)) - 5) * 2

    individual_rights = (c(IR) + c(CL)) / 2
    inclusivity       = 0.7*c(SI) + 0.3*c(Empathy)
    national_security = 10 - c(NS)
    economic_freedom  = 10 - (c(Econ) + c(MR) + c(GR)) / 3
    environmentalism  = c(Env)

Axes are clamped to -10..10, radar dimensions to 0..10, all rounded to one decimal.
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from typing import Dict, Mapping, Optional, Protocol, Sequence, Tuple

from .questions import (
    CATEGORIES,
    CATEGORY_QUESTIONS,
    CIVIL_LIBERTIES,
    DIALOGIC_TENDENCY,
    DIALOGUE_CATEGORIES,
    ECONOMIC_SYSTEMS,
    EMPATHY,
    ENVIRONMENTAL,
    FOREIGN_POLICY,
    GOVERNMENT_ROLE,
    INDIVIDUAL_RIGHTS,
    MARKET_REGULATION,
    NATIONAL_SECURITY,
    OPEN_MINDEDNESS,
    SOCIAL_ISSUES,
    TRUTH_SEEKING,
)

AXIS_BUCKET = 5.0
GLOBALIST_BUCKET = 7.0

ANTI_POLARIZATION_LEVELS: Tuple[Tuple[float, str], ...] = (
    (8.0, "Very High"),
    (6.0, "High"),
    (4.0, "Moderate"),
    (2.0, "Low"),
)


class WeightedAnswer(Protocol):
    value: float
    weight: float


def round_half_up(value: float, digits: int = 0) -> float:
    """Round halves upward, the way browser clients round scores."""
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def _clamp(value: float, lower: float, upper: float) -> float:
    return max(lower, min(upper, value))


def score_categories(responses: Sequence[Optional[WeightedAnswer]]) -> Dict[str, float]:
    """
    Weighted average answer per category, rounded to one decimal.

    Unanswered questions (missing, or a falsy value) carry no weight. A category
    without weight scores 0.
    """
    scores: Dict[str, float] = {}
    for category in CATEGORIES:
        total_value = 0.0
        total_weight = 0.0
        for index in CATEGORY_QUESTIONS[category]:
            if index >= len(responses):
                continue
            response = responses[index]
            if response is None or not response.value:
                continue
            total_value += response.value * response.weight
            total_weight += response.weight
        score = total_value / total_weight if total_weight > 0 else 0.0
        scores[category] = round_half_up(score, 1)
    return scores


@dataclass(frozen=True)
class PoliticalAxes:
    liberty_score: float
    social_score: float
    globalist_score: float
    pragmatic_score: float
    individual_rights: float
    inclusivity: float
    national_security: float
    economic_freedom: float
    environmentalism: float

    def as_dict(self) -> Dict[str, float]:
        return asdict(self)


def _axis(value: float) -> float:
    return round_half_up(_clamp((value - 5.0) * 2.0, -10.0, 10.0), 1)


def _dimension(value: float) -> float:
    return round_half_up(_clamp(value, 0.0, 10.0), 1)


def compute_axes(scores: Mapping[str, float]) -> PoliticalAxes:
    def c(category: str) -> float:
        return float(scores.get(category, 0.0) or 0.0)

    return PoliticalAxes(
        liberty_score=_axis(
            0.4 * c(INDIVIDUAL_RIGHTS) + 0.4 * c(CIVIL_LIBERTIES) + 0.2 * (10 - c(GOVERNMENT_ROLE))
        ),
        social_score=_axis(
            0.5 * c(SOCIAL_ISSUES) + 0.25 * c(ENVIRONMENTAL) + 0.25 * c(ECONOMIC_SYSTEMS)
        ),
        globalist_score=_axis(0.6 * c(FOREIGN_POLICY) + 0.4 * c(NATIONAL_SECURITY)),
        pragmatic_score=_axis(
            0.5 * c(OPEN_MINDEDNESS) + 0.3 * c(TRUTH_SEEKING) + 0.2 * c(DIALOGIC_TENDENCY)
        ),
        individual_rights=_dimension((c(INDIVIDUAL_RIGHTS) + c(CIVIL_LIBERTIES)) / 2),
        inclusivity=_dimension(0.7 * c(SOCIAL_ISSUES) + 0.3 * c(EMPATHY)),
        national_security=_dimension(10 - c(NATIONAL_SECURITY)),
        economic_freedom=_dimension(
            10 - (c(ECONOMIC_SYSTEMS) + c(MARKET_REGULATION) + c(GOVERNMENT_ROLE)) / 3
        ),
        environmentalism=_dimension(c(ENVIRONMENTAL)),
    )


def base_political_label(liberty_score: float, social_score: float) -> str:
    libertarian = liberty_score >= AXIS_BUCKET
    authoritarian = liberty_score <= -AXIS_BUCKET
    progressive = social_score >= AXIS_BUCKET
    conservative = social_score <= -AXIS_BUCKET

    if libertarian and progressive:
        return "Progressive Libertarian"
    if libertarian and conservative:
        return "Conservative Libertarian"
    if authoritarian and progressive:
        return "Progressive Authoritarian"
    if authoritarian and conservative:
        return "Conservative Authoritarian"
    if progressive:
        return "Progressive"
    if conservative:
        return "Conservative"
    if libertarian:
        return "Libertarian"
    if authoritarian:
        return "Authoritarian"
    return "Centrist"


def political_type(
    liberty_score: float,
    social_score: float,
    pragmatic_score: float = 0.0,
    globalist_score: float = 0.0,
) -> str:
    """Bucket the axes into a label such as ``Globalist Pragmatic Progressive Libertarian``."""
    label = base_political_label(liberty_score, social_score)
    if pragmatic_score >= AXIS_BUCKET:
        label = f"Pragmatic {label}"
    elif pragmatic_score <= -AXIS_BUCKET:
        label = f"Ideological {label}"
    if globalist_score >= GLOBALIST_BUCKET:
        label = f"Globalist {label}"
    elif globalist_score <= -GLOBALIST_BUCKET:
        label = f"Nationalist {label}"
    return label


def engagement_score(scores: Mapping[str, float]) -> int:
    dialogic = float(scores.get(DIALOGIC_TENDENCY, 0.0) or 0.0)
    return int(round_half_up(dialogic / 10 * 100))


def anti_polarization(scores: Mapping[str, float]) -> Tuple[float, str]:
    total = sum(float(scores.get(category, 0.0) or 0.0) for category in DIALOGUE_CATEGORIES)
    score = round_half_up(total / len(DIALOGUE_CATEGORIES), 1)
    for threshold, level in ANTI_POLARIZATION_LEVELS:
        if score >= threshold:
            return score, level
    return score, "Very Low"


@dataclass(frozen=True)
class SurveyResult:
    category_scores: Dict[str, float]
    axes: PoliticalAxes
    political_type: str
    engagement_score: int
    anti_polarization_score: float
    anti_polarization_level: str

    def as_dict(self) -> dict:
        return {
            "category_scores": dict(self.category_scores),
            "political_axes": self.axes.as_dict(),
            "political_type": self.political_type,
            "engagement_score": self.engagement_score,
            "anti_polarization_score": self.anti_polarization_score,
            "anti_polarization_level": self.anti_polarization_level,
        }


def profile_from_scores(scores: Mapping[str, float]) -> SurveyResult:
    """Derive every profile value from already computed category scores."""
    axes = compute_axes(scores)
    anti_score, anti_level = anti_polarization(scores)
    return SurveyResult(
        category_scores=dict(scores),
        axes=axes,
        political_type=political_type(
            axes.liberty_score,
            axes.social_score,
            axes.pragmatic_score,
            axes.globalist_score,
        ),
        engagement_score=engagement_score(scores),
        anti_polarization_score=anti_score,
        anti_polarization_level=anti_level,
    )


def score_survey(responses: Sequence[Optional[WeightedAnswer]]) -> SurveyResult:
    return profile_from_scores(score_categories(responses))


__all__ = [
    "PoliticalAxes",
    "SurveyResult",
    "WeightedAnswer",
    "round_half_up",
    "score_categories",
    "compute_axes",
    "base_political_label",
    "political_type",
    "engagement_score",
    "anti_polarization",
    "profile_from_scores",
    "score_survey",
]
