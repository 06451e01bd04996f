"""Political-profile questionnaire and scoring."""

from .questions import CATEGORIES, CATEGORY_QUESTIONS, QUESTIONS, QUESTION_COUNT
from .scoring import (
    PoliticalAxes,
    SurveyResult,
    compute_axes,
    political_type,
    profile_from_scores,
    score_categories,
    score_survey,
)

__all__ = [
    "CATEGORIES",
    "CATEGORY_QUESTIONS",
    "QUESTIONS",
    "QUESTION_COUNT",
    "PoliticalAxes",
    "SurveyResult",
    "compute_axes",
    "political_type",
    "profile_from_scores",
    "score_categories",
    "score_survey",
]
