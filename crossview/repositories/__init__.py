"""Repository layer exports."""

from .analysis_repo import AnalysisPersistenceResult, AnalysisRepository
from .profile_repo import ProfilePersistenceResult, ProfileRepository
from .story_repo import StoryRepository

__all__ = [
    "AnalysisPersistenceResult",
    "AnalysisRepository",
    "ProfilePersistenceResult",
    "ProfileRepository",
    "StoryRepository",
]
