from .analysis import router as analysis_router
from .health import router as health_router
from .perspective import router as perspective_router
from .stories import router as stories_router
from .survey import router as survey_router

__all__ = [
    "analysis_router",
    "health_router",
    "perspective_router",
    "stories_router",
    "survey_router",
]
