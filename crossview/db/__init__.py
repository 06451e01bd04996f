"""Database utilities for the Crossview backend."""

from .session import (
    create_session_factory,
    get_engine,
    get_sessionmaker,
    get_async_session,
    init_db,
    dispose_engine,
)
from .models import Base, Story, StorySource, SourceBiasRecord, StoryAnalysis, UserProfile

__all__ = [
    "create_session_factory",
    "get_engine",
    "get_sessionmaker",
    "get_async_session",
    "init_db",
    "dispose_engine",
    "Base",
    "Story",
    "StorySource",
    "SourceBiasRecord",
    "StoryAnalysis",
    "UserProfile",
]
