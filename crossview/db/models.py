"""SQLAlchemy models for persistent storage."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List

from sqlalchemy import JSON, DateTime, Float, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base declarative class."""


def utcnow() -> datetime:
    """Timezone-aware UTC timestamp for default values."""
    return datetime.now(timezone.utc)


def new_story_id() -> str:
    return str(uuid.uuid4())


class Story(Base):
    """Synthesized cross-source story produced by an aggregation run."""

    __tablename__ = "stories"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_story_id)
    headline: Mapped[str] = mapped_column(String(512), nullable=False)
    summary: Mapped[str] = mapped_column(Text, nullable=False, default="")
    published_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    full_content: Mapped[str | None] = mapped_column(Text, nullable=True)
    category: Mapped[str] = mapped_column(String(32), nullable=False, default="other", index=True)
    common_facts: Mapped[str | None] = mapped_column(Text, nullable=True)
    image_url: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    news_type: Mapped[str] = mapped_column(String(16), nullable=False, default="static")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, index=True
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    sources: Mapped[List["StorySource"]] = relationship(
        back_populates="story", order_by="StorySource.position", lazy="selectin"
    )
    biases: Mapped[List["SourceBiasRecord"]] = relationship(
        back_populates="story", order_by="SourceBiasRecord.position", lazy="selectin"
    )

    def __repr__(self) -> str:  # pragma: no cover - debugging helper
        return f"<Story id={self.id} headline={self.headline!r}>"


class StorySource(Base):
    """One outlet article that contributed to a story."""

    __tablename__ = "story_sources"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    story_id: Mapped[str] = mapped_column(
        ForeignKey("stories.id", ondelete="CASCADE"), nullable=False, index=True
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    title: Mapped[str] = mapped_column(String(512), nullable=False)
    source: Mapped[str] = mapped_column(String(255), nullable=False)
    link: Mapped[str] = mapped_column(String(1024), nullable=False, default="")

    story: Mapped[Story] = relationship(back_populates="sources")


class SourceBiasRecord(Base):
    """Lexicon-derived bias label for one source of a story."""

    __tablename__ = "source_biases"
    __table_args__ = (UniqueConstraint("story_id", "source", name="uq_source_bias_story_source"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    story_id: Mapped[str] = mapped_column(
        ForeignKey("stories.id", ondelete="CASCADE"), nullable=False, index=True
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    source: Mapped[str] = mapped_column(String(255), nullable=False)
    bias: Mapped[str] = mapped_column(String(16), nullable=False, default="center")
    quotes: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)

    story: Mapped[Story] = relationship(back_populates="biases")


class StoryAnalysis(Base):
    """Text-synthesis enrichment attached to a story (at most one per story)."""

    __tablename__ = "story_analyses"
    __table_args__ = (UniqueConstraint("story_id", name="uq_story_analyses_story"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    story_id: Mapped[str] = mapped_column(
        ForeignKey("stories.id", ondelete="CASCADE"), nullable=False
    )
    provider: Mapped[str] = mapped_column(String(32), nullable=False)
    model: Mapped[str] = mapped_column(String(128), nullable=False)
    sources: Mapped[List[Dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)
    unique_claims: Mapped[List[Dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)
    source_bias: Mapped[List[Dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)
    raw_response: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )


class UserProfile(Base):
    """Survey-derived political profile of a user."""

    __tablename__ = "user_profiles"
    __table_args__ = (UniqueConstraint("email", name="uq_user_profiles_email"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(320), nullable=False)
    responses: Mapped[List[Dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)
    category_scores: Mapped[Dict[str, float]] = mapped_column(JSON, nullable=False, default=dict)
    political_axes: Mapped[Dict[str, float] | None] = mapped_column(JSON, nullable=True)
    political_type: Mapped[str | None] = mapped_column(String(128), nullable=True)
    engagement_score: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    anti_polarization_score: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    anti_polarization_level: Mapped[str] = mapped_column(String(16), nullable=False, default="Very Low")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )


__all__ = [
    "Base",
    "utcnow",
    "new_story_id",
    "Story",
    "StorySource",
    "SourceBiasRecord",
    "StoryAnalysis",
    "UserProfile",
]
