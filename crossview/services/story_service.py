"""Story synthesis: turn an event cluster into one persisted, multi-source story."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Pattern, Sequence, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from crossview.core.logging import get_logger
from crossview.db.session import get_sessionmaker
from crossview.events.clustering import Cluster
from crossview.feeds.base import Article
from crossview.nlp.bias import classify_bias
from crossview.repositories.story_repo import StoryRepository

logger = get_logger(__name__).bind(component="StoryService")

STORY_CATEGORIES: Tuple[str, ...] = (
    "us",
    "politics",
    "world",
    "business",
    "technology",
    "health",
    "science",
    "sports",
    "entertainment",
    "social",
    "other",
)

DEFAULT_CATEGORY = "other"

# Evaluated in order, first match wins.
CATEGORY_RULES: Tuple[Tuple[str, Pattern[str]], ...] = (
    (
        "us",
        re.compile(
            r"(?<!\w)u\.s\.(?!\w)|\b(united states|american|americans|washington|white house|"
            r"federal|state department|pentagon)\b",
            re.IGNORECASE,
        ),
    ),
    (
        "politics",
        re.compile(
            r"\b(president|congress|senate|election|vote|ballot|democrat\w*|republican\w*|"
            r"political|politics|governor|campaign|legislation|lawmakers?|parliament)\b",
            re.IGNORECASE,
        ),
    ),
    (
        "world",
        re.compile(
            r"\b(international|global|world|foreign|diplomat\w*|embassy|united nations|"
            r"war|military|troops|ukraine|russia|china|israel|gaza|europe\w*)\b",
            re.IGNORECASE,
        ),
    ),
    (
        "business",
        re.compile(
            r"\b(economy|economic|market|markets|stocks?|inflation|federal reserve|"
            r"interest rates?|unemployment|earnings|company|companies|business|trade|tariffs?)\b",
            re.IGNORECASE,
        ),
    ),
    (
        "technology",
        re.compile(
            r"\b(tech|technology|digital|cyber\w*|internet|ai|artificial intelligence|"
            r"software|computer|robots?|smartphone|apple|google|microsoft)\b",
            re.IGNORECASE,
        ),
    ),
    (
        "health",
        re.compile(
            r"\b(health|covid|virus|disease|medical|doctors?|hospitals?|patients?|"
            r"vaccines?|medicine|healthcare)\b",
            re.IGNORECASE,
        ),
    ),
    (
        "science",
        re.compile(
            r"\b(science|scientists?|research|study|space|nasa|climate|physics|"
            r"biology|planet|species)\b",
            re.IGNORECASE,
        ),
    ),
    (
        "sports",
        re.compile(
            r"\b(sports?|football|basketball|baseball|soccer|tennis|olympic\w*|"
            r"nfl|nba|mlb|championship|tournament|coach)\b",
            re.IGNORECASE,
        ),
    ),
    (
        "entertainment",
        re.compile(
            r"\b(entertainment|movies?|films?|music|celebrity|actor|actress|singer|"
            r"hollywood|television|tv|album|concert|oscars?)\b",
            re.IGNORECASE,
        ),
    ),
    (
        "social",
        re.compile(
            r"\b(social|community|education|schools?|students?|immigration|immigrants?|"
            r"lifestyle|culture|religion|housing|family)\b",
            re.IGNORECASE,
        ),
    ),
)

CATEGORY_ALIASES: Dict[str, str] = {
    "tech": "technology",
    "technology": "technology",
    "business": "business",
    "economy": "business",
    "finance": "business",
    "politics": "politics",
    "political": "politics",
    "policy": "politics",
    "science": "science",
    "scientific": "science",
    "health": "health",
    "healthcare": "health",
    "medical": "health",
    "sports": "sports",
    "sport": "sports",
    "entertainment": "entertainment",
    "world": "world",
    "international": "world",
    "global": "world",
    "us": "us",
    "usa": "us",
    "america": "us",
    "social": "social",
    "lifestyle": "social",
}


def normalize_category(value: str) -> str:
    """Map a category alias onto its canonical name; unknown values are lowercased."""
    cleaned = (value or "").strip().lower()
    return CATEGORY_ALIASES.get(cleaned, cleaned)


def categorize_text(title: str, description: str = "", keywords: Sequence[str] = ()) -> str:
    text = " ".join(part for part in (title, description, " ".join(keywords)) if part)
    for category, pattern in CATEGORY_RULES:
        if pattern.search(text):
            return category
    return DEFAULT_CATEGORY


@dataclass(frozen=True)
class SourceRef:
    title: str
    source: str
    link: str


@dataclass(frozen=True)
class SourceBias:
    source: str
    bias: str
    quotes: Tuple[str, ...] = ()


@dataclass
class SynthesizedStory:
    """In-memory story produced from one cluster, before persistence."""

    headline: str
    summary: str
    category: str
    sources: List[SourceRef] = field(default_factory=list)
    source_bias: List[SourceBias] = field(default_factory=list)
    published_at: Optional[datetime] = None
    full_content: Optional[str] = None
    common_facts: Optional[str] = None
    image_url: Optional[str] = None
    news_type: str = "static"


def representative_article(articles: Sequence[Article]) -> Article:
    """Return the most detailed article; ties keep the earliest one."""
    if not articles:
        raise ValueError("Cannot pick a representative from an empty cluster")
    best = articles[0]
    for article in articles[1:]:
        if article.detail_length > best.detail_length:
            best = article
    return best


def aggregate_source_bias(articles: Sequence[Article]) -> List[SourceBias]:
    """Classify each member and keep one entry per outlet, first occurrence first."""
    seen: set[str] = set()
    entries: List[SourceBias] = []
    for article in articles:
        if article.source_name in seen:
            continue
        result = classify_bias(article.title, article.description, article.content)
        if not result.quotes:
            continue
        seen.add(article.source_name)
        entries.append(SourceBias(source=article.source_name, bias=result.label, quotes=result.quotes))
    return entries


def synthesize(cluster: Cluster, *, news_type: str = "static") -> SynthesizedStory:
    """Build a story from a cluster of articles describing the same event."""
    articles = cluster.articles
    lead = representative_article(articles)
    category = cluster.category or categorize_text(lead.title, lead.description, lead.keywords)

    published_at = lead.published_at
    if published_at is None:
        dates = [article.published_at for article in articles if article.published_at]
        published_at = max(dates) if dates else None

    image_url = lead.image_url or next(
        (article.image_url for article in articles if article.image_url), None
    )

    return SynthesizedStory(
        headline=lead.title,
        summary=lead.description or lead.title,
        category=category,
        sources=[
            SourceRef(title=article.title, source=article.source_name, link=article.url or "#")
            for article in articles
        ],
        source_bias=aggregate_source_bias(articles),
        published_at=published_at,
        full_content=lead.content or lead.description or None,
        image_url=image_url,
        news_type=news_type,
    )


@dataclass
class PersistOutcome:
    """Result of a best-effort story write."""

    story_id: Optional[str]
    sources_written: int = 0
    biases_written: int = 0
    errors: List[str] = field(default_factory=list)

    @property
    def persisted(self) -> bool:
        return self.story_id is not None


class StoryService:
    """Writes synthesized stories; each row lands in its own savepoint."""

    def __init__(
        self,
        *,
        session_factory: Optional[async_sessionmaker[AsyncSession]] = None,
        repository_factory: Callable[[AsyncSession], StoryRepository] = StoryRepository,
    ) -> None:
        self.session_factory = session_factory or get_sessionmaker()
        self.repository_factory = repository_factory

    async def persist(self, story: SynthesizedStory) -> PersistOutcome:
        """
        Store a story with its sources and bias rows.

        A failing row is logged and skipped. Rows already written stay written, and a
        story whose main row or final commit fails returns an outcome without
        ``story_id``.
        """
        async with self.session_factory() as session:
            repo = self.repository_factory(session)
            try:
                async with session.begin_nested():
                    record = await repo.create_story(
                        headline=story.headline,
                        summary=story.summary,
                        category=story.category,
                        published_at=story.published_at,
                        full_content=story.full_content,
                        common_facts=story.common_facts,
                        image_url=story.image_url,
                        news_type=story.news_type,
                    )
                story_id = record.id
            except SQLAlchemyError as exc:
                logger.warning("story_insert_failed", headline=story.headline[:80], error=str(exc))
                await session.rollback()
                return PersistOutcome(story_id=None, errors=[str(exc)])

            outcome = PersistOutcome(story_id=story_id)

            for position, source in enumerate(story.sources):
                try:
                    async with session.begin_nested():
                        await repo.add_source(
                            story_id,
                            position=position,
                            title=source.title,
                            source=source.source,
                            link=source.link,
                        )
                    outcome.sources_written += 1
                except SQLAlchemyError as exc:
                    logger.warning(
                        "story_source_insert_failed",
                        story_id=story_id,
                        source=source.source,
                        error=str(exc),
                    )
                    outcome.errors.append(str(exc))

            for position, entry in enumerate(story.source_bias):
                try:
                    async with session.begin_nested():
                        await repo.add_source_bias(
                            story_id,
                            position=position,
                            source=entry.source,
                            bias=entry.bias,
                            quotes=entry.quotes,
                        )
                    outcome.biases_written += 1
                except SQLAlchemyError as exc:
                    logger.warning(
                        "source_bias_insert_failed",
                        story_id=story_id,
                        source=entry.source,
                        error=str(exc),
                    )
                    outcome.errors.append(str(exc))

            try:
                await session.commit()
            except SQLAlchemyError as exc:
                logger.warning("story_commit_failed", story_id=story_id, error=str(exc))
                await session.rollback()
                return PersistOutcome(story_id=None, errors=[*outcome.errors, str(exc)])

        logger.info(
            "story_persisted",
            story_id=story_id,
            sources=outcome.sources_written,
            biases=outcome.biases_written,
            failures=len(outcome.errors),
        )
        return outcome

    async def persist_many(self, stories: Sequence[SynthesizedStory]) -> Dict[str, Any]:
        outcomes = [await self.persist(story) for story in stories]
        persisted = [outcome.story_id for outcome in outcomes if outcome.story_id]
        return {
            "persisted": len(persisted),
            "failed": len(outcomes) - len(persisted),
            "story_ids": persisted,
        }


_service_instance: Optional[StoryService] = None


def get_story_service() -> StoryService:
    global _service_instance
    if _service_instance is None:
        _service_instance = StoryService()
    return _service_instance


__all__ = [
    "CATEGORY_ALIASES",
    "CATEGORY_RULES",
    "DEFAULT_CATEGORY",
    "PersistOutcome",
    "STORY_CATEGORIES",
    "SourceBias",
    "SourceRef",
    "StoryService",
    "SynthesizedStory",
    "aggregate_source_bias",
    "categorize_text",
    "get_story_service",
    "normalize_category",
    "representative_article",
    "synthesize",
]
