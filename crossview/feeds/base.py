"""
Abstract base class for news source readers.

This module defines the FeedReader interface every outlet reader implements, the
normalized Article record they produce, and the bounded concurrent fetch used by
aggregation runs.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Dict, List, Optional, Sequence, Set

import httpx

from crossview.core.logging import get_logger
from crossview.nlp.ner import extract_named_entities
from crossview.nlp.preprocess import extract_keywords

logger = get_logger(__name__)

DEFAULT_FEED_TIMEOUT = 10.0
DEFAULT_USER_AGENT = "CrossviewBot/1.0 (+https://github.com/crossview)"


@dataclass
class Article:
    """Normalized representation of one outlet article."""

    title: str
    source_id: str
    source_name: str
    url: str
    description: str = ""
    content: Optional[str] = None
    published_at: Optional[datetime] = None
    image_url: Optional[str] = None
    keywords: List[str] = field(default_factory=list)
    entities: Set[str] = field(default_factory=set)

    def __post_init__(self) -> None:
        if not self.title or not self.title.strip():
            raise ValueError("Article title is required")
        if not self.source_id:
            raise ValueError("Article source_id is required")
        self.title = self.title.strip()
        self.description = (self.description or "").strip()
        if self.published_at is not None and self.published_at.tzinfo is None:
            self.published_at = self.published_at.replace(tzinfo=timezone.utc)
        text = f"{self.title}. {self.description}"
        if not self.keywords:
            self.keywords = extract_keywords(text)
        if not self.entities:
            self.entities = extract_named_entities(text)

    @property
    def detail_length(self) -> int:
        """Combined content and description length, used to pick the most detailed article."""
        return len(self.content or "") + len(self.description or "")


class FeedReaderError(Exception):
    """Exception raised when fetching a news source fails."""


class FeedReader(ABC):
    """Abstract base class for outlet readers implementing the Strategy pattern."""

    def __init__(self, *, client: Optional[httpx.AsyncClient] = None):
        self._client = client
        self.logger = logger.bind(feed_reader=self.id)

    @property
    @abstractmethod
    def id(self) -> str:
        """Return unique identifier for this reader."""

    @property
    @abstractmethod
    def source_metadata(self) -> Dict[str, Any]:
        """Return metadata about this source (name, url, ...)."""

    @abstractmethod
    async def fetch(self) -> List[Article]:
        """
        Fetch and normalize the latest articles of this source.

        Rate limiting (HTTP 429) and upstream server errors yield an empty list.

        Raises:
            FeedReaderError: On network failures or unparseable responses.
        """

    async def _get(self, url: str, **kwargs: Any) -> Optional[httpx.Response]:
        """GET ``url``; returns None when the upstream answered 429 or 5xx."""
        try:
            if self._client is not None:
                response = await self._client.get(url, **kwargs)
            else:
                async with http_client() as client:
                    response = await client.get(url, **kwargs)
        except httpx.RequestError as exc:
            raise FeedReaderError(f"Network error fetching {self.id}: {exc}") from exc

        if response.status_code == 429 or response.status_code >= 500:
            self.logger.warning(
                "feed_upstream_unavailable",
                status_code=response.status_code,
            )
            return None
        if response.status_code >= 400:
            raise FeedReaderError(f"HTTP {response.status_code} fetching {self.id}")
        return response

    def _filter_duplicates(self, items: List[Article]) -> List[Article]:
        """Remove duplicate articles based on URL and title."""
        seen_urls: Set[str] = set()
        seen_titles: Set[str] = set()
        filtered: List[Article] = []

        for item in items:
            title_key = item.title.lower()
            if (item.url and item.url in seen_urls) or title_key in seen_titles:
                continue
            if item.url:
                seen_urls.add(item.url)
            seen_titles.add(title_key)
            filtered.append(item)

        if len(filtered) != len(items):
            self.logger.debug(
                "feed_duplicates_removed",
                total_items=len(items),
                unique_items=len(filtered),
            )
        return filtered


@asynccontextmanager
async def http_client(
    timeout: float = DEFAULT_FEED_TIMEOUT,
    user_agent: str = DEFAULT_USER_AGENT,
) -> AsyncIterator[httpx.AsyncClient]:
    """HTTP client context manager that always closes its connections."""
    client = httpx.AsyncClient(
        timeout=timeout,
        headers={"User-Agent": user_agent},
        follow_redirects=True,
    )
    try:
        yield client
    finally:
        await client.aclose()


@dataclass
class FetchReport:
    """Articles collected from all readers plus the readers that failed."""

    articles: List[Article] = field(default_factory=list)
    failed_sources: Dict[str, str] = field(default_factory=dict)
    per_source: Dict[str, int] = field(default_factory=dict)


async def fetch_all(
    readers: Sequence[FeedReader],
    *,
    concurrency: int = 10,
    timeout: float = DEFAULT_FEED_TIMEOUT,
) -> FetchReport:
    """
    Fetch every reader concurrently, bounded by ``concurrency``.

    Articles keep reader order so clustering stays deterministic. A reader that
    raises or exceeds ``timeout`` is logged and excluded from the run.
    """
    semaphore = asyncio.Semaphore(max(1, concurrency))
    log = logger.bind(component="fetch_all")

    async def run(reader: FeedReader) -> List[Article]:
        async with semaphore:
            return await asyncio.wait_for(reader.fetch(), timeout=timeout)

    outcomes = await asyncio.gather(*(run(reader) for reader in readers), return_exceptions=True)

    report = FetchReport()
    for reader, outcome in zip(readers, outcomes):
        if isinstance(outcome, BaseException):
            if isinstance(outcome, asyncio.CancelledError):
                raise outcome
            error = "timeout" if isinstance(outcome, asyncio.TimeoutError) else str(outcome)
            report.failed_sources[reader.id] = error
            log.warning("feed_fetch_failed", reader=reader.id, error=error)
            continue
        report.per_source[reader.id] = len(outcome)
        report.articles.extend(outcome)

    log.info(
        "feed_fetch_complete",
        readers=len(readers),
        articles=len(report.articles),
        failed=len(report.failed_sources),
    )
    return report


__all__ = [
    "Article",
    "FeedReader",
    "FeedReaderError",
    "FetchReport",
    "fetch_all",
    "http_client",
    "DEFAULT_FEED_TIMEOUT",
    "DEFAULT_USER_AGENT",
]
