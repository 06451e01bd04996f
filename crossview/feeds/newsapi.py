"""
NewsAPI readers.

``NewsApiReader`` polls the top headlines of a single outlet; ``NewsApiCategoryReader``
polls the top headlines of a topical category and is used for live refreshes.
"""

from __future__ import annotations

from abc import abstractmethod
from datetime import datetime
from typing import Any, Dict, List, Optional

import httpx
from dateutil import parser as date_parser

from .base import Article, FeedReader, FeedReaderError

REMOVED_MARKER = "[Removed]"

# NewsAPI only knows these categories for top-headlines.
NEWSAPI_CATEGORIES = frozenset(
    {"business", "entertainment", "general", "health", "science", "sports", "technology"}
)


def _parse_published(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        return date_parser.isoparse(value)
    except (ValueError, TypeError):
        return None


class _NewsApiBase(FeedReader):
    """Shared request and parsing logic for NewsAPI endpoints."""

    def __init__(
        self,
        *,
        api_key: Optional[str],
        base_url: str = "https://newsapi.org/v2",
        page_size: int = 10,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.page_size = page_size
        super().__init__(client=client)

    @abstractmethod
    def _params(self) -> Dict[str, Any]:
        """Return the endpoint-specific query parameters."""

    async def fetch(self) -> List[Article]:
        if not self.api_key:
            raise FeedReaderError(f"NewsAPI key not configured for {self.id}")

        params = {**self._params(), "pageSize": self.page_size}
        response = await self._get(
            f"{self.base_url}/top-headlines",
            params=params,
            headers={"X-Api-Key": self.api_key, "Cache-Control": "no-cache"},
        )
        if response is None:
            return []

        try:
            payload = response.json()
        except ValueError as exc:
            raise FeedReaderError(f"Invalid JSON from NewsAPI for {self.id}") from exc

        if payload.get("status") != "ok":
            raise FeedReaderError(
                f"NewsAPI error for {self.id}: {payload.get('code')} {payload.get('message')}"
            )

        items: List[Article] = []
        for raw in payload.get("articles") or []:
            article = self._parse_article(raw)
            if article is not None:
                items.append(article)

        self.logger.info(
            "newsapi_fetch_complete",
            total_entries=len(payload.get("articles") or []),
            parsed_items=len(items),
        )
        return self._filter_duplicates(items)

    def _parse_article(self, raw: Dict[str, Any]) -> Optional[Article]:
        title = (raw.get("title") or "").strip()
        description = (raw.get("description") or "").strip()
        if not title or not description or title == REMOVED_MARKER:
            return None

        source = raw.get("source") or {}
        source_id = source.get("id") or self._default_source_id(source)
        source_name = source.get("name") or source_id

        try:
            return Article(
                title=title,
                description=description,
                content=raw.get("content"),
                source_id=source_id,
                source_name=source_name,
                url=raw.get("url") or "",
                published_at=_parse_published(raw.get("publishedAt")),
                image_url=raw.get("urlToImage"),
            )
        except ValueError as exc:
            self.logger.warning("newsapi_entry_skipped", error=str(exc))
            return None

    def _default_source_id(self, source: Dict[str, Any]) -> str:
        name = source.get("name") or "unknown"
        return name.lower().replace(" ", "-")


class NewsApiReader(_NewsApiBase):
    """Top headlines of one NewsAPI outlet."""

    def __init__(self, outlet_id: str, **kwargs: Any):
        self.outlet_id = outlet_id
        super().__init__(**kwargs)

    @property
    def id(self) -> str:
        return f"newsapi:{self.outlet_id}"

    @property
    def source_metadata(self) -> Dict[str, Any]:
        return {"name": self.outlet_id, "provider": "newsapi"}

    def _params(self) -> Dict[str, Any]:
        return {"sources": self.outlet_id}

    def _default_source_id(self, source: Dict[str, Any]) -> str:
        return self.outlet_id


class NewsApiCategoryReader(_NewsApiBase):
    """Top US headlines for a NewsAPI category."""

    def __init__(self, category: str, *, country: str = "us", **kwargs: Any):
        self.category = category if category in NEWSAPI_CATEGORIES else "general"
        self.country = country
        super().__init__(**kwargs)

    @property
    def id(self) -> str:
        return f"newsapi-category:{self.category}"

    @property
    def source_metadata(self) -> Dict[str, Any]:
        return {"name": f"NewsAPI {self.category}", "provider": "newsapi"}

    def _params(self) -> Dict[str, Any]:
        return {"category": self.category, "country": self.country, "language": "en"}


__all__ = ["NewsApiReader", "NewsApiCategoryReader", "NEWSAPI_CATEGORIES"]
