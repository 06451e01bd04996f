"""
Generic RSS reader.

Outlets without NewsAPI coverage are polled through their public RSS feed and
normalized into the same Article records.
"""

from __future__ import annotations

import html
import re
from datetime import datetime
from typing import Any, Dict, List, Optional

import feedparser
import httpx
from dateutil import parser as date_parser

from .base import Article, FeedReader, FeedReaderError

TAG_RE = re.compile(r"<[^>]+>")
SPACE_RE = re.compile(r"\s+")


class RssReader(FeedReader):
    """Reader for a single outlet RSS feed."""

    def __init__(
        self,
        reader_id: str,
        source_name: str,
        feed_url: str,
        *,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self._reader_id = reader_id
        self.source_name = source_name
        self.feed_url = feed_url
        super().__init__(client=client)

    @property
    def id(self) -> str:
        return self._reader_id

    @property
    def source_metadata(self) -> Dict[str, Any]:
        return {"name": self.source_name, "feed_url": self.feed_url, "provider": "rss"}

    async def fetch(self) -> List[Article]:
        response = await self._get(self.feed_url)
        if response is None:
            return []

        feed = feedparser.parse(response.content)
        if feed.bozo and not feed.entries:
            raise FeedReaderError(f"Unparseable RSS feed for {self.id}: {feed.bozo_exception}")
        if feed.bozo:
            self.logger.warning("rss_feed_parse_issues", bozo_exception=str(feed.bozo_exception))

        items: List[Article] = []
        for entry in feed.entries:
            try:
                items.append(self._parse_entry(entry))
            except ValueError as exc:
                self.logger.warning(
                    "rss_entry_skipped",
                    entry_id=getattr(entry, "id", "unknown"),
                    error=str(exc),
                )

        self.logger.info(
            "rss_fetch_complete",
            total_entries=len(feed.entries),
            parsed_items=len(items),
        )
        return self._filter_duplicates(items)

    def _parse_entry(self, entry: Any) -> Article:
        summary = getattr(entry, "summary", None) or getattr(entry, "description", None) or ""
        content = None
        if getattr(entry, "content", None):
            content = _clean_html(entry.content[0].get("value", ""))

        return Article(
            title=_clean_html(getattr(entry, "title", "")),
            description=_clean_html(summary),
            content=content,
            source_id=self.id,
            source_name=self.source_name,
            url=getattr(entry, "link", "") or "",
            published_at=self._parse_date(entry),
            image_url=self._extract_image_url(entry),
        )

    def _parse_date(self, entry: Any) -> Optional[datetime]:
        for field_name in ("published", "updated", "created"):
            value = getattr(entry, field_name, None)
            if not value:
                continue
            try:
                return date_parser.parse(value)
            except (ValueError, TypeError, OverflowError):
                continue
        return None

    def _extract_image_url(self, entry: Any) -> Optional[str]:
        for enclosure in getattr(entry, "enclosures", []):
            enc_type = enclosure.get("type", "") or ""
            enc_url = enclosure.get("href") or enclosure.get("url")
            if enc_url and enc_type.startswith("image/"):
                return enc_url

        for media in getattr(entry, "media_content", []):
            media_type = media.get("type", "") or media.get("medium", "")
            if media.get("url") and ("image" in media_type or media_type == ""):
                return media["url"]

        thumbnails = getattr(entry, "media_thumbnail", [])
        if thumbnails:
            return thumbnails[0].get("url")
        return None


def _clean_html(text: str) -> str:
    if not text:
        return ""
    return SPACE_RE.sub(" ", html.unescape(TAG_RE.sub("", text))).strip()


def parse_rss_config(value: str) -> List[Dict[str, str]]:
    """Parse ``id|Source Name|url`` entries separated by commas."""
    feeds: List[Dict[str, str]] = []
    for chunk in value.split(","):
        parts = [part.strip() for part in chunk.split("|")]
        if len(parts) != 3 or not all(parts):
            continue
        feeds.append({"id": parts[0], "name": parts[1], "url": parts[2]})
    return feeds


__all__ = ["RssReader", "parse_rss_config"]
