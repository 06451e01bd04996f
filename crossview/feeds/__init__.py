"""News source reader plugins for aggregation runs."""

from __future__ import annotations

from typing import List, Optional

import httpx

from crossview.core.config import Settings, get_settings

from .base import Article, FeedReader, FeedReaderError, FetchReport, fetch_all
from .newsapi import NewsApiCategoryReader, NewsApiReader
from .rss import RssReader, parse_rss_config


def build_outlet_readers(
    settings: Optional[Settings] = None,
    *,
    client: Optional[httpx.AsyncClient] = None,
) -> List[FeedReader]:
    """Readers for the fixed outlet list plus any configured RSS feeds."""
    settings = settings or get_settings()
    readers: List[FeedReader] = [
        NewsApiReader(
            outlet_id,
            api_key=settings.news_api_key,
            base_url=settings.news_api_base_url,
            page_size=settings.news_page_size,
            client=client,
        )
        for outlet_id in settings.outlet_ids
    ]
    for feed in parse_rss_config(settings.rss_feeds):
        readers.append(RssReader(feed["id"], feed["name"], feed["url"], client=client))
    return readers


def build_category_reader(
    category: str,
    settings: Optional[Settings] = None,
    *,
    client: Optional[httpx.AsyncClient] = None,
) -> FeedReader:
    settings = settings or get_settings()
    return NewsApiCategoryReader(
        category,
        api_key=settings.news_api_key,
        base_url=settings.news_api_base_url,
        page_size=settings.news_page_size,
        client=client,
    )


__all__ = [
    "Article",
    "FeedReader",
    "FeedReaderError",
    "FetchReport",
    "fetch_all",
    "NewsApiReader",
    "NewsApiCategoryReader",
    "RssReader",
    "build_outlet_readers",
    "build_category_reader",
]
