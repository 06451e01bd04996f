"""Unit tests for outlet readers and the concurrent fetch."""

import asyncio
from datetime import timezone
from typing import Any, Dict, List

import httpx
import pytest

from crossview.core.config import Settings
from crossview.feeds import build_category_reader, build_outlet_readers
from crossview.feeds.base import Article, FeedReader, FeedReaderError, fetch_all
from crossview.feeds.newsapi import NewsApiCategoryReader, NewsApiReader, _NewsApiBase
from crossview.feeds.rss import RssReader, parse_rss_config

RSS_FEED = b"""<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0">
  <channel>
    <title>Example Wire</title>
    <link>https://wire.example.com</link>
    <description>Example</description>
    <item>
      <title>Senate passes &lt;b&gt;budget&lt;/b&gt; bill</title>
      <link>https://wire.example.com/budget</link>
      <description>&lt;p&gt;The Senate passed the budget.&lt;/p&gt;</description>
      <pubDate>Tue, 05 Mar 2024 12:00:00 GMT</pubDate>
      <enclosure url="https://wire.example.com/budget.jpg" type="image/jpeg" length="1000"/>
    </item>
    <item>
      <title>Senate passes budget bill</title>
      <link>https://wire.example.com/budget-duplicate</link>
      <description>Duplicate title.</description>
    </item>
  </channel>
</rss>
"""


def _newsapi_payload(articles: List[Dict[str, Any]]) -> Dict[str, Any]:
    return {"status": "ok", "totalResults": len(articles), "articles": articles}


def _raw(title: str, description: str = "Some description.", **extra: Any) -> Dict[str, Any]:
    raw = {
        "source": {"id": "cnn", "name": "CNN"},
        "title": title,
        "description": description,
        "url": f"https://cnn.example.com/{abs(hash(title))}",
        "urlToImage": "https://cnn.example.com/image.jpg",
        "publishedAt": "2024-03-05T12:00:00Z",
        "content": "Full content",
    }
    raw.update(extra)
    return raw


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class TestNewsApiReader:
    @pytest.mark.asyncio
    async def test_parses_and_filters_articles(self):
        async def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path.endswith("/top-headlines")
            assert request.url.params["sources"] == "cnn"
            assert request.url.params["pageSize"] == "10"
            assert request.headers["X-Api-Key"] == "news-key"
            return httpx.Response(
                200,
                json=_newsapi_payload(
                    [
                        _raw("Senate passes budget bill"),
                        _raw("[Removed]"),
                        _raw("No description", description=""),
                        _raw("Bad date", publishedAt="not a date"),
                    ]
                ),
            )

        async with _client(handler) as client:
            articles = await NewsApiReader("cnn", api_key="news-key", client=client).fetch()

        assert [a.title for a in articles] == ["Senate passes budget bill", "Bad date"]
        first = articles[0]
        assert first.source_id == "cnn"
        assert first.source_name == "CNN"
        assert first.published_at.tzinfo is not None
        assert first.image_url == "https://cnn.example.com/image.jpg"
        assert "senate" in first.keywords
        assert articles[1].published_at is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [429, 500, 503])
    async def test_rate_limit_and_server_errors_yield_no_articles(self, status):
        async def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(status, json={"status": "error"})

        async with _client(handler) as client:
            assert await NewsApiReader("cnn", api_key="news-key", client=client).fetch() == []

    @pytest.mark.asyncio
    async def test_network_error_raises(self):
        async def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        async with _client(handler) as client:
            with pytest.raises(FeedReaderError):
                await NewsApiReader("cnn", api_key="news-key", client=client).fetch()

    @pytest.mark.asyncio
    async def test_error_payload_raises(self):
        async def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"status": "error", "code": "apiKeyInvalid", "message": "bad"})

        async with _client(handler) as client:
            with pytest.raises(FeedReaderError):
                await NewsApiReader("cnn", api_key="news-key", client=client).fetch()

    @pytest.mark.asyncio
    async def test_missing_key_raises(self):
        with pytest.raises(FeedReaderError):
            await NewsApiReader("cnn", api_key=None).fetch()


class TestNewsApiCategoryReader:
    @pytest.mark.asyncio
    async def test_requests_category_headlines(self):
        async def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.params["category"] == "technology"
            assert request.url.params["country"] == "us"
            return httpx.Response(200, json=_newsapi_payload([_raw("Chipmaker unveils new processor")]))

        async with _client(handler) as client:
            reader = NewsApiCategoryReader("technology", api_key="news-key", client=client)
            articles = await reader.fetch()

        assert reader.id == "newsapi-category:technology"
        assert len(articles) == 1

    def test_unknown_category_falls_back_to_general(self):
        assert NewsApiCategoryReader("politics", api_key="k").category == "general"


class TestRssReader:
    @pytest.mark.asyncio
    async def test_parses_entries(self):
        async def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=RSS_FEED, headers={"Content-Type": "application/rss+xml"})

        async with _client(handler) as client:
            reader = RssReader("wire", "Example Wire", "https://wire.example.com/rss", client=client)
            articles = await reader.fetch()

        assert len(articles) == 1
        article = articles[0]
        assert article.title == "Senate passes budget bill"
        assert article.description == "The Senate passed the budget."
        assert article.source_id == "wire"
        assert article.source_name == "Example Wire"
        assert article.image_url == "https://wire.example.com/budget.jpg"
        assert article.published_at.tzinfo is not None
        assert article.published_at.astimezone(timezone.utc).hour == 12

    def test_parse_rss_config(self):
        feeds = parse_rss_config("wire|Example Wire|https://wire.example.com/rss, broken|entry")
        assert feeds == [{"id": "wire", "name": "Example Wire", "url": "https://wire.example.com/rss"}]


class _StaticReader(FeedReader):
    def __init__(self, reader_id: str, result=None, error: Exception | None = None, delay: float = 0.0):
        self._reader_id = reader_id
        self._result = result or []
        self._error = error
        self._delay = delay
        super().__init__()

    @property
    def id(self) -> str:
        return self._reader_id

    @property
    def source_metadata(self) -> Dict[str, Any]:
        return {"name": self._reader_id}

    async def fetch(self) -> List[Article]:
        if self._delay:
            await asyncio.sleep(self._delay)
        if self._error is not None:
            raise self._error
        return self._result


class TestFetchAll:
    @pytest.mark.asyncio
    async def test_failing_and_slow_readers_are_excluded(self, make_article):
        readers = [
            _StaticReader("cnn", [make_article("Senate passes budget bill", "cnn")]),
            _StaticReader("fox-news", error=FeedReaderError("boom")),
            _StaticReader("bbc-news", [make_article("Senate passes budget bill", "bbc-news")]),
            _StaticReader("slow", delay=1.0),
        ]

        report = await fetch_all(readers, concurrency=2, timeout=0.2)

        assert [a.source_id for a in report.articles] == ["cnn", "bbc-news"]
        assert set(report.failed_sources) == {"fox-news", "slow"}
        assert report.failed_sources["slow"] == "timeout"
        assert report.per_source == {"cnn": 1, "bbc-news": 1}


def test_article_requires_title():
    with pytest.raises(ValueError):
        Article(title="  ", source_id="cnn", source_name="CNN", url="")


def test_build_readers_from_settings():
    settings = Settings(
        news_api_key="news-key",
        news_outlets="cnn, fox-news",
        rss_feeds="wire|Example Wire|https://wire.example.com/rss",
    )

    readers = build_outlet_readers(settings)

    assert [reader.id for reader in readers] == ["newsapi:cnn", "newsapi:fox-news", "wire"]
    assert build_category_reader("sports", settings).id == "newsapi-category:sports"


def test_newsapi_base_requires_query_params():
    class Incomplete(_NewsApiBase):
        @property
        def id(self) -> str:
            return "incomplete"

        @property
        def source_metadata(self) -> Dict[str, Any]:
            return {}

    with pytest.raises(TypeError):
        Incomplete(api_key="key")
