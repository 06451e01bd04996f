"""
Aggregation pipeline: fetch outlets, cluster by event, synthesize and persist stories.

One run performs fetch, cluster, select, synthesize, image lookup and persist, then
optionally enriches the new stories within the configured enrichment timeout.
"""

from __future__ import annotations

from datetime import timedelta
from typing import Any, Callable, Dict, List, Optional, Sequence

import httpx
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from crossview.core.config import Settings, get_settings
from crossview.core.logging import generate_correlation_id, get_logger
from crossview.db.session import get_sessionmaker
from crossview.events.clustering import get_clusterer, select_clusters
from crossview.events.similarity import SimilarityThresholds
from crossview.feeds import FeedReader, build_category_reader, build_outlet_readers, fetch_all
from crossview.feeds.base import http_client
from crossview.services.analysis_service import AnalysisService
from crossview.services.image_service import ImageService
from crossview.services.story_service import (
    StoryService,
    SynthesizedStory,
    normalize_category,
    synthesize,
)

logger = get_logger(__name__).bind(component="AggregationService")

ReadersFactory = Callable[[Optional[str], bool, httpx.AsyncClient], Sequence[FeedReader]]


class AggregationService:
    """Runs the fetch-to-story pipeline for static batches and live category refreshes."""

    def __init__(
        self,
        *,
        session_factory: Optional[async_sessionmaker[AsyncSession]] = None,
        settings: Optional[Settings] = None,
        readers_factory: Optional[ReadersFactory] = None,
        story_service: Optional[StoryService] = None,
        image_service: Optional[ImageService] = None,
        analysis_service: Optional[AnalysisService] = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.session_factory = session_factory or get_sessionmaker()
        self.readers_factory = readers_factory or self._default_readers
        self.story_service = story_service or StoryService(session_factory=self.session_factory)
        self.image_service = image_service or ImageService(settings=self.settings)
        self._analysis_service = analysis_service
        self.thresholds = SimilarityThresholds(
            time_window=timedelta(hours=self.settings.cluster_time_window_hours)
        )

    @property
    def analysis_service(self) -> AnalysisService:
        if self._analysis_service is None:
            self._analysis_service = AnalysisService(
                session_factory=self.session_factory,
                settings=self.settings,
            )
        return self._analysis_service

    def _default_readers(
        self, category: Optional[str], live: bool, client: httpx.AsyncClient
    ) -> Sequence[FeedReader]:
        if live and category:
            return [build_category_reader(category, self.settings, client=client)]
        return build_outlet_readers(self.settings, client=client)

    async def _attach_images(self, stories: List[SynthesizedStory]) -> None:
        for story in stories:
            story.image_url = await self.image_service.find_image(
                story.headline,
                story.category,
                article_image=story.image_url,
            )

    async def run(
        self,
        *,
        category: Optional[str] = None,
        live: bool = False,
        enrich: Optional[bool] = None,
        correlation_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Execute one aggregation run.

        Live runs read the category headlines endpoint and tag every story with the
        requested category. Static runs read the fixed outlet list; a ``category``
        then only filters which synthesized stories are kept.

        Returns:
            Statistics: fetched, clusters, stories, persisted, failed_sources, enriched, story_ids
        """
        correlation_id = correlation_id or generate_correlation_id()
        category = normalize_category(category) if category else None
        enrich = self.settings.enrichment_on_aggregate if enrich is None else enrich
        news_type = "dynamic" if live else "static"
        log = logger.bind(correlation_id=correlation_id, category=category, news_type=news_type)

        async with http_client(
            timeout=self.settings.fetch_timeout_seconds,
            user_agent=self.settings.user_agent,
        ) as client:
            readers = list(self.readers_factory(category, live, client))
            log.info("aggregation_started", readers=len(readers))
            report = await fetch_all(
                readers,
                concurrency=self.settings.fetch_concurrency,
                timeout=self.settings.fetch_timeout_seconds,
            )

        clusterer = get_clusterer(self.settings.clusterer, self.thresholds)
        clusters = clusterer.cluster(report.articles)
        selected = select_clusters(
            clusters,
            min_sources=self.settings.cluster_min_sources,
            max_stories=self.settings.cluster_max_stories,
        )

        if live and category:
            for cluster in selected:
                cluster.category = category

        stories = [synthesize(cluster, news_type=news_type) for cluster in selected]
        if category and not live:
            stories = [story for story in stories if story.category == category]

        await self._attach_images(stories)
        persisted = await self.story_service.persist_many(stories)
        story_ids: List[str] = persisted["story_ids"]

        enriched = 0
        if enrich and story_ids:
            results = await self.analysis_service.enrich_many(
                story_ids,
                timeout=self.settings.enrichment_timeout_seconds,
                correlation_id=correlation_id,
            )
            enriched = sum(1 for entry in results if entry["status"] != "failed")

        stats: Dict[str, Any] = {
            "fetched": len(report.articles),
            "clusters": len(clusters),
            "stories": len(stories),
            "persisted": persisted["persisted"],
            "failed_sources": sorted(report.failed_sources),
            "enriched": enriched,
            "story_ids": story_ids,
        }
        log.info(
            "aggregation_completed",
            fetched=stats["fetched"],
            clusters=stats["clusters"],
            stories=stats["stories"],
            persisted=stats["persisted"],
            failed_sources=len(report.failed_sources),
            enriched=enriched,
        )
        return stats


_service_instance: Optional[AggregationService] = None


def get_aggregation_service() -> AggregationService:
    global _service_instance
    if _service_instance is None:
        _service_instance = AggregationService()
    return _service_instance


__all__ = ["AggregationService", "get_aggregation_service"]
