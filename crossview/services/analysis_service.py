"""Asynchronous story enrichment: unique claims and per-source bias from the text-synthesis client."""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, AsyncIterator, Dict, List, Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from crossview.core.config import Settings, get_settings
from crossview.core.logging import get_logger
from crossview.db.models import StoryAnalysis
from crossview.db.session import get_sessionmaker
from crossview.llm.client import BaseLLMClient, build_llm_client
from crossview.llm.prompt_builder import build_analysis_prompt, build_summary_prompt
from crossview.llm.schemas import StoryAnalysisPayload
from crossview.repositories.analysis_repo import AnalysisRepository
from crossview.repositories.story_repo import StoryRepository

logger = get_logger(__name__).bind(component="AnalysisService")

SUMMARY_SYSTEM_PROMPT = (
    "You are a neutral news editor. Summarize faithfully without adding opinions "
    "or information that is not in the text."
)


@dataclass(slots=True)
class AnalysisOutcome:
    """Return type describing one enrichment attempt."""

    story_id: str
    status: str
    analysis: Optional[StoryAnalysis] = None
    payload: Optional[StoryAnalysisPayload] = None
    valid: bool = True

    def as_dict(self) -> Dict[str, Any]:
        return {"story_id": self.story_id, "status": self.status, "valid": self.valid}


class AnalysisService:
    """Attach text-synthesis analysis to stored stories, at most once per story."""

    def __init__(
        self,
        *,
        session_factory: async_sessionmaker[AsyncSession] | None = None,
        client: BaseLLMClient | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.session_factory = session_factory or get_sessionmaker()
        self.client = client or build_llm_client(self.settings)
        self._locks: Dict[str, asyncio.Lock] = {}
        self._lock_users: Dict[str, int] = {}

    @asynccontextmanager
    async def _story_lock(self, story_id: str) -> AsyncIterator[None]:
        lock = self._locks.get(story_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[story_id] = lock
        self._lock_users[story_id] = self._lock_users.get(story_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            # Drop the entry once no task holds or awaits it.
            self._lock_users[story_id] -= 1
            if not self._lock_users[story_id]:
                del self._lock_users[story_id]
                del self._locks[story_id]

    async def enrich_story(
        self,
        story_id: str,
        *,
        correlation_id: str | None = None,
    ) -> AnalysisOutcome:
        """Analyze one story unless it already has an analysis.

        Raises:
            ValueError: If the story does not exist
            LLMClientError: If the provider call fails; nothing is stored then
        """
        log = logger.bind(story_id=story_id, correlation_id=correlation_id)

        async with self._story_lock(story_id):
            async with self.session_factory() as session:
                existing = await AnalysisRepository(session).get_by_story_id(story_id)
                if existing is not None:
                    log.debug("story_analysis_skipped_existing")
                    return AnalysisOutcome(story_id=story_id, status="skipped", analysis=existing)

                story = await StoryRepository(session).get_story(story_id)
                if story is None:
                    raise ValueError(f"Story {story_id} not found")
                prompt = build_analysis_prompt(story)

            log.info("story_analysis_start", provider=self.client.provider, prompt_length=len(prompt))

            result = await self.client.generate_json(
                prompt,
                StoryAnalysisPayload,
                fallback_on_invalid=True,
            )
            payload = result.payload

            async with self.session_factory() as session:
                repo = AnalysisRepository(session)
                persistence = await repo.upsert_analysis(
                    story_id=story_id,
                    provider=result.provider,
                    model=result.model,
                    sources=[entry.model_dump(mode="json") for entry in payload.sources],
                    unique_claims=[entry.model_dump(mode="json") for entry in payload.unique_claims],
                    source_bias=[entry.model_dump(mode="json") for entry in payload.source_bias],
                    raw_response=result.raw_content,
                )
                await session.commit()

        log.info(
            "story_analysis_completed",
            provider=result.provider,
            created=persistence.created,
            valid=result.valid,
            unique_claims=len(payload.unique_claims),
            source_bias=len(payload.source_bias),
        )
        return AnalysisOutcome(
            story_id=story_id,
            status="created" if persistence.created else "updated",
            analysis=persistence.analysis,
            payload=payload,
            valid=result.valid,
        )

    async def _enrich_collecting(
        self,
        story_ids: Sequence[str],
        results: List[Dict[str, Any]],
        correlation_id: str | None,
    ) -> None:
        for story_id in story_ids:
            try:
                outcome = await self.enrich_story(story_id, correlation_id=correlation_id)
                results.append(outcome.as_dict())
            except Exception as exc:
                logger.warning("story_analysis_failed", story_id=story_id, error=str(exc))
                results.append({"story_id": story_id, "status": "failed", "error": str(exc)})

    async def enrich_many(
        self,
        story_ids: Sequence[str],
        *,
        timeout: float | None = None,
        correlation_id: str | None = None,
    ) -> List[Dict[str, Any]]:
        """Enrich stories one after another, stopping when the run timeout elapses."""
        timeout = self.settings.enrichment_timeout_seconds if timeout is None else timeout
        results: List[Dict[str, Any]] = []
        try:
            await asyncio.wait_for(
                self._enrich_collecting(story_ids, results, correlation_id),
                timeout=timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(
                "enrichment_run_timeout",
                timeout=timeout,
                completed=len(results),
                requested=len(story_ids),
            )
        return results

    async def backfill_missing(
        self,
        *,
        batch_size: int | None = None,
        correlation_id: str | None = None,
    ) -> Dict[str, Any]:
        """Enrich a bounded batch of the newest stories lacking analysis.

        Returns:
            ``processed``, ``total`` (missing before the run), ``remaining`` and per-story ``results``
        """
        batch_size = batch_size or self.settings.analysis_batch_size
        log = logger.bind(correlation_id=correlation_id, component="backfill")

        async with self.session_factory() as session:
            repo = StoryRepository(session)
            total = await repo.count_stories_without_analysis()
            story_ids = await repo.list_story_ids_without_analysis(limit=batch_size)

        if not story_ids:
            log.info("backfill_nothing_to_do")
            return {"processed": 0, "total": total, "remaining": total, "results": []}

        log.info("backfill_starting", batch=len(story_ids), total=total)
        results: List[Dict[str, Any]] = []
        await self._enrich_collecting(story_ids, results, correlation_id)

        async with self.session_factory() as session:
            remaining = await StoryRepository(session).count_stories_without_analysis()

        failed = sum(1 for entry in results if entry["status"] == "failed")
        log.info("backfill_completed", processed=len(results), failed=failed, remaining=remaining)
        return {
            "processed": len(results),
            "total": total,
            "remaining": remaining,
            "results": results,
        }

    async def summarize(self, text: str) -> str:
        """Return a neutral two to three sentence summary of ``text``."""
        prompt = build_summary_prompt(text)
        response = await self.client.generate_text(prompt, system=SUMMARY_SYSTEM_PROMPT)
        return response.content.strip()


_service_instance: AnalysisService | None = None


def get_analysis_service() -> AnalysisService:
    """Get or create the singleton AnalysisService instance."""
    global _service_instance
    if _service_instance is None:
        _service_instance = AnalysisService()
    return _service_instance


__all__ = ["AnalysisOutcome", "AnalysisService", "get_analysis_service"]
