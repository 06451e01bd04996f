"""
Scheduler module for periodic aggregation and analysis backfill.

Both jobs run on an APScheduler ``AsyncIOScheduler`` inside the API process. A job
failure is logged and the next execution proceeds normally.
"""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Dict, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from crossview.core.config import Settings, get_settings
from crossview.core.logging import generate_correlation_id, get_logger
from crossview.services.aggregation_service import AggregationService, get_aggregation_service
from crossview.services.analysis_service import AnalysisService, get_analysis_service

# Upper bound for one aggregation cycle, enrichment included
AGGREGATION_CYCLE_TIMEOUT_SECONDS = 300
BACKFILL_CYCLE_TIMEOUT_SECONDS = 600

logger = get_logger(__name__).bind(component="CrossviewScheduler")


class CrossviewScheduler:
    """Scheduler for Crossview background tasks."""

    def __init__(
        self,
        *,
        settings: Optional[Settings] = None,
        aggregation_factory: Callable[[], AggregationService] = get_aggregation_service,
        analysis_factory: Callable[[], AnalysisService] = get_analysis_service,
    ) -> None:
        self.settings = settings or get_settings()
        self.scheduler = AsyncIOScheduler()
        self.aggregation_factory = aggregation_factory
        self.analysis_factory = analysis_factory
        self._is_running = False

    def setup_jobs(self) -> None:
        self.scheduler.add_job(
            func=self._aggregation_job,
            trigger=IntervalTrigger(minutes=self.settings.scheduler_interval_minutes),
            id="aggregate_stories",
            name="Story Aggregation",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        self.scheduler.add_job(
            func=self._backfill_job,
            trigger=IntervalTrigger(minutes=self.settings.analysis_backfill_interval_minutes),
            id="analysis_backfill",
            name="Analysis Backfill",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        logger.info(
            "scheduled_jobs_configured",
            aggregation_interval_minutes=self.settings.scheduler_interval_minutes,
            backfill_interval_minutes=self.settings.analysis_backfill_interval_minutes,
        )

    async def _aggregation_job(self) -> Dict[str, Any]:
        correlation_id = generate_correlation_id()
        job_logger = logger.bind(correlation_id=correlation_id, job="aggregate_stories")
        job_logger.info("aggregation_job_started", timeout_seconds=AGGREGATION_CYCLE_TIMEOUT_SECONDS)
        try:
            stats = await asyncio.wait_for(
                self.aggregation_factory().run(correlation_id=correlation_id),
                timeout=AGGREGATION_CYCLE_TIMEOUT_SECONDS,
            )
        except asyncio.TimeoutError:
            job_logger.error("aggregation_job_timeout", timeout_seconds=AGGREGATION_CYCLE_TIMEOUT_SECONDS)
            return {"success": False, "error": "timeout", "correlation_id": correlation_id}
        except Exception as exc:
            job_logger.error("aggregation_job_failed", error=str(exc))
            return {"success": False, "error": str(exc), "correlation_id": correlation_id}

        job_logger.info("aggregation_job_completed", persisted=stats.get("persisted"))
        return {"success": True, "correlation_id": correlation_id, **stats}

    async def _backfill_job(self) -> Dict[str, Any]:
        correlation_id = generate_correlation_id()
        job_logger = logger.bind(correlation_id=correlation_id, job="analysis_backfill")
        try:
            stats = await asyncio.wait_for(
                self.analysis_factory().backfill_missing(correlation_id=correlation_id),
                timeout=BACKFILL_CYCLE_TIMEOUT_SECONDS,
            )
        except asyncio.TimeoutError:
            job_logger.error("backfill_job_timeout", timeout_seconds=BACKFILL_CYCLE_TIMEOUT_SECONDS)
            return {"success": False, "error": "timeout", "correlation_id": correlation_id}
        except Exception as exc:
            job_logger.error("backfill_job_failed", error=str(exc))
            return {"success": False, "error": str(exc), "correlation_id": correlation_id}

        job_logger.info(
            "backfill_job_completed",
            processed=stats["processed"],
            remaining=stats["remaining"],
        )
        return {"success": True, "correlation_id": correlation_id, **stats}

    async def run_aggregation_now(self) -> Dict[str, Any]:
        """Manually trigger an aggregation cycle."""
        return await self._aggregation_job()

    async def run_backfill_now(self) -> Dict[str, Any]:
        return await self._backfill_job()

    @property
    def is_running(self) -> bool:
        return self._is_running

    def start(self) -> None:
        if not self._is_running:
            self.setup_jobs()
            self.scheduler.start()
            self._is_running = True
            logger.info("scheduler_started")

    def shutdown(self) -> None:
        """Shutdown the scheduler gracefully."""
        if self._is_running:
            self.scheduler.shutdown(wait=False)
            self._is_running = False
            logger.info("scheduler_stopped")

    def get_job_status(self) -> Dict[str, Any]:
        if not self._is_running:
            return {"status": "stopped", "jobs": []}

        jobs = [
            {
                "id": job.id,
                "name": job.name,
                "next_run": job.next_run_time.isoformat() if job.next_run_time else None,
                "trigger": str(job.trigger),
            }
            for job in self.scheduler.get_jobs()
        ]
        return {"status": "running", "jobs": jobs}


_scheduler: CrossviewScheduler | None = None


def get_scheduler() -> CrossviewScheduler:
    """Get the global scheduler instance (singleton pattern)."""
    global _scheduler
    if _scheduler is None:
        _scheduler = CrossviewScheduler()
    return _scheduler


__all__ = ["CrossviewScheduler", "get_scheduler"]
