"""
Health endpoint with component checks for monitoring.

Returns 200 when the database answers and 503 otherwise. Missing API keys or a
disabled scheduler only degrade the status.
"""

from __future__ import annotations

import sys
from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from sqlalchemy import text

from crossview.core.config import get_settings
from crossview.core.logging import get_logger
from crossview.core.scheduler import get_scheduler
from crossview.db.session import get_engine

logger = get_logger(__name__)

router = APIRouter(tags=["health"])

APP_VERSION = "0.1.0"


async def check_database() -> Dict[str, Any]:
    try:
        engine = get_engine()
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return {"status": "healthy", "message": "Database connection successful"}
    except Exception as exc:
        logger.error("health_check_database_failed", error=str(exc))
        return {"status": "unhealthy", "message": "Database connection failed", "error": str(exc)}


def check_providers() -> Dict[str, Any]:
    """Report which upstream API keys are configured."""
    settings = get_settings()
    configured = {
        "newsapi": settings.has_news_api_key,
        "anthropic": settings.has_anthropic_key,
        "mistral": settings.has_mistral_key,
        "brave": bool(settings.brave_api_key),
    }
    llm_ready = configured.get(settings.llm_provider.lower(), False)
    if settings.has_news_api_key and llm_ready:
        return {"status": "healthy", "message": "Provider keys configured", "providers": configured}
    return {
        "status": "warning",
        "message": "Some provider keys are missing",
        "providers": configured,
        "active_llm_provider": settings.llm_provider,
    }


def check_scheduler() -> Dict[str, Any]:
    settings = get_settings()
    if not settings.scheduler_enabled:
        return {"status": "warning", "message": "Scheduler disabled by configuration", "jobs": []}

    job_status = get_scheduler().get_job_status()
    if job_status.get("status") == "running":
        return {"status": "healthy", "message": "Scheduler is running", "jobs": job_status.get("jobs", [])}
    return {"status": "unhealthy", "message": "Scheduler is not running", "jobs": []}


@router.get("/health", status_code=status.HTTP_200_OK)
async def health_check() -> JSONResponse:
    started = datetime.now(timezone.utc)

    components = {
        "database": await check_database(),
        "providers": check_providers(),
        "scheduler": check_scheduler(),
    }
    unhealthy = [name for name, check in components.items() if check["status"] == "unhealthy"]
    warnings = [name for name, check in components.items() if check["status"] == "warning"]

    if unhealthy:
        overall_status = "unhealthy"
        status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    elif warnings:
        overall_status = "degraded"
        status_code = status.HTTP_200_OK
    else:
        overall_status = "healthy"
        status_code = status.HTTP_200_OK

    response_time_ms = (datetime.now(timezone.utc) - started).total_seconds() * 1000
    logger.info(
        "health_check_completed",
        overall_status=overall_status,
        response_time_ms=response_time_ms,
        unhealthy=unhealthy,
        warnings=warnings,
    )
    return JSONResponse(
        status_code=status_code,
        content={
            "status": overall_status,
            "timestamp": started.isoformat(),
            "response_time_ms": round(response_time_ms, 2),
            "version": {
                "app": APP_VERSION,
                "python": f"{sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}",
            },
            "components": components,
        },
    )
