"""
Structured logging configuration for the Crossview backend.

All modules log through structlog with snake_case event names and keyword fields.
Request-scoped values (the correlation ID) travel through structlog contextvars so
that every event emitted while handling a request carries the same identifier.
"""

from __future__ import annotations

import logging
import sys
import time
import uuid
from typing import Any, Dict, Optional

import structlog
from structlog.types import EventDict, WrappedLogger

CORRELATION_HEADER = "X-Correlation-ID"


def add_service_name(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Tag every event with the emitting service."""
    event_dict.setdefault("service", "crossview")
    return event_dict


def configure_logging(log_level: str = "INFO", json_format: bool = True) -> None:
    """
    Configure structured logging for the application.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: Render JSON lines (production) instead of console output (development)
    """
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=numeric_level,
    )

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        add_service_name,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
    ]

    if json_format:
        processors.extend([
            structlog.processors.dict_tracebacks,
            structlog.processors.JSONRenderer(),
        ])
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        context_class=dict,
        cache_logger_on_first_use=True,
    )


def get_logger(name: str, correlation_id: Optional[str] = None) -> structlog.stdlib.BoundLogger:
    """
    Get a structured logger instance.

    Args:
        name: Logger name (typically __name__)
        correlation_id: Optional correlation ID bound to every event of this logger
    """
    logger = structlog.get_logger(name)
    if correlation_id:
        logger = logger.bind(correlation_id=correlation_id)
    return logger


def generate_correlation_id() -> str:
    return uuid.uuid4().hex


def bind_correlation_id(correlation_id: Optional[str] = None) -> str:
    """Bind a correlation ID to the current context (used by scheduled jobs)."""
    correlation_id = correlation_id or generate_correlation_id()
    structlog.contextvars.bind_contextvars(correlation_id=correlation_id)
    return correlation_id


class CorrelationIDMiddleware:
    """
    ASGI middleware that binds a correlation ID for the duration of a request.

    An incoming ``X-Correlation-ID`` header is reused; otherwise a new ID is generated.
    The ID is echoed back in the response headers and request timing is logged.
    """

    def __init__(self, app: Any, header_name: str = CORRELATION_HEADER):
        self.app = app
        self.header_name = header_name
        self.log = get_logger(__name__).bind(component="CorrelationIDMiddleware")

    async def __call__(self, scope: Dict[str, Any], receive: Any, send: Any) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        correlation_id = None
        wanted = self.header_name.lower().encode()
        for name, value in scope.get("headers", []):
            if name.lower() == wanted:
                correlation_id = value.decode()
                break

        structlog.contextvars.clear_contextvars()
        correlation_id = bind_correlation_id(correlation_id)

        started = time.perf_counter()
        status_holder: Dict[str, int] = {}

        async def send_with_correlation_id(message: Dict[str, Any]) -> None:
            if message["type"] == "http.response.start":
                status_holder["status"] = message["status"]
                headers = list(message.get("headers", []))
                headers.append((self.header_name.encode(), correlation_id.encode()))
                message["headers"] = headers
            await send(message)

        try:
            await self.app(scope, receive, send_with_correlation_id)
        finally:
            self.log.info(
                "request_completed",
                http_method=scope.get("method"),
                path=scope.get("path"),
                status_code=status_holder.get("status"),
                duration_ms=round((time.perf_counter() - started) * 1000, 2),
            )
            structlog.contextvars.clear_contextvars()


def log_exception(
    logger: structlog.stdlib.BoundLogger,
    exception: Exception,
    context: Optional[Dict[str, Any]] = None,
) -> None:
    """Log an exception with its type and message plus optional context."""
    log_context: Dict[str, Any] = {"exc_info": exception}
    if context:
        log_context.update(context)

    logger.error(
        "exception_occurred",
        exception_type=type(exception).__name__,
        exception_message=str(exception),
        **log_context,
    )


__all__ = [
    "CORRELATION_HEADER",
    "configure_logging",
    "get_logger",
    "generate_correlation_id",
    "bind_correlation_id",
    "CorrelationIDMiddleware",
    "log_exception",
]
