"""
Core utilities for the Crossview backend: configuration and structured logging.
"""

from .config import Settings, get_settings, validate_env_cli
from .logging import (
    configure_logging,
    get_logger,
    generate_correlation_id,
    bind_correlation_id,
    CorrelationIDMiddleware,
    log_exception,
)

__all__ = [
    # Configuration
    "Settings",
    "get_settings",
    "validate_env_cli",
    # Logging
    "configure_logging",
    "get_logger",
    "generate_correlation_id",
    "bind_correlation_id",
    "CorrelationIDMiddleware",
    "log_exception",
]
