"""
Configuration module for the Crossview backend.

Settings are loaded from environment variables (and an optional ``.env`` file)
through Pydantic BaseSettings, giving typed access and validated defaults for the
aggregation pipeline, the text-synthesis provider and the HTTP layer.
"""

from __future__ import annotations

import sys
from typing import Optional

from pydantic import Field, ValidationError, ConfigDict
from pydantic_settings import BaseSettings

DEFAULT_OUTLETS = (
    "cnn,fox-news,bbc-news,reuters,associated-press,the-washington-post,"
    "the-wall-street-journal,nbc-news,politico,breitbart-news"
)


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Every tunable of the aggregation run (fetch concurrency, clustering thresholds,
    enrichment timeouts) lives here so deployments can adjust them without code changes.
    """

    # News source configuration
    news_api_key: Optional[str] = Field(
        default=None,
        description="NewsAPI key used for outlet and category headline fetches"
    )
    news_api_base_url: str = Field(
        default="https://newsapi.org/v2",
        description="Base URL of the NewsAPI service"
    )
    news_outlets: str = Field(
        default=DEFAULT_OUTLETS,
        description="Comma-separated NewsAPI source identifiers polled per aggregation run"
    )
    news_page_size: int = Field(
        default=10,
        ge=1,
        le=100,
        description="Number of headlines requested per outlet"
    )
    rss_feeds: str = Field(
        default="",
        description="Optional comma-separated list of id|source name|url RSS feeds"
    )
    fetch_timeout_seconds: float = Field(
        default=10.0,
        ge=1.0,
        le=60.0,
        description="Per-outlet fetch timeout in seconds"
    )
    fetch_concurrency: int = Field(
        default=10,
        ge=1,
        le=50,
        description="Maximum number of outlet fetches running concurrently"
    )
    user_agent: str = Field(
        default="CrossviewBot/1.0 (+https://github.com/crossview)",
        description="User agent sent with upstream requests"
    )

    # Clustering configuration
    cluster_min_sources: int = Field(
        default=2,
        ge=1,
        le=5,
        description="Preferred minimum number of distinct sources per story"
    )
    cluster_max_stories: int = Field(
        default=10,
        ge=1,
        le=50,
        description="Maximum number of stories produced per aggregation run"
    )
    cluster_time_window_hours: float = Field(
        default=12.0,
        ge=1.0,
        le=72.0,
        description="Publication window for the time-proximity similarity rule"
    )
    clusterer: str = Field(
        default="greedy",
        description="Clustering strategy (greedy, union_find)"
    )

    # Scheduler configuration
    scheduler_enabled: bool = Field(
        default=True,
        description="Run background aggregation and backfill jobs"
    )
    scheduler_interval_minutes: int = Field(
        default=30,
        ge=1,
        le=1440,
        description="Interval in minutes between scheduled aggregation runs"
    )
    analysis_backfill_interval_minutes: int = Field(
        default=10,
        ge=1,
        le=1440,
        description="Interval in minutes between missing-analysis backfill runs"
    )

    # Database configuration
    database_url: str = Field(
        default="sqlite+aiosqlite:///./data/crossview.sqlite",
        description="SQLAlchemy database URL"
    )

    # Text-synthesis (LLM) configuration
    llm_provider: str = Field(
        default="anthropic",
        description="Text-synthesis provider (anthropic, mistral)"
    )
    anthropic_api_key: Optional[str] = Field(
        default=None,
        description="Anthropic API key for story analysis"
    )
    anthropic_base_url: str = Field(
        default="https://api.anthropic.com/v1",
        description="Anthropic Messages API base URL"
    )
    anthropic_model: str = Field(
        default="claude-3-5-sonnet-latest",
        description="Anthropic model used for story analysis"
    )
    mistral_api_key: Optional[str] = Field(
        default=None,
        description="Mistral API key for story analysis"
    )
    mistral_base_url: str = Field(
        default="https://api.mistral.ai/v1",
        description="Mistral chat completions base URL"
    )
    mistral_model: str = Field(
        default="mistral-small-latest",
        description="Mistral model used for story analysis"
    )
    llm_api_timeout_seconds: float = Field(
        default=30.0,
        ge=1.0,
        le=300.0,
        description="Request timeout (in seconds) for text-synthesis calls",
    )
    llm_temperature: float = Field(
        default=0.2,
        ge=0.0,
        le=1.0,
        description="Sampling temperature for analysis prompts",
    )
    llm_max_tokens: int = Field(
        default=2000,
        ge=100,
        le=8000,
        description="Maximum tokens generated per analysis call",
    )
    llm_max_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Attempts per text-synthesis call before giving up",
    )
    enrichment_timeout_seconds: float = Field(
        default=60.0,
        ge=5.0,
        le=600.0,
        description="Overall timeout for enriching the stories of one aggregation run",
    )
    enrichment_on_aggregate: bool = Field(
        default=True,
        description="Enrich freshly persisted stories within the aggregation run",
    )
    analysis_batch_size: int = Field(
        default=5,
        ge=1,
        le=50,
        description="Stories enriched per backfill call",
    )

    # Image lookup
    brave_api_key: Optional[str] = Field(
        default=None,
        description="Brave Search API key for headline image lookup"
    )
    brave_image_search_url: str = Field(
        default="https://api.search.brave.com/res/v1/images/search",
        description="Brave image search endpoint"
    )
    default_image_url: str = Field(
        default="https://images.unsplash.com/photo-1504711434969-e33886168f5c?w=800&q=80",
        description="Fallback image used when no lookup succeeds"
    )

    # Personalization
    perspective_story_window: int = Field(
        default=50,
        ge=1,
        le=500,
        description="Number of most recent stories considered for the personalized split"
    )
    perspective_bucket_limit: int = Field(
        default=10,
        ge=1,
        le=100,
        description="Maximum stories per affirming/challenging bucket"
    )

    # Logging configuration
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )
    log_json: bool = Field(
        default=False,
        description="Render logs as JSON instead of console output"
    )

    # CORS configuration
    frontend_origins: str = Field(
        default="http://localhost:3000,http://127.0.0.1:3000",
        description="Comma-separated list of allowed frontend origins"
    )

    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        protected_namespaces=("settings_",),
    )

    @property
    def allowed_origins(self) -> list[str]:
        """Parse frontend_origins into a list of allowed CORS origins."""
        return [origin.strip() for origin in self.frontend_origins.split(",") if origin.strip()]

    @property
    def outlet_ids(self) -> list[str]:
        """Parse news_outlets into a list of NewsAPI source identifiers."""
        return [outlet.strip() for outlet in self.news_outlets.split(",") if outlet.strip()]

    @property
    def has_news_api_key(self) -> bool:
        return bool(self.news_api_key)

    @property
    def has_anthropic_key(self) -> bool:
        return bool(self.anthropic_api_key)

    @property
    def has_mistral_key(self) -> bool:
        return bool(self.mistral_api_key)


def get_settings() -> Settings:
    """
    Get application settings instance.

    Raises:
        ValidationError: If environment variables are invalid
    """
    try:
        return Settings()
    except ValidationError as e:
        print(f"Configuration validation error: {e}", file=sys.stderr)
        raise


def validate_env_cli() -> None:
    """
    CLI command to validate environment configuration.

    This function can be called via: python -m crossview.core.config --check
    """
    try:
        settings = get_settings()
        print("Environment configuration is valid")
        print(f"Database URL: {settings.database_url}")
        print(f"Aggregation interval: {settings.scheduler_interval_minutes} minutes")
        print(f"Outlets: {', '.join(settings.outlet_ids)}")
        print(f"LLM provider: {settings.llm_provider}")
        print(f"NewsAPI key: {'set' if settings.has_news_api_key else 'not set'}")
        print(f"Anthropic API key: {'set' if settings.has_anthropic_key else 'not set'}")
        print(f"Mistral API key: {'set' if settings.has_mistral_key else 'not set'}")
        print(f"Log level: {settings.log_level}")
    except ValidationError as e:
        print("Environment configuration is invalid:")
        for error in e.errors():
            field = ".".join(str(loc) for loc in error["loc"])
            print(f"  - {field}: {error['msg']}")
        sys.exit(1)


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Configuration validation utility")
    parser.add_argument("--check", action="store_true", help="Validate environment configuration")

    args = parser.parse_args()

    if args.check:
        validate_env_cli()
    else:
        parser.print_help()
