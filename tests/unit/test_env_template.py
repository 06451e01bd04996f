"""Tests for the environment template configuration."""

from pathlib import Path

from dotenv import dotenv_values

from crossview.core.config import Settings

REQUIRED_KEYS: tuple[str, ...] = (
    "NEWS_API_KEY",
    "NEWS_OUTLETS",
    "CLUSTER_MIN_SOURCES",
    "CLUSTER_MAX_STORIES",
    "CLUSTER_TIME_WINDOW_HOURS",
    "SCHEDULER_INTERVAL_MINUTES",
    "DATABASE_URL",
    "LLM_PROVIDER",
    "ANTHROPIC_API_KEY",
    "MISTRAL_API_KEY",
    "BRAVE_API_KEY",
    "LOG_LEVEL",
    "FRONTEND_ORIGINS",
)

OPTIONAL_EMPTY_KEYS = {"RSS_FEEDS"}


def _template() -> tuple[Path, dict[str, str | None]]:
    env_path = Path(__file__).resolve().parents[2] / ".env.example"
    return env_path, dotenv_values(str(env_path))


def test_env_example_contains_required_keys() -> None:
    """Ensure `.env.example` defines all required keys with placeholder values."""
    env_path, values = _template()

    missing_keys = {key for key in REQUIRED_KEYS if key not in values}
    empty_keys = {key for key in REQUIRED_KEYS if not (values.get(key) or "").strip()}

    assert env_path.exists(), "The `.env.example` template is missing at the repository root."
    assert not missing_keys, f"Missing keys: {', '.join(sorted(missing_keys))}."
    assert not empty_keys, f"Empty placeholders: {', '.join(sorted(empty_keys))}."


def test_env_example_only_lists_known_settings() -> None:
    _, values = _template()
    known = {name.upper() for name in Settings.model_fields}

    assert set(values) - known == set()
    assert {key for key, value in values.items() if not value} <= OPTIONAL_EMPTY_KEYS
