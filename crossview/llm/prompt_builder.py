"""Prompt construction for story analysis and neutral summaries."""

from __future__ import annotations

from importlib import resources
from textwrap import shorten
from typing import Optional, Sequence

from crossview.db.models import Story

FULL_CONTENT_CHAR_LIMIT = 4000
SUMMARY_INPUT_CHAR_LIMIT = 8000


class PromptBuilderError(RuntimeError):
    """Raised when building a prompt is not possible."""


def _load_template(name: str) -> str:
    return resources.files("crossview.llm.templates").joinpath(name).read_text(encoding="utf-8")


ANALYSIS_TEMPLATE = _load_template("story_analysis_prompt.txt")
SUMMARY_TEMPLATE = _load_template("summary_prompt.txt")


def _format_sources(sources: Sequence[object]) -> str:
    lines = []
    for entry in sources:
        title = getattr(entry, "title", "")
        outlet = getattr(entry, "source", "")
        link = getattr(entry, "link", "")
        lines.append(f"- {outlet}: {title} ({link})")
    return "\n".join(lines) if lines else "- none recorded"


def build_analysis_prompt(story: Story, *, sources: Optional[Sequence[object]] = None) -> str:
    """Fill the analysis template with a persisted story."""

    if not story.headline:
        raise PromptBuilderError(f"Story {story.id} has no headline")

    full_content = ""
    if story.full_content:
        full_content = "Full content: " + shorten(
            story.full_content, width=FULL_CONTENT_CHAR_LIMIT, placeholder=" ..."
        )
    common_facts = f"Common facts: {story.common_facts}" if story.common_facts else ""

    return (
        ANALYSIS_TEMPLATE.replace("{headline}", story.headline)
        .replace("{summary}", story.summary or "")
        .replace("{category}", story.category or "general")
        .replace("{sources}", _format_sources(sources if sources is not None else story.sources))
        .replace("{full_content}", full_content)
        .replace("{common_facts}", common_facts)
    )


def build_summary_prompt(text: str) -> str:
    if not text or not text.strip():
        raise PromptBuilderError("Cannot summarize empty text")
    trimmed = shorten(text.strip(), width=SUMMARY_INPUT_CHAR_LIMIT, placeholder=" ...")
    return SUMMARY_TEMPLATE.replace("{text}", trimmed)


__all__ = [
    "PromptBuilderError",
    "build_analysis_prompt",
    "build_summary_prompt",
]
