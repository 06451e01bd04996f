"""Pairwise similarity between articles for event clustering."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import Set

from crossview.feeds.base import Article
from crossview.nlp.preprocess import basic_clean

MIN_WORD_LENGTH = 4


@dataclass(frozen=True)
class SimilarityThresholds:
    """Layered thresholds used by :func:`are_similar`."""

    strong_title: float = 0.8
    entity_title: float = 0.4
    min_shared_entities: int = 2
    keyword_title: float = 0.3
    min_shared_keywords: int = 3
    time_title: float = 0.35
    time_window: timedelta = timedelta(hours=12)
    min_time_entities: int = 1


DEFAULT_THRESHOLDS = SimilarityThresholds()


def _content_words(normalized: str) -> Set[str]:
    return {word for word in normalized.split(" ") if len(word) >= MIN_WORD_LENGTH}


def title_similarity(title_a: str, title_b: str) -> float:
    """
    Score two headlines in [0, 1].

    Exact matches score 1.0 and containment scores ``0.8 * shorter/longer``.
    Otherwise the score blends word Jaccard (0.6) with the share of the longer
    title's words that also occur in the other title (0.4).
    """

    a = basic_clean(title_a)
    b = basic_clean(title_b)
    if a == b:
        return 1.0
    if not a or not b:
        return 0.0
    if a in b or b in a:
        return 0.8 * (min(len(a), len(b)) / max(len(a), len(b)))

    words_a = _content_words(a)
    words_b = _content_words(b)
    union = words_a | words_b
    if not union:
        return 0.0

    shared = words_a & words_b
    jaccard = len(shared) / len(union)
    match_ratio = len(shared) / max(len(words_a), len(words_b))
    return 0.6 * jaccard + 0.4 * match_ratio


def shared_entities(a: Article, b: Article) -> Set[str]:
    return a.entities & b.entities


def shared_keywords(a: Article, b: Article) -> Set[str]:
    return set(a.keywords) & set(b.keywords)


def within_window(a: Article, b: Article, window: timedelta) -> bool:
    if a.published_at is None or b.published_at is None:
        return False
    return abs(a.published_at - b.published_at) <= window


def are_similar(
    a: Article,
    b: Article,
    thresholds: SimilarityThresholds = DEFAULT_THRESHOLDS,
) -> bool:
    """Decide whether two articles from different sources cover the same event."""

    if a.source_id == b.source_id:
        return False

    title_score = title_similarity(a.title, b.title)
    if title_score > thresholds.strong_title:
        return True

    entity_count = len(shared_entities(a, b))
    if entity_count >= thresholds.min_shared_entities and title_score > thresholds.entity_title:
        return True

    if (
        len(shared_keywords(a, b)) >= thresholds.min_shared_keywords
        and title_score > thresholds.keyword_title
    ):
        return True

    return (
        within_window(a, b, thresholds.time_window)
        and title_score > thresholds.time_title
        and entity_count >= thresholds.min_time_entities
    )


__all__ = [
    "SimilarityThresholds",
    "DEFAULT_THRESHOLDS",
    "title_similarity",
    "shared_entities",
    "shared_keywords",
    "within_window",
    "are_similar",
]
