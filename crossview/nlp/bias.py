"""Lexicon-based political bias classification for single articles."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Tuple

SENTENCE_PATTERN = re.compile(r"(?<=[.!?])\s+")

LEFT_TERMS: Tuple[str, ...] = (
    "progressive",
    "liberal",
    "social justice",
    "climate crisis",
    "climate change",
    "inequality",
    "systemic racism",
    "workers' rights",
    "union",
    "universal healthcare",
    "medicare for all",
    "gun control",
    "reproductive rights",
    "abortion rights",
    "lgbtq",
    "diversity",
    "inclusion",
    "living wage",
    "minimum wage",
    "wealth tax",
    "corporate greed",
    "undocumented",
    "green new deal",
    "voting rights",
    "marginalized",
)

RIGHT_TERMS: Tuple[str, ...] = (
    "conservative",
    "traditional values",
    "free market",
    "tax cuts",
    "small government",
    "border security",
    "illegal immigrant",
    "illegal alien",
    "second amendment",
    "gun rights",
    "pro-life",
    "religious liberty",
    "law and order",
    "deregulation",
    "patriot",
    "national sovereignty",
    "job creators",
    "fiscal responsibility",
    "big government",
    "socialism",
    "radical left",
    "woke",
    "family values",
    "election integrity",
    "energy independence",
)

ATTRIBUTION_MARKERS: Tuple[str, ...] = (
    "according to",
    "said",
    "stated",
    "believes",
    "argues",
    "claims",
    "suggests",
    "indicates",
)

MAX_QUOTES = 3
MIN_QUOTES_BEFORE_FALLBACK = 2
DOMINANCE_RATIO = 1.5

LEXICON_QUOTE_RANGE = (20, 300)
ATTRIBUTION_QUOTE_RANGE = (40, 250)
LONGEST_QUOTE_RANGE = (30, 250)


@dataclass(frozen=True)
class BiasResult:
    """Label plus supporting quotes for one article."""

    label: str
    quotes: Tuple[str, ...] = field(default_factory=tuple)
    left_count: int = 0
    right_count: int = 0

    def as_dict(self) -> dict:
        return {
            "label": self.label,
            "quotes": list(self.quotes),
            "left_count": self.left_count,
            "right_count": self.right_count,
        }


def split_sentences(text: str) -> List[str]:
    return [part.strip() for part in SENTENCE_PATTERN.split(text) if part.strip()]


def _join_fields(fields: Iterable[Optional[str]]) -> str:
    parts: List[str] = []
    for value in fields:
        value = (value or "").strip()
        if not value:
            continue
        if value[-1] not in ".!?":
            value += "."
        parts.append(value)
    return " ".join(parts)


def _as_quote(sentence: str) -> str:
    sentence = sentence.strip()
    return sentence if sentence.endswith(".") else sentence.rstrip("!?") + "."


def _count_terms(sentence_lower: str, terms: Tuple[str, ...]) -> int:
    return sum(1 for term in terms if term in sentence_lower)


def _in_range(sentence: str, bounds: Tuple[int, int]) -> bool:
    low, high = bounds
    return low <= len(sentence) < high


def decide_label(left_count: int, right_count: int) -> str:
    if left_count > DOMINANCE_RATIO * right_count:
        return "left"
    if right_count > DOMINANCE_RATIO * left_count:
        return "right"
    return "center"


def classify_bias(
    title: Optional[str] = "",
    description: Optional[str] = "",
    content: Optional[str] = "",
) -> BiasResult:
    """
    Label an article left, right or center from lexicon hits and pick up to three quotes.

    Quotes are gathered in three passes: sentences containing lexicon terms, then
    sentences with attribution markers, then the longest remaining sentences. The
    later passes only run for articles with at least one lexicon hit and while
    fewer than two quotes were found. Articles without any hit are labelled
    ``center`` with no quotes.
    """

    sentences = split_sentences(_join_fields((title, description, content)))

    left_count = 0
    right_count = 0
    quotes: List[str] = []
    seen: set[str] = set()

    def collect(sentence: str) -> None:
        quote = _as_quote(sentence)
        if quote not in seen:
            seen.add(quote)
            quotes.append(quote)

    for sentence in sentences:
        lowered = sentence.lower()
        left_hits = _count_terms(lowered, LEFT_TERMS)
        right_hits = _count_terms(lowered, RIGHT_TERMS)
        left_count += left_hits
        right_count += right_hits
        if (left_hits or right_hits) and _in_range(sentence, LEXICON_QUOTE_RANGE):
            collect(sentence)

    matched = left_count + right_count > 0

    if matched and len(quotes) < MIN_QUOTES_BEFORE_FALLBACK:
        for sentence in sentences:
            if len(quotes) >= MAX_QUOTES:
                break
            lowered = sentence.lower()
            if _in_range(sentence, ATTRIBUTION_QUOTE_RANGE) and any(
                marker in lowered for marker in ATTRIBUTION_MARKERS
            ):
                collect(sentence)

    if matched and len(quotes) < MIN_QUOTES_BEFORE_FALLBACK:
        candidates = sorted(
            (s for s in sentences if _in_range(s, LONGEST_QUOTE_RANGE)),
            key=len,
            reverse=True,
        )
        for sentence in candidates:
            if len(quotes) >= MAX_QUOTES:
                break
            collect(sentence)

    return BiasResult(
        label=decide_label(left_count, right_count),
        quotes=tuple(quotes[:MAX_QUOTES]),
        left_count=left_count,
        right_count=right_count,
    )


__all__ = [
    "LEFT_TERMS",
    "RIGHT_TERMS",
    "ATTRIBUTION_MARKERS",
    "MAX_QUOTES",
    "BiasResult",
    "split_sentences",
    "decide_label",
    "classify_bias",
]
