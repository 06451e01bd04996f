"""Text normalization and keyword extraction for article clustering."""

from __future__ import annotations

import re
import unicodedata
from collections import Counter
from dataclasses import dataclass
from typing import FrozenSet, List

TOKEN_RE = re.compile(r"[^\w\s]", flags=re.UNICODE)
WHITESPACE_RE = re.compile(r"\s+")

MAX_KEYWORDS = 10
MIN_KEYWORD_LENGTH = 4

# Function words plus generic news filler that never identifies an event.
STOP_WORDS: FrozenSet[str] = frozenset(
    {
        "a", "an", "the", "and", "but", "or", "nor", "for", "yet", "so",
        "of", "in", "on", "at", "to", "by", "up", "as", "is", "it",
        "be", "am", "are", "was", "were", "been", "being", "has", "have", "had",
        "having", "does", "did", "doing", "will", "would", "shall", "should", "could", "might",
        "must", "can", "this", "that", "these", "those", "with", "from", "into", "onto",
        "about", "above", "after", "again", "against", "before", "below", "between", "during", "through",
        "under", "over", "than", "then", "there", "their", "they", "them", "what", "which",
        "when", "where", "while", "who", "whom", "whose", "your", "some", "such", "also",
        "just", "more", "most", "other", "only", "very", "here", "says", "said", "report",
        "reports", "reported", "according", "news", "latest", "update", "updates", "year", "years", "week",
    }
)


@dataclass(slots=True)
class NormalizationResult:
    """Structured result of the normalization step."""

    normalized_text: str
    tokens: List[str]


def basic_clean(text: str) -> str:
    """Unicode-normalize, lowercase, strip punctuation and collapse whitespace."""

    if not text:
        return ""
    normalized = unicodedata.normalize("NFKC", text).lower()
    normalized = TOKEN_RE.sub("", normalized)
    normalized = WHITESPACE_RE.sub(" ", normalized)
    return normalized.strip()


def normalize_text(text: str, *, stop_words: FrozenSet[str] = STOP_WORDS) -> NormalizationResult:
    """Return the cleaned text and its content tokens (long, non stop-word)."""

    cleaned = basic_clean(text)
    tokens = [
        token
        for token in cleaned.split(" ")
        if len(token) >= MIN_KEYWORD_LENGTH and token not in stop_words
    ]
    return NormalizationResult(normalized_text=cleaned, tokens=tokens)


def extract_keywords(text: str, limit: int = MAX_KEYWORDS) -> List[str]:
    """
    Rank the content tokens of ``text`` by frequency.

    Ties keep first-seen order because Counter preserves insertion order and
    ``sorted`` is stable.
    """

    tokens = normalize_text(text).tokens
    if not tokens:
        return []
    counts = Counter(tokens)
    ranked = sorted(counts.items(), key=lambda item: -item[1])
    return [token for token, _ in ranked[:limit]]


__all__ = [
    "STOP_WORDS",
    "MAX_KEYWORDS",
    "NormalizationResult",
    "basic_clean",
    "normalize_text",
    "extract_keywords",
]
