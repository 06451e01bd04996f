"""Named entity extraction helpers.

Entities are detected with a capitalization heuristic rather than a tagger: runs
of capitalized words form one candidate, and short single words are discarded.
Long capitalized common nouns are accepted as entities too.
"""

from __future__ import annotations

import re
from typing import List, Set

PUNCTUATION_RE = re.compile(r"[^\w\s]", flags=re.UNICODE)

MIN_SINGLE_WORD_LENGTH = 8

SENTENCE_STARTERS = frozenset(
    {
        "The", "A", "An", "This", "That", "These", "Those", "It", "In", "On",
        "At", "As", "After", "Before", "When", "While", "If", "But", "And", "Why",
        "How", "What", "Who", "New", "More",
    }
)


def _flush(current: List[str], entities: Set[str]) -> None:
    if not current:
        return
    entity = " ".join(current)
    if " " in entity or len(entity) >= MIN_SINGLE_WORD_LENGTH:
        entities.add(entity.lower())
    current.clear()


def extract_named_entities(text: str) -> Set[str]:
    """Return lowercase candidate entities found in ``text``."""

    if not text:
        return set()

    words = PUNCTUATION_RE.sub(" ", text).split()
    entities: Set[str] = set()
    current: List[str] = []

    for index, word in enumerate(words):
        capitalized = word[0].isupper()
        if index == 0 and word in SENTENCE_STARTERS:
            capitalized = False

        if capitalized:
            current.append(word)
        else:
            _flush(current, entities)

    _flush(current, entities)
    return entities


__all__ = ["SENTENCE_STARTERS", "extract_named_entities"]
