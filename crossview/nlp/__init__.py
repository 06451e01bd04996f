"""Heuristic text processing: keywords, capitalized entities and lexicon bias."""

from __future__ import annotations

from .bias import BiasResult, classify_bias
from .ner import extract_named_entities
from .preprocess import STOP_WORDS, extract_keywords, normalize_text

__all__ = [
    "BiasResult",
    "classify_bias",
    "extract_named_entities",
    "STOP_WORDS",
    "extract_keywords",
    "normalize_text",
]
