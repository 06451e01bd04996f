"""Pydantic schemas for text-synthesis payloads."""

from __future__ import annotations

from typing import List, Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

BiasLabel = Literal["left", "right", "center", "unknown"]

_BIAS_ALIASES = {
    "left": "left",
    "left-wing": "left",
    "center-left": "left",
    "centre-left": "left",
    "liberal": "left",
    "right": "right",
    "right-wing": "right",
    "center-right": "right",
    "centre-right": "right",
    "conservative": "right",
    "center": "center",
    "centre": "center",
    "neutral": "center",
}


class AnalysisSource(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: str = ""
    source: str = ""
    link: str = "#"
    content: str = ""


class UniqueClaim(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    claim: str = ""
    source: str = ""


class SourceBiasEntry(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    source: str = ""
    bias: BiasLabel = "unknown"
    bias_quotes: List[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("bias_quotes", "biasQuotes", "quotes"),
    )

    @field_validator("bias", mode="before")
    @classmethod
    def _normalize_bias(cls, value: object) -> str:
        if not isinstance(value, str):
            return "unknown"
        return _BIAS_ALIASES.get(value.strip().lower(), "unknown")


class StoryAnalysisPayload(BaseModel):
    """Structured enrichment returned for one story."""

    model_config = ConfigDict(populate_by_name=True)

    sources: List[AnalysisSource] = Field(default_factory=list)
    unique_claims: List[UniqueClaim] = Field(
        default_factory=list,
        validation_alias=AliasChoices("unique_claims", "uniqueClaims"),
    )
    source_bias: List[SourceBiasEntry] = Field(
        default_factory=list,
        validation_alias=AliasChoices("source_bias", "sourceBias"),
    )

    @field_validator("sources", "unique_claims", "source_bias", mode="before")
    @classmethod
    def _coerce_list(cls, value: object) -> object:
        return value if isinstance(value, list) else []


__all__ = [
    "BiasLabel",
    "AnalysisSource",
    "UniqueClaim",
    "SourceBiasEntry",
    "StoryAnalysisPayload",
]
