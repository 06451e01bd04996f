from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from crossview.survey.questions import QUESTION_COUNT


class StorySourceResponse(BaseModel):
    title: str
    source: str
    link: str = "#"


class SourceBiasResponse(BaseModel):
    source: str
    bias: str
    quotes: List[str] = Field(default_factory=list)


class UniqueClaimResponse(BaseModel):
    claim: str
    source: str


class StoryResponse(BaseModel):
    id: str
    headline: str
    summary: str
    category: str
    news_type: str = "static"
    published_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    full_content: Optional[str] = None
    common_facts: Optional[str] = None
    image_url: Optional[str] = None
    sources: List[StorySourceResponse] = Field(default_factory=list)
    source_bias: List[SourceBiasResponse] = Field(default_factory=list)
    unique_claims: List[UniqueClaimResponse] = Field(default_factory=list)
    analysis_provider: Optional[str] = None


class StoryListMeta(BaseModel):
    total: int
    category: Optional[str] = None
    refreshed: bool = False
    refresh_stats: Optional[Dict[str, Any]] = None
    generated_at: datetime


class PerspectiveData(BaseModel):
    affirming: List[StoryResponse] = Field(default_factory=list)
    challenging: List[StoryResponse] = Field(default_factory=list)


class PerspectiveMeta(BaseModel):
    email: str
    type: Literal["align", "challenge", "all"]
    policy: str
    political_type: Optional[str] = None
    stories_considered: int


class SurveyAnswer(BaseModel):
    """One weighted answer; ``value`` 0 means unanswered."""

    value: float = Field(default=0, ge=0, le=10)
    weight: float = Field(default=1, ge=0)


class SurveySubmission(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    email: Optional[str] = None
    responses: List[Optional[SurveyAnswer]] = Field(..., max_length=QUESTION_COUNT)

    @field_validator("email")
    @classmethod
    def _normalize_email(cls, value: Optional[str]) -> Optional[str]:
        if value is None or not value:
            return None
        if "@" not in value:
            raise ValueError("email must contain '@'")
        return value.lower()


class SurveyResultResponse(BaseModel):
    email: Optional[str] = None
    category_scores: Dict[str, float]
    political_axes: Dict[str, float]
    political_type: str
    engagement_score: int
    anti_polarization_score: float
    anti_polarization_level: str
    persisted: bool = False
    updated_at: Optional[datetime] = None


class SummarizeRequest(BaseModel):
    text: str = Field(..., min_length=1)


class SummarizeResponse(BaseModel):
    summary: str


class BackfillResponse(BaseModel):
    processed: int
    total: int
    remaining: int
    results: List[Dict[str, Any]] = Field(default_factory=list)

