"""Pure data models for briefs and scoring.

No I/O, no business logic. Generation, scoring and the CLI all import from
here; this module only imports from stdlib and pydantic.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, Field


class SearchIntent(StrEnum):
    """What the searcher is trying to do."""

    INFORMATIONAL = "informational"
    TRANSACTIONAL = "transactional"
    NAVIGATIONAL = "navigational"
    COMMERCIAL = "commercial"


class ContentLength(StrEnum):
    SHORT = "short"
    MEDIUM = "medium"
    LONG = "long"
    COMPREHENSIVE = "comprehensive"


class DataPoint(BaseModel):
    """A fact the article must include, with its claimed source."""

    fact: str
    source: str = ""
    verified: bool = False


class ContentBrief(BaseModel):
    """Parameters for one generation attempt."""

    topic: str
    target_keyword: str
    secondary_keywords: list[str] = Field(default_factory=list)
    search_intent: SearchIntent = SearchIntent.INFORMATIONAL
    audience: str = ""
    content_angle: str = ""
    differentiators: list[str] = Field(default_factory=list)
    data_points: list[DataPoint] = Field(default_factory=list)
    unique_insight: str = ""
    content_length: ContentLength = ContentLength.LONG


class ScoringThresholds(BaseModel):
    """Limits the differentiation scorer checks against."""

    min_differentiation: float = 0.75
    max_similarity: float = 0.3
    min_data_points: int = 3


class DifferentiationReport(BaseModel):
    """How different a candidate is from the corpus, and why it failed if it did."""

    unique_fact_count: int = 0
    unique_phrases: list[str] = Field(default_factory=list)
    angle_score: float = 0.0
    data_score: float = 0.0
    insight_score: float = 0.0
    overall_score: float = 0.0
    passes_threshold: bool = False
    issues: list[str] = Field(default_factory=list)
    max_similarity: float = 0.0
    most_similar_key: str = ""
