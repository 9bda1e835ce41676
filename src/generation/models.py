"""Pure data models for drafts, artifacts and controller results.

No I/O. ``parse_draft`` is the one function here: it turns raw LLM output
into either a validated ``GeneratedDraft`` or a ``ParseFailure`` so callers
must handle the fallback path explicitly.
"""

from __future__ import annotations

import logging
import re
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from seoforge.scoring.models import ContentBrief, DifferentiationReport, SearchIntent
from seoforge.shared.errors import ExtractionError
from seoforge.shared.llm import extract_json

logger = logging.getLogger(__name__)

_SLUG_RE = re.compile(r"[^a-z0-9]+")


def slugify(text: str) -> str:
    return _SLUG_RE.sub("-", text.lower()).strip("-")


# ---------------------------------------------------------------------------
# Drafts
# ---------------------------------------------------------------------------


class FAQItem(BaseModel):
    question: str
    answer: str = ""


class GeneratedDraft(BaseModel):
    """Structured article returned by the backend.

    Field aliases match the JSON shape requested in the prompt.
    """

    model_config = {"populate_by_name": True}

    title: str
    meta_description: str = Field(default="", alias="metaDescription")
    slug: str
    content: str
    faq_items: list[FAQItem] = Field(default_factory=list, alias="faqItems")
    degraded: bool = False


class ParseFailure(BaseModel):
    """Backend output that did not match the expected draft shape."""

    raw_text: str
    reason: str

    def to_fallback_draft(self, brief: ContentBrief) -> GeneratedDraft:
        """Degraded draft: raw text as content, synthesized title and slug."""
        return GeneratedDraft(
            title=f"{brief.topic}: A Comprehensive Guide",
            meta_description=(
                f"Learn everything about {brief.topic}. Expert insights for {brief.audience}."
            ),
            slug=slugify(brief.topic),
            content=self.raw_text,
            faq_items=[],
            degraded=True,
        )


def parse_draft(text: str) -> GeneratedDraft | ParseFailure:
    """Parse backend output into a draft, or describe why it could not be."""
    try:
        data: Any = extract_json(text)
    except ExtractionError as exc:
        return ParseFailure(raw_text=text, reason=str(exc))

    if not isinstance(data, dict):
        return ParseFailure(raw_text=text, reason=f"Expected a JSON object, got {type(data).__name__}")

    try:
        return GeneratedDraft.model_validate(data)
    except ValidationError as exc:
        return ParseFailure(raw_text=text, reason=f"Draft JSON missing fields: {exc.error_count()} errors")


# ---------------------------------------------------------------------------
# Artifacts and controller results
# ---------------------------------------------------------------------------


class GeneratedArticle(BaseModel):
    """Finalized document payload handed to the publisher."""

    title: str
    meta_description: str
    slug: str
    content: str
    faq_items: list[FAQItem] = Field(default_factory=list)
    word_count: int
    uniqueness_score: float
    quality_score: float
    content_hash: str
    differentiation_report: DifferentiationReport
    generated_by: str
    brief: ContentBrief
    attempts: int = 1
    degraded: bool = False
    warnings: list[str] = Field(default_factory=list)
    generated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class GenerationState(StrEnum):
    """Controller states."""

    BUILDING_BRIEF = "building-brief"
    GENERATING = "generating"
    SCORING = "scoring"
    PASSED_THRESHOLD = "passed-threshold"
    BELOW_THRESHOLD = "below-threshold"
    REGENERATING = "regenerating"
    FINALIZED = "finalized"
    FAILED = "failed"


class GenerationRequest(BaseModel):
    """What to write about."""

    topic: str
    keyword: str
    intent: SearchIntent = SearchIntent.INFORMATIONAL
    audience: str = "business professionals"
    template_id: str | None = None
    location: str | None = None
    category: str | None = None


class GenerationResult(BaseModel):
    """Outcome of one controller run: the article on success, the reason on failure."""

    state: GenerationState
    article: GeneratedArticle | None = None
    error: str | None = None
    error_type: str | None = None
    transitions: list[GenerationState] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.state == GenerationState.FINALIZED and self.article is not None
