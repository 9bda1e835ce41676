"""Pre-publish content validation.

Two layers:

- ``validate_content``: hard gates applied to a single document before it is
  published (word count minimum, template rotation, cover photo reachable).
- ``ContentFileValidator``: softer SEO checks over markdown files on disk
  (title/description lengths, tags, structure, uniqueness against the
  corpus, data density, FAQ, actionability, first-paragraph answer).
"""

from __future__ import annotations

import hashlib
import logging
import re
from collections.abc import Callable, Sequence
from datetime import UTC, datetime
from enum import StrEnum
from pathlib import Path

from pydantic import BaseModel, Field

from seoforge.registry.catalog import extract_photo_id
from seoforge.shared.corpus import (
    CorpusDocument,
    document_key,
    parse_frontmatter,
    read_directory,
    split_body,
)
from seoforge.uniqueness.similarity import SimilarityEngine
from seoforge.uniqueness.templates import TemplateValidation, validate_template

logger = logging.getLogger(__name__)

MINIMUM_WORD_COUNT = 2000
OPTIMAL_WORD_COUNT = 3000
ACCEPTABLE_RATIO = 0.8

# ---------------------------------------------------------------------------
# Word count
# ---------------------------------------------------------------------------

_LEADING_FRONTMATTER_RE = re.compile(r"^---\n.*?\n---\n", re.DOTALL)
_WORD_STRIP_PATTERNS: list[tuple[re.Pattern[str], str]] = [
    (re.compile(r"```.*?```", re.DOTALL), ""),
    (re.compile(r"`[^`]+`"), ""),
    (re.compile(r"!\[[^\]]*\]\([^)]+\)"), ""),
    (re.compile(r"\[([^\]]+)\]\([^)]+\)"), r"\1"),
    (re.compile(r"^#+\s*", re.MULTILINE), ""),
    (re.compile(r"[*_~`]"), ""),
    (re.compile(r"\|"), " "),
    (re.compile(r"[-=]{3,}"), ""),
    (re.compile(r"^\s*[-*+]\s+", re.MULTILINE), ""),
    (re.compile(r"^\s*\d+\.\s+", re.MULTILINE), ""),
]


def count_words(content: str) -> int:
    """Count prose words, ignoring frontmatter, code, link targets and markup."""
    body = _LEADING_FRONTMATTER_RE.sub("", content, count=1)
    for pattern, replacement in _WORD_STRIP_PATTERNS:
        body = pattern.sub(replacement, body)
    return len(body.split())


class WordCountRating(StrEnum):
    EXCELLENT = "excellent"
    GOOD = "good"
    ACCEPTABLE = "acceptable"
    TOO_SHORT = "too_short"


class WordCountValidation(BaseModel):
    valid: bool
    word_count: int
    minimum: int = MINIMUM_WORD_COUNT
    deficit: int = 0
    rating: WordCountRating
    message: str


def validate_word_count(content: str, minimum: int = MINIMUM_WORD_COUNT) -> WordCountValidation:
    """Rate a document's length against the hard publishing minimum.

    ``acceptable`` (within 80% of the minimum) is still invalid; it only
    tells the operator how close the draft is.
    """
    words = count_words(content)
    deficit = max(0, minimum - words)

    if words >= OPTIMAL_WORD_COUNT:
        rating = WordCountRating.EXCELLENT
        message = f"Excellent: {words} words (optimal range)"
    elif words >= minimum:
        rating = WordCountRating.GOOD
        message = f"Good: {words} words meets minimum (target: {OPTIMAL_WORD_COUNT}+)"
    elif words >= minimum * ACCEPTABLE_RATIO:
        rating = WordCountRating.ACCEPTABLE
        message = f"Close but too short: {words} words (need {deficit} more)"
    else:
        rating = WordCountRating.TOO_SHORT
        message = f"REJECTED: {words} words is far below minimum {minimum}"

    return WordCountValidation(
        valid=words >= minimum,
        word_count=words,
        minimum=minimum,
        deficit=deficit,
        rating=rating,
        message=message,
    )


# ---------------------------------------------------------------------------
# Single-document gates
# ---------------------------------------------------------------------------


class PhotoValidation(BaseModel):
    valid: bool
    url: str
    photo_id: str | None = None
    message: str


def validate_cover_photo(url: str, probe: Callable[[str], bool]) -> PhotoValidation:
    """Check a cover photo URL answers before trusting it."""
    if not url:
        return PhotoValidation(valid=False, url="", message="No cover photo URL provided")

    photo_id = extract_photo_id(url)
    reachable = probe(url)
    message = (
        f"Cover photo {photo_id} is accessible"
        if reachable
        else f"Cover photo {photo_id} is not reachable - find a replacement"
    )
    return PhotoValidation(valid=reachable, url=url, photo_id=photo_id, message=message)


class ContentValidationResult(BaseModel):
    valid: bool
    word_count: WordCountValidation
    template_message: str | None = None
    cover_photo: PhotoValidation | None = None
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


def validate_content(
    content: str,
    *,
    template_id: str | None = None,
    recent_templates: Sequence[str] | None = None,
    cover_photo_url: str | None = None,
    probe: Callable[[str], bool] | None = None,
    minimum_words: int = MINIMUM_WORD_COUNT,
) -> ContentValidationResult:
    """Apply the publishing gates. Any error makes the result invalid.

    The template check runs only when both a template id and a history are
    given; the photo check runs only when a URL and a probe are given.
    """
    errors: list[str] = []
    warnings: list[str] = []

    words = validate_word_count(content, minimum_words)
    if not words.valid:
        errors.append(words.message)
    elif words.rating == WordCountRating.GOOD:
        warnings.append(f"Consider expanding content to {OPTIMAL_WORD_COUNT}+ words for better SEO")

    template: TemplateValidation | None = None
    if template_id and recent_templates is not None:
        template = validate_template(template_id, recent_templates)
        if not template.valid:
            errors.append(template.message)

    cover_photo: PhotoValidation | None = None
    if cover_photo_url and probe is not None:
        cover_photo = validate_cover_photo(cover_photo_url, probe)
        if not cover_photo.valid:
            errors.append(cover_photo.message)

    return ContentValidationResult(
        valid=not errors,
        word_count=words,
        template_message=template.message if template else None,
        cover_photo=cover_photo,
        errors=errors,
        warnings=warnings,
    )


# ---------------------------------------------------------------------------
# File-level SEO checks
# ---------------------------------------------------------------------------


class Severity(StrEnum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class CheckResult(BaseModel):
    name: str
    passed: bool
    score: float
    message: str
    severity: Severity


class FileValidationResult(BaseModel):
    file: str
    passed: bool
    score: float
    checks: list[CheckResult] = Field(default_factory=list)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))


SEO_MIN_WORDS = 1500
TITLE_LENGTH = (20, 60)
DESCRIPTION_LENGTH = (50, 160)
TAG_COUNT = (2, 8)
UNIQUENESS_CEILING = 0.4
MIN_DATA_MENTIONS = 5
MIN_FAQ_ITEMS = 3
MIN_ACTION_INDICATORS = 10
MIN_FIRST_PARAGRAPH_CHARS = 50

_H2_RE = re.compile(r"^## ", re.MULTILINE)
_H3_RE = re.compile(r"^### ", re.MULTILINE)
_BULLET_RE = re.compile(r"^[*-] ", re.MULTILINE)
_DATA_RE = re.compile(r"\$\d+(?:,\d{3})*(?:\.\d+)?[KMB]?\b|\b\d{1,3}(?:,\d{3})*(?:\.\d+)?%?")
_FAQ_HEADING_RE = re.compile(r"## FAQ|## Frequently Asked", re.IGNORECASE)
_FAQ_ITEM_RE = re.compile(r"\*\*Q:|^### .+\?", re.MULTILINE)
_ACTION_PATTERNS = [
    re.compile(pattern, re.IGNORECASE)
    for pattern in (
        r"\bstep \d+\b",
        r"\bhow to\b",
        r"\byou can\b",
        r"\byou should\b",
        r"\bto do this\b",
        r"\bhere's how\b",
        r"\bfor example\b",
        r"\bspecifically\b",
        r"\bpractical\b",
        r"\bactionable\b",
    )
]
_DIRECT_ANSWER_RE = re.compile(r"\b(is|are|means|refers to|involves|includes)\b", re.IGNORECASE)
_HEADING_LINE_RE = re.compile(r"^#+ .+$", re.MULTILINE)


def _title_hash(title: str) -> str:
    return hashlib.md5(title.encode("utf-8"), usedforsecurity=False).hexdigest()


def _as_str(value: str | list[str] | None) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else ", ".join(value)


def _as_list(value: str | list[str] | None) -> list[str]:
    if value is None:
        return []
    if isinstance(value, list):
        return value
    stripped = value.strip().strip("[]")
    return [tag.strip().strip("'\"") for tag in stripped.split(",") if tag.strip()]


class ContentFileValidator:
    """Runs the SEO checklist over markdown files, comparing each to the corpus."""

    def __init__(self) -> None:
        self.engine = SimilarityEngine()
        self._titles: dict[str, str] = {}

    def load_corpus(self, documents: Sequence[CorpusDocument]) -> None:
        self.engine.load_existing(documents)
        for doc in documents:
            title = _as_str(parse_frontmatter(doc.text).get("title"))
            if title:
                self._titles[doc.key] = _title_hash(title)

    def validate_file(self, path: Path) -> FileValidationResult:
        text = path.read_text(encoding="utf-8")
        fm = parse_frontmatter(text)
        body = split_body(text)
        key = document_key(path.name)

        checks = [
            self.check_word_count(body),
            self.check_title(_as_str(fm.get("title"))),
            self.check_description(_as_str(fm.get("description"))),
            self.check_tags(_as_list(fm.get("tags"))),
            self.check_structure(body),
            self.check_uniqueness(key, _as_str(fm.get("title")), body),
            self.check_data_points(body),
            self.check_faq(body, len(_as_list(fm.get("faqItems")))),
            self.check_actionability(body),
            self.check_first_paragraph(body),
        ]
        passed = all(c.passed or c.severity != Severity.ERROR for c in checks)
        score = sum(c.score for c in checks) / len(checks)
        return FileValidationResult(file=path.name, passed=passed, score=score, checks=checks)

    def validate_directory(self, directory: Path) -> list[FileValidationResult]:
        if not directory.is_dir():
            logger.warning("Directory not found: %s", directory)
            return []
        return [self.validate_file(doc.path) for doc in read_directory(directory) if doc.path]

    # -- individual checks --------------------------------------------------

    def check_word_count(self, body: str) -> CheckResult:
        words = count_words(body)
        passed = words >= SEO_MIN_WORDS
        return CheckResult(
            name="Minimum Word Count",
            passed=passed,
            score=min(words / SEO_MIN_WORDS, 1.0),
            message=f"Word count: {words} ({'meets' if passed else 'below'} {SEO_MIN_WORDS} minimum)",
            severity=Severity.INFO if passed else Severity.ERROR,
        )

    def check_title(self, title: str) -> CheckResult:
        if not title:
            return CheckResult(
                name="Title Check", passed=False, score=0.0,
                message="Title is missing", severity=Severity.ERROR,
            )
        low, high = TITLE_LENGTH
        issues: list[str] = []
        if len(title) > high:
            issues.append(f"Title exceeds {high} characters")
        if len(title) < low:
            issues.append("Title is too short")
        if not re.search(r"[a-z]", title, re.IGNORECASE):
            issues.append("Title has no letters")
        passed = not issues
        return CheckResult(
            name="Title Check",
            passed=passed,
            score=1.0 if passed else 0.5,
            message=f'Title OK: "{title}"' if passed else "; ".join(issues),
            severity=Severity.INFO if passed else Severity.WARNING,
        )

    def check_description(self, description: str) -> CheckResult:
        if not description:
            return CheckResult(
                name="Description Check", passed=False, score=0.0,
                message="Meta description is missing", severity=Severity.ERROR,
            )
        low, high = DESCRIPTION_LENGTH
        issues: list[str] = []
        if len(description) > high:
            issues.append(f"Description exceeds {high} characters")
        if len(description) < low:
            issues.append("Description is too short")
        passed = not issues
        return CheckResult(
            name="Description Check",
            passed=passed,
            score=1.0 if passed else 0.5,
            message=f"Description OK ({len(description)} chars)" if passed else "; ".join(issues),
            severity=Severity.INFO if passed else Severity.WARNING,
        )

    def check_tags(self, tags: list[str]) -> CheckResult:
        if not tags:
            return CheckResult(
                name="Tags Check", passed=False, score=0.0,
                message="No tags specified", severity=Severity.WARNING,
            )
        low, high = TAG_COUNT
        passed = low <= len(tags) <= high
        return CheckResult(
            name="Tags Check",
            passed=passed,
            score=1.0 if passed else 0.5,
            message=f"{len(tags)} tags: {', '.join(tags)}",
            severity=Severity.INFO if passed else Severity.WARNING,
        )

    def check_structure(self, body: str) -> CheckResult:
        h2 = len(_H2_RE.findall(body))
        h3 = len(_H3_RE.findall(body))
        bullets = len(_BULLET_RE.findall(body))
        issues: list[str] = []
        if h2 < 3:
            issues.append("Less than 3 H2 headers")
        if h3 < 2:
            issues.append("Less than 2 H3 headers")
        if bullets < 3:
            issues.append("Less than 3 bullet points")
        passed = not issues
        return CheckResult(
            name="Content Structure",
            passed=passed,
            score=1.0 if passed else 0.6,
            message=(
                f"Good structure: {h2} H2s, {h3} H3s, {bullets} list items"
                if passed
                else "; ".join(issues)
            ),
            severity=Severity.INFO if passed else Severity.WARNING,
        )

    def check_uniqueness(self, key: str, title: str, body: str) -> CheckResult:
        if title:
            digest = _title_hash(title)
            for other, other_digest in sorted(self._titles.items()):
                if other != key and other_digest == digest:
                    return CheckResult(
                        name="Uniqueness Check", passed=False, score=0.0,
                        message=f"DUPLICATE TITLE found with: {other}",
                        severity=Severity.ERROR,
                    )

        result = self.engine.score_against(body, exclude=key)
        passed = result.max_similarity < UNIQUENESS_CEILING
        return CheckResult(
            name="Uniqueness Check",
            passed=passed,
            score=1.0 - result.max_similarity,
            message=(
                f"Uniqueness: {(1 - result.max_similarity) * 100:.1f}%"
                if passed
                else f'Too similar to "{result.most_similar_key}" '
                f"({result.max_similarity * 100:.1f}% overlap)"
            ),
            severity=Severity.INFO if passed else Severity.ERROR,
        )

    def check_data_points(self, body: str) -> CheckResult:
        meaningful = 0
        for match in _DATA_RE.findall(body):
            number = float(re.sub(r"[,$%KMB]", "", match) or 0)
            if number > 10 or "%" in match or "$" in match:
                meaningful += 1
        passed = meaningful >= MIN_DATA_MENTIONS
        return CheckResult(
            name="Data Points Check",
            passed=passed,
            score=min(meaningful / MIN_DATA_MENTIONS, 1.0),
            message=f"Found {meaningful} data points (minimum: {MIN_DATA_MENTIONS})",
            severity=Severity.INFO if passed else Severity.WARNING,
        )

    def check_faq(self, body: str, frontmatter_items: int) -> CheckResult:
        if not _FAQ_HEADING_RE.search(body) and not frontmatter_items:
            return CheckResult(
                name="FAQ Section", passed=False, score=0.0,
                message="No FAQ section found (important for AI Overviews)",
                severity=Severity.WARNING,
            )
        count = len(_FAQ_ITEM_RE.findall(body)) + frontmatter_items
        passed = count >= MIN_FAQ_ITEMS
        return CheckResult(
            name="FAQ Section",
            passed=passed,
            score=min(count / 5, 1.0),
            message=f"{count} FAQ items found",
            severity=Severity.INFO if passed else Severity.WARNING,
        )

    def check_actionability(self, body: str) -> CheckResult:
        indicators = sum(len(p.findall(body)) for p in _ACTION_PATTERNS)
        passed = indicators >= MIN_ACTION_INDICATORS
        return CheckResult(
            name="Actionability Check",
            passed=passed,
            score=min(indicators / MIN_ACTION_INDICATORS, 1.0),
            message=(
                f"Good actionability: {indicators} action indicators"
                if passed
                else f"Low actionability: {indicators} action indicators "
                f"(aim for {MIN_ACTION_INDICATORS}+)"
            ),
            severity=Severity.INFO if passed else Severity.WARNING,
        )

    def check_first_paragraph(self, body: str) -> CheckResult:
        cleaned = _HEADING_LINE_RE.sub("", body).strip()
        first = cleaned.split("\n\n")[0] if cleaned else ""
        if len(first) < MIN_FIRST_PARAGRAPH_CHARS:
            return CheckResult(
                name="First Paragraph (Answer Intent)", passed=False, score=0.0,
                message="First paragraph is too short to answer search intent",
                severity=Severity.ERROR,
            )
        direct = bool(_DIRECT_ANSWER_RE.search(first))
        return CheckResult(
            name="First Paragraph (Answer Intent)",
            passed=direct,
            score=1.0 if direct else 0.5,
            message=(
                "First paragraph appears to answer the search intent"
                if direct
                else "First paragraph may not directly answer the search intent"
            ),
            severity=Severity.INFO if direct else Severity.WARNING,
        )
