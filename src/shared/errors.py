"""Error taxonomy and per-run error collection.

Every failure raised by the generation core names the invariant that broke,
so an operator reading a batch log can tell "angles exhausted" apart from
"backend timed out" apart from "below differentiation threshold".
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from seoforge.scoring.models import DifferentiationReport


class SeoforgeError(Exception):
    """Base error for the content pipeline."""


# ---------------------------------------------------------------------------
# Exhaustion
# ---------------------------------------------------------------------------


class AnglesExhaustedError(SeoforgeError):
    """Every content angle for a topic has already been published."""

    def __init__(self, topic: str, intent: str) -> None:
        self.topic = topic
        self.intent = intent
        super().__init__(
            f"All content angles exhausted for topic '{topic}' (intent={intent}). "
            "Consider a new topic cluster or angle set."
        )


# ---------------------------------------------------------------------------
# Backends
# ---------------------------------------------------------------------------


class LLMError(SeoforgeError):
    """Base error for LLM calls."""


class LLMUnavailableError(LLMError):
    """The LLM backend cannot be reached or is not configured."""


class LLMTimeoutError(LLMError):
    """The LLM backend did not answer within its timeout."""


class ExtractionError(SeoforgeError):
    """No structured data could be extracted from LLM output."""


class PhotoServiceError(SeoforgeError):
    """The photo-search backend failed or timed out."""


# ---------------------------------------------------------------------------
# Content
# ---------------------------------------------------------------------------


class ContentTooShortError(SeoforgeError):
    """Generated content is below the minimum length guard."""

    def __init__(self, length: int, minimum: int) -> None:
        self.length = length
        self.minimum = minimum
        super().__init__(
            f"Generated content too short: {length} chars (minimum {minimum})"
        )


class QualityThresholdError(SeoforgeError):
    """Content stayed below the differentiation threshold after all attempts."""

    def __init__(self, report: DifferentiationReport, attempts: int) -> None:
        self.report = report
        self.attempts = attempts
        issues = "; ".join(report.issues) or "overall score below minimum"
        super().__init__(
            f"Failed to generate sufficiently unique content after {attempts} attempts "
            f"(score {report.overall_score:.2f}). Issues: {issues}"
        )


class TemplateRotationError(SeoforgeError):
    """A structural template was used in one of the last two publications."""

    def __init__(self, template_id: str, excluded: list[str], available: list[str]) -> None:
        self.template_id = template_id
        self.excluded = excluded
        self.available = available
        super().__init__(
            f"Template {template_id} not allowed (recently used: "
            f"{', '.join(excluded) or 'none'}). Use one of: {', '.join(available)}"
        )


class DuplicateIdentityError(SeoforgeError):
    """A slug or location has already been published."""

    def __init__(self, kind: str, value: str, details: str = "") -> None:
        self.kind = kind
        self.value = value
        message = f"DUPLICATE DETECTED: a document for {kind} '{value}' already exists"
        if details:
            message = f"{message}. {details}"
        super().__init__(message)


# ---------------------------------------------------------------------------
# Run report
# ---------------------------------------------------------------------------


@dataclass
class PipelineError:
    """A single recorded failure inside a pipeline run."""

    stage: str
    message: str
    source: str = ""
    error_type: str = ""


@dataclass
class PipelineReport:
    """Collects non-fatal errors across a batch run."""

    errors: list[PipelineError] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def add_error(
        self,
        stage: str,
        message: str,
        *,
        source: str = "",
        error_type: str = "",
    ) -> None:
        self.errors.append(
            PipelineError(stage=stage, message=message, source=source, error_type=error_type)
        )

    def add_warning(self, message: str) -> None:
        self.warnings.append(message)

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    def summary(self) -> str:
        if not self.errors and not self.warnings:
            return "No errors."
        lines: list[str] = []
        for err in self.errors:
            label = f"[{err.stage}]"
            if err.error_type:
                label += f" {err.error_type}"
            if err.source:
                label += f" ({err.source})"
            lines.append(f"{label}: {err.message}")
        for warning in self.warnings:
            lines.append(f"[warning] {warning}")
        return "\n".join(lines)
