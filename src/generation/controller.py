"""Generation controller: brief -> draft -> score -> regenerate -> finalize.

The controller is driven by explicit state. It receives the current
``RotationState``, never writes anything to disk, and returns an updated
rotation state only when the run reaches ``FINALIZED``. Failed runs leave
every shared resource untouched.
"""

from __future__ import annotations

import hashlib
import logging
from typing import Any

from pydantic import ValidationError

from seoforge.generation.models import (
    GeneratedArticle,
    GeneratedDraft,
    GenerationRequest,
    GenerationResult,
    GenerationState,
    ParseFailure,
    parse_draft,
)
from seoforge.generation.prompts import (
    ALTERNATIVE_DATA_POINTS_PROMPT,
    DATA_POINTS_PROMPT,
    DIFFERENTIATORS_PROMPT,
    INSIGHT_PROMPT,
    build_article_prompt,
    build_system_prompt,
)
from seoforge.scoring.differentiation import DifferentiationScorer
from seoforge.scoring.models import ContentBrief, DataPoint, DifferentiationReport
from seoforge.scoring.quality import quality_score
from seoforge.scoring.validation import count_words
from seoforge.shared.config import GenerationSectionConfig, OnThresholdFailure
from seoforge.shared.errors import (
    AnglesExhaustedError,
    ContentTooShortError,
    ExtractionError,
    LLMError,
    QualityThresholdError,
)
from seoforge.shared.llm import LLMBackend, extract_json
from seoforge.uniqueness.angles import RotationState, available_angles, register_used

logger = logging.getLogger(__name__)

MAX_BRIEF_ITEMS = 5
MAX_INSIGHT_CHARS = 500
CONTENT_HASH_CHARS = 16

FALLBACK_DIFFERENTIATORS = [
    "Unique industry perspective",
    "Actionable implementation steps",
    "Real-world case study",
    "Common pitfalls to avoid",
    "Future trends analysis",
]

FALLBACK_DATA_POINTS = [
    DataPoint(fact="Industry statistics show significant growth", source="Industry Report 2024"),
    DataPoint(fact="Survey data indicates high adoption rates", source="Market Research"),
    DataPoint(fact="Case studies demonstrate measurable ROI", source="Case Study Analysis"),
]


def content_hash(text: str) -> str:
    """Short stable digest of the final text, for external dedup tooling."""
    return hashlib.sha256(text.encode("utf-8")).hexdigest()[:CONTENT_HASH_CHARS]


def _parse_differentiators(raw: str) -> list[str]:
    try:
        data: Any = extract_json(raw)
    except ExtractionError:
        logger.warning("Could not parse differentiators, using generic fallback")
        return list(FALLBACK_DIFFERENTIATORS)
    if not isinstance(data, list):
        logger.warning("Differentiators were not a JSON array, using generic fallback")
        return list(FALLBACK_DIFFERENTIATORS)
    items = [str(item).strip() for item in data if str(item).strip()]
    return items[:MAX_BRIEF_ITEMS] or list(FALLBACK_DIFFERENTIATORS)


def _parse_data_points(raw: str) -> list[DataPoint]:
    try:
        data: Any = extract_json(raw)
    except ExtractionError:
        logger.warning("Could not parse data points, using generic fallback")
        return [dp.model_copy() for dp in FALLBACK_DATA_POINTS]
    if not isinstance(data, list):
        logger.warning("Data points were not a JSON array, using generic fallback")
        return [dp.model_copy() for dp in FALLBACK_DATA_POINTS]

    points: list[DataPoint] = []
    for item in data:
        try:
            points.append(DataPoint.model_validate(item))
        except ValidationError:
            logger.debug("Skipping malformed data point: %r", item)
    return points[:MAX_BRIEF_ITEMS] or [dp.model_copy() for dp in FALLBACK_DATA_POINTS]


class GenerationController:
    """Runs one generation request through the state machine."""

    def __init__(
        self,
        backend: LLMBackend,
        scorer: DifferentiationScorer,
        settings: GenerationSectionConfig | None = None,
    ) -> None:
        self.backend = backend
        self.scorer = scorer
        self.settings = settings or GenerationSectionConfig()

    # -- brief ----------------------------------------------------------------

    def build_brief(self, request: GenerationRequest, rotation: RotationState) -> ContentBrief:
        """Pick the first unused angle and ask the backend for brief material.

        Raises:
            AnglesExhaustedError: No angle is left for this topic.
            LLMError: The backend failed.
        """
        angles = available_angles(rotation, request.topic, request.intent)
        if not angles:
            raise AnglesExhaustedError(request.topic, str(request.intent))
        angle = angles[0]

        differentiators = _parse_differentiators(
            self.backend.complete(
                DIFFERENTIATORS_PROMPT.format(
                    topic=request.topic,
                    angle=angle,
                    audience=request.audience,
                    keyword=request.keyword,
                    intent=request.intent,
                )
            )
        )
        data_points = _parse_data_points(
            self.backend.complete(
                DATA_POINTS_PROMPT.format(topic=request.topic, keyword=request.keyword)
            )
        )
        insight = self.backend.complete(INSIGHT_PROMPT.format(topic=request.topic))

        return ContentBrief(
            topic=request.topic,
            target_keyword=request.keyword,
            search_intent=request.intent,
            audience=request.audience,
            content_angle=angle,
            differentiators=differentiators,
            data_points=data_points,
            unique_insight=insight.strip()[:MAX_INSIGHT_CHARS],
        )

    def alternative_data_points(self, topic: str) -> list[DataPoint]:
        """Fresh, less commonly cited data points for a regeneration attempt."""
        return _parse_data_points(
            self.backend.complete(ALTERNATIVE_DATA_POINTS_PROMPT.format(topic=topic))
        )

    # -- draft ----------------------------------------------------------------

    def generate_draft(self, brief: ContentBrief, template_id: str | None = None) -> GeneratedDraft:
        """Ask the backend for an article and parse it.

        Unparseable output is recovered into a degraded draft. Either way the
        content must pass the minimum-length guard.

        Raises:
            ContentTooShortError: Content below ``min_content_chars``.
            LLMError: The backend failed.
        """
        raw = self.backend.chat(
            [{"role": "user", "content": build_article_prompt(brief, template_id)}],
            build_system_prompt(brief),
        )

        parsed = parse_draft(raw)
        if isinstance(parsed, ParseFailure):
            logger.warning(
                "Failed to parse article response (%s), using degraded fallback", parsed.reason
            )
            draft = parsed.to_fallback_draft(brief)
        else:
            draft = parsed

        if len(draft.content) < self.settings.min_content_chars:
            raise ContentTooShortError(len(draft.content), self.settings.min_content_chars)
        return draft

    # -- run ------------------------------------------------------------------

    def run(
        self,
        request: GenerationRequest,
        rotation: RotationState,
        brief: ContentBrief | None = None,
    ) -> tuple[GenerationResult, RotationState]:
        """Drive the request to ``FINALIZED`` or ``FAILED``.

        Args:
            request: Topic, keyword, intent and audience.
            rotation: Current angle usage. Never mutated.
            brief: Prebuilt brief; skips the LLM brief calls when given.

        Returns:
            The result and the rotation state to commit. On failure the
            rotation state is the one passed in.
        """
        transitions: list[GenerationState] = []

        def move(state: GenerationState) -> None:
            transitions.append(state)
            logger.debug("%s -> %s", request.topic, state)

        def fail(message: str, error_type: str) -> tuple[GenerationResult, RotationState]:
            move(GenerationState.FAILED)
            logger.error("Generation failed for '%s': %s", request.topic, message)
            return (
                GenerationResult(
                    state=GenerationState.FAILED,
                    error=message,
                    error_type=error_type,
                    transitions=transitions,
                ),
                rotation,
            )

        move(GenerationState.BUILDING_BRIEF)
        try:
            base_brief = brief or self.build_brief(request, rotation)
        except AnglesExhaustedError as exc:
            return fail(str(exc), "angles_exhausted")
        except LLMError as exc:
            return fail(str(exc), type(exc).__name__)

        current = base_brief
        draft: GeneratedDraft | None = None
        report: DifferentiationReport | None = None
        attempts = 0

        while True:
            attempts += 1
            move(GenerationState.GENERATING)
            try:
                draft = self.generate_draft(current, request.template_id)
            except ContentTooShortError as exc:
                return fail(str(exc), "content_too_short")
            except LLMError as exc:
                return fail(str(exc), type(exc).__name__)

            move(GenerationState.SCORING)
            report = self.scorer.evaluate(draft.content, current)
            if report.passes_threshold:
                move(GenerationState.PASSED_THRESHOLD)
                break

            move(GenerationState.BELOW_THRESHOLD)
            regeneration = attempts
            if regeneration > self.settings.max_regenerations:
                break

            move(GenerationState.REGENERATING)
            logger.info(
                "Content below threshold for '%s' (score %.2f), regenerating (%d/%d): %s",
                request.topic,
                report.overall_score,
                regeneration,
                self.settings.max_regenerations,
                "; ".join(report.issues) or "overall score below minimum",
            )
            update: dict[str, Any] = {
                "content_angle": f"{base_brief.content_angle}-v{regeneration + 1}"
            }
            if self.settings.refresh_data_points:
                try:
                    update["data_points"] = self.alternative_data_points(request.topic)
                except LLMError as exc:
                    return fail(str(exc), type(exc).__name__)
            current = base_brief.model_copy(update=update)

        warnings: list[str] = []
        if not report.passes_threshold:
            if self.settings.on_threshold_failure == OnThresholdFailure.FAIL:
                return fail(str(QualityThresholdError(report, attempts)), "quality_threshold")
            warnings = list(report.issues) or [
                f"Differentiation score {report.overall_score:.2f} below "
                f"{self.settings.min_differentiation:.2f}"
            ]
            logger.warning(
                "Returning best-effort content for '%s' after %d attempts: %s",
                request.topic,
                attempts,
                "; ".join(warnings),
            )
        if draft.degraded:
            warnings.append("Article JSON could not be parsed; title and slug were synthesized")

        move(GenerationState.FINALIZED)
        article = GeneratedArticle(
            title=draft.title,
            meta_description=draft.meta_description,
            slug=draft.slug,
            content=draft.content,
            faq_items=draft.faq_items,
            word_count=count_words(draft.content),
            uniqueness_score=report.overall_score,
            quality_score=quality_score(draft.content, current),
            content_hash=content_hash(draft.content),
            differentiation_report=report,
            generated_by=self.backend.identity,
            brief=current,
            attempts=attempts,
            degraded=draft.degraded,
            warnings=warnings,
        )
        updated = register_used(rotation, request.topic, base_brief.content_angle)
        result = GenerationResult(
            state=GenerationState.FINALIZED, article=article, transitions=transitions
        )
        return result, updated
