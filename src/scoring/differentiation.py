"""Differentiation scoring: novelty vs corpus, fact coverage, insight presence."""

from __future__ import annotations

import logging
import re

from seoforge.scoring.models import ContentBrief, DifferentiationReport, ScoringThresholds
from seoforge.uniqueness.similarity import SimilarityEngine

logger = logging.getLogger(__name__)

ANGLE_WEIGHT = 0.4
DATA_WEIGHT = 0.35
INSIGHT_WEIGHT = 0.25

# Leading characters of a fact or insight that must appear verbatim.
MATCH_PREFIX_CHARS = 30
MIN_SENTENCE_CHARS = 50
SAMPLE_PHRASES = 5
INSIGHT_MISSING_SCORE = 0.5

_SENTENCE_SPLIT_RE = re.compile(r"[.!?]")


def _contains_prefix(haystack_lower: str, needle: str) -> bool:
    prefix = needle.strip().lower()[:MATCH_PREFIX_CHARS]
    return bool(prefix) and prefix in haystack_lower


def count_included_facts(text: str, brief: ContentBrief) -> int:
    """Data points whose leading characters appear in ``text`` (case-insensitive).

    Blank facts never count.
    """
    lowered = text.lower()
    return sum(1 for dp in brief.data_points if _contains_prefix(lowered, dp.fact))


def sample_phrases(text: str, limit: int = SAMPLE_PHRASES) -> list[str]:
    """Up to ``limit`` long sentences, lower-cased, as a representative sample."""
    sentences = [s.strip() for s in _SENTENCE_SPLIT_RE.split(text.lower())]
    sentences = [s for s in sentences if len(s) > MIN_SENTENCE_CHARS]
    return sentences[:limit]


class DifferentiationScorer:
    """Scores candidates against a loaded ``SimilarityEngine``."""

    def __init__(
        self,
        engine: SimilarityEngine,
        thresholds: ScoringThresholds | None = None,
    ) -> None:
        self.engine = engine
        self.thresholds = thresholds or ScoringThresholds()

    def evaluate(
        self,
        text: str,
        brief: ContentBrief,
        *,
        exclude_key: str | None = None,
    ) -> DifferentiationReport:
        similarity = self.engine.score_against(text, exclude=exclude_key)
        fact_count = count_included_facts(text, brief)

        angle_score = 1.0 - similarity.max_similarity
        data_score = fact_count / max(len(brief.data_points), 1)
        insight_score = (
            1.0 if _contains_prefix(text.lower(), brief.unique_insight) else INSIGHT_MISSING_SCORE
        )
        overall = angle_score * ANGLE_WEIGHT + data_score * DATA_WEIGHT + insight_score * INSIGHT_WEIGHT

        issues: list[str] = []
        if similarity.max_similarity > self.thresholds.max_similarity:
            issues.append(
                f"Too similar to: {similarity.most_similar_key} "
                f"({similarity.max_similarity * 100:.1f}%)"
            )
        if fact_count < self.thresholds.min_data_points:
            issues.append(
                f"Only {fact_count}/{self.thresholds.min_data_points} data points included"
            )

        report = DifferentiationReport(
            unique_fact_count=fact_count,
            unique_phrases=sample_phrases(text),
            angle_score=angle_score,
            data_score=data_score,
            insight_score=insight_score,
            overall_score=overall,
            passes_threshold=overall >= self.thresholds.min_differentiation and not issues,
            issues=issues,
            max_similarity=similarity.max_similarity,
            most_similar_key=similarity.most_similar_key,
        )
        logger.debug(
            "Differentiation overall=%.3f angle=%.3f data=%.3f insight=%.2f issues=%d",
            overall,
            angle_score,
            data_score,
            insight_score,
            len(issues),
        )
        return report
