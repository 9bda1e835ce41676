"""Differentiation and quality scoring, plus pre-publish validation."""

from seoforge.scoring.differentiation import DifferentiationScorer
from seoforge.scoring.models import (
    ContentBrief,
    ContentLength,
    DataPoint,
    DifferentiationReport,
    ScoringThresholds,
    SearchIntent,
)
from seoforge.scoring.quality import quality_score

__all__ = [
    "ContentBrief",
    "ContentLength",
    "DataPoint",
    "DifferentiationReport",
    "DifferentiationScorer",
    "ScoringThresholds",
    "SearchIntent",
    "quality_score",
]
