"""Tests for differentiation scoring."""

import pytest

from seoforge.scoring.differentiation import (
    DifferentiationScorer,
    count_included_facts,
    sample_phrases,
)
from seoforge.scoring.models import ContentBrief, DataPoint, ScoringThresholds
from seoforge.uniqueness.similarity import SimilarityEngine

FACTS = [
    "Median home prices rose eleven percent in Astoria last year",
    "Inventory in western Queens fell to a six-year low",
    "Average days on market dropped below forty for condos",
]
INSIGHT = "Buyers who track transit construction schedules find undervalued blocks early."


def _brief(**overrides) -> ContentBrief:
    fields = {
        "topic": "Astoria Real Estate",
        "target_keyword": "astoria homes",
        "data_points": [DataPoint(fact=f) for f in FACTS],
        "unique_insight": INSIGHT,
    }
    fields.update(overrides)
    return ContentBrief(**fields)


def _article() -> str:
    return "\n\n".join([*FACTS, INSIGHT, "Closing thoughts on neighborhood momentum and value."])


class TestCountIncludedFacts:
    def test_counts_case_insensitive_prefix(self):
        text = FACTS[0].upper() + " and more"
        assert count_included_facts(text, _brief()) == 1

    def test_prefix_only_needs_thirty_chars(self):
        text = FACTS[1][:30] + " something else entirely"
        assert count_included_facts(text, _brief()) == 1

    def test_blank_facts_never_match(self):
        brief = _brief(data_points=[DataPoint(fact="   "), DataPoint(fact="")])
        assert count_included_facts("anything at all", brief) == 0


class TestSamplePhrases:
    def test_only_long_sentences(self):
        text = "Short one. " + "x" * 60 + ". Another short."
        assert sample_phrases(text) == ["x" * 60]

    def test_limit(self):
        sentence = "a" * 60
        text = ". ".join([sentence] * 8)
        assert len(sample_phrases(text)) == 5


class TestDifferentiationScorer:
    def test_original_article_passes(self):
        report = DifferentiationScorer(SimilarityEngine()).evaluate(_article(), _brief())
        assert report.unique_fact_count == 3
        assert report.angle_score == 1.0
        assert report.data_score == 1.0
        assert report.insight_score == 1.0
        assert report.overall_score == pytest.approx(1.0)
        assert report.passes_threshold
        assert report.issues == []

    def test_missing_insight_scores_half(self):
        text = "\n\n".join(FACTS)
        report = DifferentiationScorer(SimilarityEngine()).evaluate(text, _brief())
        assert report.insight_score == 0.5
        assert report.overall_score == pytest.approx(0.4 + 0.35 + 0.125)

    def test_blank_insight_scores_half(self):
        report = DifferentiationScorer(SimilarityEngine()).evaluate(
            _article(), _brief(unique_insight="")
        )
        assert report.insight_score == 0.5

    def test_copy_of_published_document_fails(self):
        engine = SimilarityEngine()
        engine.add("astoria-guide", _article())
        report = DifferentiationScorer(engine).evaluate(_article(), _brief())
        assert report.max_similarity == 1.0
        assert report.most_similar_key == "astoria-guide"
        assert not report.passes_threshold
        assert report.issues[0] == "Too similar to: astoria-guide (100.0%)"

    def test_too_few_facts_is_an_issue(self):
        text = FACTS[0] + "\n\n" + INSIGHT
        report = DifferentiationScorer(SimilarityEngine()).evaluate(text, _brief())
        assert "Only 1/3 data points included" in report.issues
        assert not report.passes_threshold

    def test_score_bounds_without_data_points(self):
        report = DifferentiationScorer(
            SimilarityEngine(), ScoringThresholds(min_data_points=0)
        ).evaluate("nothing useful", _brief(data_points=[]))
        assert 0.0 <= report.overall_score <= 1.0
        assert report.data_score == 0.0

    def test_exclude_key(self):
        engine = SimilarityEngine()
        engine.add("self", _article())
        report = DifferentiationScorer(engine).evaluate(_article(), _brief(), exclude_key="self")
        assert report.max_similarity == 0.0
