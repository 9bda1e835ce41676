"""Tests for the error taxonomy and PipelineReport."""

from seoforge.scoring.models import DifferentiationReport
from seoforge.shared.errors import (
    AnglesExhaustedError,
    ContentTooShortError,
    DuplicateIdentityError,
    LLMError,
    LLMTimeoutError,
    PipelineReport,
    QualityThresholdError,
    SeoforgeError,
    TemplateRotationError,
)


class TestMessages:
    def test_angles_exhausted_names_topic(self):
        err = AnglesExhaustedError("CRM", "commercial")
        assert "All content angles exhausted" in str(err)
        assert "CRM" in str(err)
        assert isinstance(err, SeoforgeError)

    def test_too_short(self):
        assert "120 chars (minimum 500)" in str(ContentTooShortError(120, 500))

    def test_quality_threshold_lists_issues(self):
        report = DifferentiationReport(overall_score=0.42, issues=["Too similar to: a (80.0%)"])
        message = str(QualityThresholdError(report, 3))
        assert "after 3 attempts" in message
        assert "0.42" in message
        assert "Too similar to: a" in message

    def test_template_rotation(self):
        err = TemplateRotationError("ATLAS", ["ATLAS", "PERSONA"], ["CATALYST"])
        assert "Template ATLAS not allowed" in str(err)
        assert "CATALYST" in str(err)

    def test_duplicate_identity(self):
        err = DuplicateIdentityError("location", "Astoria, Queens", "Published locations: Astoria")
        assert str(err).startswith("DUPLICATE DETECTED")
        assert err.kind == "location"

    def test_timeout_is_an_llm_error(self):
        assert issubclass(LLMTimeoutError, LLMError)


class TestPipelineReport:
    def test_empty(self):
        report = PipelineReport()
        assert not report.has_errors
        assert report.summary() == "No errors."

    def test_summary(self):
        report = PipelineReport()
        report.add_error("batch", "boom", source="crm", error_type="LLMTimeoutError")
        report.add_warning("photo repeated")
        assert report.has_errors
        assert report.summary() == (
            "[batch] LLMTimeoutError (crm): boom\n[warning] photo repeated"
        )
