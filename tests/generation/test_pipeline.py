"""Tests for the publish pipeline: pre-flight, write, commit."""

from __future__ import annotations

import json
import random
from pathlib import Path

import pytest

from seoforge.generation.models import GenerationRequest
from seoforge.generation.pipeline import PublishPipeline, split_location
from seoforge.generation.publisher import MarkdownPublisher
from seoforge.registry.models import PublishedDocument
from seoforge.registry.registry import PublicationRegistry
from seoforge.shared.config import (
    ContentRootConfig,
    OnThresholdFailure,
    PathsConfig,
    SeoforgeConfig,
)
from seoforge.shared.errors import (
    DuplicateIdentityError,
    LLMUnavailableError,
    TemplateRotationError,
)
from seoforge.shared.llm import LLMBackend, Message
from seoforge.uniqueness.angles import RotationState, load_rotation_state, save_rotation_state
from seoforge.uniqueness.similarity import SimilarityEngine

FACTS = [
    "Teams that automate follow-up close deals faster than manual teams",
    "Response times under five minutes double lead conversion rates",
    "Most buyers research online before ever contacting a salesperson",
]
INSIGHT = "Automation works best when every message still feels personally written"
FILLER = (
    "Lead nurturing is a long game that rewards consistency and patience over time. "
    "Agents who keep showing up with useful information earn trust from prospects. "
) * 4
GOOD_BODY = "## Overview\n\n" + " ".join(f"{f}." for f in FACTS) + f" {INSIGHT}.\n\n" + FILLER


def _article(content: str = GOOD_BODY, slug: str = "ai-lead-nurturing") -> str:
    return json.dumps(
        {"title": "AI Lead Nurturing", "metaDescription": "Guide.", "slug": slug, "content": content}
    )


class FakeBackend(LLMBackend):
    """Answers brief prompts with fixed material and chats from a script."""

    name = "fake"

    def __init__(self, articles=None, available: bool = True):
        self.articles = list(articles or [_article()])
        self.available = available
        self.calls = 0

    @property
    def model(self) -> str:
        return "test-model"

    def complete(self, prompt: str, system_prompt: str | None = None) -> str:
        self.calls += 1
        if "differentiators" in prompt:
            return '["a", "b", "c"]'
        if "data points" in prompt:
            return json.dumps([{"fact": f, "source": "Survey"} for f in FACTS])
        return INSIGHT

    def chat(self, messages: list[Message], system_prompt: str | None = None) -> str:
        self.calls += 1
        return self.articles.pop(0)

    def check_connection(self) -> bool:
        return self.available


class FailingPublisher(MarkdownPublisher):
    def write(self, article, output_dir, **kwargs):
        raise OSError("disk full")


def _config(tmp_path: Path, **batch) -> SeoforgeConfig:
    config = SeoforgeConfig(
        paths=PathsConfig(
            content_roots=[ContentRootConfig(name="site", directory=str(tmp_path / "site"))],
            drafts_dir=str(tmp_path / "drafts"),
            state_dir=str(tmp_path / "data"),
        )
    )
    config.batch = config.batch.model_copy(update=batch)
    return config


def _pipeline(config: SeoforgeConfig, backend: FakeBackend | None = None, **kwargs) -> PublishPipeline:
    registry = PublicationRegistry(
        config.snapshot_path, config.paths.sync_roots(), rng=random.Random(0)
    )
    return PublishPipeline(
        config, backend or FakeBackend(), registry, engine=SimilarityEngine(), **kwargs
    )


def _request(**overrides) -> GenerationRequest:
    values = {"topic": "AI Lead Nurturing", "keyword": "ai lead nurturing"}
    values.update(overrides)
    return GenerationRequest(**values)


class TestSplitLocation:
    @pytest.mark.parametrize(
        ("location", "expected"),
        [
            ("Park Slope, Brooklyn, NY", ("Park Slope", "Brooklyn", "NY")),
            ("Astoria, Queens", ("Astoria", "Queens", "NY")),
            ("Ballard, WA", ("Ballard", "", "WA")),
            ("Somewhere", ("Somewhere", "", "")),
        ],
    )
    def test_split(self, location, expected):
        assert split_location(location) == expected


class TestPreflight:
    def test_backend_unavailable(self, tmp_path: Path):
        backend = FakeBackend(available=False)
        pipeline = _pipeline(_config(tmp_path), backend)
        with pytest.raises(LLMUnavailableError):
            pipeline.run(_request())
        assert backend.calls == 0

    def test_duplicate_slug(self, tmp_path: Path):
        pipeline = _pipeline(_config(tmp_path))
        pipeline.registry.register(PublishedDocument(slug="ai-lead-nurturing"))
        with pytest.raises(DuplicateIdentityError) as exc_info:
            pipeline.preflight(_request())
        assert exc_info.value.kind == "slug"

    def test_duplicate_location_lists_published(self, tmp_path: Path):
        pipeline = _pipeline(_config(tmp_path))
        pipeline.registry.register(
            PublishedDocument(
                slug="astoria-queens", neighborhood="Astoria", borough="Queens", state="NY"
            )
        )
        with pytest.raises(DuplicateIdentityError) as exc_info:
            pipeline.preflight(_request(location="Astoria, Queens, NY"))
        assert exc_info.value.kind == "location"
        assert "Published locations: Astoria" in str(exc_info.value)

    def test_recent_template_rejected(self, tmp_path: Path):
        config = _config(tmp_path)
        save_rotation_state(RotationState(recent_templates=["ATLAS", "PERSONA"]), config.state_dir)
        with pytest.raises(TemplateRotationError):
            _pipeline(config).preflight(_request(template_id="PERSONA"))
        _pipeline(config).preflight(_request(template_id="COMPASS"))


class TestRun:
    def test_review_draft_is_committed(self, tmp_path: Path):
        config = _config(tmp_path)
        pipeline = _pipeline(config)
        outcome = pipeline.run(_request(template_id="COMPASS"))

        assert outcome.ok
        assert not outcome.published
        assert outcome.path.parent == tmp_path / "drafts"
        assert outcome.path.name.endswith("-ai-lead-nurturing.md")
        assert "draft: true" in outcome.path.read_text(encoding="utf-8")

        snapshot = pipeline.registry.snapshot
        assert [d.slug for d in snapshot.published_documents] == ["ai-lead-nurturing"]
        assert snapshot.published_documents[0].source == "drafts"
        assert snapshot.published_documents[0].published_at == outcome.path.name[:10]
        assert pipeline.registry.is_photo_consumed(outcome.photo.photo_id)

        rotation = load_rotation_state(config.state_dir)
        assert rotation.used_angles("AI Lead Nurturing") == ["beginner-guide"]
        assert rotation.recent_templates == ["COMPASS"]
        assert "ai-lead-nurturing" in pipeline.engine

    def test_auto_publish_writes_to_content_root(self, tmp_path: Path):
        pipeline = _pipeline(_config(tmp_path, require_review=False))
        outcome = pipeline.run(_request())

        assert outcome.published
        assert outcome.path.parent == tmp_path / "site"
        assert "draft: false" in outcome.path.read_text(encoding="utf-8")
        assert pipeline.registry.snapshot.published_documents[0].source == "site"

    def test_location_photo_and_identity(self, tmp_path: Path):
        pipeline = _pipeline(_config(tmp_path))
        outcome = pipeline.run(_request(location="Astoria, Queens, NY"))

        assert outcome.photo.category == "queens"
        assert pipeline.registry.has_location("Astoria", "Queens", "NY")
        text = outcome.path.read_text(encoding="utf-8")
        assert "contentType: geographic-farming" in text
        assert outcome.photo.url in text

    def test_failed_generation_changes_nothing(self, tmp_path: Path):
        config = _config(tmp_path)
        config.generation = config.generation.model_copy(
            update={"max_regenerations": 0, "on_threshold_failure": OnThresholdFailure.FAIL}
        )
        pipeline = _pipeline(config, FakeBackend([_article(FILLER)]))
        outcome = pipeline.run(_request())

        assert not outcome.ok
        assert outcome.result.error_type == "quality_threshold"
        assert outcome.path is None
        assert pipeline.registry.snapshot.published_documents == []
        assert pipeline.registry.snapshot.used_cover_photos == []
        assert load_rotation_state(config.state_dir) == RotationState()
        assert len(pipeline.engine) == 0
        assert not (tmp_path / "drafts").exists()

    def test_generated_slug_conflict_is_not_written(self, tmp_path: Path):
        pipeline = _pipeline(_config(tmp_path), FakeBackend([_article(slug="astoria-guide")]))
        pipeline.registry.register(PublishedDocument(slug="astoria-guide"))
        outcome = pipeline.run(_request())

        assert not outcome.ok
        assert outcome.result.error_type == "duplicate_slug"
        assert not (tmp_path / "drafts").exists()
        assert len(pipeline.registry.snapshot.published_documents) == 1

    def test_write_failure_commits_nothing(self, tmp_path: Path):
        config = _config(tmp_path)
        pipeline = _pipeline(config, publisher=FailingPublisher())
        with pytest.raises(OSError):
            pipeline.run(_request())
        assert pipeline.registry.snapshot.published_documents == []
        assert load_rotation_state(config.state_dir) == RotationState()
        assert len(pipeline.engine) == 0


class TestShouldPublish:
    def test_review_required(self, tmp_path: Path):
        assert not _pipeline(_config(tmp_path)).should_publish(0.99, degraded=False)

    def test_threshold_and_degraded(self, tmp_path: Path):
        pipeline = _pipeline(_config(tmp_path, require_review=False))
        assert pipeline.should_publish(0.85, degraded=False)
        assert not pipeline.should_publish(0.84, degraded=False)
        assert not pipeline.should_publish(0.99, degraded=True)


class TestSyncRoundTrip:
    def test_draft_survives_sync(self, tmp_path: Path):
        pipeline = _pipeline(_config(tmp_path))
        outcome = pipeline.run(_request(location="Park Slope, Brooklyn, NY"))
        assert not outcome.published

        assert pipeline.registry.sync() == 1

        registry = pipeline.registry
        assert registry.has_slug("ai-lead-nurturing")
        assert registry.has_location("Park Slope", "Brooklyn", "NY")
        assert registry.is_photo_consumed(outcome.photo.photo_id)
        assert registry.snapshot.published_documents[0].source == "drafts"
        assert registry.allocate_photo(outcome.photo.category).photo_id != outcome.photo.photo_id
        with pytest.raises(DuplicateIdentityError):
            pipeline.preflight(_request())

    def test_location_less_auto_publish_survives_sync(self, tmp_path: Path):
        pipeline = _pipeline(_config(tmp_path, require_review=False))
        outcome = pipeline.run(_request())
        assert outcome.published

        assert pipeline.registry.sync() == 1
        assert pipeline.registry.has_slug("ai-lead-nurturing")
        assert pipeline.registry.is_photo_consumed(outcome.photo.photo_id)
        assert pipeline.registry.snapshot.published_documents[0].source == "site"

    def test_content_root_wins_over_draft(self, tmp_path: Path):
        config = _config(tmp_path)
        outcome = _pipeline(config).run(_request())
        site = tmp_path / "site"
        site.mkdir()
        (site / outcome.path.name).write_text(
            outcome.path.read_text(encoding="utf-8"), encoding="utf-8"
        )

        registry = _pipeline(config).registry
        assert registry.sync() == 1
        assert registry.snapshot.published_documents[0].source == "site"
