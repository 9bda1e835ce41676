"""Publish pipeline: pre-flight -> generate -> photo -> write -> commit.

Shared state (registry, rotation state, similarity corpus) is mutated only in
the commit step, after the artifact is on disk. A failed generation or a
failed write leaves all of it untouched.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from seoforge.generation.controller import GenerationController
from seoforge.generation.models import GenerationRequest, GenerationResult, slugify
from seoforge.generation.publisher import MarkdownPublisher
from seoforge.registry.catalog import DEFAULT_CATEGORY
from seoforge.registry.models import PublishedDocument
from seoforge.registry.photos import LocationContext, PhotoAllocator
from seoforge.registry.registry import NYC_BOROUGHS, PhotoAllocation, PublicationRegistry
from seoforge.scoring.differentiation import DifferentiationScorer
from seoforge.scoring.models import ScoringThresholds
from seoforge.shared.config import DRAFTS_ROOT_NAME, SeoforgeConfig
from seoforge.shared.corpus import document_key, read_corpus
from seoforge.shared.errors import (
    DuplicateIdentityError,
    LLMUnavailableError,
    TemplateRotationError,
)
from seoforge.shared.llm import LLMBackend, create_backend
from seoforge.uniqueness.angles import (
    RotationState,
    load_rotation_state,
    record_template,
    save_rotation_state,
)
from seoforge.uniqueness.similarity import SimilarityEngine
from seoforge.uniqueness.templates import validate_template

logger = logging.getLogger(__name__)


@dataclass
class PublishOutcome:
    """What one pipeline run produced."""

    result: GenerationResult
    path: Path | None = None
    photo: PhotoAllocation | None = None
    published: bool = False
    warnings: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.result.ok and self.path is not None


def split_location(location: str) -> tuple[str, str, str]:
    """``"Name, Qualifier, ST"`` -> (name, qualifier, region).

    Two parts are read as name and region unless the second part is a NYC
    borough, which implies NY.
    """
    parts = [part.strip() for part in location.split(",")]
    name = parts[0] if parts else ""
    if len(parts) >= 3:
        return name, parts[1], parts[2]
    if len(parts) == 2:
        if parts[1] in NYC_BOROUGHS:
            return name, parts[1], "NY"
        return name, "", parts[1]
    return name, "", ""


class PublishPipeline:
    """Runs a request end to end against one registry and one corpus."""

    def __init__(
        self,
        config: SeoforgeConfig,
        backend: LLMBackend,
        registry: PublicationRegistry,
        *,
        engine: SimilarityEngine | None = None,
        photos: PhotoAllocator | None = None,
        publisher: MarkdownPublisher | None = None,
    ) -> None:
        self.config = config
        self.backend = backend
        self.registry = registry
        if engine is None:
            engine = SimilarityEngine()
            count = engine.load_existing(read_corpus(config.paths.root_paths()))
            logger.info("Loaded %d existing documents for similarity checks", count)
        self.engine = engine
        self.photos = photos or PhotoAllocator(registry)
        self.publisher = publisher or MarkdownPublisher(
            content_marker=config.registry.content_marker
        )
        generation = config.generation
        self.controller = GenerationController(
            backend,
            DifferentiationScorer(
                engine,
                ScoringThresholds(
                    min_differentiation=generation.min_differentiation,
                    max_similarity=generation.max_similarity,
                    min_data_points=generation.min_data_points,
                ),
            ),
            generation,
        )

    @classmethod
    def from_config(
        cls, config: SeoforgeConfig, backend: LLMBackend | None = None
    ) -> PublishPipeline:
        """Wire backend, registry and photo search from configuration."""
        if backend is None:
            backend = create_backend(
                config.llm.backend,
                model=config.llm.model,
                timeout=config.llm.timeout,
                ollama_url=config.llm.ollama_url,
                temperature=config.llm.temperature,
                max_tokens=config.llm.max_tokens,
            )
        registry = PublicationRegistry(
            config.snapshot_path,
            config.paths.sync_roots(),
            content_marker=config.registry.content_marker,
        )
        photos = PhotoAllocator.from_config(registry, config.photos)
        return cls(config, backend, registry, photos=photos)

    # -- pre-flight -------------------------------------------------------------

    def preflight(self, request: GenerationRequest) -> None:
        """Cheap checks before any LLM spend.

        Raises:
            LLMUnavailableError: Backend unreachable or unconfigured.
            DuplicateIdentityError: Slug or location already published.
            TemplateRotationError: Template used in one of the last two documents.
        """
        if not self.backend.check_connection():
            raise LLMUnavailableError(
                f"LLM backend {self.backend.identity} is not available. "
                "Check the API key or that the local server is running."
            )

        slug = slugify(request.topic)
        if self.registry.has_slug(slug):
            raise DuplicateIdentityError("slug", slug)

        if request.location:
            name, qualifier, region = split_location(request.location)
            if self.registry.has_location(name, qualifier or None, region or None):
                published = ", ".join(self.registry.published_locations(qualifier or None))
                raise DuplicateIdentityError(
                    "location",
                    request.location,
                    f"Published locations: {published}" if published else "",
                )

        if request.template_id:
            rotation = load_rotation_state(self.config.state_dir)
            check = validate_template(request.template_id, rotation.recent_templates)
            if not check.valid:
                raise TemplateRotationError(request.template_id, check.excluded, check.available)

    # -- run --------------------------------------------------------------------

    def allocate_photo(self, request: GenerationRequest) -> PhotoAllocation:
        """Pick a cover photo without reserving it."""
        if request.location:
            return self.photos.allocate(LocationContext.from_location(request.location))
        return self.registry.allocate_photo(request.category or DEFAULT_CATEGORY)

    def should_publish(self, score: float, degraded: bool) -> bool:
        batch = self.config.batch
        return not batch.require_review and not degraded and score >= batch.auto_publish_threshold

    def run(self, request: GenerationRequest) -> PublishOutcome:
        """Generate, write and commit one document.

        Raises:
            LLMUnavailableError, DuplicateIdentityError, TemplateRotationError:
                From ``preflight``; nothing has been generated yet.
            OSError: The artifact could not be written; nothing was committed.
        """
        self.preflight(request)

        rotation = load_rotation_state(self.config.state_dir)
        result, updated_rotation = self.controller.run(request, rotation)
        if not result.ok:
            return PublishOutcome(result=result)
        article = result.article

        if self.registry.has_slug(article.slug):
            logger.error("Generated slug %s is already published, not writing", article.slug)
            failed = result.model_copy(
                update={
                    "error": str(DuplicateIdentityError("slug", article.slug)),
                    "error_type": "duplicate_slug",
                }
            )
            return PublishOutcome(result=failed)

        photo = self.allocate_photo(request)
        warnings = list(article.warnings)
        if photo.degraded:
            warnings.append(f"Cover photo {photo.photo_id} is not unique")

        published = self.should_publish(article.uniqueness_score, article.degraded or photo.degraded)
        if published:
            source, output_dir = self.config.paths.root_paths()[0]
        else:
            source, output_dir = DRAFTS_ROOT_NAME, Path(self.config.paths.drafts_dir)

        path = self.publisher.write(
            article,
            output_dir,
            draft=not published,
            template_id=request.template_id,
            location=request.location,
            cover_photo_url=photo.url,
        )

        self._commit(request, updated_rotation, article.slug, photo, path, source)
        self.engine.add(document_key(path.name), article.content)
        return PublishOutcome(
            result=result, path=path, photo=photo, published=published, warnings=warnings
        )

    def _commit(
        self,
        request: GenerationRequest,
        rotation: RotationState,
        slug: str,
        photo: PhotoAllocation,
        path: Path,
        source: str,
    ) -> None:
        if request.template_id:
            rotation = record_template(rotation, request.template_id)
        save_rotation_state(rotation, self.config.state_dir)

        name, qualifier, region = split_location(request.location or "")
        self.registry.register(
            PublishedDocument(
                slug=slug,
                neighborhood=name,
                borough=qualifier,
                state=region,
                published_at=path.name[:10],
                cover_photo_id=photo.photo_id,
                source=source,
            )
        )
        self.registry.reserve(photo.photo_id)
        logger.info("Committed %s (photo %s, source %s)", slug, photo.photo_id, source)
