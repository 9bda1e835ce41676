"""Publication registry: published identities and consumed cover photos.

The content trees on disk are the source of truth. The snapshot file is a
rebuildable cache of them: ``sync()`` rescans every root and overwrites it.
Every mutation is saved immediately as a whole-file write.

The registry is a single-writer resource. Callers that parallelize
generation must serialize ``register`` and ``reserve``.
"""

from __future__ import annotations

import json
import logging
import random
import re
from dataclasses import dataclass
from datetime import UTC, date, datetime
from pathlib import Path

from seoforge.registry.catalog import (
    BLOCKED_PHOTO_IDS,
    DEFAULT_CATEGORY,
    FALLBACK_CATEGORIES,
    PHOTO_LIBRARY,
    all_catalog_ids,
    extract_photo_id,
    normalize_category,
    photo_url,
)
from seoforge.registry.models import PublishedDocument, RegistrySnapshot, RegistryStats
from seoforge.shared.corpus import read_corpus

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_MARKER = "geographic-farming"
NYC_BOROUGHS = ("Manhattan", "Brooklyn", "Queens", "Bronx", "Staten Island")

_SLUG_FIELD_RE = re.compile(r"^slug:\s*[\"']?([^\"'\n]+)[\"']?", re.MULTILINE)
_LOCATION_FIELD_RE = re.compile(r"^location:\s*[\"']?([^\"'\n]+)[\"']?", re.MULTILINE)
_DATE_FIELD_RE = re.compile(r"^(?:date|publishedAt):\s*[\"']?([^\"'\n]+)[\"']?", re.MULTILINE)
_IMAGE_FIELD_RE = re.compile(r"^featuredImage:\s*[\"']?([^\"'\n]+)[\"']?", re.MULTILINE)
_BRIEF_TITLE_RE = re.compile(r"# Geographic Farming Analysis: (.+?), (\w+)")

_SLUG_SUFFIXES = (
    "-geographic-farming-guide",
    "-ny",
    "-wa",
    "-manhattan",
    "-brooklyn",
    "-queens",
)


def _normalize(value: str | None) -> str:
    return re.sub(r"[^a-z0-9]", "", (value or "").lower())


def normalize_slug(slug: str) -> str:
    return re.sub(r"[^a-z0-9-]", "", slug.lower())


def neighborhood_from_slug(slug: str) -> str:
    """``east-village-manhattan`` → ``East Village``."""
    cleaned = slug
    for suffix in _SLUG_SUFFIXES:
        cleaned = cleaned.removesuffix(suffix)
    return " ".join(part.capitalize() for part in cleaned.split("-") if part)


def state_from_slug(slug: str) -> str:
    if any(borough in slug for borough in ("manhattan", "brooklyn", "queens")):
        return "NY"
    if "seattle" in slug or "capitol-hill" in slug:
        return "WA"
    return ""


def extract_record(
    text: str,
    filename: str,
    source: str,
    content_marker: str = DEFAULT_CONTENT_MARKER,
) -> PublishedDocument | None:
    """Pull identity fields out of a raw document.

    Only documents carrying ``content_marker`` (in text or filename) and a
    ``slug:`` field are tracked. Missing fields fall back to values derived
    from the slug, never to an error.
    """
    if content_marker not in text and content_marker not in filename:
        return None

    slug_match = _SLUG_FIELD_RE.search(text)
    if not slug_match:
        return None
    slug = slug_match.group(1).strip()

    location_match = _LOCATION_FIELD_RE.search(text)
    location = location_match.group(1).strip() if location_match else ""
    parts = [part.strip() for part in location.split(",")]

    neighborhood = parts[0] if parts and parts[0] else neighborhood_from_slug(slug)
    borough = parts[1] if len(parts) > 1 else ""
    state = parts[2] if len(parts) > 2 and parts[2] else state_from_slug(slug)

    cover_photo_id = ""
    image_match = _IMAGE_FIELD_RE.search(text)
    if image_match:
        cover_photo_id = extract_photo_id(image_match.group(1)) or ""

    date_match = _DATE_FIELD_RE.search(text)
    published_at = date_match.group(1).strip() if date_match else date.today().isoformat()

    return PublishedDocument(
        slug=slug,
        neighborhood=neighborhood,
        borough=borough,
        state=state,
        published_at=published_at,
        cover_photo_id=cover_photo_id,
        source=source,
    )


@dataclass(frozen=True)
class PhotoAllocation:
    """A photo picked for a document. ``degraded`` means uniqueness is not guaranteed."""

    photo_id: str
    url: str
    category: str
    degraded: bool = False


class PublicationRegistry:
    """JSON-backed index of published documents and consumed photos.

    Loads the snapshot on init and saves after every mutation.
    """

    def __init__(
        self,
        snapshot_path: Path,
        roots: list[tuple[str, Path]] | None = None,
        *,
        content_marker: str = DEFAULT_CONTENT_MARKER,
        rng: random.Random | None = None,
    ) -> None:
        self._path = snapshot_path
        self._roots = roots or []
        self._content_marker = content_marker
        self._rng = rng or random.Random()
        self._data = self._load()

    # ── Persistence ──────────────────────────────────────────────

    def _load(self) -> RegistrySnapshot:
        if not self._path.exists():
            return RegistrySnapshot()
        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
            return RegistrySnapshot.model_validate(raw)
        except (json.JSONDecodeError, ValueError, KeyError):
            logger.warning("Corrupt registry snapshot at %s, starting fresh", self._path)
            return RegistrySnapshot()

    def save(self) -> None:
        self._data.last_updated = datetime.now(UTC)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(self._data.model_dump_json(indent=2), encoding="utf-8")
        logger.debug("Registry saved to %s", self._path)

    @property
    def snapshot(self) -> RegistrySnapshot:
        return self._data.model_copy(deep=True)

    # ── Sync ─────────────────────────────────────────────────────

    def sync(self) -> int:
        """Rebuild the index from the content roots and persist it.

        Earlier roots win slug conflicts. Photos from every tracked file
        count as used, including files that lost a slug conflict.

        Returns:
            Number of documents tracked after the sync.
        """
        documents: list[PublishedDocument] = []
        seen_slugs: set[str] = set()
        photos: list[str] = []

        for doc in read_corpus(self._roots):
            record = extract_record(doc.text, doc.filename, doc.source, self._content_marker)
            if record is None:
                continue
            if record.slug not in seen_slugs:
                seen_slugs.add(record.slug)
                documents.append(record)
            else:
                logger.debug("Slug %s from %s already tracked, skipping", record.slug, doc.source)
            if record.cover_photo_id and record.cover_photo_id not in photos:
                photos.append(record.cover_photo_id)

        self._data.published_documents = documents
        self._data.used_cover_photos = photos
        self.save()
        logger.info(
            "Registry synced: %d documents, %d unique photos tracked", len(documents), len(photos)
        )
        return len(documents)

    # ── Duplicate detection ──────────────────────────────────────

    def has_location(self, name: str, qualifier: str | None = None, region: str | None = None) -> bool:
        """True if a document for this location is already published.

        A stored record with a blank qualifier or region matches any
        requested value for that field.
        """
        want_name = _normalize(name)
        want_qualifier = _normalize(qualifier)
        want_region = _normalize(region)

        for doc in self._data.published_documents:
            if _normalize(doc.neighborhood) != want_name:
                continue
            stored_qualifier = _normalize(doc.borough)
            if want_qualifier and stored_qualifier and stored_qualifier != want_qualifier:
                continue
            stored_region = _normalize(doc.state)
            if want_region and stored_region and stored_region != want_region:
                continue
            return True
        return False

    def has_slug(self, slug: str) -> bool:
        wanted = normalize_slug(slug)
        return any(normalize_slug(doc.slug) == wanted for doc in self._data.published_documents)

    def published_locations(self, qualifier: str | None = None, region: str | None = None) -> list[str]:
        """Names of published locations, optionally filtered.

        A qualifier matches either the stored qualifier or a slug containing it.
        """
        wanted_qualifier = (qualifier or "").lower()
        names: list[str] = []
        for doc in self._data.published_documents:
            if region and doc.state.lower() != region.lower():
                continue
            if wanted_qualifier:
                in_field = doc.borough.lower() == wanted_qualifier
                in_slug = wanted_qualifier in doc.slug.lower()
                if not in_field and not in_slug:
                    continue
            names.append(doc.neighborhood)
        return names

    def all_slugs(self) -> list[str]:
        return [doc.slug for doc in self._data.published_documents]

    def check_brief(self, name: str, qualifier_or_region: str) -> list[str]:
        """Pre-flight duplicate check. Returns operator-facing errors, empty if clear.

        A NYC borough is treated as a qualifier in NY; anything else as a region.
        """
        errors: list[str] = []
        if qualifier_or_region in NYC_BOROUGHS:
            if self.has_location(name, qualifier_or_region, "NY"):
                errors.append(
                    f'DUPLICATE DETECTED: a document for "{name}, {qualifier_or_region}" already exists'
                )
                published = ", ".join(self.published_locations(qualifier_or_region))
                errors.append(f"Published locations in {qualifier_or_region}: {published}")
        elif self.has_location(name, None, qualifier_or_region):
            errors.append(
                f'DUPLICATE DETECTED: a document for "{name}, {qualifier_or_region}" already exists'
            )
        return errors

    def check_brief_file(self, path: Path) -> list[str]:
        """Run ``check_brief`` on the location named in a research brief's title."""
        if not path.exists():
            return [f"Brief file not found: {path}"]
        match = _BRIEF_TITLE_RE.search(path.read_text(encoding="utf-8"))
        if not match:
            return ["Could not extract location from brief title"]
        return self.check_brief(match.group(1), match.group(2))

    # ── Photos ───────────────────────────────────────────────────

    def is_photo_blocked(self, photo_id: str) -> bool:
        return photo_id in BLOCKED_PHOTO_IDS

    def blocked_photos(self) -> list[str]:
        return sorted(BLOCKED_PHOTO_IDS)

    def is_photo_consumed(self, photo_id: str) -> bool:
        """Used before, or permanently blocked."""
        return photo_id in self._data.used_cover_photos or photo_id in BLOCKED_PHOTO_IDS

    def used_photo_ids(self) -> set[str]:
        """Every id discovery must skip: used plus blocked."""
        return set(self._data.used_cover_photos) | BLOCKED_PHOTO_IDS

    def allocate_photo(self, category: str = DEFAULT_CATEGORY) -> PhotoAllocation:
        """First unconsumed photo from the requested bucket, then the fallbacks.

        Does not reserve. When every bucket is exhausted, picks at random
        among all non-blocked catalog entries; that result may repeat a used
        photo and is flagged ``degraded``.
        """
        requested = normalize_category(category)
        for bucket in (requested, *FALLBACK_CATEGORIES):
            for photo_id in PHOTO_LIBRARY.get(bucket, ()):
                if not self.is_photo_consumed(photo_id):
                    return PhotoAllocation(photo_id=photo_id, url=photo_url(photo_id), category=bucket)

        logger.warning(
            "All cover photos have been used! Falling back to a random non-unique photo; "
            "consider adding more to the catalog."
        )
        candidates = [p for p in all_catalog_ids() if p not in BLOCKED_PHOTO_IDS]
        photo_id = self._rng.choice(candidates)
        return PhotoAllocation(
            photo_id=photo_id, url=photo_url(photo_id), category=requested, degraded=True
        )

    def reserve(self, photo: str) -> None:
        """Mark a photo used. Accepts a bare id or any URL ``extract_photo_id`` understands."""
        photo_id = extract_photo_id(photo)
        if photo_id is None and photo and "/" not in photo:
            photo_id = photo
        if photo_id is None:
            logger.warning("No photo id found in %r, nothing reserved", photo)
            return
        if photo_id not in self._data.used_cover_photos:
            self._data.used_cover_photos.append(photo_id)
            self.save()

    # ── Registration ─────────────────────────────────────────────

    def register(self, document: PublishedDocument) -> None:
        """Record a published document and reserve its photo. Idempotent by slug."""
        changed = False
        if document.cover_photo_id and document.cover_photo_id not in self._data.used_cover_photos:
            self._data.used_cover_photos.append(document.cover_photo_id)
            changed = True
        if not self.has_slug(document.slug):
            self._data.published_documents.append(document)
            changed = True
        if changed:
            self.save()

    # ── Stats ────────────────────────────────────────────────────

    def stats(self) -> RegistryStats:
        catalog = {p for p in all_catalog_ids() if p not in BLOCKED_PHOTO_IDS}
        used = set(self._data.used_cover_photos)
        return RegistryStats(
            total_documents=len(self._data.published_documents),
            photos_used=len(used),
            photos_remaining=len(catalog - used),
        )
