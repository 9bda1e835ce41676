"""Registry snapshot models."""

from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel, Field

SNAPSHOT_VERSION = "1.0.0"


class PublishedDocument(BaseModel):
    """Identity of one published document."""

    slug: str
    neighborhood: str = ""
    borough: str = ""
    state: str = ""
    published_at: str = ""
    cover_photo_id: str = ""
    source: str = ""


class RegistrySnapshot(BaseModel):
    """Whole-file persisted form of the registry."""

    version: str = SNAPSHOT_VERSION
    last_updated: datetime = Field(default_factory=lambda: datetime.now(UTC))
    published_documents: list[PublishedDocument] = Field(default_factory=list)
    used_cover_photos: list[str] = Field(default_factory=list)


class RegistryStats(BaseModel):
    total_documents: int
    photos_used: int
    photos_remaining: int
