"""Publication registry: published identities, cover photos, photo discovery."""

from seoforge.registry.models import PublishedDocument, RegistrySnapshot, RegistryStats
from seoforge.registry.registry import PhotoAllocation, PublicationRegistry

__all__ = [
    "PhotoAllocation",
    "PublicationRegistry",
    "PublishedDocument",
    "RegistrySnapshot",
    "RegistryStats",
]
