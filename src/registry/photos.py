"""Location-aware cover photo allocation.

Search keywords are generated from a ``LocationContext``; each keyword is
searched on the photo service, consumed ids are skipped and every URL is
probed before it is trusted. With no search backend, no usable result, or a
failing service, allocation falls back to the registry's curated catalog.
"""

from __future__ import annotations

import json
import logging
import urllib.error
import urllib.parse
import urllib.request
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any

from pydantic import BaseModel, Field

from seoforge.registry.catalog import category_for_location, extract_photo_id
from seoforge.registry.registry import PhotoAllocation, PublicationRegistry
from seoforge.shared.config import PhotosSectionConfig
from seoforge.shared.errors import PhotoServiceError

logger = logging.getLogger(__name__)

UNSPLASH_API_BASE = "https://api.unsplash.com"
DISCOVERED_IMAGE_PARAMS = "w=1200&h=630&fit=crop"

# ---------------------------------------------------------------------------
# Keyword generation
# ---------------------------------------------------------------------------

VISUAL_THEMES: dict[str, list[str]] = {
    # NYC boroughs
    "manhattan": ["manhattan skyline", "new york city streets", "central park", "brownstone manhattan"],
    "brooklyn": ["brooklyn brownstone", "brooklyn bridge", "williamsburg brooklyn", "brooklyn street"],
    "queens": ["queens new york neighborhood", "diverse queens neighborhood", "flushing queens"],
    "bronx": ["bronx new york", "bronx neighborhood", "grand concourse"],
    "staten island": ["staten island ferry", "staten island neighborhood"],
    # NYC neighborhoods
    "williamsburg": ["williamsburg brooklyn hipster", "williamsburg loft", "bedford avenue brooklyn"],
    "park slope": ["park slope brownstone", "prospect park brooklyn", "park slope family"],
    "greenpoint": ["greenpoint brooklyn", "mccarren park", "polish greenpoint"],
    "bushwick": ["bushwick street art", "bushwick brooklyn industrial", "bushwick murals"],
    "bed-stuy": ["bedford stuyvesant brownstone", "bed stuy brooklyn historic"],
    "crown heights": ["crown heights brooklyn", "eastern parkway brooklyn"],
    "dumbo": ["dumbo brooklyn bridge", "dumbo cobblestone", "brooklyn waterfront"],
    "cobble hill": ["cobble hill brooklyn", "cobble hill brownstone"],
    "carroll gardens": ["carroll gardens brooklyn", "smith street brooklyn"],
    "fort greene": ["fort greene brooklyn", "fort greene park"],
    "prospect heights": ["prospect heights brooklyn", "barclays center brooklyn"],
    "bay ridge": ["bay ridge brooklyn", "shore road brooklyn", "verrazano bridge"],
    "astoria": ["astoria queens", "steinway street", "astoria park"],
    "long island city": ["long island city queens", "lic skyline", "gantry park"],
    "flushing": ["flushing queens chinatown", "main street flushing"],
    "jackson heights": ["jackson heights queens diversity", "roosevelt avenue jackson heights"],
    "forest hills": ["forest hills gardens", "austin street forest hills"],
    "riverdale": ["riverdale bronx", "wave hill", "hudson river bronx"],
    "mott haven": ["mott haven bronx", "south bronx waterfront"],
    # DC metro
    "georgetown": ["georgetown dc cobblestone", "georgetown waterfront", "georgetown row houses"],
    "dupont circle": ["dupont circle dc", "embassy row dc"],
    "capitol hill": ["capitol hill dc row houses", "eastern market dc"],
    "adams morgan": ["adams morgan dc nightlife", "18th street dc"],
    "navy yard": ["navy yard dc", "nationals park dc", "anacostia waterfront"],
    "alexandria": ["old town alexandria", "king street alexandria", "alexandria waterfront"],
    "arlington": ["arlington virginia", "rosslyn skyline", "clarendon arlington"],
    "bethesda": ["bethesda maryland downtown", "bethesda row"],
    # Philadelphia
    "rittenhouse square": ["rittenhouse square philadelphia", "rittenhouse park"],
    "fishtown": ["fishtown philadelphia", "frankford avenue", "fishtown brewery"],
    "society hill": ["society hill philadelphia cobblestone", "historic philadelphia"],
    "manayunk": ["manayunk philadelphia", "main street manayunk"],
    "chestnut hill": ["chestnut hill philadelphia", "germantown avenue"],
    # Boston
    "back bay": ["back bay boston brownstone", "newbury street", "commonwealth avenue"],
    "beacon hill": ["beacon hill boston", "acorn street boston", "boston brick sidewalk"],
    "south end": ["south end boston", "tremont street boston"],
    "jamaica plain": ["jamaica plain boston", "jp pond"],
    "cambridge": ["harvard square", "cambridge massachusetts", "mit cambridge"],
    "somerville": ["davis square somerville", "union square somerville"],
    # Connecticut
    "greenwich": ["greenwich connecticut", "greenwich avenue", "greenwich waterfront"],
    "westport": ["westport connecticut", "saugatuck river"],
    "stamford": ["stamford connecticut downtown", "stamford harbor"],
    "new haven": ["new haven connecticut", "yale university", "wooster square"],
}

ARCHITECTURE_KEYWORDS: dict[str, list[str]] = {
    "brownstone": ["brownstone", "brownstone stoop", "brooklyn brownstone exterior"],
    "victorian": ["victorian house", "victorian neighborhood", "painted ladies"],
    "colonial": ["colonial home", "colonial neighborhood", "american colonial"],
    "rowhouse": ["row house", "townhouse street", "row homes"],
    "tudor": ["tudor home", "tudor neighborhood", "english tudor"],
    "craftsman": ["craftsman bungalow", "arts crafts home"],
    "cape cod": ["cape cod house", "cape cod style"],
    "ranch": ["ranch home", "mid century ranch"],
    "condo": ["luxury condo building", "modern condo exterior"],
    "high-rise": ["residential high rise", "luxury apartment building"],
}

VIBE_KEYWORDS: list[tuple[tuple[str, ...], list[str]]] = [
    (("hip", "trendy"), ["trendy neighborhood", "hipster neighborhood"]),
    (("family",), ["family friendly neighborhood", "kids playing street"]),
    (("historic",), ["historic neighborhood", "heritage homes"]),
    (("diverse",), ["diverse neighborhood", "multicultural street"]),
]

GENERIC_KEYWORDS = [
    "residential neighborhood street",
    "homes for sale neighborhood",
    "real estate neighborhood",
]


class LocationContext(BaseModel):
    """What a cover photo should depict."""

    name: str
    qualifier: str = ""
    city: str = ""
    state: str = ""
    median_price: int | None = None
    landmarks: list[str] = Field(default_factory=list)
    architecture: str = ""
    vibe: str = ""

    @classmethod
    def from_location(cls, location: str, **overrides: Any) -> LocationContext:
        """Parse ``"Name, Qualifier, ST"`` or ``"Name, City ST"``; explicit fields win."""
        parts = [part.strip() for part in location.split(",")]
        fields: dict[str, Any] = {"name": parts[0] if parts else ""}
        if len(parts) >= 3:
            fields.update(qualifier=parts[1], city=parts[1], state=parts[2])
        elif len(parts) == 2:
            words = parts[1].split()
            fields.update(city=words[0] if words else "", state=words[-1] if len(words) > 1 else "")
        fields.update({k: v for k, v in overrides.items() if v})
        return cls(**fields)

    @property
    def category_hint(self) -> str:
        return ", ".join(p for p in (self.qualifier, self.city, self.state) if p)


def price_tier_keywords(median_price: int) -> list[str]:
    if median_price >= 1_500_000:
        return ["luxury estate", "mansion", "upscale neighborhood", "prestigious homes"]
    if median_price >= 800_000:
        return ["upscale suburban", "affluent neighborhood", "beautiful homes"]
    if median_price >= 500_000:
        return ["nice neighborhood", "family homes", "residential street"]
    if median_price >= 300_000:
        return ["starter homes", "affordable neighborhood", "first home"]
    return ["urban neighborhood", "city homes", "residential area"]


def generate_search_keywords(context: LocationContext) -> list[str]:
    """Ordered, de-duplicated search terms from most to least specific."""
    keywords: list[str] = []
    keywords += VISUAL_THEMES.get(context.name.lower(), [])
    if context.qualifier:
        keywords += VISUAL_THEMES.get(context.qualifier.lower(), [])[:2]
    keywords.append(f"{context.name} {context.city} neighborhood")
    keywords.append(f"{context.name} {context.state} homes")
    keywords += [f"{landmark} neighborhood" for landmark in context.landmarks]
    if context.architecture:
        keywords += ARCHITECTURE_KEYWORDS.get(context.architecture.lower(), [])[:2]
    if context.median_price:
        keywords += price_tier_keywords(context.median_price)[:2]
    if context.vibe:
        vibe = context.vibe.lower()
        for triggers, terms in VIBE_KEYWORDS:
            if any(trigger in vibe for trigger in triggers):
                keywords += terms
    keywords += GENERIC_KEYWORDS
    return list(dict.fromkeys(keywords))


# ---------------------------------------------------------------------------
# Search backend
# ---------------------------------------------------------------------------


class DiscoveredPhoto(BaseModel):
    """A search hit. ``id`` is the same identifier the registry extracts from ``url``."""

    id: str
    url: str
    description: str = ""
    alt: str = ""
    photographer: str = ""
    photographer_url: str = ""
    rank: float = 1.0
    search_term: str = ""


class PhotoSearch(ABC):
    """A photo-search service."""

    @abstractmethod
    def search(self, query: str, page_size: int = 5) -> list[DiscoveredPhoto]:
        """Ranked results for ``query``.

        Raises:
            PhotoServiceError: The service failed or timed out.
        """


class UnsplashSearch(PhotoSearch):
    """Unsplash search API."""

    def __init__(self, access_key: str, *, timeout: int = 15) -> None:
        self.access_key = access_key
        self.timeout = timeout

    def search(self, query: str, page_size: int = 5) -> list[DiscoveredPhoto]:
        params = urllib.parse.urlencode(
            {"query": query, "per_page": page_size, "orientation": "landscape"}
        )
        req = urllib.request.Request(
            f"{UNSPLASH_API_BASE}/search/photos?{params}",
            headers={
                "Authorization": f"Client-ID {self.access_key}",
                "Accept-Version": "v1",
            },
        )
        try:
            with urllib.request.urlopen(req, timeout=self.timeout) as resp:
                data = json.loads(resp.read().decode("utf-8"))
        except (urllib.error.URLError, TimeoutError, json.JSONDecodeError) as exc:
            raise PhotoServiceError(f"Unsplash search failed for {query!r}: {exc}") from exc

        photos: list[DiscoveredPhoto] = []
        for index, item in enumerate(data.get("results", [])):
            raw_url = (item.get("urls") or {}).get("raw", "")
            url = (
                f"{raw_url}&{DISCOVERED_IMAGE_PARAMS}"
                if raw_url
                else f"https://images.unsplash.com/{item['id']}?{DISCOVERED_IMAGE_PARAMS}"
            )
            user = item.get("user") or {}
            photos.append(
                DiscoveredPhoto(
                    id=extract_photo_id(url) or item["id"],
                    url=url,
                    description=item.get("description") or item.get("alt_description") or query,
                    alt=item.get("alt_description") or f"{query} - real estate neighborhood",
                    photographer=user.get("name", ""),
                    photographer_url=(user.get("links") or {}).get("html", ""),
                    rank=1 - index * 0.1,
                    search_term=query,
                )
            )
        return photos


def probe_url(url: str, timeout: int = 10) -> bool:
    """True when a HEAD request answers 200. Never raises."""
    req = urllib.request.Request(url, method="HEAD")
    try:
        with urllib.request.urlopen(req, timeout=timeout) as resp:
            return resp.status == 200
    except (urllib.error.URLError, TimeoutError, OSError):
        logger.debug("Probe failed for %s", url, exc_info=True)
        return False


# ---------------------------------------------------------------------------
# Allocation
# ---------------------------------------------------------------------------


class PhotoAllocator:
    """Picks an unconsumed, reachable photo for a location.

    Never reserves; the caller reserves once the document is committed.
    """

    def __init__(
        self,
        registry: PublicationRegistry,
        search: PhotoSearch | None = None,
        *,
        probe: Callable[[str], bool] = probe_url,
        max_keywords: int = 5,
    ) -> None:
        self.registry = registry
        self.search = search
        self.probe = probe
        self.max_keywords = max_keywords

    @classmethod
    def from_config(
        cls, registry: PublicationRegistry, settings: PhotosSectionConfig
    ) -> PhotoAllocator:
        """Unsplash search when an access key is configured, catalog-only otherwise."""
        search = (
            UnsplashSearch(settings.unsplash_access_key, timeout=settings.search_timeout)
            if settings.search_enabled
            else None
        )
        return cls(
            registry,
            search,
            probe=lambda url: probe_url(url, timeout=settings.probe_timeout),
            max_keywords=settings.max_keywords,
        )

    def discover(self, context: LocationContext, max_results: int = 3) -> list[DiscoveredPhoto]:
        """Search the top keywords; skip consumed ids and unreachable URLs."""
        if self.search is None:
            return []

        used = self.registry.used_photo_ids()
        keywords = generate_search_keywords(context)[: self.max_keywords]
        logger.info("Discovering photos for %s using %s", context.name, ", ".join(keywords[:3]))

        results: list[DiscoveredPhoto] = []
        for keyword in keywords:
            try:
                photos = self.search.search(keyword, page_size=5)
            except PhotoServiceError:
                logger.warning("Photo search failed, using curated catalog", exc_info=True)
                return []
            for photo in photos:
                if photo.id in used or any(r.id == photo.id for r in results):
                    continue
                if not self.probe(photo.url):
                    continue
                results.append(photo)
                if len(results) >= max_results:
                    break
            if len(results) >= max_results:
                break

        results.sort(key=lambda p: p.rank, reverse=True)
        return results[:max_results]

    def allocate(self, context: LocationContext) -> PhotoAllocation:
        """Best discovered photo, else the catalog allocation for the location's category."""
        discovered = self.discover(context)
        if discovered:
            best = discovered[0]
            logger.info("Found photo %s via %r (rank %.2f)", best.id, best.search_term, best.rank)
            return PhotoAllocation(photo_id=best.id, url=best.url, category="discovered")

        category = category_for_location(context.category_hint)
        logger.info("No discovered photo for %s, using curated %s catalog", context.name, category)
        return self.registry.allocate_photo(category)
