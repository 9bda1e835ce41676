"""Curated cover-photo catalog and the permanent block-list.

Buckets are static: allocation never removes entries. The registry's used
set is the only thing that excludes a photo from future allocation.
"""

from __future__ import annotations

import re

UNSPLASH_IMAGE_URL = "https://images.unsplash.com/{photo_id}?w=1200&auto=format&fit=crop"
PHOTO_ID_RE = re.compile(r"photo-[a-zA-Z0-9_-]+")
IMAGE_PATH_ID_RE = re.compile(r"images\.unsplash\.com/([a-zA-Z0-9_-]+)")

DEFAULT_CATEGORY = "nyc"
FALLBACK_CATEGORIES: tuple[str, ...] = ("nyc", "real-estate")

# Retired photos. Never allocated, regardless of bucket or usage.
BLOCKED_PHOTO_IDS: frozenset[str] = frozenset(
    {
        "photo-1560518883-ce09059eeffa",  # overused across 26+ documents
    }
)

PHOTO_LIBRARY: dict[str, tuple[str, ...]] = {
    "nyc": (
        "photo-1534430480872-3498386e7856",
        "photo-1555529669-e69e7aa0ba9a",
        "photo-1496442226666-8d4d0e62e6e9",
        "photo-1499092346589-b9b6be3e94b2",
        "photo-1518391846015-55a9cc003b25",
        "photo-1543716091-a840c05249ec",
        "photo-1485871981521-5b1fd3805eee",
        "photo-1522083165195-3424ed129620",
        "photo-1480714378408-67cf0d13bc1b",
        "photo-1534270804882-6b5048b1c1fc",
        "photo-1570168007204-dfb528c6958f",
        "photo-1582407947304-fd86f028f716",
        "photo-1560520653-9e0e4c89eb11",
        "photo-1555109307-f7d9da25c244",
        "photo-1502672260266-1c1ef2d93688",
        "photo-1512917774080-9991f1c4c750",
        "photo-1600596542815-ffad4c1539a9",
        "photo-1600607687939-ce8a6c25118c",
        "photo-1600585154340-be6161a56a0c",
        "photo-1600573472550-8090b5e0745e",
        "photo-1568605114967-8130f3a36994",
        "photo-1523217582562-09d0def993a6",
        "photo-1580587771525-78b9dba3b914",
        "photo-1564013799919-ab600027ffc6",
    ),
    "brooklyn": (
        "photo-1558981403-c5f9899a28bc",
        "photo-1555992336-03a23f37e571",
        "photo-1580137197581-df2bb346a786",
        "photo-1567684014761-b65e2e59b9eb",
        "photo-1595880500386-4b33823094d0",
        "photo-1611348586804-61bf6c080437",
    ),
    "manhattan": (
        "photo-1534430480872-3498386e7856",
        "photo-1555883006-0f5a0915a80f",
        "photo-1568515387631-8b650bbcdb90",
        "photo-1558618666-fcd25c85cd64",
        "photo-1513635269975-59663e0ac1ad",
        "photo-1722030670436-3df19cd72050",
    ),
    "queens": (
        "photo-1570168007204-dfb528c6958f",
        "photo-1583608205776-bfd35f0d9f83",
        "photo-1600047509358-9dc75507daeb",
        "photo-1600566753190-17f0baa2a6c4",
    ),
    "seattle": (
        "photo-1502175353174-a7a70e73b362",
        "photo-1558452919-08ae4aca8571",
        "photo-1548248823-ce16a73b6d49",
        "photo-1515694590244-e4c8d2e5d10e",
        "photo-1416339306562-f3d12fefd36f",
    ),
    "real-estate": (
        "photo-1582407947304-fd86f028f716",
        "photo-1560520653-9e0e4c89eb11",
        "photo-1560185007-c5ca9d2c014d",
        "photo-1560184897-ae75f418493e",
        "photo-1600585154340-be6161a56a0c",
        "photo-1600573472550-8090b5e0745e",
        "photo-1600566753086-00f18fb6b3ea",
        "photo-1600607687920-4e2a09cf159d",
        "photo-1605276374104-dee2a0ed3cd6",
    ),
}

_CATEGORY_RE = re.compile(r"[^a-z-]")


def photo_url(photo_id: str) -> str:
    return UNSPLASH_IMAGE_URL.format(photo_id=photo_id)


def extract_photo_id(url: str) -> str | None:
    """Pull the photo identifier out of a URL or frontmatter value.

    The ``photo-...`` form wins; otherwise the first path segment of an
    images.unsplash.com URL is the id.
    """
    match = PHOTO_ID_RE.search(url)
    if match:
        return match.group(0)
    path_match = IMAGE_PATH_ID_RE.search(url)
    return path_match.group(1) if path_match else None


def normalize_category(category: str) -> str:
    return _CATEGORY_RE.sub("", category.lower())


def category_for_location(location: str) -> str:
    """Map a free-text location to a catalog bucket.

    Substring checks in fixed order; anything unrecognised is ``real-estate``.
    """
    loc = location.lower()
    if "brooklyn" in loc:
        return "brooklyn"
    if "manhattan" in loc:
        return "manhattan"
    if "queens" in loc:
        return "queens"
    if "seattle" in loc or "capitol hill" in loc:
        return "seattle"
    if "new york" in loc or "nyc" in loc or "ny" in loc:
        return "nyc"
    return "real-estate"


def all_catalog_ids() -> list[str]:
    """Every catalog entry across buckets, in bucket order, with repeats."""
    return [photo_id for bucket in PHOTO_LIBRARY.values() for photo_id in bucket]
