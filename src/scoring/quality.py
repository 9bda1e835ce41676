"""Structural quality score.

Additive surface checks (length tiers, headings, bullets, a few literal
substrings) capped at 1.0. It pattern-matches, it does not judge prose:
a document can score 1.0 and still read badly.
"""

from __future__ import annotations

import re

from seoforge.scoring.models import ContentBrief
from seoforge.scoring.validation import count_words

WORD_TIERS: tuple[tuple[int, float], ...] = (
    (2000, 0.3),
    (1500, 0.2),
    (1000, 0.1),
)

_H2_RE = re.compile(r"^## ", re.MULTILINE)
_H3_RE = re.compile(r"^### ", re.MULTILINE)
_BULLET_RE = re.compile(r"^[*-] ", re.MULTILINE)


def word_tier_score(words: int) -> float:
    for minimum, points in WORD_TIERS:
        if words >= minimum:
            return points
    return 0.0


def quality_score(text: str, brief: ContentBrief) -> float:
    """Score ``text`` in ``[0, 1]``.

    The target keyword must appear verbatim (case-sensitive); an empty
    keyword earns nothing.
    """
    score = word_tier_score(count_words(text))

    if len(_H2_RE.findall(text)) >= 3:
        score += 0.2
    if len(_H3_RE.findall(text)) >= 2:
        score += 0.1
    if len(_BULLET_RE.findall(text)) >= 3:
        score += 0.1

    if brief.target_keyword and brief.target_keyword in text:
        score += 0.1
    lowered = text.lower()
    if "example" in lowered:
        score += 0.1
    if "step" in lowered:
        score += 0.1

    return min(round(score, 2), 1.0)
