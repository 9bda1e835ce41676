"""Lexical phrase fingerprints.

A document's fingerprint is the bag of overlapping 4-token phrases in its
normalized body. Tokens of three characters or fewer are dropped before
windowing, so "the", "and", "for" never anchor a match.
"""

from __future__ import annotations

import re

PHRASE_LENGTH = 4
MIN_TOKEN_LENGTH = 4

_FRONTMATTER_RE = re.compile(r"^---.*?---", re.DOTALL)
_MARKDOWN_CHARS_RE = re.compile(r"[#*_`\[\]()]")


def strip_frontmatter(text: str) -> str:
    """Remove a leading ``---`` delimited frontmatter block, if any."""
    return _FRONTMATTER_RE.sub("", text, count=1)


def tokenize(text: str) -> list[str]:
    """Normalize text into lower-case tokens longer than three characters."""
    plain = _MARKDOWN_CHARS_RE.sub(" ", strip_frontmatter(text)).lower()
    return [word for word in plain.split() if len(word) >= MIN_TOKEN_LENGTH]


def extract_phrases(text: str, length: int = PHRASE_LENGTH) -> list[str]:
    """Every contiguous window of ``length`` tokens, in order of occurrence.

    Duplicates are kept; callers that want a fingerprint build a set.
    Input with fewer than ``length`` tokens yields an empty list.
    """
    words = tokenize(text)
    return [" ".join(words[i : i + length]) for i in range(len(words) - length + 1)]


def fingerprint(text: str) -> frozenset[str]:
    """The phrase set used for similarity comparison."""
    return frozenset(extract_phrases(text))
