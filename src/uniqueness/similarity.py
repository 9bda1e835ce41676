"""Phrase-overlap similarity against the published corpus."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from seoforge.shared.corpus import CorpusDocument
from seoforge.uniqueness.fingerprint import fingerprint

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SimilarityResult:
    """Highest overlap found and which stored document produced it."""

    max_similarity: float
    most_similar_key: str


class SimilarityEngine:
    """Holds one fingerprint per published document.

    Similarity of a candidate to a stored document is the share of the
    candidate's distinct phrases that also occur in the stored document:
    ``|candidate ∩ stored| / max(|candidate|, 1)``.

    Stored documents are compared in key order, and a later document only
    replaces the running maximum when strictly greater, so ties resolve to
    the alphabetically first key regardless of load order.
    """

    def __init__(self) -> None:
        self._fingerprints: dict[str, frozenset[str]] = {}

    def __len__(self) -> int:
        return len(self._fingerprints)

    def __contains__(self, key: object) -> bool:
        return key in self._fingerprints

    @property
    def keys(self) -> list[str]:
        return sorted(self._fingerprints)

    def add(self, key: str, text: str) -> None:
        """Fingerprint ``text`` and store it under ``key`` (replacing any previous)."""
        self._fingerprints[key] = fingerprint(text)

    def add_fingerprint(self, key: str, phrases: Iterable[str]) -> None:
        """Store a precomputed phrase set."""
        self._fingerprints[key] = frozenset(phrases)

    def load_existing(self, documents: Iterable[CorpusDocument]) -> int:
        """Fingerprint every document, keyed by its date-stripped filename.

        Returns:
            Number of documents loaded.
        """
        count = 0
        for doc in sorted(documents, key=lambda d: (d.key, d.source, d.filename)):
            if doc.key in self._fingerprints:
                logger.debug("Duplicate corpus key %s from %s, replacing", doc.key, doc.source)
            self.add(doc.key, doc.text)
            count += 1
        logger.info("Loaded %d existing documents for similarity checks", count)
        return count

    def similarity(self, candidate: frozenset[str], key: str) -> float:
        """Overlap of a candidate phrase set with one stored document."""
        stored = self._fingerprints.get(key)
        if not stored:
            return 0.0
        return len(candidate & stored) / max(len(candidate), 1)

    def score_against(self, text: str, *, exclude: str | None = None) -> SimilarityResult:
        """Compare ``text`` to every stored document.

        Args:
            text: Candidate document text.
            exclude: Key to skip, for re-checking a document already in the corpus.

        Returns:
            ``SimilarityResult(0.0, "")`` when nothing is loaded.
        """
        candidate = fingerprint(text)
        max_similarity = 0.0
        most_similar = ""

        for key in sorted(self._fingerprints):
            if key == exclude:
                continue
            score = self.similarity(candidate, key)
            if score > max_similarity:
                max_similarity = score
                most_similar = key

        return SimilarityResult(max_similarity=max_similarity, most_similar_key=most_similar)
