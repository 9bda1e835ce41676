"""Uniqueness engine: phrase fingerprints, similarity, angle and template rotation."""

from seoforge.uniqueness.angles import (
    CONTENT_ANGLES,
    RotationState,
    available_angles,
    load_rotation_state,
    record_template,
    register_used,
    save_rotation_state,
)
from seoforge.uniqueness.fingerprint import extract_phrases, fingerprint
from seoforge.uniqueness.similarity import SimilarityEngine, SimilarityResult
from seoforge.uniqueness.templates import TEMPLATE_IDS, TemplateValidation, validate_template

__all__ = [
    "CONTENT_ANGLES",
    "RotationState",
    "SimilarityEngine",
    "SimilarityResult",
    "TEMPLATE_IDS",
    "TemplateValidation",
    "available_angles",
    "extract_phrases",
    "fingerprint",
    "load_rotation_state",
    "record_template",
    "register_used",
    "save_rotation_state",
    "validate_template",
]
