"""Generation: the controller state machine, publishing pipeline and batch runner."""

from seoforge.generation.controller import GenerationController
from seoforge.generation.models import (
    GeneratedArticle,
    GeneratedDraft,
    GenerationRequest,
    GenerationResult,
    GenerationState,
    ParseFailure,
    parse_draft,
)

__all__ = [
    "GeneratedArticle",
    "GeneratedDraft",
    "GenerationController",
    "GenerationRequest",
    "GenerationResult",
    "GenerationState",
    "ParseFailure",
    "parse_draft",
]
