"""Structural template rotation.

Six document skeletons are rotated so consecutive publications never look
alike. A template is rejected when it appears in the last two entries of
the publication history.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

TEMPLATE_IDS: tuple[str, ...] = (
    "ATLAS",
    "PERSONA",
    "CATALYST",
    "PLAYBOOK",
    "COMPASS",
    "BLUEPRINT",
)

EXCLUSION_WINDOW = 2


@dataclass(frozen=True)
class TemplateValidation:
    valid: bool
    excluded: list[str]
    available: list[str]
    message: str


def validate_template(template_id: str, recent_history: Sequence[str]) -> TemplateValidation:
    """Check ``template_id`` against the tail of ``recent_history``.

    Pure: the caller supplies the history explicitly.
    """
    excluded = list(recent_history[-EXCLUSION_WINDOW:]) if recent_history else []
    available = [t for t in TEMPLATE_IDS if t not in excluded]

    if template_id not in TEMPLATE_IDS:
        return TemplateValidation(
            valid=False,
            excluded=excluded,
            available=available,
            message=f'Invalid template "{template_id}". Must be one of: {", ".join(TEMPLATE_IDS)}',
        )

    if template_id in excluded:
        return TemplateValidation(
            valid=False,
            excluded=excluded,
            available=available,
            message=(
                f'Template "{template_id}" used recently! '
                f"Use one of: {', '.join(available)}"
            ),
        )

    return TemplateValidation(
        valid=True,
        excluded=excluded,
        available=available,
        message=f'Template "{template_id}" is valid (not in last {EXCLUSION_WINDOW} posts)',
    )
