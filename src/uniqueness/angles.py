"""Per-topic content angle rotation.

Every search intent has a fixed, ordered list of angles. An angle is used at
most once per topic; when a topic has no angles left the caller must stop
and pick a new topic instead of retrying.

Rotation state is a plain pydantic model. The functions here never mutate
the state they are given; they return an updated copy so callers decide
when a change is committed and persisted.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

STATE_FILENAME = "rotation-state.json"
TEMPLATE_HISTORY_LIMIT = 20
DEFAULT_INTENT = "informational"

CONTENT_ANGLES: dict[str, tuple[str, ...]] = {
    "informational": (
        "beginner-guide",
        "expert-deep-dive",
        "case-study",
        "comparison",
        "step-by-step",
        "common-mistakes",
        "future-trends",
        "data-analysis",
        "interview-synthesis",
        "contrarian-view",
    ),
    "transactional": (
        "roi-focused",
        "implementation-guide",
        "feature-breakdown",
        "pricing-analysis",
        "use-case-specific",
    ),
    "commercial": (
        "buyer-guide",
        "alternatives-analysis",
        "pros-cons",
        "industry-specific",
    ),
    "navigational": (
        "getting-started",
        "quick-reference",
        "troubleshooting",
    ),
}


class RotationState(BaseModel):
    """Angles consumed per topic and the most recent structural templates."""

    used_angles_by_topic: dict[str, list[str]] = Field(default_factory=dict)
    recent_templates: list[str] = Field(default_factory=list)

    def used_angles(self, topic: str) -> list[str]:
        return list(self.used_angles_by_topic.get(topic, []))


def angles_for_intent(intent: str) -> tuple[str, ...]:
    """Full ordered angle list for an intent; unknown intents use informational."""
    angles = CONTENT_ANGLES.get(str(intent))
    if angles is None:
        logger.debug("Unknown search intent %r, using %s angles", intent, DEFAULT_INTENT)
        return CONTENT_ANGLES[DEFAULT_INTENT]
    return angles


def available_angles(state: RotationState, topic: str, intent: str) -> list[str]:
    """Angles for ``intent`` not yet used for ``topic``, in list order."""
    used = set(state.used_angles_by_topic.get(topic, []))
    return [angle for angle in angles_for_intent(intent) if angle not in used]


def register_used(state: RotationState, topic: str, angle: str) -> RotationState:
    """Mark ``angle`` used for ``topic``. Registering twice is a no-op."""
    used = state.used_angles(topic)
    if angle in used:
        return state
    updated = dict(state.used_angles_by_topic)
    updated[topic] = [*used, angle]
    return state.model_copy(update={"used_angles_by_topic": updated})


def record_template(state: RotationState, template_id: str) -> RotationState:
    """Append a published template to the history, keeping only the recent tail."""
    history = [*state.recent_templates, template_id][-TEMPLATE_HISTORY_LIMIT:]
    return state.model_copy(update={"recent_templates": history})


def load_rotation_state(state_dir: Path) -> RotationState:
    """Load rotation state from disk.

    Returns empty RotationState if file doesn't exist or is corrupt.
    """
    state_path = state_dir / STATE_FILENAME
    if not state_path.exists():
        return RotationState()
    try:
        data = json.loads(state_path.read_text(encoding="utf-8"))
        return RotationState.model_validate(data)
    except (json.JSONDecodeError, ValueError, KeyError):
        logger.warning("Corrupt rotation state at %s, starting fresh", state_path)
        return RotationState()


def save_rotation_state(state: RotationState, state_dir: Path) -> None:
    """Save rotation state to disk."""
    state_path = state_dir / STATE_FILENAME
    state_path.parent.mkdir(parents=True, exist_ok=True)
    state_path.write_text(state.model_dump_json(indent=2), encoding="utf-8")
