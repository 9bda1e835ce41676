"""Tests for angle rotation state."""

import json
from pathlib import Path

from seoforge.uniqueness.angles import (
    CONTENT_ANGLES,
    STATE_FILENAME,
    TEMPLATE_HISTORY_LIMIT,
    RotationState,
    angles_for_intent,
    available_angles,
    load_rotation_state,
    record_template,
    register_used,
    save_rotation_state,
)


class TestAngleLists:
    def test_intent_sizes(self):
        assert len(CONTENT_ANGLES["informational"]) == 10
        assert len(CONTENT_ANGLES["transactional"]) == 5
        assert len(CONTENT_ANGLES["commercial"]) == 4
        assert len(CONTENT_ANGLES["navigational"]) == 3

    def test_unknown_intent_falls_back(self):
        assert angles_for_intent("bogus") == CONTENT_ANGLES["informational"]


class TestAvailableAngles:
    def test_fresh_topic_gets_all(self):
        state = RotationState()
        assert available_angles(state, "CRM", "commercial") == list(CONTENT_ANGLES["commercial"])

    def test_used_angles_filtered_in_order(self):
        state = register_used(RotationState(), "CRM", "alternatives-analysis")
        assert available_angles(state, "CRM", "commercial") == [
            "buyer-guide",
            "pros-cons",
            "industry-specific",
        ]

    def test_topics_are_independent(self):
        state = register_used(RotationState(), "CRM", "buyer-guide")
        assert "buyer-guide" in available_angles(state, "Email", "commercial")

    def test_exhaustion(self):
        state = RotationState()
        for angle in CONTENT_ANGLES["informational"]:
            state = register_used(state, "X", angle)
        assert available_angles(state, "X", "informational") == []


class TestRegisterUsed:
    def test_returns_copy(self):
        original = RotationState()
        updated = register_used(original, "X", "case-study")
        assert original.used_angles("X") == []
        assert updated.used_angles("X") == ["case-study"]

    def test_idempotent(self):
        state = register_used(RotationState(), "X", "case-study")
        again = register_used(state, "X", "case-study")
        assert again.used_angles("X") == ["case-study"]


class TestRecordTemplate:
    def test_appends(self):
        state = record_template(record_template(RotationState(), "ATLAS"), "PERSONA")
        assert state.recent_templates == ["ATLAS", "PERSONA"]

    def test_history_is_capped(self):
        state = RotationState()
        for i in range(TEMPLATE_HISTORY_LIMIT + 5):
            state = record_template(state, f"T{i}")
        assert len(state.recent_templates) == TEMPLATE_HISTORY_LIMIT
        assert state.recent_templates[-1] == f"T{TEMPLATE_HISTORY_LIMIT + 4}"


class TestRotationPersistence:
    def test_round_trip(self, tmp_path: Path):
        state = record_template(register_used(RotationState(), "CRM", "pros-cons"), "ATLAS")
        save_rotation_state(state, tmp_path)
        loaded = load_rotation_state(tmp_path)
        assert loaded == state

    def test_missing_file(self, tmp_path: Path):
        assert load_rotation_state(tmp_path) == RotationState()

    def test_corrupt_file(self, tmp_path: Path):
        (tmp_path / STATE_FILENAME).write_text("{not json", encoding="utf-8")
        assert load_rotation_state(tmp_path) == RotationState()

    def test_creates_directory(self, tmp_path: Path):
        target = tmp_path / "nested" / "state"
        save_rotation_state(RotationState(), target)
        data = json.loads((target / STATE_FILENAME).read_text(encoding="utf-8"))
        assert data["used_angles_by_topic"] == {}
