from __future__ import annotations

import pytest
import voluptuous as vol

from custom_components.muscle_plan_builder.websocket_api import validate_action


def test_edit_action_is_coerced() -> None:
    action = validate_action({"type": "set_sets", "slot_id": "slot_1", "sets": "25"})
    assert action == {"type": "set_sets", "slot_id": "slot_1", "sets": 25}


def test_save_state_transitions_are_not_accepted_from_clients() -> None:
    with pytest.raises(vol.Invalid):
        validate_action({"type": "mark_saved", "template_id": "plan_1"})


def test_missing_fields_are_rejected() -> None:
    with pytest.raises(vol.Invalid):
        validate_action({"type": "move_muscle", "slot_id": "slot_1"})


def test_load_preset_slots_are_validated() -> None:
    action = validate_action(
        {"type": "load_preset", "name": "PPL", "slots": [{"day_index": "1", "muscle_id": "pecs", "sets": 4}]}
    )
    assert action["slots"] == [{"day_index": 1, "muscle_id": "pecs", "sets": 4}]
