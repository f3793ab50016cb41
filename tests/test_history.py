from __future__ import annotations

from custom_components.muscle_plan_builder.history import PlanHistory
from custom_components.muscle_plan_builder.plan import (
    ADD_MUSCLE,
    LOAD_TEMPLATE,
    MARK_SAVED,
    REDO,
    SAVING,
    SELECT_DAY,
    SET_NAME,
    SET_SETS,
    UNDO,
    plan_content,
)


def _add(day: int, muscle: str) -> dict:
    return {"type": ADD_MUSCLE, "day_index": day, "muscle_id": muscle}


def _without_live_fields(state: dict) -> dict:
    return {k: v for k, v in state.items() if k not in ("template_id", "is_saving")}


def test_undo_restores_previous_plan() -> None:
    h = PlanHistory()
    h.dispatch(_add(1, "pecs"))
    before = h.present
    h.dispatch({"type": SET_SETS, "slot_id": before["slots"][0]["id"], "sets": 7})

    assert h.undo() is True
    assert h.present == before
    assert h.status == "has_undo_and_redo"


def test_redo_reapplies_and_new_edit_clears_future() -> None:
    h = PlanHistory()
    h.dispatch(_add(1, "pecs"))
    after = h.present
    h.dispatch({"type": UNDO})
    assert h.status == "has_redo_only"

    h.dispatch({"type": REDO})
    assert h.present == after
    assert not h.can_redo

    h.dispatch({"type": UNDO})
    h.dispatch(_add(2, "lats"))
    assert not h.can_redo


def test_noop_edits_do_not_create_history() -> None:
    h = PlanHistory()
    h.dispatch(_add(1, "pecs"))
    h.dispatch(_add(1, "pecs"))
    assert len(h.past) == 1


def test_exempt_actions_do_not_create_history() -> None:
    h = PlanHistory()
    h.dispatch({"type": SELECT_DAY, "day_index": 4})
    h.dispatch({"type": SAVING})
    assert h.status == "no_history"
    assert h.present["selected_day_index"] == 4


def test_empty_undo_and_redo_are_noops() -> None:
    h = PlanHistory()
    start = h.present
    assert h.undo() is False
    assert h.redo() is False
    assert h.present is start


def test_history_is_bounded() -> None:
    h = PlanHistory(limit=50)
    for i in range(60):
        h.dispatch({"type": SET_NAME, "name": f"Plan {i}"})

    undos = 0
    while h.undo():
        undos += 1
    assert undos == 50
    assert h.present["name"] == "Plan 9"


def test_undo_carries_live_save_state() -> None:
    h = PlanHistory()
    h.dispatch(_add(1, "pecs"))
    pre_action = h.present
    h.dispatch(_add(2, "lats"))
    h.dispatch({"type": SAVING})
    h.dispatch({"type": MARK_SAVED, "template_id": "plan_1", "saved": plan_content(h.present)})
    h.dispatch({"type": SAVING})

    h.undo()
    assert h.present["template_id"] == "plan_1"
    assert h.present["is_saving"] is True
    assert _without_live_fields(h.present) == _without_live_fields(pre_action)


def test_undo_past_a_save_is_dirty_and_back_is_clean() -> None:
    h = PlanHistory()
    h.dispatch(_add(1, "pecs"))
    h.dispatch({"type": MARK_SAVED, "template_id": "plan_1", "saved": plan_content(h.present)})
    assert h.present["is_dirty"] is False

    h.undo()
    assert h.present["is_dirty"] is True
    h.redo()
    assert h.present["is_dirty"] is False


def test_load_template_resets_stacks() -> None:
    h = PlanHistory()
    h.dispatch(_add(1, "pecs"))
    h.dispatch(
        {
            "type": LOAD_TEMPLATE,
            "template_id": "plan_9",
            "name": "Stored",
            "description": "",
            "slots": [{"day_index": 2, "muscle_id": "lats", "sets": 4}],
        }
    )
    assert h.status == "no_history"
    assert h.present["is_dirty"] is False

    h.dispatch(_add(2, "mid_back"))
    h.undo()
    assert h.present["is_dirty"] is False


def test_unchanged_results_keep_the_present_object() -> None:
    h = PlanHistory()
    h.dispatch(_add(1, "pecs"))
    before = h.present

    assert h.dispatch(_add(1, "pecs")) is before
    assert h.dispatch({"type": SET_NAME, "name": before["name"]}) is before
    assert h.dispatch({"type": SELECT_DAY, "day_index": before["selected_day_index"]}) is before
    assert len(h.past) == 1
