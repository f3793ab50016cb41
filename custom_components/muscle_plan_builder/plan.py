"""Muscle plan document and its mutation reducer.

A plan is a plain dict:

    {
        "template_id": str | None,   # None until the first explicit save
        "name": str,
        "description": str,
        "slots": [slot, ...],
        "selected_day_index": int,   # view-only
        "is_dirty": bool,
        "is_saving": bool,
    }

and a slot is ``{id, day_index, muscle_id, sets, rep_min, rep_max, sort_order}``.

``reduce_plan`` never mutates its input. Whenever an action has no effect the
very same state object is returned, which is what the history uses to skip
no-op snapshots.
"""

from __future__ import annotations

from typing import Any

from .const import DEFAULT_PLAN_NAME, DEFAULT_SELECTED_DAY, DEFAULT_SETS
from .hydration import clamp_reps, clamp_sets, densify, hydrate_slots, new_slot_id

ADD_MUSCLE = "add_muscle"
REMOVE_MUSCLE = "remove_muscle"
SET_SETS = "set_sets"
SET_REPS = "set_reps"
SET_ALL_SETS_FOR_MUSCLE = "set_all_sets_for_muscle"
REORDER = "reorder"
MOVE_MUSCLE = "move_muscle"
PASTE_DAY = "paste_day"
LOAD_PRESET = "load_preset"
LOAD_TEMPLATE = "load_template"
CLEAR_ALL = "clear_all"
SET_NAME = "set_name"
SET_DESCRIPTION = "set_description"
SELECT_DAY = "select_day"
SAVING = "saving"
MARK_SAVED = "mark_saved"
SAVE_ERROR = "save_error"
PRESET_SAVED = "preset_saved"
UNDO = "undo"
REDO = "redo"

# Actions a UI may send. Save-state transitions are driven by the session only.
EDIT_ACTIONS = (
    ADD_MUSCLE,
    REMOVE_MUSCLE,
    SET_SETS,
    SET_REPS,
    SET_ALL_SETS_FOR_MUSCLE,
    REORDER,
    MOVE_MUSCLE,
    PASTE_DAY,
    LOAD_PRESET,
    CLEAR_ALL,
    SET_NAME,
    SET_DESCRIPTION,
    SELECT_DAY,
)


def new_plan(*, name: str = DEFAULT_PLAN_NAME, description: str = "") -> dict[str, Any]:
    return {
        "template_id": None,
        "name": name,
        "description": description,
        "slots": [],
        "selected_day_index": DEFAULT_SELECTED_DAY,
        "is_dirty": False,
        "is_saving": False,
    }


def plan_content(state: dict[str, Any]) -> dict[str, Any]:
    """The persisted part of a plan; what 'dirty' is measured against."""
    return {
        "name": state.get("name", ""),
        "description": state.get("description", ""),
        "slots": [dict(s) for s in state.get("slots", [])],
    }


def day_slots(state: dict[str, Any], day_index: int) -> list[dict[str, Any]]:
    items = [s for s in state.get("slots", []) if s["day_index"] == day_index]
    items.sort(key=lambda s: s["sort_order"])
    return items


def _find_slot(state: dict[str, Any], slot_id: str) -> dict[str, Any] | None:
    return next((s for s in state["slots"] if s["id"] == slot_id), None)


def _has_muscle(state: dict[str, Any], day_index: int, muscle_id: str) -> bool:
    return any(s["day_index"] == day_index and s["muscle_id"] == muscle_id for s in state["slots"])


def _edited(state: dict[str, Any], **changes: Any) -> dict[str, Any]:
    return {**state, **changes, "is_dirty": True}


def _replace_slots(state: dict[str, Any], updates: dict[str, dict[str, Any]]) -> dict[str, Any]:
    """Apply per-slot field updates; return state untouched when nothing changes."""
    changed = False
    slots = []
    for s in state["slots"]:
        upd = updates.get(s["id"])
        if upd and any(s.get(k) != v for k, v in upd.items()):
            s = {**s, **upd}
            changed = True
        slots.append(s)
    if not changed:
        return state
    return _edited(state, slots=slots)


def _add_muscle(state: dict[str, Any], action: dict[str, Any]) -> dict[str, Any]:
    day = int(action["day_index"])
    muscle_id = str(action["muscle_id"])
    if _has_muscle(state, day, muscle_id):
        return state
    sets = action.get("sets")
    slot = {
        "id": new_slot_id(),
        "day_index": day,
        "muscle_id": muscle_id,
        "sets": clamp_sets(DEFAULT_SETS if sets is None else sets),
        "rep_min": action.get("rep_min"),
        "rep_max": action.get("rep_max"),
        "sort_order": len(day_slots(state, day)),
    }
    slot["rep_min"], slot["rep_max"] = clamp_reps(slot["rep_min"], slot["rep_max"])
    return _edited(state, slots=[*state["slots"], slot])


def _remove_muscle(state: dict[str, Any], action: dict[str, Any]) -> dict[str, Any]:
    slot = _find_slot(state, str(action["slot_id"]))
    if slot is None:
        return state
    rest = [s for s in state["slots"] if s["id"] != slot["id"]]
    return _edited(state, slots=densify(rest, {slot["day_index"]}))


def _set_sets(state: dict[str, Any], action: dict[str, Any]) -> dict[str, Any]:
    slot_id = str(action["slot_id"])
    if _find_slot(state, slot_id) is None:
        return state
    return _replace_slots(state, {slot_id: {"sets": clamp_sets(action["sets"])}})


def _set_reps(state: dict[str, Any], action: dict[str, Any]) -> dict[str, Any]:
    slot_id = str(action["slot_id"])
    if _find_slot(state, slot_id) is None:
        return state
    rep_min, rep_max = clamp_reps(action["rep_min"], action["rep_max"])
    return _replace_slots(state, {slot_id: {"rep_min": rep_min, "rep_max": rep_max}})


def _set_all_sets_for_muscle(state: dict[str, Any], action: dict[str, Any]) -> dict[str, Any]:
    muscle_id = str(action["muscle_id"])
    sets = clamp_sets(action["sets"])
    updates = {s["id"]: {"sets": sets} for s in state["slots"] if s["muscle_id"] == muscle_id}
    return _replace_slots(state, updates)


def _reorder(state: dict[str, Any], action: dict[str, Any]) -> dict[str, Any]:
    day = int(action["day_index"])
    ordered = day_slots(state, day)
    from_index = int(action["from_index"])
    if not 0 <= from_index < len(ordered):
        return state
    to_index = max(0, min(len(ordered) - 1, int(action["to_index"])))
    if from_index == to_index:
        return state

    moved = ordered.pop(from_index)
    ordered.insert(to_index, moved)
    new_order = {s["id"]: idx for idx, s in enumerate(ordered)}
    return _replace_slots(state, {sid: {"sort_order": idx} for sid, idx in new_order.items()})


def _move_muscle(state: dict[str, Any], action: dict[str, Any]) -> dict[str, Any]:
    slot = _find_slot(state, str(action["slot_id"]))
    if slot is None:
        return state
    to_day = int(action["to_day"])
    if to_day == slot["day_index"]:
        ordered = day_slots(state, to_day)
        from_index = next(i for i, s in enumerate(ordered) if s["id"] == slot["id"])
        return _reorder(state, {"day_index": to_day, "from_index": from_index, "to_index": action["to_index"]})
    if _has_muscle(state, to_day, slot["muscle_id"]):
        return state

    target = day_slots(state, to_day)
    to_index = max(0, min(len(target), int(action["to_index"])))
    target.insert(to_index, {**slot, "day_index": to_day})
    target = [{**s, "sort_order": idx} for idx, s in enumerate(target)]

    others = [s for s in state["slots"] if s["id"] != slot["id"] and s["day_index"] != to_day]
    return _edited(state, slots=densify([*others, *target], {slot["day_index"]}))


def _paste_day(state: dict[str, Any], action: dict[str, Any]) -> dict[str, Any]:
    from_day = int(action["from_day"])
    to_day = int(action["to_day"])
    if from_day == to_day:
        return state
    source = day_slots(state, from_day)
    if not source:
        return state

    existing = {s["muscle_id"] for s in state["slots"] if s["day_index"] == to_day}
    next_order = len(existing)
    copies = []
    for s in source:
        if s["muscle_id"] in existing:
            continue
        copies.append({**s, "id": new_slot_id(), "day_index": to_day, "sort_order": next_order})
        next_order += 1
    if not copies:
        return state
    return _edited(state, slots=[*state["slots"], *copies])


def _load_preset(state: dict[str, Any], action: dict[str, Any]) -> dict[str, Any]:
    # Preset slots are copies: give them fresh ids so none are reused.
    raw = [{**s, "id": None} for s in action.get("slots") or [] if isinstance(s, dict)]
    name = action.get("name")
    return _edited(state, slots=hydrate_slots(raw), name=state["name"] if name is None else str(name))


def _load_template(state: dict[str, Any], action: dict[str, Any]) -> dict[str, Any]:
    return {
        **state,
        "template_id": action.get("template_id"),
        "name": str(action.get("name") or DEFAULT_PLAN_NAME),
        "description": str(action.get("description") or ""),
        "slots": hydrate_slots(action.get("slots")),
        "is_dirty": False,
        "is_saving": False,
    }


def _clear_all(state: dict[str, Any], action: dict[str, Any]) -> dict[str, Any]:
    if not state["slots"]:
        return state
    return _edited(state, slots=[])


def _set_name(state: dict[str, Any], action: dict[str, Any]) -> dict[str, Any]:
    name = str(action["name"])
    if name == state["name"]:
        return state
    return _edited(state, name=name)


def _set_description(state: dict[str, Any], action: dict[str, Any]) -> dict[str, Any]:
    description = str(action["description"])
    if description == state["description"]:
        return state
    return _edited(state, description=description)


def _select_day(state: dict[str, Any], action: dict[str, Any]) -> dict[str, Any]:
    day = int(action["day_index"])
    if day == state["selected_day_index"]:
        return state
    return {**state, "selected_day_index": day}


def _saving(state: dict[str, Any], action: dict[str, Any]) -> dict[str, Any]:
    return {**state, "is_saving": True}


def _mark_saved(state: dict[str, Any], action: dict[str, Any]) -> dict[str, Any]:
    saved = action.get("saved")
    # Edits that landed while the save was in flight are not covered by it.
    is_dirty = saved is not None and plan_content(state) != saved
    return {**state, "template_id": action["template_id"], "is_dirty": is_dirty, "is_saving": False}


def _save_error(state: dict[str, Any], action: dict[str, Any]) -> dict[str, Any]:
    return {**state, "is_saving": False}


def _preset_saved(state: dict[str, Any], action: dict[str, Any]) -> dict[str, Any]:
    return {**state, "is_saving": False}


_HANDLERS = {
    ADD_MUSCLE: _add_muscle,
    REMOVE_MUSCLE: _remove_muscle,
    SET_SETS: _set_sets,
    SET_REPS: _set_reps,
    SET_ALL_SETS_FOR_MUSCLE: _set_all_sets_for_muscle,
    REORDER: _reorder,
    MOVE_MUSCLE: _move_muscle,
    PASTE_DAY: _paste_day,
    LOAD_PRESET: _load_preset,
    LOAD_TEMPLATE: _load_template,
    CLEAR_ALL: _clear_all,
    SET_NAME: _set_name,
    SET_DESCRIPTION: _set_description,
    SELECT_DAY: _select_day,
    SAVING: _saving,
    MARK_SAVED: _mark_saved,
    SAVE_ERROR: _save_error,
    PRESET_SAVED: _preset_saved,
}


def reduce_plan(state: dict[str, Any], action: dict[str, Any]) -> dict[str, Any]:
    """Return the plan that results from applying ``action`` to ``state``."""
    handler = _HANDLERS.get(str(action.get("type") or ""))
    if handler is None:
        raise ValueError(f"Unknown plan action: {action.get('type')!r}")
    return handler(state, action)
