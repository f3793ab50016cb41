"""Normalize plan documents loaded from storage or presets.

Older saved plans predate slot ids and rep ranges, and some were written with
camelCase keys by the previous web editor. Everything that enters the reducer
goes through here first, so the reducer only ever sees the current schema:

- every slot has a unique ``id``
- ``sets`` / ``rep_min`` / ``rep_max`` are present and within bounds
- ``(day_index, muscle_id)`` is unique
- ``sort_order`` is dense (0..n-1) per day
"""

from __future__ import annotations

from typing import Any
from uuid import uuid4

from .const import (
    DEFAULT_PLAN_NAME,
    DEFAULT_REP_MAX,
    DEFAULT_REP_MIN,
    DEFAULT_SETS,
    REPS_MAX,
    REPS_MIN,
    SETS_MAX,
    SETS_MIN,
)

_LEGACY_KEYS = {
    "dayIndex": "day_index",
    "muscleId": "muscle_id",
    "repMin": "rep_min",
    "repMax": "rep_max",
    "sortOrder": "sort_order",
}


def new_slot_id() -> str:
    return f"slot_{uuid4().hex}"


def _to_int(value: Any, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def clamp_sets(value: Any) -> int:
    return max(SETS_MIN, min(SETS_MAX, _to_int(value, DEFAULT_SETS)))


def clamp_reps(rep_min: Any, rep_max: Any) -> tuple[int, int]:
    lo = max(REPS_MIN, min(REPS_MAX, _to_int(rep_min, DEFAULT_REP_MIN)))
    hi = max(REPS_MIN, min(REPS_MAX, _to_int(rep_max, DEFAULT_REP_MAX)))
    if lo > hi:
        lo, hi = hi, lo
    return lo, hi


def densify(slots: list[dict[str, Any]], days: set[int] | None = None) -> list[dict[str, Any]]:
    """Rewrite sort_order as 0..n-1 per day, keeping relative order.

    Only the given days are touched when ``days`` is passed; slots that already
    carry the right sort_order are returned as the same objects.
    """
    by_day: dict[int, list[dict[str, Any]]] = {}
    for s in slots:
        by_day.setdefault(int(s["day_index"]), []).append(s)

    replaced: dict[int, dict[str, Any]] = {}
    for day, items in by_day.items():
        if days is not None and day not in days:
            continue
        ordered = sorted(enumerate(items), key=lambda pair: (pair[1].get("sort_order", 0), pair[0]))
        for idx, (_, s) in enumerate(ordered):
            if s.get("sort_order") != idx:
                replaced[id(s)] = {**s, "sort_order": idx}
    if not replaced:
        return list(slots)
    return [replaced.get(id(s), s) for s in slots]


def hydrate_slot(raw: dict[str, Any]) -> dict[str, Any] | None:
    """Return a slot in the current schema, or None when it cannot be placed."""
    if not isinstance(raw, dict):
        return None
    data = {_LEGACY_KEYS.get(k, k): v for k, v in raw.items()}

    muscle_id = str(data.get("muscle_id") or "").strip()
    if not muscle_id:
        return None
    try:
        day_index = int(data.get("day_index"))
    except (TypeError, ValueError):
        return None

    rep_min, rep_max = clamp_reps(data.get("rep_min"), data.get("rep_max"))
    return {
        "id": str(data.get("id") or "").strip() or new_slot_id(),
        "day_index": day_index,
        "muscle_id": muscle_id,
        "sets": clamp_sets(data.get("sets")),
        "rep_min": rep_min,
        "rep_max": rep_max,
        "sort_order": _to_int(data.get("sort_order"), 0),
    }


def hydrate_slots(raw_slots: Any) -> list[dict[str, Any]]:
    if not isinstance(raw_slots, list):
        return []

    seen_ids: set[str] = set()
    seen_targets: set[tuple[int, str]] = set()
    # Position in the stored list breaks ties for legacy rows without sort_order.
    positioned: list[tuple[int, dict[str, Any]]] = []
    for pos, raw in enumerate(raw_slots):
        slot = hydrate_slot(raw)
        if slot is None:
            continue
        target = (slot["day_index"], slot["muscle_id"])
        if target in seen_targets:
            continue
        seen_targets.add(target)
        if slot["id"] in seen_ids:
            slot["id"] = new_slot_id()
        seen_ids.add(slot["id"])
        positioned.append((pos, slot))

    positioned.sort(key=lambda pair: (pair[1]["day_index"], pair[1]["sort_order"], pair[0]))
    counters: dict[int, int] = {}
    out: list[dict[str, Any]] = []
    for _, slot in positioned:
        day = slot["day_index"]
        slot["sort_order"] = counters.get(day, 0)
        counters[day] = slot["sort_order"] + 1
        out.append(slot)
    return out


def hydrate_record(record: dict[str, Any]) -> dict[str, Any]:
    """Turn a persisted plan record into a ``load_template`` payload."""
    if not isinstance(record, dict):
        record = {}
    slots = record.get("slots")
    if slots is None:
        slots = record.get("slot_config")
    return {
        "template_id": str(record.get("id") or record.get("template_id") or "") or None,
        "name": str(record.get("name") or "").strip() or DEFAULT_PLAN_NAME,
        "description": str(record.get("description") or ""),
        "slots": hydrate_slots(slots),
    }
