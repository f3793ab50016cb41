"""Turn a muscle plan into a program skeleton.

Every training day becomes a program day titled after its muscles, and every
slot becomes one draft strength module. Exercises are filled in later in the
program editor.
"""

from __future__ import annotations

from typing import Any

from .const import DAYS_OF_WEEK
from .library import muscle_label
from .volume import volume_entries, volume_summary

_TITLE_SEP = " \u2014 "


def day_breakdown(slots: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Slots grouped per training day, days ascending, slots in sort order."""
    by_day: dict[int, list[dict[str, Any]]] = {}
    for slot in slots:
        by_day.setdefault(int(slot["day_index"]), []).append(slot)
    return [
        {
            "day_index": day,
            "slots": sorted(day_slots, key=lambda s: int(s.get("sort_order", 0))),
            "total_sets": sum(int(s["sets"]) for s in day_slots),
        }
        for day, day_slots in sorted(by_day.items())
    ]


def build_program(name: str, slots: list[dict[str, Any]], library: dict[str, Any]) -> dict[str, Any]:
    summary = volume_summary(slots, volume_entries(slots, library))
    days: list[dict[str, Any]] = []
    for day in day_breakdown(slots):
        labels = [muscle_label(library, s["muscle_id"]) or s["muscle_id"] for s in day["slots"]]
        modules = [
            {
                "module_type": "strength",
                "session_type": "strength",
                "session_timing": "anytime",
                "title": f"{label}{_TITLE_SEP}{slot['sets']} sets",
                "sort_order": int(slot.get("sort_order", 0)),
                "status": "draft",
                "source_muscle_id": slot["muscle_id"],
            }
            for slot, label in zip(day["slots"], labels)
        ]
        days.append(
            {
                "day_index": day["day_index"],
                "day_title": f"{DAYS_OF_WEEK[day['day_index'] - 1]}{_TITLE_SEP}{', '.join(labels)}",
                "modules": modules,
            }
        )
    return {
        "title": name,
        "description": (
            f"Converted from muscle plan. {summary['muscles_targeted']} muscles, "
            f"{summary['total_sets']} total sets."
        ),
        "visibility": "private",
        "days": days,
        "module_count": sum(len(d["modules"]) for d in days),
    }
