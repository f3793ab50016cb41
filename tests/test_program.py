from __future__ import annotations

from custom_components.muscle_plan_builder.library import load_library_file
from custom_components.muscle_plan_builder.program import build_program, day_breakdown


def _slot(day: int, muscle: str, sets: int, order: int) -> dict:
    return {"id": f"{day}-{muscle}", "day_index": day, "muscle_id": muscle, "sets": sets, "rep_min": 8, "rep_max": 12, "sort_order": order}


def _push_pull() -> list[dict]:
    return [
        _slot(3, "lats", 4, 0),
        _slot(1, "triceps", 3, 1),
        _slot(1, "pecs", 5, 0),
    ]


def test_days_are_grouped_in_order() -> None:
    days = day_breakdown(_push_pull())
    assert [d["day_index"] for d in days] == [1, 3]
    assert [s["muscle_id"] for s in days[0]["slots"]] == ["pecs", "triceps"]
    assert days[0]["total_sets"] == 8


def test_each_slot_becomes_a_draft_strength_module() -> None:
    program = build_program("Push Pull", _push_pull(), load_library_file())

    assert program["title"] == "Push Pull"
    assert program["description"] == "Converted from muscle plan. 3 muscles, 12 total sets."
    assert program["module_count"] == 3

    monday = program["days"][0]
    assert monday["day_title"] == "Mon — Pecs, Triceps"
    assert [m["title"] for m in monday["modules"]] == ["Pecs — 5 sets", "Triceps — 3 sets"]
    assert {m["module_type"] for m in monday["modules"]} == {"strength"}
    assert {m["status"] for m in monday["modules"]} == {"draft"}
    assert monday["modules"][1]["source_muscle_id"] == "triceps"

    assert program["days"][1]["day_title"] == "Wed — Lats"


def test_unknown_muscle_keeps_its_id_as_label() -> None:
    program = build_program("Odd", [_slot(7, "mystery", 2, 0)], load_library_file())
    assert program["days"][0]["day_title"] == "Sun — mystery"
    assert program["description"] == "Converted from muscle plan. 0 muscles, 2 total sets."
