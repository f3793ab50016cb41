from __future__ import annotations

from custom_components.muscle_plan_builder.library import load_library_file, resolve_parent_muscle_id
from custom_components.muscle_plan_builder.volume import (
    analyze_plan,
    consecutive_day_warnings,
    landmark_zone,
    volume_entries,
)


def _slot(day: int, muscle: str, sets: int) -> dict:
    return {"id": f"{day}-{muscle}", "day_index": day, "muscle_id": muscle, "sets": sets, "rep_min": 8, "rep_max": 12, "sort_order": 0}


def test_landmark_zones() -> None:
    landmarks = {"mv": 6, "mev": 10, "mav": 20, "mrv": 24}
    assert landmark_zone(5, landmarks) == "below_mv"
    assert landmark_zone(8, landmarks) == "maintenance"
    assert landmark_zone(20, landmarks) == "productive"
    assert landmark_zone(24, landmarks) == "approaching_mrv"
    assert landmark_zone(25, landmarks) == "over_mrv"


def test_subdivisions_roll_up_to_parent() -> None:
    lib = load_library_file()
    assert resolve_parent_muscle_id(lib, "pecs_clavicular") == "pecs"
    assert resolve_parent_muscle_id(lib, "pecs") == "pecs"

    entries = volume_entries([_slot(1, "pecs_clavicular", 4), _slot(4, "pecs", 6), _slot(1, "lats", 3)], lib)
    assert entries[0]["muscle_id"] == "pecs"
    assert entries[0]["total_sets"] == 10
    assert entries[0]["frequency"] == 2
    assert entries[0]["zone"] == "productive"
    assert entries[0]["day_breakdown"] == [{"day_index": 1, "sets": 4}, {"day_index": 4, "sets": 6}]


def test_consecutive_day_warning() -> None:
    lib = load_library_file()
    warnings = consecutive_day_warnings([_slot(1, "quads", 4), _slot(2, "quads", 4), _slot(4, "lats", 3)], lib)
    assert warnings == ["Quads on consecutive days (1 & 2)"]


def test_system_presets_load_as_slots() -> None:
    lib = load_library_file()
    names = [p["name"] for p in lib["presets"]]
    assert "Push / Pull / Legs" in names
    ppl = next(p for p in lib["presets"] if p["name"] == "Push / Pull / Legs")
    assert len(ppl["slots"]) == 20
    assert {s["day_index"] for s in ppl["slots"]} == {1, 2, 3, 4, 5, 6}


def test_analyze_plan_summary() -> None:
    lib = load_library_file()
    result = analyze_plan([_slot(1, "pecs", 4), _slot(1, "triceps", 3), _slot(3, "pecs", 4)], lib)
    assert result["summary"] == {
        "total_sets": 11,
        "muscles_targeted": 2,
        "training_days": 2,
        "avg_sets_per_muscle": 6,
    }
    assert result["placement_counts"] == {"pecs": 2, "triceps": 1}
    assert result["frequency_matrix"]["pecs"] == {"1": 4, "3": 4}
