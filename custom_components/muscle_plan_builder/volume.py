"""Weekly volume analysis for a muscle plan.

Landmarks follow the usual sets-per-week scheme:
MV (maintenance) < MEV (minimum effective) < MAV (maximum adaptive) < MRV
(maximum recoverable).
"""

from __future__ import annotations

from typing import Any

from .library import muscle_label, resolve_parent_muscle_id

ZONE_BELOW_MV = "below_mv"
ZONE_MAINTENANCE = "maintenance"
ZONE_PRODUCTIVE = "productive"
ZONE_APPROACHING_MRV = "approaching_mrv"
ZONE_OVER_MRV = "over_mrv"


def landmark_zone(sets: int, landmarks: dict[str, Any]) -> str:
    if sets < int(landmarks.get("mv") or 0):
        return ZONE_BELOW_MV
    if sets < int(landmarks.get("mev") or 0):
        return ZONE_MAINTENANCE
    if sets <= int(landmarks.get("mav") or 0):
        return ZONE_PRODUCTIVE
    if sets <= int(landmarks.get("mrv") or 0):
        return ZONE_APPROACHING_MRV
    return ZONE_OVER_MRV


def volume_entries(slots: list[dict[str, Any]], library: dict[str, Any]) -> list[dict[str, Any]]:
    """Per muscle group: total sets, frequency, zone and per-day breakdown.

    Muscles unknown to the library are left out.
    """
    totals: dict[str, dict[int, int]] = {}
    for s in slots:
        parent = resolve_parent_muscle_id(library, s["muscle_id"])
        days = totals.setdefault(parent, {})
        days[s["day_index"]] = days.get(s["day_index"], 0) + int(s["sets"])

    entries = []
    for group in library.get("muscle_groups", []):
        days = totals.get(group["id"])
        if not days:
            continue
        total = sum(days.values())
        entries.append(
            {
                "muscle_id": group["id"],
                "label": group.get("label", group["id"]),
                "body_region": group.get("body_region"),
                "total_sets": total,
                "frequency": len(days),
                "zone": landmark_zone(total, group.get("landmarks") or {}),
                "day_breakdown": [{"day_index": d, "sets": n} for d, n in sorted(days.items())],
            }
        )
    entries.sort(key=lambda e: e["total_sets"], reverse=True)
    return entries


def volume_summary(slots: list[dict[str, Any]], entries: list[dict[str, Any]]) -> dict[str, int]:
    total_sets = sum(int(s["sets"]) for s in slots)
    targeted = len(entries)
    return {
        "total_sets": total_sets,
        "muscles_targeted": targeted,
        "training_days": len({s["day_index"] for s in slots}),
        "avg_sets_per_muscle": round(total_sets / targeted) if targeted else 0,
    }


def frequency_matrix(slots: list[dict[str, Any]]) -> dict[str, dict[int, int]]:
    """muscle_id -> day_index -> sets."""
    matrix: dict[str, dict[int, int]] = {}
    for s in slots:
        row = matrix.setdefault(s["muscle_id"], {})
        row[s["day_index"]] = row.get(s["day_index"], 0) + int(s["sets"])
    return matrix


def placement_counts(slots: list[dict[str, Any]]) -> dict[str, int]:
    counts: dict[str, int] = {}
    for s in slots:
        counts[s["muscle_id"]] = counts.get(s["muscle_id"], 0) + 1
    return counts


def consecutive_day_warnings(slots: list[dict[str, Any]], library: dict[str, Any]) -> list[str]:
    """Flag muscles trained on back-to-back days."""
    by_muscle: dict[str, set[int]] = {}
    for s in slots:
        by_muscle.setdefault(s["muscle_id"], set()).add(s["day_index"])

    warnings: list[str] = []
    for muscle_id, days in by_muscle.items():
        label = muscle_label(library, muscle_id)
        if label is None:
            continue
        ordered = sorted(days)
        for a, b in zip(ordered, ordered[1:]):
            if b - a == 1:
                warnings.append(f"{label} on consecutive days ({a} & {b})")
    return warnings


def analyze_plan(slots: list[dict[str, Any]], library: dict[str, Any]) -> dict[str, Any]:
    entries = volume_entries(slots, library)
    return {
        "entries": entries,
        "summary": volume_summary(slots, entries),
        "frequency_matrix": {m: {str(d): n for d, n in row.items()} for m, row in frequency_matrix(slots).items()},
        "placement_counts": placement_counts(slots),
        "warnings": consecutive_day_warnings(slots, library),
    }

