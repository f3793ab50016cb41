"""Muscle group library loader."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

_DATA_PATH = Path(__file__).parent / "data" / "muscles.json"


def preset_slots(preset: dict[str, Any]) -> list[dict[str, Any]]:
    """Expand a compact preset (day -> [[muscle_id, sets], ...]) into slot dicts.

    Slots carry no ids; hydration assigns fresh ones on load.
    """
    slots: list[dict[str, Any]] = []
    days = preset.get("days") if isinstance(preset.get("days"), dict) else {}
    for day, muscles in days.items():
        for order, (muscle_id, sets) in enumerate(muscles or []):
            slots.append(
                {
                    "day_index": int(day),
                    "muscle_id": str(muscle_id),
                    "sets": int(sets),
                    "sort_order": order,
                }
            )
    return slots


def load_library_file(path: Path | None = None) -> dict[str, Any]:
    raw = json.loads((path or _DATA_PATH).read_text(encoding="utf-8"))
    if not isinstance(raw, dict):
        raw = {}
    raw.setdefault("muscle_groups", [])
    raw.setdefault("subdivisions", [])
    raw.setdefault("body_regions", {})
    presets = []
    for p in raw.get("presets") or []:
        if not isinstance(p, dict):
            continue
        presets.append(
            {
                "name": str(p.get("name") or ""),
                "description": str(p.get("description") or ""),
                "slots": preset_slots(p),
            }
        )
    raw["presets"] = presets
    return raw


def resolve_parent_muscle_id(library: dict[str, Any], muscle_id: str) -> str:
    """Subdivisions roll up to their parent group; parents map to themselves."""
    for sub in library.get("subdivisions", []):
        if sub.get("id") == muscle_id:
            return str(sub.get("parent_id") or muscle_id)
    return muscle_id


def muscle_group(library: dict[str, Any], muscle_id: str) -> dict[str, Any] | None:
    return next((m for m in library.get("muscle_groups", []) if m.get("id") == muscle_id), None)


def muscle_label(library: dict[str, Any], muscle_id: str) -> str | None:
    group = muscle_group(library, muscle_id)
    if group is not None:
        return str(group.get("label") or muscle_id)
    for sub in library.get("subdivisions", []):
        if sub.get("id") == muscle_id:
            return str(sub.get("label") or muscle_id)
    return None


class MuscleLibrary:
    """Loads bundled muscle data from JSON and caches it."""

    def __init__(self) -> None:
        self._cache: dict[str, Any] | None = None

    async def async_load(self) -> dict[str, Any]:
        if self._cache is not None:
            return self._cache
        self._cache = load_library_file()
        return self._cache
