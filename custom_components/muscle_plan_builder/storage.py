"""Storage for Muscle Plan Builder (.storage).

State model (schema v1):
- plans: mapping plan_id -> plan record
  {id, coach_id, name, description, slots, is_preset, converted_program_id,
   created_at, updated_at}
- programs: mapping program_id -> program built from a plan (see program.py)
- rev: monotonic revision, bumped on every write
- updated_at: last write time

Slots are stored exactly as the editor produced them. Records written by the
old web editor used ``slot_config`` for the slot list; those are renamed on
load, the slot contents themselves are left for hydration.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

from homeassistant.core import HomeAssistant
from homeassistant.helpers.storage import Store

from .const import DEFAULT_PLAN_NAME, DOMAIN
from .gateway import PlanNotFoundError

_LOGGER = logging.getLogger(__name__)

_STORAGE_VERSION = 1

# Fields an update may overwrite; everything else on a record is fixed at creation.
_UPDATABLE_FIELDS = ("name", "description", "slots")


def _now_iso() -> str:
    return datetime.now(UTC).isoformat()


def _normalize_record(plan_id: str, raw: dict[str, Any]) -> dict[str, Any]:
    slots = raw.get("slots")
    if slots is None:
        slots = raw.get("slot_config")
    now = _now_iso()
    return {
        "id": plan_id,
        "coach_id": str(raw.get("coach_id") or ""),
        "name": str(raw.get("name") or "").strip() or DEFAULT_PLAN_NAME,
        "description": str(raw.get("description") or ""),
        "slots": [s for s in slots if isinstance(s, dict)] if isinstance(slots, list) else [],
        "is_preset": bool(raw.get("is_preset")),
        "converted_program_id": raw.get("converted_program_id") or None,
        "created_at": str(raw.get("created_at") or "").strip() or now,
        "updated_at": str(raw.get("updated_at") or "").strip() or now,
    }


def plan_summary(record: dict[str, Any]) -> dict[str, Any]:
    """Small listing payload for a plan record."""
    slots = record.get("slots") or []
    return {
        "id": record.get("id"),
        "name": record.get("name"),
        "description": record.get("description", ""),
        "is_preset": bool(record.get("is_preset")),
        "slot_count": len(slots),
        "training_days": len({s.get("day_index", s.get("dayIndex")) for s in slots if isinstance(s, dict)}),
        "converted_program_id": record.get("converted_program_id"),
        "updated_at": record.get("updated_at"),
    }


def matches_query(record: dict[str, Any], query: str | None) -> bool:
    """Case-insensitive substring match on name or description."""
    q = (query or "").strip().lower()
    if not q:
        return True
    return q in str(record.get("name") or "").lower() or q in str(record.get("description") or "").lower()


class MusclePlanStore:
    """Per-config-entry plan records; implements the persistence gateway."""

    def __init__(self, hass: HomeAssistant, entry_id: str) -> None:
        self._store: Store[dict[str, Any]] = Store(hass, _STORAGE_VERSION, f"{DOMAIN}_{entry_id}")
        self._data: dict[str, Any] | None = None

    async def async_load(self) -> dict[str, Any]:
        if self._data is None:
            loaded = await self._store.async_load()
            self._data = loaded if isinstance(loaded, dict) else {}

            self._data.setdefault("schema", 1)
            self._data.setdefault("rev", 1)
            self._data.setdefault("plans", {})
            self._data.setdefault("programs", {})
            self._data.setdefault("updated_at", _now_iso())
            if not isinstance(self._data.get("programs"), dict):
                self._data["programs"] = {}

            plans = self._data.get("plans")
            if not isinstance(plans, dict):
                plans = {}
            self._data["plans"] = {
                str(pid): _normalize_record(str(pid), rec) for pid, rec in plans.items() if isinstance(rec, dict)
            }
        return self._data

    async def async_save(self) -> None:
        state = await self.async_load()
        state["schema"] = 1
        state["rev"] = int(state.get("rev") or 1) + 1
        state["updated_at"] = _now_iso()
        await self._store.async_save(state)

    async def async_load_by_id(self, plan_id: str) -> dict[str, Any]:
        state = await self.async_load()
        record = state["plans"].get(plan_id)
        if record is None:
            raise PlanNotFoundError(plan_id)
        return dict(record)

    async def async_create(self, record: dict[str, Any], *, is_preset: bool = False) -> str:
        state = await self.async_load()
        plan_id = f"plan_{uuid4().hex[:10]}"
        now = _now_iso()
        state["plans"][plan_id] = _normalize_record(
            plan_id,
            {**record, "is_preset": is_preset, "created_at": now, "updated_at": now},
        )
        await self.async_save()
        _LOGGER.debug("Created %s %s", "preset" if is_preset else "plan", plan_id)
        return plan_id

    async def async_update(self, plan_id: str, fields: dict[str, Any]) -> None:
        state = await self.async_load()
        existing = state["plans"].get(plan_id)
        if existing is None:
            raise PlanNotFoundError(plan_id)
        merged = dict(existing)
        for key in _UPDATABLE_FIELDS:
            if key in fields:
                merged[key] = fields[key]
        merged["updated_at"] = _now_iso()
        state["plans"][plan_id] = _normalize_record(plan_id, merged)
        await self.async_save()

    async def async_delete_plan(self, plan_id: str) -> bool:
        state = await self.async_load()
        if state["plans"].pop(plan_id, None) is None:
            return False
        await self.async_save()
        return True

    async def async_duplicate_plan(self, plan_id: str, *, coach_id: str | None = None) -> str:
        """Copy a plan into a new, non-preset record named "<name> (Copy)"."""
        source = await self.async_load_by_id(plan_id)
        return await self.async_create(
            {
                "coach_id": source["coach_id"] if coach_id is None else coach_id,
                "name": f"{source['name']} (Copy)",
                "description": source["description"],
                "slots": [dict(s) for s in source["slots"]],
            },
            is_preset=False,
        )

    async def async_list_plans(
        self, *, include_presets: bool = False, query: str | None = None
    ) -> list[dict[str, Any]]:
        state = await self.async_load()
        records = [
            r
            for r in state["plans"].values()
            if (include_presets or not r.get("is_preset")) and matches_query(r, query)
        ]
        records.sort(key=lambda r: str(r.get("updated_at") or ""), reverse=True)
        return [plan_summary(r) for r in records]

    async def async_list_presets(self) -> list[dict[str, Any]]:
        state = await self.async_load()
        presets = [dict(r) for r in state["plans"].values() if r.get("is_preset")]
        presets.sort(key=lambda r: str(r.get("name") or "").lower())
        return presets

    async def async_create_program(self, program: dict[str, Any], *, source_plan_id: str | None = None) -> str:
        """Store a converted program and link it back to its source plan."""
        state = await self.async_load()
        if source_plan_id and source_plan_id not in state["plans"]:
            raise PlanNotFoundError(source_plan_id)
        program_id = f"program_{uuid4().hex[:10]}"
        state["programs"][program_id] = {**program, "id": program_id, "created_at": _now_iso()}
        if source_plan_id:
            state["plans"][source_plan_id] = {**state["plans"][source_plan_id], "converted_program_id": program_id}
        await self.async_save()
        _LOGGER.debug("Created program %s from plan %s", program_id, source_plan_id)
        return program_id

    async def async_load_program(self, program_id: str) -> dict[str, Any] | None:
        state = await self.async_load()
        program = state["programs"].get(program_id)
        return dict(program) if program is not None else None
