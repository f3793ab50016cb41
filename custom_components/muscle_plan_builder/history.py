"""Bounded undo/redo over whole-plan snapshots."""

from __future__ import annotations

from typing import Any

from .const import DEFAULT_HISTORY_LIMIT
from .plan import (
    LOAD_TEMPLATE,
    MARK_SAVED,
    PRESET_SAVED,
    REDO,
    SAVE_ERROR,
    SAVING,
    SELECT_DAY,
    UNDO,
    new_plan,
    plan_content,
    reduce_plan,
)

# View and save-state transitions are not edits; they never create undo steps.
NON_UNDOABLE = frozenset({SELECT_DAY, SAVING, MARK_SAVED, SAVE_ERROR, PRESET_SAVED, LOAD_TEMPLATE, UNDO, REDO})

# Fields that always reflect the live session rather than the snapshot.
_LIVE_FIELDS = ("template_id", "is_saving", "selected_day_index")


class PlanHistory:
    """Wraps ``reduce_plan`` with past/present/future snapshot stacks.

    ``past`` is oldest-first, ``future`` holds the next redo first.
    """

    def __init__(self, initial: dict[str, Any] | None = None, *, limit: int = DEFAULT_HISTORY_LIMIT) -> None:
        self.limit = max(1, int(limit))
        self.present: dict[str, Any] = initial if initial is not None else new_plan()
        self.past: list[dict[str, Any]] = []
        self.future: list[dict[str, Any]] = []
        self._saved_content: dict[str, Any] | None = (
            plan_content(self.present) if not self.present.get("is_dirty") else None
        )

    @property
    def can_undo(self) -> bool:
        return bool(self.past)

    @property
    def can_redo(self) -> bool:
        return bool(self.future)

    @property
    def status(self) -> str:
        if self.past and self.future:
            return "has_undo_and_redo"
        if self.past:
            return "has_undo"
        if self.future:
            return "has_redo_only"
        return "no_history"

    def dispatch(self, action: dict[str, Any]) -> dict[str, Any]:
        """Apply an action and return the new present state."""
        kind = action.get("type")
        if kind == UNDO:
            self.undo()
            return self.present
        if kind == REDO:
            self.redo()
            return self.present

        prev = self.present
        nxt = reduce_plan(prev, action)

        if kind == LOAD_TEMPLATE:
            self.past.clear()
            self.future.clear()
            self._saved_content = plan_content(nxt)
        elif kind == MARK_SAVED:
            self._saved_content = action.get("saved") or plan_content(nxt)

        if nxt is prev or nxt == prev:
            # Unchanged: keep the current object so callers can test identity.
            return prev
        if kind in NON_UNDOABLE:
            self.present = nxt
            return nxt

        self.past.append(prev)
        if len(self.past) > self.limit:
            del self.past[: len(self.past) - self.limit]
        self.future.clear()
        self.present = nxt
        return nxt

    def undo(self) -> bool:
        if not self.past:
            return False
        self.future.insert(0, self.present)
        self.present = self._restore(self.past.pop())
        return True

    def redo(self) -> bool:
        if not self.future:
            return False
        self.past.append(self.present)
        self.present = self._restore(self.future.pop(0))
        return True

    def _restore(self, snapshot: dict[str, Any]) -> dict[str, Any]:
        restored = {**snapshot, **{k: self.present.get(k) for k in _LIVE_FIELDS}}
        restored["is_dirty"] = plan_content(restored) != self._saved_content
        return restored
