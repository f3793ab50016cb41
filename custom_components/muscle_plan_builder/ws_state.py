"""Websocket state helpers."""

from __future__ import annotations

from typing import Any

from .session import MusclePlanSession


def public_state(session: MusclePlanSession) -> dict[str, Any]:
    """Return a stable public payload for the UI."""
    state = session.state
    autosave = session.autosave
    return {
        "session_id": session.session_id,
        "plan": {
            "template_id": state.get("template_id"),
            "name": state.get("name", ""),
            "description": state.get("description", ""),
            "slots": state.get("slots", []),
            "selected_day_index": state.get("selected_day_index"),
            "is_dirty": bool(state.get("is_dirty")),
            "is_saving": bool(state.get("is_saving")),
        },
        "history": {
            "can_undo": session.history.can_undo,
            "can_redo": session.history.can_redo,
            "status": session.history.status,
        },
        "autosave": {
            "status": autosave.status,
            "last_error": autosave.last_error,
        },
    }
