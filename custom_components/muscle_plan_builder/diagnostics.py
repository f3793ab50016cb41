"""Diagnostics support for Muscle Plan Builder.

This file is picked up by Home Assistant automatically when present.
"""

from __future__ import annotations

from typing import Any

from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant

from .const import CONF_COACH_ID, DOMAIN
from .version import BACKEND_VERSION


def _redact(value: Any) -> Any:
    if value is None:
        return None
    raw = str(value)
    if not raw:
        return ""
    if len(raw) <= 4:
        return "***"
    return f"{raw[:2]}***{raw[-2:]}"


async def async_get_config_entry_diagnostics(
    hass: HomeAssistant,
    entry: ConfigEntry,
) -> dict[str, Any]:
    """Return diagnostics for a config entry (coach id redacted)."""
    coordinator = hass.data.get(DOMAIN, {}).get(entry.entry_id)
    data = dict(entry.data)
    data[CONF_COACH_ID] = _redact(data.get(CONF_COACH_ID))

    payload: dict[str, Any] = {
        "version": BACKEND_VERSION,
        "entry": {
            "entry_id": entry.entry_id,
            "title": entry.title,
            "version": entry.version,
            "data": data,
            "options": dict(entry.options),
        },
    }

    if coordinator is not None:
        payload["coordinator"] = {
            "last_update_success": bool(getattr(coordinator, "last_update_success", False)),
            "last_exception": repr(getattr(coordinator, "last_exception", None)),
            "data": getattr(coordinator, "data", None),
        }
        payload["sessions"] = [
            {
                "session_id": s.session_id,
                "template_id": s.state.get("template_id"),
                "slot_count": len(s.state.get("slots", [])),
                "is_dirty": bool(s.state.get("is_dirty")),
                "is_saving": bool(s.state.get("is_saving")),
                "history": s.history.status,
                "autosave_status": s.autosave.status,
                "save_count": s.autosave.save_count,
                "last_error": s.autosave.last_error,
            }
            for s in coordinator.sessions.values()
        ]

    return payload
