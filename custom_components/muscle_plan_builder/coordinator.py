"""Coordinator for Muscle Plan Builder."""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Any

from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant
from homeassistant.helpers.dispatcher import async_dispatcher_send
from homeassistant.helpers.update_coordinator import DataUpdateCoordinator

from .autosave import EVENT_ERROR
from .const import (
    CONF_AUTOSAVE_DELAY,
    CONF_COACH_ID,
    CONF_HISTORY_LIMIT,
    CONF_SAVE_TIMEOUT,
    DEFAULT_AUTOSAVE_DELAY,
    DEFAULT_COACH_ID,
    DEFAULT_HISTORY_LIMIT,
    DEFAULT_SAVE_TIMEOUT,
    DOMAIN,
    SIGNAL_PLAN_UPDATED,
)
from .hydration import hydrate_record
from .library import MuscleLibrary
from .program import build_program
from .session import MusclePlanSession
from .storage import MusclePlanStore

_LOGGER = logging.getLogger(__name__)


class MusclePlanCoordinator(DataUpdateCoordinator[dict[str, Any]]):
    """Owns the plan store and the editor sessions opened against it."""

    def __init__(self, hass: HomeAssistant, entry: ConfigEntry) -> None:
        self.entry = entry
        self.store = MusclePlanStore(hass, entry.entry_id)
        self.library = MuscleLibrary()
        self.sessions: dict[str, MusclePlanSession] = {}

        super().__init__(
            hass,
            logger=_LOGGER,
            config_entry=entry,
            name=f"{DOMAIN}_{entry.entry_id}",
            update_interval=timedelta(hours=6),
        )

    def _option(self, key: str, default: Any) -> Any:
        opts = self.entry.options or {}
        data = self.entry.data or {}
        return opts.get(key, data.get(key, default))

    @property
    def coach_id(self) -> str:
        return str(self._option(CONF_COACH_ID, DEFAULT_COACH_ID) or "")

    async def _async_update_data(self) -> dict[str, Any]:
        # Single source of truth is storage; sessions write to it through the gateway.
        plans = await self.store.async_list_plans(include_presets=True)
        return {
            "plans": [p for p in plans if not p["is_preset"]],
            "presets": [p for p in plans if p["is_preset"]],
            "open_sessions": len(self.sessions),
        }

    def _session_saved(self, event: str, payload: dict[str, Any]) -> None:
        if event == EVENT_ERROR:
            return
        async_dispatcher_send(self.hass, f"{SIGNAL_PLAN_UPDATED}_{self.entry.entry_id}")
        self.hass.async_create_task(self.async_request_refresh())

    async def async_open_session(self, template_id: str | None = None) -> MusclePlanSession:
        """Start editing a stored plan, or a blank one when no id is given."""
        session = MusclePlanSession(
            self.hass,
            self.store,
            coach_id=self.coach_id,
            autosave_delay=float(self._option(CONF_AUTOSAVE_DELAY, DEFAULT_AUTOSAVE_DELAY)),
            save_timeout=float(self._option(CONF_SAVE_TIMEOUT, DEFAULT_SAVE_TIMEOUT)),
            history_limit=int(self._option(CONF_HISTORY_LIMIT, DEFAULT_HISTORY_LIMIT)),
        )
        if template_id:
            await session.async_load(template_id)
        session.autosave.async_add_listener(self._session_saved)
        self.sessions[session.session_id] = session
        _LOGGER.debug("Opened session %s (template_id=%s)", session.session_id, template_id)
        return session

    def get_session(self, session_id: str) -> MusclePlanSession | None:
        return self.sessions.get(session_id)

    async def async_close_session(self, session_id: str) -> bool:
        session = self.sessions.pop(session_id, None)
        if session is None:
            return False
        await session.async_close()
        _LOGGER.debug("Closed session %s", session_id)
        return True

    async def async_duplicate_plan(self, plan_id: str) -> str:
        new_id = await self.store.async_duplicate_plan(plan_id, coach_id=self.coach_id)
        await self.async_request_refresh()
        return new_id

    async def async_convert_to_program(self, plan_id: str) -> tuple[str, dict[str, Any]]:
        """Build a program from a stored plan and link the plan to it.

        Raises ``PlanNotFoundError`` for unknown ids.
        """
        payload = hydrate_record(await self.store.async_load_by_id(plan_id))
        lib = await self.library.async_load()
        program = build_program(payload["name"], payload["slots"], lib)
        program_id = await self.store.async_create_program(
            {**program, "owner_coach_id": self.coach_id, "source_plan_id": plan_id},
            source_plan_id=plan_id,
        )
        _LOGGER.debug("Converted plan %s to program %s (%s modules)", plan_id, program_id, program["module_count"])
        await self.async_request_refresh()
        return program_id, program

    async def async_close_sessions(self) -> None:
        """Flush and close every open session."""
        for session_id in list(self.sessions):
            try:
                await self.async_close_session(session_id)
            except Exception:  # noqa: BLE001
                _LOGGER.exception("Failed to flush session %s on shutdown", session_id)

    async def async_shutdown(self) -> None:
        await self.async_close_sessions()
        await super().async_shutdown()
