"""Editor session: one open muscle plan and everything attached to it."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any
from uuid import uuid4

from homeassistant.core import HomeAssistant

from .autosave import AutosaveController
from .const import DEFAULT_AUTOSAVE_DELAY, DEFAULT_HISTORY_LIMIT, DEFAULT_SAVE_TIMEOUT
from .gateway import PersistenceGateway, async_with_timeout
from .history import PlanHistory
from .hydration import hydrate_record
from .plan import LOAD_PRESET, LOAD_TEMPLATE, REDO, UNDO

_LOGGER = logging.getLogger(__name__)

StateListener = Callable[[dict[str, Any]], None]


class MusclePlanSession:
    """Owns the plan history, its autosave controller and the gateway handle.

    All methods must be called from the Home Assistant event loop.
    """

    def __init__(
        self,
        hass: HomeAssistant,
        gateway: PersistenceGateway,
        *,
        coach_id: str = "",
        session_id: str | None = None,
        autosave_delay: float = DEFAULT_AUTOSAVE_DELAY,
        save_timeout: float = DEFAULT_SAVE_TIMEOUT,
        history_limit: int = DEFAULT_HISTORY_LIMIT,
    ) -> None:
        self.session_id = session_id or f"session_{uuid4().hex[:10]}"
        self.coach_id = coach_id
        self._gateway = gateway
        self._timeout = float(save_timeout)
        self.history = PlanHistory(limit=history_limit)
        self.autosave = AutosaveController(
            hass,
            get_state=lambda: self.state,
            dispatch=self.dispatch,
            gateway=gateway,
            coach_id=coach_id,
            delay=autosave_delay,
            timeout=save_timeout,
        )
        self._listeners: list[StateListener] = []

    @property
    def state(self) -> dict[str, Any]:
        return self.history.present

    def async_add_listener(self, listener: StateListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _remove

    def dispatch(self, action: dict[str, Any]) -> dict[str, Any]:
        prev = self.history.present
        state = self.history.dispatch(action)
        if state is prev:
            return state
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception:  # noqa: BLE001
                _LOGGER.exception("State listener failed in session %s", self.session_id)
        # Only a real change restarts the debounce.
        self.autosave.notify()
        return state

    def undo(self) -> dict[str, Any]:
        return self.dispatch({"type": UNDO})

    def redo(self) -> dict[str, Any]:
        return self.dispatch({"type": REDO})

    def load_preset(self, slots: list[dict[str, Any]], name: str | None = None) -> dict[str, Any]:
        return self.dispatch({"type": LOAD_PRESET, "slots": slots, "name": name})

    async def async_load(self, template_id: str) -> dict[str, Any]:
        """Load a stored plan into this session.

        Raises ``PlanNotFoundError`` or ``OperationTimeoutError``; no
        placeholder plan is made up on failure.
        """
        record = await async_with_timeout(
            self._gateway.async_load_by_id(template_id), self._timeout, "Load muscle plan"
        )
        payload = hydrate_record(record)
        payload["template_id"] = payload["template_id"] or template_id
        self.autosave.cancel()
        return self.dispatch({"type": LOAD_TEMPLATE, **payload})

    async def async_save(self) -> str | None:
        return await self.autosave.async_save()

    async def async_save_as_preset(self) -> str | None:
        return await self.autosave.async_save_as_preset()

    async def async_close(self) -> None:
        """Flush pending edits before the session is dropped."""
        await self.autosave.async_flush()
        self.autosave.cancel()
        self._listeners.clear()
