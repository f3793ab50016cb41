"""Debounced background saving for an open muscle plan.

Status moves ``idle -> pending -> saving -> idle | error``. Only plans that
already have a ``template_id`` are autosaved; the first save is always an
explicit user action because it allocates the record.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime
from typing import Any

from homeassistant.core import CALLBACK_TYPE, HomeAssistant, callback
from homeassistant.helpers.event import async_call_later

from .const import DEFAULT_AUTOSAVE_DELAY, DEFAULT_SAVE_TIMEOUT, DOMAIN
from .gateway import GatewayError, PersistenceGateway, async_with_timeout
from .plan import MARK_SAVED, PRESET_SAVED, SAVE_ERROR, SAVING, plan_content

_LOGGER = logging.getLogger(__name__)

STATUS_IDLE = "idle"
STATUS_PENDING = "pending"
STATUS_SAVING = "saving"
STATUS_ERROR = "error"

EVENT_SAVED = "saved"
EVENT_PRESET_SAVED = "preset_saved"
EVENT_ERROR = "error"

SaveListener = Callable[[str, dict[str, Any]], None]


def _should_autosave(state: dict[str, Any]) -> bool:
    return bool(state.get("is_dirty")) and bool(state.get("template_id")) and not state.get("is_saving")


class AutosaveController:
    """Coalesces bursts of edits into one gateway update."""

    def __init__(
        self,
        hass: HomeAssistant,
        *,
        get_state: Callable[[], dict[str, Any]],
        dispatch: Callable[[dict[str, Any]], Any],
        gateway: PersistenceGateway,
        coach_id: str = "",
        delay: float = DEFAULT_AUTOSAVE_DELAY,
        timeout: float = DEFAULT_SAVE_TIMEOUT,
    ) -> None:
        self.hass = hass
        self._get_state = get_state
        self._dispatch = dispatch
        self._gateway = gateway
        self._coach_id = coach_id
        self.delay = float(delay)
        self.timeout = float(timeout)
        self.status = STATUS_IDLE
        self.last_error: str | None = None
        self.save_count = 0
        self._unsub_timer: CALLBACK_TYPE | None = None
        self._task: asyncio.Task[None] | None = None
        self._failed_content: dict[str, Any] | None = None
        self._listeners: list[SaveListener] = []

    @property
    def pending(self) -> bool:
        return self._unsub_timer is not None

    def async_add_listener(self, listener: SaveListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _remove

    def _emit(self, event: str, payload: dict[str, Any]) -> None:
        for listener in list(self._listeners):
            try:
                listener(event, payload)
            except Exception:  # noqa: BLE001
                _LOGGER.exception("Save listener failed for event=%s", event)

    def notify(self) -> None:
        """Called after every state change; (re)arms the debounce timer."""
        state = self._get_state()
        if not _should_autosave(state):
            return
        if self._failed_content is not None and plan_content(state) == self._failed_content:
            # Nothing new since the last failure; wait for an edit or an explicit save.
            return
        self.cancel()
        self._unsub_timer = async_call_later(self.hass, self.delay, self._fire)
        self.status = STATUS_PENDING
        _LOGGER.debug("Autosave scheduled in %.2fs for template_id=%s", self.delay, state.get("template_id"))

    def cancel(self) -> None:
        if self._unsub_timer is not None:
            self._unsub_timer()
            self._unsub_timer = None
            if self.status == STATUS_PENDING:
                self.status = STATUS_IDLE

    @callback
    def _fire(self, _now: datetime) -> None:
        self._unsub_timer = None
        self._task = self.hass.async_create_background_task(self._async_autosave(), f"{DOMAIN} autosave")

    async def _async_autosave(self) -> None:
        state = self._get_state()
        if not _should_autosave(state):
            # A manual save or an undo got there first.
            if self.status == STATUS_PENDING:
                self.status = STATUS_IDLE
            return
        await self._async_write(state, label="Autosave muscle plan")

    async def async_flush(self) -> None:
        """Run a pending autosave now and wait for any save in flight."""
        if self._unsub_timer is not None:
            self._unsub_timer()
            self._unsub_timer = None
            await self._async_autosave()
        if self._task is not None and not self._task.done():
            await self._task

    async def async_save(self) -> str | None:
        """Explicit save: skip the debounce, create the record on first save."""
        self.cancel()
        state = self._get_state()
        if state.get("is_saving"):
            _LOGGER.warning("Save requested while another save is in flight; ignoring")
            return None
        return await self._async_write(state, label="Save muscle plan")

    async def async_save_as_preset(self) -> str | None:
        """Store the current plan as a new preset record without switching to it."""
        state = self._get_state()
        if state.get("is_saving"):
            _LOGGER.warning("Preset save requested while another save is in flight; ignoring")
            return None
        content = plan_content(state)
        self._dispatch({"type": SAVING})
        self.status = STATUS_SAVING
        try:
            preset_id = await async_with_timeout(
                self._gateway.async_create({**content, "coach_id": self._coach_id}, is_preset=True),
                self.timeout,
                "Save preset",
            )
        except Exception as err:  # noqa: BLE001
            self._fail(err, "Error saving preset")
            return None
        self.status = STATUS_IDLE
        self._dispatch({"type": PRESET_SAVED})
        _LOGGER.debug("Saved preset %s", preset_id)
        self._emit(EVENT_PRESET_SAVED, {"preset_id": preset_id})
        return preset_id

    async def _async_write(self, state: dict[str, Any], *, label: str) -> str | None:
        template_id = state.get("template_id")
        content = plan_content(state)
        self._dispatch({"type": SAVING})
        self.status = STATUS_SAVING
        try:
            if template_id:
                await async_with_timeout(self._gateway.async_update(template_id, content), self.timeout, label)
            else:
                template_id = await async_with_timeout(
                    self._gateway.async_create({**content, "coach_id": self._coach_id}, is_preset=False),
                    self.timeout,
                    label,
                )
        except Exception as err:  # noqa: BLE001
            self._fail(err, "Error saving", content=content)
            return None

        self.save_count += 1
        self.last_error = None
        self._failed_content = None
        self.status = STATUS_IDLE
        self._dispatch({"type": MARK_SAVED, "template_id": template_id, "saved": content})
        _LOGGER.debug("%s complete for template_id=%s", label, template_id)
        self._emit(EVENT_SAVED, {"template_id": template_id})
        return template_id

    def _fail(self, err: Exception, title: str, *, content: dict[str, Any] | None = None) -> None:
        if isinstance(err, GatewayError):
            _LOGGER.warning("%s: %s", title, err)
        else:
            _LOGGER.exception("%s: unexpected failure", title)
        self.last_error = str(err) or err.__class__.__name__
        if content is not None:
            self._failed_content = content
        self.status = STATUS_ERROR
        self._dispatch({"type": SAVE_ERROR})
        self._emit(EVENT_ERROR, {"title": title, "message": self.last_error})
