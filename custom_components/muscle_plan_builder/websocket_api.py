"""Websocket API for Muscle Plan Builder."""

from __future__ import annotations

from typing import Any

import voluptuous as vol

from homeassistant.components import websocket_api
from homeassistant.core import HomeAssistant, callback

from .const import DOMAIN
from .gateway import GatewayError, PlanNotFoundError
from .plan import (
    ADD_MUSCLE,
    CLEAR_ALL,
    LOAD_PRESET,
    MOVE_MUSCLE,
    PASTE_DAY,
    REMOVE_MUSCLE,
    REORDER,
    SELECT_DAY,
    SET_ALL_SETS_FOR_MUSCLE,
    SET_DESCRIPTION,
    SET_NAME,
    SET_REPS,
    SET_SETS,
)
from .volume import analyze_plan
from .ws_state import public_state

_SLOT_SCHEMA = vol.Schema(
    {
        vol.Optional("id"): vol.Any(None, str),
        vol.Required("day_index"): vol.Coerce(int),
        vol.Required("muscle_id"): str,
        vol.Optional("sets"): vol.Coerce(int),
        vol.Optional("rep_min"): vol.Coerce(int),
        vol.Optional("rep_max"): vol.Coerce(int),
        vol.Optional("sort_order"): vol.Coerce(int),
    }
)

# Only edit intents are accepted from the UI; save-state transitions stay server-side.
_ACTION_SCHEMAS: dict[str, vol.Schema] = {
    ADD_MUSCLE: vol.Schema(
        {
            vol.Required("type"): ADD_MUSCLE,
            vol.Required("day_index"): vol.Coerce(int),
            vol.Required("muscle_id"): str,
            vol.Optional("sets"): vol.Coerce(int),
        }
    ),
    REMOVE_MUSCLE: vol.Schema({vol.Required("type"): REMOVE_MUSCLE, vol.Required("slot_id"): str}),
    SET_SETS: vol.Schema(
        {vol.Required("type"): SET_SETS, vol.Required("slot_id"): str, vol.Required("sets"): vol.Coerce(int)}
    ),
    SET_REPS: vol.Schema(
        {
            vol.Required("type"): SET_REPS,
            vol.Required("slot_id"): str,
            vol.Required("rep_min"): vol.Coerce(int),
            vol.Required("rep_max"): vol.Coerce(int),
        }
    ),
    SET_ALL_SETS_FOR_MUSCLE: vol.Schema(
        {
            vol.Required("type"): SET_ALL_SETS_FOR_MUSCLE,
            vol.Required("muscle_id"): str,
            vol.Required("sets"): vol.Coerce(int),
        }
    ),
    REORDER: vol.Schema(
        {
            vol.Required("type"): REORDER,
            vol.Required("day_index"): vol.Coerce(int),
            vol.Required("from_index"): vol.Coerce(int),
            vol.Required("to_index"): vol.Coerce(int),
        }
    ),
    MOVE_MUSCLE: vol.Schema(
        {
            vol.Required("type"): MOVE_MUSCLE,
            vol.Required("slot_id"): str,
            vol.Required("to_day"): vol.Coerce(int),
            vol.Required("to_index"): vol.Coerce(int),
        }
    ),
    PASTE_DAY: vol.Schema(
        {vol.Required("type"): PASTE_DAY, vol.Required("from_day"): vol.Coerce(int), vol.Required("to_day"): vol.Coerce(int)}
    ),
    LOAD_PRESET: vol.Schema(
        {vol.Required("type"): LOAD_PRESET, vol.Required("slots"): [_SLOT_SCHEMA], vol.Optional("name"): str}
    ),
    CLEAR_ALL: vol.Schema({vol.Required("type"): CLEAR_ALL}),
    SET_NAME: vol.Schema({vol.Required("type"): SET_NAME, vol.Required("name"): str}),
    SET_DESCRIPTION: vol.Schema({vol.Required("type"): SET_DESCRIPTION, vol.Required("description"): str}),
    SELECT_DAY: vol.Schema({vol.Required("type"): SELECT_DAY, vol.Required("day_index"): vol.Coerce(int)}),
}


def validate_action(raw: dict[str, Any]) -> dict[str, Any]:
    """Validate an edit intent from the UI; raises ``vol.Invalid``."""
    schema = _ACTION_SCHEMAS.get(str(raw.get("type") or ""))
    if schema is None:
        raise vol.Invalid(f"Unsupported action type: {raw.get('type')!r}")
    return schema(raw)


def _coordinator(hass: HomeAssistant, connection: websocket_api.ActiveConnection, msg: dict[str, Any]):
    entry_id = msg["entry_id"]
    coordinator = hass.data.get(DOMAIN, {}).get(entry_id)
    if coordinator is None:
        connection.send_error(msg["id"], "entry_not_found", f"No entry found for entry_id={entry_id}")
    return coordinator


def _session(hass: HomeAssistant, connection: websocket_api.ActiveConnection, msg: dict[str, Any]):
    coordinator = _coordinator(hass, connection, msg)
    if coordinator is None:
        return None
    session = coordinator.get_session(msg["session_id"])
    if session is None:
        connection.send_error(msg["id"], "session_not_found", f"No session found for session_id={msg['session_id']}")
    return session


@websocket_api.websocket_command({vol.Required("type"): "muscle_plan_builder/list_entries"})
@websocket_api.async_response
async def ws_list_entries(
    hass: HomeAssistant,
    connection: websocket_api.ActiveConnection,
    msg: dict[str, Any],
) -> None:
    entries = hass.config_entries.async_entries(DOMAIN)
    payload = [{"entry_id": entry.entry_id, "title": entry.title} for entry in entries]
    connection.send_result(msg["id"], {"entries": payload})


@websocket_api.websocket_command(
    {
        vol.Required("type"): "muscle_plan_builder/get_library",
        vol.Required("entry_id"): str,
    }
)
@websocket_api.async_response
async def ws_get_library(
    hass: HomeAssistant,
    connection: websocket_api.ActiveConnection,
    msg: dict[str, Any],
) -> None:
    coordinator = _coordinator(hass, connection, msg)
    if coordinator is None:
        return
    lib = await coordinator.library.async_load()
    coach_presets = await coordinator.store.async_list_presets()
    connection.send_result(
        msg["id"],
        {
            "entry_id": msg["entry_id"],
            "muscle_groups": lib.get("muscle_groups", []),
            "subdivisions": lib.get("subdivisions", []),
            "body_regions": lib.get("body_regions", {}),
            "system_presets": lib.get("presets", []),
            "coach_presets": coach_presets,
        },
    )


@websocket_api.websocket_command(
    {
        vol.Required("type"): "muscle_plan_builder/list_plans",
        vol.Required("entry_id"): str,
        vol.Optional("include_presets", default=False): bool,
        vol.Optional("query"): str,
    }
)
@websocket_api.async_response
async def ws_list_plans(
    hass: HomeAssistant,
    connection: websocket_api.ActiveConnection,
    msg: dict[str, Any],
) -> None:
    coordinator = _coordinator(hass, connection, msg)
    if coordinator is None:
        return
    plans = await coordinator.store.async_list_plans(
        include_presets=bool(msg["include_presets"]), query=msg.get("query")
    )
    connection.send_result(msg["id"], {"entry_id": msg["entry_id"], "plans": plans})


@websocket_api.websocket_command(
    {
        vol.Required("type"): "muscle_plan_builder/duplicate_plan",
        vol.Required("entry_id"): str,
        vol.Required("plan_id"): str,
    }
)
@websocket_api.async_response
async def ws_duplicate_plan(
    hass: HomeAssistant,
    connection: websocket_api.ActiveConnection,
    msg: dict[str, Any],
) -> None:
    coordinator = _coordinator(hass, connection, msg)
    if coordinator is None:
        return
    try:
        plan_id = await coordinator.async_duplicate_plan(msg["plan_id"])
    except PlanNotFoundError as e:
        connection.send_error(msg["id"], "not_found", str(e))
        return
    connection.send_result(msg["id"], {"entry_id": msg["entry_id"], "plan_id": plan_id})


@websocket_api.websocket_command(
    {
        vol.Required("type"): "muscle_plan_builder/delete_plan",
        vol.Required("entry_id"): str,
        vol.Required("plan_id"): str,
    }
)
@websocket_api.async_response
async def ws_delete_plan(
    hass: HomeAssistant,
    connection: websocket_api.ActiveConnection,
    msg: dict[str, Any],
) -> None:
    coordinator = _coordinator(hass, connection, msg)
    if coordinator is None:
        return
    if not await coordinator.store.async_delete_plan(msg["plan_id"]):
        connection.send_error(msg["id"], "not_found", f"No plan found for plan_id={msg['plan_id']}")
        return
    await coordinator.async_request_refresh()
    connection.send_result(msg["id"], {"entry_id": msg["entry_id"], "plan_id": msg["plan_id"]})


@websocket_api.websocket_command(
    {
        vol.Required("type"): "muscle_plan_builder/open_session",
        vol.Required("entry_id"): str,
        vol.Optional("template_id"): str,
    }
)
@websocket_api.async_response
async def ws_open_session(
    hass: HomeAssistant,
    connection: websocket_api.ActiveConnection,
    msg: dict[str, Any],
) -> None:
    coordinator = _coordinator(hass, connection, msg)
    if coordinator is None:
        return
    try:
        session = await coordinator.async_open_session(msg.get("template_id"))
    except PlanNotFoundError as e:
        connection.send_error(msg["id"], "not_found", str(e))
        return
    except GatewayError as e:
        connection.send_error(msg["id"], "load_failed", str(e))
        return

    session_id = session.session_id

    @callback
    def _close_on_disconnect() -> None:
        # Flush and drop the session when the editor's connection goes away.
        hass.async_create_task(coordinator.async_close_session(session_id))

    connection.subscriptions[msg["id"]] = _close_on_disconnect
    connection.send_result(msg["id"], {"entry_id": msg["entry_id"], "state": public_state(session)})


@websocket_api.websocket_command(
    {
        vol.Required("type"): "muscle_plan_builder/close_session",
        vol.Required("entry_id"): str,
        vol.Required("session_id"): str,
    }
)
@websocket_api.async_response
async def ws_close_session(
    hass: HomeAssistant,
    connection: websocket_api.ActiveConnection,
    msg: dict[str, Any],
) -> None:
    coordinator = _coordinator(hass, connection, msg)
    if coordinator is None:
        return
    closed = await coordinator.async_close_session(msg["session_id"])
    connection.send_result(msg["id"], {"entry_id": msg["entry_id"], "closed": closed})


@websocket_api.websocket_command(
    {
        vol.Required("type"): "muscle_plan_builder/get_state",
        vol.Required("entry_id"): str,
        vol.Required("session_id"): str,
    }
)
@websocket_api.async_response
async def ws_get_state(
    hass: HomeAssistant,
    connection: websocket_api.ActiveConnection,
    msg: dict[str, Any],
) -> None:
    session = _session(hass, connection, msg)
    if session is None:
        return
    connection.send_result(msg["id"], {"entry_id": msg["entry_id"], "state": public_state(session)})


@websocket_api.websocket_command(
    {
        vol.Required("type"): "muscle_plan_builder/dispatch",
        vol.Required("entry_id"): str,
        vol.Required("session_id"): str,
        vol.Required("action"): dict,
    }
)
@websocket_api.async_response
async def ws_dispatch(
    hass: HomeAssistant,
    connection: websocket_api.ActiveConnection,
    msg: dict[str, Any],
) -> None:
    session = _session(hass, connection, msg)
    if session is None:
        return
    try:
        action = validate_action(msg["action"])
    except vol.Invalid as e:
        connection.send_error(msg["id"], "invalid_action", str(e))
        return
    session.dispatch(action)
    connection.send_result(msg["id"], {"entry_id": msg["entry_id"], "state": public_state(session)})


@websocket_api.websocket_command(
    {
        vol.Required("type"): "muscle_plan_builder/undo",
        vol.Required("entry_id"): str,
        vol.Required("session_id"): str,
    }
)
@websocket_api.async_response
async def ws_undo(
    hass: HomeAssistant,
    connection: websocket_api.ActiveConnection,
    msg: dict[str, Any],
) -> None:
    session = _session(hass, connection, msg)
    if session is None:
        return
    session.undo()
    connection.send_result(msg["id"], {"entry_id": msg["entry_id"], "state": public_state(session)})


@websocket_api.websocket_command(
    {
        vol.Required("type"): "muscle_plan_builder/redo",
        vol.Required("entry_id"): str,
        vol.Required("session_id"): str,
    }
)
@websocket_api.async_response
async def ws_redo(
    hass: HomeAssistant,
    connection: websocket_api.ActiveConnection,
    msg: dict[str, Any],
) -> None:
    session = _session(hass, connection, msg)
    if session is None:
        return
    session.redo()
    connection.send_result(msg["id"], {"entry_id": msg["entry_id"], "state": public_state(session)})


@websocket_api.websocket_command(
    {
        vol.Required("type"): "muscle_plan_builder/save",
        vol.Required("entry_id"): str,
        vol.Required("session_id"): str,
    }
)
@websocket_api.async_response
async def ws_save(
    hass: HomeAssistant,
    connection: websocket_api.ActiveConnection,
    msg: dict[str, Any],
) -> None:
    session = _session(hass, connection, msg)
    if session is None:
        return
    template_id = await session.async_save()
    # Save failures are reported in the state payload, not as websocket errors.
    connection.send_result(
        msg["id"],
        {"entry_id": msg["entry_id"], "ok": template_id is not None, "state": public_state(session)},
    )


@websocket_api.websocket_command(
    {
        vol.Required("type"): "muscle_plan_builder/save_as_preset",
        vol.Required("entry_id"): str,
        vol.Required("session_id"): str,
    }
)
@websocket_api.async_response
async def ws_save_as_preset(
    hass: HomeAssistant,
    connection: websocket_api.ActiveConnection,
    msg: dict[str, Any],
) -> None:
    session = _session(hass, connection, msg)
    if session is None:
        return
    preset_id = await session.async_save_as_preset()
    connection.send_result(
        msg["id"],
        {
            "entry_id": msg["entry_id"],
            "ok": preset_id is not None,
            "preset_id": preset_id,
            "state": public_state(session),
        },
    )


@websocket_api.websocket_command(
    {
        vol.Required("type"): "muscle_plan_builder/get_volume",
        vol.Required("entry_id"): str,
        vol.Required("session_id"): str,
    }
)
@websocket_api.async_response
async def ws_get_volume(
    hass: HomeAssistant,
    connection: websocket_api.ActiveConnection,
    msg: dict[str, Any],
) -> None:
    session = _session(hass, connection, msg)
    if session is None:
        return
    lib = await hass.data[DOMAIN][msg["entry_id"]].library.async_load()
    connection.send_result(
        msg["id"],
        {"entry_id": msg["entry_id"], "volume": analyze_plan(session.state["slots"], lib)},
    )


@websocket_api.websocket_command(
    {
        vol.Required("type"): "muscle_plan_builder/convert_to_program",
        vol.Required("entry_id"): str,
        vol.Required("session_id"): str,
    }
)
@websocket_api.async_response
async def ws_convert_to_program(
    hass: HomeAssistant,
    connection: websocket_api.ActiveConnection,
    msg: dict[str, Any],
) -> None:
    session = _session(hass, connection, msg)
    if session is None:
        return
    # The program is built from the stored plan, so unsaved edits go first.
    if session.state["is_dirty"] or not session.state["template_id"]:
        if await session.async_save() is None:
            connection.send_error(msg["id"], "save_failed", session.autosave.last_error or "Save failed")
            return
    coordinator = hass.data[DOMAIN][msg["entry_id"]]
    try:
        program_id, program = await coordinator.async_convert_to_program(session.state["template_id"])
    except GatewayError as e:
        connection.send_error(msg["id"], "convert_failed", str(e))
        return
    connection.send_result(
        msg["id"],
        {"entry_id": msg["entry_id"], "program_id": program_id, "program": program},
    )


def async_register(hass: HomeAssistant) -> None:
    websocket_api.async_register_command(hass, ws_list_entries)
    websocket_api.async_register_command(hass, ws_get_library)
    websocket_api.async_register_command(hass, ws_list_plans)
    websocket_api.async_register_command(hass, ws_delete_plan)
    websocket_api.async_register_command(hass, ws_duplicate_plan)
    websocket_api.async_register_command(hass, ws_open_session)
    websocket_api.async_register_command(hass, ws_close_session)
    websocket_api.async_register_command(hass, ws_get_state)
    websocket_api.async_register_command(hass, ws_dispatch)
    websocket_api.async_register_command(hass, ws_undo)
    websocket_api.async_register_command(hass, ws_redo)
    websocket_api.async_register_command(hass, ws_save)
    websocket_api.async_register_command(hass, ws_save_as_preset)
    websocket_api.async_register_command(hass, ws_get_volume)
    websocket_api.async_register_command(hass, ws_convert_to_program)
