"""Services for Muscle Plan Builder."""

from __future__ import annotations

import voluptuous as vol

from homeassistant.core import HomeAssistant, ServiceCall, ServiceResponse, SupportsResponse

from .const import DOMAIN
from .gateway import PlanNotFoundError
from .hydration import hydrate_record

SERVICE_LIST_PLANS = "list_plans"
SERVICE_GET_PLAN = "get_plan"
SERVICE_DELETE_PLAN = "delete_plan"
SERVICE_DUPLICATE_PLAN = "duplicate_plan"
SERVICE_CONVERT_TO_PROGRAM = "convert_to_program"

_LIST_SCHEMA = vol.Schema(
    {
        vol.Required("entry_id"): str,
        vol.Optional("include_presets", default=False): bool,
        vol.Optional("query"): str,
    }
)
_PLAN_ID_SCHEMA = vol.Schema({vol.Required("entry_id"): str, vol.Required("plan_id"): str})


async def async_register(hass: HomeAssistant) -> None:
    async def _coordinator_for_entry(entry_id: str):
        return hass.data.get(DOMAIN, {}).get(entry_id)

    async def _async_list_plans(call: ServiceCall) -> ServiceResponse:
        entry_id = str(call.data["entry_id"])
        coordinator = await _coordinator_for_entry(entry_id)
        if coordinator is None:
            return {"ok": False, "error": "entry_not_found"}
        plans = await coordinator.store.async_list_plans(
            include_presets=bool(call.data.get("include_presets")), query=call.data.get("query")
        )
        return {"ok": True, "entry_id": entry_id, "plans": plans}

    async def _async_get_plan(call: ServiceCall) -> ServiceResponse:
        entry_id = str(call.data["entry_id"])
        coordinator = await _coordinator_for_entry(entry_id)
        if coordinator is None:
            return {"ok": False, "error": "entry_not_found"}
        try:
            record = await coordinator.store.async_load_by_id(str(call.data["plan_id"]))
        except PlanNotFoundError:
            return {"ok": False, "error": "plan_not_found"}
        return {"ok": True, "entry_id": entry_id, "plan": {**record, **hydrate_record(record)}}

    async def _async_delete_plan(call: ServiceCall) -> ServiceResponse:
        entry_id = str(call.data["entry_id"])
        coordinator = await _coordinator_for_entry(entry_id)
        if coordinator is None:
            return {"ok": False, "error": "entry_not_found"}
        deleted = await coordinator.store.async_delete_plan(str(call.data["plan_id"]))
        if not deleted:
            return {"ok": False, "error": "plan_not_found"}
        await coordinator.async_request_refresh()
        return {"ok": True, "entry_id": entry_id}

    async def _async_duplicate_plan(call: ServiceCall) -> ServiceResponse:
        entry_id = str(call.data["entry_id"])
        coordinator = await _coordinator_for_entry(entry_id)
        if coordinator is None:
            return {"ok": False, "error": "entry_not_found"}
        try:
            plan_id = await coordinator.async_duplicate_plan(str(call.data["plan_id"]))
        except PlanNotFoundError:
            return {"ok": False, "error": "plan_not_found"}
        return {"ok": True, "entry_id": entry_id, "plan_id": plan_id}

    async def _async_convert_to_program(call: ServiceCall) -> ServiceResponse:
        entry_id = str(call.data["entry_id"])
        coordinator = await _coordinator_for_entry(entry_id)
        if coordinator is None:
            return {"ok": False, "error": "entry_not_found"}
        try:
            program_id, program = await coordinator.async_convert_to_program(str(call.data["plan_id"]))
        except PlanNotFoundError:
            return {"ok": False, "error": "plan_not_found"}
        return {"ok": True, "entry_id": entry_id, "program_id": program_id, "program": program}

    registrations = (
        (SERVICE_LIST_PLANS, _async_list_plans, _LIST_SCHEMA),
        (SERVICE_GET_PLAN, _async_get_plan, _PLAN_ID_SCHEMA),
        (SERVICE_DELETE_PLAN, _async_delete_plan, _PLAN_ID_SCHEMA),
        (SERVICE_DUPLICATE_PLAN, _async_duplicate_plan, _PLAN_ID_SCHEMA),
        (SERVICE_CONVERT_TO_PROGRAM, _async_convert_to_program, _PLAN_ID_SCHEMA),
    )
    for name, handler, schema in registrations:
        if not hass.services.has_service(DOMAIN, name):
            hass.services.async_register(
                DOMAIN,
                name,
                handler,
                schema=schema,
                supports_response=SupportsResponse.ONLY,
            )
