from __future__ import annotations

import asyncio

import pytest

from custom_components.muscle_plan_builder.gateway import PlanNotFoundError
from custom_components.muscle_plan_builder.plan import ADD_MUSCLE, SET_NAME, SET_SETS
from custom_components.muscle_plan_builder.session import MusclePlanSession

DELAY = 0.2


def _stored_plan() -> dict:
    return {
        "id": "plan_existing",
        "name": "Stored plan",
        "description": "",
        "slots": [{"day_index": 1, "muscle_id": "pecs", "sets": 3}],
    }


async def _open(
    make_session, gateway, *, timeout: float = 1.0, template_id: str | None = "plan_existing"
) -> MusclePlanSession:
    gateway.records["plan_existing"] = _stored_plan()
    session = make_session(autosave_delay=DELAY, save_timeout=timeout)
    if template_id:
        await session.async_load(template_id)
    return session

async def test_burst_of_edits_is_saved_once(make_session, gateway) -> None:
    session = await _open(make_session, gateway)
    for i in range(10):
        session.dispatch({"type": SET_NAME, "name": f"Plan {i}"})
        await asyncio.sleep(0.02)

    await asyncio.sleep(DELAY / 2)
    assert gateway.updates == []

    await asyncio.sleep(DELAY * 1.5)
    assert len(gateway.updates) == 1
    plan_id, fields = gateway.updates[0]
    assert plan_id == "plan_existing"
    assert fields["name"] == "Plan 9"
    assert session.state["is_dirty"] is False
    assert session.autosave.status == "idle"


async def test_unsaved_new_plan_is_never_autosaved(make_session, gateway) -> None:
    session = await _open(make_session, gateway, template_id=None)
    session.dispatch({"type": ADD_MUSCLE, "day_index": 1, "muscle_id": "pecs"})
    await asyncio.sleep(DELAY * 2)

    assert gateway.updates == []
    assert gateway.creates == []
    assert session.state["is_dirty"] is True


async def test_first_explicit_save_creates_record_then_autosave_updates(make_session, gateway) -> None:
    session = await _open(make_session, gateway, template_id=None)
    session.dispatch({"type": ADD_MUSCLE, "day_index": 1, "muscle_id": "pecs"})

    template_id = await session.async_save()
    assert template_id is not None
    assert session.state["template_id"] == template_id
    assert gateway.creates[0][1] is False
    assert gateway.creates[0][0]["coach_id"] == "coach_1"

    session.dispatch({"type": ADD_MUSCLE, "day_index": 2, "muscle_id": "lats"})
    await asyncio.sleep(DELAY * 2)
    assert [u[0] for u in gateway.updates] == [template_id]


async def test_manual_save_cancels_pending_autosave(make_session, gateway) -> None:
    session = await _open(make_session, gateway)
    session.dispatch({"type": SET_NAME, "name": "Renamed"})
    assert session.autosave.pending

    await session.async_save()
    await asyncio.sleep(DELAY * 2)
    assert len(gateway.updates) == 1


async def test_save_failure_keeps_plan_dirty_and_reports(make_session, gateway) -> None:
    session = await _open(make_session, gateway)
    events: list[tuple[str, dict]] = []
    session.autosave.async_add_listener(lambda event, payload: events.append((event, payload)))

    gateway.fail_next = 1
    session.dispatch({"type": SET_NAME, "name": "Renamed"})
    assert await session.async_save() is None

    assert session.state["is_saving"] is False
    assert session.state["is_dirty"] is True
    assert session.autosave.status == "error"
    assert events and events[0][0] == "error"

    # No new edits: nothing is retried behind the user's back.
    await asyncio.sleep(DELAY * 2)
    assert gateway.updates == []

    session.dispatch({"type": SET_NAME, "name": "Renamed again"})
    await asyncio.sleep(DELAY * 2)
    assert len(gateway.updates) == 1
    assert session.state["is_dirty"] is False


async def test_save_timeout_maps_to_save_error(make_session, gateway) -> None:
    session = await _open(make_session, gateway, timeout=0.05)
    gateway.latency = 0.5
    session.dispatch({"type": SET_NAME, "name": "Slow"})

    assert await session.async_save() is None
    assert session.state["is_saving"] is False
    assert session.state["is_dirty"] is True
    assert "timed out" in (session.autosave.last_error or "")


async def test_edits_during_save_stay_dirty_and_autosave_later(make_session, gateway) -> None:
    session = await _open(make_session, gateway)
    gateway.latency = 0.1
    session.dispatch({"type": SET_NAME, "name": "A"})
    save = asyncio.create_task(session.async_save())
    await asyncio.sleep(0.02)
    assert session.state["is_saving"] is True

    session.dispatch({"type": SET_NAME, "name": "B"})
    await save
    assert session.state["is_dirty"] is True

    await asyncio.sleep(DELAY + 0.3)
    assert [u[1]["name"] for u in gateway.updates] == ["A", "B"]
    assert session.state["is_dirty"] is False


async def test_save_as_preset_keeps_working_copy(make_session, gateway) -> None:
    session = await _open(make_session, gateway)
    session.dispatch({"type": ADD_MUSCLE, "day_index": 2, "muscle_id": "lats"})
    session.autosave.cancel()

    preset_id = await session.async_save_as_preset()
    assert preset_id is not None
    assert preset_id != "plan_existing"
    assert gateway.creates[-1][1] is True
    assert session.state["template_id"] == "plan_existing"
    assert session.state["is_saving"] is False
    assert session.state["is_dirty"] is True


async def test_close_flushes_pending_autosave(make_session, gateway) -> None:
    session = await _open(make_session, gateway)
    session.autosave.delay = 5.0
    session.dispatch({"type": SET_NAME, "name": "Last edit"})

    await session.async_close()
    assert [u[1]["name"] for u in gateway.updates] == ["Last edit"]


async def test_load_failure_raises(make_session, gateway) -> None:
    with pytest.raises(PlanNotFoundError):
        await _open(make_session, gateway, template_id="plan_missing")


async def test_repeated_identical_edits_do_not_postpone_autosave(make_session, gateway) -> None:
    session = await _open(make_session, gateway)
    session.dispatch({"type": SET_NAME, "name": "edited"})

    # Same value over and over: no state change, so the debounce keeps its deadline.
    for _ in range(10):
        session.dispatch({"type": SET_NAME, "name": "edited"})
        await asyncio.sleep(0.1)

    assert [u[1]["name"] for u in gateway.updates] == ["edited"]
    assert session.state["is_dirty"] is False


async def test_clamped_sets_resend_does_not_restart_debounce(make_session, gateway) -> None:
    session = await _open(make_session, gateway)
    slot_id = session.state["slots"][0]["id"]
    session.dispatch({"type": SET_SETS, "slot_id": slot_id, "sets": 25})
    assert session.state["slots"][0]["sets"] == 20

    for _ in range(5):
        session.dispatch({"type": SET_SETS, "slot_id": slot_id, "sets": 25})
        await asyncio.sleep(DELAY / 2)

    assert len(gateway.updates) == 1


async def test_autosave_runs_as_tracked_background_task(hass, make_session, gateway) -> None:
    session = await _open(make_session, gateway)
    gateway.latency = 0.3
    session.dispatch({"type": SET_NAME, "name": "Background"})

    await asyncio.sleep(DELAY + 0.1)
    assert session.state["is_saving"] is True
    # The in-flight save is known to Home Assistant, so shutdown can wait for it.
    await hass.async_block_till_done(wait_background_tasks=True)

    assert [u[1]["name"] for u in gateway.updates] == ["Background"]
    assert session.state["is_saving"] is False
