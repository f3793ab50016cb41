from __future__ import annotations

import asyncio
from typing import Any

import pytest

from custom_components.muscle_plan_builder.gateway import GatewayError, PlanNotFoundError
from custom_components.muscle_plan_builder.session import MusclePlanSession


class FakeGateway:
    """In-memory persistence gateway with switchable failures and latency."""

    def __init__(self) -> None:
        self.records: dict[str, dict[str, Any]] = {}
        self.updates: list[tuple[str, dict[str, Any]]] = []
        self.creates: list[tuple[dict[str, Any], bool]] = []
        self.fail_next = 0
        self.latency = 0.0
        self._next_id = 1

    async def _maybe_fail(self) -> None:
        if self.latency:
            await asyncio.sleep(self.latency)
        if self.fail_next:
            self.fail_next -= 1
            raise GatewayError("upstream returned 503")

    async def async_load_by_id(self, plan_id: str) -> dict[str, Any]:
        await self._maybe_fail()
        if plan_id not in self.records:
            raise PlanNotFoundError(plan_id)
        return dict(self.records[plan_id])

    async def async_create(self, record: dict[str, Any], *, is_preset: bool = False) -> str:
        await self._maybe_fail()
        plan_id = f"plan_{self._next_id}"
        self._next_id += 1
        self.creates.append((record, is_preset))
        self.records[plan_id] = {**record, "id": plan_id, "is_preset": is_preset}
        return plan_id

    async def async_update(self, plan_id: str, fields: dict[str, Any]) -> None:
        await self._maybe_fail()
        if plan_id not in self.records:
            raise PlanNotFoundError(plan_id)
        self.updates.append((plan_id, fields))
        self.records[plan_id] = {**self.records[plan_id], **fields}


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture(autouse=True)
def auto_enable_custom_integrations(enable_custom_integrations):
    yield


@pytest.fixture
async def make_session(hass, gateway):
    """Build sessions on the test instance and close them afterwards."""
    opened: list[MusclePlanSession] = []

    def _make(**kwargs: Any) -> MusclePlanSession:
        kwargs.setdefault("coach_id", "coach_1")
        session = MusclePlanSession(hass, gateway, **kwargs)
        opened.append(session)
        return session

    yield _make
    for session in opened:
        session.autosave.cancel()
        await session.async_close()
