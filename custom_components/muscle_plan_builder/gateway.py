"""Persistence gateway contract used by editor sessions."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable
from typing import Any, Protocol, TypeVar

_T = TypeVar("_T")


class GatewayError(RuntimeError):
    """Raised when a plan record cannot be read or written."""


class PlanNotFoundError(GatewayError):
    """Raised when no plan record exists for an id."""

    def __init__(self, plan_id: str) -> None:
        super().__init__(f"Muscle plan not found: {plan_id}")
        self.plan_id = plan_id


class OperationTimeoutError(GatewayError):
    """Raised when a persistence call exceeds its time budget."""

    def __init__(self, label: str, timeout: float) -> None:
        super().__init__(f"{label} timed out after {timeout:g}s")
        self.label = label
        self.timeout = timeout


class PersistenceGateway(Protocol):
    """Remote create/update/read of named plan records."""

    async def async_load_by_id(self, plan_id: str) -> dict[str, Any]: ...

    async def async_create(self, record: dict[str, Any], *, is_preset: bool = False) -> str: ...

    async def async_update(self, plan_id: str, fields: dict[str, Any]) -> None: ...


async def async_with_timeout(aw: Awaitable[_T], timeout: float, label: str) -> _T:
    """Await ``aw`` but give up after ``timeout`` seconds."""
    try:
        async with asyncio.timeout(timeout):
            return await aw
    except TimeoutError as err:
        raise OperationTimeoutError(label, timeout) from err
