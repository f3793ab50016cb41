"""Sensor platform for Muscle Plan Builder."""

from __future__ import annotations

from typing import Any

from homeassistant.components.sensor import SensorEntity, SensorStateClass
from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant
from homeassistant.helpers.entity_platform import AddEntitiesCallback
from homeassistant.helpers.update_coordinator import CoordinatorEntity

from .const import DOMAIN
from .coordinator import MusclePlanCoordinator
from .entity import device_info_from_entry


async def async_setup_entry(
    hass: HomeAssistant,
    entry: ConfigEntry,
    async_add_entities: AddEntitiesCallback,
) -> None:
    coordinator: MusclePlanCoordinator = hass.data[DOMAIN][entry.entry_id]
    async_add_entities([MusclePlansSensor(entry, coordinator)])


class MusclePlansSensor(CoordinatorEntity[MusclePlanCoordinator], SensorEntity):
    """Number of stored muscle plans, with a listing in the attributes."""

    _attr_has_entity_name = True
    _attr_name = "Muscle plans"
    _attr_icon = "mdi:arm-flex"
    _attr_translation_key = "muscle_plans"
    _attr_state_class = SensorStateClass.MEASUREMENT

    def __init__(self, entry: ConfigEntry, coordinator: MusclePlanCoordinator) -> None:
        super().__init__(coordinator)
        self._entry = entry
        self._attr_unique_id = f"{entry.entry_id}_muscle_plans"
        self._attr_device_info = device_info_from_entry(entry)

    @property
    def native_value(self) -> int:
        data = self.coordinator.data or {}
        plans = data.get("plans") if isinstance(data.get("plans"), list) else []
        return len(plans)

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        data = self.coordinator.data or {}
        return {
            "entry_id": self._entry.entry_id,
            "plans": data.get("plans", []),
            "presets": data.get("presets", []),
            "open_sessions": int(data.get("open_sessions") or 0),
        }
