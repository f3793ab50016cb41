"""Constants for Muscle Plan Builder integration."""

from __future__ import annotations

from homeassistant.const import Platform

DOMAIN = "muscle_plan_builder"

PLATFORMS: list[Platform] = [
    Platform.SENSOR,
]

CONF_NAME = "name"
CONF_COACH_ID = "coach_id"
CONF_AUTOSAVE_DELAY = "autosave_delay"
CONF_SAVE_TIMEOUT = "save_timeout"
CONF_HISTORY_LIMIT = "history_limit"

DEFAULT_NAME = "Muscle Plan Builder"
DEFAULT_COACH_ID = ""
DEFAULT_AUTOSAVE_DELAY = 2.0
DEFAULT_SAVE_TIMEOUT = 15.0
DEFAULT_HISTORY_LIMIT = 50

DEFAULT_PLAN_NAME = "Untitled Muscle Plan"
DEFAULT_SELECTED_DAY = 1

SETS_MIN = 1
SETS_MAX = 20
DEFAULT_SETS = 3
REPS_MIN = 1
REPS_MAX = 100
DEFAULT_REP_MIN = 8
DEFAULT_REP_MAX = 12

DAYS_OF_WEEK = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]

SIGNAL_PLAN_UPDATED = f"{DOMAIN}_plan_updated"
