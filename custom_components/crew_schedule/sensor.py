"""Crew Schedule sensors: expose the published engine state.

Sensors never touch the engine's state; they re-render whenever a new
EngineState is dispatched.
"""
from __future__ import annotations

from typing import Any

from homeassistant.components.sensor import SensorEntity
from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant, callback
from homeassistant.helpers.dispatcher import async_dispatcher_connect
from homeassistant.util import dt as dt_util

from .const import DOMAIN
from .decoder import encode_schedule
from .engine import ScheduleSyncEngine
from .model import EngineState
from .schedule_lookup import day_status, duty_window, format_duration


async def async_setup_entry(hass: HomeAssistant, entry: ConfigEntry, async_add_entities) -> None:
    engine: ScheduleSyncEngine = hass.data[DOMAIN][entry.entry_id]
    async_add_entities(
        [CrewScheduleSensor(engine), CrewScheduleChangesSensor(engine)],
        False,
    )


class _EngineStateSensor(SensorEntity):
    _attr_should_poll = False

    def __init__(self, engine: ScheduleSyncEngine) -> None:
        self.engine = engine

    @property
    def _engine_state(self) -> EngineState:
        return self.engine.state

    async def async_added_to_hass(self) -> None:
        @callback
        def _on_state(_state: EngineState) -> None:
            self.async_write_ha_state()

        self.async_on_remove(async_dispatcher_connect(self.hass, self.engine.signal, _on_state))


class CrewScheduleSensor(_EngineStateSensor):
    _attr_name = "Crew Schedule"
    _attr_icon = "mdi:calendar-clock"

    def __init__(self, engine: ScheduleSyncEngine) -> None:
        super().__init__(engine)
        self._attr_unique_id = f"{DOMAIN}_{engine.entry_id}_schedule"

    @property
    def native_value(self) -> str | None:
        snapshot = self._engine_state.snapshot
        if snapshot is None or not self._engine_state.tracked_day:
            return None
        day = snapshot.day(self._engine_state.tracked_day)
        return day.duty_type if day else "No duty"

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        st = self._engine_state
        snapshot = st.snapshot
        tracked = snapshot.day(st.tracked_day) if snapshot and st.tracked_day else None
        window = duty_window(tracked)
        tracked_date = tracked.calendar_date if tracked else None
        flights = [
            {
                "duty": f.duty,
                "route": f"{f.origin}-{f.destination}",
                "dep_time": f.dep_time,
                "arrival_time": f.arrival_time,
                "duration": format_duration(f.duration_minutes),
            }
            for f in (tracked.flights or () if tracked else ())
        ]
        return {
            "tracked_day": st.tracked_day,
            "loading": st.loading,
            "phase": st.phase,
            "error": str(st.error) if st.error else None,
            "cache_error": st.cache_error,
            "last_synced": st.last_synced.isoformat() if st.last_synced else None,
            "produced_at": snapshot.produced_at.isoformat() if snapshot else None,
            "duty_start": window[0] if window else None,
            "duty_end": window[1] if window else None,
            "date": tracked_date.isoformat() if tracked_date else None,
            # Undated days are classified as today
            "day_status": day_status(snapshot, tracked_date or dt_util.now().date()),
            "flights": flights,
            "days": encode_schedule(snapshot) if snapshot else [],
        }


class CrewScheduleChangesSensor(_EngineStateSensor):
    _attr_name = "Crew Schedule Changes"
    _attr_icon = "mdi:airplane-alert"

    def __init__(self, engine: ScheduleSyncEngine) -> None:
        super().__init__(engine)
        self._attr_unique_id = f"{DOMAIN}_{engine.entry_id}_changes"

    @property
    def native_value(self) -> int:
        return len(self._engine_state.changes)

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        st = self._engine_state
        return {
            "tracked_day": st.tracked_day,
            "has_pending_changes": st.has_pending_changes,
            "summary": st.summary,
            "changes": [c.as_dict() for c in st.changes],
        }
