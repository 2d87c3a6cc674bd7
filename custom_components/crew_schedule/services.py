"""Service registrations: manual sync, acknowledge changes, retarget tracked day."""
from __future__ import annotations

import logging

import voluptuous as vol
from homeassistant.components.persistent_notification import async_create as notify
from homeassistant.core import HomeAssistant, ServiceCall
from homeassistant.helpers import config_validation as cv

from .const import (
    DOMAIN,
    SERVICE_ACKNOWLEDGE_CHANGES,
    SERVICE_SET_TRACKED_DAY,
    SERVICE_SYNC_NOW,
)
from .engine import ScheduleSyncEngine

_LOGGER = logging.getLogger(__name__)

SYNC_SCHEMA = vol.Schema({})
ACKNOWLEDGE_SCHEMA = vol.Schema({})
SET_TRACKED_DAY_SCHEMA = vol.Schema(
    {
        # Empty / omitted: follow today's day key
        vol.Optional("day_key"): vol.Any(None, cv.string),
    }
)


def _engines(hass: HomeAssistant) -> list[ScheduleSyncEngine]:
    return [e for e in hass.data.get(DOMAIN, {}).values() if isinstance(e, ScheduleSyncEngine)]


async def async_register_services(hass: HomeAssistant) -> None:
    """Register services once for all config entries."""
    if hass.services.has_service(DOMAIN, SERVICE_SYNC_NOW):
        return

    async def _sync(call: ServiceCall) -> None:
        for engine in _engines(hass):
            try:
                ran = await engine.async_sync()
            except Exception as e:
                _LOGGER.exception("Schedule sync failed: %s", e)
                notify(hass, f"Schedule sync failed: {e}", title="Crew Schedule: error")
                continue
            if not ran:
                _LOGGER.debug("Sync for %s already running", engine.entry_id)

    async def _acknowledge(call: ServiceCall) -> None:
        for engine in _engines(hass):
            engine.acknowledge_changes()

    async def _set_tracked_day(call: ServiceCall) -> None:
        day_key = (call.data.get("day_key") or "").strip() or None
        for engine in _engines(hass):
            engine.set_tracked_day(day_key)

    hass.services.async_register(DOMAIN, SERVICE_SYNC_NOW, _sync, schema=SYNC_SCHEMA)
    hass.services.async_register(DOMAIN, SERVICE_ACKNOWLEDGE_CHANGES, _acknowledge, schema=ACKNOWLEDGE_SCHEMA)
    hass.services.async_register(DOMAIN, SERVICE_SET_TRACKED_DAY, _set_tracked_day, schema=SET_TRACKED_DAY_SCHEMA)


def async_unregister_services(hass: HomeAssistant) -> None:
    for service in (SERVICE_SYNC_NOW, SERVICE_ACKNOWLEDGE_CHANGES, SERVICE_SET_TRACKED_DAY):
        hass.services.async_remove(DOMAIN, service)
