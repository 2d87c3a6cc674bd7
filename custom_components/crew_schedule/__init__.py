"""Crew Schedule integration."""
from __future__ import annotations

from datetime import timedelta
import logging
from typing import Any

from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant
from homeassistant.helpers.event import async_track_time_interval

from .cache import ScheduleCache
from .const import (
    CONF_REQUEST_TIMEOUT,
    CONF_SCAN_INTERVAL,
    CONF_SYNC_BUDGET,
    CONF_TRACKED_DAY,
    CONF_URL,
    CONF_USER_ID,
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_SCAN_INTERVAL,
    DEFAULT_SYNC_BUDGET,
    DEFAULT_URL,
    DOMAIN,
    PLATFORMS,
)
from .engine import ScheduleSyncEngine
from .notifications import async_setup_change_notifier
from .schedule_client import ScheduleClient
from .services import async_register_services, async_unregister_services

_LOGGER = logging.getLogger(__name__)


def _settings(entry: ConfigEntry) -> dict[str, Any]:
    # Options override the values captured by the config flow
    return {**entry.data, **entry.options}


async def async_setup_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Set up Crew Schedule from a config entry."""
    settings = _settings(entry)

    client = ScheduleClient(
        hass,
        user_id=settings[CONF_USER_ID],
        url=settings.get(CONF_URL) or DEFAULT_URL,
        timeout=float(settings.get(CONF_REQUEST_TIMEOUT, DEFAULT_REQUEST_TIMEOUT)),
    )
    engine = ScheduleSyncEngine(
        hass,
        entry.entry_id,
        client,
        ScheduleCache(hass, entry.entry_id),
        tracked_day=settings.get(CONF_TRACKED_DAY),
    )
    hass.data.setdefault(DOMAIN, {})[entry.entry_id] = engine

    # Cached data first so sensors have something to show before the network answers
    await engine.async_load_cache()

    entry.async_on_unload(async_setup_change_notifier(hass, engine))
    await async_register_services(hass)
    await hass.config_entries.async_forward_entry_setups(entry, PLATFORMS)

    budget = float(settings.get(CONF_SYNC_BUDGET, DEFAULT_SYNC_BUDGET))

    async def _periodic_sync(_now) -> None:
        outcome = await engine.async_sync_with_budget(budget)
        _LOGGER.debug("Background schedule sync finished: %s", outcome)

    interval = timedelta(minutes=int(settings.get(CONF_SCAN_INTERVAL, DEFAULT_SCAN_INTERVAL)))
    entry.async_on_unload(async_track_time_interval(hass, _periodic_sync, interval))
    entry.async_on_unload(entry.add_update_listener(_async_reload_entry))

    # Foreground refresh on startup
    engine.request_sync()
    return True


async def _async_reload_entry(hass: HomeAssistant, entry: ConfigEntry) -> None:
    await hass.config_entries.async_reload(entry.entry_id)


async def async_unload_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Unload a config entry."""
    unloaded = await hass.config_entries.async_unload_platforms(entry, PLATFORMS)
    if not unloaded:
        return False

    engine: ScheduleSyncEngine | None = hass.data.get(DOMAIN, {}).pop(entry.entry_id, None)
    if engine is not None:
        await engine.async_shutdown()
    if not hass.data.get(DOMAIN):
        async_unregister_services(hass)
    return True
