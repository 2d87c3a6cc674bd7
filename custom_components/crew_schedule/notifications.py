"""Presents detected schedule changes as persistent notifications."""
from __future__ import annotations

import logging
from typing import Callable

from homeassistant.components import persistent_notification
from homeassistant.core import HomeAssistant, callback
from homeassistant.helpers.dispatcher import async_dispatcher_connect

from .const import DOMAIN
from .engine import ScheduleSyncEngine
from .model import EngineState

_LOGGER = logging.getLogger(__name__)

TITLE = "Crew Schedule: changes"


@callback
def async_setup_change_notifier(hass: HomeAssistant, engine: ScheduleSyncEngine) -> Callable[[], None]:
    """Notify once per distinct change summary; dismiss when acknowledged."""
    notification_id = f"{DOMAIN}_{engine.entry_id}_changes"
    last_summary: str | None = None

    @callback
    def _on_state(state: EngineState) -> None:
        nonlocal last_summary
        if state.loading:
            return
        if not state.has_pending_changes or not state.summary:
            if last_summary is not None:
                persistent_notification.async_dismiss(hass, notification_id)
                last_summary = None
            return
        if state.summary == last_summary:
            return
        last_summary = state.summary
        _LOGGER.debug("Notifying schedule changes for %s", state.tracked_day)
        persistent_notification.async_create(
            hass, state.summary, title=TITLE, notification_id=notification_id
        )

    return async_dispatcher_connect(hass, engine.signal, _on_state)
