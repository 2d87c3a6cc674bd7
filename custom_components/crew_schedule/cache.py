"""Local cache for the last successfully fetched schedule."""
from __future__ import annotations

import logging

from homeassistant.core import HomeAssistant
from homeassistant.exceptions import HomeAssistantError
from homeassistant.helpers.storage import Store

from .const import STORAGE_KEY, STORAGE_VERSION
from .decoder import encode_wrapped, snapshot_from_data
from .errors import DecodeError, StorageError
from .model import Snapshot

_LOGGER = logging.getLogger(__name__)


class ScheduleCache:
    """Load/save one Snapshot, persisted in the wrapped wire shape.

    A missing cache is not an error: `async_load` returns None.
    """

    def __init__(self, hass: HomeAssistant, entry_id: str) -> None:
        self._store: Store = Store(hass, STORAGE_VERSION, f"{STORAGE_KEY}.{entry_id}")

    async def async_load(self) -> Snapshot | None:
        try:
            data = await self._store.async_load()
        except (HomeAssistantError, OSError, ValueError) as err:
            raise StorageError(f"Cannot read schedule cache: {err}") from err

        if data is None:
            _LOGGER.debug("No cached schedule")
            return None

        try:
            snapshot = snapshot_from_data(data)
        except DecodeError as err:
            raise StorageError(f"Cached schedule is corrupt: {err}") from err

        _LOGGER.debug("Loaded %d cached days (produced %s)", len(snapshot.days), snapshot.produced_at)
        return snapshot

    async def async_save(self, snapshot: Snapshot) -> bool:
        """Persist the snapshot. Returns False when skipped because it has no days."""
        if snapshot.is_empty:
            _LOGGER.debug("Not caching empty schedule")
            return False
        try:
            await self._store.async_save(encode_wrapped(snapshot))
        except (HomeAssistantError, OSError, ValueError, TypeError) as err:
            raise StorageError(f"Cannot write schedule cache: {err}") from err
        _LOGGER.debug("Cached %d days", len(snapshot.days))
        return True
