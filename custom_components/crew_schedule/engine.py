"""Schedule sync engine: single-flight fetch -> decode -> diff -> cache cycle.

State is published as an immutable EngineState over the dispatcher on every
phase transition; sensors and the notifier only read it.

    idle -> fetching -> decoding -> diffing -> publishing -> idle
    fetching/decoding failure -> fallback -> diffing -> publishing -> idle
"""
from __future__ import annotations

import asyncio
from dataclasses import replace
import logging
from typing import Any, Callable, Protocol

from homeassistant.core import HomeAssistant, callback
from homeassistant.helpers.dispatcher import async_dispatcher_send
from homeassistant.util import dt as dt_util

from .cache import ScheduleCache
from .const import SIGNAL_STATE_UPDATED
from .decoder import decode_schedule
from .differ import diff_snapshots, summarize_changes
from .errors import DecodeError, NetworkError, ScheduleError, StorageError
from .fallback import fallback_snapshots
from .model import EngineState, Snapshot, SyncOutcome, SyncPhase
from .schedule_lookup import day_key_for

_LOGGER = logging.getLogger(__name__)


class ScheduleFetcher(Protocol):
    async def async_fetch(self, body: dict[str, Any] | None = None) -> bytes:
        """Return the raw response body or raise NetworkError."""


class ScheduleSyncEngine:
    """Owns EngineState and the (at most one) in-flight sync task."""

    def __init__(
        self,
        hass: HomeAssistant,
        entry_id: str,
        client: ScheduleFetcher,
        cache: ScheduleCache,
        *,
        tracked_day: str | None = None,
    ) -> None:
        self.hass = hass
        self.entry_id = entry_id
        self._client = client
        self._cache = cache
        self._tracked_day = tracked_day or None
        self._task: asyncio.Task | None = None
        # Set once the running cycle has published its snapshot and changes
        self._cycle_published = False
        # Snapshot the last diff was computed against
        self._previous: Snapshot | None = None
        self._state = EngineState(tracked_day=self.tracked_day)

    @property
    def state(self) -> EngineState:
        return self._state

    @property
    def signal(self) -> str:
        return SIGNAL_STATE_UPDATED.format(self.entry_id)

    @property
    def tracked_day(self) -> str:
        """Configured day key, or today's when none is configured."""
        return self._tracked_day or day_key_for(dt_util.now().date())

    @property
    def is_syncing(self) -> bool:
        return self._task is not None and not self._task.done()

    @callback
    def _publish(self, **changes: Any) -> None:
        self._state = replace(self._state, **changes)
        _LOGGER.debug("State -> %s (loading=%s)", self._state.phase, self._state.loading)
        async_dispatcher_send(self.hass, self.signal, self._state)

    async def async_load_cache(self) -> None:
        """Seed the current snapshot from the local cache, before any network I/O."""
        try:
            snapshot = await self._cache.async_load()
        except StorageError as err:
            _LOGGER.warning("Ignoring unreadable schedule cache: %s", err)
            return
        if snapshot is None or self._state.snapshot is not None:
            return
        self._publish(snapshot=snapshot)

    @callback
    def request_sync(self) -> bool:
        """Fire-and-forget sync. Returns False if a cycle is already in flight."""
        return self._start_cycle() is not None

    async def async_sync(self) -> bool:
        """Run one sync cycle. Returns False if dropped or cancelled."""
        task = self._start_cycle()
        if task is None:
            return False
        await asyncio.wait({task})
        if task.cancelled():
            return False
        task.result()
        return True

    async def async_sync_with_budget(
        self,
        budget: float,
        on_complete: Callable[[SyncOutcome], None] | None = None,
    ) -> SyncOutcome:
        """Sync within `budget` seconds, signalling exactly one outcome.

        Joins a cycle already in flight instead of starting another. On expiry
        the cycle is cancelled; the outcome is NO_DATA unless the cycle had
        already published its result.
        """
        task = self._task
        if task is None or task.done():
            task = self._spawn_cycle()

        done, _ = await asyncio.wait({task}, timeout=budget)
        if not done:
            _LOGGER.warning("Schedule sync exceeded its %ss budget; cancelling", budget)
            task.cancel()
            await asyncio.wait({task})
            outcome = self._published_outcome() if self._cycle_published else SyncOutcome.NO_DATA
        elif task.cancelled():
            outcome = SyncOutcome.NO_DATA
        elif (err := task.exception()) is not None:
            _LOGGER.error("Schedule sync crashed: %r", err)
            outcome = SyncOutcome.FAILED
        else:
            outcome = self._published_outcome()

        if on_complete is not None:
            on_complete(outcome)
        return outcome

    def _published_outcome(self) -> SyncOutcome:
        if self._state.error is not None:
            return SyncOutcome.FAILED
        if self._state.changes:
            return SyncOutcome.NEW_DATA
        return SyncOutcome.NO_DATA

    @callback
    def acknowledge_changes(self) -> None:
        if self._state.has_pending_changes:
            self._publish(has_pending_changes=False)

    @callback
    def set_tracked_day(self, day_key: str | None) -> None:
        """Retarget change detection and re-diff the last snapshot pair."""
        self._tracked_day = day_key or None
        tracked = self.tracked_day
        changes = tuple(diff_snapshots(self._previous, self._state.snapshot, tracked))
        self._publish(
            tracked_day=tracked,
            changes=changes,
            has_pending_changes=bool(changes),
            summary=summarize_changes(tracked, changes),
        )

    async def async_shutdown(self) -> None:
        task = self._task
        if task is not None and not task.done():
            task.cancel()
            await asyncio.wait({task})

    def _start_cycle(self) -> asyncio.Task | None:
        if self.is_syncing:
            _LOGGER.debug("Sync already in flight; dropping request")
            return None
        return self._spawn_cycle()

    def _spawn_cycle(self) -> asyncio.Task:
        self._cycle_published = False
        task = self.hass.async_create_task(self._async_run_cycle())
        self._task = task
        return task

    async def _async_run_cycle(self) -> None:
        # Compare against whatever was current before this cycle started
        previous = self._state.snapshot
        tracked = self.tracked_day
        error: ScheduleError | None = None

        self._publish(phase=SyncPhase.FETCHING, loading=True, error=None, tracked_day=tracked)
        try:
            try:
                raw = await self._client.async_fetch()
                self._publish(phase=SyncPhase.DECODING)
                current = decode_schedule(raw)
            except (NetworkError, DecodeError) as err:
                _LOGGER.warning("Schedule sync failed, using built-in schedule: %s", err)
                error = err
                self._publish(phase=SyncPhase.FALLBACK, error=err)
                previous, current = fallback_snapshots(tracked)

            await self._async_complete_cycle(previous, current, tracked, error)
        except asyncio.CancelledError:
            _LOGGER.debug("Sync cycle cancelled")
            self._publish(phase=SyncPhase.IDLE, loading=False)
            raise
        except Exception:
            self._publish(phase=SyncPhase.IDLE, loading=False)
            raise

    async def _async_complete_cycle(
        self,
        previous: Snapshot | None,
        current: Snapshot,
        tracked: str,
        error: ScheduleError | None,
    ) -> None:
        self._publish(phase=SyncPhase.DIFFING)
        changes = tuple(diff_snapshots(previous, current, tracked))
        if changes:
            _LOGGER.info("Detected %d schedule change(s) for %s", len(changes), tracked)

        self._previous = previous
        self._publish(
            phase=SyncPhase.PUBLISHING,
            snapshot=current,
            changes=changes,
            has_pending_changes=bool(changes),
            summary=summarize_changes(tracked, changes),
        )
        self._cycle_published = True

        final: dict[str, Any] = {}
        # Built-in data must never overwrite a real cached roster
        if error is None:
            try:
                await self._cache.async_save(current)
            except StorageError as err:
                _LOGGER.warning("Schedule cache is stale: %s", err)
                final["cache_error"] = str(err)
            else:
                final["cache_error"] = None

        self._publish(
            phase=SyncPhase.IDLE,
            loading=False,
            last_synced=dt_util.utcnow(),
            **final,
        )
