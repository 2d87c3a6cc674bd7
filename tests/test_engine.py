"""Tests for the sync engine."""
from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Any
from unittest.mock import patch

from homeassistant.core import HomeAssistant, callback
from homeassistant.helpers.dispatcher import async_dispatcher_connect
import pytest

from custom_components.crew_schedule.cache import ScheduleCache
from custom_components.crew_schedule.const import STORAGE_KEY
from custom_components.crew_schedule.decoder import decode_schedule
from custom_components.crew_schedule.engine import ScheduleSyncEngine
from custom_components.crew_schedule.errors import DecodeError, NetworkError, StorageError
from custom_components.crew_schedule.model import EngineState, SyncOutcome, SyncPhase
from custom_components.crew_schedule.notifications import async_setup_change_notifier

from .common import ENTRY_ID, TRACKED, FakeClient, as_bytes, wire_day, wire_flight

KEY = f"{STORAGE_KEY}.{ENTRY_ID}"
STAMP = datetime(2025, 4, 1, 6, 0, tzinfo=timezone.utc)


def _roster(dep: str) -> bytes:
    return as_bytes(
        [
            wire_day(TRACKED, [wire_flight("A", dep, "07:45")], Date="2025-04-01"),
            wire_day("Wed, 03Apr", Duty="Day Off"),
        ]
    )


def _record_states(hass: HomeAssistant, engine: ScheduleSyncEngine) -> list[EngineState]:
    states: list[EngineState] = []

    @callback
    def _on_state(state: EngineState) -> None:
        states.append(state)

    async_dispatcher_connect(hass, engine.signal, _on_state)
    return states


async def test_successful_sync_publishes_and_caches(
    hass: HomeAssistant, engine: ScheduleSyncEngine, client: FakeClient, hass_storage: dict[str, Any]
) -> None:
    client.payload = _roster("04:45")
    states = _record_states(hass, engine)

    assert await engine.async_sync() is True

    st = engine.state
    assert st.phase is SyncPhase.IDLE
    assert st.loading is False
    assert st.error is None
    assert [d.day_key for d in st.snapshot.days] == [TRACKED, "Wed, 03Apr"]
    # Nothing to compare against on the very first sync
    assert st.changes == ()
    assert st.has_pending_changes is False
    assert st.last_synced is not None
    assert KEY in hass_storage

    phases = [s.phase for s in states]
    assert phases == [
        SyncPhase.FETCHING,
        SyncPhase.DECODING,
        SyncPhase.DIFFING,
        SyncPhase.PUBLISHING,
        SyncPhase.IDLE,
    ]
    # The new snapshot only becomes current once decoded
    assert states[0].snapshot is None and states[1].snapshot is None


async def test_retimed_flight_is_detected(engine: ScheduleSyncEngine, client: FakeClient) -> None:
    client.payload = _roster("04:45")
    await engine.async_sync()

    client.payload = _roster("05:15")
    await engine.async_sync()

    (change,) = engine.state.changes
    assert change.flight.duty == "A"
    assert change.is_new_dep_time and not change.is_new_arrival_time
    assert change.old_dep_time == "04:45"
    assert change.old_arrival_time is None
    assert engine.state.has_pending_changes is True
    assert "A SOF-WAW: departure 04:45 -> 05:15" in engine.state.summary


async def test_changes_are_replaced_each_cycle(engine: ScheduleSyncEngine, client: FakeClient) -> None:
    client.payload = _roster("04:45")
    await engine.async_sync()
    client.payload = _roster("05:15")
    await engine.async_sync()
    assert engine.state.changes

    await engine.async_sync()

    assert engine.state.changes == ()
    assert engine.state.has_pending_changes is False
    assert engine.state.summary is None


async def test_network_error_falls_back(
    engine: ScheduleSyncEngine, client: FakeClient, hass_storage: dict[str, Any]
) -> None:
    client.error = NetworkError("HTTP 503: unavailable")

    assert await engine.async_sync() is True

    st = engine.state
    assert isinstance(st.error, NetworkError)
    assert st.loading is False
    assert st.snapshot is not None
    assert st.snapshot.day(TRACKED) is not None
    assert [c.flight.duty for c in st.changes] == ["CAI8001", "CAI8002"]
    assert st.has_pending_changes is True
    # Built-in data is never written over the cache
    assert KEY not in hass_storage


async def test_malformed_response_falls_back(engine: ScheduleSyncEngine, client: FakeClient) -> None:
    client.payload = b"{not json"

    await engine.async_sync()

    assert isinstance(engine.state.error, DecodeError)
    assert len(engine.state.error.attempts) == 2
    assert engine.state.snapshot is not None


async def test_error_cleared_by_next_success(engine: ScheduleSyncEngine, client: FakeClient) -> None:
    client.error = NetworkError("offline")
    await engine.async_sync()

    client.error = None
    client.payload = _roster("04:45")
    await engine.async_sync()

    assert engine.state.error is None
    assert engine.state.snapshot.day(TRACKED).flights[0].duty == "A"


async def test_concurrent_syncs_collapse(
    hass: HomeAssistant, engine: ScheduleSyncEngine, client: FakeClient
) -> None:
    client.payload = _roster("04:45")
    client.gate = asyncio.Event()
    states = _record_states(hass, engine)

    first = asyncio.create_task(engine.async_sync())
    second = asyncio.create_task(engine.async_sync())
    await asyncio.sleep(0)
    assert engine.is_syncing
    assert engine.request_sync() is False

    client.gate.set()

    assert await first is True
    assert await second is False
    assert client.calls == 1
    assert [s.phase for s in states].count(SyncPhase.IDLE) == 1


async def test_budget_expiry_signals_no_data_once(engine: ScheduleSyncEngine, client: FakeClient) -> None:
    client.gate = asyncio.Event()
    signals: list[SyncOutcome] = []

    outcome = await engine.async_sync_with_budget(0.05, on_complete=signals.append)

    assert outcome is SyncOutcome.NO_DATA
    assert signals == [SyncOutcome.NO_DATA]
    assert not engine.is_syncing
    assert engine.state.phase is SyncPhase.IDLE
    assert engine.state.loading is False
    assert engine.state.snapshot is None


async def test_budget_outcomes(engine: ScheduleSyncEngine, client: FakeClient) -> None:
    client.payload = _roster("04:45")
    assert await engine.async_sync_with_budget(5) is SyncOutcome.NO_DATA

    client.payload = _roster("05:15")
    assert await engine.async_sync_with_budget(5) is SyncOutcome.NEW_DATA

    client.error = NetworkError("offline")
    signals: list[SyncOutcome] = []
    assert await engine.async_sync_with_budget(5, signals.append) is SyncOutcome.FAILED
    assert signals == [SyncOutcome.FAILED]


async def test_budget_expiry_after_publish_reports_new_data(
    engine: ScheduleSyncEngine, client: FakeClient, cache: ScheduleCache
) -> None:
    client.payload = _roster("04:45")
    await engine.async_sync()
    client.payload = _roster("05:15")
    stalled = asyncio.Event()

    async def _stalled_save(_snapshot) -> bool:
        await stalled.wait()
        return True

    signals: list[SyncOutcome] = []
    with patch.object(cache, "async_save", side_effect=_stalled_save):
        outcome = await engine.async_sync_with_budget(0.1, on_complete=signals.append)

    assert outcome is SyncOutcome.NEW_DATA
    assert signals == [SyncOutcome.NEW_DATA]
    assert engine.state.has_pending_changes is True
    assert engine.state.changes[0].old_dep_time == "04:45"
    assert engine.state.phase is SyncPhase.IDLE
    assert engine.state.loading is False


async def test_budget_joins_cycle_in_flight(engine: ScheduleSyncEngine, client: FakeClient) -> None:
    client.payload = _roster("04:45")
    client.gate = asyncio.Event()

    assert engine.request_sync() is True
    pending = asyncio.create_task(engine.async_sync_with_budget(5))
    await asyncio.sleep(0)
    client.gate.set()

    assert await pending is SyncOutcome.NO_DATA
    assert client.calls == 1


async def test_unexpected_error_leaves_engine_idle(engine: ScheduleSyncEngine, client: FakeClient) -> None:
    client.error = RuntimeError("boom")

    with pytest.raises(RuntimeError):
        await engine.async_sync()

    assert not engine.is_syncing
    assert engine.state.phase is SyncPhase.IDLE
    assert engine.state.loading is False

    assert await engine.async_sync_with_budget(5) is SyncOutcome.FAILED
    assert engine.state.loading is False


async def test_cache_seeds_state_before_network(
    hass: HomeAssistant, client: FakeClient, cache: ScheduleCache
) -> None:
    await cache.async_save(decode_schedule(_roster("04:45"), produced_at=STAMP))
    engine = ScheduleSyncEngine(hass, ENTRY_ID, client, cache, tracked_day=TRACKED)

    await engine.async_load_cache()

    assert client.calls == 0
    assert engine.state.snapshot.produced_at == STAMP

    client.payload = _roster("05:15")
    await engine.async_sync()
    assert engine.state.changes[0].old_dep_time == "04:45"


async def test_corrupt_cache_is_treated_as_absent(
    engine: ScheduleSyncEngine, hass_storage: dict[str, Any]
) -> None:
    hass_storage[KEY] = {"version": 1, "minor_version": 1, "key": KEY, "data": [{"IndividualDay": 7}]}

    await engine.async_load_cache()

    assert engine.state.snapshot is None


async def test_cache_write_failure_keeps_published_snapshot(
    engine: ScheduleSyncEngine, client: FakeClient, cache: ScheduleCache
) -> None:
    client.payload = _roster("04:45")

    with patch.object(cache, "async_save", side_effect=StorageError("disk full")):
        await engine.async_sync()

    assert engine.state.snapshot is not None
    assert engine.state.error is None
    assert engine.state.cache_error == "disk full"


async def test_acknowledge_and_retarget(engine: ScheduleSyncEngine, client: FakeClient) -> None:
    client.error = NetworkError("offline")
    await engine.async_sync()
    assert engine.state.has_pending_changes

    engine.acknowledge_changes()
    assert engine.state.has_pending_changes is False
    assert len(engine.state.changes) == 2

    engine.set_tracked_day("Wed, 03Apr")
    assert engine.state.tracked_day == "Wed, 03Apr"
    assert engine.state.changes == ()

    engine.set_tracked_day(TRACKED)
    assert len(engine.state.changes) == 2
    assert engine.state.has_pending_changes is True


async def test_shutdown_cancels_cycle(engine: ScheduleSyncEngine, client: FakeClient) -> None:
    client.gate = asyncio.Event()
    assert engine.request_sync() is True
    await asyncio.sleep(0)

    await engine.async_shutdown()

    assert not engine.is_syncing
    assert engine.state.loading is False


async def test_notifier_shows_each_change_set_once(
    hass: HomeAssistant, engine: ScheduleSyncEngine, client: FakeClient
) -> None:
    client.error = NetworkError("offline")
    unsub = async_setup_change_notifier(hass, engine)

    with (
        patch("custom_components.crew_schedule.notifications.persistent_notification.async_create") as create,
        patch("custom_components.crew_schedule.notifications.persistent_notification.async_dismiss") as dismiss,
    ):
        await engine.async_sync()
        await engine.async_sync()
        assert create.call_count == 1
        assert "CAI8002" in create.call_args.args[1]

        engine.acknowledge_changes()
        dismiss.assert_called_once()

    unsub()
