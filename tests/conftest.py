"""Fixtures for Crew Schedule tests."""
from __future__ import annotations

import pytest

from custom_components.crew_schedule.cache import ScheduleCache
from custom_components.crew_schedule.engine import ScheduleSyncEngine

from .common import ENTRY_ID, TRACKED, FakeClient


@pytest.fixture
def client() -> FakeClient:
    return FakeClient()


@pytest.fixture
def cache(hass) -> ScheduleCache:
    return ScheduleCache(hass, ENTRY_ID)


@pytest.fixture
def engine(hass, client, cache) -> ScheduleSyncEngine:
    return ScheduleSyncEngine(hass, ENTRY_ID, client, cache, tracked_day=TRACKED)
