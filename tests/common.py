"""Builders and fakes shared by the tests."""
from __future__ import annotations

import asyncio
import json
from typing import Any

ENTRY_ID = "test_entry"
TRACKED = "Mon, 01Apr"


def wire_flight(duty: str, dep: str, arr: str, **extra: Any) -> dict[str, Any]:
    flight = {
        "Duty": duty,
        "Departure": "SOF",
        "Arrival": "WAW",
        "DepTime": dep,
        "ArrivalTime": arr,
        "Aircraft": "A320/BHL",
        "Cockpit": "TRI G.GOSPODINOV",
        "Cabin": "SEN CCM S.ZHEKOVA",
    }
    flight.update(extra)
    return flight


def wire_day(key: str, flights: list[dict[str, Any]] | None = None, **extra: Any) -> dict[str, Any]:
    day: dict[str, Any] = {"IndividualDay": key}
    if flights is not None:
        day["Flights"] = flights
    day.update(extra)
    return day


def as_bytes(data: Any) -> bytes:
    return json.dumps(data).encode()


class FakeClient:
    """Stands in for ScheduleClient; counts fetches and can hold them on a gate."""

    def __init__(self, payload: bytes = b"[]", error: Exception | None = None) -> None:
        self.payload = payload
        self.error = error
        self.calls = 0
        self.gate: asyncio.Event | None = None

    async def async_fetch(self, body: dict[str, Any] | None = None) -> bytes:
        self.calls += 1
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return self.payload
