"""Tolerant decoding of the schedule wire format.

The endpoint answers with one of two shapes:

  (a) a bare array of day objects:       [{"IndividualDay": ...}, ...]
  (b) an object wrapping that array:      {"schedule": [...], ...}

Both are described by voluptuous schemas sharing the same day/flight rules:
missing or null optional fields decode to None, a wrong type on any present
field or a missing required field fails the attempt. Shapes are tried in
order; only when every shape fails is a DecodeError raised, carrying each
shape's reason.
"""
from __future__ import annotations

from datetime import datetime
import logging
from typing import Any, Callable

import voluptuous as vol
from homeassistant.util import dt as dt_util
from homeassistant.util.json import json_loads

from .const import (
    WIRE_AIRCRAFT,
    WIRE_ARRIVAL,
    WIRE_ARRIVAL_TIME,
    WIRE_BLOCK_HOURS,
    WIRE_CABIN,
    WIRE_CHECK_IN,
    WIRE_CHECK_OUT,
    WIRE_COCKPIT,
    WIRE_DATE,
    WIRE_DAY_KEY,
    WIRE_DEP_TIME,
    WIRE_DEPARTURE,
    WIRE_DUTY,
    WIRE_DUTY_TIME,
    WIRE_FLIGHT_DUTY_TIME,
    WIRE_FLIGHTS,
    WIRE_PRODUCED_AT,
    WIRE_REST_PERIOD,
    WIRE_SCHEDULE,
)
from .errors import DecodeError
from .model import DayRecord, FlightRecord, Snapshot

_LOGGER = logging.getLogger(__name__)

SHAPE_ARRAY = "array"
SHAPE_WRAPPED = "wrapped"

_optional_str = vol.Any(None, str)


def _unique_by(key: str, label: str) -> Callable[[list[dict[str, Any]]], list[dict[str, Any]]]:
    def _validate(items: list[dict[str, Any]]) -> list[dict[str, Any]]:
        seen: set[str] = set()
        for idx, item in enumerate(items):
            value = item[key]
            if value in seen:
                raise vol.Invalid(f"duplicate {label} {value!r}", path=[idx, key])
            seen.add(value)
        return items

    return _validate


def _timestamp(value: Any) -> datetime:
    if not isinstance(value, str):
        raise vol.Invalid("expected an ISO timestamp string")
    parsed = dt_util.parse_datetime(value)
    if parsed is None:
        raise vol.Invalid(f"invalid timestamp {value!r}")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=dt_util.UTC)
    return dt_util.as_utc(parsed)


FLIGHT_SCHEMA = vol.Schema(
    {
        vol.Required(WIRE_DUTY): str,
        vol.Required(WIRE_DEPARTURE): str,
        vol.Required(WIRE_ARRIVAL): str,
        vol.Required(WIRE_DEP_TIME): str,
        vol.Required(WIRE_ARRIVAL_TIME): str,
        vol.Optional(WIRE_CHECK_IN): _optional_str,
        vol.Optional(WIRE_CHECK_OUT): _optional_str,
        vol.Required(WIRE_AIRCRAFT): str,
        vol.Required(WIRE_COCKPIT): str,
        vol.Required(WIRE_CABIN): str,
    },
    extra=vol.ALLOW_EXTRA,
)

DAY_SCHEMA = vol.Schema(
    {
        vol.Required(WIRE_DAY_KEY): str,
        vol.Optional(WIRE_DATE): _optional_str,
        vol.Optional(WIRE_DUTY): _optional_str,
        vol.Optional(WIRE_FLIGHTS): vol.Any(
            None, vol.All([FLIGHT_SCHEMA], _unique_by(WIRE_DUTY, "duty"))
        ),
        vol.Optional(WIRE_BLOCK_HOURS): _optional_str,
        vol.Optional(WIRE_FLIGHT_DUTY_TIME): _optional_str,
        vol.Optional(WIRE_DUTY_TIME): _optional_str,
        vol.Optional(WIRE_REST_PERIOD): _optional_str,
    },
    extra=vol.ALLOW_EXTRA,
)

DAYS_SCHEMA = vol.All([DAY_SCHEMA], _unique_by(WIRE_DAY_KEY, "day"))

ARRAY_SCHEMA = vol.Schema(DAYS_SCHEMA)

WRAPPED_SCHEMA = vol.Schema(
    {
        vol.Required(WIRE_SCHEDULE): DAYS_SCHEMA,
        vol.Optional(WIRE_PRODUCED_AT): vol.Any(None, _timestamp),
    },
    extra=vol.ALLOW_EXTRA,
)


def _from_array(data: Any) -> tuple[list[dict[str, Any]], datetime | None]:
    return ARRAY_SCHEMA(data), None


def _from_wrapped(data: Any) -> tuple[list[dict[str, Any]], datetime | None]:
    validated = WRAPPED_SCHEMA(data)
    return validated[WIRE_SCHEDULE], validated.get(WIRE_PRODUCED_AT)


# Ordered: the first shape that validates wins
_ATTEMPTS: tuple[tuple[str, Callable[[Any], tuple[list[dict[str, Any]], datetime | None]]], ...] = (
    (SHAPE_ARRAY, _from_array),
    (SHAPE_WRAPPED, _from_wrapped),
)


def _flight(raw: dict[str, Any]) -> FlightRecord:
    return FlightRecord(
        duty=raw[WIRE_DUTY],
        origin=raw[WIRE_DEPARTURE],
        destination=raw[WIRE_ARRIVAL],
        dep_time=raw[WIRE_DEP_TIME],
        arrival_time=raw[WIRE_ARRIVAL_TIME],
        aircraft=raw[WIRE_AIRCRAFT],
        cockpit=raw[WIRE_COCKPIT],
        cabin=raw[WIRE_CABIN],
        check_in=raw.get(WIRE_CHECK_IN),
        check_out=raw.get(WIRE_CHECK_OUT),
    )


def _day(raw: dict[str, Any]) -> DayRecord:
    flights = raw.get(WIRE_FLIGHTS)
    return DayRecord(
        day_key=raw[WIRE_DAY_KEY],
        date=raw.get(WIRE_DATE),
        duty=raw.get(WIRE_DUTY),
        flights=tuple(_flight(f) for f in flights) if flights is not None else None,
        block_hours=raw.get(WIRE_BLOCK_HOURS),
        flight_duty_time=raw.get(WIRE_FLIGHT_DUTY_TIME),
        duty_time=raw.get(WIRE_DUTY_TIME),
        rest_period=raw.get(WIRE_REST_PERIOD),
    )


def _log_summary(snapshot: Snapshot) -> None:
    for idx, day in enumerate(snapshot.days, start=1):
        _LOGGER.debug("Day %d: %s (duty: %s)", idx, day.day_key, day.duty or "not specified")
        for flight in day.flights or ():
            _LOGGER.debug("  %s %s-%s %s-%s", flight.duty, flight.origin, flight.destination,
                          flight.dep_time, flight.arrival_time)


def decode_schedule(raw: bytes | str, *, produced_at: datetime | None = None) -> Snapshot:
    """Decode raw response bytes into a Snapshot, trying each accepted shape."""
    try:
        data = json_loads(raw)
    except ValueError as err:
        reason = f"invalid JSON: {err}"
        raise DecodeError([(name, reason) for name, _ in _ATTEMPTS]) from err
    return snapshot_from_data(data, produced_at=produced_at)


def snapshot_from_data(data: Any, *, produced_at: datetime | None = None) -> Snapshot:
    """Build a Snapshot from already-parsed JSON data."""
    failures: list[tuple[str, str]] = []
    for name, attempt in _ATTEMPTS:
        try:
            days, stamped_at = attempt(data)
        except vol.Invalid as err:
            _LOGGER.debug("Schedule is not in %s shape: %s", name, err)
            failures.append((name, str(err)))
            continue

        snapshot = Snapshot(
            days=tuple(_day(d) for d in days),
            produced_at=stamped_at or produced_at or dt_util.utcnow(),
        )
        _LOGGER.debug("Decoded %d days of schedule data (%s shape)", len(snapshot.days), name)
        if _LOGGER.isEnabledFor(logging.DEBUG):
            _log_summary(snapshot)
        return snapshot

    raise DecodeError(failures)


def _encode_flight(flight: FlightRecord) -> dict[str, Any]:
    out: dict[str, Any] = {
        WIRE_DUTY: flight.duty,
        WIRE_DEPARTURE: flight.origin,
        WIRE_ARRIVAL: flight.destination,
        WIRE_DEP_TIME: flight.dep_time,
        WIRE_ARRIVAL_TIME: flight.arrival_time,
        WIRE_AIRCRAFT: flight.aircraft,
        WIRE_COCKPIT: flight.cockpit,
        WIRE_CABIN: flight.cabin,
    }
    if flight.check_in is not None:
        out[WIRE_CHECK_IN] = flight.check_in
    if flight.check_out is not None:
        out[WIRE_CHECK_OUT] = flight.check_out
    return out


def _encode_day(day: DayRecord) -> dict[str, Any]:
    out: dict[str, Any] = {WIRE_DAY_KEY: day.day_key}
    optional = (
        (WIRE_DATE, day.date),
        (WIRE_DUTY, day.duty),
        (WIRE_BLOCK_HOURS, day.block_hours),
        (WIRE_FLIGHT_DUTY_TIME, day.flight_duty_time),
        (WIRE_DUTY_TIME, day.duty_time),
        (WIRE_REST_PERIOD, day.rest_period),
    )
    for key, value in optional:
        if value is not None:
            out[key] = value
    if day.flights is not None:
        out[WIRE_FLIGHTS] = [_encode_flight(f) for f in day.flights]
    return out


def encode_schedule(snapshot: Snapshot) -> list[dict[str, Any]]:
    """Encode a Snapshot as the bare array shape."""
    return [_encode_day(d) for d in snapshot.days]


def encode_wrapped(snapshot: Snapshot) -> dict[str, Any]:
    """Encode a Snapshot as the wrapped shape, keeping its timestamp."""
    return {
        WIRE_SCHEDULE: encode_schedule(snapshot),
        WIRE_PRODUCED_AT: snapshot.produced_at.isoformat(),
    }
