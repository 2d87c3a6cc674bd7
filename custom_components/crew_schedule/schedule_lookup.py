"""Calendar helpers over a schedule snapshot.

Day keys look like 'Mon, 01Apr'. A calendar date joins to a day when the
key contains its 'ddMon' token.
"""
from __future__ import annotations

from datetime import date
from enum import StrEnum

from .model import DayRecord, FlightRecord, Snapshot

MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")
WEEKDAYS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")


class DayStatus(StrEnum):
    NONE = "none"
    SINGLE_FLIGHT = "single_flight"
    MULTIPLE_FLIGHTS = "multiple_flights"
    DAY_OFF = "day_off"
    WORK_NO_FLIGHT = "work_no_flight"


def _token(day: date) -> str:
    return f"{day.day:02d}{MONTHS[day.month - 1]}"


def day_key_for(day: date) -> str:
    """Day key for a calendar date (locale independent)."""
    return f"{WEEKDAYS[day.weekday()]}, {_token(day)}"


def find_day(snapshot: Snapshot | None, day: date) -> DayRecord | None:
    if snapshot is None:
        return None
    token = _token(day)
    for record in snapshot.days:
        if token in record.day_key:
            return record
    return None


def day_status(snapshot: Snapshot | None, day: date) -> DayStatus:
    record = find_day(snapshot, day)
    if record is None:
        return DayStatus.NONE
    if record.is_day_off:
        return DayStatus.DAY_OFF
    if record.flights:
        return DayStatus.MULTIPLE_FLIGHTS if len(record.flights) > 1 else DayStatus.SINGLE_FLIGHT
    return DayStatus.WORK_NO_FLIGHT


def duty_window(record: DayRecord | None) -> tuple[str, str] | None:
    """(start, end) of the duty: first check-in or departure, last check-out or arrival."""
    if record is None or not record.flights:
        return None
    first: FlightRecord = record.flights[0]
    last: FlightRecord = record.flights[-1]
    return first.check_in or first.dep_time, last.check_out or last.arrival_time


def format_duration(minutes: int | None) -> str | None:
    if minutes is None:
        return None
    hours, mins = divmod(minutes, 60)
    return f"{hours} Hours {mins} minutes"
