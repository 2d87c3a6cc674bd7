"""Schedule snapshot model and engine state."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import StrEnum

from homeassistant.util import dt as dt_util

from .const import DUTY_DAY_OFF
from .errors import ScheduleError


def time_to_minutes(value: str | None) -> int | None:
    """Parse 'HH:MM' into minutes after midnight, None if unparseable."""
    if not value:
        return None
    parts = value.strip().split(":")
    if len(parts) != 2:
        return None
    try:
        hours, minutes = int(parts[0]), int(parts[1])
    except ValueError:
        return None
    return hours * 60 + minutes


@dataclass(frozen=True)
class FlightRecord:
    """One flight within a duty day.

    Equality covers duty, origin, destination and the two times only.
    """
    duty: str                   # duty identifier, unique within a day
    origin: str                 # IATA
    destination: str            # IATA
    dep_time: str               # "HH:MM"
    arrival_time: str           # "HH:MM"

    aircraft: str = field(default="", compare=False)
    cockpit: str = field(default="", compare=False)
    cabin: str = field(default="", compare=False)
    check_in: str | None = field(default=None, compare=False)
    check_out: str | None = field(default=None, compare=False)

    @property
    def duration_minutes(self) -> int | None:
        dep = time_to_minutes(self.dep_time)
        arr = time_to_minutes(self.arrival_time)
        if dep is None or arr is None:
            return None
        # Flights are assumed not to span more than one midnight
        return (arr - dep) % (24 * 60)


@dataclass(frozen=True)
class DayRecord:
    """One calendar day of the roster, keyed by its day key (e.g. 'Mon, 01Apr')."""
    day_key: str
    date: str | None = field(default=None, compare=False)
    duty: str | None = field(default=None, compare=False)
    # None: the field was absent; (): present but empty
    flights: tuple[FlightRecord, ...] | None = field(default=None, compare=False)

    block_hours: str | None = field(default=None, compare=False)
    flight_duty_time: str | None = field(default=None, compare=False)
    duty_time: str | None = field(default=None, compare=False)
    rest_period: str | None = field(default=None, compare=False)

    @property
    def duty_type(self) -> str:
        if self.duty is not None:
            return self.duty
        if self.flights:
            return "Flight"
        return "Unknown"

    @property
    def is_day_off(self) -> bool:
        return self.duty == DUTY_DAY_OFF

    @property
    def calendar_date(self) -> date | None:
        if not self.date:
            return None
        return dt_util.parse_date(self.date)


@dataclass(frozen=True)
class Snapshot:
    """One complete fetched or cached schedule. Never mutated, only replaced."""
    days: tuple[DayRecord, ...]
    produced_at: datetime

    def day(self, day_key: str) -> DayRecord | None:
        for day in self.days:
            if day.day_key == day_key:
                return day
        return None

    @property
    def is_empty(self) -> bool:
        return not self.days


@dataclass(frozen=True)
class ChangeRecord:
    """A detected difference for one flight of the tracked day."""
    flight: FlightRecord
    old_dep_time: str | None = None
    old_arrival_time: str | None = None
    is_new_dep_time: bool = False
    is_new_arrival_time: bool = False
    is_new: bool = False

    def as_dict(self) -> dict[str, object]:
        return {
            "duty": self.flight.duty,
            "origin": self.flight.origin,
            "destination": self.flight.destination,
            "dep_time": self.flight.dep_time,
            "arrival_time": self.flight.arrival_time,
            "old_dep_time": self.old_dep_time,
            "old_arrival_time": self.old_arrival_time,
            "is_new_dep_time": self.is_new_dep_time,
            "is_new_arrival_time": self.is_new_arrival_time,
            "is_new": self.is_new,
        }


class SyncPhase(StrEnum):
    IDLE = "idle"
    FETCHING = "fetching"
    DECODING = "decoding"
    FALLBACK = "fallback"
    DIFFING = "diffing"
    PUBLISHING = "publishing"


class SyncOutcome(StrEnum):
    """Completion signal for budgeted (background) syncs."""
    NEW_DATA = "new_data"
    NO_DATA = "no_data"
    FAILED = "failed"


@dataclass(frozen=True)
class EngineState:
    """Published engine state. Replaced wholesale on each transition."""
    snapshot: Snapshot | None = None
    loading: bool = False
    error: ScheduleError | None = None
    changes: tuple[ChangeRecord, ...] = ()
    has_pending_changes: bool = False

    phase: SyncPhase = SyncPhase.IDLE
    tracked_day: str | None = None
    summary: str | None = None
    last_synced: datetime | None = None
    cache_error: str | None = None
