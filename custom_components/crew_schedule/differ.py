"""Change detection between two schedule snapshots.

Comparison is scoped to a single tracked day: only that day's flights are
volatile enough to be worth notifying about, and it keeps the work bounded by
the number of flights in one day.
"""
from __future__ import annotations

from .model import ChangeRecord, FlightRecord, Snapshot


def diff_snapshots(
    previous: Snapshot | None,
    current: Snapshot | None,
    tracked_day_key: str,
) -> list[ChangeRecord]:
    """Return per-flight changes of the tracked day, in current flight order.

    Returns [] when either snapshot lacks the day or the current day has no
    flights. A previous day without flights reports every current flight as new.
    """
    if previous is None or current is None:
        return []

    prev_day = previous.day(tracked_day_key)
    cur_day = current.day(tracked_day_key)
    if prev_day is None or cur_day is None:
        return []
    if not cur_day.flights:
        return []

    prev_by_duty: dict[str, FlightRecord] = {f.duty: f for f in prev_day.flights or ()}

    changes: list[ChangeRecord] = []
    for flight in cur_day.flights:
        old = prev_by_duty.get(flight.duty)
        if old is None:
            changes.append(
                ChangeRecord(
                    flight=flight,
                    is_new_dep_time=True,
                    is_new_arrival_time=True,
                    is_new=True,
                )
            )
            continue

        dep_changed = old.dep_time != flight.dep_time
        arr_changed = old.arrival_time != flight.arrival_time
        if not dep_changed and not arr_changed:
            continue
        changes.append(
            ChangeRecord(
                flight=flight,
                old_dep_time=old.dep_time if dep_changed else None,
                old_arrival_time=old.arrival_time if arr_changed else None,
                is_new_dep_time=dep_changed,
                is_new_arrival_time=arr_changed,
            )
        )
    return changes


def _describe(change: ChangeRecord) -> str:
    flight = change.flight
    route = f"{flight.duty} {flight.origin}-{flight.destination}"
    if change.is_new:
        return f"{route}: new flight {flight.dep_time}-{flight.arrival_time}"
    parts = []
    if change.is_new_dep_time:
        parts.append(f"departure {change.old_dep_time} -> {flight.dep_time}")
    if change.is_new_arrival_time:
        parts.append(f"arrival {change.old_arrival_time} -> {flight.arrival_time}")
    return f"{route}: " + ", ".join(parts)


def summarize_changes(tracked_day_key: str, changes: list[ChangeRecord] | tuple[ChangeRecord, ...]) -> str | None:
    """Human-readable change summary for the notification layer, None if nothing changed."""
    if not changes:
        return None
    lines = [f"Schedule changes for {tracked_day_key}:"]
    lines.extend(f"- {_describe(c)}" for c in changes)
    return "\n".join(lines)
