"""Errors raised by the schedule sync engine."""
from __future__ import annotations


class ScheduleError(Exception):
    """Base error for the schedule engine."""


class NetworkError(ScheduleError):
    """Transport failure or non-success HTTP status."""


class StorageError(ScheduleError):
    """Cache file unreadable or unwritable (not raised for a missing cache)."""


class DecodeError(ScheduleError):
    """Every accepted wire shape failed to decode.

    `attempts` keeps (shape, reason) for each shape tried, in order.
    """

    def __init__(self, attempts: list[tuple[str, str]]) -> None:
        self.attempts = tuple(attempts)
        detail = "; ".join(f"{shape}: {reason}" for shape, reason in self.attempts)
        super().__init__(f"Failed to decode schedule ({detail})")
