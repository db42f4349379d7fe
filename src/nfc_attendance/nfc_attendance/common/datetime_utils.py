from __future__ import annotations

from datetime import date, datetime, time

from ..core.constants import TIME_FORMAT


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def parse_hhmm(value: str) -> time:
    """Parse an ``HH:MM`` string (seconds tolerated) into time."""
    parts = value.strip().split(":")
    if len(parts) < 2:
        raise ValueError(f"Invalid time string: {value!r}")
    return time(hour=int(parts[0]), minute=int(parts[1]))


def minutes_of_day(value: time) -> int:
    return value.hour * 60 + value.minute


def format_hm(value: datetime | time) -> str:
    return value.strftime(TIME_FORMAT)


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()
