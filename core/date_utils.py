"""Shared date and time utilities.

Provides Sunday-based weekday arithmetic, week starts, and parsing of the
loose date/time values that arrive from storage rows and CLI flags.
All values are naive calendar dates and local times of day.
"""
from __future__ import annotations

import datetime as _dt
from typing import Any, Optional

from .constants import DAYS_PER_WEEK, FMT_TIME, WEEKDAY_NAMES

__all__ = [
    "DAY_MAP",
    "day_name",
    "hours_between",
    "normalize_day",
    "parse_date",
    "parse_time",
    "weekday_of",
    "week_start_of",
    "weeks_between",
    "format_time",
]

# Day-of-week name/abbreviation to Sunday-based index
DAY_MAP = {
    "sunday": 0,
    "sun": 0,
    "su": 0,
    "monday": 1,
    "mon": 1,
    "mo": 1,
    "tuesday": 2,
    "tue": 2,
    "tues": 2,
    "tu": 2,
    "wednesday": 3,
    "wed": 3,
    "we": 3,
    "thursday": 4,
    "thu": 4,
    "thur": 4,
    "thurs": 4,
    "th": 4,
    "friday": 5,
    "fri": 5,
    "fr": 5,
    "saturday": 6,
    "sat": 6,
    "sa": 6,
}


def weekday_of(d: _dt.date) -> int:
    """Return the weekday of ``d`` with Sunday as 0 and Saturday as 6."""
    return (d.weekday() + 1) % DAYS_PER_WEEK


def week_start_of(d: _dt.date) -> _dt.date:
    """Return the Sunday on or before ``d``."""
    return d - _dt.timedelta(days=weekday_of(d))


def weeks_between(start: _dt.date, end: _dt.date) -> int:
    """Whole weeks from ``start`` to ``end``, floored (negative when end < start)."""
    return (end - start).days // DAYS_PER_WEEK


def day_name(dow: int) -> str:
    """Convert a Sunday-based weekday index to its English name."""
    if 0 <= dow < DAYS_PER_WEEK:
        return WEEKDAY_NAMES[dow]
    return "Unknown"


def normalize_day(value: Any) -> Optional[int]:
    """Convert a weekday name, abbreviation or index to a Sunday-based index.

    Examples:
        'Monday' -> 1
        'sun' -> 0
        3 -> 3
        'Funday' -> None
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if 0 <= value < DAYS_PER_WEEK else None
    text = str(value or "").strip().lower()
    if text.isdigit():
        idx = int(text)
        return idx if 0 <= idx < DAYS_PER_WEEK else None
    return DAY_MAP.get(text)


def parse_date(value: Any) -> _dt.date:
    """Parse a calendar date, dropping any time-of-day component.

    Accepts ``date``/``datetime`` objects and ISO strings such as
    ``2024-01-08`` or ``2024-01-08T00:00:00.000Z``.

    Raises:
        ValueError: if the value is not a recognizable date.
    """
    if isinstance(value, _dt.datetime):
        return value.date()
    if isinstance(value, _dt.date):
        return value
    text = str(value or "").strip()
    if not text:
        raise ValueError("empty date")
    base = text.split("T", 1)[0].split(" ", 1)[0]
    return _dt.date.fromisoformat(base)


def parse_time(value: Any) -> _dt.time:
    """Parse a local time of day at minute precision.

    Accepts ``time`` objects and ``HH:MM`` / ``HH:MM:SS`` strings.

    Raises:
        ValueError: if the value is malformed or carries non-zero seconds.
    """
    if isinstance(value, _dt.time):
        t = value
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        # YAML 1.1 loads an unquoted 13:00 as the base-60 integer 780
        raise ValueError(f"expected HH:MM, got the number {value!r}; quote clock times in YAML, e.g. '13:00'")
    else:
        text = str(value or "").strip()
        if not text:
            raise ValueError("empty time")
        t = _dt.time.fromisoformat(text)
    if t.tzinfo is not None:
        raise ValueError(f"time must be naive local time: {value!r}")
    if t.second or t.microsecond:
        raise ValueError(f"time must have minute precision: {value!r}")
    return t


def format_time(t: _dt.time) -> str:
    return t.strftime(FMT_TIME)


def hours_between(start: _dt.time, end: _dt.time) -> float:
    """Length of the same-day interval ``start``..``end`` in hours."""
    minutes = (end.hour * 60 + end.minute) - (start.hour * 60 + start.minute)
    return minutes / 60.0
