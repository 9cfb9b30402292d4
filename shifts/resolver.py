"""Occurrence resolution.

Turns a snapshot of schedule records into the concrete shifts that are on for
a calendar date. Recurring records are checked in one fixed order: weekday,
then effective date, then frequency/parity.
"""
from __future__ import annotations

import datetime as _dt
import logging
from typing import Iterable, Iterator, List

from core.date_utils import weekday_of, week_start_of, weeks_between

from .errors import InvalidRange
from .model import Frequency, Occurrence, RecordKind, ScheduleRecord

LOG = logging.getLogger(__name__)

__all__ = [
    "is_active_on",
    "iter_dates",
    "resolve_for_date",
    "resolve_for_range",
]


def is_active_on(record: ScheduleRecord, on: _dt.date) -> bool:
    """True when ``record`` produces an occurrence on ``on``.

    Ignores the record's ``is_active`` flag; callers decide whether paused
    records take part.
    """
    if record.kind is RecordKind.ONE_TIME:
        return record.date == on
    if weekday_of(on) != record.day_of_week:
        return False
    if on < record.effective_from:
        return False
    if record.frequency is Frequency.WEEKLY:
        return True
    # Floor division and floor modulo keep parity symmetric around the anchor:
    # two weeks before the anchor is -2, which is still an "on" week.
    diff_weeks = weeks_between(record.anchor_week_start, week_start_of(on))
    return diff_weeks % 2 == 0


def resolve_for_date(
    records: Iterable[ScheduleRecord],
    on: _dt.date,
    *,
    include_inactive: bool = False,
) -> List[Occurrence]:
    """Return the occurrences active on ``on``, in record order.

    Args:
        records: Snapshot of schedule records.
        on: Calendar date to resolve.
        include_inactive: Also resolve paused/soft-deleted records (for
            read-only historical timelines).
    """
    out: List[Occurrence] = []
    for record in records:
        if not record.is_active and not include_inactive:
            continue
        if is_active_on(record, on):
            out.append(Occurrence.from_record(record, on))
    LOG.debug("Resolved %d occurrence(s) on %s", len(out), on.isoformat())
    return out


def iter_dates(start_date: _dt.date, end_date: _dt.date) -> Iterator[_dt.date]:
    """Yield each date in the inclusive range; raises InvalidRange when reversed."""
    if end_date < start_date:
        raise InvalidRange(start_date, end_date)
    d = start_date
    while d <= end_date:
        yield d
        d = d + _dt.timedelta(days=1)


def resolve_for_range(
    records: Iterable[ScheduleRecord],
    start_date: _dt.date,
    end_date: _dt.date,
    *,
    include_inactive: bool = False,
) -> List[Occurrence]:
    """Ordered union of resolve_for_date over ``[start_date, end_date]``."""
    dates = list(iter_dates(start_date, end_date))
    snapshot = list(records)
    out: List[Occurrence] = []
    for d in dates:
        out.extend(resolve_for_date(snapshot, d, include_inactive=include_inactive))
    return out
