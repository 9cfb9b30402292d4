"""Caregiver workload aggregation."""
from __future__ import annotations

import datetime as _dt
import logging
from dataclasses import dataclass
from typing import Any, Iterable, List, Optional, Tuple

from core.date_utils import week_start_of

from .clock import Clock
from .config import EngineSettings
from .model import Frequency, Occurrence, ScheduleRecord
from .resolver import is_active_on, iter_dates, resolve_for_range

LOG = logging.getLogger(__name__)

__all__ = [
    "HoursSummary",
    "hours_summary",
    "week_actual_hours",
    "week_bounds",
    "week_occurrences",
    "weekly_hours",
]


def weekly_hours(records: Iterable[ScheduleRecord], caregiver_id: Any) -> float:
    """Steady-state weekly hours from a caregiver's active recurring records.

    Weekly records count in full; bi-weekly records count half, being the
    average they add to any given week. One-time records are left out.
    """
    total = 0.0
    for r in records:
        if not (r.is_recurring and r.is_active and r.caregiver_id == caregiver_id):
            continue
        hours = r.duration_hours
        total += hours / 2 if r.frequency is Frequency.BIWEEKLY else hours
    return total


def week_bounds(week_of: _dt.date) -> Tuple[_dt.date, _dt.date]:
    """Sunday and Saturday of the week containing ``week_of``."""
    start = week_start_of(week_of)
    return start, start + _dt.timedelta(days=6)


def week_occurrences(
    records: Iterable[ScheduleRecord],
    caregiver_id: Any,
    week_of: _dt.date,
) -> List[Occurrence]:
    start, end = week_bounds(week_of)
    mine = [r for r in records if r.caregiver_id == caregiver_id]
    return resolve_for_range(mine, start, end)


def week_actual_hours(records: Iterable[ScheduleRecord], caregiver_id: Any, week_of: _dt.date) -> float:
    """Hours a caregiver actually works in the week containing ``week_of``.

    Sums real occurrence durations, so a bi-weekly record adds either its full
    length or nothing depending on the week's parity.
    """
    return sum(o.duration_hours for o in week_occurrences(records, caregiver_id, week_of))


@dataclass(frozen=True)
class HoursSummary:
    caregiver_id: Any
    week_start: _dt.date
    week_end: _dt.date
    one_time_hours: float
    recurring_hours: float
    total_hours: float
    steady_state_hours: float
    max_hours: float
    remaining_hours: float
    approaching_overtime: bool


def hours_summary(
    records: Iterable[ScheduleRecord],
    caregiver_id: Any,
    *,
    clock: Clock,
    week_of: Optional[_dt.date] = None,
    max_hours: Optional[float] = None,
    settings: Optional[EngineSettings] = None,
) -> HoursSummary:
    """Summarize one caregiver's hours for a concrete week.

    Args:
        records: Snapshot of schedule records.
        caregiver_id: Caregiver to summarize.
        clock: Source of "today", used when ``week_of`` is not given.
        week_of: Any date inside the week to summarize.
        max_hours: The caregiver's weekly cap; defaults from settings.
        settings: Engine settings (defaults and overtime threshold).
    """
    settings = settings or EngineSettings()
    snapshot = list(records)
    anchor = week_of or clock.today()
    start, end = week_bounds(anchor)
    days = list(iter_dates(start, end))

    # Split by each record's own kind; ids may repeat across kinds
    one_time = 0.0
    recurring = 0.0
    for r in snapshot:
        if r.caregiver_id != caregiver_id or not r.is_active:
            continue
        hours = sum(r.duration_hours for day in days if is_active_on(r, day))
        if r.is_recurring:
            recurring += hours
        else:
            one_time += hours

    cap = settings.default_max_hours if max_hours is None else float(max_hours)
    total = one_time + recurring
    summary = HoursSummary(
        caregiver_id=caregiver_id,
        week_start=start,
        week_end=end,
        one_time_hours=one_time,
        recurring_hours=recurring,
        total_hours=total,
        steady_state_hours=weekly_hours(snapshot, caregiver_id),
        max_hours=cap,
        remaining_hours=max(0.0, cap - total),
        approaching_overtime=total > settings.overtime_threshold,
    )
    LOG.debug("Hours for %s week of %s: %.2f/%.2f", caregiver_id, start.isoformat(), total, cap)
    return summary
