"""Per-caregiver week grid (Sunday..Saturday) of resolved occurrences."""
from __future__ import annotations

import datetime as _dt
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence

from core.date_utils import weekday_of

from .model import Occurrence, ScheduleRecord
from .resolver import resolve_for_range
from .workload import week_bounds


@dataclass
class CaregiverWeek:
    caregiver_id: Any
    days: Dict[int, List[Occurrence]] = field(default_factory=lambda: {d: [] for d in range(7)})

    @property
    def total_hours(self) -> float:
        return sum(o.duration_hours for day in self.days.values() for o in day)


@dataclass
class WeekView:
    week_start: _dt.date
    week_end: _dt.date
    caregivers: List[CaregiverWeek]

    def for_caregiver(self, caregiver_id: Any) -> Optional[CaregiverWeek]:
        for cw in self.caregivers:
            if cw.caregiver_id == caregiver_id:
                return cw
        return None


def week_view(
    records: Iterable[ScheduleRecord],
    week_of: _dt.date,
    *,
    caregiver_ids: Optional[Sequence[Any]] = None,
    include_inactive: bool = False,
) -> WeekView:
    """Group the week's occurrences by caregiver and weekday.

    With ``caregiver_ids`` the grid lists exactly those caregivers (empty
    rows included) in the given order; otherwise every caregiver that owns a
    record appears, in first-seen order. Each day is sorted by start time.
    """
    snapshot = list(records)
    start, end = week_bounds(week_of)

    if caregiver_ids is None:
        order: List[Any] = []
        for r in snapshot:
            if r.caregiver_id not in order:
                order.append(r.caregiver_id)
    else:
        order = list(dict.fromkeys(caregiver_ids))
    rows = {cid: CaregiverWeek(caregiver_id=cid) for cid in order}

    for occ in resolve_for_range(snapshot, start, end, include_inactive=include_inactive):
        row = rows.get(occ.caregiver_id)
        if row is not None:
            row.days[weekday_of(occ.date)].append(occ)

    for row in rows.values():
        for day in row.days.values():
            day.sort(key=lambda o: (o.start_time, o.end_time))
    return WeekView(week_start=start, week_end=end, caregivers=[rows[cid] for cid in order])
