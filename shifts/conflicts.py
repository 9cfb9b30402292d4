"""Double-booking detection for a caregiver's shifts."""
from __future__ import annotations

import datetime as _dt
import logging
from typing import Any, Iterable, List, Optional, Tuple

from core.date_utils import weeks_between

from .errors import InvalidRecord
from .model import ConflictPair, Occurrence, ScheduleRecord, intervals_overlap
from .resolver import is_active_on, resolve_for_date

LOG = logging.getLogger(__name__)

__all__ = [
    "alternate_weeks",
    "check_shift",
    "find_conflicts",
    "find_conflicts_on_date",
]


def alternate_weeks(a: ScheduleRecord, b: ScheduleRecord) -> bool:
    """True when two bi-weekly records run on permanently alternating weeks."""
    if not (a.is_biweekly and b.is_biweekly):
        return False
    if a.anchor_week_start is None or b.anchor_week_start is None:
        return False
    return weeks_between(a.anchor_week_start, b.anchor_week_start) % 2 != 0


def _recurring_for(records: Iterable[ScheduleRecord], caregiver_id: Any) -> List[ScheduleRecord]:
    return [
        r for r in records
        if r.is_recurring and r.is_active and r.caregiver_id == caregiver_id
    ]


def find_conflicts(records: Iterable[ScheduleRecord], caregiver_id: Any) -> List[ConflictPair]:
    """Find overlapping pairs among a caregiver's active recurring records.

    Pairs are compared on a shared weekday with an open-interval test, so
    back-to-back shifts are fine. Bi-weekly records whose anchor weeks are an
    odd number of weeks apart never meet and are skipped regardless of time.
    One-time records are not considered here; see find_conflicts_on_date.

    Returns:
        One ConflictPair per offending pair, ordered by input position.
    """
    recurring = _recurring_for(records, caregiver_id)
    found: List[ConflictPair] = []
    for i, a in enumerate(recurring):
        for b in recurring[i + 1:]:
            if a.day_of_week != b.day_of_week:
                continue
            if alternate_weeks(a, b):
                continue
            if intervals_overlap(a.start_time, a.end_time, b.start_time, b.end_time):
                found.append(ConflictPair(a=a, b=b, day_of_week=a.day_of_week))
    LOG.debug("Caregiver %s: %d recurring record(s), %d conflict(s)", caregiver_id, len(recurring), len(found))
    return found


def find_conflicts_on_date(
    records: Iterable[ScheduleRecord],
    caregiver_id: Any,
    on: _dt.date,
) -> List[Tuple[Occurrence, Occurrence]]:
    """Overlapping pairs among a caregiver's resolved occurrences on one date.

    Covers one-time visits against recurring shifts, which the steady-state
    check in find_conflicts leaves to the caller.
    """
    mine = [r for r in records if r.caregiver_id == caregiver_id]
    occurrences = resolve_for_date(mine, on)
    pairs: List[Tuple[Occurrence, Occurrence]] = []
    for i, a in enumerate(occurrences):
        for b in occurrences[i + 1:]:
            if a.overlaps(b):
                pairs.append((a, b))
    return pairs


def check_shift(
    records: Iterable[ScheduleRecord],
    caregiver_id: Any,
    on: _dt.date,
    start: _dt.time,
    end: _dt.time,
    *,
    exclude_record_id: Optional[Any] = None,
) -> List[ScheduleRecord]:
    """Return the active records that would collide with a proposed shift.

    A record collides when it resolves to an occurrence on ``on`` (honoring
    effective dates and bi-weekly parity) whose time window overlaps
    ``start``..``end``. ``exclude_record_id`` skips the record being edited.

    Raises:
        InvalidRecord: if the proposed window is empty or inverted.
    """
    if not start < end:
        raise InvalidRecord(f"proposed shift {start:%H:%M}-{end:%H:%M} must start before it ends")
    hits: List[ScheduleRecord] = []
    for r in records:
        if r.caregiver_id != caregiver_id or not r.is_active:
            continue
        if exclude_record_id is not None and r.id == exclude_record_id:
            continue
        if is_active_on(r, on) and intervals_overlap(r.start_time, r.end_time, start, end):
            hits.append(r)
    return hits
