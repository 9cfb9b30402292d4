"""Bulk scheduling from a weekly template.

A template is a list of weekday/time slots. Planning stamps it onto each of
the next N weeks as one-time records, leaving out slots in the past and slots
that would double-book the caregiver. Planning is pure; apply_bulk hands the
result to a store.
"""
from __future__ import annotations

import datetime as _dt
import logging
import uuid
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, List, Optional, Protocol, Sequence, Tuple

from core.constants import DEFAULT_BULK_WEEKS
from core.date_utils import parse_time, week_start_of

from .clock import Clock
from .config import EngineSettings
from .conflicts import check_shift
from .errors import InvalidRecord
from .model import ScheduleRecord, intervals_overlap

LOG = logging.getLogger(__name__)

SKIP_PAST = "past"
SKIP_CONFLICT = "conflict"


@dataclass(frozen=True)
class TemplateSlot:
    day_of_week: int
    start_time: _dt.time
    end_time: _dt.time

    def __post_init__(self) -> None:
        dow = self.day_of_week
        if isinstance(dow, bool) or not isinstance(dow, int) or not 0 <= dow <= 6:
            raise InvalidRecord(f"template day_of_week must be 0..6, got {dow!r}")
        object.__setattr__(self, "start_time", _slot_time("start_time", self.start_time))
        object.__setattr__(self, "end_time", _slot_time("end_time", self.end_time))
        if not self.start_time < self.end_time:
            raise InvalidRecord(
                f"template slot {self.start_time:%H:%M}-{self.end_time:%H:%M} must start before it ends"
            )


def _slot_time(name: str, value: Any) -> _dt.time:
    try:
        return parse_time(value)
    except (TypeError, ValueError) as exc:
        raise InvalidRecord(f"template {name}: {exc}") from exc


@dataclass(frozen=True)
class SkippedSlot:
    date: _dt.date
    start_time: _dt.time
    end_time: _dt.time
    reason: str
    conflicting_ids: Tuple[Any, ...] = ()


@dataclass
class BulkPlan:
    caregiver_id: Any
    client_id: Any
    first_week: _dt.date
    weeks: int
    created: List[ScheduleRecord] = field(default_factory=list)
    skipped: List[SkippedSlot] = field(default_factory=list)

    @property
    def conflicts(self) -> List[SkippedSlot]:
        return [s for s in self.skipped if s.reason == SKIP_CONFLICT]


class ScheduleStore(Protocol):
    def add(self, record: ScheduleRecord) -> None:
        ...


def _new_id() -> str:
    return str(uuid.uuid4())


def clamp_weeks(weeks: Optional[int], limit: int) -> int:
    if not weeks:
        weeks = DEFAULT_BULK_WEEKS
    return min(max(int(weeks), 1), limit)


def plan_bulk(
    records: Iterable[ScheduleRecord],
    caregiver_id: Any,
    client_id: Any,
    template: Sequence[TemplateSlot],
    *,
    clock: Clock,
    weeks: Optional[int] = DEFAULT_BULK_WEEKS,
    start_date: Optional[_dt.date] = None,
    notes: str = "",
    id_factory: Callable[[], Any] = _new_id,
    settings: Optional[EngineSettings] = None,
) -> BulkPlan:
    """Stamp ``template`` onto consecutive weeks as one-time records.

    Args:
        records: Existing schedule snapshot to check collisions against.
        caregiver_id: Caregiver receiving the shifts.
        client_id: Client being visited.
        template: Weekday/time slots to repeat every week.
        clock: Source of "today"; also the default start.
        weeks: Number of weeks, clamped to 1..max_bulk_weeks (falsy means 4).
        start_date: Any date in the first week; normalized to its Sunday.
        notes: Copied onto every created record.
        id_factory: Produces ids for new records.
        settings: Engine settings (week limit).

    Slots dated before today are skipped. A slot is also skipped when it
    overlaps an active occurrence of the caregiver or a slot planned earlier
    in the same run.

    Raises:
        InvalidRecord: if the template is empty.
    """
    if not template:
        raise InvalidRecord("bulk template has no slots")
    settings = settings or EngineSettings()
    snapshot = list(records)
    today = clock.today()
    first_week = week_start_of(start_date or today)
    count = clamp_weeks(weeks, settings.max_bulk_weeks)
    plan = BulkPlan(caregiver_id=caregiver_id, client_id=client_id, first_week=first_week, weeks=count)

    for week in range(count):
        for slot in template:
            on = first_week + _dt.timedelta(days=week * 7 + slot.day_of_week)
            if on < today:
                plan.skipped.append(SkippedSlot(on, slot.start_time, slot.end_time, SKIP_PAST))
                continue
            hits = [r.id for r in check_shift(snapshot, caregiver_id, on, slot.start_time, slot.end_time)]
            hits.extend(
                r.id for r in plan.created
                if r.date == on and intervals_overlap(r.start_time, r.end_time, slot.start_time, slot.end_time)
            )
            if hits:
                plan.skipped.append(
                    SkippedSlot(on, slot.start_time, slot.end_time, SKIP_CONFLICT, tuple(hits))
                )
                continue
            plan.created.append(
                ScheduleRecord.one_time(
                    id_factory(), caregiver_id, client_id, on, slot.start_time, slot.end_time, notes=notes
                )
            )

    LOG.debug(
        "Bulk plan for %s: %d created, %d skipped over %d week(s) from %s",
        caregiver_id, len(plan.created), len(plan.skipped), count, first_week.isoformat(),
    )
    return plan


def apply_bulk(plan: BulkPlan, store: ScheduleStore) -> int:
    """Hand each planned record to ``store``; returns how many were added."""
    for record in plan.created:
        store.add(record)
    LOG.info("Added %d scheduled shift(s) for caregiver %s", len(plan.created), plan.caregiver_id)
    return len(plan.created)
