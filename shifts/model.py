"""Schedule record, occurrence and conflict types.

A ScheduleRecord is the unit of scheduling intent: either a one-time visit on
a calendar date, or a weekly / bi-weekly template on a fixed weekday. Records
validate their invariants on construction and are immutable afterwards, so a
list of them can be shared as a read-only snapshot.
"""
from __future__ import annotations

import datetime as _dt
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Union

from core.date_utils import hours_between, parse_date, parse_time, weekday_of

from .errors import InvalidRecord

TimeLike = Union[_dt.time, str]
DateLike = Union[_dt.date, str]


class RecordKind(str, Enum):
    ONE_TIME = "one-time"
    RECURRING = "recurring"


class Frequency(str, Enum):
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"


def intervals_overlap(start_a: _dt.time, end_a: _dt.time, start_b: _dt.time, end_b: _dt.time) -> bool:
    """Open-interval overlap test; shifts sharing only a boundary do not overlap."""
    return start_a < end_b and end_a > start_b


def _calendar_date(value: Any) -> Any:
    # A stored date may carry a time of day; only the calendar date counts.
    if isinstance(value, _dt.datetime):
        return value.date()
    return value


@dataclass(frozen=True)
class ScheduleRecord:
    id: Any
    caregiver_id: Any
    client_id: Any
    kind: RecordKind
    start_time: _dt.time
    end_time: _dt.time
    date: Optional[_dt.date] = None
    day_of_week: Optional[int] = None
    frequency: Optional[Frequency] = None
    effective_from: Optional[_dt.date] = None
    anchor_week_start: Optional[_dt.date] = None
    is_active: bool = True
    notes: str = ""

    def __post_init__(self) -> None:
        for name in ("date", "effective_from", "anchor_week_start"):
            object.__setattr__(self, name, _calendar_date(getattr(self, name)))
        self._check_times()
        if self.kind is RecordKind.ONE_TIME:
            self._check_one_time()
        elif self.kind is RecordKind.RECURRING:
            self._check_recurring()
        else:
            self._fail(f"unknown kind {self.kind!r}")

    def _fail(self, reason: str) -> None:
        raise InvalidRecord(reason, record_id=self.id)

    def _check_times(self) -> None:
        for name in ("start_time", "end_time"):
            value = getattr(self, name)
            if not isinstance(value, _dt.time):
                self._fail(f"{name} must be a time of day, got {value!r}")
            if value.second or value.microsecond:
                self._fail(f"{name} must have minute precision")
        if not self.start_time < self.end_time:
            self._fail(
                f"start_time {self.start_time:%H:%M} must be before end_time {self.end_time:%H:%M}"
            )

    def _check_one_time(self) -> None:
        if not isinstance(self.date, _dt.date):
            self._fail("one-time record requires a date")
        populated = [
            name
            for name in ("day_of_week", "frequency", "effective_from", "anchor_week_start")
            if getattr(self, name) is not None
        ]
        if populated:
            self._fail(f"one-time record must not carry {', '.join(populated)}")

    def _check_recurring(self) -> None:
        if self.date is not None:
            self._fail("recurring record must not carry a date")
        dow = self.day_of_week
        if isinstance(dow, bool) or not isinstance(dow, int) or not 0 <= dow <= 6:
            self._fail(f"day_of_week must be 0 (Sunday) .. 6 (Saturday), got {dow!r}")
        if not isinstance(self.frequency, Frequency):
            self._fail(f"recurring record requires a frequency, got {self.frequency!r}")
        if not isinstance(self.effective_from, _dt.date):
            self._fail("recurring record requires effective_from")
        anchor = self.anchor_week_start
        if self.frequency is Frequency.BIWEEKLY:
            if not isinstance(anchor, _dt.date):
                self._fail("bi-weekly record requires anchor_week_start")
            if weekday_of(anchor) != 0:
                self._fail(f"anchor_week_start {anchor.isoformat()} is not a Sunday")
        elif anchor is not None:
            self._fail("anchor_week_start is only allowed on bi-weekly records")

    # -- convenience builders -------------------------------------------------

    @classmethod
    def one_time(
        cls,
        id: Any,
        caregiver_id: Any,
        client_id: Any,
        on: DateLike,
        start: TimeLike,
        end: TimeLike,
        *,
        is_active: bool = True,
        notes: str = "",
    ) -> "ScheduleRecord":
        return cls(
            id=id,
            caregiver_id=caregiver_id,
            client_id=client_id,
            kind=RecordKind.ONE_TIME,
            date=_coerce(id, "date", on, parse_date),
            start_time=_coerce(id, "start_time", start, parse_time),
            end_time=_coerce(id, "end_time", end, parse_time),
            is_active=is_active,
            notes=notes,
        )

    @classmethod
    def weekly(
        cls,
        id: Any,
        caregiver_id: Any,
        client_id: Any,
        day_of_week: int,
        start: TimeLike,
        end: TimeLike,
        *,
        effective_from: DateLike,
        is_active: bool = True,
        notes: str = "",
    ) -> "ScheduleRecord":
        return cls(
            id=id,
            caregiver_id=caregiver_id,
            client_id=client_id,
            kind=RecordKind.RECURRING,
            day_of_week=day_of_week,
            frequency=Frequency.WEEKLY,
            effective_from=_coerce(id, "effective_from", effective_from, parse_date),
            start_time=_coerce(id, "start_time", start, parse_time),
            end_time=_coerce(id, "end_time", end, parse_time),
            is_active=is_active,
            notes=notes,
        )

    @classmethod
    def biweekly(
        cls,
        id: Any,
        caregiver_id: Any,
        client_id: Any,
        day_of_week: int,
        start: TimeLike,
        end: TimeLike,
        *,
        anchor_week_start: DateLike,
        effective_from: DateLike,
        is_active: bool = True,
        notes: str = "",
    ) -> "ScheduleRecord":
        anchor = _coerce(id, "anchor_week_start", anchor_week_start, parse_date)
        return cls(
            id=id,
            caregiver_id=caregiver_id,
            client_id=client_id,
            kind=RecordKind.RECURRING,
            day_of_week=day_of_week,
            frequency=Frequency.BIWEEKLY,
            effective_from=_coerce(id, "effective_from", effective_from, parse_date),
            anchor_week_start=anchor,
            start_time=_coerce(id, "start_time", start, parse_time),
            end_time=_coerce(id, "end_time", end, parse_time),
            is_active=is_active,
            notes=notes,
        )

    # -- derived properties ---------------------------------------------------

    @property
    def is_recurring(self) -> bool:
        return self.kind is RecordKind.RECURRING

    @property
    def is_biweekly(self) -> bool:
        return self.frequency is Frequency.BIWEEKLY

    @property
    def duration_hours(self) -> float:
        return hours_between(self.start_time, self.end_time)


def _coerce(record_id: Any, name: str, value: Any, parser) -> Any:
    try:
        return parser(value)
    except (TypeError, ValueError) as exc:
        raise InvalidRecord(f"{name}: {exc}", record_id=record_id) from exc


@dataclass(frozen=True)
class Occurrence:
    """A concrete, dated instance of a shift derived from one record."""

    source_record_id: Any
    caregiver_id: Any
    client_id: Any
    date: _dt.date
    start_time: _dt.time
    end_time: _dt.time

    @classmethod
    def from_record(cls, record: ScheduleRecord, on: _dt.date) -> "Occurrence":
        return cls(
            source_record_id=record.id,
            caregiver_id=record.caregiver_id,
            client_id=record.client_id,
            date=on,
            start_time=record.start_time,
            end_time=record.end_time,
        )

    @property
    def duration_hours(self) -> float:
        return hours_between(self.start_time, self.end_time)

    def overlaps(self, other: "Occurrence") -> bool:
        return self.date == other.date and intervals_overlap(
            self.start_time, self.end_time, other.start_time, other.end_time
        )


@dataclass(frozen=True)
class ConflictPair:
    """Two records of one caregiver that double-book the same weekday."""

    a: ScheduleRecord
    b: ScheduleRecord
    day_of_week: int

    @property
    def overlap_start(self) -> _dt.time:
        return max(self.a.start_time, self.b.start_time)

    @property
    def overlap_end(self) -> _dt.time:
        return min(self.a.end_time, self.b.end_time)

    @property
    def record_ids(self) -> frozenset:
        return frozenset((self.a.id, self.b.id))
