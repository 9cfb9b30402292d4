"""Ingestion boundary: storage rows and YAML snapshots to ScheduleRecords.

Rows come from the scheduling store with snake_case columns, or from API
payloads with camelCase keys. Either shape is accepted; values are parsed
strictly and anything unrecognizable is rejected as InvalidRecord.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from core.date_utils import format_time, normalize_day, parse_date, parse_time
from core.yamlio import load_list

from .errors import InvalidRecord
from .model import Frequency, RecordKind, ScheduleRecord

LOG = logging.getLogger(__name__)

# Canonical field -> accepted keys, first present wins
_ALIASES = {
    "id": ("id",),
    "caregiver_id": ("caregiver_id", "caregiverId"),
    "client_id": ("client_id", "clientId"),
    "schedule_type": ("schedule_type", "scheduleType", "kind"),
    "date": ("date",),
    "day_of_week": ("day_of_week", "dayOfWeek"),
    "frequency": ("frequency",),
    "effective_from": ("effective_from", "effective_date", "effectiveFrom", "effectiveDate"),
    "anchor_week_start": ("anchor_week_start", "anchor_date", "anchorWeekStart", "anchorDate"),
    "start_time": ("start_time", "startTime"),
    "end_time": ("end_time", "endTime"),
    "is_active": ("is_active", "isActive"),
    "notes": ("notes",),
}

_KINDS = {
    "one-time": RecordKind.ONE_TIME,
    "one_time": RecordKind.ONE_TIME,
    "onetime": RecordKind.ONE_TIME,
    "recurring": RecordKind.RECURRING,
}

_FREQUENCIES = {
    "weekly": Frequency.WEEKLY,
    "biweekly": Frequency.BIWEEKLY,
    "bi-weekly": Frequency.BIWEEKLY,
}

_BOOLS = {"true": True, "false": False, "1": True, "0": False, "yes": True, "no": False}


def _field(row: Mapping[str, Any], name: str) -> Any:
    for key in _ALIASES[name]:
        value = row.get(key)
        if value is not None and value != "":
            return value
    return None


def _parse(record_id: Any, name: str, value: Any, parser) -> Any:
    if value is None:
        return None
    try:
        return parser(value)
    except (TypeError, ValueError) as exc:
        raise InvalidRecord(f"{name}: {exc}", record_id=record_id) from exc


def _kind(record_id: Any, row: Mapping[str, Any]) -> RecordKind:
    raw = _field(row, "schedule_type")
    if raw is not None:
        kind = _KINDS.get(str(raw).strip().lower())
        if kind is None:
            raise InvalidRecord(f"unknown schedule_type {raw!r}", record_id=record_id)
        return kind
    has_day = _field(row, "day_of_week") is not None
    has_date = _field(row, "date") is not None
    if has_day and not has_date:
        return RecordKind.RECURRING
    if has_date and not has_day:
        return RecordKind.ONE_TIME
    raise InvalidRecord("cannot tell one-time from recurring: give exactly one of date or day_of_week", record_id=record_id)


def _frequency(record_id: Any, value: Any) -> Optional[Frequency]:
    if value is None:
        return None
    freq = _FREQUENCIES.get(str(value).strip().lower())
    if freq is None:
        raise InvalidRecord(f"unknown frequency {value!r}", record_id=record_id)
    return freq


def _day(record_id: Any, value: Any) -> Optional[int]:
    if value is None:
        return None
    dow = normalize_day(value)
    if dow is None:
        raise InvalidRecord(f"day_of_week must be 0 (Sunday) .. 6 (Saturday), got {value!r}", record_id=record_id)
    return dow


def _active(record_id: Any, value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, bool):
        return value
    flag = _BOOLS.get(str(value).strip().lower())
    if flag is None:
        raise InvalidRecord(f"is_active must be a boolean, got {value!r}", record_id=record_id)
    return flag


def parse_record(row: Mapping[str, Any]) -> ScheduleRecord:
    """Build a ScheduleRecord from one storage row or payload dict.

    Raises:
        InvalidRecord: if the row is not a mapping, a value cannot be parsed,
            or the parsed record violates a record invariant.
    """
    if not isinstance(row, Mapping):
        raise InvalidRecord(f"record must be a mapping, got {type(row).__name__}")
    rid = _field(row, "id")
    kind = _kind(rid, row)
    frequency = _frequency(rid, _field(row, "frequency"))
    anchor = _parse(rid, "anchor_week_start", _field(row, "anchor_week_start"), parse_date)
    effective = _parse(rid, "effective_from", _field(row, "effective_from"), parse_date)
    return ScheduleRecord(
        id=rid,
        caregiver_id=_field(row, "caregiver_id"),
        client_id=_field(row, "client_id"),
        kind=kind,
        start_time=_parse(rid, "start_time", _field(row, "start_time"), parse_time),
        end_time=_parse(rid, "end_time", _field(row, "end_time"), parse_time),
        date=_parse(rid, "date", _field(row, "date"), parse_date),
        day_of_week=_day(rid, _field(row, "day_of_week")),
        frequency=frequency,
        effective_from=effective,
        anchor_week_start=anchor,
        is_active=_active(rid, _field(row, "is_active")),
        notes=str(_field(row, "notes") or ""),
    )


def record_to_row(record: ScheduleRecord) -> Dict[str, Any]:
    """Inverse of parse_record: a snake_case row with ISO date/time strings."""
    row: Dict[str, Any] = {
        "id": record.id,
        "caregiver_id": record.caregiver_id,
        "client_id": record.client_id,
        "schedule_type": record.kind.value,
    }
    if record.is_recurring:
        row["day_of_week"] = record.day_of_week
        row["frequency"] = record.frequency.value
        row["effective_date"] = record.effective_from.isoformat()
        if record.anchor_week_start is not None:
            row["anchor_date"] = record.anchor_week_start.isoformat()
    else:
        row["date"] = record.date.isoformat()
    row["start_time"] = format_time(record.start_time)
    row["end_time"] = format_time(record.end_time)
    row["is_active"] = record.is_active
    if record.notes:
        row["notes"] = record.notes
    return row


@dataclass(frozen=True)
class Rejection:
    index: int
    record_id: Any
    reason: str


@dataclass
class IngestReport:
    records: List[ScheduleRecord] = field(default_factory=list)
    rejected: List[Rejection] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.rejected


def load_records(rows: Iterable[Mapping[str, Any]], *, strict: bool = False) -> IngestReport:
    """Parse a batch of rows, isolating failures per record.

    With ``strict`` the first invalid row raises and nothing is returned;
    otherwise invalid rows are logged and listed in the report.
    """
    report = IngestReport()
    for index, row in enumerate(rows):
        try:
            report.records.append(parse_record(row))
        except InvalidRecord as exc:
            if strict:
                raise
            LOG.warning("Skipping record #%d (%r): %s", index, exc.record_id, exc.reason)
            report.rejected.append(Rejection(index=index, record_id=exc.record_id, reason=exc.reason))
    LOG.debug("Ingested %d record(s), rejected %d", len(report.records), len(report.rejected))
    return report


def load_snapshot(path: str, *, strict: bool = False) -> IngestReport:
    """Load a YAML document's top-level ``records:`` list.

    Raises:
        FileNotFoundError: if ``path`` does not exist.
        ValueError: if the document is not a mapping or ``records`` is not a list.
    """
    return load_records(load_list(path, "records"), strict=strict)


@dataclass
class Roster:
    """Weekly caregiver caps and client authorizations for coverage reports."""

    caregiver_max_hours: Dict[Any, float] = field(default_factory=dict)
    client_authorized_units: Dict[Any, int] = field(default_factory=dict)


def _roster_entries(path: str, key: str, value_key: str, alt_key: str) -> List[Tuple[Any, Any]]:
    out: List[Tuple[Any, Any]] = []
    for entry in load_list(path, key):
        if not isinstance(entry, Mapping) or entry.get("id") is None:
            raise ValueError(f"Invalid roster entry under '{key}': {entry!r}")
        value = entry.get(value_key, entry.get(alt_key))
        out.append((entry["id"], value))
    return out


def load_roster(path: str, *, default_max_hours: float) -> Roster:
    """Load ``caregivers`` (id, max_hours) and ``clients`` (id, authorized_units).

    Caregivers without ``max_hours`` get ``default_max_hours``.
    """
    roster = Roster()
    for cid, hours in _roster_entries(path, "caregivers", "max_hours", "maxHoursPerWeek"):
        roster.caregiver_max_hours[cid] = float(default_max_hours if hours is None else hours)
    for cid, units in _roster_entries(path, "clients", "authorized_units", "weeklyAuthorizedUnits"):
        roster.client_authorized_units[cid] = int(units or 0)
    return roster
