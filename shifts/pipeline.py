"""Request/processor/producer pipelines behind the shifts CLI commands.

Each command loads a YAML record snapshot, runs one engine query, and renders
the result as text or structured data through the shared OutputWriter.
"""
from __future__ import annotations

import datetime as _dt
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from core.cli_errors import ExitCode
from core.cli_output import OutputWriter
from core.date_utils import day_name, format_time
from core.pipeline import BaseProducer, RequestConsumer, SafeProcessor
from core.yamlio import dump_config, load_config

from .bulk import BulkPlan, TemplateSlot, apply_bulk, plan_bulk
from .clock import Clock, SystemClock
from .config import EngineSettings
from .conflicts import check_shift, find_conflicts, find_conflicts_on_date
from .coverage import CoverageOverview, coverage_overview
from .errors import InvalidRange, InvalidRecord
from .ingest import IngestReport, Rejection, load_roster, load_snapshot, record_to_row
from .model import ConflictPair, Occurrence, ScheduleRecord
from .resolver import resolve_for_range
from .week_view import WeekView, week_view
from .workload import HoursSummary, hours_summary

LOG = logging.getLogger(__name__)


# -- shared plumbing ----------------------------------------------------------


@dataclass
class SnapshotRequest:
    records_path: str
    strict: bool = False


class SnapshotProcessor(SafeProcessor[Any, Any]):
    """Base for commands that read a record snapshot.

    Maps engine errors onto CLI exit codes and injects the clock and
    settings every command shares.
    """

    error_codes = (
        (InvalidRange, ExitCode.USAGE),
        (InvalidRecord, ExitCode.CONFIG_ERROR),
        (FileNotFoundError, ExitCode.NOT_FOUND),
        (ValueError, ExitCode.CONFIG_ERROR),
    )

    def __init__(self, clock: Optional[Clock] = None, settings: Optional[EngineSettings] = None) -> None:
        self.clock = clock or SystemClock()
        self.settings = settings or EngineSettings()

    def _load(self, payload: SnapshotRequest) -> IngestReport:
        strict = payload.strict or self.settings.strict_batch
        report = load_snapshot(payload.records_path, strict=strict)
        LOG.debug("Loaded %d record(s) from %s", len(report.records), payload.records_path)
        return report


class WriterProducer(BaseProducer):
    """Base producer rendering through an OutputWriter."""

    def __init__(self, writer: Optional[OutputWriter] = None) -> None:
        self.writer = writer or OutputWriter()

    def _warn_rejected(self, rejected: Sequence[Rejection]) -> None:
        if rejected and not self.writer.structured:
            self.writer.print(f"({len(rejected)} invalid record(s) skipped; run with --verbose for details)")


def _typed_id(raw: Any, known: Iterable[Any]) -> Any:
    """Match a CLI-supplied id against the ids in the snapshot.

    Command-line ids arrive as strings while YAML snapshots may hold
    integers; the snapshot's own value is used when the text matches.
    """
    if raw is None:
        return None
    for candidate in known:
        if candidate == raw or str(candidate) == str(raw):
            return candidate
    return raw


def _span(start: _dt.time, end: _dt.time) -> str:
    return f"{format_time(start)}-{format_time(end)}"


def _occurrence_line(occ: Occurrence) -> str:
    return (
        f"{occ.date.isoformat()} {_span(occ.start_time, occ.end_time)} "
        f"caregiver={occ.caregiver_id} client={occ.client_id} record={occ.source_record_id}"
    )


def _rejections(rejected: Sequence[Rejection]) -> List[Dict[str, Any]]:
    return [{"index": r.index, "record_id": r.record_id, "reason": r.reason} for r in rejected]


# -- resolve ------------------------------------------------------------------


@dataclass
class ResolveRequest(SnapshotRequest):
    start_date: Optional[_dt.date] = None
    end_date: Optional[_dt.date] = None
    include_inactive: Optional[bool] = None


ResolveRequestConsumer = RequestConsumer[ResolveRequest]


@dataclass
class ResolveResult:
    start_date: _dt.date
    end_date: _dt.date
    occurrences: List[Occurrence]
    rejected: List[Rejection] = field(default_factory=list)


class ResolveProcessor(SnapshotProcessor):
    def _process_safe(self, payload: ResolveRequest) -> ResolveResult:
        start = payload.start_date or self.clock.today()
        end = payload.end_date or start
        if end < start:
            raise InvalidRange(start, end)
        include = self.settings.include_inactive if payload.include_inactive is None else payload.include_inactive
        report = self._load(payload)
        occurrences = resolve_for_range(report.records, start, end, include_inactive=include)
        return ResolveResult(start, end, occurrences, report.rejected)


class ResolveProducer(WriterProducer):
    def _produce_success(self, payload: ResolveResult, diagnostics: Optional[Dict[str, Any]]) -> None:
        if self.writer.structured:
            self.writer.print_data({
                "start_date": payload.start_date,
                "end_date": payload.end_date,
                "occurrences": payload.occurrences,
                "rejected": _rejections(payload.rejected),
            })
            return
        if not payload.occurrences:
            self.writer.print(f"No shifts between {payload.start_date} and {payload.end_date}")
        else:
            self.writer.print_lines([_occurrence_line(o) for o in payload.occurrences])
        self._warn_rejected(payload.rejected)


# -- conflicts ----------------------------------------------------------------


@dataclass
class ConflictsRequest(SnapshotRequest):
    caregiver_id: Any = None
    on_date: Optional[_dt.date] = None


ConflictsRequestConsumer = RequestConsumer[ConflictsRequest]


@dataclass
class ConflictsResult:
    caregiver_id: Any
    pairs: List[ConflictPair] = field(default_factory=list)
    on_date: Optional[_dt.date] = None
    dated_pairs: List[Tuple[Occurrence, Occurrence]] = field(default_factory=list)
    rejected: List[Rejection] = field(default_factory=list)


class ConflictsProcessor(SnapshotProcessor):
    """Steady-state recurring conflicts, or a single date's conflicts with --date."""

    def _process_safe(self, payload: ConflictsRequest) -> ConflictsResult:
        report = self._load(payload)
        caregiver = _typed_id(payload.caregiver_id, (r.caregiver_id for r in report.records))
        result = ConflictsResult(caregiver_id=caregiver, rejected=report.rejected)
        if payload.on_date is not None:
            result.on_date = payload.on_date
            result.dated_pairs = find_conflicts_on_date(report.records, caregiver, payload.on_date)
        else:
            result.pairs = find_conflicts(report.records, caregiver)
        return result


class ConflictsProducer(WriterProducer):
    def _produce_success(self, payload: ConflictsResult, diagnostics: Optional[Dict[str, Any]]) -> None:
        if payload.on_date is not None:
            self._produce_dated(payload)
            return
        if self.writer.structured:
            self.writer.print_data({
                "caregiver_id": payload.caregiver_id,
                "conflicts": [
                    {
                        "day_of_week": p.day_of_week,
                        "day": day_name(p.day_of_week),
                        "record_ids": [p.a.id, p.b.id],
                        "overlap_start": p.overlap_start,
                        "overlap_end": p.overlap_end,
                    }
                    for p in payload.pairs
                ],
                "rejected": _rejections(payload.rejected),
            })
            return
        if not payload.pairs:
            self.writer.print(f"No recurring conflicts for caregiver {payload.caregiver_id}")
        for p in payload.pairs:
            self.writer.print(
                f"{day_name(p.day_of_week)}: {p.a.id} ({_span(p.a.start_time, p.a.end_time)}) overlaps "
                f"{p.b.id} ({_span(p.b.start_time, p.b.end_time)}) during {_span(p.overlap_start, p.overlap_end)}"
            )
        self._warn_rejected(payload.rejected)

    def _produce_dated(self, payload: ConflictsResult) -> None:
        if self.writer.structured:
            self.writer.print_data({
                "caregiver_id": payload.caregiver_id,
                "date": payload.on_date,
                "conflicts": [{"a": a, "b": b} for a, b in payload.dated_pairs],
                "rejected": _rejections(payload.rejected),
            })
            return
        if not payload.dated_pairs:
            self.writer.print(f"No conflicts for caregiver {payload.caregiver_id} on {payload.on_date}")
        for a, b in payload.dated_pairs:
            self.writer.print(
                f"{payload.on_date}: {a.source_record_id} ({_span(a.start_time, a.end_time)}) overlaps "
                f"{b.source_record_id} ({_span(b.start_time, b.end_time)})"
            )
        self._warn_rejected(payload.rejected)


# -- hours --------------------------------------------------------------------


@dataclass
class HoursRequest(SnapshotRequest):
    caregiver_id: Any = None
    week_of: Optional[_dt.date] = None
    max_hours: Optional[float] = None


HoursRequestConsumer = RequestConsumer[HoursRequest]


@dataclass
class HoursResult:
    summary: HoursSummary
    rejected: List[Rejection] = field(default_factory=list)


class HoursProcessor(SnapshotProcessor):
    def _process_safe(self, payload: HoursRequest) -> HoursResult:
        report = self._load(payload)
        summary = hours_summary(
            report.records,
            _typed_id(payload.caregiver_id, (r.caregiver_id for r in report.records)),
            clock=self.clock,
            week_of=payload.week_of,
            max_hours=payload.max_hours,
            settings=self.settings,
        )
        return HoursResult(summary, report.rejected)


class HoursProducer(WriterProducer):
    def _produce_success(self, payload: HoursResult, diagnostics: Optional[Dict[str, Any]]) -> None:
        s = payload.summary
        if self.writer.structured:
            self.writer.print_data(s)
            return
        self.writer.print_lines([
            f"Caregiver {s.caregiver_id}, week {s.week_start} to {s.week_end}",
            f"  one-time:     {s.one_time_hours:.2f} h",
            f"  recurring:    {s.recurring_hours:.2f} h",
            f"  total:        {s.total_hours:.2f} / {s.max_hours:.2f} h",
            f"  remaining:    {s.remaining_hours:.2f} h",
            f"  steady-state: {s.steady_state_hours:.2f} h/week",
        ])
        if s.approaching_overtime:
            self.writer.print("  warning: approaching overtime")
        self._warn_rejected(payload.rejected)


# -- week ---------------------------------------------------------------------


@dataclass
class WeekRequest(SnapshotRequest):
    week_of: Optional[_dt.date] = None
    caregiver_ids: Optional[List[Any]] = None
    include_inactive: Optional[bool] = None


WeekRequestConsumer = RequestConsumer[WeekRequest]


@dataclass
class WeekResult:
    view: WeekView
    rejected: List[Rejection] = field(default_factory=list)


class WeekProcessor(SnapshotProcessor):
    def _process_safe(self, payload: WeekRequest) -> WeekResult:
        report = self._load(payload)
        include = self.settings.include_inactive if payload.include_inactive is None else payload.include_inactive
        known = [r.caregiver_id for r in report.records]
        caregivers = [_typed_id(cid, known) for cid in payload.caregiver_ids or []]
        view = week_view(
            report.records,
            payload.week_of or self.clock.today(),
            caregiver_ids=caregivers or None,
            include_inactive=include,
        )
        return WeekResult(view, report.rejected)


class WeekProducer(WriterProducer):
    def _produce_success(self, payload: WeekResult, diagnostics: Optional[Dict[str, Any]]) -> None:
        view = payload.view
        if self.writer.structured:
            self.writer.print_data({
                "week_start": view.week_start,
                "week_end": view.week_end,
                "caregivers": [
                    {
                        "caregiver_id": cw.caregiver_id,
                        "total_hours": cw.total_hours,
                        "days": {day_name(d): occs for d, occs in cw.days.items()},
                    }
                    for cw in view.caregivers
                ],
            })
            return
        self.writer.print(f"Week of {view.week_start} to {view.week_end}")
        for cw in view.caregivers:
            self.writer.print(f"{cw.caregiver_id} ({cw.total_hours:.2f} h)")
            for dow, occs in cw.days.items():
                if not occs:
                    continue
                shifts = ", ".join(f"{_span(o.start_time, o.end_time)} {o.client_id}" for o in occs)
                self.writer.print(f"  {day_name(dow)[:3]}: {shifts}")
        self._warn_rejected(payload.rejected)


# -- check --------------------------------------------------------------------


@dataclass
class CheckRequest(SnapshotRequest):
    caregiver_id: Any = None
    on_date: Optional[_dt.date] = None
    start_time: Optional[_dt.time] = None
    end_time: Optional[_dt.time] = None
    exclude_record_id: Optional[Any] = None


CheckRequestConsumer = RequestConsumer[CheckRequest]


@dataclass
class CheckResult:
    caregiver_id: Any
    on_date: _dt.date
    start_time: _dt.time
    end_time: _dt.time
    conflicts: List[ScheduleRecord]
    rejected: List[Rejection] = field(default_factory=list)

    @property
    def has_conflict(self) -> bool:
        return bool(self.conflicts)


class CheckProcessor(SnapshotProcessor):
    def _process_safe(self, payload: CheckRequest) -> CheckResult:
        report = self._load(payload)
        caregiver = _typed_id(payload.caregiver_id, (r.caregiver_id for r in report.records))
        hits = check_shift(
            report.records,
            caregiver,
            payload.on_date,
            payload.start_time,
            payload.end_time,
            exclude_record_id=_typed_id(payload.exclude_record_id, (r.id for r in report.records)),
        )
        return CheckResult(caregiver, payload.on_date, payload.start_time, payload.end_time, hits, report.rejected)


class CheckProducer(WriterProducer):
    def _produce_success(self, payload: CheckResult, diagnostics: Optional[Dict[str, Any]]) -> None:
        if self.writer.structured:
            self.writer.print_data({
                "caregiver_id": payload.caregiver_id,
                "date": payload.on_date,
                "start_time": payload.start_time,
                "end_time": payload.end_time,
                "has_conflict": payload.has_conflict,
                "conflicts": [record_to_row(r) for r in payload.conflicts],
            })
            return
        window = f"{payload.on_date} {_span(payload.start_time, payload.end_time)}"
        if not payload.conflicts:
            self.writer.print(f"OK: caregiver {payload.caregiver_id} is free {window}")
        else:
            self.writer.print(f"Conflict: caregiver {payload.caregiver_id} is booked {window}")
            for r in payload.conflicts:
                self.writer.print(f"  {r.id} {_span(r.start_time, r.end_time)} client={r.client_id}")
        self._warn_rejected(payload.rejected)


# -- coverage -----------------------------------------------------------------


@dataclass
class CoverageRequest(SnapshotRequest):
    roster_path: str = ""
    week_of: Optional[_dt.date] = None


CoverageRequestConsumer = RequestConsumer[CoverageRequest]


@dataclass
class CoverageResult:
    overview: CoverageOverview
    rejected: List[Rejection] = field(default_factory=list)


class CoverageProcessor(SnapshotProcessor):
    def _process_safe(self, payload: CoverageRequest) -> CoverageResult:
        roster = load_roster(payload.roster_path, default_max_hours=self.settings.default_max_hours)
        report = self._load(payload)
        overview = coverage_overview(
            report.records,
            payload.week_of or self.clock.today(),
            caregiver_max_hours=roster.caregiver_max_hours,
            client_authorized_units=roster.client_authorized_units,
        )
        return CoverageResult(overview, report.rejected)


class CoverageProducer(WriterProducer):
    def _produce_success(self, payload: CoverageResult, diagnostics: Optional[Dict[str, Any]]) -> None:
        ov = payload.overview
        if self.writer.structured:
            self.writer.print_data({
                "week_start": ov.week_start,
                "week_end": ov.week_end,
                "caregivers": ov.caregivers,
                "clients": [dict(vars(c), is_under_scheduled=c.is_under_scheduled) for c in ov.clients],
                "summary": {
                    "total_scheduled_hours": ov.total_scheduled_hours,
                    "total_available_hours": ov.total_available_hours,
                    "under_scheduled_clients": len(ov.under_scheduled),
                    "total_shortfall_units": ov.total_shortfall_units,
                    "total_shortfall_hours": ov.total_shortfall_hours,
                },
            })
            return
        self.writer.print(f"Coverage for week {ov.week_start} to {ov.week_end}")
        self.writer.print("Caregivers:")
        for c in ov.caregivers:
            self.writer.print(
                f"  {c.caregiver_id}: {c.scheduled_hours:.2f}/{c.max_hours:.2f} h "
                f"({c.utilization_percent}%), {c.remaining_hours:.2f} h free"
            )
        self.writer.print("Clients:")
        for c in ov.clients:
            flag = f" SHORT {c.shortfall_units} units" if c.is_under_scheduled else ""
            self.writer.print(
                f"  {c.client_id}: {c.scheduled_units}/{c.authorized_units} units ({c.coverage_percent}%){flag}"
            )
        self.writer.print(
            f"Total: {ov.total_scheduled_hours:.2f}/{ov.total_available_hours:.2f} h scheduled, "
            f"{len(ov.under_scheduled)} client(s) under-scheduled"
        )
        self._warn_rejected(payload.rejected)


# -- bulk ---------------------------------------------------------------------


class YamlSnapshotStore:
    """ScheduleStore that appends records to a YAML snapshot file."""

    def __init__(self, path: str) -> None:
        self.path = path
        self.pending: List[ScheduleRecord] = []

    def add(self, record: ScheduleRecord) -> None:
        self.pending.append(record)

    def flush(self) -> int:
        if not self.pending:
            return 0
        data = load_config(self.path)
        rows = list(data.get("records") or [])
        rows.extend(record_to_row(r) for r in self.pending)
        data["records"] = rows
        dump_config(self.path, data)
        written = len(self.pending)
        self.pending = []
        return written


@dataclass
class BulkRequest(SnapshotRequest):
    caregiver_id: Any = None
    client_id: Any = None
    template: List[TemplateSlot] = field(default_factory=list)
    weeks: Optional[int] = None
    start_date: Optional[_dt.date] = None
    notes: str = ""
    apply: bool = False


BulkRequestConsumer = RequestConsumer[BulkRequest]


@dataclass
class BulkResult:
    plan: BulkPlan
    applied: bool
    records_path: str


class BulkProcessor(SnapshotProcessor):
    """Plan template shifts; with ``apply`` append them to the snapshot."""

    def _process_safe(self, payload: BulkRequest) -> BulkResult:
        report = self._load(payload)
        plan = plan_bulk(
            report.records,
            _typed_id(payload.caregiver_id, (r.caregiver_id for r in report.records)),
            _typed_id(payload.client_id, (r.client_id for r in report.records)),
            payload.template,
            clock=self.clock,
            weeks=payload.weeks,
            start_date=payload.start_date,
            notes=payload.notes,
            settings=self.settings,
        )
        if payload.apply:
            store = YamlSnapshotStore(payload.records_path)
            apply_bulk(plan, store)
            store.flush()
        return BulkResult(plan, payload.apply, payload.records_path)


class BulkProducer(WriterProducer):
    def _produce_success(self, payload: BulkResult, diagnostics: Optional[Dict[str, Any]]) -> None:
        plan = payload.plan
        if self.writer.structured:
            self.writer.print_data({
                "applied": payload.applied,
                "first_week": plan.first_week,
                "weeks": plan.weeks,
                "created": [record_to_row(r) for r in plan.created],
                "skipped": plan.skipped,
            })
            return
        for r in plan.created:
            self.writer.print(f"+ {r.date} {_span(r.start_time, r.end_time)} client={r.client_id}")
        for s in plan.skipped:
            self.writer.print(f"- {s.date} {_span(s.start_time, s.end_time)} skipped ({s.reason})")
        verb = "Added" if payload.applied else "Would add"
        self.writer.print(
            f"{verb} {len(plan.created)} shift(s), skipped {len(plan.skipped)} "
            f"({len(plan.conflicts)} conflict(s)) over {plan.weeks} week(s)"
        )
        if payload.applied:
            self.writer.print(f"Updated {payload.records_path}")
        else:
            self.writer.print("(dry-run; re-run with --apply to write)")
