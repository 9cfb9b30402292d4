"""Shifts CLI

Operator front-end for the shift engine. Every command reads a YAML record
snapshot (a top-level ``records:`` list of storage rows) and runs one query:

- resolve: concrete shifts for a date or date range
- conflicts: double-booked recurring shifts for a caregiver
- hours: weekly hours summary for a caregiver
- week: Sunday..Saturday grid per caregiver
- check: would a proposed shift collide with existing ones
- coverage: caregiver utilization and client authorization shortfalls
- bulk: stamp a weekly template onto the coming weeks (dry-run by default)
"""
from __future__ import annotations

import argparse
import datetime as _dt
from typing import List, Optional, Sequence

from core.cli_errors import UsageError
from core.cli_framework import CLIApp
from core.cli_output import writer_for
from core.date_utils import normalize_day, parse_date, parse_time
from core.pipeline import run_pipeline

from . import __version__
from .bulk import TemplateSlot
from .clock import Clock, SystemClock
from .config import load_settings
from .errors import InvalidRecord
from .pipeline import (
    BulkProcessor,
    BulkProducer,
    BulkRequest,
    CheckProcessor,
    CheckProducer,
    CheckRequest,
    ConflictsProcessor,
    ConflictsProducer,
    ConflictsRequest,
    CoverageProcessor,
    CoverageProducer,
    CoverageRequest,
    HoursProcessor,
    HoursProducer,
    HoursRequest,
    ResolveProcessor,
    ResolveProducer,
    ResolveRequest,
    WeekProcessor,
    WeekProducer,
    WeekRequest,
)

app = CLIApp(
    "shifts",
    "Resolve caregiver shifts, detect double-booking and report weekly workload.",
    version=__version__,
    add_common_args=True,
)

# Replaced in tests to pin "today"
clock: Clock = SystemClock()


def _date_arg(value: Optional[str], flag: str) -> Optional[_dt.date]:
    if value is None:
        return None
    try:
        return parse_date(value)
    except ValueError as exc:
        raise UsageError(f"{flag}: {exc}", hint="Use YYYY-MM-DD") from exc


def _time_arg(value: str, flag: str) -> _dt.time:
    try:
        return parse_time(value)
    except ValueError as exc:
        raise UsageError(f"{flag}: {exc}", hint="Use HH:MM") from exc


def _slot_arg(value: str) -> TemplateSlot:
    parts = [p.strip() for p in value.split(",")]
    if len(parts) != 3:
        raise UsageError(f"--slot {value!r}: expected DAY,HH:MM,HH:MM", hint="e.g. --slot mon,09:00,13:00")
    dow = normalize_day(parts[0])
    if dow is None:
        raise UsageError(f"--slot {value!r}: unknown day {parts[0]!r}")
    try:
        return TemplateSlot(dow, _time_arg(parts[1], "--slot"), _time_arg(parts[2], "--slot"))
    except InvalidRecord as exc:
        raise UsageError(f"--slot {value!r}: {exc.reason}") from exc


def _processor_kwargs(args: argparse.Namespace) -> dict:
    return {"clock": clock, "settings": load_settings(getattr(args, "config", None))}


def _inactive_flag(args: argparse.Namespace) -> Optional[bool]:
    # None defers to the configured default
    return True if getattr(args, "include_inactive", False) else None


@app.command("resolve", help="List the shifts that occur on a date or within a date range")
@app.argument("--records", required=True, help="Record snapshot YAML path")
@app.argument("--date", help="Single date (YYYY-MM-DD; default today)")
@app.argument("--from", dest="from_date", help="Range start (YYYY-MM-DD)")
@app.argument("--to", dest="to_date", help="Range end (YYYY-MM-DD, inclusive)")
@app.argument("--include-inactive", action="store_true", help="Also resolve paused records")
@app.argument("--strict", action="store_true", help="Fail on the first invalid record")
def cmd_resolve(args: argparse.Namespace) -> int:
    if args.date and (args.from_date or args.to_date):
        raise UsageError("Use either --date or --from/--to, not both")
    on = _date_arg(args.date, "--date")
    start = on or _date_arg(args.from_date, "--from")
    end = on or _date_arg(args.to_date, "--to") or start
    request = ResolveRequest(
        records_path=args.records,
        strict=args.strict,
        start_date=start,
        end_date=end,
        include_inactive=_inactive_flag(args),
    )
    return run_pipeline(request, ResolveProcessor(**_processor_kwargs(args)), ResolveProducer(writer_for(args)))


@app.command("conflicts", help="Find overlapping recurring shifts for a caregiver")
@app.argument("--records", required=True, help="Record snapshot YAML path")
@app.argument("--caregiver", required=True, help="Caregiver id")
@app.argument("--date", help="Check resolved shifts on this date instead (one-time visits included)")
@app.argument("--strict", action="store_true", help="Fail on the first invalid record")
def cmd_conflicts(args: argparse.Namespace) -> int:
    request = ConflictsRequest(
        records_path=args.records,
        strict=args.strict,
        caregiver_id=args.caregiver,
        on_date=_date_arg(args.date, "--date"),
    )
    return run_pipeline(request, ConflictsProcessor(**_processor_kwargs(args)), ConflictsProducer(writer_for(args)))


@app.command("hours", help="Summarize a caregiver's hours for a week")
@app.argument("--records", required=True, help="Record snapshot YAML path")
@app.argument("--caregiver", required=True, help="Caregiver id")
@app.argument("--week-of", help="Any date in the week (default today)")
@app.argument("--max-hours", type=float, help="Weekly cap (default from settings, 40)")
@app.argument("--strict", action="store_true", help="Fail on the first invalid record")
def cmd_hours(args: argparse.Namespace) -> int:
    request = HoursRequest(
        records_path=args.records,
        strict=args.strict,
        caregiver_id=args.caregiver,
        week_of=_date_arg(args.week_of, "--week-of"),
        max_hours=args.max_hours,
    )
    return run_pipeline(request, HoursProcessor(**_processor_kwargs(args)), HoursProducer(writer_for(args)))


@app.command("week", help="Show the Sunday..Saturday grid of shifts per caregiver")
@app.argument("--records", required=True, help="Record snapshot YAML path")
@app.argument("--week-of", help="Any date in the week (default today)")
@app.argument("--caregiver", action="append", default=[], help="Limit to caregiver id (repeatable)")
@app.argument("--include-inactive", action="store_true", help="Also show paused records")
@app.argument("--strict", action="store_true", help="Fail on the first invalid record")
def cmd_week(args: argparse.Namespace) -> int:
    request = WeekRequest(
        records_path=args.records,
        strict=args.strict,
        week_of=_date_arg(args.week_of, "--week-of"),
        caregiver_ids=list(args.caregiver or []),
        include_inactive=_inactive_flag(args),
    )
    return run_pipeline(request, WeekProcessor(**_processor_kwargs(args)), WeekProducer(writer_for(args)))


@app.command("check", help="Check whether a proposed shift collides with existing ones")
@app.argument("--records", required=True, help="Record snapshot YAML path")
@app.argument("--caregiver", required=True, help="Caregiver id")
@app.argument("--date", required=True, help="Shift date (YYYY-MM-DD)")
@app.argument("--start", required=True, help="Start time (HH:MM)")
@app.argument("--end", required=True, help="End time (HH:MM)")
@app.argument("--exclude", help="Record id to ignore (the shift being edited)")
@app.argument("--strict", action="store_true", help="Fail on the first invalid record")
def cmd_check(args: argparse.Namespace) -> int:
    start = _time_arg(args.start, "--start")
    end = _time_arg(args.end, "--end")
    if not start < end:
        raise UsageError(f"--start {args.start} must be before --end {args.end}")
    request = CheckRequest(
        records_path=args.records,
        strict=args.strict,
        caregiver_id=args.caregiver,
        on_date=_date_arg(args.date, "--date"),
        start_time=start,
        end_time=end,
        exclude_record_id=args.exclude,
    )
    return run_pipeline(request, CheckProcessor(**_processor_kwargs(args)), CheckProducer(writer_for(args)))


@app.command("coverage", help="Caregiver utilization and client authorization coverage for a week")
@app.argument("--records", required=True, help="Record snapshot YAML path")
@app.argument("--roster", required=True, help="Roster YAML with caregivers (max_hours) and clients (authorized_units)")
@app.argument("--week-of", help="Any date in the week (default today)")
@app.argument("--strict", action="store_true", help="Fail on the first invalid record")
def cmd_coverage(args: argparse.Namespace) -> int:
    request = CoverageRequest(
        records_path=args.records,
        strict=args.strict,
        roster_path=args.roster,
        week_of=_date_arg(args.week_of, "--week-of"),
    )
    return run_pipeline(request, CoverageProcessor(**_processor_kwargs(args)), CoverageProducer(writer_for(args)))


@app.command("bulk", help="Create one-time shifts from a weekly template (dry-run by default)")
@app.argument("--records", required=True, help="Record snapshot YAML path (updated with --apply)")
@app.argument("--caregiver", required=True, help="Caregiver id")
@app.argument("--client", required=True, help="Client id")
@app.argument("--slot", action="append", default=[], help="Template slot DAY,HH:MM,HH:MM (repeatable)")
@app.argument("--weeks", type=int, help="Number of weeks (default 4, max 12)")
@app.argument("--start", help="Any date in the first week (default today)")
@app.argument("--notes", default="", help="Notes copied onto each shift")
@app.argument("--apply", action="store_true", help="Write the shifts (omit for dry-run)")
@app.argument("--strict", action="store_true", help="Fail on the first invalid record")
def cmd_bulk(args: argparse.Namespace) -> int:
    slots: List[TemplateSlot] = [_slot_arg(s) for s in args.slot]
    if not slots:
        raise UsageError("At least one --slot is required")
    request = BulkRequest(
        records_path=args.records,
        strict=args.strict,
        caregiver_id=args.caregiver,
        client_id=args.client,
        template=slots,
        weeks=args.weeks,
        start_date=_date_arg(args.start, "--start"),
        notes=args.notes,
        apply=args.apply,
    )
    return run_pipeline(request, BulkProcessor(**_processor_kwargs(args)), BulkProducer(writer_for(args)))


def main(argv: Optional[Sequence[str]] = None) -> int:
    return app.run(argv)


if __name__ == "__main__":
    raise SystemExit(main())
