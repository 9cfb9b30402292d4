"""Shift recurrence resolution and conflict detection for home care scheduling.

Turns one-time and weekly / bi-weekly schedule records into concrete dated
shifts, finds caregivers booked twice at once, and totals weekly workload.
"""
from __future__ import annotations

__version__ = "0.1.0"

from .bulk import BulkPlan, ScheduleStore, SkippedSlot, TemplateSlot, apply_bulk, plan_bulk
from .clock import Clock, FixedClock, SystemClock
from .config import EngineSettings, load_settings
from .conflicts import alternate_weeks, check_shift, find_conflicts, find_conflicts_on_date
from .coverage import CaregiverLoad, ClientCoverage, CoverageOverview, coverage_overview
from .errors import InvalidRange, InvalidRecord, ShiftError
from .ingest import IngestReport, Rejection, load_records, load_snapshot, parse_record, record_to_row
from .model import ConflictPair, Frequency, Occurrence, RecordKind, ScheduleRecord, intervals_overlap
from .resolver import is_active_on, iter_dates, resolve_for_date, resolve_for_range
from .week_view import CaregiverWeek, WeekView, week_view
from .workload import HoursSummary, hours_summary, week_actual_hours, week_bounds, weekly_hours

__all__ = [
    "BulkPlan",
    "CaregiverLoad",
    "CaregiverWeek",
    "ClientCoverage",
    "Clock",
    "ConflictPair",
    "CoverageOverview",
    "EngineSettings",
    "FixedClock",
    "Frequency",
    "HoursSummary",
    "IngestReport",
    "InvalidRange",
    "InvalidRecord",
    "Occurrence",
    "RecordKind",
    "Rejection",
    "ScheduleRecord",
    "ScheduleStore",
    "ShiftError",
    "SkippedSlot",
    "SystemClock",
    "TemplateSlot",
    "WeekView",
    "alternate_weeks",
    "apply_bulk",
    "check_shift",
    "coverage_overview",
    "find_conflicts",
    "find_conflicts_on_date",
    "hours_summary",
    "intervals_overlap",
    "is_active_on",
    "iter_dates",
    "load_records",
    "load_settings",
    "load_snapshot",
    "parse_record",
    "plan_bulk",
    "record_to_row",
    "resolve_for_date",
    "resolve_for_range",
    "week_actual_hours",
    "week_bounds",
    "week_view",
    "weekly_hours",
]
