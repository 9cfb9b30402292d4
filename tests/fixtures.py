"""Shared test fixtures and utilities.

Record builders, snapshot/roster YAML writers, a fake schedule store and
output capture helpers for the shifts test suite.
"""

from __future__ import annotations

import datetime as _dt
import io
import os
import tempfile
from contextlib import contextmanager, redirect_stderr, redirect_stdout
from pathlib import Path
from typing import Any, Dict, List, Optional

from shifts.model import ScheduleRecord

REPO_ROOT = Path(__file__).resolve().parents[1]

# Weekday indexes, Sunday-based
SUN, MON, TUE, WED, THU, FRI, SAT = range(7)


def repo_root() -> Path:
    return REPO_ROOT


def d(text: str) -> _dt.date:
    return _dt.date.fromisoformat(text)


def t(text: str) -> _dt.time:
    return _dt.time.fromisoformat(text)


# -----------------------------------------------------------------------------
# Record builders
# -----------------------------------------------------------------------------


def one_time(
    rid: Any = "o1",
    on: str = "2024-01-08",
    start: str = "09:00",
    end: str = "13:00",
    *,
    caregiver: Any = "cg1",
    client: Any = "cl1",
    is_active: bool = True,
) -> ScheduleRecord:
    return ScheduleRecord.one_time(rid, caregiver, client, on, start, end, is_active=is_active)


def weekly(
    rid: Any = "w1",
    dow: int = MON,
    start: str = "09:00",
    end: str = "13:00",
    *,
    effective_from: str = "2024-01-01",
    caregiver: Any = "cg1",
    client: Any = "cl1",
    is_active: bool = True,
) -> ScheduleRecord:
    return ScheduleRecord.weekly(
        rid, caregiver, client, dow, start, end, effective_from=effective_from, is_active=is_active
    )


def biweekly(
    rid: Any = "b1",
    dow: int = MON,
    start: str = "09:00",
    end: str = "13:00",
    *,
    anchor: str = "2024-01-07",
    effective_from: Optional[str] = None,
    caregiver: Any = "cg1",
    client: Any = "cl1",
    is_active: bool = True,
) -> ScheduleRecord:
    # Test shorthand: the rotation starts in its anchor week unless told otherwise
    return ScheduleRecord.biweekly(
        rid,
        caregiver,
        client,
        dow,
        start,
        end,
        anchor_week_start=anchor,
        effective_from=effective_from or anchor,
        is_active=is_active,
    )


# -----------------------------------------------------------------------------
# YAML helpers
# -----------------------------------------------------------------------------


def write_yaml(data: dict, dir: Optional[str] = None, filename: str = "config.yaml") -> str:
    """Write a dict to a temporary YAML file, return the path."""
    import yaml

    td = dir or tempfile.mkdtemp()
    p = os.path.join(td, filename)
    with open(p, "w", encoding="utf-8") as fh:
        yaml.safe_dump(data, fh, sort_keys=False)
    return p


def write_snapshot(rows: List[Dict[str, Any]], dir: Optional[str] = None, filename: str = "records.yaml") -> str:
    """Write storage rows under a top-level ``records:`` key."""
    return write_yaml({"records": rows}, dir=dir, filename=filename)


SAMPLE_ROWS: List[Dict[str, Any]] = [
    {
        "id": "w-mon",
        "caregiver_id": "cg1",
        "client_id": "cl1",
        "schedule_type": "recurring",
        "day_of_week": MON,
        "frequency": "weekly",
        "effective_date": "2024-02-01",
        "start_time": "08:00",
        "end_time": "12:00",
    },
    {
        "id": "b-mon",
        "caregiver_id": "cg1",
        "client_id": "cl2",
        "schedule_type": "recurring",
        "day_of_week": MON,
        "frequency": "biweekly",
        "effective_date": "2024-02-04",
        "anchor_date": "2024-02-04",
        "start_time": "11:00",
        "end_time": "15:00",
    },
    {
        "id": "o-wed",
        "caregiver_id": "cg2",
        "client_id": "cl1",
        "schedule_type": "one-time",
        "date": "2024-02-07",
        "start_time": "10:00",
        "end_time": "12:00",
    },
]


# -----------------------------------------------------------------------------
# Fakes
# -----------------------------------------------------------------------------


class FakeStore:
    """In-memory ScheduleStore collecting added records."""

    def __init__(self) -> None:
        self.added: List[ScheduleRecord] = []

    def add(self, record: ScheduleRecord) -> None:
        self.added.append(record)


# -----------------------------------------------------------------------------
# Output capture helpers
# -----------------------------------------------------------------------------


@contextmanager
def capture_stdout():
    """Context manager that captures stdout and yields a StringIO buffer."""
    buf = io.StringIO()
    with redirect_stdout(buf):
        yield buf


@contextmanager
def capture_output():
    """Capture stdout and stderr; yields (out, err) buffers."""
    out, err = io.StringIO(), io.StringIO()
    with redirect_stdout(out), redirect_stderr(err):
        yield out, err


class TempDirMixin:
    """Mixin providing a temporary directory that's cleaned up after each test.

    Usage:
        class MyTest(TempDirMixin, unittest.TestCase):
            def test_something(self):
                path = os.path.join(self.tmpdir, "file.txt")
                ...
    """

    tmpdir: str

    def setUp(self):
        super().setUp()
        self.tmpdir = tempfile.mkdtemp()

    def tearDown(self):
        import shutil
        shutil.rmtree(self.tmpdir, ignore_errors=True)
        super().tearDown()
