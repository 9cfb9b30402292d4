"""Error taxonomy for the shift engine."""
from __future__ import annotations

import datetime as _dt
from typing import Any, Optional


class ShiftError(Exception):
    """Base class for shift engine errors."""


class InvalidRecord(ShiftError):
    """A schedule record violates a structural invariant.

    Raised when records are built or ingested, never from inside resolution
    loops.
    """

    def __init__(self, reason: str, record_id: Optional[Any] = None) -> None:
        self.reason = reason
        self.record_id = record_id
        prefix = f"Invalid record {record_id!r}" if record_id is not None else "Invalid record"
        super().__init__(f"{prefix}: {reason}")


class InvalidRange(ShiftError):
    """A date range query whose end precedes its start."""

    def __init__(self, start_date: _dt.date, end_date: _dt.date) -> None:
        self.start_date = start_date
        self.end_date = end_date
        super().__init__(
            f"Invalid range: end date {end_date.isoformat()} is before start date {start_date.isoformat()}"
        )
