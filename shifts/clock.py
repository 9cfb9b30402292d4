"""Injected time sources.

Anything that needs "today" (default week views, skipping past dates when
planning) takes a Clock instead of reading the system time directly.
"""
from __future__ import annotations

import datetime as _dt
from dataclasses import dataclass
from typing import Protocol


class Clock(Protocol):
    def today(self) -> _dt.date:
        ...


class SystemClock:
    """Local calendar date from the host clock."""

    def today(self) -> _dt.date:
        return _dt.date.today()


@dataclass(frozen=True)
class FixedClock:
    """Clock pinned to one date, for tests and replaying past weeks."""

    date: _dt.date

    def today(self) -> _dt.date:
        return self.date
