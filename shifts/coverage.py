"""Weekly coverage overview: caregiver utilization and client authorization shortfalls.

Clients are authorized care in 15-minute units per week; a client is
under-scheduled when the resolved hours for the week fall short of the
authorization. Caregiver capacity comes from each caregiver's weekly cap.
"""
from __future__ import annotations

import datetime as _dt
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping

from core.constants import HOURS_PER_UNIT, UNITS_PER_HOUR

from .model import ScheduleRecord
from .resolver import resolve_for_range
from .workload import week_bounds


@dataclass(frozen=True)
class CaregiverLoad:
    caregiver_id: Any
    scheduled_hours: float
    max_hours: float
    remaining_hours: float
    utilization_percent: int


@dataclass(frozen=True)
class ClientCoverage:
    client_id: Any
    authorized_units: int
    authorized_hours: float
    scheduled_hours: float
    scheduled_units: int
    shortfall_units: int
    shortfall_hours: float
    coverage_percent: int

    @property
    def is_under_scheduled(self) -> bool:
        return self.shortfall_units > 0


@dataclass(frozen=True)
class CoverageOverview:
    week_start: _dt.date
    week_end: _dt.date
    caregivers: List[CaregiverLoad]
    clients: List[ClientCoverage]

    @property
    def under_scheduled(self) -> List[ClientCoverage]:
        return [c for c in self.clients if c.is_under_scheduled]

    @property
    def total_scheduled_hours(self) -> float:
        return sum(c.scheduled_hours for c in self.caregivers)

    @property
    def total_available_hours(self) -> float:
        return sum(c.max_hours for c in self.caregivers)

    @property
    def total_shortfall_units(self) -> int:
        return sum(c.shortfall_units for c in self.under_scheduled)

    @property
    def total_shortfall_hours(self) -> float:
        return sum(c.shortfall_hours for c in self.under_scheduled)


def _percent(part: float, whole: float) -> int:
    if whole <= 0:
        return 0
    return int(round(part / whole * 100))


def client_coverage(client_id: Any, authorized_units: int, scheduled_hours: float) -> ClientCoverage:
    scheduled_units = int(round(scheduled_hours * UNITS_PER_HOUR))
    shortfall = max(0, authorized_units - scheduled_units)
    return ClientCoverage(
        client_id=client_id,
        authorized_units=authorized_units,
        authorized_hours=authorized_units * HOURS_PER_UNIT,
        scheduled_hours=scheduled_hours,
        scheduled_units=scheduled_units,
        shortfall_units=shortfall,
        shortfall_hours=shortfall * HOURS_PER_UNIT,
        coverage_percent=_percent(scheduled_units, authorized_units),
    )


def coverage_overview(
    records: Iterable[ScheduleRecord],
    week_of: _dt.date,
    *,
    caregiver_max_hours: Mapping[Any, float],
    client_authorized_units: Mapping[Any, int],
) -> CoverageOverview:
    """Build the coverage overview for the week containing ``week_of``.

    Args:
        records: Snapshot of schedule records.
        week_of: Any date inside the week.
        caregiver_max_hours: Roster of caregivers to report, with weekly caps.
        client_authorized_units: Clients with a weekly authorization in
            15-minute units; clients with zero units are skipped.

    Scheduled hours are the durations of the week's active occurrences, so
    bi-weekly shifts count only in their "on" weeks.
    """
    start, end = week_bounds(week_of)
    cg_hours: Dict[Any, float] = {}
    cl_hours: Dict[Any, float] = {}
    for occ in resolve_for_range(list(records), start, end):
        cg_hours[occ.caregiver_id] = cg_hours.get(occ.caregiver_id, 0.0) + occ.duration_hours
        cl_hours[occ.client_id] = cl_hours.get(occ.client_id, 0.0) + occ.duration_hours

    caregivers: List[CaregiverLoad] = []
    for cid, cap in caregiver_max_hours.items():
        cap = float(cap)
        scheduled = cg_hours.get(cid, 0.0)
        caregivers.append(
            CaregiverLoad(
                caregiver_id=cid,
                scheduled_hours=scheduled,
                max_hours=cap,
                remaining_hours=max(0.0, cap - scheduled),
                utilization_percent=_percent(scheduled, cap),
            )
        )

    clients = [
        client_coverage(cid, int(units), cl_hours.get(cid, 0.0))
        for cid, units in client_authorized_units.items()
        if units and int(units) > 0
    ]
    return CoverageOverview(week_start=start, week_end=end, caregivers=caregivers, clients=clients)
