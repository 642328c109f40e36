"""
Schedule statistics for generated or committed entries.

Counts entries by department and faculty, measures classroom utilization
against a nominal teaching week, and reports how evenly each department's
load is spread across its faculty.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Iterable

from ..constraints import load_variance
from ..timemodel import total_hours

if TYPE_CHECKING:
    from ..data.models import Catalog, ScheduleEntry


# =============================================================================
# Constants
# =============================================================================

# Nominal bookable hours per room per week (5 days x 8 hours)
DEFAULT_WEEK_HOURS = 40.0


# =============================================================================
# Data Classes
# =============================================================================

@dataclass
class RoomUtilization:
    classroom_id: str
    room_number: str
    building: str | None
    booked_hours: float
    utilization: float  # percent of the nominal week


@dataclass
class DepartmentBalance:
    """Spread of teaching load across a department's faculty."""
    department_id: str
    faculty_count: int
    total_hours: float
    mean_load: float
    std_dev: float

    @property
    def score(self) -> float:
        """100 for a perfectly even spread, 0 at a 6h standard deviation."""
        return round(max(0.0, 100 - (self.std_dev / 6) * 100), 2)


@dataclass
class ScheduleMetrics:
    total_entries: int
    total_hours: float
    by_department: dict[str, int] = field(default_factory=dict)
    by_faculty: dict[str, int] = field(default_factory=dict)
    room_utilization: list[RoomUtilization] = field(default_factory=list)
    balance: list[DepartmentBalance] = field(default_factory=list)

    @property
    def average_utilization(self) -> float:
        if not self.room_utilization:
            return 0.0
        return round(sum(r.utilization for r in self.room_utilization) / len(self.room_utilization), 2)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "totalEntries": self.total_entries,
            "totalHours": round(self.total_hours, 2),
            "byDepartment": self.by_department,
            "byFaculty": self.by_faculty,
            "averageUtilization": self.average_utilization,
            "utilizationRates": [
                {
                    "classroomId": r.classroom_id,
                    "roomNumber": r.room_number,
                    "building": r.building,
                    "bookedHours": round(r.booked_hours, 2),
                    "utilization": r.utilization,
                }
                for r in self.room_utilization
            ],
            "balance": [
                {
                    "departmentId": b.department_id,
                    "facultyCount": b.faculty_count,
                    "totalHours": round(b.total_hours, 2),
                    "meanLoad": round(b.mean_load, 2),
                    "stdDev": round(b.std_dev, 2),
                    "score": b.score,
                }
                for b in self.balance
            ],
        }


# =============================================================================
# Calculation
# =============================================================================

def calculate_metrics(
    entries: Iterable[ScheduleEntry],
    catalog: Catalog,
    week_hours: float = DEFAULT_WEEK_HOURS,
) -> ScheduleMetrics:
    """
    Compute statistics for a set of entries.

    Args:
        entries: Entries to measure (typically one term's active entries)
        catalog: Reference data for names and subject hours
        week_hours: Bookable hours per room per week

    Returns:
        ScheduleMetrics
    """
    entries = list(entries)
    metrics = ScheduleMetrics(
        total_entries=len(entries),
        total_hours=sum(e.scheduled_hours for e in entries),
    )

    for entry in entries:
        subject = catalog.get_subject(entry.subject_id)
        department = entry.department_id or (
            catalog.subject_department_id(subject) if subject else None
        ) or "unknown"
        metrics.by_department[department] = metrics.by_department.get(department, 0) + 1
        metrics.by_faculty[entry.faculty_id] = metrics.by_faculty.get(entry.faculty_id, 0) + 1

    for room in catalog.classrooms:
        booked = total_hours(s for e in entries if e.classroom_id == room.id for s in e.timeslots)
        metrics.room_utilization.append(RoomUtilization(
            classroom_id=room.id,
            room_number=room.room_number,
            building=room.building,
            booked_hours=booked,
            utilization=round(100 * booked / week_hours, 2) if week_hours else 0.0,
        ))

    for department in catalog.departments:
        faculty_ids = [f.id for f in catalog.faculty if f.department_id == department.id]
        if not faculty_ids:
            continue
        loads = []
        for faculty_id in faculty_ids:
            load = 0.0
            for entry in entries:
                if entry.faculty_id != faculty_id:
                    continue
                subject = catalog.get_subject(entry.subject_id)
                load += subject.total_hours if subject else 0.0
            loads.append(load)
        metrics.balance.append(DepartmentBalance(
            department_id=department.id,
            faculty_count=len(loads),
            total_hours=sum(loads),
            mean_load=sum(loads) / len(loads),
            std_dev=math.sqrt(load_variance(loads)),
        ))

    return metrics
