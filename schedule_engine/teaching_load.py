"""
Teaching-load calculator.

Conversion ratios between subject units and weekly teaching hours:
- Lecture: 1 unit = 1 hour
- Lab: 0.75 units = 1 hour (1 unit = 1.333... hours)

Examples:
- 3 lecture units = 3 teaching hours
- 2.25 lab units = 2.25 / 0.75 = 3 teaching hours
- 1.5 lab units = 1.5 / 0.75 = 2 teaching hours

The ratios are fixed institutional constants, not configuration.
"""

from __future__ import annotations

import math
from enum import Enum

from .timemodel import MINUTES_PER_HOUR


LECTURE_UNIT_TO_HOURS_RATIO = 1
LAB_HOURS_TO_UNIT_RATIO = 0.75  # 1 hour = 0.75 units

DEFAULT_MIN_LOAD = 18.0
DEFAULT_MAX_LOAD = 26.0
DEFAULT_SESSION_HOURS = 1.5


class SessionKind(str, Enum):
    LECTURE = "lecture"
    LABORATORY = "laboratory"


class WorkloadStatus(str, Enum):
    UNDERLOADED = "underloaded"
    OPTIMAL = "optimal"
    OVERLOADED = "overloaded"


def lecture_hours(units: float) -> float:
    """Convert lecture units to teaching hours (1:1)."""
    return units * LECTURE_UNIT_TO_HOURS_RATIO


def lab_hours(units: float) -> float:
    """Convert lab units to teaching hours (units / 0.75)."""
    return units / LAB_HOURS_TO_UNIT_RATIO


def lab_units_from_hours(hours: float) -> float:
    """Inverse of ``lab_hours``, for display and edit round-trips."""
    return hours * LAB_HOURS_TO_UNIT_RATIO


def total_hours(lecture_units: float, lab_units: float) -> float:
    """Total weekly teaching hours for a subject."""
    return lecture_hours(lecture_units) + lab_hours(lab_units)


def required_minutes(lecture_units: float, lab_units: float) -> int:
    """Weekly minutes to schedule, rounded to the nearest minute."""
    return round(total_hours(lecture_units, lab_units) * MINUTES_PER_HOUR)


def recommended_duration(kind: SessionKind, units: float) -> float:
    """Teaching hours for one component (lecture or lab) of a subject."""
    if kind == SessionKind.LECTURE:
        return lecture_hours(units)
    return lab_hours(units)


def sessions_per_week(teaching_hours: float, session_hours: float = DEFAULT_SESSION_HOURS) -> int:
    """Sessions needed to cover ``teaching_hours`` at ``session_hours`` each."""
    if teaching_hours <= 0:
        return 0
    return math.ceil(teaching_hours / session_hours)


def workload_status(
    hours: float,
    min_hours: float = DEFAULT_MIN_LOAD,
    max_hours: float = DEFAULT_MAX_LOAD,
) -> WorkloadStatus:
    """Classify a weekly load against the faculty's band."""
    if hours < min_hours:
        return WorkloadStatus.UNDERLOADED
    if hours > max_hours:
        return WorkloadStatus.OVERLOADED
    return WorkloadStatus.OPTIMAL
