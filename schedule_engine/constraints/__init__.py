"""
Constraint catalog for the scheduling engine.

Hard constraints are plain check functions ``(candidate, ctx) -> list[Conflict]``;
``HARD_CONSTRAINTS`` fixes the order in which the detector runs them.
Soft preferences live in ``preferences`` and only rank candidates.
"""

from __future__ import annotations

from .core import (
    DOUBLE_BOOKING_KINDS,
    Conflict,
    ConstraintContext,
    ConstraintKind,
    HardConstraint,
)

from .no_overlap import (
    check_classroom_double_booking,
    check_faculty_double_booking,
    check_self_overlap,
    find_overlaps,
)

from .availability import (
    availability_windows,
    check_faculty_availability,
    check_time_window,
    restrict_windows,
    schedulable_windows,
    standard_windows,
)

from .rooms import (
    RoomSuitability,
    check_classroom_capacity,
    check_classroom_status,
    check_classroom_type,
    compatible_rooms,
    evaluate_room,
    is_room_compatible,
    required_capacity,
)

from .load_limits import (
    check_faculty_status,
    check_load_cap,
    check_preparation_cap,
    effective_max_load,
    effective_max_preparations,
    faculty_problems,
)

from .preferences import ScoreWeights, load_variance, score_candidate


HARD_CONSTRAINTS: dict[ConstraintKind, HardConstraint] = {
    ConstraintKind.SELF_OVERLAP: check_self_overlap,
    ConstraintKind.FACULTY_STATUS: check_faculty_status,
    ConstraintKind.CLASSROOM_STATUS: check_classroom_status,
    ConstraintKind.CLASSROOM_TYPE: check_classroom_type,
    ConstraintKind.CLASSROOM_CAPACITY: check_classroom_capacity,
    ConstraintKind.TIME_WINDOW: check_time_window,
    ConstraintKind.FACULTY_AVAILABILITY: check_faculty_availability,
    ConstraintKind.LOAD_CAP: check_load_cap,
    ConstraintKind.PREPARATION_CAP: check_preparation_cap,
    ConstraintKind.FACULTY_DOUBLE_BOOKING: check_faculty_double_booking,
    ConstraintKind.CLASSROOM_DOUBLE_BOOKING: check_classroom_double_booking,
}


__all__ = [
    "Conflict",
    "ConstraintContext",
    "ConstraintKind",
    "DOUBLE_BOOKING_KINDS",
    "HARD_CONSTRAINTS",
    "HardConstraint",
    "RoomSuitability",
    "ScoreWeights",
    "availability_windows",
    "check_classroom_capacity",
    "check_classroom_double_booking",
    "check_classroom_status",
    "check_classroom_type",
    "check_faculty_availability",
    "check_faculty_double_booking",
    "check_faculty_status",
    "check_load_cap",
    "check_preparation_cap",
    "check_self_overlap",
    "check_time_window",
    "compatible_rooms",
    "effective_max_load",
    "effective_max_preparations",
    "evaluate_room",
    "faculty_problems",
    "find_overlaps",
    "is_room_compatible",
    "load_variance",
    "required_capacity",
    "restrict_windows",
    "schedulable_windows",
    "score_candidate",
    "standard_windows",
]
