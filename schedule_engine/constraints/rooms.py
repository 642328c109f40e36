"""
Room suitability constraints for schedule entries.

This module provides constraints for:
- Room status (only ``available`` rooms are eligible)
- Room type (lab work needs a lab room, lectures use non-lab rooms)
- Required facilities
- Capacity against expected enrollment and the request minimum
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Iterable, Optional

from .core import Conflict, ConstraintContext, ConstraintKind

if TYPE_CHECKING:
    from ..data.models import Classroom, GenerationOptions, ScheduleEntry, Subject


# =============================================================================
# Room Suitability
# =============================================================================

@dataclass
class RoomSuitability:
    """Suitability analysis for a classroom-subject pair."""
    classroom_id: str
    is_valid: bool
    problems: list[tuple[ConstraintKind, str]] = field(default_factory=list)


def required_capacity(subject: Subject, options: Optional[GenerationOptions] = None) -> int:
    """Seats needed: the larger of expected enrollment and the request minimum."""
    needed = subject.expected_enrollment or 0
    if options is not None and options.minimum_capacity:
        needed = max(needed, options.minimum_capacity)
    return needed


def required_facilities(subject: Subject, options: Optional[GenerationOptions] = None) -> list[str]:
    wanted = list(subject.required_facilities)
    if options is not None:
        wanted.extend(f for f in options.required_facilities if f not in wanted)
    return wanted


def evaluate_room(
    classroom: Classroom,
    subject: Subject,
    options: Optional[GenerationOptions] = None,
) -> RoomSuitability:
    """
    Evaluate if a classroom can host a subject.

    Checks, in order: status, type, facilities, capacity. Every failing
    check is recorded; nothing short-circuits.
    """
    result = RoomSuitability(classroom_id=classroom.id, is_valid=True)

    if not classroom.is_available:
        result.problems.append((
            ConstraintKind.CLASSROOM_STATUS,
            f"Classroom {classroom.display_name} is {classroom.status.value}",
        ))

    if subject.required_room_type is not None:
        if classroom.type != subject.required_room_type:
            result.problems.append((
                ConstraintKind.CLASSROOM_TYPE,
                f"{subject.code} requires a {subject.required_room_type.value} room, "
                f"{classroom.display_name} is {classroom.type.value}",
            ))
    elif subject.requires_lab and not classroom.is_lab:
        result.problems.append((
            ConstraintKind.CLASSROOM_TYPE,
            f"{subject.code} has lab units and needs a laboratory or computer-lab room, "
            f"{classroom.display_name} is {classroom.type.value}",
        ))
    elif not subject.requires_lab and classroom.is_lab:
        result.problems.append((
            ConstraintKind.CLASSROOM_TYPE,
            f"{subject.code} is lecture-only and cannot use {classroom.type.value} "
            f"room {classroom.display_name}",
        ))

    missing = [f for f in required_facilities(subject, options) if f not in classroom.facilities]
    if missing:
        result.problems.append((
            ConstraintKind.CLASSROOM_TYPE,
            f"Classroom {classroom.display_name} lacks required facilities: {', '.join(missing)}",
        ))

    needed = required_capacity(subject, options)
    if needed and classroom.capacity < needed:
        result.problems.append((
            ConstraintKind.CLASSROOM_CAPACITY,
            f"Classroom {classroom.display_name} seats {classroom.capacity}, {needed} needed",
        ))

    result.is_valid = not result.problems
    return result


def is_room_compatible(
    classroom: Classroom,
    subject: Subject,
    options: Optional[GenerationOptions] = None,
) -> bool:
    return evaluate_room(classroom, subject, options).is_valid


def compatible_rooms(
    subject: Subject,
    classrooms: Iterable[Classroom],
    options: Optional[GenerationOptions] = None,
) -> list[Classroom]:
    """
    Rooms that can host the subject, best fit first.

    Rooms are ordered by how close their capacity is to the seats needed,
    then by id.
    """
    needed = required_capacity(subject, options)
    valid = [room for room in classrooms if is_room_compatible(room, subject, options)]
    return sorted(valid, key=lambda room: (abs(room.capacity - needed), room.id))


# =============================================================================
# Checks
# =============================================================================

def _room_conflicts(
    candidate: ScheduleEntry,
    ctx: ConstraintContext,
    kinds: set[ConstraintKind],
) -> list[Conflict]:
    suitability = evaluate_room(ctx.classroom, ctx.subject, ctx.options)
    return [
        Conflict(
            kind=kind,
            message=message,
            entry_id=candidate.id,
            details={"classroom_id": ctx.classroom.id, "subject_id": ctx.subject.id},
        )
        for kind, message in suitability.problems
        if kind in kinds
    ]


def check_classroom_status(candidate: ScheduleEntry, ctx: ConstraintContext) -> list[Conflict]:
    return _room_conflicts(candidate, ctx, {ConstraintKind.CLASSROOM_STATUS})


def check_classroom_type(candidate: ScheduleEntry, ctx: ConstraintContext) -> list[Conflict]:
    return _room_conflicts(candidate, ctx, {ConstraintKind.CLASSROOM_TYPE})


def check_classroom_capacity(candidate: ScheduleEntry, ctx: ConstraintContext) -> list[Conflict]:
    return _room_conflicts(candidate, ctx, {ConstraintKind.CLASSROOM_CAPACITY})
