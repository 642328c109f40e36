"""
No-overlap constraints for schedule entries.

This module detects double-booking of:
- Faculty (cannot teach two entries at the same time)
- Classrooms (cannot host two entries at the same time)
- The entry itself (its own slots may not overlap)

Overlap is half-open and same-day only, so back-to-back slots are fine.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

from ..timemodel import find_self_overlap, overlap_window
from .core import Conflict, ConstraintContext, ConstraintKind

if TYPE_CHECKING:
    from ..data.models import ScheduleEntry


def find_overlaps(
    candidate: ScheduleEntry,
    others: Sequence[ScheduleEntry],
    kind: ConstraintKind,
    resource: str,
) -> list[Conflict]:
    """
    One conflict per overlapping (candidate slot, other slot) pair.

    Args:
        candidate: The entry being checked
        others: Entries sharing the booked resource
        kind: The double-booking kind to report
        resource: Human-readable resource name for messages

    Returns:
        Conflicts ordered by other entry, then by slot
    """
    conflicts: list[Conflict] = []
    for other in others:
        for slot in candidate.timeslots:
            for other_slot in other.timeslots:
                window = overlap_window(slot, other_slot)
                if window is None:
                    continue
                conflicts.append(Conflict(
                    kind=kind,
                    message=(
                        f"{resource} is already booked {window} "
                        f"by entry {other.id or '<new>'} ({other.subject_id})"
                    ),
                    entry_id=candidate.id,
                    conflicting_entry_id=other.id,
                    overlap=window,
                    details={
                        "subject_id": other.subject_id,
                        "slot": slot.to_dict(),
                        "other_slot": other_slot.to_dict(),
                    },
                ))
    return conflicts


def check_faculty_double_booking(candidate: ScheduleEntry, ctx: ConstraintContext) -> list[Conflict]:
    return find_overlaps(
        candidate,
        ctx.faculty_entries,
        ConstraintKind.FACULTY_DOUBLE_BOOKING,
        f"Faculty {ctx.faculty.name}",
    )


def check_classroom_double_booking(candidate: ScheduleEntry, ctx: ConstraintContext) -> list[Conflict]:
    return find_overlaps(
        candidate,
        ctx.classroom_entries,
        ConstraintKind.CLASSROOM_DOUBLE_BOOKING,
        f"Classroom {ctx.classroom.display_name}",
    )


def check_self_overlap(candidate: ScheduleEntry, ctx: ConstraintContext) -> list[Conflict]:
    """Entries built with model_construct skip validation, so re-check here."""
    pair = find_self_overlap(candidate.timeslots)
    if pair is None:
        return []
    first, second = pair
    return [Conflict(
        kind=ConstraintKind.SELF_OVERLAP,
        message=f"Entry slots overlap each other: {first} and {second}",
        entry_id=candidate.id,
        overlap=overlap_window(first, second),
    )]
