"""Core types shared by every hard-constraint check."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Optional, Sequence

from ..timemodel import TimeSlot

if TYPE_CHECKING:
    from ..config import EngineSettings
    from ..data.models import (
        Catalog,
        Classroom,
        Faculty,
        GenerationOptions,
        ScheduleEntry,
        Subject,
    )


class ConstraintKind(str, Enum):
    """Hard constraints a schedule entry must satisfy."""
    FACULTY_DOUBLE_BOOKING = "faculty-double-booking"
    CLASSROOM_DOUBLE_BOOKING = "classroom-double-booking"
    FACULTY_AVAILABILITY = "faculty-availability"
    CLASSROOM_CAPACITY = "classroom-capacity"
    CLASSROOM_TYPE = "classroom-type"
    LOAD_CAP = "load-cap"
    PREPARATION_CAP = "preparation-cap"
    FACULTY_STATUS = "faculty-status"
    CLASSROOM_STATUS = "classroom-status"
    SELF_OVERLAP = "self-overlap"
    TIME_WINDOW = "time-window"


DOUBLE_BOOKING_KINDS = frozenset({
    ConstraintKind.FACULTY_DOUBLE_BOOKING,
    ConstraintKind.CLASSROOM_DOUBLE_BOOKING,
})


@dataclass
class Conflict:
    """
    One hard-constraint violation found for a candidate entry.

    ``conflicting_entry_id`` and ``overlap`` are set for double-booking
    conflicts; ``details`` holds the structured values behind ``message``.
    """
    kind: ConstraintKind
    message: str
    entry_id: Optional[str] = None
    conflicting_entry_id: Optional[str] = None
    overlap: Optional[TimeSlot] = None
    details: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "message": self.message,
            "entry_id": self.entry_id,
            "conflicting_entry_id": self.conflicting_entry_id,
            "overlap": self.overlap.to_dict() if self.overlap else None,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"[{self.kind.value}] {self.message}"


@dataclass
class ConstraintContext:
    """
    Everything a check needs to judge one candidate.

    ``faculty_entries`` and ``classroom_entries`` are the other active
    entries of the candidate's term that share its faculty or classroom;
    the candidate itself is never among them.
    """
    catalog: Catalog
    settings: EngineSettings
    subject: Subject
    faculty: Faculty
    classroom: Classroom
    faculty_entries: Sequence[ScheduleEntry] = ()
    classroom_entries: Sequence[ScheduleEntry] = ()
    options: Optional[GenerationOptions] = None

    def subject_hours(self, subject_id: str) -> float:
        subject = self.catalog.get_subject(subject_id)
        return subject.total_hours if subject else 0.0


HardConstraint = Callable[["ScheduleEntry", ConstraintContext], list[Conflict]]
