"""
Output schema for schedule reports.

This module defines the JSON-serializable report format for a term's
schedule, including pre-computed views by faculty, classroom and day.
One ``SessionOutput`` row is produced per time slot of each entry.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Iterable, Optional

from pydantic import BaseModel, Field

from ..data.models import Catalog, ScheduleEntry, Term
from ..search import GenerationResult
from ..timemodel import WeekDay, minutes_to_time
from .metrics import calculate_metrics


# =============================================================================
# Enums
# =============================================================================

class ReportStatus(str, Enum):
    """Status of the report's schedule."""
    SATISFIED = "satisfied"
    PARTIALLY_SATISFIED = "partially-satisfied"
    INFEASIBLE = "infeasible"
    COMMITTED = "committed"


# =============================================================================
# Session Output
# =============================================================================

class SessionOutput(BaseModel):
    """One weekly meeting of a schedule entry."""
    entry_id: Optional[str] = Field(default=None, alias="entryId")
    subject_id: str = Field(alias="subjectId")
    faculty_id: str = Field(alias="facultyId")
    classroom_id: str = Field(alias="classroomId")
    day: WeekDay
    start_time: str = Field(alias="startTime")  # 'HH:MM'
    end_time: str = Field(alias="endTime")  # 'HH:MM'
    status: str
    is_generated: bool = Field(default=False, alias="isGenerated")

    # Optional enriched data
    subject_code: Optional[str] = Field(default=None, alias="subjectCode")
    subject_name: Optional[str] = Field(default=None, alias="subjectName")
    faculty_name: Optional[str] = Field(default=None, alias="facultyName")
    room_name: Optional[str] = Field(default=None, alias="roomName")
    section: Optional[str] = None

    model_config = {"populate_by_name": True}

    @property
    def sort_key(self) -> tuple:
        return (self.day.week_index, self.start_time, self.subject_id)


class UnresolvedOutput(BaseModel):
    subject_id: str = Field(alias="subjectId")
    reason: str
    constraint: Optional[str] = None
    attempts: int = 0

    model_config = {"populate_by_name": True}


# =============================================================================
# Views
# =============================================================================

class DaySchedule(BaseModel):
    """Schedule for a single day."""
    day: WeekDay
    day_name: str = Field(alias="dayName")
    sessions: list[SessionOutput]

    model_config = {"populate_by_name": True}


class EntitySchedule(BaseModel):
    """Schedule for a faculty member or classroom."""
    id: str
    name: str
    sessions: list[SessionOutput]
    hours: float = 0.0
    by_day: dict[WeekDay, list[SessionOutput]] = Field(default_factory=dict, alias="byDay")

    model_config = {"populate_by_name": True}


class ScheduleViews(BaseModel):
    """Pre-computed views of the schedule for convenience."""
    by_faculty: dict[str, EntitySchedule] = Field(default_factory=dict, alias="byFaculty")
    by_classroom: dict[str, EntitySchedule] = Field(default_factory=dict, alias="byClassroom")
    by_day: dict[WeekDay, DaySchedule] = Field(default_factory=dict, alias="byDay")

    model_config = {"populate_by_name": True}


# =============================================================================
# Complete Report
# =============================================================================

class ScheduleReport(BaseModel):
    """Complete report for one term's schedule."""
    status: ReportStatus
    semester: str
    academic_year: str = Field(alias="academicYear")
    elapsed_seconds: float = Field(default=0.0, alias="elapsedSeconds")
    sessions: list[SessionOutput]
    unresolved: list[UnresolvedOutput] = Field(default_factory=list)
    skipped_subject_ids: list[str] = Field(default_factory=list, alias="skippedSubjectIds")
    stats: dict[str, Any] = Field(default_factory=dict)
    metrics: dict[str, Any] = Field(default_factory=dict)
    views: ScheduleViews

    model_config = {"populate_by_name": True}

    def to_json(self, indent: int = 2) -> str:
        """Serialize to JSON string."""
        return self.model_dump_json(by_alias=True, indent=indent)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return self.model_dump(by_alias=True, mode="json")


# =============================================================================
# Conversion Functions
# =============================================================================

def entry_sessions(entry: ScheduleEntry, catalog: Optional[Catalog] = None) -> list[SessionOutput]:
    """Expand an entry into one SessionOutput per slot."""
    subject = catalog.get_subject(entry.subject_id) if catalog else None
    faculty = catalog.get_faculty(entry.faculty_id) if catalog else None
    room = catalog.get_classroom(entry.classroom_id) if catalog else None
    return [
        SessionOutput(
            entryId=entry.id,
            subjectId=entry.subject_id,
            facultyId=entry.faculty_id,
            classroomId=entry.classroom_id,
            day=slot.day,
            startTime=minutes_to_time(slot.start),
            endTime=minutes_to_time(slot.end),
            status=entry.status.value,
            isGenerated=entry.is_generated,
            subjectCode=subject.code if subject else None,
            subjectName=subject.name if subject else None,
            facultyName=faculty.name if faculty else None,
            roomName=room.display_name if room else None,
            section=entry.section,
        )
        for slot in entry.timeslots
    ]


def _duration_hours(session: SessionOutput) -> float:
    start_h, start_m = map(int, session.start_time.split(":"))
    end_h, end_m = map(int, session.end_time.split(":"))
    return ((end_h * 60 + end_m) - (start_h * 60 + start_m)) / 60


def _group_by_day(sessions: list[SessionOutput]) -> dict[WeekDay, list[SessionOutput]]:
    """Group sessions by day."""
    by_day: dict[WeekDay, list[SessionOutput]] = {}
    for session in sessions:
        by_day.setdefault(session.day, []).append(session)
    return by_day


def _entity_schedules(
    sessions: list[SessionOutput],
    key: str,
    names: dict[str, str],
) -> dict[str, EntitySchedule]:
    grouped: dict[str, list[SessionOutput]] = {}
    for session in sessions:
        grouped.setdefault(getattr(session, key), []).append(session)
    return {
        entity_id: EntitySchedule(
            id=entity_id,
            name=names.get(entity_id, entity_id),
            sessions=group,
            hours=round(sum(_duration_hours(s) for s in group), 4),
            byDay=_group_by_day(group),
        )
        for entity_id, group in sorted(grouped.items())
    }


def create_views(sessions: list[SessionOutput], catalog: Optional[Catalog] = None) -> ScheduleViews:
    """Create pre-computed views from sorted sessions."""
    faculty_names = {f.id: f.name for f in catalog.faculty} if catalog else {}
    room_names = {r.id: r.display_name for r in catalog.classrooms} if catalog else {}

    day_schedules = {
        day: DaySchedule(day=day, dayName=day.label, sessions=group)
        for day, group in sorted(_group_by_day(sessions).items(), key=lambda item: item[0].week_index)
    }
    return ScheduleViews(
        byFaculty=_entity_schedules(sessions, "faculty_id", faculty_names),
        byClassroom=_entity_schedules(sessions, "classroom_id", room_names),
        byDay=day_schedules,
    )


def create_schedule_report(
    entries: Iterable[ScheduleEntry],
    catalog: Catalog,
    term: Term,
    result: Optional[GenerationResult] = None,
) -> ScheduleReport:
    """
    Build a report for ``entries``.

    Args:
        entries: Entries to report on
        catalog: Reference data used for names and metrics
        term: The term the entries belong to
        result: Generation result that produced the entries, if any

    Returns:
        ScheduleReport with sessions, views and metrics
    """
    entries = list(entries)
    sessions = sorted(
        (s for e in entries for s in entry_sessions(e, catalog)),
        key=lambda s: s.sort_key,
    )
    status = ReportStatus(result.status.value) if result else ReportStatus.COMMITTED

    return ScheduleReport(
        status=status,
        semester=term.semester,
        academicYear=term.academic_year,
        elapsedSeconds=result.stats.elapsed_seconds if result else 0.0,
        sessions=sessions,
        unresolved=[
            UnresolvedOutput(
                subjectId=u.subject_id,
                reason=u.reason,
                constraint=u.constraint.value if u.constraint else None,
                attempts=u.attempts,
            )
            for u in (result.unresolved if result else [])
        ],
        skippedSubjectIds=list(result.skipped_subject_ids) if result else [],
        stats=result.stats.to_dict() if result else {},
        metrics=calculate_metrics(entries, catalog).to_dict(),
        views=create_views(sessions, catalog),
    )


def result_to_json(result: GenerationResult, catalog: Catalog, indent: int = 2) -> str:
    """Convert a GenerationResult directly to a JSON report."""
    return create_schedule_report(result.assigned, catalog, result.term, result).to_json(indent=indent)
