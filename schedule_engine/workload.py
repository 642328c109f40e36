"""
Faculty workload aggregates.

Load is derived from a faculty member's non-archived entries in a term:
each entry contributes its subject's lecture and lab hours, and the
number of distinct subjects is the preparation count.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Optional

from .data.models import ACTIVE_STATUSES, Catalog, Faculty, ScheduleEntry, Term
from .teaching_load import WorkloadStatus, workload_status


@dataclass
class SubjectLoad:
    """One entry's contribution to a faculty member's load."""
    entry_id: Optional[str]
    subject_id: str
    subject_code: str
    subject_name: str
    lecture_units: float
    lab_units: float
    lecture_hours: float
    lab_hours: float

    @property
    def teaching_hours(self) -> float:
        return self.lecture_hours + self.lab_hours


@dataclass
class FacultyWorkload:
    faculty_id: str
    faculty_name: str
    department_id: str
    min_load: float
    max_load: float
    max_preparations: int
    subjects: list[SubjectLoad] = field(default_factory=list)

    @property
    def lecture_hours(self) -> float:
        return sum(s.lecture_hours for s in self.subjects)

    @property
    def lab_hours(self) -> float:
        return sum(s.lab_hours for s in self.subjects)

    @property
    def total_hours(self) -> float:
        return self.lecture_hours + self.lab_hours

    @property
    def total_units(self) -> float:
        return sum(s.lecture_units + s.lab_units for s in self.subjects)

    @property
    def preparations(self) -> int:
        return len({s.subject_id for s in self.subjects})

    @property
    def entry_count(self) -> int:
        return len(self.subjects)

    @property
    def status(self) -> WorkloadStatus:
        return workload_status(self.total_hours, self.min_load, self.max_load)

    @property
    def utilization(self) -> float:
        """Percentage of max_load in use."""
        if self.max_load <= 0:
            return 0.0
        return round(100 * self.total_hours / self.max_load, 1)

    def to_dict(self) -> dict[str, Any]:
        return {
            "faculty_id": self.faculty_id,
            "faculty_name": self.faculty_name,
            "department_id": self.department_id,
            "total_hours": round(self.total_hours, 4),
            "lecture_hours": round(self.lecture_hours, 4),
            "lab_hours": round(self.lab_hours, 4),
            "total_units": self.total_units,
            "preparations": self.preparations,
            "entry_count": self.entry_count,
            "min_load": self.min_load,
            "max_load": self.max_load,
            "status": self.status.value,
            "utilization": self.utilization,
            "subjects": [
                {
                    "entry_id": s.entry_id,
                    "subject_id": s.subject_id,
                    "subject_code": s.subject_code,
                    "subject_name": s.subject_name,
                    "teaching_hours": round(s.teaching_hours, 4),
                }
                for s in self.subjects
            ],
        }


def _in_term(entry: ScheduleEntry, term: Term) -> bool:
    return (
        entry.semester == term.semester
        and entry.academic_year == term.academic_year
        and entry.status in ACTIVE_STATUSES
    )


def faculty_workload(
    faculty: Faculty,
    entries: Iterable[ScheduleEntry],
    catalog: Catalog,
    term: Term,
) -> FacultyWorkload:
    """Workload of one faculty member from the term's active entries."""
    workload = FacultyWorkload(
        faculty_id=faculty.id,
        faculty_name=faculty.name,
        department_id=faculty.department_id,
        min_load=faculty.min_load,
        max_load=faculty.max_load,
        max_preparations=faculty.max_preparations,
    )
    for entry in sorted(entries, key=lambda e: (e.subject_id, e.id or "")):
        if entry.faculty_id != faculty.id or not _in_term(entry, term):
            continue
        subject = catalog.get_subject(entry.subject_id)
        if subject is None:
            continue
        workload.subjects.append(SubjectLoad(
            entry_id=entry.id,
            subject_id=subject.id,
            subject_code=subject.code,
            subject_name=subject.name,
            lecture_units=subject.lecture_units,
            lab_units=subject.lab_units,
            lecture_hours=subject.lecture_hours,
            lab_hours=subject.lab_hours,
        ))
    return workload


def department_workload(
    department_id: str,
    entries: Iterable[ScheduleEntry],
    catalog: Catalog,
    term: Term,
) -> list[FacultyWorkload]:
    """Workloads of a department's faculty, heaviest first."""
    entries = list(entries)
    workloads = [
        faculty_workload(f, entries, catalog, term)
        for f in catalog.faculty
        if f.department_id == department_id
    ]
    return sorted(workloads, key=lambda w: (-w.total_hours, w.faculty_id))


def recompute_load(
    faculty: Faculty,
    entries: Iterable[ScheduleEntry],
    catalog: Catalog,
    term: Term,
) -> tuple[float, int]:
    """(current_load, current_preparations) to store on the faculty record."""
    workload = faculty_workload(faculty, entries, catalog, term)
    return workload.total_hours, workload.preparations
