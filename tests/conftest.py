"""Shared fixtures for engine tests."""

from __future__ import annotations

from typing import Any

import pytest

from schedule_engine.config import EngineSettings
from schedule_engine.data.models import (
    Catalog,
    Classroom,
    ClassroomType,
    Course,
    Department,
    Faculty,
    ScheduleEntry,
    Subject,
)
from schedule_engine.data.repository import InMemoryRepository
from schedule_engine.timemodel import TimeSlot, WeekDay


SEMESTER = "1st Semester"
ACADEMIC_YEAR = "2024-2025"


@pytest.fixture
def settings() -> EngineSettings:
    """Default settings, independent of the environment."""
    return EngineSettings(
        _env_file=None,
        day_start="07:00",
        day_end="19:00",
        max_trials=50_000,
        max_backtracks=1_000,
        commit_retries=3,
    )


@pytest.fixture
def catalog_data() -> dict[str, Any]:
    """A small valid catalog in the JSON shape clients send."""
    return {
        "departments": [
            {"id": "dept-ccs", "name": "College of Computer Studies", "code": "CCS"},
        ],
        "courses": [
            {"id": "course-bsit", "code": "BSIT", "name": "BS Information Technology",
             "departmentId": "dept-ccs"},
        ],
        "faculty": [
            {"id": "fac-ada", "name": "Ada Reyes", "departmentId": "dept-ccs"},
            {"id": "fac-ben", "name": "Ben Cruz", "departmentId": "dept-ccs"},
        ],
        "classrooms": [
            {"id": "room-101", "roomNumber": "101", "building": "Main", "capacity": 40},
            {"id": "lab-201", "roomNumber": "201", "building": "Main", "capacity": 30,
             "type": "computer-lab", "facilities": ["computers"]},
        ],
        "subjects": [
            {"id": "subj-prog", "code": "IT101", "name": "Programming 1",
             "lectureUnits": 2, "labUnits": 0.75, "courseId": "course-bsit",
             "expectedEnrollment": 30},
            {"id": "subj-math", "code": "MATH1", "name": "Discrete Math",
             "lectureUnits": 3, "courseId": "course-bsit", "expectedEnrollment": 35},
        ],
    }


def build_catalog(**overrides: Any) -> Catalog:
    """Catalog with one department, two faculty, one lecture room and one lab."""
    department = Department(id="dept-ccs", name="College of Computer Studies", code="CCS")
    data: dict[str, Any] = {
        "departments": [department],
        "courses": [Course(id="course-bsit", code="BSIT", name="BS IT", department_id=department.id)],
        "faculty": [
            Faculty(id="fac-ada", name="Ada Reyes", department_id=department.id),
            Faculty(id="fac-ben", name="Ben Cruz", department_id=department.id),
        ],
        "classrooms": [
            Classroom(id="room-101", room_number="101", building="Main", capacity=40),
            Classroom(
                id="lab-201", room_number="201", building="Main", capacity=30,
                type=ClassroomType.COMPUTER_LAB, facilities=["computers"],
            ),
        ],
        "subjects": [
            Subject(id="subj-prog", code="IT101", name="Programming 1", lecture_units=2,
                    lab_units=0.75, course_id="course-bsit", expected_enrollment=30),
            Subject(id="subj-math", code="MATH1", name="Discrete Math", lecture_units=3,
                    course_id="course-bsit", expected_enrollment=35),
        ],
        "entries": [],
    }
    data.update(overrides)
    return Catalog(**data)


def make_entry(
    entry_id: str | None = "e1",
    subject_id: str = "subj-math",
    faculty_id: str = "fac-ada",
    classroom_id: str = "room-101",
    slots: tuple = ((WeekDay.MONDAY, "08:00", "11:00"),),
    **fields: Any,
) -> ScheduleEntry:
    """Entry in the default term with slots given as (day, start, end)."""
    return ScheduleEntry(
        id=entry_id,
        subject_id=subject_id,
        faculty_id=faculty_id,
        classroom_id=classroom_id,
        timeslots=[TimeSlot(*s) for s in slots],
        semester=fields.pop("semester", SEMESTER),
        academic_year=fields.pop("academic_year", ACADEMIC_YEAR),
        **fields,
    )


@pytest.fixture
def catalog() -> Catalog:
    return build_catalog()


@pytest.fixture
def repository(catalog) -> InMemoryRepository:
    return InMemoryRepository(catalog)
