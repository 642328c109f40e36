"""Tests for data models."""

import pytest
from pydantic import ValidationError

from conftest import ACADEMIC_YEAR, SEMESTER, build_catalog, make_entry
from schedule_engine.data.models import (
    Catalog,
    Classroom,
    ClassroomStatus,
    ClassroomType,
    EntryPatch,
    EntryStatus,
    Faculty,
    GenerationOptions,
    GenerationRequest,
    ScheduleEntry,
    Subject,
    Term,
    TimeRange,
)
from schedule_engine.timemodel import TimeSlot, WeekDay


class TestFaculty:
    """Tests for Faculty model."""

    def test_defaults(self):
        faculty = Faculty(id="f1", name="Ada", department_id="d1")
        assert faculty.min_load == 18
        assert faculty.max_load == 26
        assert faculty.max_preparations == 4
        assert faculty.is_active
        assert faculty.availability == []

    def test_min_load_above_max_rejected(self):
        with pytest.raises(ValidationError, match="min_load"):
            Faculty(id="f1", name="Ada", department_id="d1", min_load=30, max_load=20)

    def test_overlapping_availability_rejected(self):
        with pytest.raises(ValidationError, match="Overlapping availability"):
            Faculty(
                id="f1", name="Ada", department_id="d1",
                availability=[
                    {"day": "monday", "start": "08:00", "end": "12:00"},
                    {"day": "monday", "start": "11:00", "end": "13:00"},
                ],
            )

    def test_availability_parsed_from_json(self):
        faculty = Faculty(
            id="f1", name="Ada", department_id="d1",
            availability=[{"day": "Tue", "start": "13:00", "end": "17:00"}],
        )
        assert faculty.windows_on(WeekDay.TUESDAY) == [TimeSlot(WeekDay.TUESDAY, 780, 1020)]
        assert faculty.windows_on(WeekDay.MONDAY) == []

    def test_invalid_window_rejected(self):
        with pytest.raises(ValidationError):
            Faculty(
                id="f1", name="Ada", department_id="d1",
                availability=[{"day": "monday", "start": "12:00", "end": "08:00"}],
            )

    def test_extra_fields_forbidden(self):
        with pytest.raises(ValidationError):
            Faculty(id="f1", name="Ada", department_id="d1", nickname="A")


class TestSubject:
    """Tests for Subject hour derivation."""

    def test_hours_from_units(self):
        subject = Subject(id="s1", code="IT1", name="Prog", lecture_units=2, lab_units=0.75)
        assert subject.lecture_hours == 2
        assert subject.lab_hours == pytest.approx(1.0)
        assert subject.total_hours == pytest.approx(3.0)
        assert subject.required_minutes == 180
        assert subject.requires_lab

    def test_lecture_only(self):
        subject = Subject(id="s1", code="M1", name="Math", lecture_units=3)
        assert subject.total_hours == 3
        assert not subject.requires_lab

    def test_needs_some_units(self):
        with pytest.raises(ValidationError, match="lecture_units or lab_units"):
            Subject(id="s1", code="X", name="Nothing")


class TestClassroom:
    def test_lab_types(self):
        lab = Classroom(id="r1", room_number="1", capacity=30, type=ClassroomType.LABORATORY)
        lecture = Classroom(id="r2", room_number="2", capacity=30)
        assert lab.is_lab
        assert not lecture.is_lab

    def test_display_name_and_status(self):
        room = Classroom(
            id="r1", room_number="101", building="Main", capacity=40,
            status=ClassroomStatus.MAINTENANCE,
        )
        assert room.display_name == "Main - 101"
        assert not room.is_available


class TestScheduleEntry:
    """Tests for ScheduleEntry."""

    def test_defaults_and_term(self):
        entry = make_entry()
        assert entry.status == EntryStatus.DRAFT
        assert entry.is_active
        assert entry.term == Term(semester=SEMESTER, academic_year=ACADEMIC_YEAR)
        assert entry.scheduled_hours == 3.0

    def test_requires_slots(self):
        with pytest.raises(ValidationError):
            ScheduleEntry(
                subject_id="s", faculty_id="f", classroom_id="r", timeslots=[],
                semester=SEMESTER, academic_year=ACADEMIC_YEAR,
            )

    def test_self_overlap_rejected(self):
        with pytest.raises(ValidationError, match="overlap each other"):
            make_entry(slots=(
                (WeekDay.MONDAY, "08:00", "10:00"),
                (WeekDay.MONDAY, "09:00", "11:00"),
            ))

    def test_touching_slots_allowed(self):
        entry = make_entry(slots=(
            (WeekDay.MONDAY, "08:00", "09:30"),
            (WeekDay.MONDAY, "09:30", "11:00"),
        ))
        assert entry.scheduled_hours == 3.0

    def test_with_changes_validates(self):
        entry = make_entry()
        published = entry.with_changes(status=EntryStatus.PUBLISHED)
        assert published.status == EntryStatus.PUBLISHED
        assert entry.status == EntryStatus.DRAFT
        with pytest.raises(ValidationError):
            entry.with_changes(timeslots=[])

    def test_archived_is_inactive(self):
        assert not make_entry(status=EntryStatus.ARCHIVED).is_active

    def test_json_round_trip_uses_hh_mm(self):
        entry = make_entry()
        dumped = entry.model_dump(mode="json")
        assert dumped["timeslots"] == [{"day": "monday", "start": "08:00", "end": "11:00"}]
        assert ScheduleEntry.model_validate(dumped).model_dump() == entry.model_dump()


class TestRequests:
    def test_time_range_parses_strings(self):
        time_range = TimeRange(start="08:00", end="12:00")
        assert time_range.start == 480
        assert time_range.covers(TimeSlot(WeekDay.MONDAY, "09:00", "12:00"))
        assert not time_range.covers(TimeSlot(WeekDay.MONDAY, "11:00", "12:30"))

    def test_time_range_order(self):
        with pytest.raises(ValidationError):
            TimeRange(start="12:00", end="08:00")

    def test_options_parse_days(self):
        options = GenerationOptions(allowed_days=["mon", "Wednesday"])
        assert options.allowed_days == [WeekDay.MONDAY, WeekDay.WEDNESDAY]

    def test_request_term(self):
        request = GenerationRequest(semester=SEMESTER, academic_year=ACADEMIC_YEAR)
        assert request.term == Term(semester=SEMESTER, academic_year=ACADEMIC_YEAR)
        assert request.subject_ids == []

    def test_patch_tracks_set_fields(self):
        patch = EntryPatch(classroom_id="lab-201")
        assert patch.changes() == {"classroom_id": "lab-201"}


class TestCatalog:
    """Tests for Catalog lookups and validation."""

    def test_lookups(self, catalog):
        assert catalog.get_faculty("fac-ada").name == "Ada Reyes"
        assert catalog.get_classroom("lab-201").is_lab
        assert catalog.get_subject("missing") is None
        subject = catalog.get_subject("subj-math")
        assert catalog.subject_department_id(subject) == "dept-ccs"

    def test_duplicate_ids_rejected(self, catalog):
        with pytest.raises(ValidationError, match="Duplicate faculty ID"):
            Catalog(
                departments=catalog.departments,
                faculty=[catalog.faculty[0], catalog.faculty[0]],
            )

    def test_reference_errors(self, catalog):
        broken = build_catalog(entries=[make_entry(faculty_id="fac-ghost")])
        errors = broken.reference_errors()
        assert errors == ["Entry e1: unknown faculty_id 'fac-ghost'"]
        assert catalog.reference_errors() == []

    def test_reference_errors_for_unknown_subject(self, catalog):
        assert catalog.reference_errors(["subj-ghost"]) == ["Unknown subject_id 'subj-ghost'"]

    def test_reference_errors_scoped_to_term(self):
        catalog = build_catalog(entries=[make_entry(
            "old", faculty_id="fac-retired", semester="2nd Semester",
            academic_year="2019-2020", status=EntryStatus.ARCHIVED,
        )])
        term = Term(semester=SEMESTER, academic_year=ACADEMIC_YEAR)
        assert catalog.reference_errors(["subj-math"], term=term) == []
        assert catalog.reference_errors(["subj-math"]) == []
        assert catalog.reference_errors() == ["Entry old: unknown faculty_id 'fac-retired'"]

    def test_reference_errors_checks_term_entries(self):
        catalog = build_catalog(entries=[make_entry("e1", classroom_id="room-ghost")])
        term = Term(semester=SEMESTER, academic_year=ACADEMIC_YEAR)
        assert catalog.reference_errors(["subj-math"], term=term) == [
            "Entry e1: unknown classroom_id 'room-ghost'"
        ]

    def test_entries_for_term(self):
        catalog = build_catalog(entries=[
            make_entry("e1"),
            make_entry("e2", status=EntryStatus.ARCHIVED),
            make_entry("e3", semester="2nd Semester"),
        ])
        term = Term(semester=SEMESTER, academic_year=ACADEMIC_YEAR)
        assert [e.id for e in catalog.entries_for_term(term)] == ["e1"]
        assert [e.id for e in catalog.entries_for_term(term, include_archived=True)] == ["e1", "e2"]

    def test_summary(self, catalog):
        summary = catalog.summary()
        assert summary["faculty"] == 2
        assert summary["subjects"] == 2
        assert summary["total_subject_hours"] == pytest.approx(6.0)
