"""Tests for the conflict detector."""

import pytest

from conftest import build_catalog, make_entry
from schedule_engine.conflicts import ConflictDetector, TermIndex, term_entries
from schedule_engine.constraints import ConstraintKind
from schedule_engine.data.models import EntryStatus, Faculty, GenerationOptions, Term
from schedule_engine.errors import ReferenceDataError
from schedule_engine.timemodel import WeekDay


@pytest.fixture
def detector(catalog, settings):
    return ConflictDetector(catalog, settings)


def kinds(conflicts):
    return [c.kind for c in conflicts]


class TestDetect:
    """Tests for single-candidate detection."""

    def test_valid_entry(self, detector):
        assert detector.detect(make_entry("new"), []) == []

    def test_faculty_double_booking(self, detector):
        existing = make_entry("e1", classroom_id="room-101")
        candidate = make_entry(
            "new", subject_id="subj-prog", classroom_id="lab-201",
            slots=((WeekDay.MONDAY, "10:00", "13:00"),),
        )
        conflicts = detector.detect(candidate, [existing])
        assert kinds(conflicts) == [ConstraintKind.FACULTY_DOUBLE_BOOKING]
        assert conflicts[0].conflicting_entry_id == "e1"
        assert str(conflicts[0].overlap) == "Monday 10:00-11:00"

    def test_classroom_double_booking(self, detector):
        existing = make_entry("e1", faculty_id="fac-ben")
        conflicts = detector.detect(make_entry("new"), [existing])
        assert kinds(conflicts) == [ConstraintKind.CLASSROOM_DOUBLE_BOOKING]

    def test_both_resources_reported(self, detector):
        conflicts = detector.detect(make_entry("new"), [make_entry("e1")])
        assert kinds(conflicts) == [
            ConstraintKind.FACULTY_DOUBLE_BOOKING,
            ConstraintKind.CLASSROOM_DOUBLE_BOOKING,
        ]

    def test_back_to_back_is_fine(self, detector):
        existing = make_entry("e1", slots=((WeekDay.MONDAY, "08:00", "11:00"),))
        candidate = make_entry("new", slots=((WeekDay.MONDAY, "11:00", "14:00"),))
        assert detector.detect(candidate, [existing]) == []

    def test_other_terms_and_archived_ignored(self, detector):
        existing = [
            make_entry("e1", semester="2nd Semester"),
            make_entry("e2", academic_year="2025-2026"),
            make_entry("e3", status=EntryStatus.ARCHIVED),
        ]
        assert detector.detect(make_entry("new"), existing) == []

    def test_own_previous_version_ignored(self, detector):
        stored = make_entry("e1")
        moved = make_entry("e1", slots=((WeekDay.MONDAY, "09:00", "12:00"),))
        assert detector.detect(moved, [stored]) == []

    def test_nothing_short_circuits(self, settings):
        catalog = build_catalog(faculty=[
            Faculty(
                id="fac-ada", name="Ada Reyes", department_id="dept-ccs", max_load=2,
                availability=[{"day": "tuesday", "start": "08:00", "end": "12:00"}],
            ),
        ])
        detector = ConflictDetector(catalog, settings)
        candidate = make_entry("new", classroom_id="lab-201")
        assert kinds(detector.detect(candidate, [])) == [
            ConstraintKind.CLASSROOM_TYPE,
            ConstraintKind.CLASSROOM_CAPACITY,
            ConstraintKind.FACULTY_AVAILABILITY,
            ConstraintKind.LOAD_CAP,
        ]

    def test_options_add_time_window(self, catalog, settings):
        options = GenerationOptions(allowed_days=["friday"])
        detector = ConflictDetector(catalog, settings, options)
        assert kinds(detector.detect(make_entry("new"), [])) == [ConstraintKind.TIME_WINDOW]

    def test_unknown_references(self, detector):
        with pytest.raises(ReferenceDataError, match="faculty 'fac-ghost'"):
            detector.detect(make_entry("new", faculty_id="fac-ghost"), [])

    def test_detection_is_symmetric(self, detector):
        a = make_entry("a", slots=((WeekDay.MONDAY, "08:00", "11:00"),))
        b = make_entry("b", slots=((WeekDay.MONDAY, "10:00", "13:00"),))
        ab = detector.detect(a, [b])
        ba = detector.detect(b, [a])
        assert kinds(ab) == kinds(ba)
        assert [c.overlap for c in ab] == [c.overlap for c in ba]

    def test_does_not_mutate_inputs(self, detector):
        existing = [make_entry("e1")]
        snapshot = [e.model_dump() for e in existing]
        detector.detect(make_entry("new"), existing)
        assert [e.model_dump() for e in existing] == snapshot


class TestDetectBatch:
    """Batch members are checked against each other."""

    def test_batch_members_conflict(self, detector):
        a = make_entry("a")
        b = make_entry("b", subject_id="subj-prog", classroom_id="lab-201")
        results = detector.detect_batch([a, b], [])
        assert kinds(results[0]) == [ConstraintKind.FACULTY_DOUBLE_BOOKING]
        assert kinds(results[1]) == [ConstraintKind.FACULTY_DOUBLE_BOOKING]

    def test_batch_replaces_stored_versions(self, detector):
        stored = make_entry("a")
        moved = make_entry("a", slots=((WeekDay.TUESDAY, "08:00", "11:00"),))
        other = make_entry("b", subject_id="subj-prog", classroom_id="lab-201")
        assert detector.detect_batch([moved, other], [stored]) == [[], []]

    def test_entries_without_ids(self, detector):
        a = make_entry(None)
        b = make_entry(None, faculty_id="fac-ben", slots=((WeekDay.FRIDAY, "08:00", "11:00"),))
        assert detector.detect_batch([a, b], []) == [[], []]


class TestTermIndex:
    def test_add_remove_and_load(self, catalog):
        math = make_entry("m")
        prog = make_entry("p", subject_id="subj-prog", classroom_id="lab-201",
                          slots=((WeekDay.TUESDAY, "08:00", "11:00"),))
        index = TermIndex(catalog, [math, prog])
        assert len(index) == 2
        assert index.faculty_load("fac-ada") == pytest.approx(6.0)
        assert index.faculty_subject_ids("fac-ada") == {"subj-math", "subj-prog"}
        assert len(index.faculty_slots("fac-ada")) == 2

        index.remove(math)
        assert len(index) == 1
        assert index.classroom_entries("room-101") == []
        assert index.faculty_load("fac-ada") == pytest.approx(3.0)

    def test_term_entries(self):
        term = Term(semester="1st Semester", academic_year="2024-2025")
        entries = [make_entry("a"), make_entry("b", semester="2nd Semester")]
        assert [e.id for e in term_entries(entries, term)] == ["a"]
        assert term_entries(entries, term, exclude=[entries[0]]) == []
