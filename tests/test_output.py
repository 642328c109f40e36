"""Tests for report output and metrics."""

import json

import pytest

from conftest import ACADEMIC_YEAR, SEMESTER, make_entry
from schedule_engine.data.models import Term
from schedule_engine.output.metrics import DEFAULT_WEEK_HOURS, calculate_metrics
from schedule_engine.output.schema import (
    ReportStatus,
    ScheduleReport,
    create_schedule_report,
    entry_sessions,
    result_to_json,
)
from schedule_engine.search import AssignmentSearch
from schedule_engine.data.models import GenerationRequest
from schedule_engine.timemodel import WeekDay

TERM = Term(semester=SEMESTER, academic_year=ACADEMIC_YEAR)


@pytest.fixture
def entries():
    return [
        make_entry("e1", slots=((WeekDay.MONDAY, "08:00", "09:30"), (WeekDay.WEDNESDAY, "08:00", "09:30"))),
        make_entry("e2", subject_id="subj-prog", classroom_id="lab-201", faculty_id="fac-ben",
                   slots=((WeekDay.TUESDAY, "13:00", "16:00"),)),
    ]


class TestSessions:
    def test_one_session_per_slot(self, catalog, entries):
        sessions = entry_sessions(entries[0], catalog)
        assert len(sessions) == 2
        assert sessions[0].start_time == "08:00"
        assert sessions[0].end_time == "09:30"
        assert sessions[0].subject_code == "MATH1"
        assert sessions[0].faculty_name == "Ada Reyes"
        assert sessions[0].room_name == "Main - 101"

    def test_without_catalog(self, entries):
        session = entry_sessions(entries[1])[0]
        assert session.subject_code is None
        assert session.day == WeekDay.TUESDAY


class TestReport:
    """Tests for the complete report."""

    def test_committed_report(self, catalog, entries):
        report = create_schedule_report(entries, catalog, TERM)
        assert report.status == ReportStatus.COMMITTED
        assert len(report.sessions) == 3
        assert [s.day for s in report.sessions] == [WeekDay.MONDAY, WeekDay.TUESDAY, WeekDay.WEDNESDAY]

    def test_views(self, catalog, entries):
        views = create_schedule_report(entries, catalog, TERM).views
        assert set(views.by_faculty) == {"fac-ada", "fac-ben"}
        assert views.by_faculty["fac-ada"].hours == 3.0
        assert views.by_faculty["fac-ada"].name == "Ada Reyes"
        assert set(views.by_faculty["fac-ada"].by_day) == {WeekDay.MONDAY, WeekDay.WEDNESDAY}
        assert views.by_classroom["lab-201"].hours == 3.0
        assert list(views.by_day) == [WeekDay.MONDAY, WeekDay.TUESDAY, WeekDay.WEDNESDAY]
        assert views.by_day[WeekDay.TUESDAY].day_name == "Tuesday"

    def test_json_uses_camel_case(self, catalog, entries):
        data = json.loads(create_schedule_report(entries, catalog, TERM).to_json())
        assert data["academicYear"] == ACADEMIC_YEAR
        assert data["sessions"][0]["startTime"] == "08:00"
        assert "byFaculty" in data["views"]
        assert data["views"]["byDay"]["monday"]["dayName"] == "Monday"

    def test_report_round_trip(self, catalog, entries):
        report = create_schedule_report(entries, catalog, TERM)
        loaded = ScheduleReport.model_validate(json.loads(report.to_json()))
        assert loaded.to_dict() == report.to_dict()

    def test_generation_report(self, catalog, settings):
        request = GenerationRequest(semester=SEMESTER, academic_year=ACADEMIC_YEAR)
        result = AssignmentSearch(catalog, request, settings).run()
        data = json.loads(result_to_json(result, catalog))
        assert data["status"] == "satisfied"
        assert data["stats"]["subjects_placed"] == 2
        assert data["unresolved"] == []


class TestMetrics:
    """Tests for schedule statistics."""

    def test_counts_and_hours(self, catalog, entries):
        metrics = calculate_metrics(entries, catalog)
        assert metrics.total_entries == 2
        assert metrics.total_hours == 6.0
        assert metrics.by_department == {"dept-ccs": 2}
        assert metrics.by_faculty == {"fac-ada": 1, "fac-ben": 1}

    def test_room_utilization(self, catalog, entries):
        metrics = calculate_metrics(entries, catalog)
        rates = {r.classroom_id: r.utilization for r in metrics.room_utilization}
        assert rates == {"room-101": 7.5, "lab-201": 7.5}
        assert metrics.average_utilization == 7.5
        assert DEFAULT_WEEK_HOURS == 40.0

    def test_balance(self, catalog, entries):
        [balance] = calculate_metrics(entries, catalog).balance
        assert balance.faculty_count == 2
        assert balance.mean_load == pytest.approx(3.0)
        assert balance.std_dev == 0.0
        assert balance.score == 100.0

    def test_to_dict(self, catalog, entries):
        data = calculate_metrics(entries, catalog).to_dict()
        assert data["totalEntries"] == 2
        assert data["utilizationRates"][0]["classroomId"] == "room-101"
        assert data["balance"][0]["departmentId"] == "dept-ccs"
