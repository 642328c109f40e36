"""Tests for unit-to-hour conversion and load bands."""

import pytest

from schedule_engine.teaching_load import (
    SessionKind,
    WorkloadStatus,
    lab_hours,
    lab_units_from_hours,
    lecture_hours,
    recommended_duration,
    required_minutes,
    sessions_per_week,
    total_hours,
    workload_status,
)


class TestConversion:
    """Lecture units map 1:1, lab units at 0.75 units per hour."""

    def test_lecture_hours(self):
        assert lecture_hours(3) == 3

    @pytest.mark.parametrize("units,hours", [(0.75, 1.0), (1.5, 2.0), (2.25, 3.0), (1, 4 / 3)])
    def test_lab_hours(self, units, hours):
        assert lab_hours(units) == pytest.approx(hours)

    def test_lab_units_from_hours(self):
        assert lab_units_from_hours(3) == pytest.approx(2.25)

    @pytest.mark.parametrize(
        "lecture,lab,hours",
        [(3, 0, 3.0), (2, 0.75, 3.0), (0, 2.25, 3.0), (2, 1, 10 / 3)],
    )
    def test_total_hours(self, lecture, lab, hours):
        assert total_hours(lecture, lab) == pytest.approx(hours)

    def test_required_minutes_rounds(self):
        assert required_minutes(3, 0) == 180
        assert required_minutes(2, 1) == 200

    def test_recommended_duration(self):
        assert recommended_duration(SessionKind.LECTURE, 2) == 2
        assert recommended_duration(SessionKind.LABORATORY, 1.5) == pytest.approx(2.0)


class TestSessions:
    def test_sessions_per_week(self):
        assert sessions_per_week(3.0) == 2
        assert sessions_per_week(3.0, session_hours=3.0) == 1
        assert sessions_per_week(0) == 0


class TestWorkloadStatus:
    """Default band is 18-26 hours."""

    def test_default_band(self):
        assert workload_status(17.5) == WorkloadStatus.UNDERLOADED
        assert workload_status(18) == WorkloadStatus.OPTIMAL
        assert workload_status(26) == WorkloadStatus.OPTIMAL
        assert workload_status(26.5) == WorkloadStatus.OVERLOADED

    def test_custom_band(self):
        assert workload_status(10, min_hours=6, max_hours=12) == WorkloadStatus.OPTIMAL
