"""Report output and schedule statistics."""

from .metrics import (
    DEFAULT_WEEK_HOURS,
    DepartmentBalance,
    RoomUtilization,
    ScheduleMetrics,
    calculate_metrics,
)
from .schema import (
    DaySchedule,
    EntitySchedule,
    ReportStatus,
    ScheduleReport,
    ScheduleViews,
    SessionOutput,
    UnresolvedOutput,
    create_schedule_report,
    create_views,
    entry_sessions,
    result_to_json,
)

__all__ = [
    "DEFAULT_WEEK_HOURS",
    "DaySchedule",
    "DepartmentBalance",
    "EntitySchedule",
    "ReportStatus",
    "RoomUtilization",
    "ScheduleMetrics",
    "ScheduleReport",
    "ScheduleViews",
    "SessionOutput",
    "UnresolvedOutput",
    "calculate_metrics",
    "create_schedule_report",
    "create_views",
    "entry_sessions",
    "result_to_json",
]
