"""
Availability constraints for schedule entries.

This module provides:
- Faculty availability (every slot inside one declared window)
- Request time windows (allowed days and time-of-day range)
- The effective windows a faculty member can be scheduled in, which the
  slot tiler enumerates
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from ..timemodel import TimeSlot, WeekDay, sort_slots
from .core import Conflict, ConstraintContext, ConstraintKind

if TYPE_CHECKING:
    from ..config import EngineSettings
    from ..data.models import Faculty, GenerationOptions, ScheduleEntry


# =============================================================================
# Effective Windows
# =============================================================================

def standard_windows(settings: EngineSettings) -> list[TimeSlot]:
    """The institution's standard teaching day on every teaching day."""
    return [
        TimeSlot(day, settings.day_start_minutes, settings.day_end_minutes)
        for day in settings.teaching_days
    ]


def availability_windows(faculty: Faculty, settings: EngineSettings) -> list[TimeSlot]:
    """Declared windows, or the standard teaching day when none are declared."""
    if faculty.availability:
        return sort_slots(faculty.availability)
    return standard_windows(settings)


def restrict_windows(
    windows: list[TimeSlot],
    options: Optional[GenerationOptions],
) -> list[TimeSlot]:
    """Clip windows to the request's allowed days and time range."""
    if options is None:
        return windows
    allowed_days = set(options.allowed_days)
    time_range = options.allowed_time_range

    clipped: list[TimeSlot] = []
    for window in windows:
        if allowed_days and window.day not in allowed_days:
            continue
        start, end = window.start, window.end
        if time_range is not None:
            start = max(start, time_range.start)
            end = min(end, time_range.end)
        if start < end:
            clipped.append(TimeSlot(window.day, start, end))
    return clipped


def schedulable_windows(
    faculty: Faculty,
    settings: EngineSettings,
    options: Optional[GenerationOptions] = None,
) -> dict[WeekDay, list[TimeSlot]]:
    """Windows a faculty member may be scheduled in, grouped by day."""
    by_day: dict[WeekDay, list[TimeSlot]] = {}
    for window in restrict_windows(availability_windows(faculty, settings), options):
        by_day.setdefault(window.day, []).append(window)
    return by_day


# =============================================================================
# Checks
# =============================================================================

def check_faculty_availability(candidate: ScheduleEntry, ctx: ConstraintContext) -> list[Conflict]:
    """Each slot must lie entirely inside one availability window of its day."""
    windows = availability_windows(ctx.faculty, ctx.settings)
    conflicts = []
    for slot in candidate.timeslots:
        if any(window.contains(slot) for window in windows):
            continue
        conflicts.append(Conflict(
            kind=ConstraintKind.FACULTY_AVAILABILITY,
            message=f"Faculty {ctx.faculty.name} is not available {slot}",
            entry_id=candidate.id,
            details={
                "slot": slot.to_dict(),
                "windows": [w.to_dict() for w in windows if w.day == slot.day],
            },
        ))
    return conflicts


def check_time_window(candidate: ScheduleEntry, ctx: ConstraintContext) -> list[Conflict]:
    options = ctx.options
    if options is None:
        return []

    conflicts = []
    allowed_days = set(options.allowed_days)
    for slot in candidate.timeslots:
        if allowed_days and slot.day not in allowed_days:
            conflicts.append(Conflict(
                kind=ConstraintKind.TIME_WINDOW,
                message=f"{slot.day.label} is not an allowed day",
                entry_id=candidate.id,
                details={"slot": slot.to_dict(), "allowed_days": [d.value for d in options.allowed_days]},
            ))
        elif options.allowed_time_range and not options.allowed_time_range.covers(slot):
            conflicts.append(Conflict(
                kind=ConstraintKind.TIME_WINDOW,
                message=f"{slot} falls outside the allowed time range {options.allowed_time_range}",
                entry_id=candidate.id,
                details={"slot": slot.to_dict(), "allowed_time_range": str(options.allowed_time_range)},
            ))
    return conflicts
