"""
Time model for weekly schedules.

Time conventions:
- Time of day is represented as minutes from midnight (0-1440)
- Days are named (monday-sunday) and ordered by ``WeekDay.week_index``
- Slots are half-open intervals: ``[start, end)``

Example times:
- 7:00 AM = 420
- 8:30 AM = 510
- 1:00 PM = 780
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Optional, Union

from .errors import InvalidRange


# =============================================================================
# Constants and Enums
# =============================================================================

MINUTES_PER_HOUR = 60
MINUTES_PER_DAY = 1440

_TIME_RE = re.compile(r"^([0-1]?[0-9]|2[0-3]):([0-5][0-9])$")


class WeekDay(str, Enum):
    """Day of the week."""
    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"
    SUNDAY = "sunday"

    @property
    def week_index(self) -> int:
        """0 for Monday through 6 for Sunday."""
        return _DAY_ORDER.index(self)

    @property
    def label(self) -> str:
        return self.value.capitalize()

    @classmethod
    def parse(cls, value: Union[str, int, WeekDay]) -> WeekDay:
        """Accept 'Monday', 'mon', 'monday' or a 0-6 index."""
        if isinstance(value, WeekDay):
            return value
        if isinstance(value, int):
            if 0 <= value < len(_DAY_ORDER):
                return _DAY_ORDER[value]
            raise InvalidRange(f"Day index {value} is outside 0-6")
        key = str(value).strip().lower()
        for day in _DAY_ORDER:
            if day.value == key or day.value[:3] == key:
                return day
        raise InvalidRange(f"Unknown day '{value}'")


_DAY_ORDER: list[WeekDay] = list(WeekDay)

WEEKDAYS: tuple[WeekDay, ...] = tuple(_DAY_ORDER[:5])


# =============================================================================
# Helper Functions
# =============================================================================

def time_to_minutes(time_str: str) -> int:
    """Convert HH:MM format to minutes from midnight."""
    match = _TIME_RE.match(time_str.strip())
    if not match:
        raise InvalidRange(f"Invalid time '{time_str}', expected HH:MM")
    return int(match.group(1)) * MINUTES_PER_HOUR + int(match.group(2))


def minutes_to_time(minutes: int) -> str:
    """Convert minutes from midnight to HH:MM format."""
    h, m = divmod(minutes, MINUTES_PER_HOUR)
    return f"{h:02d}:{m:02d}"


def hours_to_time_string(hours: float) -> str:
    """Format a duration in hours as HH:MM (2.5 -> '02:30')."""
    return minutes_to_time(round(hours * MINUTES_PER_HOUR))


def calculate_end_time(start_time: str, duration_hours: float) -> str:
    """End time for a session starting at ``start_time`` lasting ``duration_hours``."""
    end = time_to_minutes(start_time) + round(duration_hours * MINUTES_PER_HOUR)
    return minutes_to_time(end)


def _coerce_minutes(value: Union[int, str]) -> int:
    if isinstance(value, str):
        return time_to_minutes(value)
    return value


# =============================================================================
# TimeSlot
# =============================================================================

@dataclass(frozen=True)
class TimeSlot:
    """
    A day plus a half-open time-of-day interval.

    ``start`` and ``end`` are minutes from midnight; HH:MM strings and day
    names are accepted and normalized on construction.
    """
    day: WeekDay
    start: int
    end: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "day", WeekDay.parse(self.day))
        object.__setattr__(self, "start", _coerce_minutes(self.start))
        object.__setattr__(self, "end", _coerce_minutes(self.end))
        if self.start < 0 or self.end > MINUTES_PER_DAY:
            raise InvalidRange(
                f"Time slot {self.start}-{self.end} is outside the day (0-{MINUTES_PER_DAY})"
            )
        if self.start >= self.end:
            raise InvalidRange(
                f"start ({minutes_to_time(self.start)}) must be before "
                f"end ({minutes_to_time(self.end)})",
                details={"day": self.day.value, "start": self.start, "end": self.end},
            )

    @property
    def duration_minutes(self) -> int:
        return self.end - self.start

    @property
    def hours(self) -> float:
        return self.duration_minutes / MINUTES_PER_HOUR

    @property
    def sort_key(self) -> tuple[int, int, int]:
        return (self.day.week_index, self.start, self.end)

    def overlaps(self, other: TimeSlot) -> bool:
        return overlaps(self, other)

    def contains(self, other: TimeSlot) -> bool:
        return contains(self, other)

    def to_dict(self) -> dict[str, str]:
        return {
            "day": self.day.value,
            "start": minutes_to_time(self.start),
            "end": minutes_to_time(self.end),
        }

    def __str__(self) -> str:
        return f"{self.day.label} {minutes_to_time(self.start)}-{minutes_to_time(self.end)}"


# =============================================================================
# Slot Arithmetic
# =============================================================================

def overlaps(a: TimeSlot, b: TimeSlot) -> bool:
    """Same day and intersecting; touching endpoints do not overlap."""
    if a.day != b.day:
        return False
    return a.start < b.end and b.start < a.end


def overlap_window(a: TimeSlot, b: TimeSlot) -> Optional[TimeSlot]:
    """The intersection of two slots, or None."""
    if not overlaps(a, b):
        return None
    return TimeSlot(a.day, max(a.start, b.start), min(a.end, b.end))


def contains(window: TimeSlot, slot: TimeSlot) -> bool:
    """True when ``slot`` lies entirely inside ``window`` on the same day."""
    return window.day == slot.day and window.start <= slot.start and slot.end <= window.end


def total_minutes(slots: Iterable[TimeSlot]) -> int:
    return sum(s.duration_minutes for s in slots)


def total_hours(slots: Iterable[TimeSlot]) -> float:
    """Sum of slot durations in hours."""
    return total_minutes(slots) / MINUTES_PER_HOUR


def sort_slots(slots: Iterable[TimeSlot]) -> list[TimeSlot]:
    return sorted(slots, key=lambda s: s.sort_key)


def find_self_overlap(slots: Iterable[TimeSlot]) -> Optional[tuple[TimeSlot, TimeSlot]]:
    """Return the first overlapping pair within ``slots``, if any."""
    ordered = sort_slots(slots)
    for prev, cur in zip(ordered, ordered[1:]):
        if overlaps(prev, cur):
            return prev, cur
    return None


def coerce_slot(value: Any) -> TimeSlot:
    """
    Build a TimeSlot from a mapping, a (day, start, end) sequence or a slot.

    Used as the pydantic validator for slot fields. Mappings may use
    ``start``/``end`` or ``startTime``/``endTime`` keys with HH:MM strings
    or integer minutes.
    """
    if isinstance(value, TimeSlot):
        return value
    if isinstance(value, dict):
        start = value.get("start", value.get("start_time", value.get("startTime")))
        end = value.get("end", value.get("end_time", value.get("endTime")))
        if "day" not in value or start is None or end is None:
            raise InvalidRange(f"Time slot requires day, start and end: {value!r}")
        return TimeSlot(value["day"], start, end)
    if isinstance(value, (list, tuple)) and len(value) == 3:
        return TimeSlot(*value)
    raise InvalidRange(f"Cannot interpret {value!r} as a time slot")


def slot_to_dict(slot: TimeSlot) -> dict[str, str]:
    return slot.to_dict()
