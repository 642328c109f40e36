"""
Slot-set enumeration for the search.

A slot set covers a subject's weekly minutes with ``k`` sessions, one per
day, all starting at the same time of day. Sessions are equal when the
minutes divide evenly; otherwise the last one is shorter. Starts lie on a fixed
grid (default 30 minutes from midnight) and every session must fit inside
one availability window.

Example, 180 required minutes, windows Mon/Wed 08:00-12:00:
- k=1: Mon 08:00-11:00, Mon 08:30-11:30, ... Wed 09:00-12:00
- k=2: Mon+Wed 08:00-09:30, Mon+Wed 08:30-10:00, ...
"""

from __future__ import annotations

from itertools import combinations
from typing import Mapping, Optional, Sequence, TypeVar

from .timemodel import TimeSlot, WeekDay

T = TypeVar("T")

SlotSet = tuple[TimeSlot, ...]


def grid_starts(window: TimeSlot, duration: int, granularity: int) -> list[int]:
    """Grid-aligned start minutes at which ``duration`` fits inside ``window``."""
    first = -(-window.start // granularity) * granularity
    return list(range(first, window.end - duration + 1, granularity))


def day_starts(
    windows: Sequence[TimeSlot],
    duration: int,
    granularity: int,
) -> set[int]:
    starts: set[int] = set()
    for window in windows:
        starts.update(grid_starts(window, duration, granularity))
    return starts


def spread(items: Sequence[T], limit: int) -> list[T]:
    """At most ``limit`` items, evenly spaced across ``items`` in order."""
    if len(items) <= limit:
        return list(items)
    step = len(items) / limit
    return [items[int(i * step)] for i in range(limit)]


def session_lengths(
    required_minutes: int,
    k: int,
    max_session_minutes: int,
    granularity: int = 30,
) -> Optional[tuple[int, ...]]:
    """
    Session durations for ``k`` sessions, or None when no split fits.

    Even splits are used as they are. Otherwise the first ``k - 1``
    sessions are rounded up to the grid and the last one takes the
    remainder, which must be at least one grid step.

    Example: 380 minutes in 3 sessions -> (150, 150, 80)
    """
    if required_minutes % k == 0:
        lengths = (required_minutes // k,) * k
    else:
        step = max(granularity, 1)
        longest = -(-required_minutes // (k * step)) * step
        last = required_minutes - longest * (k - 1)
        if last < step:
            return None
        lengths = (longest,) * (k - 1) + (last,)
    if max(lengths) > max_session_minutes:
        return None
    return lengths


def session_counts(
    required_minutes: int,
    max_session_minutes: int,
    max_sessions: int,
    days_available: int,
    granularity: int = 30,
) -> list[int]:
    """Session counts ``k`` with a usable split, fewest first."""
    return [
        k for k in range(1, min(max_sessions, days_available) + 1)
        if session_lengths(required_minutes, k, max_session_minutes, granularity) is not None
    ]


def enumerate_slot_sets(
    windows_by_day: Mapping[WeekDay, Sequence[TimeSlot]],
    required_minutes: int,
    granularity: int = 30,
    max_session_minutes: int = 180,
    max_sessions: int = 3,
    limit_per_count: int = 60,
) -> list[SlotSet]:
    """
    Candidate slot sets covering ``required_minutes``, fewest sessions first.

    Args:
        windows_by_day: Schedulable windows grouped by day
        required_minutes: Weekly minutes the subject needs
        granularity: Start-time grid in minutes
        max_session_minutes: Longest allowed single session
        max_sessions: Most sessions (days) per week
        limit_per_count: Cap on slot sets per session count; when more
            exist an evenly spaced selection is kept

    Returns:
        Slot sets ordered by session count, start time, then day order
    """
    if required_minutes <= 0:
        return []

    days = sorted((d for d, w in windows_by_day.items() if w), key=lambda d: d.week_index)
    result: list[SlotSet] = []

    for k in session_counts(required_minutes, max_session_minutes, max_sessions, len(days), granularity):
        lengths = session_lengths(required_minutes, k, max_session_minutes, granularity)
        starts = {
            (day, length): day_starts(windows_by_day[day], length, granularity)
            for day in days for length in set(lengths)
        }
        shortest = min(lengths)
        all_starts = sorted(set().union(*starts.values()))

        options: list[SlotSet] = []
        for start in all_starts:
            usable = [day for day in days if start in starts[(day, shortest)]]
            for combo in combinations(usable, k):
                if all(start in starts[(day, length)] for day, length in zip(combo, lengths)):
                    options.append(tuple(
                        TimeSlot(day, start, start + length) for day, length in zip(combo, lengths)
                    ))

        result.extend(spread(options, limit_per_count))

    return result
