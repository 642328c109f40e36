"""
Soft preferences used to rank candidate placements.

Scores are higher-is-better. They only order candidates; a candidate that
violates a hard constraint is never placed regardless of its score.

Components:
- Load balance: variance of department faculty loads after placement
- Contiguity: fewer sessions, sessions adjacent to the faculty's other
  slots, short idle gaps on shared days
- Capacity fit: fewer surplus seats
- Preferred days and time-of-day from the request
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Mapping, Optional, Sequence

from ..timemodel import MINUTES_PER_HOUR, TimeSlot
from .rooms import required_capacity

if TYPE_CHECKING:
    from ..data.models import Classroom, Faculty, GenerationOptions, Subject


@dataclass
class ScoreWeights:
    """Configurable weights for soft preferences."""
    # Workload balance
    load_variance: float = 1.0  # Per unit of department load variance

    # Contiguity
    extra_session: float = 2.0  # Per session beyond the first
    adjacency: float = 1.5  # Per session touching another slot of the faculty
    idle_gap: float = 0.5  # Per hour between a session and the nearest same-day slot

    # Room fit
    surplus_seat: float = 0.05  # Per seat above the requirement

    # Request preferences
    preferred_day: float = 3.0  # Per session on a preferred day
    preferred_time: float = 3.0  # Per session inside the preferred time range


def load_variance(loads: Sequence[float]) -> float:
    """Population variance of faculty loads (0 for fewer than two)."""
    if len(loads) < 2:
        return 0.0
    mean = sum(loads) / len(loads)
    return sum((load - mean) ** 2 for load in loads) / len(loads)


def _contiguity(
    slots: Sequence[TimeSlot],
    faculty_slots: Sequence[TimeSlot],
    weights: ScoreWeights,
) -> float:
    score = -weights.extra_session * (len(slots) - 1)
    for slot in slots:
        same_day = [s for s in faculty_slots if s.day == slot.day]
        if not same_day:
            continue
        if any(s.end == slot.start or slot.end == s.start for s in same_day):
            score += weights.adjacency
            continue
        gap = min(
            max(s.start - slot.end, slot.start - s.end, 0)
            for s in same_day
        )
        score -= weights.idle_gap * gap / MINUTES_PER_HOUR
    return score


def score_candidate(
    subject: Subject,
    faculty: Faculty,
    classroom: Classroom,
    slots: Sequence[TimeSlot],
    department_loads: Mapping[str, float],
    faculty_slots: Sequence[TimeSlot] = (),
    options: Optional[GenerationOptions] = None,
    weights: Optional[ScoreWeights] = None,
) -> float:
    """
    Score one (faculty, classroom, slot set) placement for a subject.

    Args:
        subject: The subject being placed
        faculty: Candidate faculty member
        classroom: Candidate classroom
        slots: Candidate weekly slots
        department_loads: Current load of every eligible faculty member
            in the subject's department, keyed by faculty id
        faculty_slots: Slots the faculty already teaches this term
        options: Request options carrying preferred days/times
        weights: Preference weights (defaults if None)

    Returns:
        Score rounded to 6 decimals so equal scores compare equal
    """
    w = weights or ScoreWeights()

    projected = dict(department_loads)
    projected[faculty.id] = projected.get(faculty.id, 0.0) + subject.total_hours
    score = -w.load_variance * load_variance(list(projected.values()))

    score += _contiguity(slots, faculty_slots, w)

    needed = required_capacity(subject, options)
    score -= w.surplus_seat * max(classroom.capacity - needed, 0)

    if options is not None:
        if options.preferred_days:
            preferred = set(options.preferred_days)
            score += w.preferred_day * sum(1 for s in slots if s.day in preferred)
        if options.preferred_time_range is not None:
            score += w.preferred_time * sum(
                1 for s in slots if options.preferred_time_range.covers(s)
            )

    return round(score, 6)
