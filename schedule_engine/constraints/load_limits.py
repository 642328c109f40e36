"""
Faculty load constraints.

A faculty member's load is the sum of subject hours over their active
entries in the term; it is always derived from entries, never read from
the stored ``current_load``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable, Optional

from .core import Conflict, ConstraintContext, ConstraintKind

if TYPE_CHECKING:
    from ..data.models import Faculty, GenerationOptions, ScheduleEntry, Subject

# Float tolerance on hour sums (lab hours are thirds)
LOAD_EPSILON = 1e-9


def effective_max_load(faculty: Faculty, options: Optional[GenerationOptions] = None) -> float:
    if options is not None and options.max_hours_per_week is not None:
        return options.max_hours_per_week
    return faculty.max_load


def effective_max_preparations(faculty: Faculty, options: Optional[GenerationOptions] = None) -> int:
    if options is not None and options.max_preparations is not None:
        return options.max_preparations
    return faculty.max_preparations


def load_exceeded(current: float, added: float, maximum: float) -> bool:
    return current + added > maximum + LOAD_EPSILON


def faculty_problems(
    faculty: Faculty,
    subject: Subject,
    current_load: float,
    subject_ids: Iterable[str],
    options: Optional[GenerationOptions] = None,
) -> list[tuple[ConstraintKind, str]]:
    """Reasons a faculty member cannot take the subject, empty when eligible."""
    problems: list[tuple[ConstraintKind, str]] = []

    if not faculty.is_active:
        problems.append((ConstraintKind.FACULTY_STATUS, f"Faculty {faculty.name} is inactive"))

    max_load = effective_max_load(faculty, options)
    if load_exceeded(current_load, subject.total_hours, max_load):
        problems.append((
            ConstraintKind.LOAD_CAP,
            f"Faculty {faculty.name} would carry {current_load + subject.total_hours:g}h "
            f"(current {current_load:g}h + {subject.total_hours:g}h), max {max_load:g}h",
        ))

    preparations = set(subject_ids) | {subject.id}
    max_preps = effective_max_preparations(faculty, options)
    if len(preparations) > max_preps:
        problems.append((
            ConstraintKind.PREPARATION_CAP,
            f"Faculty {faculty.name} would have {len(preparations)} preparations, max {max_preps}",
        ))

    return problems


def _faculty_conflicts(
    candidate: ScheduleEntry,
    ctx: ConstraintContext,
    kind: ConstraintKind,
) -> list[Conflict]:
    current_load = sum(ctx.subject_hours(e.subject_id) for e in ctx.faculty_entries)
    subject_ids = [e.subject_id for e in ctx.faculty_entries]
    return [
        Conflict(
            kind=problem_kind,
            message=message,
            entry_id=candidate.id,
            details={
                "faculty_id": ctx.faculty.id,
                "current_load": current_load,
                "subject_hours": ctx.subject.total_hours,
                "max_load": effective_max_load(ctx.faculty, ctx.options),
                "preparations": sorted(set(subject_ids) | {ctx.subject.id}),
            },
        )
        for problem_kind, message in faculty_problems(
            ctx.faculty, ctx.subject, current_load, subject_ids, ctx.options
        )
        if problem_kind == kind
    ]


def check_faculty_status(candidate: ScheduleEntry, ctx: ConstraintContext) -> list[Conflict]:
    return _faculty_conflicts(candidate, ctx, ConstraintKind.FACULTY_STATUS)


def check_load_cap(candidate: ScheduleEntry, ctx: ConstraintContext) -> list[Conflict]:
    """current_load + subject hours must not exceed max_load."""
    return _faculty_conflicts(candidate, ctx, ConstraintKind.LOAD_CAP)


def check_preparation_cap(candidate: ScheduleEntry, ctx: ConstraintContext) -> list[Conflict]:
    return _faculty_conflicts(candidate, ctx, ConstraintKind.PREPARATION_CAP)
