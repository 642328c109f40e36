"""
Assignment search: constraint-ordered backtracking over an explicit stack.

Pipeline:
1. Scope the request to subjects and validate their reference data
2. Split the term's active entries into fixed inputs and released ones;
   skip subjects that are already scheduled
3. Plan each subject: eligible faculty and compatible rooms; subjects with
   none, or with no candidate that fits around the fixed entries, are
   unresolved before the search starts
4. Order subjects most-constrained first and backtrack through frames,
   trying candidates in soft-score order and placing the first one the
   conflict detector accepts
5. When the trial or backtrack budget runs out or no complete assignment
   exists, keep the deepest assignment and run one greedy completion pass.
   A passed deadline or a cancellation returns the deepest assignment as is

The search never persists anything: it returns draft entries for the
caller to commit.
"""

from __future__ import annotations

import logging
import re
import time
from collections import Counter
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Callable, Optional

from .config import EngineSettings, get_settings
from .conflicts import ConflictDetector, TermIndex
from .constraints import (
    HARD_CONSTRAINTS,
    Conflict,
    ConstraintKind,
    ScoreWeights,
    compatible_rooms,
    evaluate_room,
    faculty_problems,
    schedulable_windows,
    score_candidate,
)
from .data.models import (
    Catalog,
    Classroom,
    EntryStatus,
    Faculty,
    GenerationRequest,
    ScheduleEntry,
    Subject,
    Term,
)
from .errors import InfeasibleError, ReferenceDataError
from .tiling import SlotSet, enumerate_slot_sets, session_counts
from .timemodel import WeekDay

logger = logging.getLogger(__name__)

_KIND_ORDER = {kind: i for i, kind in enumerate(HARD_CONSTRAINTS)}


# =============================================================================
# Results
# =============================================================================

class GenerationStatus(str, Enum):
    PENDING = "pending"
    SEARCHING = "searching"
    SATISFIED = "satisfied"
    PARTIALLY_SATISFIED = "partially-satisfied"
    INFEASIBLE = "infeasible"


@dataclass
class UnresolvedSubject:
    """A subject the search could not place, with its blocking constraint."""
    subject_id: str
    reason: str
    constraint: Optional[ConstraintKind] = None
    attempts: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "subject_id": self.subject_id,
            "reason": self.reason,
            "constraint": self.constraint.value if self.constraint else None,
            "attempts": self.attempts,
        }


@dataclass
class SearchStats:
    """Statistics about one generation run."""
    subjects_in_scope: int = 0
    subjects_placed: int = 0
    screening_trials: int = 0
    trials: int = 0
    backtracks: int = 0
    max_depth: int = 0
    elapsed_seconds: float = 0.0
    budget_exhausted: bool = False
    timed_out: bool = False
    cancelled: bool = False
    completion_pass: bool = False

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class GenerationResult:
    status: GenerationStatus
    term: Term
    assigned: list[ScheduleEntry] = field(default_factory=list)
    unresolved: list[UnresolvedSubject] = field(default_factory=list)
    skipped_subject_ids: list[str] = field(default_factory=list)
    released_entry_ids: list[str] = field(default_factory=list)
    stats: SearchStats = field(default_factory=SearchStats)

    @property
    def is_complete(self) -> bool:
        return self.status == GenerationStatus.SATISFIED

    def raise_for_status(self) -> None:
        """Raise InfeasibleError when nothing could be placed."""
        if self.status == GenerationStatus.INFEASIBLE:
            raise InfeasibleError(
                f"No subject could be scheduled for {self.term}",
                details={"unresolved": [u.to_dict() for u in self.unresolved]},
            )

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "semester": self.term.semester,
            "academic_year": self.term.academic_year,
            "assigned": [e.model_dump(mode="json") for e in self.assigned],
            "unresolved": [u.to_dict() for u in self.unresolved],
            "skipped_subject_ids": list(self.skipped_subject_ids),
            "released_entry_ids": list(self.released_entry_ids),
            "stats": self.stats.to_dict(),
        }


# =============================================================================
# Search State
# =============================================================================

@dataclass
class SubjectPlan:
    """Static options for one subject."""
    subject: Subject
    department_id: str
    entry_id: str
    faculty: list[Faculty]
    rooms: list[Classroom]

    @property
    def option_count(self) -> int:
        return len(self.faculty) * len(self.rooms)

    @property
    def order_key(self) -> tuple:
        return (self.option_count, -self.subject.total_hours, self.subject.id)


@dataclass
class Candidate:
    faculty: Faculty
    classroom: Classroom
    slots: SlotSet
    score: float

    @property
    def sort_key(self) -> tuple:
        return (
            -self.score,
            self.faculty.id,
            self.classroom.id,
            tuple(s.sort_key for s in self.slots),
        )


@dataclass
class Frame:
    plan: SubjectPlan
    candidates: list[Candidate]
    position: int = 0
    placed: Optional[ScheduleEntry] = None


@dataclass
class Rejections:
    """Why a subject's candidates were rejected."""
    kinds: Counter = field(default_factory=Counter)
    messages: dict[ConstraintKind, str] = field(default_factory=dict)
    attempts: int = 0

    def record(self, conflicts: list[Conflict]) -> None:
        self.attempts += 1
        self.kinds.update({c.kind for c in conflicts})
        for conflict in conflicts:
            self.messages[conflict.kind] = conflict.message

    def blocking(self) -> Optional[ConstraintKind]:
        """Most frequent kind; ties go to the kind checked first."""
        if not self.kinds:
            return None
        return max(self.kinds, key=lambda k: (self.kinds[k], -_KIND_ORDER[k]))


def _slug(value: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", value.lower()).strip("-")


def _most_common_problem(problems: list[tuple[ConstraintKind, str]]) -> tuple[ConstraintKind, str]:
    counts = Counter(kind for kind, _ in problems)
    kind = max(counts, key=lambda k: (counts[k], -_KIND_ORDER[k]))
    message = [m for k, m in problems if k == kind][-1]
    return kind, message


# =============================================================================
# Search
# =============================================================================

class AssignmentSearch:
    """
    Generates draft entries for one request over an immutable catalog snapshot.

    Usage:
        search = AssignmentSearch(catalog, request)
        result = search.run()
        result.raise_for_status()
    """

    def __init__(
        self,
        catalog: Catalog,
        request: GenerationRequest,
        settings: Optional[EngineSettings] = None,
        weights: Optional[ScoreWeights] = None,
        should_cancel: Optional[Callable[[], bool]] = None,
    ):
        self.catalog = catalog
        self.request = request
        self.options = request.options
        self.settings = settings or get_settings()
        self.weights = weights or ScoreWeights()
        self.should_cancel = should_cancel
        self.detector = ConflictDetector(catalog, self.settings, self.options)

        opts = self.options
        self.max_trials = opts.max_trials if opts.max_trials is not None else self.settings.max_trials
        self.max_backtracks = (
            opts.max_backtracks if opts.max_backtracks is not None else self.settings.max_backtracks
        )
        self.time_limit = (
            opts.time_limit_seconds
            if opts.time_limit_seconds is not None
            else self.settings.time_limit_seconds
        )

        self.status = GenerationStatus.PENDING
        self.stats = SearchStats()
        self._rejections: dict[str, Rejections] = {}
        self._slot_sets: dict[tuple[str, int], list[SlotSet]] = {}
        self._deadline: Optional[float] = None
        self._stopped = False

    # -------------------------------------------------------------------------
    # Entry Point
    # -------------------------------------------------------------------------

    def run(self) -> GenerationResult:
        started = time.monotonic()
        if self.time_limit is not None:
            self._deadline = started + self.time_limit
        term = self.request.term

        subjects = self._subjects_in_scope()
        fixed, released_ids = self._split_existing(term)

        scheduled = {e.subject_id for e in fixed}
        skipped = [] if self.options.include_scheduled else [s.id for s in subjects if s.id in scheduled]
        to_place = [s for s in subjects if s.id not in skipped]
        self.stats.subjects_in_scope = len(to_place)

        self.status = GenerationStatus.SEARCHING
        index = TermIndex(self.catalog, fixed)
        plans, unresolved = self._plan(to_place, index, released_ids)
        order = sorted(plans, key=lambda p: p.order_key)
        logger.debug("Subject order: %s", [p.subject.id for p in order])

        assigned = self._backtrack(order, index)

        # the deadline and cancellation both end the run; only trial and
        # backtrack budgets leave room for the completion pass
        if len(assigned) < len(order) and not (self.stats.cancelled or self.stats.timed_out):
            assigned = self._complete(order, fixed, assigned)

        placed = {e.subject_id for e in assigned}
        for plan in order:
            if plan.subject.id not in placed:
                unresolved.append(self._unresolved(plan.subject.id))

        assigned.sort(key=lambda e: e.subject_id)
        unresolved.sort(key=lambda u: u.subject_id)
        self.stats.subjects_placed = len(assigned)
        self.stats.elapsed_seconds = round(time.monotonic() - started, 4)
        self.status = self._final_status(len(assigned), len(to_place))

        logger.info(
            "Generation for %s: %s (%d placed, %d unresolved, %d skipped, %d trials, %d backtracks)",
            term, self.status.value, len(assigned), len(unresolved), len(skipped),
            self.stats.trials, self.stats.backtracks,
        )
        return GenerationResult(
            status=self.status,
            term=term,
            assigned=assigned,
            unresolved=unresolved,
            skipped_subject_ids=skipped,
            released_entry_ids=released_ids,
            stats=self.stats,
        )

    @staticmethod
    def _final_status(placed: int, total: int) -> GenerationStatus:
        if placed == total:
            return GenerationStatus.SATISFIED
        if placed > 0:
            return GenerationStatus.PARTIALLY_SATISFIED
        return GenerationStatus.INFEASIBLE

    # -------------------------------------------------------------------------
    # Scope
    # -------------------------------------------------------------------------

    def _subjects_in_scope(self) -> list[Subject]:
        """
        Subjects named by the request, or every subject matching its scope.

        Without explicit subject ids, subjects tagged with a different
        semester are left out.
        """
        request = self.request
        if request.subject_ids:
            errors = self.catalog.reference_errors(list(dict.fromkeys(request.subject_ids)))
            self._raise_reference_errors(errors)
            subjects = [self.catalog.get_subject(i) for i in dict.fromkeys(request.subject_ids)]
        else:
            subjects = [
                s for s in self.catalog.subjects
                if not s.semester or s.semester == request.semester
            ]

        if request.course_ids:
            subjects = [s for s in subjects if s.course_id in request.course_ids]

        if request.department_ids:
            subjects = [
                s for s in subjects
                if self.catalog.subject_department_id(s) in request.department_ids
            ]

        self._raise_reference_errors(
            self.catalog.reference_errors([s.id for s in subjects], term=request.term)
        )
        return sorted(subjects, key=lambda s: s.id)

    @staticmethod
    def _raise_reference_errors(errors: list[str]) -> None:
        if errors:
            raise ReferenceDataError(
                "Reference validation failed:\n" + "\n".join(f"  - {e}" for e in errors),
                details={"errors": errors},
            )

    def _split_existing(self, term: Term) -> tuple[list[ScheduleEntry], list[str]]:
        """Fixed entries and the ids of entries released for regeneration."""
        release = set(self.options.release_entry_ids)
        active = self.catalog.entries_for_term(term)
        fixed = [e for e in active if e.id not in release]
        released = sorted(e.id for e in active if e.id in release)
        return fixed, released

    # -------------------------------------------------------------------------
    # Planning
    # -------------------------------------------------------------------------

    def _plan(
        self,
        subjects: list[Subject],
        index: TermIndex,
        released_ids: list[str],
    ) -> tuple[list[SubjectPlan], list[UnresolvedSubject]]:
        plans: list[SubjectPlan] = []
        unresolved: list[UnresolvedSubject] = []
        taken_ids = {e.id for e in self.catalog.entries if e.id} - set(released_ids)

        for subject in subjects:
            department_id = self.catalog.subject_department_id(subject)
            pool = sorted(
                (f for f in self.catalog.faculty if f.department_id == department_id),
                key=lambda f: f.id,
            )
            if not pool:
                unresolved.append(UnresolvedSubject(
                    subject_id=subject.id,
                    reason=f"No faculty in department '{department_id}'",
                ))
                continue

            faculty_issues: list[tuple[ConstraintKind, str]] = []
            eligible = []
            for faculty in pool:
                problems = faculty_problems(
                    faculty,
                    subject,
                    index.faculty_load(faculty.id),
                    index.faculty_subject_ids(faculty.id),
                    self.options,
                )
                faculty_issues.extend(problems)
                if not problems:
                    eligible.append(faculty)
            if not eligible:
                kind, message = _most_common_problem(faculty_issues)
                unresolved.append(UnresolvedSubject(subject.id, message, kind))
                continue

            rooms = compatible_rooms(subject, self.catalog.classrooms, self.options)
            if not rooms:
                room_issues = [
                    p for room in self.catalog.classrooms
                    for p in evaluate_room(room, subject, self.options).problems
                ]
                if room_issues:
                    kind, message = _most_common_problem(room_issues)
                    unresolved.append(UnresolvedSubject(subject.id, message, kind))
                else:
                    unresolved.append(UnresolvedSubject(subject.id, "No classrooms defined"))
                continue

            plan = SubjectPlan(
                subject=subject,
                department_id=department_id,
                entry_id=self._entry_id(subject, taken_ids),
                faculty=eligible,
                rooms=rooms,
            )
            taken_ids.add(plan.entry_id)

            if self._past_deadline():
                plans.append(plan)
                continue
            screen = self._screen(plan, index)
            if screen is not None:
                unresolved.append(screen)
                continue
            plans.append(plan)

        return plans, unresolved

    def _entry_id(self, subject: Subject, taken: set[str]) -> str:
        base = f"gen-{_slug(self.request.semester)}-{_slug(self.request.academic_year)}-{subject.id}"
        entry_id, n = base, 1
        while entry_id in taken:
            n += 1
            entry_id = f"{base}-{n}"
        return entry_id

    def _screen(self, plan: SubjectPlan, index: TermIndex) -> Optional[UnresolvedSubject]:
        """Unresolved entry when no candidate fits around the fixed entries alone."""
        s = self.settings
        if not session_counts(
            plan.subject.required_minutes, s.max_session_minutes,
            s.max_sessions_per_entry, len(WeekDay), s.slot_granularity_minutes,
        ):
            return UnresolvedSubject(
                subject_id=plan.subject.id,
                reason=(
                    f"{plan.subject.total_hours:g}h cannot be split into at most "
                    f"{s.max_sessions_per_entry} sessions of {s.max_session_minutes} minutes"
                ),
            )

        candidates = self._candidates(plan, index)
        if not candidates:
            return UnresolvedSubject(
                subject_id=plan.subject.id,
                reason=(
                    f"No slot set covers {plan.subject.total_hours:g}h within the "
                    f"availability of eligible faculty"
                ),
                constraint=ConstraintKind.FACULTY_AVAILABILITY,
            )

        rejections = Rejections()
        for candidate in candidates:
            self.stats.screening_trials += 1
            conflicts = self.detector.detect_indexed(self._build_entry(plan, candidate), index)
            if not conflicts:
                return None
            rejections.record(conflicts)

        self._rejections[plan.subject.id] = rejections
        return self._unresolved(plan.subject.id)

    # -------------------------------------------------------------------------
    # Candidates
    # -------------------------------------------------------------------------

    def _slot_sets_for(self, faculty: Faculty, required_minutes: int) -> list[SlotSet]:
        key = (faculty.id, required_minutes)
        if key not in self._slot_sets:
            s = self.settings
            self._slot_sets[key] = enumerate_slot_sets(
                schedulable_windows(faculty, s, self.options),
                required_minutes,
                granularity=s.slot_granularity_minutes,
                max_session_minutes=s.max_session_minutes,
                max_sessions=s.max_sessions_per_entry,
                limit_per_count=s.max_slot_options,
            )
        return self._slot_sets[key]

    def _candidates(self, plan: SubjectPlan, index: TermIndex) -> list[Candidate]:
        """Every (faculty, room, slot set) for the subject, best score first."""
        subject = plan.subject
        department_loads = {f.id: index.faculty_load(f.id) for f in plan.faculty}

        candidates = []
        for faculty in plan.faculty:
            slot_sets = self._slot_sets_for(faculty, subject.required_minutes)
            faculty_slots = index.faculty_slots(faculty.id)
            for room in plan.rooms:
                for slots in slot_sets:
                    score = score_candidate(
                        subject, faculty, room, slots,
                        department_loads=department_loads,
                        faculty_slots=faculty_slots,
                        options=self.options,
                        weights=self.weights,
                    )
                    candidates.append(Candidate(faculty, room, slots, score))

        candidates.sort(key=lambda c: c.sort_key)
        return candidates

    def _build_entry(self, plan: SubjectPlan, candidate: Candidate) -> ScheduleEntry:
        return ScheduleEntry(
            id=plan.entry_id,
            subject_id=plan.subject.id,
            faculty_id=candidate.faculty.id,
            classroom_id=candidate.classroom.id,
            department_id=plan.department_id,
            timeslots=list(candidate.slots),
            semester=self.request.semester,
            academic_year=self.request.academic_year,
            status=EntryStatus.DRAFT,
            is_generated=True,
        )

    # -------------------------------------------------------------------------
    # Backtracking
    # -------------------------------------------------------------------------

    def _past_deadline(self) -> bool:
        if self._deadline is not None and time.monotonic() >= self._deadline:
            self.stats.timed_out = True
        return self.stats.timed_out

    def _should_stop(self) -> bool:
        if self.should_cancel is not None and self.should_cancel():
            self.stats.cancelled = True
        elif self.stats.trials >= self.max_trials:
            self.stats.budget_exhausted = True
        elif self._past_deadline():
            self.stats.budget_exhausted = True
        self._stopped = self.stats.cancelled or self.stats.budget_exhausted
        return self._stopped

    def _advance(
        self,
        frame: Frame,
        index: TermIndex,
        budgeted: bool = True,
    ) -> Optional[ScheduleEntry]:
        """Next conflict-free candidate of the frame, or None when exhausted or stopped."""
        subject_id = frame.plan.subject.id
        rejections = self._rejections.setdefault(subject_id, Rejections())

        while frame.position < len(frame.candidates):
            if budgeted and self._should_stop():
                return None
            if not budgeted and self._past_deadline():
                return None
            candidate = frame.candidates[frame.position]
            frame.position += 1
            self.stats.trials += 1

            entry = self._build_entry(frame.plan, candidate)
            conflicts = self.detector.detect_indexed(entry, index)
            if not conflicts:
                return entry
            rejections.record(conflicts)
        return None

    def _backtrack(self, order: list[SubjectPlan], index: TermIndex) -> list[ScheduleEntry]:
        """
        Depth-first placement with an explicit frame stack.

        Returns the complete assignment when one is found, otherwise the
        deepest partial assignment reached. ``index`` is left holding
        whatever was placed when the search stopped.
        """
        stack: list[Frame] = []
        best: list[ScheduleEntry] = []
        descend = True

        while True:
            if descend:
                if len(stack) == len(order):
                    return [f.placed for f in stack]
                plan = order[len(stack)]
                stack.append(Frame(plan, self._candidates(plan, index)))

            frame = stack[-1]
            entry = self._advance(frame, index)
            if self._stopped:
                logger.debug("Search stopped at depth %d", len(stack) - 1)
                break

            if entry is not None:
                frame.placed = entry
                index.add(entry)
                if len(stack) > len(best):
                    best = [f.placed for f in stack]
                    self.stats.max_depth = len(best)
                descend = True
                continue

            stack.pop()
            if not stack:
                logger.debug("Search space exhausted for %s", frame.plan.subject.id)
                break

            self.stats.backtracks += 1
            if self.stats.backtracks > self.max_backtracks:
                self.stats.budget_exhausted = True
                logger.debug("Backtrack budget (%d) exhausted", self.max_backtracks)
                break

            parent = stack[-1]
            logger.debug(
                "Backtrack #%d: %s exhausted, revisiting %s",
                self.stats.backtracks, frame.plan.subject.id, parent.plan.subject.id,
            )
            index.remove(parent.placed)
            parent.placed = None
            descend = False

        return best

    def _complete(
        self,
        order: list[SubjectPlan],
        fixed: list[ScheduleEntry],
        best: list[ScheduleEntry],
    ) -> list[ScheduleEntry]:
        """One greedy pass placing whatever fits around the deepest assignment."""
        self.stats.completion_pass = True
        index = TermIndex(self.catalog, [*fixed, *best])
        placed = {e.subject_id for e in best}
        assigned = list(best)

        for plan in order:
            if plan.subject.id in placed:
                continue
            if self.should_cancel is not None and self.should_cancel():
                self.stats.cancelled = True
                break
            if self._past_deadline():
                self.stats.budget_exhausted = True
                break
            self._rejections[plan.subject.id] = Rejections()
            frame = Frame(plan, self._candidates(plan, index))
            entry = self._advance(frame, index, budgeted=False)
            if entry is not None:
                index.add(entry)
                assigned.append(entry)

        return assigned

    def _unresolved(self, subject_id: str) -> UnresolvedSubject:
        rejections = self._rejections.get(subject_id, Rejections())
        kind = rejections.blocking()
        if kind is None:
            reason = "Search stopped before the subject was attempted"
        else:
            reason = rejections.messages[kind]
        return UnresolvedSubject(subject_id, reason, kind, rejections.attempts)
