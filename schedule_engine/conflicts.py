"""
Conflict detection for proposed schedule entries.

The detector is pure: it reads the catalog snapshot and the entries it is
given and never mutates either. Every hard constraint is evaluated for
every candidate; nothing short-circuits, so callers always see the full
list of violations.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Iterable, Optional, Sequence

from .config import EngineSettings, get_settings
from .constraints import HARD_CONSTRAINTS, Conflict, ConstraintContext
from .data.models import ACTIVE_STATUSES, Catalog, GenerationOptions, ScheduleEntry, Term
from .errors import ReferenceDataError
from .timemodel import TimeSlot

logger = logging.getLogger(__name__)


# =============================================================================
# Term Index
# =============================================================================

class TermIndex:
    """
    Active entries of one term indexed by faculty and by classroom.

    Entries are tracked by identity so candidates without an id (new
    entries, batch members) can be added and removed safely.
    """

    def __init__(self, catalog: Catalog, entries: Iterable[ScheduleEntry] = ()):
        self.catalog = catalog
        self._by_faculty: dict[str, list[ScheduleEntry]] = defaultdict(list)
        self._by_classroom: dict[str, list[ScheduleEntry]] = defaultdict(list)
        self._count = 0
        for entry in entries:
            self.add(entry)

    def __len__(self) -> int:
        return self._count

    def add(self, entry: ScheduleEntry) -> None:
        self._by_faculty[entry.faculty_id].append(entry)
        self._by_classroom[entry.classroom_id].append(entry)
        self._count += 1

    def remove(self, entry: ScheduleEntry) -> None:
        self._by_faculty[entry.faculty_id] = [
            e for e in self._by_faculty[entry.faculty_id] if e is not entry
        ]
        self._by_classroom[entry.classroom_id] = [
            e for e in self._by_classroom[entry.classroom_id] if e is not entry
        ]
        self._count -= 1

    def faculty_entries(self, faculty_id: str) -> list[ScheduleEntry]:
        return list(self._by_faculty.get(faculty_id, ()))

    def classroom_entries(self, classroom_id: str) -> list[ScheduleEntry]:
        return list(self._by_classroom.get(classroom_id, ()))

    def faculty_load(self, faculty_id: str) -> float:
        total = 0.0
        for entry in self._by_faculty.get(faculty_id, ()):
            subject = self.catalog.get_subject(entry.subject_id)
            if subject is not None:
                total += subject.total_hours
        return total

    def faculty_subject_ids(self, faculty_id: str) -> set[str]:
        return {e.subject_id for e in self._by_faculty.get(faculty_id, ())}

    def faculty_slots(self, faculty_id: str) -> list[TimeSlot]:
        return [s for e in self._by_faculty.get(faculty_id, ()) for s in e.timeslots]


def _same_entry(a: ScheduleEntry, b: ScheduleEntry) -> bool:
    if a is b:
        return True
    return a.id is not None and a.id == b.id


def term_entries(
    entries: Iterable[ScheduleEntry],
    term: Term,
    exclude: Sequence[ScheduleEntry] = (),
) -> list[ScheduleEntry]:
    """Active entries of ``term``, minus anything matching ``exclude``."""
    return [
        e for e in entries
        if e.semester == term.semester
        and e.academic_year == term.academic_year
        and e.status in ACTIVE_STATUSES
        and not any(_same_entry(e, x) for x in exclude)
    ]


# =============================================================================
# Detector
# =============================================================================

class ConflictDetector:
    """
    Evaluates every hard constraint for candidate entries.

    Usage:
        detector = ConflictDetector(catalog)
        conflicts = detector.detect(candidate, catalog.entries)
        if conflicts:
            raise ConflictError("Entry conflicts", conflicts)
    """

    def __init__(
        self,
        catalog: Catalog,
        settings: Optional[EngineSettings] = None,
        options: Optional[GenerationOptions] = None,
    ):
        self.catalog = catalog
        self.settings = settings or get_settings()
        self.options = options

    def detect(
        self,
        candidate: ScheduleEntry,
        existing: Iterable[ScheduleEntry],
        batch: Sequence[ScheduleEntry] = (),
    ) -> list[Conflict]:
        """
        All hard-constraint violations of ``candidate``.

        Args:
            candidate: The proposed entry
            existing: Persisted entries; only active entries of the
                candidate's term are considered, and an entry with the
                candidate's id is treated as the candidate's old version
            batch: Other candidates committed together with this one

        Returns:
            Conflicts in constraint order, empty when the entry is valid

        Raises:
            ReferenceDataError: subject, faculty or classroom is unknown
        """
        others = term_entries(existing, candidate.term, exclude=[candidate, *batch])
        others.extend(b for b in batch if not _same_entry(b, candidate))
        return self.detect_indexed(candidate, TermIndex(self.catalog, others))

    def detect_batch(
        self,
        candidates: Sequence[ScheduleEntry],
        existing: Iterable[ScheduleEntry],
    ) -> list[list[Conflict]]:
        """Conflicts for each candidate against ``existing`` and the rest of the batch."""
        existing = list(existing)
        return [self.detect(c, existing, batch=candidates) for c in candidates]

    def detect_indexed(self, candidate: ScheduleEntry, index: TermIndex) -> list[Conflict]:
        """Detect against a prepared index that excludes the candidate."""
        ctx = self.context_for(candidate, index)
        conflicts: list[Conflict] = []
        for check in HARD_CONSTRAINTS.values():
            conflicts.extend(check(candidate, ctx))
        return conflicts

    def context_for(self, candidate: ScheduleEntry, index: TermIndex) -> ConstraintContext:
        subject = self.catalog.get_subject(candidate.subject_id)
        faculty = self.catalog.get_faculty(candidate.faculty_id)
        classroom = self.catalog.get_classroom(candidate.classroom_id)

        missing = []
        if subject is None:
            missing.append(f"subject '{candidate.subject_id}'")
        if faculty is None:
            missing.append(f"faculty '{candidate.faculty_id}'")
        if classroom is None:
            missing.append(f"classroom '{candidate.classroom_id}'")
        if missing:
            raise ReferenceDataError(
                f"Entry {candidate.id or '<new>'} references unknown {', '.join(missing)}",
                details={"entry_id": candidate.id, "missing": missing},
            )

        return ConstraintContext(
            catalog=self.catalog,
            settings=self.settings,
            subject=subject,
            faculty=faculty,
            classroom=classroom,
            faculty_entries=[e for e in index.faculty_entries(faculty.id) if not _same_entry(e, candidate)],
            classroom_entries=[e for e in index.classroom_entries(classroom.id) if not _same_entry(e, candidate)],
            options=self.options,
        )
