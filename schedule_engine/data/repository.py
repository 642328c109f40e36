"""
Storage interfaces and the in-memory implementation.

Writes are optimistic: every term carries a version number that each
successful write bumps. A writer passes the version it read; if the term
moved in the meantime the write is refused with ``StaleCommitError`` and
nothing changes. The per-term check and write happen under one lock.
"""

from __future__ import annotations

import logging
import threading
from collections import defaultdict
from typing import Optional, Protocol, Sequence

from ..errors import EntryNotFoundError, StaleCommitError
from .models import Catalog, Faculty, ScheduleEntry, Term

logger = logging.getLogger(__name__)


class CatalogReader(Protocol):
    """Read access to reference data and entries."""

    def snapshot(self) -> Catalog:
        """Immutable copy of all reference data and entries."""
        ...

    def term_version(self, term: Term) -> int:
        ...


class ScheduleRepository(CatalogReader, Protocol):
    """Read/write access used by the lifecycle manager."""

    def get(self, entry_id: str) -> ScheduleEntry:
        ...

    def entries_for_term(self, term: Term, include_archived: bool = False) -> list[ScheduleEntry]:
        ...

    def apply(
        self,
        term: Term,
        expected_version: int,
        upserts: Sequence[ScheduleEntry] = (),
        deletes: Sequence[str] = (),
    ) -> list[ScheduleEntry]:
        """Atomically write entries of one term; returns the stored upserts."""
        ...

    def update_faculty_workload(self, faculty_id: str, load: float, preparations: int) -> None:
        ...


class InMemoryRepository:
    """
    Dictionary-backed repository.

    Usage:
        repo = InMemoryRepository(load_catalog("catalog.json"))
        manager = ScheduleLifecycleManager(repo)
    """

    def __init__(self, catalog: Optional[Catalog] = None):
        catalog = catalog or Catalog()
        self._departments = list(catalog.departments)
        self._courses = list(catalog.courses)
        self._classrooms = list(catalog.classrooms)
        self._subjects = list(catalog.subjects)
        self._faculty: dict[str, Faculty] = {f.id: f for f in catalog.faculty}
        self._entries: dict[str, ScheduleEntry] = {}
        self._versions: dict[tuple[str, str], int] = defaultdict(int)
        self._next_id = 1
        self._lock = threading.Lock()

        for entry in catalog.entries:
            if entry.id is None:
                entry = entry.with_changes(id=self._new_id())
            self._entries[entry.id] = entry

    @staticmethod
    def _key(term: Term) -> tuple[str, str]:
        return (term.semester, term.academic_year)

    def _new_id(self) -> str:
        while f"entry-{self._next_id}" in self._entries:
            self._next_id += 1
        entry_id = f"entry-{self._next_id}"
        self._next_id += 1
        return entry_id

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def snapshot(self) -> Catalog:
        with self._lock:
            return Catalog(
                departments=self._departments,
                courses=self._courses,
                faculty=list(self._faculty.values()),
                classrooms=self._classrooms,
                subjects=self._subjects,
                entries=list(self._entries.values()),
            )

    def term_version(self, term: Term) -> int:
        with self._lock:
            return self._versions[self._key(term)]

    def get(self, entry_id: str) -> ScheduleEntry:
        try:
            return self._entries[entry_id]
        except KeyError:
            raise EntryNotFoundError(entry_id) from None

    def entries_for_term(self, term: Term, include_archived: bool = False) -> list[ScheduleEntry]:
        return [
            e for e in self._entries.values()
            if e.semester == term.semester
            and e.academic_year == term.academic_year
            and (include_archived or e.is_active)
        ]

    def get_faculty(self, faculty_id: str) -> Optional[Faculty]:
        return self._faculty.get(faculty_id)

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    def apply(
        self,
        term: Term,
        expected_version: int,
        upserts: Sequence[ScheduleEntry] = (),
        deletes: Sequence[str] = (),
    ) -> list[ScheduleEntry]:
        with self._lock:
            actual = self._versions[self._key(term)]
            if actual != expected_version:
                raise StaleCommitError(
                    f"Term {term} moved from version {expected_version} to {actual}",
                    expected_version=expected_version,
                    actual_version=actual,
                )

            for entry_id in deletes:
                if entry_id not in self._entries:
                    raise EntryNotFoundError(entry_id)

            for entry_id in deletes:
                del self._entries[entry_id]

            stored = []
            for entry in upserts:
                if entry.id is None:
                    entry = entry.with_changes(id=self._new_id())
                self._entries[entry.id] = entry
                stored.append(entry)

            self._versions[self._key(term)] = actual + 1
            logger.debug(
                "Term %s v%d: %d upserted, %d deleted", term, actual + 1, len(stored), len(deletes)
            )
            return stored

    def update_faculty_workload(self, faculty_id: str, load: float, preparations: int) -> None:
        with self._lock:
            faculty = self._faculty.get(faculty_id)
            if faculty is None:
                return
            self._faculty[faculty_id] = faculty.model_copy(
                update={"current_load": load, "current_preparations": preparations}
            )
