"""
Schedule lifecycle: draft -> published -> archived.

Every mutation follows the same optimistic pattern:
1. Read the term version, then take a catalog snapshot
2. Run the conflict detector against the snapshot
3. Write with the version read in step 1

A write that loses the race raises StaleCommitError inside the repository;
the manager retries the whole read-detect-write cycle up to
``commit_retries`` times before surfacing it. After each write the derived
load of every touched faculty member is recomputed from stored entries.
"""

from __future__ import annotations

import logging
from typing import Callable, Iterable, Optional, Sequence, TypeVar

from .config import EngineSettings, get_settings
from .conflicts import ConflictDetector
from .data.models import Catalog, EntryPatch, EntryStatus, ScheduleEntry, Term
from .data.repository import ScheduleRepository
from .errors import (
    ConflictError,
    EntryNotFoundError,
    InvalidTransitionError,
    SchedulingError,
    StaleCommitError,
)
from .workload import recompute_load

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ScheduleLifecycleManager:
    """
    Validated mutations of persisted schedule entries.

    Usage:
        manager = ScheduleLifecycleManager(repo)
        entry = manager.create(candidate)
        manager.publish([entry.id])
    """

    def __init__(self, repository: ScheduleRepository, settings: Optional[EngineSettings] = None):
        self.repository = repository
        self.settings = settings or get_settings()

    # -------------------------------------------------------------------------
    # Commit Helpers
    # -------------------------------------------------------------------------

    def _with_retry(self, term: Term, operation: Callable[[Catalog, int], T]) -> T:
        attempts = self.settings.commit_retries + 1
        for attempt in range(1, attempts + 1):
            version = self.repository.term_version(term)
            catalog = self.repository.snapshot()
            try:
                return operation(catalog, version)
            except StaleCommitError as exc:
                if attempt == attempts:
                    logger.error("Giving up on %s after %d stale commits", term, attempts)
                    raise
                logger.warning(
                    "Stale commit on %s (expected v%d, found v%d); retry %d/%d",
                    term, exc.expected_version, exc.actual_version, attempt, attempts - 1,
                )
        raise AssertionError("unreachable")

    def _detector(self, catalog: Catalog) -> ConflictDetector:
        return ConflictDetector(catalog, self.settings)

    def _recompute(self, faculty_ids: Iterable[str], term: Term) -> None:
        catalog = self.repository.snapshot()
        entries = self.repository.entries_for_term(term)
        for faculty_id in sorted(set(faculty_ids)):
            faculty = catalog.get_faculty(faculty_id)
            if faculty is None:
                continue
            load, preparations = recompute_load(faculty, entries, catalog, term)
            self.repository.update_faculty_workload(faculty_id, load, preparations)

    # -------------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------------

    def create(self, entry: ScheduleEntry) -> ScheduleEntry:
        """Persist a new draft entry; ConflictError when it violates a hard constraint."""
        candidate = entry.with_changes(status=EntryStatus.DRAFT)

        def operation(catalog: Catalog, version: int) -> ScheduleEntry:
            if candidate.id is not None and catalog_has_entry(catalog, candidate.id):
                raise SchedulingError(
                    f"Schedule entry '{candidate.id}' already exists",
                    details={"entry_id": candidate.id},
                )
            conflicts = self._detector(catalog).detect(candidate, catalog.entries)
            if conflicts:
                raise ConflictError(
                    f"Entry for {candidate.subject_id} has {len(conflicts)} conflict(s)",
                    conflicts,
                )
            return self.repository.apply(candidate.term, version, upserts=[candidate])[0]

        stored = self._with_retry(candidate.term, operation)
        self._recompute([stored.faculty_id], stored.term)
        logger.info("Created draft entry %s (%s)", stored.id, stored.subject_id)
        return stored

    def update(self, entry_id: str, patch: EntryPatch) -> ScheduleEntry:
        """Apply a patch, re-validating against every other entry of the term."""
        current = self.repository.get(entry_id)
        if current.status == EntryStatus.ARCHIVED:
            raise InvalidTransitionError(
                f"Archived entry '{entry_id}' cannot be edited",
                details={"entry_id": entry_id, "status": current.status.value},
            )
        updated = current.with_changes(**patch.changes())

        def operation(catalog: Catalog, version: int) -> ScheduleEntry:
            conflicts = self._detector(catalog).detect(updated, catalog.entries)
            if conflicts:
                raise ConflictError(
                    f"Update of {entry_id} has {len(conflicts)} conflict(s)",
                    conflicts,
                )
            return self.repository.apply(updated.term, version, upserts=[updated])[0]

        stored = self._with_retry(updated.term, operation)
        self._recompute([current.faculty_id, stored.faculty_id], stored.term)
        logger.info("Updated entry %s", entry_id)
        return stored

    def publish(self, entry_ids: Sequence[str]) -> int:
        """
        Publish draft entries, all or nothing.

        The drafts are re-validated together against the rest of the term;
        any conflict aborts the whole batch with a ConflictError mapping
        entry id to its conflicts. Entries that are not drafts are left
        alone and not counted.
        """
        entries = [self.repository.get(i) for i in dict.fromkeys(entry_ids)]
        if not entries:
            return 0
        term = _single_term(entries, "publish")

        def operation(catalog: Catalog, version: int) -> int:
            current = [catalog_entry(catalog, e.id) for e in entries]
            drafts = [e for e in current if e.status == EntryStatus.DRAFT]
            if not drafts:
                return 0
            candidates = [e.with_changes(status=EntryStatus.PUBLISHED) for e in drafts]
            results = self._detector(catalog).detect_batch(candidates, catalog.entries)
            failed = {c.id: conflicts for c, conflicts in zip(candidates, results) if conflicts}
            if failed:
                raise ConflictError(
                    f"Publish aborted: {len(failed)} of {len(candidates)} entries conflict",
                    failed,
                )
            self.repository.apply(term, version, upserts=candidates)
            return len(candidates)

        count = self._with_retry(term, operation)
        logger.info("Published %d entries in %s", count, term)
        return count

    def archive(self, semester: str, academic_year: str) -> int:
        """Archive every non-archived entry of the term without re-checking."""
        term = Term(semester=semester, academic_year=academic_year)

        def operation(catalog: Catalog, version: int) -> tuple[int, set[str]]:
            active = catalog.entries_for_term(term)
            if not active:
                return 0, set()
            archived = [e.with_changes(status=EntryStatus.ARCHIVED) for e in active]
            self.repository.apply(term, version, upserts=archived)
            return len(archived), {e.faculty_id for e in active}

        count, touched = self._with_retry(term, operation)
        self._recompute(touched, term)
        logger.info("Archived %d entries in %s", count, term)
        return count

    def delete(self, entry_id: str) -> ScheduleEntry:
        current = self.repository.get(entry_id)

        def operation(catalog: Catalog, version: int) -> ScheduleEntry:
            self.repository.apply(current.term, version, deletes=[entry_id])
            return current

        removed = self._with_retry(current.term, operation)
        self._recompute([removed.faculty_id], removed.term)
        logger.info("Deleted entry %s", entry_id)
        return removed

    def commit(
        self,
        entries: Sequence[ScheduleEntry],
        replace_ids: Sequence[str] = (),
    ) -> list[ScheduleEntry]:
        """
        Persist a batch of new drafts in one optimistic write.

        ``replace_ids`` are deleted in the same write and ignored during
        detection, which is how regenerated (released) entries are swapped.
        """
        if not entries and not replace_ids:
            return []
        candidates = [e.with_changes(status=EntryStatus.DRAFT) for e in entries]
        replaced = [self.repository.get(i) for i in replace_ids]
        term = _single_term([*candidates, *replaced], "commit")

        def operation(catalog: Catalog, version: int) -> list[ScheduleEntry]:
            replace = set(replace_ids)
            existing = [e for e in catalog.entries if e.id not in replace]
            results = self._detector(catalog).detect_batch(candidates, existing)
            failed = {
                c.id or f"#{i}": conflicts
                for i, (c, conflicts) in enumerate(zip(candidates, results))
                if conflicts
            }
            if failed:
                raise ConflictError(
                    f"Commit aborted: {len(failed)} of {len(candidates)} entries conflict",
                    failed,
                )
            return self.repository.apply(term, version, upserts=candidates, deletes=list(replace_ids))

        stored = self._with_retry(term, operation)
        self._recompute({e.faculty_id for e in [*stored, *replaced]}, term)
        logger.info("Committed %d entries (%d replaced) in %s", len(stored), len(replaced), term)
        return stored


def catalog_has_entry(catalog: Catalog, entry_id: str) -> bool:
    return any(e.id == entry_id for e in catalog.entries)


def catalog_entry(catalog: Catalog, entry_id: str) -> ScheduleEntry:
    for entry in catalog.entries:
        if entry.id == entry_id:
            return entry
    raise EntryNotFoundError(entry_id)


def _single_term(entries: Sequence[ScheduleEntry], operation: str) -> Term:
    terms = {e.term for e in entries}
    if len(terms) > 1:
        raise SchedulingError(
            f"Cannot {operation} entries from {len(terms)} different terms at once",
            details={"terms": sorted(str(t) for t in terms)},
        )
    return terms.pop()
