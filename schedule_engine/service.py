"""
Scheduling service: the engine's external surface.

Wraps a repository with the three core calls (detect, generate, validate
and commit) plus workload queries. Transport layers (HTTP handlers, the
CLI) call this and nothing deeper.
"""

from __future__ import annotations

import logging
from typing import Callable, Literal, Optional

from .config import EngineSettings, get_settings
from .conflicts import ConflictDetector
from .constraints import Conflict, ScoreWeights
from .data.models import EntryPatch, GenerationOptions, GenerationRequest, ScheduleEntry, Term
from .data.repository import ScheduleRepository
from .errors import ReferenceDataError, SchedulingError
from .lifecycle import ScheduleLifecycleManager
from .search import AssignmentSearch, GenerationResult
from .workload import FacultyWorkload, department_workload, faculty_workload

logger = logging.getLogger(__name__)


class SchedulingService:
    """
    Usage:
        service = SchedulingService(InMemoryRepository(catalog))
        result = service.generate_schedules(GenerationRequest(...))
        service.commit_generated(result)
    """

    def __init__(
        self,
        repository: ScheduleRepository,
        settings: Optional[EngineSettings] = None,
        weights: Optional[ScoreWeights] = None,
    ):
        self.repository = repository
        self.settings = settings or get_settings()
        self.weights = weights or ScoreWeights()
        self.lifecycle = ScheduleLifecycleManager(repository, self.settings)

    def detect_conflicts(
        self,
        candidate: ScheduleEntry,
        term: Optional[Term] = None,
        options: Optional[GenerationOptions] = None,
    ) -> list[Conflict]:
        """
        Hard-constraint violations of a proposed entry, without writing anything.

        ``term`` places the candidate in a different term than the one it
        names; ``options`` adds the request's time windows and limits.
        """
        if term is not None:
            candidate = candidate.with_changes(
                semester=term.semester, academic_year=term.academic_year
            )
        catalog = self.repository.snapshot()
        detector = ConflictDetector(catalog, self.settings, options)
        return detector.detect(candidate, catalog.entries)

    def generate_schedules(
        self,
        request: GenerationRequest,
        should_cancel: Optional[Callable[[], bool]] = None,
    ) -> GenerationResult:
        """Run the search over a snapshot taken now; nothing is persisted."""
        logger.info(
            "Generating schedules for %s %s (%d subject ids, %d department ids)",
            request.semester, request.academic_year,
            len(request.subject_ids), len(request.department_ids),
        )
        catalog = self.repository.snapshot()
        search = AssignmentSearch(
            catalog,
            request,
            settings=self.settings,
            weights=self.weights,
            should_cancel=should_cancel,
        )
        return search.run()

    def validate_and_commit(
        self,
        entry: ScheduleEntry,
        mode: Literal["create", "update"] = "create",
    ) -> ScheduleEntry:
        """Create or update an entry; raises ConflictError on any violation."""
        if mode == "create":
            return self.lifecycle.create(entry)
        if mode == "update":
            if entry.id is None:
                raise SchedulingError("Update requires an entry id")
            patch = EntryPatch(
                subject_id=entry.subject_id,
                faculty_id=entry.faculty_id,
                classroom_id=entry.classroom_id,
                timeslots=entry.timeslots,
                section=entry.section,
            )
            return self.lifecycle.update(entry.id, patch)
        raise SchedulingError(f"Unknown commit mode '{mode}'", details={"mode": mode})

    def commit_generated(self, result: GenerationResult) -> list[ScheduleEntry]:
        """Persist a generation result's drafts, replacing any released entries."""
        return self.lifecycle.commit(result.assigned, replace_ids=result.released_entry_ids)

    def faculty_workload(self, faculty_id: str, term: Term) -> FacultyWorkload:
        catalog = self.repository.snapshot()
        faculty = catalog.get_faculty(faculty_id)
        if faculty is None:
            raise ReferenceDataError(
                f"Unknown faculty_id '{faculty_id}'", details={"faculty_id": faculty_id}
            )
        return faculty_workload(faculty, catalog.entries, catalog, term)

    def department_workload(self, department_id: str, term: Term) -> list[FacultyWorkload]:
        catalog = self.repository.snapshot()
        if catalog.get_department(department_id) is None:
            raise ReferenceDataError(
                f"Unknown department_id '{department_id}'", details={"department_id": department_id}
            )
        return department_workload(department_id, catalog.entries, catalog, term)
