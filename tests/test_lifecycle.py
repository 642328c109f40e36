"""Tests for the draft/published/archived lifecycle."""

import pytest

from conftest import ACADEMIC_YEAR, SEMESTER, make_entry
from schedule_engine.data.models import EntryPatch, EntryStatus, Term
from schedule_engine.data.repository import InMemoryRepository
from schedule_engine.errors import (
    ConflictError,
    EntryNotFoundError,
    InvalidTransitionError,
    SchedulingError,
    StaleCommitError,
)
from schedule_engine.constraints import ConstraintKind
from schedule_engine.lifecycle import ScheduleLifecycleManager
from schedule_engine.timemodel import WeekDay

TERM = Term(semester=SEMESTER, academic_year=ACADEMIC_YEAR)


class RacingRepository(InMemoryRepository):
    """Moves the term version under the writer for the first ``races`` writes."""

    def __init__(self, catalog, races=1):
        super().__init__(catalog)
        self.races = races
        self.apply_calls = 0

    def apply(self, term, expected_version, upserts=(), deletes=()):
        self.apply_calls += 1
        if self.races > 0:
            self.races -= 1
            self._versions[self._key(term)] += 1
        return super().apply(term, expected_version, upserts, deletes)


@pytest.fixture
def manager(repository, settings):
    return ScheduleLifecycleManager(repository, settings)


class TestCreate:
    """Tests for creating draft entries."""

    def test_create_stores_draft(self, manager, repository):
        stored = manager.create(make_entry("e1", status=EntryStatus.PUBLISHED))
        assert stored.status == EntryStatus.DRAFT
        assert repository.get("e1") == stored
        assert repository.term_version(TERM) == 1

    def test_create_assigns_id(self, manager):
        stored = manager.create(make_entry(None))
        assert stored.id == "entry-1"

    def test_conflict_rejected(self, manager, repository):
        manager.create(make_entry("e1"))
        with pytest.raises(ConflictError) as exc_info:
            manager.create(make_entry("e2", faculty_id="fac-ben"))
        assert [c.kind for c in exc_info.value.conflicts] == [ConstraintKind.CLASSROOM_DOUBLE_BOOKING]
        assert exc_info.value.details["conflicts"][0]["kind"] == "classroom-double-booking"
        with pytest.raises(EntryNotFoundError):
            repository.get("e2")

    def test_duplicate_id(self, manager):
        manager.create(make_entry("e1"))
        with pytest.raises(SchedulingError, match="already exists"):
            manager.create(make_entry("e1", slots=((WeekDay.FRIDAY, "08:00", "11:00"),)))

    def test_faculty_load_recomputed(self, manager, repository):
        manager.create(make_entry("e1"))
        faculty = repository.get_faculty("fac-ada")
        assert faculty.current_load == pytest.approx(3.0)
        assert faculty.current_preparations == 1


class TestUpdate:
    def test_update_moves_entry(self, manager, repository):
        manager.create(make_entry("e1"))
        patch = EntryPatch(timeslots=[{"day": "tuesday", "start": "08:00", "end": "11:00"}])
        updated = manager.update("e1", patch)
        assert updated.timeslots[0].day == WeekDay.TUESDAY
        assert repository.get("e1").timeslots[0].day == WeekDay.TUESDAY

    def test_update_does_not_conflict_with_itself(self, manager):
        manager.create(make_entry("e1"))
        patch = EntryPatch(timeslots=[{"day": "monday", "start": "09:00", "end": "12:00"}])
        assert manager.update("e1", patch).timeslots[0].start == 540

    def test_update_conflict(self, manager):
        manager.create(make_entry("e1"))
        manager.create(make_entry("e2", faculty_id="fac-ben", slots=((WeekDay.TUESDAY, "08:00", "11:00"),)))
        with pytest.raises(ConflictError):
            manager.update("e2", EntryPatch(timeslots=[{"day": "monday", "start": "10:00", "end": "13:00"}]))

    def test_reassignment_recomputes_both_faculty(self, manager, repository):
        manager.create(make_entry("e1"))
        manager.update("e1", EntryPatch(faculty_id="fac-ben"))
        assert repository.get_faculty("fac-ada").current_load == 0
        assert repository.get_faculty("fac-ben").current_load == pytest.approx(3.0)

    def test_archived_entry_immutable(self, manager):
        manager.create(make_entry("e1"))
        manager.archive(SEMESTER, ACADEMIC_YEAR)
        with pytest.raises(InvalidTransitionError):
            manager.update("e1", EntryPatch(section="B"))

    def test_missing_entry(self, manager):
        with pytest.raises(EntryNotFoundError):
            manager.update("ghost", EntryPatch(section="B"))


class TestPublish:
    """Publishing is all-or-nothing."""

    def test_publish_drafts(self, manager, repository):
        manager.create(make_entry("e1"))
        manager.create(make_entry("e2", subject_id="subj-prog", classroom_id="lab-201",
                                  slots=((WeekDay.TUESDAY, "08:00", "11:00"),)))
        assert manager.publish(["e1", "e2"]) == 2
        assert repository.get("e1").status == EntryStatus.PUBLISHED
        assert manager.publish(["e1"]) == 0

    def test_publish_is_atomic(self, settings, catalog):
        conflicting = [
            make_entry("e1"),
            make_entry("e2", faculty_id="fac-ben"),
            make_entry("e3", subject_id="subj-prog", classroom_id="lab-201",
                       faculty_id="fac-ben", slots=((WeekDay.FRIDAY, "08:00", "11:00"),)),
        ]
        repository = InMemoryRepository(catalog.model_copy(update={"entries": conflicting}))
        manager = ScheduleLifecycleManager(repository, settings)

        with pytest.raises(ConflictError) as exc_info:
            manager.publish(["e1", "e2", "e3"])
        assert set(exc_info.value.conflicts) == {"e1", "e2"}
        assert all(repository.get(i).status == EntryStatus.DRAFT for i in ("e1", "e2", "e3"))
        assert repository.term_version(TERM) == 0

    def test_publish_mixed_terms(self, manager):
        manager.create(make_entry("e1"))
        manager.create(make_entry("e2", semester="2nd Semester"))
        with pytest.raises(SchedulingError, match="different terms"):
            manager.publish(["e1", "e2"])

    def test_publish_unknown(self, manager):
        with pytest.raises(EntryNotFoundError):
            manager.publish(["ghost"])


class TestArchiveAndDelete:
    def test_archive_term(self, manager, repository):
        manager.create(make_entry("e1"))
        manager.create(make_entry("e2", subject_id="subj-prog", classroom_id="lab-201",
                                  slots=((WeekDay.TUESDAY, "08:00", "11:00"),)))
        manager.publish(["e1"])
        manager.create(make_entry("other", semester="2nd Semester"))

        assert manager.archive(SEMESTER, ACADEMIC_YEAR) == 2
        assert repository.get("e1").status == EntryStatus.ARCHIVED
        assert repository.get("e2").status == EntryStatus.ARCHIVED
        assert repository.get("other").status == EntryStatus.DRAFT
        assert repository.get_faculty("fac-ada").current_load == 0
        assert manager.archive(SEMESTER, ACADEMIC_YEAR) == 0

    def test_archived_entries_free_their_slots(self, manager):
        manager.create(make_entry("e1"))
        manager.archive(SEMESTER, ACADEMIC_YEAR)
        assert manager.create(make_entry("e2")).id == "e2"

    def test_delete(self, manager, repository):
        manager.create(make_entry("e1"))
        removed = manager.delete("e1")
        assert removed.id == "e1"
        with pytest.raises(EntryNotFoundError):
            repository.get("e1")
        assert repository.get_faculty("fac-ada").current_load == 0


class TestCommit:
    """Batch commits of generated drafts."""

    def test_commit_batch(self, manager, repository):
        entries = [
            make_entry("g1"),
            make_entry("g2", subject_id="subj-prog", classroom_id="lab-201", faculty_id="fac-ben"),
        ]
        stored = manager.commit(entries)
        assert [e.id for e in stored] == ["g1", "g2"]
        assert repository.term_version(TERM) == 1

    def test_commit_conflict_aborts_batch(self, manager, repository):
        entries = [make_entry("g1"), make_entry(None, faculty_id="fac-ben")]
        with pytest.raises(ConflictError) as exc_info:
            manager.commit(entries)
        assert set(exc_info.value.conflicts) == {"g1", "#1"}
        assert repository.entries_for_term(TERM) == []

    def test_commit_replaces_released(self, manager, repository):
        manager.create(make_entry("old"))
        stored = manager.commit([make_entry("new")], replace_ids=["old"])
        assert [e.id for e in stored] == ["new"]
        assert [e.id for e in repository.entries_for_term(TERM)] == ["new"]

    def test_empty_commit(self, manager):
        assert manager.commit([]) == []


class TestOptimisticConcurrency:
    """Stale writes are retried, then surfaced."""

    def test_stale_write_refused(self, repository):
        with pytest.raises(StaleCommitError) as exc_info:
            repository.apply(TERM, 5, upserts=[make_entry("e1")])
        assert exc_info.value.expected_version == 5
        assert exc_info.value.actual_version == 0
        with pytest.raises(EntryNotFoundError):
            repository.get("e1")

    def test_retry_after_stale_commit(self, catalog, settings):
        repository = RacingRepository(catalog, races=2)
        manager = ScheduleLifecycleManager(repository, settings)
        stored = manager.create(make_entry("e1"))
        assert stored.id == "e1"
        assert repository.apply_calls == 3

    def test_gives_up_after_retries(self, catalog, settings):
        repository = RacingRepository(catalog, races=10)
        manager = ScheduleLifecycleManager(repository, settings.model_copy(update={"commit_retries": 2}))
        with pytest.raises(StaleCommitError):
            manager.create(make_entry("e1"))
        assert repository.apply_calls == 3
