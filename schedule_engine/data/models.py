"""
Pydantic models for the timetabling data model.

Time conventions:
- Slots and availability windows are ``TimeSlot`` values (see timemodel)
- JSON uses ``{"day": "monday", "start": "08:00", "end": "09:30"}``
- Teaching hours are always derived from units, never stored

Example subject:
- 3 lecture units + 0 lab units = 3.0 hours/week
- 2 lecture units + 0.75 lab units = 3.0 hours/week (needs a lab room)
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, Optional

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    PlainSerializer,
    PlainValidator,
    model_validator,
)

from ..teaching_load import (
    DEFAULT_MAX_LOAD,
    DEFAULT_MIN_LOAD,
    lab_hours,
    lecture_hours,
    required_minutes,
)
from ..timemodel import (
    TimeSlot,
    WeekDay,
    coerce_slot,
    find_self_overlap,
    minutes_to_time,
    slot_to_dict,
    time_to_minutes,
    total_hours,
)


# =============================================================================
# Constants and Enums
# =============================================================================

class EmploymentType(str, Enum):
    FULL_TIME = "full-time"
    PART_TIME = "part-time"


class FacultyStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class ClassroomType(str, Enum):
    """Type of room/facility."""
    LECTURE = "lecture"
    LABORATORY = "laboratory"
    COMPUTER_LAB = "computer-lab"
    CONFERENCE = "conference"
    OTHER = "other"


LAB_ROOM_TYPES = frozenset({ClassroomType.LABORATORY, ClassroomType.COMPUTER_LAB})


class ClassroomStatus(str, Enum):
    AVAILABLE = "available"
    MAINTENANCE = "maintenance"
    RESERVED = "reserved"


class EntryStatus(str, Enum):
    """Lifecycle state of a schedule entry."""
    DRAFT = "draft"
    PUBLISHED = "published"
    ARCHIVED = "archived"


ACTIVE_STATUSES = frozenset({EntryStatus.DRAFT, EntryStatus.PUBLISHED})


def _minutes(value: Any) -> Any:
    if isinstance(value, str):
        return time_to_minutes(value)
    return value


# Slots validate through coerce_slot and serialize back to HH:MM mappings
SlotField = Annotated[TimeSlot, PlainValidator(coerce_slot), PlainSerializer(slot_to_dict)]
MinuteOfDay = Annotated[int, BeforeValidator(_minutes), Field(ge=0, le=1440)]
DayField = Annotated[WeekDay, BeforeValidator(WeekDay.parse)]


# =============================================================================
# Reference Entities
# =============================================================================

class Department(BaseModel):
    """Academic department."""
    model_config = ConfigDict(extra="forbid")

    id: str = Field(min_length=1, description="Unique identifier")
    name: str = Field(min_length=1, description="Department name")
    code: Optional[str] = Field(default=None, description="Short code")

    def __str__(self) -> str:
        return f"{self.name} ({self.code or self.id})"


class Course(BaseModel):
    """Degree program that subjects belong to."""
    model_config = ConfigDict(extra="forbid")

    id: str = Field(min_length=1, description="Unique identifier")
    code: str = Field(min_length=1, description="Course code (e.g., 'BSIT')")
    name: str = Field(min_length=1, description="Course name")
    department_id: str = Field(description="Owning department ID")


class Faculty(BaseModel):
    """Faculty member."""
    model_config = ConfigDict(extra="forbid")

    id: str = Field(min_length=1, description="Unique identifier")
    name: str = Field(min_length=1, description="Full name")
    email: Optional[str] = Field(default=None, description="Email address")
    department_id: str = Field(description="Department ID")
    employment_type: EmploymentType = Field(default=EmploymentType.FULL_TIME)
    min_load: float = Field(default=DEFAULT_MIN_LOAD, ge=0, le=60, description="Min weekly teaching hours")
    max_load: float = Field(default=DEFAULT_MAX_LOAD, ge=0, le=60, description="Max weekly teaching hours")
    max_preparations: int = Field(default=4, ge=1, description="Max distinct subjects per term")
    current_load: float = Field(default=0.0, ge=0, description="Derived from committed entries")
    current_preparations: int = Field(default=0, ge=0, description="Derived from committed entries")
    availability: list[SlotField] = Field(default_factory=list, description="Availability windows")
    status: FacultyStatus = Field(default=FacultyStatus.ACTIVE)

    @model_validator(mode="after")
    def validate_load_band(self) -> "Faculty":
        """Ensure min_load does not exceed max_load."""
        if self.min_load > self.max_load:
            raise ValueError(
                f"min_load ({self.min_load}) must not exceed max_load ({self.max_load})"
            )
        return self

    @model_validator(mode="after")
    def validate_availability(self) -> "Faculty":
        """Windows on the same day may not overlap."""
        pair = find_self_overlap(self.availability)
        if pair:
            raise ValueError(f"Overlapping availability windows: {pair[0]} and {pair[1]}")
        return self

    @property
    def is_active(self) -> bool:
        return self.status == FacultyStatus.ACTIVE

    def windows_on(self, day: WeekDay) -> list[TimeSlot]:
        return sorted((w for w in self.availability if w.day == day), key=lambda w: w.start)

    def __str__(self) -> str:
        return f"{self.name} ({self.id})"


class Classroom(BaseModel):
    """Room/facility."""
    model_config = ConfigDict(extra="forbid")

    id: str = Field(min_length=1, description="Unique identifier")
    room_number: str = Field(min_length=1, description="Room number")
    building: Optional[str] = Field(default=None, description="Building name")
    capacity: int = Field(ge=1, description="Seating capacity")
    type: ClassroomType = Field(default=ClassroomType.LECTURE, description="Type of room")
    facilities: list[str] = Field(default_factory=list, description="Available equipment")
    status: ClassroomStatus = Field(default=ClassroomStatus.AVAILABLE)

    @property
    def is_available(self) -> bool:
        return self.status == ClassroomStatus.AVAILABLE

    @property
    def is_lab(self) -> bool:
        return self.type in LAB_ROOM_TYPES

    @property
    def display_name(self) -> str:
        if self.building:
            return f"{self.building} - {self.room_number}"
        return self.room_number

    def __str__(self) -> str:
        return f"{self.display_name} ({self.type.value})"


class Subject(BaseModel):
    """Subject offering requirements; hours derive from units."""
    model_config = ConfigDict(extra="forbid")

    id: str = Field(min_length=1, description="Unique identifier")
    code: str = Field(min_length=1, description="Subject code")
    name: str = Field(min_length=1, description="Subject name")
    lecture_units: float = Field(default=0, ge=0, description="Lecture units")
    lab_units: float = Field(default=0, ge=0, description="Laboratory units")
    course_id: Optional[str] = Field(default=None, description="Course ID")
    department_id: Optional[str] = Field(default=None, description="Department ID (defaults to course's)")
    year_level: Optional[str] = Field(default=None, description="e.g. '1st Year'")
    semester: Optional[str] = Field(default=None, description="e.g. '1st Semester'")
    expected_enrollment: Optional[int] = Field(default=None, ge=1, description="Expected students")
    required_room_type: Optional[ClassroomType] = Field(default=None, description="Exact room type needed")
    required_facilities: list[str] = Field(default_factory=list, description="Room equipment needed")

    @model_validator(mode="after")
    def validate_units(self) -> "Subject":
        """At least one of lecture_units / lab_units must be positive."""
        if self.lecture_units <= 0 and self.lab_units <= 0:
            raise ValueError("Subject needs lecture_units or lab_units greater than 0")
        return self

    @property
    def lecture_hours(self) -> float:
        return lecture_hours(self.lecture_units)

    @property
    def lab_hours(self) -> float:
        return lab_hours(self.lab_units)

    @property
    def total_hours(self) -> float:
        return self.lecture_hours + self.lab_hours

    @property
    def required_minutes(self) -> int:
        return required_minutes(self.lecture_units, self.lab_units)

    @property
    def requires_lab(self) -> bool:
        return self.lab_units > 0

    def __str__(self) -> str:
        return f"{self.code} {self.name}"


# =============================================================================
# Schedule Entries
# =============================================================================

class Term(BaseModel):
    """A (semester, academic_year) pair: the active conflict universe."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    semester: str = Field(min_length=1)
    academic_year: str = Field(min_length=1)

    def __str__(self) -> str:
        return f"{self.semester} {self.academic_year}"


class ScheduleEntry(BaseModel):
    """One subject offering: one faculty, one classroom, one or more slots."""
    model_config = ConfigDict(extra="forbid")

    id: Optional[str] = Field(default=None, description="Assigned on commit when absent")
    subject_id: str = Field(min_length=1)
    faculty_id: str = Field(min_length=1)
    classroom_id: str = Field(min_length=1)
    department_id: Optional[str] = Field(default=None)
    timeslots: list[SlotField] = Field(min_length=1, description="Weekly meeting slots")
    semester: str = Field(min_length=1)
    academic_year: str = Field(min_length=1)
    section: Optional[str] = Field(default=None)
    status: EntryStatus = Field(default=EntryStatus.DRAFT)
    is_generated: bool = Field(default=False)

    @model_validator(mode="after")
    def validate_no_self_overlap(self) -> "ScheduleEntry":
        """An entry's own slots never overlap."""
        pair = find_self_overlap(self.timeslots)
        if pair:
            raise ValueError(f"Entry slots overlap each other: {pair[0]} and {pair[1]}")
        return self

    @property
    def term(self) -> Term:
        return Term(semester=self.semester, academic_year=self.academic_year)

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES

    @property
    def scheduled_hours(self) -> float:
        return total_hours(self.timeslots)

    def with_changes(self, **changes: Any) -> "ScheduleEntry":
        """Validated copy with ``changes`` applied."""
        return ScheduleEntry(**{**dict(self), **changes})

    def describe(self) -> str:
        slots = ", ".join(str(s) for s in self.timeslots)
        return f"{self.subject_id} [{slots}]"

    def __str__(self) -> str:
        return f"Entry {self.id or '<new>'}: {self.describe()}"


# =============================================================================
# Requests
# =============================================================================

class TimeRange(BaseModel):
    """A time-of-day range applied to every day."""
    model_config = ConfigDict(extra="forbid")

    start: MinuteOfDay
    end: MinuteOfDay

    @model_validator(mode="after")
    def validate_time_range(self) -> "TimeRange":
        """Ensure start time is before end time."""
        if self.start >= self.end:
            raise ValueError(
                f"start ({minutes_to_time(self.start)}) must be before end ({minutes_to_time(self.end)})"
            )
        return self

    def covers(self, slot: TimeSlot) -> bool:
        return self.start <= slot.start and slot.end <= self.end

    def __str__(self) -> str:
        return f"{minutes_to_time(self.start)}-{minutes_to_time(self.end)}"


class GenerationOptions(BaseModel):
    """Optional overrides for one generation request."""
    model_config = ConfigDict(extra="forbid")

    # Faculty limits (override per-faculty values when set)
    max_hours_per_week: Optional[float] = Field(default=None, gt=0)
    max_preparations: Optional[int] = Field(default=None, ge=1)

    # Room requirements
    minimum_capacity: Optional[int] = Field(default=None, ge=1)
    required_facilities: list[str] = Field(default_factory=list)

    # Hard time windows
    allowed_days: list[DayField] = Field(default_factory=list)
    allowed_time_range: Optional[TimeRange] = None

    # Soft time preferences
    preferred_days: list[DayField] = Field(default_factory=list)
    preferred_time_range: Optional[TimeRange] = None

    # Interaction with entries already in the term
    release_entry_ids: list[str] = Field(default_factory=list)
    include_scheduled: bool = False

    # Search budget (None = engine settings)
    max_trials: Optional[int] = Field(default=None, ge=1)
    max_backtracks: Optional[int] = Field(default=None, ge=0)
    time_limit_seconds: Optional[float] = Field(default=None, gt=0)


class GenerationRequest(BaseModel):
    """Request to generate draft entries for a term."""
    model_config = ConfigDict(extra="forbid")

    semester: str = Field(min_length=1)
    academic_year: str = Field(min_length=1)
    subject_ids: list[str] = Field(default_factory=list, description="Empty = every subject in scope")
    department_ids: list[str] = Field(default_factory=list)
    course_ids: list[str] = Field(default_factory=list)
    options: GenerationOptions = Field(default_factory=GenerationOptions)

    @property
    def term(self) -> Term:
        return Term(semester=self.semester, academic_year=self.academic_year)


class EntryPatch(BaseModel):
    """Partial update for a schedule entry; unset fields are left alone."""
    model_config = ConfigDict(extra="forbid")

    subject_id: Optional[str] = None
    faculty_id: Optional[str] = None
    classroom_id: Optional[str] = None
    timeslots: Optional[list[SlotField]] = None
    section: Optional[str] = None

    def changes(self) -> dict[str, Any]:
        return {name: getattr(self, name) for name in self.model_fields_set}


# =============================================================================
# Catalog Snapshot
# =============================================================================

class Catalog(BaseModel):
    """
    Reference data plus the schedule entries known at snapshot time.

    This is the immutable input a generation run works from.
    """
    model_config = ConfigDict(extra="forbid")

    departments: list[Department] = Field(default_factory=list)
    courses: list[Course] = Field(default_factory=list)
    faculty: list[Faculty] = Field(default_factory=list)
    classrooms: list[Classroom] = Field(default_factory=list)
    subjects: list[Subject] = Field(default_factory=list)
    entries: list[ScheduleEntry] = Field(default_factory=list)

    # Lookup caches (populated after validation)
    _department_map: dict[str, Department] = {}
    _course_map: dict[str, Course] = {}
    _faculty_map: dict[str, Faculty] = {}
    _classroom_map: dict[str, Classroom] = {}
    _subject_map: dict[str, Subject] = {}

    def model_post_init(self, __context: Any) -> None:
        """Build lookup maps after model initialization."""
        self._department_map = {d.id: d for d in self.departments}
        self._course_map = {c.id: c for c in self.courses}
        self._faculty_map = {f.id: f for f in self.faculty}
        self._classroom_map = {r.id: r for r in self.classrooms}
        self._subject_map = {s.id: s for s in self.subjects}

    @model_validator(mode="after")
    def validate_no_duplicate_ids(self) -> "Catalog":
        """Ensure no duplicate IDs within each entity type."""
        errors: list[str] = []

        def check_duplicates(items: list, entity_name: str) -> None:
            seen: set[str] = set()
            for item in items:
                if item.id is None:
                    continue
                if item.id in seen:
                    errors.append(f"Duplicate {entity_name} ID: '{item.id}'")
                seen.add(item.id)

        check_duplicates(self.departments, "department")
        check_duplicates(self.courses, "course")
        check_duplicates(self.faculty, "faculty")
        check_duplicates(self.classrooms, "classroom")
        check_duplicates(self.subjects, "subject")
        check_duplicates(self.entries, "entry")

        if errors:
            raise ValueError("Duplicate ID validation failed:\n" + "\n".join(f"  - {e}" for e in errors))
        return self

    # -------------------------------------------------------------------------
    # Lookup Methods
    # -------------------------------------------------------------------------

    def get_department(self, department_id: str) -> Optional[Department]:
        return self._department_map.get(department_id)

    def get_course(self, course_id: str) -> Optional[Course]:
        return self._course_map.get(course_id)

    def get_faculty(self, faculty_id: str) -> Optional[Faculty]:
        return self._faculty_map.get(faculty_id)

    def get_classroom(self, classroom_id: str) -> Optional[Classroom]:
        return self._classroom_map.get(classroom_id)

    def get_subject(self, subject_id: str) -> Optional[Subject]:
        return self._subject_map.get(subject_id)

    def subject_department_id(self, subject: Subject) -> Optional[str]:
        """The subject's own department, else its course's department."""
        if subject.department_id:
            return subject.department_id
        course = self.get_course(subject.course_id) if subject.course_id else None
        return course.department_id if course else None

    # -------------------------------------------------------------------------
    # Query Methods
    # -------------------------------------------------------------------------

    def entries_for_term(self, term: Term, include_archived: bool = False) -> list[ScheduleEntry]:
        return [
            e for e in self.entries
            if e.semester == term.semester
            and e.academic_year == term.academic_year
            and (include_archived or e.is_active)
        ]

    def reference_errors(
        self,
        subject_ids: Optional[list[str]] = None,
        term: Optional[Term] = None,
    ) -> list[str]:
        """
        Cross-entity reference problems.

        With no arguments the whole catalog is checked. ``subject_ids``
        narrows the check to those subjects with their courses and
        departments, and ``term`` to the active entries of that term;
        entries are only checked when ``term`` is given or nothing is
        narrowed.

        Returns an empty list when every reference resolves.
        """
        errors: list[str] = []
        department_ids = set(self._department_map)
        scoped = subject_ids is not None or term is not None

        if scoped:
            courses = []
        else:
            courses = list(self.courses)
            for faculty in self.faculty:
                if faculty.department_id not in department_ids:
                    errors.append(f"Faculty {faculty.id}: unknown department_id '{faculty.department_id}'")

        subjects = self.subjects
        if subject_ids is not None:
            subjects = []
            for subject_id in subject_ids:
                subject = self.get_subject(subject_id)
                if subject is None:
                    errors.append(f"Unknown subject_id '{subject_id}'")
                else:
                    subjects.append(subject)

        if scoped:
            course_ids = dict.fromkeys(s.course_id for s in subjects if s.course_id)
            courses = [self._course_map[i] for i in course_ids if i in self._course_map]

        for course in courses:
            if course.department_id not in department_ids:
                errors.append(f"Course {course.id}: unknown department_id '{course.department_id}'")

        for subject in subjects:
            if subject.course_id and subject.course_id not in self._course_map:
                errors.append(f"Subject {subject.id}: unknown course_id '{subject.course_id}'")
            if subject.department_id and subject.department_id not in department_ids:
                errors.append(f"Subject {subject.id}: unknown department_id '{subject.department_id}'")
            if self.subject_department_id(subject) is None:
                errors.append(
                    f"Subject {subject.id}: no department assigned to the subject or its course"
                )

        if term is not None:
            entries = self.entries_for_term(term)
        else:
            entries = [] if scoped else self.entries
        for entry in entries:
            if entry.subject_id not in self._subject_map:
                errors.append(f"Entry {entry.id}: unknown subject_id '{entry.subject_id}'")
            if entry.faculty_id not in self._faculty_map:
                errors.append(f"Entry {entry.id}: unknown faculty_id '{entry.faculty_id}'")
            if entry.classroom_id not in self._classroom_map:
                errors.append(f"Entry {entry.id}: unknown classroom_id '{entry.classroom_id}'")

        return errors

    def summary(self) -> dict[str, Any]:
        """Get a summary of the catalog."""
        return {
            "departments": len(self.departments),
            "courses": len(self.courses),
            "faculty": len(self.faculty),
            "active_faculty": sum(1 for f in self.faculty if f.is_active),
            "classrooms": len(self.classrooms),
            "available_classrooms": sum(1 for r in self.classrooms if r.is_available),
            "subjects": len(self.subjects),
            "entries": len(self.entries),
            "total_subject_hours": sum(s.total_hours for s in self.subjects),
        }
