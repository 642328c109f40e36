"""
Sample catalog generator.

Generates realistic college catalogs for demos and tests, with
configurable size. The same seed always yields the same catalog.

Usage:
    from schedule_engine.data.generator import generate_sample_catalog, generate_small_catalog

    catalog = generate_sample_catalog(GeneratorConfig(faculty_per_department=6))
    small = generate_small_catalog()
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Union

from ..timemodel import WEEKDAYS, TimeSlot
from .loader import save_catalog
from .models import (
    Catalog,
    Classroom,
    ClassroomType,
    Course,
    Department,
    EmploymentType,
    Faculty,
    Subject,
)


# =============================================================================
# Name Data
# =============================================================================

FIRST_NAMES = [
    "Maria", "Jose", "Ana", "Juan", "Carmen", "Pedro", "Rosa", "Miguel",
    "Elena", "Ramon", "Grace", "Daniel", "Patricia", "Mark", "Teresa", "Paolo",
    "Cristina", "Rafael", "Angela", "Victor", "Liza", "Noel", "Joy", "Allan",
]

LAST_NAMES = [
    "Santos", "Reyes", "Cruz", "Bautista", "Garcia", "Mendoza", "Torres", "Ramos",
    "Flores", "Villanueva", "Castillo", "Aquino", "Navarro", "Domingo", "Salazar",
    "Mercado", "Aguilar", "Dela Cruz", "Pascual", "Soriano", "Manalo", "Valdez",
]


# =============================================================================
# Department Definitions
# =============================================================================

DEPARTMENTS = [
    {
        "code": "CCS", "name": "College of Computer Studies",
        "course": ("BSIT", "Bachelor of Science in Information Technology"),
        "subjects": [
            ("IT101", "Introduction to Computing", 2, 0.75),
            ("IT102", "Computer Programming 1", 2, 0.75),
            ("IT103", "Discrete Mathematics", 3, 0),
            ("IT104", "Data Structures and Algorithms", 2, 0.75),
            ("IT105", "Information Management", 2, 0.75),
            ("IT106", "Networking Fundamentals", 0, 2.25),
            ("IT107", "Human Computer Interaction", 3, 0),
            ("IT108", "Systems Analysis and Design", 3, 0),
        ],
    },
    {
        "code": "CBA", "name": "College of Business Administration",
        "course": ("BSBA", "Bachelor of Science in Business Administration"),
        "subjects": [
            ("BA101", "Principles of Management", 3, 0),
            ("BA102", "Financial Accounting", 3, 0),
            ("BA103", "Business Statistics", 3, 0),
            ("BA104", "Marketing Management", 3, 0),
            ("BA105", "Business Law", 3, 0),
            ("BA106", "Accounting Information Systems", 2, 0.75),
            ("BA107", "Operations Management", 3, 0),
            ("BA108", "Human Resource Management", 3, 0),
        ],
    },
    {
        "code": "CAS", "name": "College of Arts and Sciences",
        "course": ("BSBIO", "Bachelor of Science in Biology"),
        "subjects": [
            ("BIO101", "General Biology", 2, 0.75),
            ("BIO102", "General Chemistry", 2, 0.75),
            ("BIO103", "Biostatistics", 3, 0),
            ("BIO104", "Cell Biology", 2, 0.75),
            ("BIO105", "Genetics", 3, 0),
            ("BIO106", "Ecology", 3, 0),
            ("BIO107", "Microbiology", 2, 1.5),
            ("BIO108", "Scientific Writing", 3, 0),
        ],
    },
]

BUILDINGS = ["Main Building", "Science Hall", "Technology Center"]


# =============================================================================
# Generator Configuration
# =============================================================================

@dataclass
class GeneratorConfig:
    """Configuration for catalog generation.

    The defaults produce a feasible catalog: each department's subject
    hours fit well inside its faculty's combined max_load, and there are
    enough lab rooms for the lab-bearing subjects.
    """
    # Entity counts
    num_departments: int = 2
    faculty_per_department: int = 4
    subjects_per_department: int = 6
    lecture_rooms: int = 6
    laboratory_rooms: int = 2
    computer_labs: int = 1

    # Faculty settings
    part_time_ratio: float = 0.25
    min_load: float = 18.0
    max_load: float = 26.0
    max_preparations: int = 4

    # Room settings
    capacity_min: int = 30
    capacity_max: int = 50
    lab_capacity_min: int = 25
    lab_capacity_max: int = 40

    # Enrollment
    enrollment_min: int = 20
    enrollment_max: int = 30  # <= capacity_min

    # Term
    semester: str = "1st Semester"
    academic_year: str = "2024-2025"

    # Randomization
    seed: Optional[int] = 42


# =============================================================================
# Generator Functions
# =============================================================================

def generate_sample_catalog(config: GeneratorConfig | None = None) -> Catalog:
    """
    Generate a sample catalog.

    Args:
        config: Generator configuration (uses defaults if None)

    Returns:
        Catalog with departments, courses, faculty, classrooms and subjects
    """
    if config is None:
        config = GeneratorConfig()
    rng = random.Random(config.seed)

    definitions = DEPARTMENTS[: max(1, min(config.num_departments, len(DEPARTMENTS)))]
    departments = [
        Department(id=f"dept-{d['code'].lower()}", name=d["name"], code=d["code"])
        for d in definitions
    ]
    courses = [
        Course(
            id=f"course-{d['course'][0].lower()}",
            code=d["course"][0],
            name=d["course"][1],
            department_id=dept.id,
        )
        for d, dept in zip(definitions, departments)
    ]

    return Catalog(
        departments=departments,
        courses=courses,
        faculty=_generate_faculty(config, departments, rng),
        classrooms=_generate_classrooms(config, rng),
        subjects=_generate_subjects(config, definitions, courses, rng),
    )


def generate_small_catalog(seed: int | None = 42) -> Catalog:
    """One department, three faculty, five subjects."""
    return generate_sample_catalog(GeneratorConfig(
        num_departments=1,
        faculty_per_department=3,
        subjects_per_department=5,
        lecture_rooms=3,
        laboratory_rooms=1,
        computer_labs=1,
        seed=seed,
    ))


def generate_large_catalog(seed: int | None = 42) -> Catalog:
    """Three departments with full subject lists."""
    return generate_sample_catalog(GeneratorConfig(
        num_departments=3,
        faculty_per_department=6,
        subjects_per_department=8,
        lecture_rooms=10,
        laboratory_rooms=4,
        computer_labs=2,
        seed=seed,
    ))


def _generate_faculty(
    config: GeneratorConfig,
    departments: list[Department],
    rng: random.Random,
) -> list[Faculty]:
    faculty = []
    n = 0
    for dept in departments:
        for _ in range(config.faculty_per_department):
            n += 1
            first = rng.choice(FIRST_NAMES)
            last = rng.choice(LAST_NAMES)
            part_time = rng.random() < config.part_time_ratio
            faculty.append(Faculty(
                id=f"fac-{n:03d}",
                name=f"{first} {last}",
                email=f"{first.lower()}.{last.lower().replace(' ', '')}{n}@college.edu",
                department_id=dept.id,
                employment_type=EmploymentType.PART_TIME if part_time else EmploymentType.FULL_TIME,
                min_load=0 if part_time else config.min_load,
                max_load=12 if part_time else config.max_load,
                max_preparations=2 if part_time else config.max_preparations,
                availability=_part_time_windows(rng) if part_time else [],
            ))
    return faculty


def _part_time_windows(rng: random.Random) -> list[TimeSlot]:
    """Three weekdays, either mornings or afternoons."""
    days = sorted(rng.sample(list(WEEKDAYS), 3), key=lambda d: d.week_index)
    if rng.random() < 0.5:
        start, end = "08:00", "12:00"
    else:
        start, end = "13:00", "18:00"
    return [TimeSlot(day, start, end) for day in days]


def _generate_classrooms(config: GeneratorConfig, rng: random.Random) -> list[Classroom]:
    rooms = []

    def add(prefix: str, count: int, room_type: ClassroomType, cap_min: int, cap_max: int,
            facilities: list[str]) -> None:
        for i in range(1, count + 1):
            rooms.append(Classroom(
                id=f"room-{prefix.lower()}{i:02d}",
                room_number=f"{prefix}{100 + i}",
                building=BUILDINGS[len(rooms) % len(BUILDINGS)],
                capacity=rng.randint(cap_min, cap_max),
                type=room_type,
                facilities=facilities,
            ))

    add("L", config.lecture_rooms, ClassroomType.LECTURE,
        config.capacity_min, config.capacity_max, ["projector", "whiteboard"])
    add("SL", config.laboratory_rooms, ClassroomType.LABORATORY,
        config.lab_capacity_min, config.lab_capacity_max, ["lab-benches", "fume-hood"])
    add("CL", config.computer_labs, ClassroomType.COMPUTER_LAB,
        config.lab_capacity_min, config.lab_capacity_max, ["computers", "projector"])
    return rooms


def _generate_subjects(
    config: GeneratorConfig,
    definitions: list[dict],
    courses: list[Course],
    rng: random.Random,
) -> list[Subject]:
    subjects = []
    for definition, course in zip(definitions, courses):
        for code, name, lecture_units, lab_units in definition["subjects"][: config.subjects_per_department]:
            # lab sections are capped at the smallest lab
            most = config.lab_capacity_min if lab_units else config.enrollment_max
            subjects.append(Subject(
                id=f"subj-{code.lower()}",
                code=code,
                name=name,
                lecture_units=lecture_units,
                lab_units=lab_units,
                course_id=course.id,
                year_level="1st Year",
                semester=config.semester,
                expected_enrollment=rng.randint(min(config.enrollment_min, most), most),
            ))
    return subjects


# =============================================================================
# Utilities
# =============================================================================

def save_generated_catalog(catalog: Catalog, path: Union[str, Path]) -> None:
    save_catalog(catalog, path)


def get_generation_stats(catalog: Catalog) -> dict[str, Any]:
    """Capacity figures that indicate whether the catalog is feasible."""
    stats = catalog.summary()
    by_department: dict[str, dict[str, float]] = {}
    for dept in catalog.departments:
        hours = sum(
            s.total_hours for s in catalog.subjects
            if catalog.subject_department_id(s) == dept.id
        )
        capacity = sum(f.max_load for f in catalog.faculty if f.department_id == dept.id)
        by_department[dept.id] = {
            "subject_hours": round(hours, 2),
            "faculty_capacity": capacity,
            "utilization": round(100 * hours / capacity, 1) if capacity else 0.0,
        }
    stats["lab_subjects"] = sum(1 for s in catalog.subjects if s.requires_lab)
    stats["lab_rooms"] = sum(1 for r in catalog.classrooms if r.is_lab)
    stats["by_department"] = by_department
    return stats
