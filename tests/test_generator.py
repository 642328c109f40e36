"""Tests for the sample catalog generator."""

from schedule_engine.data.generator import (
    GeneratorConfig,
    generate_large_catalog,
    generate_sample_catalog,
    generate_small_catalog,
    get_generation_stats,
    save_generated_catalog,
)
from schedule_engine.data.loader import load_catalog
from schedule_engine.data.models import EmploymentType, GenerationRequest
from schedule_engine.search import AssignmentSearch, GenerationStatus


class TestGenerateSampleCatalog:
    """Tests for generate_sample_catalog."""

    def test_default_sizes(self):
        catalog = generate_sample_catalog()
        assert len(catalog.departments) == 2
        assert len(catalog.courses) == 2
        assert len(catalog.faculty) == 8
        assert len(catalog.subjects) == 12
        assert len(catalog.classrooms) == 9
        assert catalog.entries == []

    def test_references_resolve(self):
        catalog = generate_sample_catalog()
        assert catalog.reference_errors() == []

    def test_same_seed_same_catalog(self):
        first = generate_sample_catalog(GeneratorConfig(seed=7))
        second = generate_sample_catalog(GeneratorConfig(seed=7))
        assert first.model_dump() == second.model_dump()

    def test_different_seed_differs(self):
        first = generate_sample_catalog(GeneratorConfig(seed=1))
        second = generate_sample_catalog(GeneratorConfig(seed=2))
        assert first.model_dump() != second.model_dump()

    def test_part_timers_have_windows(self):
        catalog = generate_sample_catalog(GeneratorConfig(part_time_ratio=1.0))
        for faculty in catalog.faculty:
            assert faculty.employment_type == EmploymentType.PART_TIME
            assert len(faculty.availability) == 3
            assert faculty.max_load == 12

    def test_ids(self):
        catalog = generate_sample_catalog()
        assert catalog.departments[0].id == "dept-ccs"
        assert catalog.faculty[0].id == "fac-001"
        assert catalog.get_subject("subj-it101") is not None
        assert catalog.get_classroom("room-l01") is not None
        assert catalog.get_classroom("room-cl01").is_lab

    def test_lab_enrollment_fits_labs(self):
        catalog = generate_large_catalog()
        smallest_lab = min(r.capacity for r in catalog.classrooms if r.is_lab)
        for subject in catalog.subjects:
            if subject.requires_lab:
                assert subject.expected_enrollment <= smallest_lab


class TestPresets:
    def test_small(self):
        catalog = generate_small_catalog()
        assert len(catalog.departments) == 1
        assert len(catalog.faculty) == 3
        assert len(catalog.subjects) == 5

    def test_large(self):
        catalog = generate_large_catalog()
        assert len(catalog.departments) == 3
        assert len(catalog.subjects) == 24

    def test_small_catalog_is_schedulable(self, settings):
        catalog = generate_small_catalog()
        request = GenerationRequest(semester="1st Semester", academic_year="2024-2025")
        result = AssignmentSearch(catalog, request, settings).run()
        assert result.status == GenerationStatus.SATISFIED


class TestUtilities:
    def test_save_and_reload(self, tmp_path):
        catalog = generate_small_catalog()
        path = tmp_path / "sample.json"
        save_generated_catalog(catalog, path)
        assert load_catalog(path).model_dump() == catalog.model_dump()

    def test_stats(self):
        stats = get_generation_stats(generate_small_catalog())
        assert stats["subjects"] == 5
        assert stats["lab_rooms"] == 2
        assert stats["lab_subjects"] == 4
        dept = stats["by_department"]["dept-ccs"]
        assert dept["subject_hours"] == 15.0
        assert dept["subject_hours"] < dept["faculty_capacity"]
