"""Data models, loading utilities and storage."""

from .loader import catalog_from_dict, load_catalog, save_catalog, validate_catalog
from .generator import (
    GeneratorConfig,
    generate_large_catalog,
    generate_sample_catalog,
    generate_small_catalog,
    get_generation_stats,
    save_generated_catalog,
)
from .repository import CatalogReader, InMemoryRepository, ScheduleRepository

__all__ = [
    # Loader
    "catalog_from_dict",
    "load_catalog",
    "save_catalog",
    "validate_catalog",
    # Generator
    "GeneratorConfig",
    "generate_sample_catalog",
    "generate_small_catalog",
    "generate_large_catalog",
    "save_generated_catalog",
    "get_generation_stats",
    # Storage
    "CatalogReader",
    "InMemoryRepository",
    "ScheduleRepository",
]
