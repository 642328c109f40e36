"""Load and validate catalog data from JSON files."""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any, Union

from pydantic import ValidationError

from ..errors import DataValidationError
from .models import Catalog

# Field names used by the web client, keyed by catalog section
FIELD_ALIASES: dict[str, dict[str, str]] = {
    "departments": {"department_name": "name", "department_code": "code"},
    "courses": {"course_code": "code", "course_name": "name", "department": "department_id"},
    "faculty": {"department": "department_id", "availability_windows": "availability"},
    "subjects": {
        "subject_code": "code",
        "subject_name": "name",
        "course": "course_id",
        "department": "department_id",
    },
    "entries": {
        "time_slots": "timeslots",
        "subject": "subject_id",
        "faculty": "faculty_id",
        "classroom": "classroom_id",
        "department": "department_id",
    },
}

SECTION_ALIASES = {"schedules": "entries", "rooms": "classrooms"}


def to_snake_case(name: str) -> str:
    name = re.sub(r"([A-Z]+)([A-Z][a-z])", r"\1_\2", name)
    name = re.sub(r"([a-z\d])([A-Z])", r"\1_\2", name)
    return name.lower()


def _convert_keys_to_snake_case(obj: Any) -> Any:
    """Recursively convert dictionary keys from camelCase to snake_case."""
    if isinstance(obj, dict):
        return {to_snake_case(k): _convert_keys_to_snake_case(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_convert_keys_to_snake_case(item) for item in obj]
    return obj


def normalize_catalog_data(data: dict) -> dict:
    """snake_case keys, canonical section names and field aliases applied."""
    converted = _convert_keys_to_snake_case(data)
    normalized: dict[str, Any] = {}
    for section, items in converted.items():
        section = SECTION_ALIASES.get(section, section)
        aliases = FIELD_ALIASES.get(section, {})
        if aliases and isinstance(items, list):
            items = [
                {aliases.get(k, k): v for k, v in item.items()} if isinstance(item, dict) else item
                for item in items
            ]
        normalized[section] = items
    return normalized


def catalog_from_dict(data: dict) -> Catalog:
    """
    Build a Catalog from raw data and check cross references.

    Raises:
        DataValidationError: If structure or references are invalid
    """
    if not isinstance(data, dict):
        raise DataValidationError("Catalog data must be a JSON object")
    try:
        catalog = Catalog.model_validate(normalize_catalog_data(data))
    except ValidationError as exc:
        errors = [
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
            for err in exc.errors()
        ]
        raise DataValidationError(
            "Catalog validation failed:\n" + "\n".join(f"  - {e}" for e in errors),
            details={"errors": errors},
        ) from exc

    validate_catalog(catalog)
    return catalog


def validate_catalog(catalog: Catalog) -> None:
    """
    Validate catalog references.

    Raises:
        DataValidationError: If any reference does not resolve
    """
    errors = catalog.reference_errors()
    if errors:
        raise DataValidationError(
            "Catalog reference validation failed:\n" + "\n".join(f"  - {e}" for e in errors),
            details={"errors": errors},
        )


def load_catalog(path: Union[str, Path]) -> Catalog:
    """
    Load a catalog from a JSON file.

    Args:
        path: Path to the JSON file

    Returns:
        Validated Catalog

    Raises:
        FileNotFoundError: If the file doesn't exist
        json.JSONDecodeError: If the file isn't valid JSON
        DataValidationError: If the data fails validation
    """
    path = Path(path)
    with open(path) as f:
        data = json.load(f)
    return catalog_from_dict(data)


def save_catalog(catalog: Catalog, path: Union[str, Path], indent: int = 2) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        json.dump(catalog.model_dump(mode="json"), f, indent=indent)
