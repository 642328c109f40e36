"""
Exception hierarchy for the scheduling engine.

Every failure raised by detection, search or the lifecycle manager is a
``SchedulingError`` carrying a human-readable message and a ``details``
dictionary, so callers can decide on remediation without parsing strings.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional, Union

if TYPE_CHECKING:
    from .constraints.core import Conflict


class SchedulingError(Exception):
    """Base class for all engine exceptions."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class InvalidRange(SchedulingError, ValueError):
    """Raised when a time slot has ``start >= end`` or leaves the day."""


class ReferenceDataError(SchedulingError):
    """
    Raised when reference data is missing or malformed.

    For example a subject pointing at a department that does not exist. This
    aborts the request that hit it, never the engine.
    """


class DataValidationError(SchedulingError):
    """Raised when a catalog file fails structural validation."""


class ConflictError(SchedulingError):
    """
    One or more hard-constraint violations.

    ``conflicts`` is either a flat list (single candidate) or a mapping from
    entry id to that entry's conflicts (batch operations such as publish).
    """

    def __init__(
        self,
        message: str,
        conflicts: Union[list[Conflict], dict[str, list[Conflict]]],
    ):
        self.conflicts = conflicts
        super().__init__(message, details={"conflicts": _conflicts_to_dicts(conflicts)})

    @property
    def all_conflicts(self) -> list[Conflict]:
        """Flatten the conflicts regardless of shape."""
        if isinstance(self.conflicts, dict):
            return [c for group in self.conflicts.values() for c in group]
        return list(self.conflicts)


class InfeasibleError(SchedulingError):
    """Generation could not place a single subject."""


class StaleCommitError(SchedulingError):
    """The term changed between snapshot and write; retry the commit."""

    def __init__(self, message: str, expected_version: int, actual_version: int):
        self.expected_version = expected_version
        self.actual_version = actual_version
        super().__init__(
            message,
            details={"expected_version": expected_version, "actual_version": actual_version},
        )


class EntryNotFoundError(SchedulingError):
    """A schedule entry id does not exist in the repository."""

    def __init__(self, entry_id: str):
        self.entry_id = entry_id
        super().__init__(f"Schedule entry '{entry_id}' not found", details={"entry_id": entry_id})


class InvalidTransitionError(SchedulingError):
    """A lifecycle operation is not allowed from the entry's current status."""


def _conflicts_to_dicts(
    conflicts: Union[list[Conflict], dict[str, list[Conflict]]],
) -> Union[list[dict[str, Any]], dict[str, list[dict[str, Any]]]]:
    if isinstance(conflicts, dict):
        return {key: [c.to_dict() for c in group] for key, group in conflicts.items()}
    return [c.to_dict() for c in conflicts]
