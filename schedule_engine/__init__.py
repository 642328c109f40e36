"""Schedule Engine - conflict detection and constraint-ordered timetable generation."""

from .conflicts import ConflictDetector
from .constraints import Conflict, ConstraintKind
from .lifecycle import ScheduleLifecycleManager
from .search import AssignmentSearch, GenerationResult, GenerationStatus
from .service import SchedulingService
from .cli import app as cli_app

__version__ = "0.1.0"

__all__ = [
    # Detection
    "Conflict",
    "ConflictDetector",
    "ConstraintKind",
    # Generation
    "AssignmentSearch",
    "GenerationResult",
    "GenerationStatus",
    # Lifecycle
    "ScheduleLifecycleManager",
    "SchedulingService",
    # CLI
    "cli_app",
]
