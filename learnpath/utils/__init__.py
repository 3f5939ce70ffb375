"""
Utility modules for LearnPath.

This module contains utility functions:
- validation: JSON Schema validation plus catalog/progress domain checks
- progress: Read-only completion queries and summaries
- persistence: Progress stores (in-memory, JSON file)
"""

from .validation import (
    CatalogValidator,
    ProgressValidator,
    ValidationResult,
    validate_catalog,
    validate_progress,
)
from .progress import (
    completion_by_difficulty,
    completion_percent,
    list_completed_exercises,
    module_completion_ratio,
    next_incomplete_exercise,
    overall_completion_ratio,
    progress_summary,
)
from .persistence import (
    InMemoryProgressStore,
    JsonFileProgressStore,
    ProgressStore,
    list_saved_learners,
)

__all__ = [
    # Validation
    "CatalogValidator",
    "ProgressValidator",
    "ValidationResult",
    "validate_catalog",
    "validate_progress",
    # Progress queries
    "module_completion_ratio",
    "overall_completion_ratio",
    "next_incomplete_exercise",
    "list_completed_exercises",
    "completion_percent",
    "completion_by_difficulty",
    "progress_summary",
    # Persistence
    "ProgressStore",
    "InMemoryProgressStore",
    "JsonFileProgressStore",
    "list_saved_learners",
]
