"""
LearnPath: learning-module catalog and progress tracker.

Quick start:
    from learnpath import load_catalog, ProgressTracker
    from learnpath.utils.progress import overall_completion_ratio

    catalog = load_catalog()
    tracker = ProgressTracker(learner_id="learner-alice")
    tracker.mark_complete("ex-2.1", catalog)
    overall_completion_ratio(catalog, tracker)
"""

from .exceptions import (
    LearnPathError,
    MalformedCatalogError,
    NotFoundError,
    ProgressStoreError,
    UnknownExerciseError,
)
from .models import Catalog, Exercise, Module, ProgressRecord, ProgressTracker, load_catalog
from .orchestrator import LearningSession

__version__ = "0.1.0"

__all__ = [
    "Catalog",
    "Exercise",
    "Module",
    "load_catalog",
    "ProgressRecord",
    "ProgressTracker",
    "LearningSession",
    "LearnPathError",
    "MalformedCatalogError",
    "NotFoundError",
    "UnknownExerciseError",
    "ProgressStoreError",
]
