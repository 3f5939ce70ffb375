"""
Data models for learning progress.

This module contains core data models:
- Catalog, Module, Exercise: the read-only catalog store
- ProgressTracker, ProgressRecord: a learner's completion state
"""

from .catalog import Catalog, Exercise, Module, load_catalog
from .progress import ProgressRecord, ProgressTracker

__all__ = [
    "Catalog",
    "Exercise",
    "Module",
    "load_catalog",
    "ProgressRecord",
    "ProgressTracker",
]
