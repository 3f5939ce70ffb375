"""
Progress queries: read-only views over a catalog and a learner's progress.

Provides:
- Module and overall completion ratios (exact fractions in [0, 1])
- The next exercise to work on, in catalog order
- The completed exercises, in catalog order
- Summary helpers for dashboards and reporting

Every function accepts either a ProgressTracker or a plain
``exercise_id -> completed_at`` mapping and reads a single snapshot, so
one call never mixes states from before and after a concurrent mutation.
Nothing here mutates the catalog or the progress.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from fractions import Fraction
from typing import TYPE_CHECKING, Iterator, Optional, Union

if TYPE_CHECKING:
    from ..models.catalog import Catalog, Exercise
    from ..models.progress import ProgressTracker

Progress = Union["ProgressTracker", Mapping[str, datetime]]

DIFFICULTY_ORDER = ("beginner", "intermediate", "advanced")


def _completed(progress: Progress) -> Mapping[str, datetime]:
    """Take one consistent snapshot of the progress map."""
    if isinstance(progress, Mapping):
        return progress
    return progress.snapshot()


def module_completion_ratio(module_id: str, catalog: Catalog, progress: Progress) -> Fraction:
    """
    Fraction of a module's exercises that are complete.

    Args:
        module_id: Module identifier
        catalog: Catalog
        progress: Tracker or progress map

    Returns:
        Fraction in [0, 1]

    Raises:
        NotFoundError: If the module is unknown

    Example:
        >>> module_completion_ratio("ch03-shapes", catalog, {"ex-3.1": now})
        Fraction(1, 2)
    """
    module = catalog.get_module(module_id)
    completed = _completed(progress)
    done = sum(1 for exercise in module.exercises if exercise.id in completed)
    # Modules always own at least one exercise
    return Fraction(done, len(module.exercises))


def overall_completion_ratio(catalog: Catalog, progress: Progress) -> Fraction:
    """
    Fraction of all catalog exercises that are complete.

    Records for exercises outside the catalog are ignored.
    """
    completed = _completed(progress)
    done = sum(1 for exercise in catalog.iter_exercises() if exercise.id in completed)
    return Fraction(done, len(catalog))


def next_incomplete_exercise(catalog: Catalog, progress: Progress) -> Optional[Exercise]:
    """First exercise in catalog order without a record, or None if all are complete."""
    completed = _completed(progress)
    for exercise in catalog.iter_exercises():
        if exercise.id not in completed:
            return exercise
    return None


class CompletedExercises:
    """
    Lazy, restartable view of completed exercises in catalog order.

    Each iteration reads a fresh snapshot of the progress, so iterating
    again after more exercises are completed reflects the new state.
    """

    def __init__(self, catalog: Catalog, progress: Progress):
        self._catalog = catalog
        self._progress = progress

    def __iter__(self) -> Iterator[Exercise]:
        completed = _completed(self._progress)
        for exercise in self._catalog.iter_exercises():
            if exercise.id in completed:
                yield exercise

    def __repr__(self) -> str:
        return f"CompletedExercises({[exercise.id for exercise in self]})"


def list_completed_exercises(catalog: Catalog, progress: Progress) -> CompletedExercises:
    """
    Completed exercises in catalog order.

    Returns:
        A re-iterable view; wrap in list() to materialize
    """
    return CompletedExercises(catalog, progress)


def completion_percent(ratio: Fraction) -> float:
    """
    Convert a completion ratio to a display percentage.

    Example:
        >>> completion_percent(Fraction(1, 3))
        33.33
    """
    return round(float(ratio) * 100, 2)


def completion_by_difficulty(catalog: Catalog, progress: Progress) -> dict[str, dict[str, int]]:
    """
    Completed and total exercise counts per difficulty level.

    Only difficulty levels present in the catalog are reported, easiest first.

    Example:
        >>> completion_by_difficulty(catalog, tracker)
        {'beginner': {'completed': 2, 'total': 5}, 'intermediate': {'completed': 0, 'total': 2}}
    """
    completed = _completed(progress)
    counts: dict[str, dict[str, int]] = {}

    for exercise in catalog.iter_exercises():
        bucket = counts.setdefault(exercise.difficulty, {"completed": 0, "total": 0})
        bucket["total"] += 1
        if exercise.id in completed:
            bucket["completed"] += 1

    return {level: counts[level] for level in DIFFICULTY_ORDER if level in counts}


def progress_summary(catalog: Catalog, progress: Progress) -> dict:
    """
    Per-module and overall completion, for dashboards.

    Args:
        catalog: Catalog
        progress: Tracker or progress map

    Returns:
        Dict with "modules" (one entry per module, in order), "overall",
        "next_exercise_id" and "by_difficulty"
    """
    completed = dict(_completed(progress))

    modules = []
    for module in catalog.list_modules_in_order():
        ratio = module_completion_ratio(module.id, catalog, completed)
        modules.append(
            {
                "id": module.id,
                "title": module.title,
                "order": module.order,
                "completed": sum(1 for exercise_id in module.exercise_ids if exercise_id in completed),
                "total": len(module.exercises),
                "percent": completion_percent(ratio),
            }
        )

    overall = overall_completion_ratio(catalog, completed)
    next_exercise = next_incomplete_exercise(catalog, completed)

    return {
        "modules": modules,
        "overall": {
            "completed": sum(entry["completed"] for entry in modules),
            "total": len(catalog),
            "percent": completion_percent(overall),
        },
        "next_exercise_id": next_exercise.id if next_exercise else None,
        "by_difficulty": completion_by_difficulty(catalog, completed),
    }
