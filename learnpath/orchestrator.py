"""
Learning session: one learner working through one catalog.

Binds together:
1. The catalog (read-only)
2. The learner's ProgressTracker
3. An optional ProgressStore, saved after every change when autosave is on

Sessions are created and passed around explicitly; there is no global
session or tracker.
"""

from __future__ import annotations

import logging
from fractions import Fraction
from typing import Any, Optional

from .config import config
from .models.catalog import Catalog, CatalogSource, Exercise, load_catalog
from .models.progress import Clock, ProgressTracker
from .utils.persistence import JsonFileProgressStore, ProgressStore
from .utils.progress import (
    CompletedExercises,
    list_completed_exercises,
    module_completion_ratio,
    next_incomplete_exercise,
    overall_completion_ratio,
    progress_summary,
)

logger = logging.getLogger(__name__)


class LearningSession:
    """
    Facade over a catalog, a learner's tracker and their progress store.

    Usage:
        session = LearningSession.open("learner-alice")
        session.complete("ex-2.1")
        print(session.next_exercise())
        print(session.summary()["overall"]["percent"])
    """

    def __init__(
        self,
        catalog: Catalog,
        tracker: ProgressTracker,
        store: Optional[ProgressStore] = None,
        autosave: Optional[bool] = None,
    ):
        """
        Initialize the session.

        Args:
            catalog: Loaded catalog
            tracker: The learner's progress tracker
            store: Where progress is persisted (None keeps it in memory only)
            autosave: Save after every change (defaults to config.progress.autosave)
        """
        self.catalog = catalog
        self.tracker = tracker
        self.store = store
        self.autosave = config.progress.autosave if autosave is None else autosave

    @classmethod
    def open(
        cls,
        learner_id: str,
        catalog: Optional[Catalog] = None,
        catalog_source: CatalogSource = None,
        store: Optional[ProgressStore] = None,
        clock: Optional[Clock] = None,
        autosave: Optional[bool] = None,
    ) -> LearningSession:
        """
        Open a session, restoring the learner's saved progress.

        Records for exercises the catalog no longer contains are pruned and
        the cleaned progress is saved back.

        Args:
            learner_id: Learner identifier
            catalog: Already loaded catalog (takes precedence over catalog_source)
            catalog_source: Source passed to load_catalog when catalog is None
            store: Progress store (default: JSON file under data/progress/)
            clock: Clock for completion timestamps
            autosave: Save after every change

        Returns:
            LearningSession instance
        """
        if catalog is None:
            catalog = load_catalog(catalog_source)
        if store is None:
            store = JsonFileProgressStore(learner_id)

        saved = store.load()
        tracker = ProgressTracker.from_mapping(saved, learner_id=learner_id, catalog=catalog, clock=clock)
        session = cls(catalog, tracker, store=store, autosave=autosave)

        if len(tracker) != len(saved):
            session._persist()

        logger.info(
            "Opened session for %s: %d/%d exercises complete",
            learner_id,
            len(tracker),
            len(catalog),
        )
        return session

    @property
    def learner_id(self) -> str:
        """Learner identifier."""
        return self.tracker.learner_id

    # ==================== Progress changes ====================

    def complete(self, exercise_id: str) -> Exercise:
        """
        Mark an exercise complete and persist.

        Returns:
            The completed exercise

        Raises:
            UnknownExerciseError: If the catalog has no such exercise
        """
        self.tracker.mark_complete(exercise_id, self.catalog)
        self._persist()
        return self.catalog.get_exercise(exercise_id)

    def reopen(self, exercise_id: str) -> None:
        """Mark an exercise incomplete again and persist."""
        self.tracker.mark_incomplete(exercise_id)
        self._persist()

    def replace_catalog(self, catalog: Catalog) -> list[str]:
        """
        Switch to a new catalog definition, pruning orphaned progress.

        Returns:
            Exercise ids whose records were removed
        """
        self.catalog = catalog
        removed = self.tracker.prune(catalog)
        if removed:
            self._persist()
        return removed

    def save(self) -> None:
        """Persist progress now, regardless of autosave."""
        if self.store is None:
            return
        self.store.save(self.tracker.snapshot())

    def _persist(self) -> None:
        if self.autosave:
            self.save()

    # ==================== Queries ====================

    def next_exercise(self) -> Optional[Exercise]:
        """Next exercise to work on, or None when everything is complete."""
        return next_incomplete_exercise(self.catalog, self.tracker)

    def module_ratio(self, module_id: str) -> Fraction:
        """Completion ratio for one module."""
        return module_completion_ratio(module_id, self.catalog, self.tracker)

    def overall_ratio(self) -> Fraction:
        """Completion ratio for the whole catalog."""
        return overall_completion_ratio(self.catalog, self.tracker)

    def completed_exercises(self) -> CompletedExercises:
        """Completed exercises in catalog order."""
        return list_completed_exercises(self.catalog, self.tracker)

    def summary(self) -> dict[str, Any]:
        """Dashboard summary including the learner id."""
        return {"learner_id": self.learner_id, **progress_summary(self.catalog, self.tracker)}

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"LearningSession(learner_id={self.learner_id}, "
            f"completed={len(self.tracker)}/{len(self.catalog)})"
        )
