"""
Progress Tracker: a learner's completion state, one record per exercise.

Each exercise is either incomplete (no record) or complete (a record
holding the first completion time). Both transitions are idempotent.
The tracker is the only mutable component and is safe to share between
threads: mutations are serialized by a per-instance lock and reads copy
the progress map under the same lock.
"""

from __future__ import annotations

import logging
import threading
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Mapping, Optional

from ..exceptions import ProgressStoreError, UnknownExerciseError
from ..utils.validation import ProgressValidator, parse_timestamp
from .catalog import Catalog

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class ProgressRecord:
    """Completion marker for one exercise."""

    exercise_id: str
    completed_at: datetime


class ProgressTracker:
    """
    Per-learner record of completed exercises.

    Thread-safe for concurrent access. All mutations acquire the lock.
    """

    _validator: Optional[ProgressValidator] = None

    def __init__(
        self,
        learner_id: Optional[str] = None,
        clock: Optional[Clock] = None,
    ):
        """
        Create an empty tracker.

        Args:
            learner_id: Learner identifier (auto-generated if None)
            clock: Callable returning the completion time (defaults to UTC now)
        """
        self.learner_id = learner_id or self._generate_id()
        self._clock = clock or utc_now
        self._lock = threading.Lock()
        self._completed: dict[str, datetime] = {}

    @staticmethod
    def _generate_id() -> str:
        """Generate unique learner ID."""
        return f"learner-{uuid.uuid4()}"

    @classmethod
    def _get_validator(cls) -> ProgressValidator:
        """Get cached validator instance."""
        if cls._validator is None:
            cls._validator = ProgressValidator()
        return cls._validator

    def _now(self) -> datetime:
        stamp = self._clock()
        if stamp.tzinfo is None:
            stamp = stamp.replace(tzinfo=timezone.utc)
        return stamp

    # ==================== State transitions ====================

    def mark_complete(self, exercise_id: str, catalog: Catalog) -> None:
        """
        Mark an exercise complete.

        Marking an already complete exercise keeps its original timestamp.

        Args:
            exercise_id: Exercise identifier
            catalog: Catalog the exercise must belong to

        Raises:
            UnknownExerciseError: If the catalog has no such exercise
        """
        if exercise_id not in catalog:
            raise UnknownExerciseError(exercise_id)

        with self._lock:
            if exercise_id in self._completed:
                return
            self._completed[exercise_id] = self._now()

        logger.debug("Learner %s completed %s", self.learner_id, exercise_id)

    def mark_incomplete(self, exercise_id: str) -> None:
        """
        Clear an exercise's completion record. No error if there is none.

        Args:
            exercise_id: Exercise identifier
        """
        with self._lock:
            removed = self._completed.pop(exercise_id, None)

        if removed is not None:
            logger.debug("Learner %s reopened %s", self.learner_id, exercise_id)

    def prune(self, catalog: Catalog) -> list[str]:
        """
        Delete records whose exercise is no longer in the catalog.

        Args:
            catalog: Current catalog

        Returns:
            Removed exercise ids, sorted
        """
        with self._lock:
            orphans = sorted(key for key in self._completed if key not in catalog)
            for exercise_id in orphans:
                del self._completed[exercise_id]

        if orphans:
            logger.info(
                "Pruned %d orphaned record(s) for learner %s: %s",
                len(orphans),
                self.learner_id,
                ", ".join(orphans),
            )
        return orphans

    # ==================== Reads ====================

    def is_complete(self, exercise_id: str) -> bool:
        """Whether the exercise has a completion record."""
        with self._lock:
            return exercise_id in self._completed

    def completion_timestamp(self, exercise_id: str) -> Optional[datetime]:
        """First completion time, or None if incomplete."""
        with self._lock:
            return self._completed.get(exercise_id)

    def snapshot(self) -> dict[str, datetime]:
        """Consistent copy of the progress map (exercise id -> completed_at)."""
        with self._lock:
            return dict(self._completed)

    def records(self) -> list[ProgressRecord]:
        """All records, oldest completion first."""
        return [
            ProgressRecord(exercise_id=exercise_id, completed_at=completed_at)
            for exercise_id, completed_at in sorted(
                self.snapshot().items(), key=lambda item: (item[1], item[0])
            )
        ]

    def __len__(self) -> int:
        with self._lock:
            return len(self._completed)

    def __contains__(self, exercise_id: object) -> bool:
        with self._lock:
            return exercise_id in self._completed

    # ==================== Persistence ====================

    @classmethod
    def from_mapping(
        cls,
        completed: Mapping[str, datetime],
        learner_id: Optional[str] = None,
        catalog: Optional[Catalog] = None,
        clock: Optional[Clock] = None,
    ) -> ProgressTracker:
        """
        Restore a tracker from an ``exercise_id -> completed_at`` map.

        Args:
            completed: Completion timestamps keyed by exercise id
            learner_id: Learner identifier
            catalog: If given, records for exercises it lacks are pruned
            clock: Clock for future completions

        Returns:
            ProgressTracker instance
        """
        tracker = cls(learner_id=learner_id, clock=clock)
        tracker._completed = {
            exercise_id: stamp if stamp.tzinfo else stamp.replace(tzinfo=timezone.utc)
            for exercise_id, stamp in completed.items()
        }
        if catalog is not None:
            orphans = tracker.prune(catalog)
            if orphans:
                logger.warning(
                    "Dropped progress for %d exercise(s) missing from the catalog", len(orphans)
                )
        return tracker

    def to_dict(self) -> dict:
        """Export as a progress document (see schemas/progress.schema.json)."""
        completed = self.snapshot()
        return {
            "meta": {"schema_version": 1, "updated_at": utc_now().isoformat()},
            "learner_id": self.learner_id,
            "completed": {
                exercise_id: completed[exercise_id].isoformat() for exercise_id in sorted(completed)
            },
        }

    @classmethod
    def from_dict(
        cls,
        data: Mapping[str, Any],
        catalog: Optional[Catalog] = None,
        clock: Optional[Clock] = None,
    ) -> ProgressTracker:
        """
        Restore a tracker from a progress document.

        Args:
            data: Progress document
            catalog: If given, records for exercises it lacks are pruned
            clock: Clock for future completions

        Raises:
            ProgressStoreError: If the document is invalid
        """
        result = cls._get_validator().validate(data)
        if not result.valid:
            raise ProgressStoreError(
                "Invalid progress document:\n" + "\n".join(f"  - {e}" for e in result.errors)
            )

        completed = {
            exercise_id: parse_timestamp(stamp) for exercise_id, stamp in data["completed"].items()
        }
        return cls.from_mapping(
            completed, learner_id=data["learner_id"], catalog=catalog, clock=clock
        )

    def __repr__(self) -> str:
        """String representation."""
        return f"ProgressTracker(learner_id={self.learner_id}, completed={len(self)})"
