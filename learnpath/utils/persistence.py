"""
Progress persistence with validation.

A progress store is the key-value collaborator behind a ProgressTracker:
``load() -> {exercise_id: completed_at}`` and ``save(mapping)``.

Stores:
- InMemoryProgressStore: process-local, for tests and embedding hosts
- JsonFileProgressStore: one validated JSON document per learner under
  data/progress/, written atomically

Read and write failures raise ProgressStoreError; retrying is the host
application's concern.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from typing import Mapping, Optional

from ..config import config
from ..exceptions import ProgressStoreError
from .validation import ProgressValidator, parse_timestamp

logger = logging.getLogger(__name__)


class ProgressStore(ABC):
    """
    Abstract progress store interface.

    Implement this for a file, database or preferences backend.
    """

    @abstractmethod
    def load(self) -> dict[str, datetime]:
        """
        Load the persisted progress map.

        Returns:
            Completion timestamps keyed by exercise id (empty if nothing saved)
        """

    @abstractmethod
    def save(self, completed: Mapping[str, datetime]) -> None:
        """
        Replace the persisted progress map.

        Args:
            completed: Completion timestamps keyed by exercise id
        """


class InMemoryProgressStore(ProgressStore):
    """Process-local store; keeps a copy of the last saved map."""

    def __init__(self, initial: Optional[Mapping[str, datetime]] = None):
        self._lock = threading.Lock()
        self._data: dict[str, datetime] = dict(initial or {})
        self.save_count = 0

    def load(self) -> dict[str, datetime]:
        with self._lock:
            return dict(self._data)

    def save(self, completed: Mapping[str, datetime]) -> None:
        with self._lock:
            self._data = dict(completed)
            self.save_count += 1


class JsonFileProgressStore(ProgressStore):
    """
    Handles persistence of one learner's progress as a JSON document.

    Features:
    - Validate documents against progress.schema.json on load and save
    - Save to data/progress/{learner_id}.json by default
    - Atomic writes (temp file + rename)
    - Thread-safe file operations
    """

    _validator: Optional[ProgressValidator] = None

    def __init__(self, learner_id: str, path: Optional[Path | str] = None):
        """
        Initialize the store.

        Args:
            learner_id: Learner the document belongs to
            path: Document path (default: data/progress/{learner_id}.json)

        Raises:
            ProgressStoreError: If the learner id cannot name a file in progress_dir
        """
        if learner_id in {"", ".", ".."} or any(sep in learner_id for sep in ("/", "\\")):
            raise ProgressStoreError(f"Learner id '{learner_id}' is not a valid file name")
        self.learner_id = learner_id
        self.path = Path(path) if path else config.paths.progress_dir / f"{learner_id}.json"
        self._lock = threading.Lock()

    @classmethod
    def _get_validator(cls) -> ProgressValidator:
        """Get cached validator instance."""
        if cls._validator is None:
            cls._validator = ProgressValidator()
        return cls._validator

    def load(self) -> dict[str, datetime]:
        """
        Load progress from disk.

        Returns:
            Completion map, empty if the document does not exist yet

        Raises:
            ProgressStoreError: If the document is unreadable, invalid or
                belongs to another learner
        """
        with self._lock:
            if not self.path.exists():
                logger.debug("No saved progress at %s", self.path)
                return {}

            try:
                with open(self.path, "r", encoding="utf-8") as f:
                    data = json.load(f)
            except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
                raise ProgressStoreError(f"Failed to read progress {self.path}: {e}") from e

        result = self._get_validator().validate(data)
        if not result.valid:
            raise ProgressStoreError(
                f"Invalid progress document {self.path}:\n"
                + "\n".join(f"  - {error}" for error in result.errors)
            )

        if data["learner_id"] != self.learner_id:
            raise ProgressStoreError(
                f"Progress document {self.path} belongs to '{data['learner_id']}', "
                f"not '{self.learner_id}'"
            )

        completed = {
            exercise_id: parse_timestamp(stamp) for exercise_id, stamp in data["completed"].items()
        }
        logger.debug("Loaded %d record(s) from %s", len(completed), self.path)
        return completed

    def save(self, completed: Mapping[str, datetime]) -> None:
        """
        Write progress to disk atomically.

        Raises:
            ProgressStoreError: If the document cannot be written
        """
        document = {
            "meta": {
                "schema_version": 1,
                "updated_at": datetime.now(timezone.utc).isoformat(),
            },
            "learner_id": self.learner_id,
            "completed": {
                exercise_id: completed[exercise_id].isoformat() for exercise_id in sorted(completed)
            },
        }

        result = self._get_validator().validate(document)
        if not result.valid:
            raise ProgressStoreError(
                "Refusing to save invalid progress:\n"
                + "\n".join(f"  - {error}" for error in result.errors)
            )

        with self._lock:
            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                fd, tmp_name = tempfile.mkstemp(
                    dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
                )
                try:
                    with os.fdopen(fd, "w", encoding="utf-8") as f:
                        json.dump(document, f, indent=config.progress.json_indent, ensure_ascii=False)
                    os.replace(tmp_name, self.path)
                except BaseException:
                    Path(tmp_name).unlink(missing_ok=True)
                    raise
            except OSError as e:
                raise ProgressStoreError(f"Failed to save progress {self.path}: {e}") from e

        logger.debug("Saved %d record(s) to %s", len(completed), self.path)


def list_saved_learners(progress_dir: Optional[Path | str] = None) -> list[str]:
    """
    List learner ids with a saved progress document.

    Args:
        progress_dir: Directory to scan (default: config.paths.progress_dir)

    Returns:
        Learner ids, sorted
    """
    directory = Path(progress_dir) if progress_dir else config.paths.progress_dir
    if not directory.exists():
        return []
    return sorted(path.stem for path in directory.glob("*.json") if not path.name.startswith("."))
