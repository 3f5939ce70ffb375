"""
Typed errors raised by the catalog, progress tracker and persistence layers.

Every failure surfaces as one of these; nothing is swallowed:
- MalformedCatalogError: catalog definition rejected at load time
- NotFoundError: lookup of an unknown module or exercise id
- UnknownExerciseError: progress recorded against an exercise the catalog lacks
- ProgressStoreError: persisted progress cannot be read or written
"""

from __future__ import annotations

from typing import Optional


class LearnPathError(Exception):
    """Base class for all LearnPath errors."""


class MalformedCatalogError(LearnPathError, ValueError):
    """
    Catalog definition is invalid.

    Attributes:
        errors: Every individual problem found in the definition
    """

    def __init__(self, errors: list[str] | str):
        if isinstance(errors, str):
            errors = [errors]
        self.errors = list(errors)
        super().__init__(
            f"Malformed catalog ({len(self.errors)} error(s)):\n"
            + "\n".join(f"  - {error}" for error in self.errors)
        )


class NotFoundError(LearnPathError, LookupError):
    """
    Unknown module or exercise id.

    Attributes:
        kind: "module" or "exercise"
        identifier: The id that was looked up
    """

    def __init__(self, kind: str, identifier: str, message: Optional[str] = None):
        self.kind = kind
        self.identifier = identifier
        super().__init__(message or f"Unknown {kind} id: '{identifier}'")

    def __str__(self) -> str:
        return self.args[0]


class UnknownExerciseError(NotFoundError):
    """Progress was recorded against an exercise that is not in the catalog."""

    def __init__(self, exercise_id: str):
        super().__init__(
            "exercise",
            exercise_id,
            f"Cannot record progress for unknown exercise '{exercise_id}'",
        )


class ProgressStoreError(LearnPathError):
    """Persisted progress could not be read, validated or written."""
