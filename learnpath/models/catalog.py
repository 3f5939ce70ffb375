"""
Catalog Store: the read-only definition of learning modules and exercises.

A catalog is loaded once from a structured document (see
schemas/catalog.schema.json), validated at the boundary, and never
mutated afterwards:
- Modules are ordered by a unique, contiguous ``order``
- Every module owns at least one exercise
- Exercise ids are unique across the whole catalog
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from copy import deepcopy
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Iterator, Literal, Optional, Union

from ..config import config
from ..exceptions import MalformedCatalogError, NotFoundError
from ..utils.validation import CatalogValidator

logger = logging.getLogger(__name__)

Difficulty = Literal["beginner", "intermediate", "advanced"]

CatalogSource = Union[Mapping[str, Any], Path, str, None]


@dataclass(frozen=True)
class Exercise:
    """One practice item within a module."""

    id: str
    title: str
    difficulty: Difficulty
    module_id: str

    def to_dict(self) -> dict:
        """Export in catalog document form."""
        return {"id": self.id, "title": self.title, "difficulty": self.difficulty}


@dataclass(frozen=True)
class Module:
    """One chapter/topic with its ordered exercises."""

    id: str
    title: str
    order: int
    exercises: tuple[Exercise, ...]
    description: str = ""

    @property
    def exercise_ids(self) -> tuple[str, ...]:
        """Exercise ids in module order."""
        return tuple(exercise.id for exercise in self.exercises)

    def to_dict(self) -> dict:
        """Export in catalog document form."""
        data = {
            "id": self.id,
            "title": self.title,
            "order": self.order,
            "exercises": [exercise.to_dict() for exercise in self.exercises],
        }
        if self.description:
            data["description"] = self.description
        return data


class Catalog:
    """
    Immutable, ordered collection of modules and their exercises.

    Construct through ``load_catalog`` (or ``Catalog.from_dict``) so the
    definition is validated; lookups raise NotFoundError for unknown ids.
    """

    _validator: Optional[CatalogValidator] = None

    def __init__(
        self,
        modules: Iterable[Module],
        meta: Optional[Mapping[str, Any]] = None,
        validate: bool = True,
    ):
        """
        Build a catalog from module entities.

        Args:
            modules: Module definitions (any order; sorted by ``order``)
            meta: Optional document metadata (title, schema_version, ...)
            validate: Whether to check catalog invariants (default: True)

        Raises:
            MalformedCatalogError: If the modules break a catalog invariant
        """
        self._modules = tuple(sorted(modules, key=lambda module: module.order))
        self._meta = dict(meta or {})

        if validate:
            result = self._get_validator().validate(self.to_dict())
            errors = result.errors + self._check_back_references()
            if errors:
                raise MalformedCatalogError(errors)

        self._modules_by_id = {module.id: module for module in self._modules}
        self._exercises_by_id = {
            exercise.id: exercise for module in self._modules for exercise in module.exercises
        }
        self._owner_by_exercise = {
            exercise.id: module for module in self._modules for exercise in module.exercises
        }

    def _check_back_references(self) -> list[str]:
        """Every exercise must name the module that owns it."""
        return [
            f"Exercise '{exercise.id}' names module '{exercise.module_id}' "
            f"but belongs to module '{module.id}'"
            for module in self._modules
            for exercise in module.exercises
            if exercise.module_id != module.id
        ]

    @classmethod
    def _get_validator(cls) -> CatalogValidator:
        """Get cached validator instance."""
        if cls._validator is None:
            cls._validator = CatalogValidator()
        return cls._validator

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], validate: bool = True) -> Catalog:
        """
        Build a catalog from a parsed catalog document.

        Args:
            data: Catalog document (see schemas/catalog.schema.json)
            validate: Whether to validate the document first

        Raises:
            MalformedCatalogError: If the document is invalid
        """
        if validate:
            result = cls._get_validator().validate(data)
            if not result.valid:
                raise MalformedCatalogError(result.errors)

        modules = [
            Module(
                id=raw["id"],
                title=raw["title"],
                order=raw["order"],
                description=raw.get("description", ""),
                exercises=tuple(
                    Exercise(
                        id=item["id"],
                        title=item["title"],
                        difficulty=item["difficulty"],
                        module_id=raw["id"],
                    )
                    for item in raw["exercises"]
                ),
            )
            for raw in data["modules"]
        ]
        return cls(modules, meta=data.get("meta"), validate=False)

    # ==================== Lookups ====================

    @property
    def meta(self) -> dict:
        """Document metadata (copy)."""
        return dict(self._meta)

    @property
    def title(self) -> str:
        """Catalog title, empty if the document has none."""
        return self._meta.get("title", "")

    def get_module(self, module_id: str) -> Module:
        """
        Look up a module by id.

        Raises:
            NotFoundError: If no module has this id
        """
        try:
            return self._modules_by_id[module_id]
        except KeyError:
            raise NotFoundError("module", module_id) from None

    def get_exercise(self, exercise_id: str) -> Exercise:
        """
        Look up an exercise by id.

        Raises:
            NotFoundError: If no exercise has this id
        """
        try:
            return self._exercises_by_id[exercise_id]
        except KeyError:
            raise NotFoundError("exercise", exercise_id) from None

    def module_of(self, exercise_id: str) -> Module:
        """Return the module owning an exercise."""
        self.get_exercise(exercise_id)
        return self._owner_by_exercise[exercise_id]

    def list_modules_in_order(self) -> tuple[Module, ...]:
        """Modules sorted by ``order``; the same sequence on every call."""
        return self._modules

    def iter_exercises(self) -> Iterator[Exercise]:
        """Every exercise in catalog order (module order, then exercise order)."""
        for module in self._modules:
            yield from module.exercises

    def exercise_ids(self) -> tuple[str, ...]:
        """Every exercise id in catalog order."""
        return tuple(exercise.id for exercise in self.iter_exercises())

    def __contains__(self, exercise_id: object) -> bool:
        return exercise_id in self._exercises_by_id

    def __len__(self) -> int:
        """Total number of exercises."""
        return len(self._exercises_by_id)

    # ==================== Derived catalogs ====================

    def without_module(self, module_id: str) -> Catalog:
        """
        Return a new catalog without one module and its exercises.

        Remaining modules keep their relative order and are renumbered so
        orders stay contiguous from the original first order. Progress that
        referenced the removed exercises should be pruned with
        ``ProgressTracker.prune``.

        Raises:
            NotFoundError: If the module is unknown
            MalformedCatalogError: If it is the only module
        """
        removed = self.get_module(module_id)
        remaining = [module for module in self._modules if module.id != removed.id]
        if not remaining:
            raise MalformedCatalogError(f"Cannot remove '{module_id}': catalog needs at least one module")

        first_order = self._modules[0].order
        renumbered = [
            Module(
                id=module.id,
                title=module.title,
                order=first_order + index,
                exercises=module.exercises,
                description=module.description,
            )
            for index, module in enumerate(remaining)
        ]
        logger.info(
            "Removed module '%s' (%d exercises) from catalog", removed.id, len(removed.exercises)
        )
        return Catalog(renumbered, meta=self._meta, validate=False)

    def to_dict(self) -> dict:
        """Export as a catalog document (round-trips through load_catalog)."""
        data: dict = {"modules": [module.to_dict() for module in self._modules]}
        if self._meta:
            data = {"meta": deepcopy(self._meta), **data}
        return data

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"Catalog(title='{self.title}', "
            f"modules={len(self._modules)}, "
            f"exercises={len(self)})"
        )


def load_catalog(source: CatalogSource = None) -> Catalog:
    """
    Parse and validate a catalog definition.

    Args:
        source: Parsed document (mapping), path to a JSON document, or None
            for the configured default (LEARNPATH_CATALOG or the bundled
            SwiftUI bootcamp catalog)

    Returns:
        Catalog

    Raises:
        MalformedCatalogError: If the document is missing, unparseable or
            violates a catalog invariant

    Example:
        >>> catalog = load_catalog()
        >>> [module.id for module in catalog.list_modules_in_order()]
        ['ch02-text', 'ch03-shapes', 'ch04-colors-gradients']
    """
    if source is None:
        source = config.catalog_source()

    if isinstance(source, Mapping):
        data = deepcopy(dict(source))
        origin = "<mapping>"
    else:
        path = Path(source)
        origin = str(path)
        try:
            with open(path, "r", encoding="utf-8-sig") as f:
                data = json.load(f)
        except FileNotFoundError:
            raise MalformedCatalogError(f"Catalog document not found: {path}") from None
        except json.JSONDecodeError as e:
            raise MalformedCatalogError(f"Catalog document {path} is not valid JSON: {e}") from e
        except UnicodeDecodeError as e:
            raise MalformedCatalogError(f"Catalog document {path} is not valid UTF-8: {e}") from e
        except OSError as e:
            raise MalformedCatalogError(f"Failed to read catalog document {path}: {e}") from e

    try:
        catalog = Catalog.from_dict(data)
    except MalformedCatalogError as e:
        logger.warning("Rejected catalog from %s: %d error(s)", origin, len(e.errors))
        raise

    logger.info(
        "Loaded catalog from %s: %d modules, %d exercises",
        origin,
        len(catalog.list_modules_in_order()),
        len(catalog),
    )
    return catalog
