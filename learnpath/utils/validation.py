"""
Schema validation utilities for LearnPath.

Provides JSON Schema validation with clear error messages, plus the
domain checks JSON Schema cannot express:
- Format validation (datetime)
- Unique module and exercise ids across the whole catalog
- Unique, contiguous module orders
- Parseable completion timestamps in progress documents
"""

import json
from collections import Counter
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

from jsonschema import Draft7Validator, FormatChecker, ValidationError

from ..config import config


class ValidationResult:
    """
    Result of a validation attempt.

    Attributes:
        valid: Whether data passed validation
        errors: List of error messages
        data: The validated data
    """

    def __init__(self, valid: bool, errors: list[str], data: Any = None):
        self.valid = valid
        self.errors = errors
        self.data = data

    def __bool__(self) -> bool:
        """Allow using result in boolean context."""
        return self.valid

    def __str__(self) -> str:
        """Human-readable representation."""
        if self.valid:
            return "✓ Validation passed"
        return f"✗ Validation failed with {len(self.errors)} error(s):\n" + "\n".join(
            f"  - {error}" for error in self.errors
        )


class SchemaValidator:
    """
    JSON Schema validator.

    Usage:
        validator = SchemaValidator("path/to/schema.json")
        result = validator.validate(data)
        if result:
            print("Valid!")
        else:
            print(result.errors)
    """

    def __init__(self, schema_path: Path | str):
        """
        Initialize validator with a schema file.

        Args:
            schema_path: Path to JSON Schema file
        """
        self.schema_path = Path(schema_path)
        with open(self.schema_path, "r", encoding="utf-8") as f:
            self.schema = json.load(f)
        # Use FormatChecker to validate date-time and friends
        self.validator = Draft7Validator(self.schema, format_checker=FormatChecker())

    def validate(self, data: Any) -> ValidationResult:
        """
        Validate data against schema.

        Args:
            data: Data to validate

        Returns:
            ValidationResult with validation status and any errors
        """
        errors = [
            self._format_error(error)
            for error in sorted(self.validator.iter_errors(data), key=lambda e: [str(p) for p in e.path])
        ]
        return ValidationResult(valid=not errors, errors=errors, data=data)

    def _format_error(self, error: ValidationError) -> str:
        """
        Convert ValidationError to human-readable message with details.

        Args:
            error: jsonschema ValidationError

        Returns:
            Formatted error message with validator and schema path
        """
        path = " -> ".join(str(p) for p in error.path) if error.path else "root"
        validator_name = getattr(error, "validator", "unknown")
        schema_path = "/".join(str(p) for p in error.schema_path)
        return (
            f"At '{path}': {error.message} "
            f"[validator={validator_name}, schema_path=/{schema_path}]"
        )


class CatalogValidator(SchemaValidator):
    """
    Validator for catalog documents.

    Adds domain-specific validation beyond JSON Schema:
    - Module id uniqueness
    - Exercise id uniqueness across all modules
    - Module order uniqueness and contiguity
    """

    def __init__(self, schema_path: Optional[Path] = None):
        """
        Initialize catalog validator.

        Args:
            schema_path: Path to schema (uses config.paths.catalog_schema if None)
        """
        super().__init__(schema_path or config.paths.catalog_schema)

    def validate(self, data: Any) -> ValidationResult:
        """
        Validate a catalog document with domain-specific checks.

        Args:
            data: Catalog document to validate

        Returns:
            ValidationResult
        """
        # First, run standard schema validation
        result = super().validate(data)

        if not result.valid:
            return result

        modules = data["modules"]
        errors = []

        duplicate_ids = self._find_duplicate_ids(modules)
        if duplicate_ids:
            dups_str = ", ".join(sorted(duplicate_ids))
            errors.append(f"Duplicate module IDs found: {dups_str} (IDs must be unique)")

        errors.extend(self._check_exercise_ids(modules))
        errors.extend(self._check_orders(modules))

        return ValidationResult(valid=not errors, errors=errors, data=data)

    def _find_duplicate_ids(self, items: list[dict]) -> set[str]:
        """
        Find duplicate ids using O(n) Counter approach.

        Args:
            items: List of dicts carrying an "id" key

        Returns:
            Set of duplicate IDs (empty if all unique)
        """
        counts = Counter(item["id"] for item in items)
        return {i for i, c in counts.items() if c > 1}

    def _check_exercise_ids(self, modules: list[dict]) -> list[str]:
        """
        Exercise ids must be unique across the entire catalog.

        Args:
            modules: List of module dicts

        Returns:
            List of error messages (empty if valid)
        """
        errors = []
        seen: dict[str, str] = {}

        for module in modules:
            for exercise in module["exercises"]:
                previous = seen.get(exercise["id"])
                if previous is None:
                    seen[exercise["id"]] = module["id"]
                elif previous == module["id"]:
                    errors.append(
                        f"Duplicate exercise ID '{exercise['id']}' within module '{module['id']}'"
                    )
                else:
                    errors.append(
                        f"Duplicate exercise ID '{exercise['id']}' "
                        f"(in modules '{previous}' and '{module['id']}')"
                    )

        return errors

    def _check_orders(self, modules: list[dict]) -> list[str]:
        """
        Module orders must be unique and contiguous (n, n+1, n+2, ...).

        Args:
            modules: List of module dicts

        Returns:
            List of error messages (empty if valid)
        """
        errors = []
        owners: dict[int, list[str]] = {}
        for module in modules:
            # Draft 7 accepts 1.0 as an integer
            if not isinstance(module["order"], int):
                errors.append(
                    f"Module '{module['id']}' order must be an integer, got {module['order']!r}"
                )
                continue
            owners.setdefault(module["order"], []).append(module["id"])

        for order, module_ids in sorted(owners.items()):
            if len(module_ids) > 1:
                errors.append(
                    f"Module order {order} is declared by more than one module: "
                    + ", ".join(module_ids)
                )

        orders = sorted(owners)
        gaps = [
            (previous, current)
            for previous, current in zip(orders, orders[1:])
            if current != previous + 1
        ]
        for previous, current in gaps:
            errors.append(
                f"Module orders are not contiguous: gap between {previous} and {current}"
            )

        return errors


class ProgressValidator(SchemaValidator):
    """
    Validator for persisted progress documents.

    Beyond the schema, every completion timestamp must parse as an
    ISO 8601 datetime with a timezone offset.
    """

    def __init__(self, schema_path: Optional[Path] = None):
        """Initialize validator with the progress schema."""
        super().__init__(schema_path or config.paths.progress_schema)

    def validate(self, data: Any) -> ValidationResult:
        """
        Validate a progress document.

        Args:
            data: Progress document

        Returns:
            ValidationResult
        """
        result = super().validate(data)

        if not result.valid:
            return result

        errors = []
        for exercise_id, stamp in data["completed"].items():
            try:
                parsed = parse_timestamp(stamp)
            except ValueError:
                errors.append(f"Exercise '{exercise_id}': invalid timestamp '{stamp}'")
                continue
            if parsed.tzinfo is None:
                errors.append(f"Exercise '{exercise_id}': timestamp '{stamp}' has no timezone")

        return ValidationResult(valid=not errors, errors=errors, data=data)


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO 8601 timestamp, accepting a trailing 'Z' for UTC."""
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


# Convenience functions for quick validation
def validate_catalog(data: Any) -> ValidationResult:
    """
    Quick validation of a catalog document.

    Args:
        data: Catalog dictionary to validate

    Returns:
        ValidationResult

    Example:
        result = validate_catalog(catalog_dict)
        if not result:
            print("Errors:", result.errors)
    """
    return CatalogValidator().validate(data)


def validate_progress(data: Any) -> ValidationResult:
    """
    Quick validation of a progress document.

    Args:
        data: Progress dictionary to validate

    Returns:
        ValidationResult
    """
    return ProgressValidator().validate(data)
