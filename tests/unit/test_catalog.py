"""
Unit tests for the catalog store: loading, lookups, ordering and derived catalogs.
"""

import dataclasses
import json
import logging

import pytest

from learnpath.exceptions import MalformedCatalogError, NotFoundError
from learnpath.models.catalog import Catalog, Exercise, Module, load_catalog


class TestLoadCatalog:
    """Test loading catalogs from mappings and files."""

    def test_load_from_mapping(self, ab_catalog_data):
        """Test loading a catalog from an already parsed document."""
        catalog = load_catalog(ab_catalog_data)

        assert [m.id for m in catalog.list_modules_in_order()] == ["A", "B"]
        assert len(catalog) == 3
        assert catalog.title == "A/B catalog"

    def test_load_does_not_keep_reference_to_source(self, ab_catalog_data):
        """Test that mutating the source document after loading has no effect."""
        catalog = load_catalog(ab_catalog_data)
        ab_catalog_data["modules"][0]["title"] = "Changed"

        assert catalog.get_module("A").title == "Module A"

    def test_load_from_path(self, tmp_path, ab_catalog_data):
        """Test loading a catalog from a JSON file (Path and str)."""
        path = tmp_path / "catalog.json"
        path.write_text(json.dumps(ab_catalog_data), encoding="utf-8")

        assert len(load_catalog(path)) == 3
        assert len(load_catalog(str(path))) == 3

    def test_load_default_catalog(self):
        """Test that the bundled SwiftUI catalog loads by default."""
        catalog = load_catalog()

        assert [m.id for m in catalog.list_modules_in_order()] == [
            "ch02-text",
            "ch03-shapes",
            "ch04-colors-gradients",
        ]
        assert catalog.get_exercise("ex-4.2").title == "Gradient Mastery"

    def test_missing_file(self, tmp_path):
        """Test that a missing document is a malformed catalog."""
        with pytest.raises(MalformedCatalogError, match="not found"):
            load_catalog(tmp_path / "nope.json")

    def test_invalid_json(self, tmp_path):
        """Test that unparseable JSON is a malformed catalog."""
        path = tmp_path / "broken.json"
        path.write_text("{ modules: ", encoding="utf-8")

        with pytest.raises(MalformedCatalogError, match="not valid JSON"):
            load_catalog(path)

    def test_invalid_utf8(self, tmp_path):
        """Test that a document with undecodable bytes is a malformed catalog."""
        path = tmp_path / "garbled.json"
        path.write_bytes(b'{"modules": "\xff\xfe"}')

        with pytest.raises(MalformedCatalogError, match="not valid UTF-8"):
            load_catalog(path)

    def test_unreadable_path(self, tmp_path):
        """Test that a directory path is a malformed catalog."""
        with pytest.raises(MalformedCatalogError, match="Failed to read"):
            load_catalog(tmp_path)

    def test_float_order_rejected(self, ab_catalog_data):
        """Test that a non-integer order is rejected even if Draft 7 accepts it."""
        ab_catalog_data["modules"][0]["order"] = 1.0

        with pytest.raises(MalformedCatalogError) as exc_info:
            load_catalog(ab_catalog_data)

        assert any("must be an integer" in error for error in exc_info.value.errors)

    def test_duplicate_order_rejected(self, ab_catalog_data):
        """Test that two modules both declaring order 1 fail to load."""
        ab_catalog_data["modules"][1]["order"] = 1

        with pytest.raises(MalformedCatalogError) as exc_info:
            load_catalog(ab_catalog_data)

        assert any("order 1" in error for error in exc_info.value.errors)

    def test_duplicate_exercise_across_modules_rejected(self, ab_catalog_data):
        """Test that an exercise id reused in another module fails to load."""
        ab_catalog_data["modules"][1]["exercises"][0]["id"] = "X1"

        with pytest.raises(MalformedCatalogError) as exc_info:
            load_catalog(ab_catalog_data)

        assert any("X1" in error and "'A'" in error and "'B'" in error for error in exc_info.value.errors)

    def test_missing_required_field_rejected(self, ab_catalog_data):
        """Test that a module without a title fails to load."""
        del ab_catalog_data["modules"][0]["title"]

        with pytest.raises(MalformedCatalogError) as exc_info:
            load_catalog(ab_catalog_data)

        assert "'title' is a required property" in str(exc_info.value)

    def test_rejection_is_logged(self, ab_catalog_data, caplog):
        """Test that a rejected catalog is logged as a warning."""
        ab_catalog_data["modules"][1]["order"] = 1

        with caplog.at_level(logging.WARNING, logger="learnpath"):
            with pytest.raises(MalformedCatalogError):
                load_catalog(ab_catalog_data)

        assert "Rejected catalog" in caplog.text

    def test_all_problems_reported(self, ab_catalog_data):
        """Test that one error lists every problem found."""
        ab_catalog_data["modules"][1]["order"] = 1
        ab_catalog_data["modules"][1]["exercises"][0]["id"] = "X2"

        with pytest.raises(MalformedCatalogError) as exc_info:
            load_catalog(ab_catalog_data)

        assert len(exc_info.value.errors) == 2


class TestCatalogLookups:
    """Test module and exercise lookups."""

    def test_get_module(self, ab_catalog):
        """Test looking up a module by id."""
        module = ab_catalog.get_module("A")

        assert module.title == "Module A"
        assert module.order == 1
        assert module.exercise_ids == ("X1", "X2")

    def test_get_unknown_module(self, ab_catalog):
        """Test that an unknown module id raises NotFoundError."""
        with pytest.raises(NotFoundError) as exc_info:
            ab_catalog.get_module("Z")

        assert exc_info.value.kind == "module"
        assert exc_info.value.identifier == "Z"

    def test_get_exercise(self, ab_catalog):
        """Test looking up an exercise by id anywhere in the catalog."""
        exercise = ab_catalog.get_exercise("Y1")

        assert exercise.title == "Exercise Y1"
        assert exercise.difficulty == "advanced"
        assert exercise.module_id == "B"

    def test_get_unknown_exercise(self, ab_catalog):
        """Test that an unknown exercise id raises NotFoundError."""
        with pytest.raises(NotFoundError, match="nonexistent-id"):
            ab_catalog.get_exercise("nonexistent-id")

    def test_not_found_is_lookup_error(self, ab_catalog):
        """Test that NotFoundError can be caught as LookupError."""
        with pytest.raises(LookupError):
            ab_catalog.get_exercise("nope")

    def test_module_of(self, ab_catalog):
        """Test finding the module owning an exercise."""
        assert ab_catalog.module_of("X2").id == "A"

    def test_contains_and_len(self, ab_catalog):
        """Test membership and size."""
        assert "X1" in ab_catalog
        assert "Q9" not in ab_catalog
        assert len(ab_catalog) == 3


class TestCatalogOrdering:
    """Test module and exercise ordering."""

    def test_modules_sorted_by_order(self, ab_catalog_data):
        """Test that modules are sorted by order, not document position."""
        ab_catalog_data["modules"].reverse()
        catalog = load_catalog(ab_catalog_data)

        orders = [m.order for m in catalog.list_modules_in_order()]
        assert orders == [1, 2]

    def test_orders_contiguous_and_strictly_increasing(self, bundled_catalog):
        """Test the ordering invariant on the bundled catalog."""
        orders = [m.order for m in bundled_catalog.list_modules_in_order()]

        assert orders == list(range(orders[0], orders[0] + len(orders)))

    def test_listing_is_restartable(self, ab_catalog):
        """Test that listing modules twice gives the same sequence."""
        first = list(ab_catalog.list_modules_in_order())
        second = list(ab_catalog.list_modules_in_order())

        assert first == second

    def test_iter_exercises_in_catalog_order(self, ab_catalog):
        """Test exercises are yielded by module order then exercise order."""
        assert [e.id for e in ab_catalog.iter_exercises()] == ["X1", "X2", "Y1"]
        assert ab_catalog.exercise_ids() == ("X1", "X2", "Y1")


class TestCatalogImmutability:
    """Test that catalog entities cannot be changed after loading."""

    def test_exercise_is_frozen(self, ab_catalog):
        """Test exercises reject attribute assignment."""
        with pytest.raises(dataclasses.FrozenInstanceError):
            ab_catalog.get_exercise("X1").title = "Changed"

    def test_module_is_frozen(self, ab_catalog):
        """Test modules reject attribute assignment."""
        with pytest.raises(dataclasses.FrozenInstanceError):
            ab_catalog.get_module("A").order = 5

    def test_meta_is_a_copy(self, ab_catalog):
        """Test that the exposed metadata cannot alter the catalog."""
        ab_catalog.meta["title"] = "Changed"

        assert ab_catalog.title == "A/B catalog"


class TestCatalogConstruction:
    """Test building catalogs from entities and exporting them."""

    def test_direct_construction_validates(self):
        """Test that entity construction enforces unique orders."""
        x = Exercise(id="x", title="X", difficulty="beginner", module_id="m1")
        y = Exercise(id="y", title="Y", difficulty="beginner", module_id="m2")
        modules = [
            Module(id="m1", title="M1", order=1, exercises=(x,)),
            Module(id="m2", title="M2", order=1, exercises=(y,)),
        ]

        with pytest.raises(MalformedCatalogError):
            Catalog(modules)

    def test_direct_construction_checks_owning_module(self):
        """Test that an exercise naming another module is rejected."""
        stray = Exercise(id="x", title="X", difficulty="beginner", module_id="elsewhere")

        with pytest.raises(MalformedCatalogError) as exc_info:
            Catalog([Module(id="a", title="A", order=1, exercises=(stray,))])

        assert "belongs to module 'a'" in exc_info.value.errors[0]

    def test_module_of_follows_ownership(self):
        """Test module_of answers from ownership when validation is skipped."""
        stray = Exercise(id="x", title="X", difficulty="beginner", module_id="elsewhere")
        catalog = Catalog([Module(id="a", title="A", order=1, exercises=(stray,))], validate=False)

        assert catalog.module_of("x").id == "a"

    def test_to_dict_round_trip(self, bundled_catalog):
        """Test that the exported document loads back to the same catalog."""
        document = bundled_catalog.to_dict()

        assert load_catalog(document).to_dict() == document

    def test_repr(self, ab_catalog):
        """Test string representation."""
        assert repr(ab_catalog) == "Catalog(title='A/B catalog', modules=2, exercises=3)"


class TestWithoutModule:
    """Test removing a module from a catalog."""

    def test_removes_module_and_exercises(self, bundled_catalog):
        """Test that removing a module removes its exercises."""
        smaller = bundled_catalog.without_module("ch03-shapes")

        assert "ex-3.1" not in smaller
        assert "ex-3.2" not in smaller
        assert len(smaller) == len(bundled_catalog) - 2
        # Original is untouched
        assert "ex-3.1" in bundled_catalog

    def test_renumbers_orders(self, bundled_catalog):
        """Test that remaining orders stay contiguous."""
        smaller = bundled_catalog.without_module("ch02-text")

        assert [(m.id, m.order) for m in smaller.list_modules_in_order()] == [
            ("ch03-shapes", 2),
            ("ch04-colors-gradients", 3),
        ]

    def test_unknown_module(self, ab_catalog):
        """Test removing an unknown module raises NotFoundError."""
        with pytest.raises(NotFoundError):
            ab_catalog.without_module("Z")

    def test_cannot_remove_last_module(self, ab_catalog):
        """Test that a catalog keeps at least one module."""
        only_b = ab_catalog.without_module("A")

        with pytest.raises(MalformedCatalogError):
            only_b.without_module("B")
