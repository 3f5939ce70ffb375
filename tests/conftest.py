"""
Shared pytest fixtures and configuration for LearnPath tests.

This file is automatically discovered by pytest and provides
fixtures available to all tests.
"""

import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

# Make the package importable without installing it
sys.path.insert(0, str(Path(__file__).parent.parent))


class FakeClock:
    """Deterministic clock: each call returns one minute after the previous."""

    def __init__(self, start: datetime = datetime(2026, 1, 1, 9, 0, tzinfo=timezone.utc)):
        self.current = start
        self.calls = 0

    def __call__(self) -> datetime:
        self.calls += 1
        stamp = self.current
        self.current = self.current + timedelta(minutes=1)
        return stamp


@pytest.fixture
def ab_catalog_data():
    """
    Fixture providing the two-module catalog used across the tests.

    Returns:
        dict: Module A (order 1: X1, X2) and Module B (order 2: Y1)
    """
    return {
        "meta": {"schema_version": 1, "title": "A/B catalog"},
        "modules": [
            {
                "id": "A",
                "title": "Module A",
                "order": 1,
                "exercises": [
                    {"id": "X1", "title": "Exercise X1", "difficulty": "beginner"},
                    {"id": "X2", "title": "Exercise X2", "difficulty": "intermediate"},
                ],
            },
            {
                "id": "B",
                "title": "Module B",
                "order": 2,
                "exercises": [
                    {"id": "Y1", "title": "Exercise Y1", "difficulty": "advanced"},
                ],
            },
        ],
    }


@pytest.fixture
def ab_catalog(ab_catalog_data):
    """Fixture providing the loaded A/B catalog."""
    from learnpath.models.catalog import load_catalog

    return load_catalog(ab_catalog_data)


@pytest.fixture
def bundled_catalog():
    """Fixture providing the bundled SwiftUI bootcamp catalog."""
    from learnpath.config import config
    from learnpath.models.catalog import load_catalog

    return load_catalog(config.paths.default_catalog)


@pytest.fixture
def clock():
    """Fixture providing a deterministic clock."""
    return FakeClock()


@pytest.fixture
def tracker(clock):
    """Fixture providing an empty tracker with a deterministic clock."""
    from learnpath.models.progress import ProgressTracker

    return ProgressTracker(learner_id="learner-test", clock=clock)


@pytest.fixture
def progress_dir(tmp_path, monkeypatch):
    """
    Fixture redirecting the default progress directory to a temp dir.

    Returns:
        Path: The temporary progress directory
    """
    from learnpath.config import config

    target = tmp_path / "progress"
    monkeypatch.setattr(config.paths, "progress_dir", target)
    return target


# Pytest hooks for better test output


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line("markers", "integration: mark test as an integration test")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)

        if "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
