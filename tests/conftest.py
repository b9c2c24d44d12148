"""
Pytest configuration and shared fixtures for the flask-testbench suite.

Harness test cases are ``unittest.TestCase`` subclasses and pytest collects
them directly. Plain pytest tests in this suite drive a test case's lifecycle
by hand (``setUp`` / ``tearDown``) to observe ordering and cleanup, so the
fixtures below make sure process-wide registries never leak between tests
even when such a test fails half way.

Markers:
- unit: tests of a single module
- integration: tests that boot the fixture application through ``TestCase``
- database: tests touching a database
"""

import os
import sys
from pathlib import Path

import pytest

# Add project root to Python path for imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from flask_testbench.database import RefreshDatabaseState
from flask_testbench.events import ModelEvents
from flask_testbench.facades import Facade
from flask_testbench.mocking import Mockery
from tests.fixtures.app import create_app


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers",
        "unit: Unit tests for individual harness modules"
    )
    config.addinivalue_line(
        "markers",
        "integration: Tests that boot the fixture application through TestCase"
    )
    config.addinivalue_line(
        "markers",
        "database: Database isolation, migration and assertion tests"
    )


def pytest_collection_modifyitems(config, items):
    """Apply markers based on test location."""
    for item in items:
        path = str(item.fspath)
        if f"{os.sep}unit{os.sep}" in path:
            item.add_marker(pytest.mark.unit)
        elif f"{os.sep}integration{os.sep}" in path:
            item.add_marker(pytest.mark.integration)
        if "database" in path:
            item.add_marker(pytest.mark.database)


@pytest.fixture(autouse=True)
def isolate_registries():
    """Reset process-wide harness registries after every test."""
    yield
    ModelEvents.reset()
    Facade.clear_resolved_instances()
    if Mockery.is_active():
        # a hand-driven case that failed before tearDown leaves patches behind
        try:
            Mockery.close()
        except AssertionError:
            pass


@pytest.fixture
def refresh_state():
    """Give a test a clean ``RefreshDatabaseState`` and restore it afterwards."""
    previous = RefreshDatabaseState.migrated
    RefreshDatabaseState.reset()
    yield RefreshDatabaseState
    RefreshDatabaseState.migrated = previous


@pytest.fixture
def flask_app():
    """A bare fixture application with its context pushed."""
    app = create_app()
    with app.app_context():
        yield app


@pytest.fixture
def sqlite_file_uri(tmp_path):
    """URI of a file-backed SQLite database in a temporary directory."""
    return f"sqlite:///{tmp_path / 'testbench.sqlite'}"
