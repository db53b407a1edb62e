"""
Shared fixtures: a fresh SQLite store per test.
"""

import pytest

from database.engine import configure_engine, initialize_database, reset_engine
from storage.repositories.store import TimeSeriesStore


@pytest.fixture
def database_url(tmp_path):
    return f"sqlite:///{tmp_path / 'ticks.db'}"


@pytest.fixture
def store(database_url):
    """Store bound to an initialized, empty database file."""
    configure_engine(database_url)
    initialize_database()
    yield TimeSeriesStore()
    reset_engine()
