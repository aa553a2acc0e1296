"""
Shared fixtures.
"""

import pytest

from doctorlink.adapters.database import Database
from doctorlink.adapters.seed import seed_database


@pytest.fixture
def database(tmp_path):
    """An empty database with the schema created."""
    db = Database(f"sqlite:///{tmp_path / 'doctorlink.db'}")
    db.open()
    db.create_schema()
    yield db
    db.close()


@pytest.fixture
def seeded_database(database):
    """A database loaded with the bundled sample data."""
    seed_database(database)
    return database
