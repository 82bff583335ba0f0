"""
Pytest configuration and fixtures.

For builders of payloads and rows, see tests/__init__.py
"""

import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from database.database import Database
from database.repository import CricketRepository
from database.uow import cricket_uow


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line(
        "markers", "db: marks tests as using the in-memory database (deselect with '-m \"not db\"')"
    )


@pytest.fixture
def db():
    """Fresh in-memory SQLite database with every table created."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    database = Database(engine=engine)
    database.create_all()
    yield database
    database.dispose()


@pytest.fixture
def session(db):
    session = db.SessionLocal()
    yield session
    session.close()


@pytest.fixture
def repo(session):
    return CricketRepository(session)


@pytest.fixture
def uow_factory(db):
    """Zero-argument unit-of-work factory, as the poller and sync service expect."""
    return lambda: cricket_uow(db.SessionLocal)
