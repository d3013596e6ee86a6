"""
Shared fixtures for land inventory tests.

Every test gets a fresh in-memory SQLite database configured like the
production database (foreign keys on, SAVEPOINT support).
"""
import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from src.landinventory.db.base import Base
from src.landinventory.db.models import Property
from src.landinventory.db.session import (
    configure_sqlite_engine,
    create_session_factory,
    get_db_session,
)
from src.landinventory.services.engine import LandInventoryEngine
from src.landinventory.services.status_tracker import status_tracker


def make_sqlite_engine():
    """In-memory SQLite engine shared across threads (TestClient)."""
    engine = create_engine(
        "sqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    return configure_sqlite_engine(engine)


@pytest.fixture(scope="function")
def db_engine():
    """Engine with the full land inventory schema."""
    engine = make_sqlite_engine()
    Base.metadata.create_all(engine)
    status_tracker.reset_capability()

    yield engine

    status_tracker.reset_capability()
    engine.dispose()


@pytest.fixture(scope="function")
def session_factory(db_engine):
    return create_session_factory(db_engine)


@pytest.fixture(scope="function")
def test_db(session_factory):
    """A session for direct repository/service tests."""
    session = session_factory()

    yield session

    session.rollback()
    session.close()


@pytest.fixture(scope="function")
def land_engine(session_factory):
    return LandInventoryEngine(session_factory)


@pytest.fixture(scope="function")
def property_id(session_factory):
    """ID of a committed land property."""
    with get_db_session(session_factory) as session:
        prop = Property(title="Green Acres", property_type="land")
        session.add(prop)
        session.flush()
        return prop.id


@pytest.fixture
def block_a_payload():
    """Block A with one available and one booked plot."""
    return [
        {
            "name": "Block A",
            "description": "North side",
            "plots": [
                {"plot_number": "P001", "area": 1200, "price": "15 lakhs", "status": "available"},
                {"plot_number": "P002", "area": 1500, "price": "18 lakhs", "status": "booked"},
            ],
        }
    ]
