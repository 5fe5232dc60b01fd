"""Pytest configuration and shared fixtures.

This module provides fixtures for testing lendtrack: in-memory and
file-backed databases, a fixed clock, and sample items and users.
"""

import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Generator

import pytest

from lendtrack.catalog import CatalogManager, ItemCreate
from lendtrack.config import reset_config
from lendtrack.db.sqlite import Database, reset_db
from lendtrack.lending import LendingEngine, ReturnPolicy
from lendtrack.reports import ReportManager
from lendtrack.users import UserCreate, UserRegistry

# Fixed "now" used by the lending and report fixtures
NOW = datetime(2026, 3, 10, 14, 30, tzinfo=timezone.utc)


class FixedClock:
    """Clock returning a settable instant."""

    def __init__(self, now: datetime = NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


# ============================================================================
# Database Fixtures
# ============================================================================


@pytest.fixture(autouse=True)
def isolated_config() -> Generator[None, None, None]:
    """Keep global config and database state out of other tests."""
    reset_db()
    reset_config()
    yield
    reset_db()
    reset_config()


@pytest.fixture(scope="function")
def db() -> Database:
    """Create an in-memory database for testing."""
    database = Database(":memory:")
    database.create_tables()
    return database


@pytest.fixture(scope="function")
def temp_db_path() -> Generator[Path, None, None]:
    """Create a temporary database file path."""
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = Path(f.name)
    yield db_path
    # Cleanup
    for suffix in ("", "-journal", "-wal", "-shm"):
        path = Path(f"{db_path}{suffix}")
        if path.exists():
            path.unlink()


@pytest.fixture(scope="function")
def file_db(temp_db_path: Path) -> Generator[Database, None, None]:
    """Create a file-backed database that several connections can share."""
    database = Database(str(temp_db_path), busy_timeout=10.0)
    database.create_tables()
    yield database
    database.dispose()


@pytest.fixture
def env_db_path(temp_db_path: Path) -> Generator[Path, None, None]:
    """Point LENDTRACK_DB_PATH at a temporary file."""
    os.environ["LENDTRACK_DB_PATH"] = str(temp_db_path)
    reset_config()
    yield temp_db_path
    if "LENDTRACK_DB_PATH" in os.environ:
        del os.environ["LENDTRACK_DB_PATH"]


# ============================================================================
# Manager Fixtures
# ============================================================================


@pytest.fixture
def clock() -> FixedClock:
    """A clock frozen at NOW."""
    return FixedClock()


@pytest.fixture
def catalog(db: Database) -> CatalogManager:
    return CatalogManager(db)


@pytest.fixture
def registry(db: Database) -> UserRegistry:
    return UserRegistry(db)


@pytest.fixture
def engine(db: Database, clock: FixedClock) -> LendingEngine:
    """Lending engine restoring the full borrowed quantity on return."""
    return LendingEngine(db, clock=clock, return_policy=ReturnPolicy.FULL_QUANTITY)


@pytest.fixture
def single_unit_engine(db: Database, clock: FixedClock) -> LendingEngine:
    """Lending engine restoring one unit per return."""
    return LendingEngine(db, clock=clock, return_policy=ReturnPolicy.SINGLE_UNIT)


@pytest.fixture
def reports(db: Database, clock: FixedClock) -> ReportManager:
    return ReportManager(db, clock=clock)


# ============================================================================
# Sample Data Fixtures
# ============================================================================


@pytest.fixture
def drill(catalog: CatalogManager):
    """An item with five units in stock."""
    return catalog.create_item(ItemCreate(name="drill", location=3, stock=5))


@pytest.fixture
def multimeter(catalog: CatalogManager):
    """An item with a single unit in stock."""
    return catalog.create_item(ItemCreate(name="multimeter", location=1, stock=1))


@pytest.fixture
def alice(registry: UserRegistry):
    return registry.create_user(
        UserCreate(
            national_id="123.456.789-00",
            name="Alice Souza",
            phone="555-0101",
            course="Electrical Engineering",
            email="alice@example.com",
        )
    )


@pytest.fixture
def bob(registry: UserRegistry):
    return registry.create_user(
        UserCreate(national_id="987.654.321-00", name="Bob Lima", phone="555-0202")
    )
