"""Pytest configuration and shared fixtures."""

import hashlib
import os
import tempfile
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest
from alembic.config import Config

from alembic import command

ALEMBIC_INI = Path(__file__).resolve().parent.parent / "alembic.ini"


@pytest.fixture(scope="function")
def temp_db_path():
    """Create a temporary database file for testing."""
    with tempfile.NamedTemporaryFile(delete=False, suffix=".db") as tmp:
        db_path = tmp.name
    yield db_path
    # WAL mode leaves -wal/-shm files next to the database
    for path in (db_path, f"{db_path}-wal", f"{db_path}-shm"):
        if os.path.exists(path):
            os.remove(path)


@pytest.fixture(scope="function")
def test_db_schema(temp_db_path):
    """Create test database schema using Alembic migration."""
    alembic_config = Config(str(ALEMBIC_INI))
    alembic_config.set_main_option(
        "sqlalchemy.url", f"sqlite:///{os.path.abspath(temp_db_path)}"
    )
    command.upgrade(alembic_config, "head")
    yield temp_db_path


@pytest.fixture(scope="function")
async def test_db(test_db_schema):
    """Create a Database instance on the migrated schema."""
    from gameaccount.database import Database

    db = Database(url=f"sqlite+aiosqlite:///{test_db_schema}", echo=False)
    yield db
    await db.dispose()


@pytest.fixture
def mock_conn():
    """Connection double; query() returns no rows unless told otherwise."""
    conn = AsyncMock()
    conn.query.return_value = []
    return conn


@pytest.fixture
def mock_db(mock_conn):
    """Database whose acquire() hands out `mock_conn`."""
    from gameaccount.database import Database

    db = Database(url="sqlite+aiosqlite://", echo=False)
    with patch.object(db, "acquire", AsyncMock(return_value=mock_conn)):
        yield db


@pytest.fixture
def sample_account_row():
    """Persisted account row; password holds the hash of 'secret'."""
    return {
        "id": 7,
        "name": "bob",
        "password": hashlib.sha1(b"secret").hexdigest(),
        "type": 3,
        "premdays": 30,
        "lastday": 1700000000,
        "email": "bob@example.com",
        "creation": 1577836800000,
    }
