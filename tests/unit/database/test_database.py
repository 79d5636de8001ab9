"""Unit tests for the database access service.

Tests Database/Connection management logic only - using mocks.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from sqlalchemy.exc import OperationalError

from gameaccount.database import (
    Connection,
    Database,
    DatabaseConnectionError,
    DatabaseError,
    WriteResult,
)


def _operational_error(message="disk I/O error"):
    return OperationalError("SELECT 1", {}, Exception(message))


class TestDatabaseInitialization:
    """Test Database initialization."""

    def test_initialization_stores_url(self):
        """Test that __init__ stores the URL and echo flag."""
        with patch("gameaccount.database.Path"):
            db = Database(url="sqlite+aiosqlite:////test/path.db", echo=True)
            assert db.url == "sqlite+aiosqlite:////test/path.db"
            assert db.echo is True

    def test_initialization_uses_configured_url(self, monkeypatch):
        """Test that the URL falls back to environment configuration."""
        monkeypatch.setenv("DATABASE_URL", "sqlite+aiosqlite://")
        db = Database()
        assert db.url == "sqlite+aiosqlite://"

    def test_initialization_creates_parent_directory(self):
        """Test that __init__ creates the SQLite file's parent directory."""
        with patch("gameaccount.database.Path") as mock_path:
            Database(url="sqlite+aiosqlite:////test/path/to/db.db", echo=False)
            mock_path.assert_called_once_with("/test/path/to/db.db")
            mock_path.return_value.parent.mkdir.assert_called_once_with(
                parents=True, exist_ok=True
            )

    def test_initialization_skips_directory_for_memory_db(self):
        """Test that __init__ skips directory creation for in-memory databases."""
        with patch("gameaccount.database.Path") as mock_path:
            Database(url="sqlite+aiosqlite://", echo=False)
            mock_path.assert_not_called()

    def test_initialization_handles_directory_creation_failure(self):
        """Test that __init__ raises DatabaseConnectionError on mkdir failure."""
        with patch("gameaccount.database.Path") as mock_path:
            mock_path.return_value.parent.mkdir.side_effect = OSError(
                "Permission denied"
            )

            with pytest.raises(
                DatabaseConnectionError, match="Cannot create database directory"
            ):
                Database(url="sqlite+aiosqlite:////test/path.db", echo=False)

    def test_initialization_rejects_invalid_url(self):
        """Test that a malformed URL is reported as a connection error."""
        with pytest.raises(DatabaseConnectionError, match="Invalid database URL"):
            Database(url="not a url", echo=False)


class TestAcquire:
    """Test connection acquisition."""

    async def test_acquire_wraps_connection(self):
        """Test that acquire() returns a Connection around the engine's connection."""
        db = Database(url="sqlite+aiosqlite://", echo=False)
        raw = AsyncMock()
        with patch.object(db, "_engine") as mock_engine:
            mock_engine.connect = AsyncMock(return_value=raw)
            conn = await db.acquire()

        assert isinstance(conn, Connection)
        assert conn.released is False

    async def test_acquire_failure_raises_connection_error(self):
        """Test that driver errors during connect become DatabaseConnectionError."""
        db = Database(url="sqlite+aiosqlite://", echo=False)
        with patch.object(db, "_engine") as mock_engine:
            mock_engine.connect = AsyncMock(side_effect=_operational_error())

            with pytest.raises(
                DatabaseConnectionError, match="Database connection failed"
            ) as exc_info:
                await db.acquire()

        assert isinstance(exc_info.value.__cause__, OperationalError)


class TestConnectionUnitOfWork:
    """Test Database.connection() acquire/commit/rollback/release."""

    async def test_commits_and_releases_on_success(self, mock_db, mock_conn):
        async with mock_db.connection() as conn:
            assert conn is mock_conn

        mock_conn.commit.assert_awaited_once()
        mock_conn.rollback.assert_not_awaited()
        mock_conn.release.assert_awaited_once()

    async def test_rolls_back_and_releases_on_sql_error(self, mock_db, mock_conn):
        mock_conn.query.side_effect = _operational_error()

        with pytest.raises(OperationalError):
            async with mock_db.connection() as conn:
                await conn.query("DELETE FROM accounts WHERE id = :id", {"id": 1})

        mock_conn.commit.assert_not_awaited()
        mock_conn.rollback.assert_awaited_once()
        mock_conn.release.assert_awaited_once()

    async def test_releases_on_other_errors(self, mock_db, mock_conn):
        with pytest.raises(RuntimeError, match="boom"):
            async with mock_db.connection():
                raise RuntimeError("boom")

        mock_conn.rollback.assert_awaited_once()
        mock_conn.release.assert_awaited_once()

    async def test_release_failure_is_logged_not_raised(self, mock_db, mock_conn, caplog):
        mock_conn.release.side_effect = _operational_error("connection lost")

        async with mock_db.connection():
            pass

        assert "Error releasing database connection" in caplog.text

    async def test_release_failure_keeps_original_error(
        self, mock_db, mock_conn, caplog
    ):
        mock_conn.release.side_effect = OSError("socket closed")

        with pytest.raises(RuntimeError, match="boom"):
            async with mock_db.connection():
                raise RuntimeError("boom")

        mock_conn.release.assert_awaited_once()
        assert "Error releasing database connection: socket closed" in caplog.text

    async def test_acquire_failure_propagates_without_release(self, mock_db, mock_conn):
        mock_db.acquire.side_effect = DatabaseConnectionError("pool exhausted")

        with pytest.raises(DatabaseConnectionError, match="pool exhausted"):
            async with mock_db.connection():
                pass

        mock_conn.release.assert_not_awaited()


class TestConnection:
    """Test Connection query/release behavior."""

    async def test_query_returns_rows_as_dicts(self):
        raw = AsyncMock()
        result = MagicMock()
        result.returns_rows = True
        result.mappings.return_value = [{"id": 1, "name": "bob"}]
        raw.execute.return_value = result

        rows = await Connection(raw).query(
            "SELECT id, name FROM accounts WHERE name = :name", {"name": "bob"}
        )

        assert rows == [{"id": 1, "name": "bob"}]
        statement, params = raw.execute.await_args.args
        assert str(statement) == "SELECT id, name FROM accounts WHERE name = :name"
        assert params == {"name": "bob"}

    async def test_query_returns_write_result(self):
        raw = AsyncMock()
        result = MagicMock()
        result.returns_rows = False
        result.lastrowid = 7
        result.rowcount = 1
        raw.execute.return_value = result

        outcome = await Connection(raw).query("DELETE FROM accounts")

        assert outcome == WriteResult(insert_id=7, affected_rows=1)

    async def test_query_reports_missing_insert_id_as_none(self):
        raw = AsyncMock()
        result = MagicMock()
        result.returns_rows = False
        result.lastrowid = 0
        result.rowcount = 0
        raw.execute.return_value = result

        outcome = await Connection(raw).query("DELETE FROM accounts WHERE id = 0")

        assert outcome.insert_id is None
        assert outcome.affected_rows == 0

    async def test_release_is_idempotent(self):
        raw = AsyncMock()
        conn = Connection(raw)

        await conn.release()
        await conn.release()

        raw.close.assert_awaited_once()
        assert conn.released is True

    async def test_query_after_release_fails(self):
        conn = Connection(AsyncMock())
        await conn.release()

        with pytest.raises(DatabaseError, match="already released"):
            await conn.query("SELECT 1")
