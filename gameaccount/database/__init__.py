"""Database access service.

Connection management and query execution only.
No business logic - models build their own queries and hand them to a
Connection together with their bound parameters.
"""

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any, AsyncIterator

from sqlalchemy import event, text
from sqlalchemy.engine import make_url
from sqlalchemy.exc import ArgumentError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncConnection, create_async_engine
from sqlalchemy.pool import StaticPool

from gameaccount import config

logger = logging.getLogger(__name__)


class DatabaseError(Exception):
    """Base exception for database errors."""

    pass


class DatabaseConnectionError(DatabaseError):
    """Raised when a connection cannot be acquired."""

    pass


@dataclass(frozen=True)
class WriteResult:
    """Outcome of a statement that returns no rows."""

    insert_id: int | None
    affected_rows: int


def _configure_sqlite(dbapi_connection, connection_record) -> None:
    """Enable WAL mode on every new SQLite file connection."""
    cursor = dbapi_connection.cursor()
    try:
        cursor.execute("PRAGMA journal_mode=WAL")
    finally:
        cursor.close()


class Connection:
    """A connection acquired from the Database pool.

    Must be released exactly once; `Database.connection()` does this
    for you.
    """

    def __init__(self, connection: AsyncConnection):
        self._connection = connection
        self.released = False

    async def query(
        self, template: str, params: dict[str, Any] | None = None
    ) -> list[dict[str, Any]] | WriteResult:
        """Execute a statement with named (`:name`) placeholders.

        Args:
            template: SQL text using `:name` bind parameters
            params: Values for the bind parameters

        Returns:
            List of row dicts for reads, WriteResult for writes

        Raises:
            DatabaseError: If the connection was already released
            SQLAlchemyError: If the statement fails
        """
        if self.released:
            raise DatabaseError("Connection already released")

        result = await self._connection.execute(text(template), params or {})
        if result.returns_rows:
            return [dict(row) for row in result.mappings()]
        return WriteResult(
            insert_id=result.lastrowid or None,
            affected_rows=result.rowcount,
        )

    async def commit(self) -> None:
        await self._connection.commit()

    async def rollback(self) -> None:
        await self._connection.rollback()

    async def release(self) -> None:
        """Return the connection to the pool. Safe to call twice."""
        if self.released:
            return
        self.released = True
        await self._connection.close()


class Database:
    """Async database connection manager.

    Provides connection management only - no business logic.
    Models use the acquired connections for their own persistence.
    """

    def __init__(self, url: str | None = None, echo: bool | None = None):
        """Initialize the engine.

        Args:
            url: SQLAlchemy async URL (default: from environment configuration)
            echo: Log every statement (default: from environment configuration)

        Raises:
            DatabaseConnectionError: If directory creation or engine setup fails
        """
        self.url = url or config.get_database_url()
        self.echo = config.get_echo() if echo is None else echo

        try:
            parsed = make_url(self.url)
        except ArgumentError as e:
            raise DatabaseConnectionError(f"Invalid database URL: {e}") from e

        is_sqlite = parsed.get_backend_name() == "sqlite"
        db_path = parsed.database
        in_memory = is_sqlite and db_path in (None, "", ":memory:")

        # Ensure data directory exists
        if is_sqlite and not in_memory:
            try:
                Path(db_path).parent.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                logger.error(
                    f"Failed to create database directory for {db_path}: {e}",
                    exc_info=True,
                )
                raise DatabaseConnectionError(
                    f"Cannot create database directory: {e}"
                ) from e

        engine_kwargs: dict[str, Any] = {"echo": self.echo}
        if in_memory:
            # One shared connection, otherwise every acquire sees an empty database
            engine_kwargs["poolclass"] = StaticPool
            engine_kwargs["connect_args"] = {"check_same_thread": False}

        try:
            self._engine = create_async_engine(self.url, **engine_kwargs)
        except (ArgumentError, ImportError) as e:
            logger.error(f"Failed to create database engine: {e}", exc_info=True)
            raise DatabaseConnectionError(f"Cannot create database engine: {e}") from e

        if is_sqlite and not in_memory:
            event.listen(self._engine.sync_engine, "connect", _configure_sqlite)

    async def acquire(self) -> Connection:
        """Acquire a connection from the pool.

        Raises:
            DatabaseConnectionError: If the connection cannot be opened
        """
        try:
            connection = await self._engine.connect()
        except (SQLAlchemyError, OSError) as e:
            logger.error(f"Failed to connect to database: {e}", exc_info=True)
            raise DatabaseConnectionError(f"Database connection failed: {e}") from e
        return Connection(connection)

    @asynccontextmanager
    async def connection(self) -> AsyncIterator[Connection]:
        """Unit of work: acquire, yield, commit or roll back, release.

        Usage:
            async with db.connection() as conn:
                rows = await conn.query("SELECT * FROM accounts WHERE id = :id", {"id": 1})

        The connection is released on every path, including failures.

        Raises:
            DatabaseConnectionError: If connection fails
        """
        conn = await self.acquire()
        try:
            yield conn
            await conn.commit()
        except SQLAlchemyError as e:
            await conn.rollback()
            logger.error(
                f"Database transaction rolled back due to SQL error: {e}",
                exc_info=True,
            )
            raise
        except Exception as e:
            await conn.rollback()
            logger.error(f"Database transaction rolled back: {e}", exc_info=True)
            raise
        finally:
            try:
                await conn.release()
            except Exception as e:
                logger.warning(f"Error releasing database connection: {e}", exc_info=True)

    async def dispose(self) -> None:
        """Close every pooled connection."""
        await self._engine.dispose()
