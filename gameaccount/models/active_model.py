"""ActiveRecord-style base Model class.

Provides object-relational mapping with ActiveRecord pattern:
- An explicit field list per model, copied through the model's setters
- Instance coroutines for persistence (save, delete)
- Class coroutines for queries (where)
"""

import logging
from typing import Any

from gameaccount.database import Database, WriteResult

logger = logging.getLogger(__name__)


class ActiveModelError(Exception):
    """Base exception for model errors."""

    pass


class ValidationError(ActiveModelError, ValueError):
    """Raised when a field assignment violates a constraint."""

    pass


class PreconditionError(ActiveModelError):
    """Raised when a persistence operation is missing required state.

    No query has been issued when this is raised.
    """

    pass


class ActiveModel:
    """Base class for ActiveRecord-style models.

    Subclasses must define:
    - table_name: Name of the database table
    - primary_key: Name of the auto-generated INTEGER primary key column
    - fields: Column names, in the order they are assigned on construction
    """

    table_name: str
    primary_key: str
    fields: tuple[str, ...]

    def __init__(self, database: Database, **kwargs):
        """Initialize model instance.

        Only names listed in `fields` are copied; anything else is ignored.

        Args:
            database: Database instance for connections
            **kwargs: Model attributes (column values)

        Raises:
            ValidationError: If a value is rejected by a field setter
        """
        # Validate required class attributes
        for attr in ("table_name", "primary_key", "fields"):
            if not hasattr(self, attr):
                raise AttributeError(
                    f"{self.__class__.__name__} must define '{attr}' class attribute"
                )

        self._database = database

        unknown = set(kwargs) - set(self.fields)
        if unknown:
            logger.debug(
                f"Ignoring unrecognized {self.__class__.__name__} fields: "
                f"{sorted(unknown)}"
            )

        for field in self.fields:
            if field in kwargs:
                setattr(self, field, kwargs[field])

    @classmethod
    def from_row(cls, database: Database, row: dict[str, Any]) -> "ActiveModel":
        """Rehydrate an instance from a persisted row."""
        instance = cls(database)
        instance._load_row(row)
        return instance

    def _load_row(self, row: dict[str, Any]) -> None:
        """Copy persisted column values onto the instance.

        Subclasses override this for columns whose stored form differs
        from what their setter accepts.
        """
        for field in self.fields:
            if field in row:
                setattr(self, field, row[field])

    def to_params(self) -> dict[str, Any]:
        """Map every field to its current value for use as bind parameters."""
        return {field: getattr(self, field) for field in self.fields}

    def _before_save(self) -> None:
        """Hook called before save operation.

        Subclasses can override to check preconditions and raise
        PreconditionError before any query is issued.
        """
        pass

    async def _save_to_database(self, conn, attrs: dict[str, Any]) -> WriteResult:
        """Perform the actual insert-or-replace.

        An unset primary key is left out of the statement so the database
        generates one.

        Args:
            conn: Acquired database connection
            attrs: Dictionary of attributes to save

        Returns:
            WriteResult reported by the connection
        """
        if not attrs.get(self.primary_key):
            attrs.pop(self.primary_key, None)

        columns = ", ".join(attrs.keys())
        placeholders = ", ".join(f":{col}" for col in attrs.keys())
        query = f"REPLACE INTO {self.table_name} ({columns}) VALUES ({placeholders})"

        return await conn.query(query, attrs)

    def _after_save(self, result: WriteResult) -> None:
        """Hook called after successful save operation."""
        pass

    async def save(self) -> WriteResult:
        """Save record (insert or replace).

        Uses template method pattern with hooks:
        1. _before_save() - precondition hook
        2. _save_to_database() - actual persistence
        3. _after_save() - post-save hook

        Returns:
            WriteResult of the statement

        Raises:
            PreconditionError: From _before_save, no query issued
            DatabaseConnectionError: If no connection can be acquired
            SQLAlchemyError: If the statement fails
        """
        self._before_save()

        attrs = self.to_params()
        async with self._database.connection() as conn:
            result = await self._save_to_database(conn, attrs)

        self._after_save(result)
        return result

    async def delete(self) -> WriteResult:
        """Delete the record matching this instance's primary key.

        Returns:
            WriteResult of the statement

        Raises:
            DatabaseConnectionError: If no connection can be acquired
            SQLAlchemyError: If the statement fails
        """
        pk_value = getattr(self, self.primary_key)
        if not pk_value:
            logger.debug(
                f"Deleting {self.__class__.__name__} without "
                f"{self.primary_key}; no row will match"
            )

        query = (
            f"DELETE FROM {self.table_name} "
            f"WHERE {self.primary_key} = :{self.primary_key}"
        )
        async with self._database.connection() as conn:
            return await conn.query(query, {self.primary_key: pk_value})

    @classmethod
    async def where(
        cls, database: Database, _limit: int | None = None, **kwargs
    ) -> list["ActiveModel"]:
        """Find all records matching criteria.

        Args:
            database: Database instance
            _limit: Maximum number of records to return
            **kwargs: Column name and value pairs to match

        Returns:
            List of Model instances, ordered by primary key
        """
        columns = ", ".join(cls.fields)
        query = f"SELECT {columns} FROM {cls.table_name}"

        if kwargs:
            where_clauses = " AND ".join(f"{col} = :{col}" for col in kwargs.keys())
            query += f" WHERE {where_clauses}"

        query += f" ORDER BY {cls.primary_key}"
        if _limit:
            query += f" LIMIT {int(_limit)}"

        async with database.connection() as conn:
            rows = await conn.query(query, kwargs)

        return [cls.from_row(database, row) for row in rows]
