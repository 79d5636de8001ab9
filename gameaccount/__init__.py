"""Game server account entity with async persistence."""

from gameaccount.database import Database, DatabaseConnectionError, DatabaseError
from gameaccount.models import (
    Account,
    ActiveModelError,
    PreconditionError,
    ValidationError,
)

__all__ = [
    "Account",
    "ActiveModelError",
    "Database",
    "DatabaseConnectionError",
    "DatabaseError",
    "PreconditionError",
    "ValidationError",
]
