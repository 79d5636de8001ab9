"""Environment configuration.

Values are read from the process environment. A `.env` file in the working
directory, if one exists, is loaded each time the database URL is resolved.

Variables:
- DATABASE_URL: Full SQLAlchemy async URL (takes precedence)
- DB_PATH: SQLite database file used when DATABASE_URL is unset
- DB_ECHO: Log every SQL statement when set to 1/true/yes
"""

import os

from dotenv import load_dotenv

DEFAULT_DB_PATH = "data/accounts.db"


def get_database_url() -> str:
    """Return the async database URL for the accounts store."""
    load_dotenv()
    url = os.getenv("DATABASE_URL")
    if url:
        return url

    db_path = os.getenv("DB_PATH", DEFAULT_DB_PATH)
    if db_path == ":memory:":
        return "sqlite+aiosqlite://"
    return f"sqlite+aiosqlite:///{os.path.abspath(db_path)}"


def get_sync_database_url() -> str:
    """Return the database URL with the async driver swapped for a sync one.

    Alembic runs migrations through a blocking engine.
    """
    url = get_database_url()
    if url.startswith("sqlite+aiosqlite"):
        return url.replace("sqlite+aiosqlite", "sqlite", 1)
    return url


def get_echo() -> bool:
    return os.getenv("DB_ECHO", "").lower() in ("1", "true", "yes")
