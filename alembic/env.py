from logging.config import fileConfig

from sqlalchemy import create_engine, pool

from alembic import context
from gameaccount.config import get_sync_database_url

# this is the Alembic Config object, which provides
# access to the values within the .ini file in use.
config = context.config

# An explicit URL (e.g. set by the test suite) wins over the environment.
# The migration engine is synchronous, so the async driver is swapped out.
sqlalchemy_url = config.get_main_option("sqlalchemy.url") or get_sync_database_url()
if sqlalchemy_url.startswith("sqlite+aiosqlite"):
    sqlalchemy_url = sqlalchemy_url.replace("sqlite+aiosqlite", "sqlite", 1)
config.set_main_option("sqlalchemy.url", sqlalchemy_url)

# Interpret the config file for Python logging.
# This line sets up loggers basically.
if config.config_file_name is not None:
    fileConfig(config.config_file_name, disable_existing_loggers=False)

# No declarative models; revisions are written by hand.
target_metadata = None


def run_migrations_offline() -> None:
    """Run migrations in 'offline' mode.

    Configures the context with just a URL and emits the SQL to the
    script output instead of executing it.
    """
    context.configure(
        url=sqlalchemy_url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Run migrations in 'online' mode against a live connection."""
    connectable = create_engine(sqlalchemy_url, poolclass=pool.NullPool)

    with connectable.connect() as connection:
        context.configure(connection=connection, target_metadata=target_metadata)

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
