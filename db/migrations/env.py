"""Alembic environment configuration for async SQLAlchemy.

Reads the same DATABASE_URL / DATABASE_NAME settings as the notifier, so the
tables and the alembic_version table land in the schema the notifier queries.
"""
import asyncio
from logging.config import fileConfig

from alembic import context
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.schema import CreateSchema

from app_config import load_database_config

# Alembic Config object
config = context.config

# Setup logging from alembic.ini
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

# Import all models so Alembic can detect them
from db.models import Base

target_metadata = Base.metadata

conf = load_database_config()


def include_name(name, type_, parent_names) -> bool:
    # Autogenerate only looks at the notifier's schema.
    if type_ == "schema":
        return name == conf.name
    return True


def _configure_kwargs() -> dict:
    kwargs = {"target_metadata": target_metadata}
    if conf.name:
        kwargs.update(
            version_table_schema=conf.name,
            include_schemas=True,
            include_name=include_name,
        )
    return kwargs


def _run_migrations() -> None:
    with context.begin_transaction():
        # The version table is created inside run_migrations; its schema must exist first.
        if conf.name:
            context.execute(CreateSchema(conf.name, if_not_exists=True))
        context.run_migrations()


def run_migrations_offline() -> None:
    """Run migrations in 'offline' mode (generates SQL without connecting)."""
    context.configure(
        url=conf.connection_string,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **_configure_kwargs(),
    )
    _run_migrations()


def do_run_migrations(connection) -> None:
    context.configure(connection=connection, **_configure_kwargs())
    _run_migrations()


async def run_async_migrations() -> None:
    """Run migrations using an async engine."""
    connectable = create_async_engine(conf.connection_string)
    async with connectable.connect() as connection:
        await connection.run_sync(do_run_migrations)
    await connectable.dispose()


def run_migrations_online() -> None:
    """Run migrations in 'online' mode."""
    asyncio.run(run_async_migrations())


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
