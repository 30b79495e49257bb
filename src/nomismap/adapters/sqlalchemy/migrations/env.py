"""Alembic environment for the mapping tables."""

from __future__ import annotations

from logging.config import fileConfig
from pathlib import Path
from typing import Any

from alembic import context

from nomismap.adapters.sqlalchemy import create_database_engine, mapper_registry, start_mappers
from nomismap.config import get_database_config

config = context.config

if config.config_file_name is not None and Path(config.config_file_name).suffix == ".ini":
    fileConfig(config.config_file_name)

start_mappers()


def _configure(**options: Any) -> None:
    # batch mode so SQLite can alter constraints on the mapping tables
    context.configure(
        target_metadata=mapper_registry.metadata,
        render_as_batch=True,
        compare_type=True,
        **options,
    )


def _database_url() -> str:
    return config.get_main_option("sqlalchemy.url") or get_database_config().uri


def run_migrations_offline() -> None:
    _configure(url=_database_url(), literal_binds=True)
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Migrate over the caller's connection when ``upgrade_head`` passed one in."""

    connection = config.attributes.get("connection")
    if connection is not None:
        _configure(connection=connection)
        with context.begin_transaction():
            context.run_migrations()
        return

    engine = create_database_engine(_database_url())
    try:
        with engine.connect() as own_connection:
            _configure(connection=own_connection)
            with context.begin_transaction():
                context.run_migrations()
    finally:
        engine.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
