from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest
from sqlalchemy.engine import Engine  # noqa: TC002
from sqlalchemy.orm import Session, sessionmaker

from nomismap.adapters.sqlalchemy import SqlAlchemyDatabase, create_database_engine, start_mappers
from nomismap.adapters.sqlalchemy.migrations import upgrade_head
from tests.helpers.mappings import SteppingClock

os.environ.setdefault("DATABASE_URI", "sqlite+pysqlite:///:memory:")

if TYPE_CHECKING:
    from collections.abc import Iterator

    from nomismap.app import UnitOfWorkFactory


@pytest.fixture
def clock() -> SteppingClock:
    return SteppingClock()


@pytest.fixture
def sqlite_engine() -> Iterator[Engine]:
    engine = create_database_engine("sqlite+pysqlite:///:memory:")
    start_mappers()
    upgrade_head(engine=engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def sqlite_session(sqlite_engine: Engine) -> Iterator[Session]:
    session_factory = sessionmaker(bind=sqlite_engine, expire_on_commit=False)
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def database(sqlite_engine: Engine, clock: SteppingClock) -> Iterator[SqlAlchemyDatabase]:
    database = SqlAlchemyDatabase(engine=sqlite_engine, clock=clock)
    database.startup(migrate=False)
    try:
        yield database
    finally:
        database.shutdown()


@pytest.fixture
def unit_of_work_factory(database: SqlAlchemyDatabase) -> UnitOfWorkFactory:
    return database.unit_of_work
