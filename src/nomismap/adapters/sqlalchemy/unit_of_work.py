"""SQLAlchemy-backed units of work for the mapping stores."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Literal, Self

from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker

from nomismap.adapters.sqlalchemy.mappings import start_mappers
from nomismap.adapters.sqlalchemy.migrations import upgrade_head
from nomismap.adapters.sqlalchemy.repositories import (
    SqlAlchemyCsraMappingStore,
    SqlAlchemyNonAssociationStore,
    SqlAlchemyPrisonerMappingStore,
    StrictlyIncreasingClock,
    utcnow,
)
from nomismap.config import DATABASE_URI_ENV, get_database_config
from nomismap.domain.ports.unit_of_work import MappingRepositories

if TYPE_CHECKING:
    from sqlite3 import Connection as SQLiteConnection
    from types import TracebackType

    from sqlalchemy.engine import Connection, Engine

    from nomismap.adapters.sqlalchemy.repositories import Clock

log = logging.getLogger(__name__)


class StartupError(RuntimeError):
    """Raised when a SQLAlchemy unit of work is used before initialisation."""


def create_database_engine(database_uri: str) -> Engine:
    """Create an engine; SQLite gets working SAVEPOINT support.

    pysqlite issues its own BEGIN lazily, which breaks ``Session.begin_nested``.
    Autocommit is switched off at the driver and BEGIN is emitted by SQLAlchemy instead.
    """

    engine = create_engine(database_uri, future=True)
    if engine.dialect.name != "sqlite":
        return engine

    @event.listens_for(engine, "connect")
    def _disable_pysqlite_begin(  # pyright: ignore[reportUnusedFunction]
        dbapi_connection: SQLiteConnection, connection_record: object
    ) -> None:
        _ = connection_record
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _emit_begin(conn: Connection) -> None:  # pyright: ignore[reportUnusedFunction]
        conn.exec_driver_sql("BEGIN")

    return engine


def _configured_database_uri() -> str:
    config = get_database_config()
    if config.from_env:
        log.info("Using database configured by %s", DATABASE_URI_ENV)
    return config.uri


class SqlAlchemyDatabase:
    """Owns one engine and its session factory.

    Each process (or test) builds its own instance and passes its ``unit_of_work``
    method wherever a unit-of-work factory is expected.
    """

    def __init__(
        self,
        *,
        engine: Engine | None = None,
        database_uri: str | None = None,
        clock: Clock = utcnow,
    ) -> None:
        self._engine_override = engine
        self._database_uri = database_uri
        self.clock = StrictlyIncreasingClock(clock)
        self._engine: Engine | None = None
        self._session_factory: sessionmaker[Session] | None = None

    def startup(self, *, force: bool = False, migrate: bool = True) -> None:
        """Initialise the engine, mappers and schema."""

        if self._engine is not None and not force:
            raise StartupError("Database already initialised. Pass force=True to reconfigure.")
        if self._engine is not None:
            self.shutdown()

        engine = self._engine_override or create_database_engine(
            self._database_uri or _configured_database_uri()
        )
        start_mappers()
        if migrate:
            upgrade_head(engine=engine)
        self._engine = engine
        self._session_factory = sessionmaker(bind=engine, expire_on_commit=False)
        log.debug("Database started on %s", engine.url.render_as_string(hide_password=True))

    def shutdown(self) -> None:
        """Dispose the managed engine and reset state."""

        if self._engine is not None:
            self._engine.dispose()
        self._engine = None
        self._session_factory = None

    def is_started(self) -> bool:
        return self._engine is not None

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            raise StartupError("Database not initialised. Call startup() first.")
        return self._engine

    @property
    def session_factory(self) -> sessionmaker[Session]:
        if self._session_factory is None:
            raise StartupError(
                "Database not initialised. Call startup() before requesting a unit of work."
            )
        return self._session_factory

    def unit_of_work(self) -> SqlAlchemyMappingUnitOfWork:
        return SqlAlchemyMappingUnitOfWork(self.session_factory, clock=self.clock)

    def __enter__(self) -> SqlAlchemyDatabase:
        if not self.is_started():
            self.startup()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        self.shutdown()
        return False


class SqlAlchemyMappingUnitOfWork:
    """One session, and one store per mapping type bound to it, per ``with`` block.

    Leaving the block closes the session. Uncommitted work is rolled back, explicitly
    when the block raised.
    """

    def __init__(self, session_factory: sessionmaker[Session], *, clock: Clock = utcnow) -> None:
        self.session_factory = session_factory
        self.clock = clock
        self._session: Session | None = None
        self._repositories: MappingRepositories | None = None

    def __enter__(self) -> Self:
        if self._session is not None:
            raise StartupError("Unit of work already in progress")
        session = self.session_factory()
        self._session = session
        self._repositories = MappingRepositories(
            prisoners=SqlAlchemyPrisonerMappingStore(session, clock=self.clock),
            csras=SqlAlchemyCsraMappingStore(session, clock=self.clock),
            non_associations=SqlAlchemyNonAssociationStore(session, clock=self.clock),
        )
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        session = self.session
        try:
            if exc_type is not None:
                session.rollback()
        finally:
            session.close()
            self._session = None
            self._repositories = None
        return False

    @property
    def session(self) -> Session:
        if self._session is None:
            raise StartupError("Unit of work is not active; use it as a context manager")
        return self._session

    @property
    def repositories(self) -> MappingRepositories:
        if self._repositories is None:
            raise StartupError("Unit of work is not active; use it as a context manager")
        return self._repositories

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()


if TYPE_CHECKING:
    from nomismap.domain.ports.unit_of_work import MappingUnitOfWork

    _uow_check: MappingUnitOfWork = SqlAlchemyMappingUnitOfWork(sessionmaker())
