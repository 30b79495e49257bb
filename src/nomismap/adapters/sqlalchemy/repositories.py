"""Mapping stores backed by SQLAlchemy sessions."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from contextlib import contextmanager
from datetime import UTC, datetime, timedelta
from threading import Lock
from typing import TYPE_CHECKING, cast

from sqlalchemy import and_, delete, func, or_, select
from sqlalchemy.exc import DisconnectionError, IntegrityError, InterfaceError, OperationalError

from nomismap.adapters.sqlalchemy.mappings import TABLE_BY_CLASS
from nomismap.domain.errors import StoreUnavailable
from nomismap.domain.model import (
    CsraMapping,
    MappingRecord,
    NonAssociationMapping,
    PrisonerMapping,
    migrated_kinds,
)
from nomismap.domain.outcomes import Inserted, PrimaryKeyTaken, SecondaryKeyTaken

if TYPE_CHECKING:
    from sqlalchemy import ColumnElement, Select
    from sqlalchemy.orm import Session

    from nomismap.domain.model import NonAssociationKey, PrimaryKey, SecondaryKey
    from nomismap.domain.outcomes import InsertResult

type Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(UTC)


class StrictlyIncreasingClock:
    """Wraps a clock so no two calls in this process return the same instant.

    A reading at or before the previous one is bumped a microsecond past it, so
    ``created_at`` follows insertion order even when the wall clock stalls or steps back.
    """

    def __init__(self, clock: Clock = utcnow) -> None:
        self._clock = clock
        self._last: datetime | None = None
        self._lock = Lock()

    def __call__(self) -> datetime:
        with self._lock:
            now = self._clock()
            if self._last is not None and now <= self._last:
                now = self._last + timedelta(microseconds=1)
            self._last = now
            return now


@contextmanager
def translate_store_errors() -> Iterator[None]:
    """Surface driver-level connectivity faults as ``StoreUnavailable``."""

    try:
        yield
    except (OperationalError, InterfaceError, DisconnectionError) as exc:
        raise StoreUnavailable(f"Mapping store unavailable: {exc}") from exc


class SqlAlchemyLabelScan[TRecord: MappingRecord]:
    """Restartable scan: each iteration executes the statement again."""

    def __init__(self, session: Session, statement: Select[tuple[TRecord]]) -> None:
        self.session = session
        self._statement = statement

    def __iter__(self) -> Iterator[TRecord]:
        with translate_store_errors():
            yield from self.session.scalars(self._statement)


class SqlAlchemyMappingStore[TRecord: MappingRecord]:
    """Shared store logic for any mapping table with one primary and one natural key."""

    def __init__(
        self,
        session: Session,
        record_cls: type[TRecord],
        *,
        clock: Clock = utcnow,
    ) -> None:
        self.session = session
        self._record_cls = record_cls
        self._table = TABLE_BY_CLASS[record_cls]
        self._clock = clock

    def insert(self, record: TRecord) -> InsertResult[TRecord]:
        existing = self.find_by_primary(record.primary_key)
        if existing is not None:
            return PrimaryKeyTaken(existing=existing)
        existing = self.find_by_secondary(record.secondary_key)
        if existing is not None:
            return SecondaryKeyTaken(existing=existing)

        submitted_at = record.created_at
        record.created_at = self._clock()
        try:
            with translate_store_errors(), self.session.begin_nested():
                self.session.add(record)
        except IntegrityError:
            # lost a race against a concurrent writer; report whichever key it took
            record.created_at = submitted_at
            existing = self.find_by_primary(record.primary_key)
            if existing is not None:
                return PrimaryKeyTaken(existing=existing)
            return SecondaryKeyTaken(existing=self.find_by_secondary(record.secondary_key))
        return Inserted(record=record)

    def find_by_primary(self, key: PrimaryKey) -> TRecord | None:
        with translate_store_errors():
            return self.session.get(self._record_cls, key)

    def find_by_secondary(self, key: SecondaryKey) -> TRecord | None:
        stmt = select(self._record_cls).where(self._secondary_key_clause(key))
        with translate_store_errors():
            return self.session.execute(stmt).scalar_one_or_none()

    def delete(self, key: PrimaryKey) -> bool:
        with translate_store_errors():
            record = self.session.get(self._record_cls, key)
            if record is None:
                return False
            self.session.delete(record)
            self.session.flush()
        return True

    def scan_by_label(self, label: str) -> SqlAlchemyLabelScan[TRecord]:
        stmt = (
            select(self._record_cls)
            .where(self._table.c.label == label)
            .order_by(self._table.c.created_at, self._primary_column)
        )
        return SqlAlchemyLabelScan(self.session, stmt)

    def latest_migrated(self) -> TRecord | None:
        stmt = (
            select(self._record_cls)
            .where(self._table.c.mapping_kind.in_(migrated_kinds()))
            .order_by(self._table.c.created_at.desc(), self._primary_column.desc())
            .limit(1)
        )
        with translate_store_errors():
            return self.session.execute(stmt).scalar_one_or_none()

    def delete_all(self, *, only_migrated: bool = False) -> int:
        conditions: list[ColumnElement[bool]] = []
        if only_migrated:
            conditions.append(self._table.c.mapping_kind.in_(migrated_kinds()))
        count_stmt = select(func.count()).select_from(self._table).where(*conditions)
        stmt = delete(self._record_cls).where(*conditions)
        with translate_store_errors():
            count = self.session.scalar(count_stmt) or 0
            self.session.execute(stmt.execution_options(synchronize_session="fetch"))
        return count

    @property
    def _primary_column(self) -> ColumnElement[object]:
        return self._table.c[self._record_cls.PRIMARY_FIELD]

    def _secondary_key_clause(self, key: SecondaryKey) -> ColumnElement[bool]:
        names = self._record_cls.SECONDARY_FIELDS
        if len(key) != len(names):
            raise ValueError(
                f"{self._record_cls.__name__} secondary key has {len(names)} parts, got {key!r}"
            )
        return and_(*(self._table.c[name] == value for name, value in zip(names, key, strict=True)))


class SqlAlchemyPrisonerMappingStore(SqlAlchemyMappingStore[PrisonerMapping]):
    def __init__(self, session: Session, *, clock: Clock = utcnow) -> None:
        super().__init__(session, PrisonerMapping, clock=clock)


class SqlAlchemyCsraMappingStore(SqlAlchemyMappingStore[CsraMapping]):
    def __init__(self, session: Session, *, clock: Clock = utcnow) -> None:
        super().__init__(session, CsraMapping, clock=clock)


class SqlAlchemyNonAssociationStore(SqlAlchemyMappingStore[NonAssociationMapping]):
    """Non-association store with identity-level lookups used by merges."""

    def __init__(self, session: Session, *, clock: Clock = utcnow) -> None:
        super().__init__(session, NonAssociationMapping, clock=clock)

    def find_by_identity(self, offender_no: str) -> list[NonAssociationMapping]:
        columns = self._table.c
        stmt = (
            select(NonAssociationMapping)
            .where(
                or_(
                    columns.first_offender_no == offender_no,
                    columns.second_offender_no == offender_no,
                )
            )
            .order_by(columns.non_association_id)
        )
        with translate_store_errors():
            return list(self.session.scalars(stmt))

    def find_by_pair(self, offender_no: str, other_offender_no: str) -> list[NonAssociationMapping]:
        columns = self._table.c
        stmt = (
            select(NonAssociationMapping)
            .where(
                or_(
                    and_(
                        columns.first_offender_no == offender_no,
                        columns.second_offender_no == other_offender_no,
                    ),
                    and_(
                        columns.first_offender_no == other_offender_no,
                        columns.second_offender_no == offender_no,
                    ),
                )
            )
            .order_by(columns.non_association_id)
        )
        with translate_store_errors():
            return list(self.session.scalars(stmt))

    def rekey(self, record: NonAssociationMapping, key: NonAssociationKey) -> bool:
        """Rewrite the natural key; ``False`` if the new key was taken at flush time."""

        try:
            with translate_store_errors(), self.session.begin_nested():
                record.reassign(key)
        except IntegrityError:
            with translate_store_errors():
                self.session.refresh(record)
            return False
        return True


if TYPE_CHECKING:
    from nomismap.domain.ports.persistence import MappingStore, NonAssociationStore

    _session_stub = cast("Session", object())
    _prisoner_store: MappingStore[PrisonerMapping] = SqlAlchemyPrisonerMappingStore(_session_stub)
    _csra_store: MappingStore[CsraMapping] = SqlAlchemyCsraMappingStore(_session_stub)
    _na_store: NonAssociationStore = SqlAlchemyNonAssociationStore(_session_stub)
