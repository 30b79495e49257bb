"""SQLAlchemy mapping metadata for the nomismap domain model."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from functools import cache
from typing import Final

from sqlalchemy import (
    BigInteger,
    Column,
    DateTime,
    Dialect,
    Enum,
    Index,
    Integer,
    String,
    Table,
    TypeDecorator,
    UniqueConstraint,
    orm,
)
from sqlalchemy.orm import configure_mappers

from nomismap.domain.model import (
    CsraMapping,
    MappingKind,
    MappingRecord,
    NonAssociationMapping,
    PrisonerMapping,
)

log = logging.getLogger(__name__)

LABEL_MAX_LENGTH: Final[int] = 20
OFFENDER_NO_MAX_LENGTH: Final[int] = 10
DPS_ID_MAX_LENGTH: Final[int] = 64


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


def _mapping_kind_column() -> Column[MappingKind]:
    return Column("mapping_kind", Enum(MappingKind, native_enum=False, length=30), nullable=False)


def _label_column() -> Column[str]:
    return Column("label", String(LABEL_MAX_LENGTH), nullable=True)


def _created_at_column() -> Column[datetime]:
    return Column("created_at", UTCDateTime(), nullable=False)


mapper_registry = orm.registry()
mapper_registry.metadata.naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_label)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

# Mapping tables ---------------------------------------------------------------

prisoner_mapping_table = Table(
    "prisoner_mapping",
    mapper_registry.metadata,
    Column("dps_id", String(DPS_ID_MAX_LENGTH), primary_key=True),
    Column("nomis_id", BigInteger, nullable=False),
    _label_column(),
    _mapping_kind_column(),
    _created_at_column(),
    UniqueConstraint("nomis_id", name="uq_prisoner_mapping_nomis_id"),
    Index("ix_prisoner_mapping_label", "label"),
)

csra_mapping_table = Table(
    "csra_mapping",
    mapper_registry.metadata,
    Column("dps_csra_id", String(DPS_ID_MAX_LENGTH), primary_key=True),
    Column("nomis_booking_id", BigInteger, nullable=False),
    Column("nomis_sequence", Integer, nullable=False),
    Column("offender_no", String(OFFENDER_NO_MAX_LENGTH), nullable=False),
    _label_column(),
    _mapping_kind_column(),
    _created_at_column(),
    UniqueConstraint(
        "nomis_booking_id", "nomis_sequence", name="uq_csra_mapping_nomis_booking_id"
    ),
    Index("ix_csra_mapping_label", "label"),
    Index("ix_csra_mapping_offender_no", "offender_no"),
)

non_association_mapping_table = Table(
    "non_association_mapping",
    mapper_registry.metadata,
    Column("non_association_id", BigInteger, primary_key=True, autoincrement=False),
    Column("first_offender_no", String(OFFENDER_NO_MAX_LENGTH), nullable=False),
    Column("second_offender_no", String(OFFENDER_NO_MAX_LENGTH), nullable=False),
    Column("nomis_type_sequence", Integer, nullable=False),
    _label_column(),
    _mapping_kind_column(),
    _created_at_column(),
    UniqueConstraint(
        "first_offender_no",
        "second_offender_no",
        "nomis_type_sequence",
        name="uq_non_association_mapping_first_offender_no",
    ),
    Index("ix_non_association_mapping_first_offender_no", "first_offender_no"),
    Index("ix_non_association_mapping_second_offender_no", "second_offender_no"),
    Index("ix_non_association_mapping_label", "label"),
)

TABLE_BY_CLASS: Final[dict[type[MappingRecord], Table]] = {
    PrisonerMapping: prisoner_mapping_table,
    CsraMapping: csra_mapping_table,
    NonAssociationMapping: non_association_mapping_table,
}


@cache
def start_mappers() -> orm.registry:
    """Configure SQLAlchemy mappers for the domain model."""

    log.info("Starting SQLAlchemy mappers")

    for record_cls, table in TABLE_BY_CLASS.items():
        mapper_registry.map_imperatively(record_cls, table)

    configure_mappers()
    return mapper_registry
