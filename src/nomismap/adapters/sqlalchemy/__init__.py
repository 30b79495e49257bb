"""SQLAlchemy adapter package for nomismap."""

from __future__ import annotations

from .mappings import TABLE_BY_CLASS, mapper_registry, start_mappers
from .repositories import (
    SqlAlchemyCsraMappingStore,
    SqlAlchemyMappingStore,
    SqlAlchemyNonAssociationStore,
    SqlAlchemyPrisonerMappingStore,
    StrictlyIncreasingClock,
    translate_store_errors,
)
from .unit_of_work import (
    SqlAlchemyDatabase,
    SqlAlchemyMappingUnitOfWork,
    StartupError,
    create_database_engine,
)

__all__ = [
    "TABLE_BY_CLASS",
    "SqlAlchemyCsraMappingStore",
    "SqlAlchemyDatabase",
    "SqlAlchemyMappingStore",
    "SqlAlchemyMappingUnitOfWork",
    "SqlAlchemyNonAssociationStore",
    "SqlAlchemyPrisonerMappingStore",
    "StartupError",
    "StrictlyIncreasingClock",
    "create_database_engine",
    "mapper_registry",
    "start_mappers",
    "translate_store_errors",
]
