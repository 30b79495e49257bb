"""Public domain model surface."""

from __future__ import annotations

from nomismap.domain.model.enums import MappingKind, MappingType, is_migrated, migrated_kinds
from nomismap.domain.model.mappings import (
    MAPPING_CLASS_BY_TYPE,
    CsraMapping,
    MappingRecord,
    NonAssociationKey,
    NonAssociationMapping,
    PrimaryKey,
    PrisonerMapping,
    SecondaryKey,
    is_self_pairing,
)

__all__ = [
    "MAPPING_CLASS_BY_TYPE",
    "CsraMapping",
    "MappingKind",
    "MappingRecord",
    "MappingType",
    "NonAssociationKey",
    "NonAssociationMapping",
    "PrimaryKey",
    "PrisonerMapping",
    "SecondaryKey",
    "is_migrated",
    "is_self_pairing",
    "migrated_kinds",
]
