"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum
from typing import assert_never


class MappingKind(StrEnum):
    """How a correlation record came to exist."""

    MIGRATED = "MIGRATED"
    NOMIS_CREATED = "NOMIS_CREATED"
    DPS_CREATED = "DPS_CREATED"


class MappingType(StrEnum):
    """Discriminator for the concrete mapping record types (one table each)."""

    PRISONER = "prisoner"
    CSRA = "csra"
    NON_ASSOCIATION = "non-association"


def is_migrated(kind: MappingKind) -> bool:
    """Return whether records of this kind were written by a migration batch."""

    match kind:
        case MappingKind.MIGRATED:
            return True
        case MappingKind.NOMIS_CREATED | MappingKind.DPS_CREATED:
            return False
        case _:
            assert_never(kind)


def migrated_kinds() -> tuple[MappingKind, ...]:
    return tuple(kind for kind in MappingKind if is_migrated(kind))
