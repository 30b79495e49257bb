"""Correlation records between legacy (NOMIS) keys and new-service (DPS) identifiers.

Every record has a globally unique primary key issued by the new service and a
globally unique secondary key derived from the legacy system. Records are immutable
once stored, except that a non-association's natural key may be rewritten by the
identity-merge operations.
"""

from __future__ import annotations

from abc import ABC
from dataclasses import dataclass, fields
from typing import TYPE_CHECKING, ClassVar

from .enums import MappingKind, MappingType

if TYPE_CHECKING:
    from datetime import datetime


type PrimaryKey = int | str
type SecondaryKey = tuple[int | str, ...]
type NonAssociationKey = tuple[str, str, int]

_UNCOMPARED_FIELDS = frozenset({"created_at"})


@dataclass(eq=False, kw_only=True)
class MappingRecord(ABC):
    """Shared shape of every correlation record.

    Subclasses declare which of their fields form the primary key and the secondary
    (natural) key; the store and the duplicate-safe creator only ever go through
    ``primary_key`` / ``secondary_key``.
    """

    mapping_kind: MappingKind
    label: str | None = None
    created_at: datetime | None = None

    MAPPING_TYPE: ClassVar[MappingType]
    PRIMARY_FIELD: ClassVar[str]
    SECONDARY_FIELDS: ClassVar[tuple[str, ...]]

    @property
    def mapping_type(self) -> MappingType:
        return self.MAPPING_TYPE

    @property
    def primary_key(self) -> PrimaryKey:
        return getattr(self, self.PRIMARY_FIELD)

    @property
    def secondary_key(self) -> SecondaryKey:
        return tuple(getattr(self, name) for name in self.SECONDARY_FIELDS)

    def comparable_fields(self) -> tuple[object, ...]:
        """Field values that decide whether two submissions are the same record."""
        return tuple(
            getattr(self, item.name) for item in fields(self) if item.name not in _UNCOMPARED_FIELDS
        )

    def same_mapping(self, other: MappingRecord) -> bool:
        """Field-for-field equality, ignoring the server-assigned ``created_at``."""
        return type(self) is type(other) and self.comparable_fields() == other.comparable_fields()

    def describe(self) -> str:
        return (
            f"{type(self).__name__}(primary_key={self.primary_key!r}, "
            f"secondary_key={self.secondary_key!r}, kind={self.mapping_kind}, "
            f"label={self.label!r})"
        )


@dataclass(eq=False, kw_only=True)
class PrisonerMapping(MappingRecord):
    """Prisoner identity: DPS prisoner id against the NOMIS offender id."""

    dps_id: str
    nomis_id: int

    MAPPING_TYPE: ClassVar[MappingType] = MappingType.PRISONER
    PRIMARY_FIELD: ClassVar[str] = "dps_id"
    SECONDARY_FIELDS: ClassVar[tuple[str, ...]] = ("nomis_id",)


@dataclass(eq=False, kw_only=True)
class CsraMapping(MappingRecord):
    """CSRA assessment, keyed in NOMIS by booking and sequence."""

    dps_csra_id: str
    nomis_booking_id: int
    nomis_sequence: int
    offender_no: str

    MAPPING_TYPE: ClassVar[MappingType] = MappingType.CSRA
    PRIMARY_FIELD: ClassVar[str] = "dps_csra_id"
    SECONDARY_FIELDS: ClassVar[tuple[str, ...]] = ("nomis_booking_id", "nomis_sequence")


@dataclass(eq=False, kw_only=True)
class NonAssociationMapping(MappingRecord):
    """A pair of offenders that must be kept apart.

    The natural key is ``(first_offender_no, second_offender_no, nomis_type_sequence)``
    and the two offenders are never the same person.
    """

    non_association_id: int
    first_offender_no: str
    second_offender_no: str
    nomis_type_sequence: int

    MAPPING_TYPE: ClassVar[MappingType] = MappingType.NON_ASSOCIATION
    PRIMARY_FIELD: ClassVar[str] = "non_association_id"
    SECONDARY_FIELDS: ClassVar[tuple[str, ...]] = (
        "first_offender_no",
        "second_offender_no",
        "nomis_type_sequence",
    )

    def __post_init__(self) -> None:
        _require_distinct(self.first_offender_no, self.second_offender_no)

    @property
    def natural_key(self) -> NonAssociationKey:
        return (self.first_offender_no, self.second_offender_no, self.nomis_type_sequence)

    def counterpart_of(self, offender_no: str) -> str | None:
        """Return the other offender in the pair, or ``None`` if ``offender_no`` is absent."""
        if self.first_offender_no == offender_no:
            return self.second_offender_no
        if self.second_offender_no == offender_no:
            return self.first_offender_no
        return None

    def renamed_key(self, old_offender_no: str, new_offender_no: str) -> NonAssociationKey:
        """Natural key after substituting ``new_offender_no`` for ``old_offender_no``.

        The sequence is held; slots not holding ``old_offender_no`` are unchanged.
        """
        first = self.first_offender_no
        second = self.second_offender_no
        return (
            new_offender_no if first == old_offender_no else first,
            new_offender_no if second == old_offender_no else second,
            self.nomis_type_sequence,
        )

    def resequenced_key(self, nomis_type_sequence: int) -> NonAssociationKey:
        return (self.first_offender_no, self.second_offender_no, nomis_type_sequence)

    def reassign(self, key: NonAssociationKey) -> None:
        """Rewrite the natural key in place; the only sanctioned mutation."""
        first, second, sequence = key
        _require_distinct(first, second)
        self.first_offender_no = first
        self.second_offender_no = second
        self.nomis_type_sequence = sequence


def is_self_pairing(key: NonAssociationKey) -> bool:
    first, second, _ = key
    return first == second


def _require_distinct(first_offender_no: str, second_offender_no: str) -> None:
    if first_offender_no == second_offender_no:
        raise ValueError(
            f"non-association would result in both identities being equal: {first_offender_no}"
        )


MAPPING_CLASS_BY_TYPE: dict[MappingType, type[MappingRecord]] = {
    MappingType.PRISONER: PrisonerMapping,
    MappingType.CSRA: CsraMapping,
    MappingType.NON_ASSOCIATION: NonAssociationMapping,
}
