"""Ports for persisting correlation records."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

from nomismap.domain.model import MappingRecord, NonAssociationMapping

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence

    from nomismap.domain.model import NonAssociationKey, PrimaryKey, SecondaryKey
    from nomismap.domain.outcomes import InsertResult


@runtime_checkable
class LabelScan[TRecord: MappingRecord](Protocol):
    """Lazy view over one batch label; every iteration re-runs the lookup."""

    def __iter__(self) -> Iterator[TRecord]: ...


@runtime_checkable
class MappingStore[TRecord: MappingRecord](Protocol):
    """Keyed store enforcing uniqueness of both the primary and the secondary key."""

    def insert(self, record: TRecord) -> InsertResult[TRecord]: ...

    def find_by_primary(self, key: PrimaryKey) -> TRecord | None: ...

    def find_by_secondary(self, key: SecondaryKey) -> TRecord | None: ...

    def delete(self, key: PrimaryKey) -> bool: ...

    def scan_by_label(self, label: str) -> LabelScan[TRecord]: ...

    def latest_migrated(self) -> TRecord | None: ...

    def delete_all(self, *, only_migrated: bool = False) -> int: ...


@runtime_checkable
class NonAssociationStore(MappingStore[NonAssociationMapping], Protocol):
    """Store contract for non-associations, adding identity-level lookups."""

    def find_by_identity(self, offender_no: str) -> Sequence[NonAssociationMapping]: ...

    def find_by_pair(
        self, offender_no: str, other_offender_no: str
    ) -> Sequence[NonAssociationMapping]: ...

    def rekey(self, record: NonAssociationMapping, key: NonAssociationKey) -> bool: ...
