"""Transaction boundary around the mapping stores."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, Self, assert_never, cast

from nomismap.domain.model import MappingType

if TYPE_CHECKING:
    from types import TracebackType

    from nomismap.domain.model import CsraMapping, MappingRecord, PrisonerMapping
    from nomismap.domain.ports.persistence import MappingStore, NonAssociationStore


@dataclass(slots=True)
class MappingRepositories:
    """One store per mapping type, all bound to the same transaction."""

    prisoners: MappingStore[PrisonerMapping]
    csras: MappingStore[CsraMapping]
    non_associations: NonAssociationStore

    def store_for[TRecord: MappingRecord](
        self, record_type: type[TRecord]
    ) -> MappingStore[TRecord]:
        mapping_type = record_type.MAPPING_TYPE
        match mapping_type:
            case MappingType.PRISONER:
                store: object = self.prisoners
            case MappingType.CSRA:
                store = self.csras
            case MappingType.NON_ASSOCIATION:
                store = self.non_associations
            case _:
                assert_never(mapping_type)
        return cast("MappingStore[TRecord]", store)


class MappingUnitOfWork(Protocol):
    """Nothing written through ``repositories`` survives unless ``commit`` is called."""

    @property
    def repositories(self) -> MappingRepositories: ...

    def __enter__(self) -> Self: ...

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> bool: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...
