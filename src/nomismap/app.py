"""Application entry points: one unit of work per mapping operation."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from nomismap.domain.common_party import CommonPartyFinder
from nomismap.domain.creation import DuplicateSafeCreator
from nomismap.domain.identity_merge import IdentityMergeEngine
from nomismap.domain.model import is_migrated
from nomismap.domain.outcomes import Created, Deleted, NotFound, Updated

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from nomismap.domain.model import (
        MappingRecord,
        NonAssociationMapping,
        PrimaryKey,
        SecondaryKey,
    )
    from nomismap.domain.outcomes import (
        CreateResult,
        LookupResult,
        ResequenceResult,
        UpdateResult,
    )
    from nomismap.domain.ports.unit_of_work import MappingUnitOfWork

type UnitOfWorkFactory = Callable[[], MappingUnitOfWork]


log = getLogger(__name__)


def create_mapping[TRecord: MappingRecord](
    record: TRecord,
    *,
    unit_of_work_factory: UnitOfWorkFactory,
) -> CreateResult[TRecord]:
    """Store ``record`` unless an identical one exists; report real clashes as ``Conflict``."""

    with unit_of_work_factory() as uow:
        store = uow.repositories.store_for(type(record))
        result = DuplicateSafeCreator(store).create(record)
        if isinstance(result, Created) and not result.reused:
            uow.commit()
        return result


def get_mapping_by_primary[TRecord: MappingRecord](
    record_type: type[TRecord],
    key: PrimaryKey,
    *,
    unit_of_work_factory: UnitOfWorkFactory,
) -> LookupResult[TRecord]:
    with unit_of_work_factory() as uow:
        record = uow.repositories.store_for(record_type).find_by_primary(key)
    if record is None:
        return NotFound(reason=f"{record_type.MAPPING_TYPE} mapping with id={key} not found")
    return record


def get_mapping_by_secondary[TRecord: MappingRecord](
    record_type: type[TRecord],
    key: SecondaryKey,
    *,
    unit_of_work_factory: UnitOfWorkFactory,
) -> LookupResult[TRecord]:
    with unit_of_work_factory() as uow:
        record = uow.repositories.store_for(record_type).find_by_secondary(key)
    if record is None:
        described = _describe_key(record_type, key)
        return NotFound(reason=f"{record_type.MAPPING_TYPE} mapping with {described} not found")
    return record


def delete_mapping(
    record_type: type[MappingRecord],
    key: PrimaryKey,
    *,
    unit_of_work_factory: UnitOfWorkFactory,
) -> Deleted:
    """Delete one record; deleting an absent key is still a success."""

    with unit_of_work_factory() as uow:
        removed = uow.repositories.store_for(record_type).delete(key)
        uow.commit()
    if removed:
        log.info("%s-mapping-deleted primary_key=%s", record_type.MAPPING_TYPE, key)
    return Deleted(count=int(removed))


def delete_mappings(
    record_type: type[MappingRecord],
    *,
    only_migrated: bool = False,
    unit_of_work_factory: UnitOfWorkFactory,
) -> Deleted:
    """Delete every record of ``record_type``, or only those written by migrations."""

    with unit_of_work_factory() as uow:
        count = uow.repositories.store_for(record_type).delete_all(only_migrated=only_migrated)
        uow.commit()
    log.info(
        "%s-mappings-purged count=%s only_migrated=%s",
        record_type.MAPPING_TYPE,
        count,
        only_migrated,
    )
    return Deleted(count=count)


def get_latest_migrated[TRecord: MappingRecord](
    record_type: type[TRecord],
    *,
    unit_of_work_factory: UnitOfWorkFactory,
) -> LookupResult[TRecord]:
    with unit_of_work_factory() as uow:
        record = uow.repositories.store_for(record_type).latest_migrated()
    if record is None:
        return NotFound(reason=f"No migrated {record_type.MAPPING_TYPE} mapping found")
    return record


def get_mappings_by_batch[TRecord: MappingRecord](
    record_type: type[TRecord],
    label: str,
    *,
    unit_of_work_factory: UnitOfWorkFactory,
) -> tuple[TRecord, ...]:
    """Return the migrated records of one batch, oldest first."""

    with unit_of_work_factory() as uow:
        scan = uow.repositories.store_for(record_type).scan_by_label(label)
        return tuple(record for record in scan if is_migrated(record.mapping_kind))


def merge_identity(
    old_offender_no: str,
    new_offender_no: str,
    *,
    unit_of_work_factory: UnitOfWorkFactory,
) -> UpdateResult:
    with unit_of_work_factory() as uow:
        engine = IdentityMergeEngine(uow.repositories.non_associations)
        result = engine.merge_identity(old_offender_no, new_offender_no)
        _commit_if_updated(uow, result)
        return result


def update_identities_in_list(
    old_offender_no: str,
    new_offender_no: str,
    offender_nos: Iterable[str],
    *,
    unit_of_work_factory: UnitOfWorkFactory,
) -> UpdateResult:
    with unit_of_work_factory() as uow:
        engine = IdentityMergeEngine(uow.repositories.non_associations)
        result = engine.update_list(old_offender_no, new_offender_no, offender_nos)
        _commit_if_updated(uow, result)
        return result


def set_sequence(
    non_association_id: int,
    nomis_type_sequence: int,
    *,
    unit_of_work_factory: UnitOfWorkFactory,
) -> ResequenceResult:
    with unit_of_work_factory() as uow:
        engine = IdentityMergeEngine(uow.repositories.non_associations)
        result = engine.set_sequence(non_association_id, nomis_type_sequence)
        _commit_if_updated(uow, result)
        return result


def find_common(
    offender_no: str,
    other_offender_no: str,
    *,
    unit_of_work_factory: UnitOfWorkFactory,
) -> tuple[NonAssociationMapping, ...]:
    with unit_of_work_factory() as uow:
        finder = CommonPartyFinder(uow.repositories.non_associations)
        return finder.find_common(offender_no, other_offender_no)


def common_third_parties(
    offender_no: str,
    other_offender_no: str,
    *,
    unit_of_work_factory: UnitOfWorkFactory,
) -> tuple[str, ...]:
    with unit_of_work_factory() as uow:
        finder = CommonPartyFinder(uow.repositories.non_associations)
        return finder.common_third_parties(offender_no, other_offender_no)


def _commit_if_updated(uow: MappingUnitOfWork, result: ResequenceResult) -> None:
    # anything else is discarded when the unit of work closes
    if isinstance(result, Updated):
        uow.commit()


def _describe_key(record_type: type[MappingRecord], key: SecondaryKey) -> str:
    pairs = zip(record_type.SECONDARY_FIELDS, key, strict=False)
    return ", ".join(f"{name}={value}" for name, value in pairs)
