from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from nomismap import app
from nomismap.adapters.sqlalchemy import SqlAlchemyNonAssociationStore
from nomismap.domain.model import (
    CsraMapping,
    MappingKind,
    NonAssociationMapping,
    PrisonerMapping,
)
from nomismap.domain.outcomes import (
    Conflict,
    Created,
    Deleted,
    NotFound,
    Updated,
    ValidationFailure,
)
from tests.helpers.mappings import make_csra, make_non_association, make_prisoner

if TYPE_CHECKING:
    from nomismap.app import UnitOfWorkFactory
    from nomismap.domain.model import NonAssociationKey


def _seed(unit_of_work_factory: UnitOfWorkFactory, *records: tuple[int, str, str, int]) -> None:
    for non_association_id, first, second, sequence in records:
        result = app.create_mapping(
            make_non_association(non_association_id, first, second, sequence),
            unit_of_work_factory=unit_of_work_factory,
        )
        assert isinstance(result, Created)


def _natural_key(
    unit_of_work_factory: UnitOfWorkFactory, non_association_id: int
) -> tuple[str, str, int]:
    found = app.get_mapping_by_primary(
        NonAssociationMapping, non_association_id, unit_of_work_factory=unit_of_work_factory
    )
    assert isinstance(found, NonAssociationMapping)
    return found.natural_key


def test_create_is_idempotent_and_persisted(unit_of_work_factory: UnitOfWorkFactory) -> None:
    first = app.create_mapping(make_prisoner("A1", 1), unit_of_work_factory=unit_of_work_factory)
    second = app.create_mapping(make_prisoner("A1", 1), unit_of_work_factory=unit_of_work_factory)

    assert isinstance(first, Created)
    assert first.reused is False
    assert isinstance(second, Created)
    assert second.reused is True
    assert second.record.created_at == first.record.created_at


def test_create_conflict_returns_existing_record(unit_of_work_factory: UnitOfWorkFactory) -> None:
    app.create_mapping(make_csra("c-1", 10, 1), unit_of_work_factory=unit_of_work_factory)

    result = app.create_mapping(make_csra("c-2", 10, 1), unit_of_work_factory=unit_of_work_factory)

    assert isinstance(result, Conflict)
    assert result.existing is not None
    assert result.existing.dps_csra_id == "c-1"
    assert result.duplicate.dps_csra_id == "c-2"
    missing = app.get_mapping_by_primary(
        CsraMapping, "c-2", unit_of_work_factory=unit_of_work_factory
    )
    assert isinstance(missing, NotFound)


def test_lookup_by_secondary_key(unit_of_work_factory: UnitOfWorkFactory) -> None:
    app.create_mapping(make_csra("c-1", 10, 1), unit_of_work_factory=unit_of_work_factory)

    found = app.get_mapping_by_secondary(
        CsraMapping, (10, 1), unit_of_work_factory=unit_of_work_factory
    )
    missing = app.get_mapping_by_secondary(
        CsraMapping, (10, 2), unit_of_work_factory=unit_of_work_factory
    )

    assert isinstance(found, CsraMapping)
    assert found.dps_csra_id == "c-1"
    assert isinstance(missing, NotFound)
    assert "nomis_booking_id=10, nomis_sequence=2" in missing.reason


def test_delete_twice_succeeds(unit_of_work_factory: UnitOfWorkFactory) -> None:
    app.create_mapping(make_prisoner("A1", 1), unit_of_work_factory=unit_of_work_factory)

    first = app.delete_mapping(PrisonerMapping, "A1", unit_of_work_factory=unit_of_work_factory)
    second = app.delete_mapping(PrisonerMapping, "A1", unit_of_work_factory=unit_of_work_factory)

    assert first == Deleted(count=1)
    assert second == Deleted(count=0)


def test_migration_batch_queries(unit_of_work_factory: UnitOfWorkFactory) -> None:
    for dps_id, nomis_id, kind, label in (
        ("A1", 1, MappingKind.MIGRATED, "batch-1"),
        ("A2", 2, MappingKind.NOMIS_CREATED, "batch-1"),
        ("A3", 3, MappingKind.MIGRATED, "batch-1"),
        ("A4", 4, MappingKind.MIGRATED, "batch-2"),
    ):
        app.create_mapping(
            make_prisoner(dps_id, nomis_id, kind=kind, label=label),
            unit_of_work_factory=unit_of_work_factory,
        )

    batch = app.get_mappings_by_batch(
        PrisonerMapping, "batch-1", unit_of_work_factory=unit_of_work_factory
    )
    latest = app.get_latest_migrated(PrisonerMapping, unit_of_work_factory=unit_of_work_factory)
    none_yet = app.get_latest_migrated(CsraMapping, unit_of_work_factory=unit_of_work_factory)

    assert [record.dps_id for record in batch] == ["A1", "A3"]
    assert isinstance(latest, PrisonerMapping)
    assert latest.dps_id == "A4"
    assert isinstance(none_yet, NotFound)


def test_delete_mappings_only_migrated(unit_of_work_factory: UnitOfWorkFactory) -> None:
    app.create_mapping(
        make_prisoner("A1", 1, kind=MappingKind.MIGRATED), unit_of_work_factory=unit_of_work_factory
    )
    app.create_mapping(make_prisoner("A2", 2), unit_of_work_factory=unit_of_work_factory)

    purged = app.delete_mappings(
        PrisonerMapping, only_migrated=True, unit_of_work_factory=unit_of_work_factory
    )

    assert purged == Deleted(count=1)
    remaining = app.get_mapping_by_primary(
        PrisonerMapping, "A2", unit_of_work_factory=unit_of_work_factory
    )
    assert isinstance(remaining, PrisonerMapping)


def test_merge_rewrites_key_and_commits(unit_of_work_factory: UnitOfWorkFactory) -> None:
    _seed(unit_of_work_factory, (1, "A", "C", 1))

    result = app.merge_identity("A", "B", unit_of_work_factory=unit_of_work_factory)

    assert result == Updated(count=1)
    assert _natural_key(unit_of_work_factory, 1) == ("B", "C", 1)
    old_key = app.get_mapping_by_secondary(
        NonAssociationMapping, ("A", "C", 1), unit_of_work_factory=unit_of_work_factory
    )
    assert isinstance(old_key, NotFound)


def test_rejected_merge_leaves_store_unchanged(unit_of_work_factory: UnitOfWorkFactory) -> None:
    _seed(unit_of_work_factory, (1, "A", "C", 1), (2, "A", "B", 1))

    result = app.merge_identity("A", "B", unit_of_work_factory=unit_of_work_factory)

    assert isinstance(result, ValidationFailure)
    assert isinstance(result.record, NonAssociationMapping)
    assert result.record.non_association_id == 2
    assert _natural_key(unit_of_work_factory, 1) == ("A", "C", 1)
    assert _natural_key(unit_of_work_factory, 2) == ("A", "B", 1)


def test_merge_refused_part_way_discards_earlier_rewrites(
    unit_of_work_factory: UnitOfWorkFactory, monkeypatch: pytest.MonkeyPatch
) -> None:
    _seed(unit_of_work_factory, (1, "A", "C", 1), (2, "A", "D", 1))
    real_rekey = SqlAlchemyNonAssociationStore.rekey

    def refuse_second(
        store: SqlAlchemyNonAssociationStore,
        record: NonAssociationMapping,
        key: NonAssociationKey,
    ) -> bool:
        if record.non_association_id == 2:
            return False
        return real_rekey(store, record, key)

    monkeypatch.setattr(SqlAlchemyNonAssociationStore, "rekey", refuse_second)
    result = app.merge_identity("A", "B", unit_of_work_factory=unit_of_work_factory)
    monkeypatch.undo()

    assert isinstance(result, ValidationFailure)
    assert _natural_key(unit_of_work_factory, 1) == ("A", "C", 1)
    assert _natural_key(unit_of_work_factory, 2) == ("A", "D", 1)


def test_merge_onto_existing_key_is_rejected(unit_of_work_factory: UnitOfWorkFactory) -> None:
    _seed(unit_of_work_factory, (1, "A", "C", 1), (2, "B", "C", 1))

    result = app.merge_identity("A", "B", unit_of_work_factory=unit_of_work_factory)

    assert isinstance(result, ValidationFailure)
    assert _natural_key(unit_of_work_factory, 1) == ("A", "C", 1)


def test_update_list_rejection_mutates_nothing(unit_of_work_factory: UnitOfWorkFactory) -> None:
    _seed(unit_of_work_factory, (1, "A", "C", 1))

    for listed in (["A"], ["B"]):
        result = app.update_identities_in_list(
            "A", "B", listed, unit_of_work_factory=unit_of_work_factory
        )
        assert isinstance(result, ValidationFailure)
    assert _natural_key(unit_of_work_factory, 1) == ("A", "C", 1)


def test_update_list_moves_listed_pairs(unit_of_work_factory: UnitOfWorkFactory) -> None:
    _seed(unit_of_work_factory, (1, "A", "C", 1), (2, "A", "D", 1))

    result = app.update_identities_in_list(
        "A", "B", ["D"], unit_of_work_factory=unit_of_work_factory
    )

    assert result == Updated(count=1)
    assert _natural_key(unit_of_work_factory, 1) == ("A", "C", 1)
    assert _natural_key(unit_of_work_factory, 2) == ("B", "D", 1)


def test_set_sequence_leaves_sibling_untouched(unit_of_work_factory: UnitOfWorkFactory) -> None:
    _seed(unit_of_work_factory, (1, "A", "B", 1), (2, "A", "B", 2))

    result = app.set_sequence(1, 3, unit_of_work_factory=unit_of_work_factory)
    missing = app.set_sequence(99, 3, unit_of_work_factory=unit_of_work_factory)

    assert result == Updated(count=1)
    assert _natural_key(unit_of_work_factory, 1) == ("A", "B", 3)
    assert _natural_key(unit_of_work_factory, 2) == ("A", "B", 2)
    assert isinstance(missing, NotFound)


def test_find_common_respects_sequence(unit_of_work_factory: UnitOfWorkFactory) -> None:
    _seed(unit_of_work_factory, (1, "COMMON", "A", 1), (2, "COMMON", "B", 1))

    common = app.find_common("A", "B", unit_of_work_factory=unit_of_work_factory)
    third_parties = app.common_third_parties("A", "B", unit_of_work_factory=unit_of_work_factory)

    assert [record.non_association_id for record in common] == [1, 2]
    assert third_parties == ("COMMON",)

    app.set_sequence(2, 2, unit_of_work_factory=unit_of_work_factory)

    assert app.find_common("A", "B", unit_of_work_factory=unit_of_work_factory) == ()
