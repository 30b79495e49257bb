from __future__ import annotations

from datetime import UTC, datetime

import pytest

from nomismap.adapters.json import (
    MappingPayloadError,
    NonAssociationMappingDto,
    dump_record,
    parse_mapping,
    parse_primary_key,
    parse_secondary_key,
)
from nomismap.domain.model import (
    CsraMapping,
    MappingKind,
    MappingType,
    NonAssociationMapping,
    PrisonerMapping,
)
from tests.helpers.mappings import make_non_association


def test_non_association_payload_uses_camel_case_fields() -> None:
    record = parse_mapping(
        MappingType.NON_ASSOCIATION,
        {
            "nonAssociationId": 42,
            "firstOffenderNo": "A1234BC",
            "secondOffenderNo": "D5678EF",
            "nomisTypeSequence": 2,
            "label": "2024-05-01T10:00:00",
            "mappingType": "MIGRATED",
            "unexpected": "ignored",
        },
    )

    assert isinstance(record, NonAssociationMapping)
    assert record.natural_key == ("A1234BC", "D5678EF", 2)
    assert record.non_association_id == 42
    assert record.mapping_kind is MappingKind.MIGRATED
    assert record.label == "2024-05-01T10:00:00"
    assert record.created_at is None


def test_prisoner_and_csra_payloads_from_json_text() -> None:
    prisoner = parse_mapping(
        MappingType.PRISONER,
        '{"dpsId": "A1234BC", "nomisId": 1001, "mappingType": "NOMIS_CREATED"}',
    )
    csra = parse_mapping(
        MappingType.CSRA,
        b'{"dpsCsraId": "c-1", "nomisBookingId": 7, "nomisSequence": 2,'
        b' "offenderNo": "A1234BC", "mappingType": "DPS_CREATED"}',
    )

    assert isinstance(prisoner, PrisonerMapping)
    assert prisoner.secondary_key == (1001,)
    assert isinstance(csra, CsraMapping)
    assert csra.secondary_key == (7, 2)


def test_legacy_created_kind_and_blank_label_are_normalised() -> None:
    record = parse_mapping(
        MappingType.NON_ASSOCIATION,
        {
            "nonAssociationId": 1,
            "firstOffenderNo": "A",
            "secondOffenderNo": "B",
            "nomisTypeSequence": 1,
            "label": "   ",
            "mappingType": "non_association_created",
        },
    )

    assert record.mapping_kind is MappingKind.DPS_CREATED
    assert record.label is None


@pytest.mark.parametrize(
    "payload",
    [
        {"firstOffenderNo": "A", "secondOffenderNo": "B", "nomisTypeSequence": 1},
        {
            "nonAssociationId": 1,
            "firstOffenderNo": "A",
            "secondOffenderNo": "A",
            "nomisTypeSequence": 1,
            "mappingType": "MIGRATED",
        },
        {
            "nonAssociationId": 1,
            "firstOffenderNo": "A",
            "secondOffenderNo": "B",
            "nomisTypeSequence": 1,
            "label": "x" * 21,
            "mappingType": "MIGRATED",
        },
        {
            "nonAssociationId": 1,
            "firstOffenderNo": "A",
            "secondOffenderNo": "B",
            "nomisTypeSequence": 1,
            "mappingType": "UNKNOWN",
        },
    ],
    ids=["missing-id", "same-offender", "long-label", "unknown-kind"],
)
def test_invalid_payloads_are_rejected(payload: dict[str, object]) -> None:
    with pytest.raises(MappingPayloadError):
        parse_mapping(MappingType.NON_ASSOCIATION, payload)


def test_malformed_json_is_rejected() -> None:
    with pytest.raises(MappingPayloadError):
        parse_mapping(MappingType.PRISONER, "{not json")


def test_dump_record_renders_wire_names() -> None:
    record = make_non_association(3, "A", "B", 1, kind=MappingKind.MIGRATED, label="batch")
    record.created_at = datetime(2024, 1, 2, 3, 4, 5, tzinfo=UTC)

    dumped = dump_record(record)

    assert dumped == {
        "nonAssociationId": 3,
        "firstOffenderNo": "A",
        "secondOffenderNo": "B",
        "nomisTypeSequence": 1,
        "label": "batch",
        "mappingType": "MIGRATED",
        "whenCreated": "2024-01-02T03:04:05Z",
    }
    assert NonAssociationMappingDto.model_validate(dumped).non_association_id == 3


def test_primary_keys_are_typed_per_mapping() -> None:
    assert parse_primary_key(MappingType.NON_ASSOCIATION, "12") == 12
    assert parse_primary_key(MappingType.PRISONER, " A1 ") == "A1"
    with pytest.raises(MappingPayloadError):
        parse_primary_key(MappingType.NON_ASSOCIATION, "twelve")
    with pytest.raises(MappingPayloadError):
        parse_primary_key(MappingType.CSRA, "  ")


def test_secondary_keys_are_typed_per_mapping() -> None:
    assert parse_secondary_key(MappingType.PRISONER, ["1001"]) == (1001,)
    assert parse_secondary_key(MappingType.CSRA, ["7", "2"]) == (7, 2)
    assert parse_secondary_key(MappingType.NON_ASSOCIATION, ["A", "B", "3"]) == ("A", "B", 3)
    with pytest.raises(MappingPayloadError, match="needs 3 values"):
        parse_secondary_key(MappingType.NON_ASSOCIATION, ["A", "B"])
