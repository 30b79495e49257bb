"""Translate JSON mapping payloads to domain records and back."""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, assert_never

from pydantic import ValidationError

from nomismap.domain.model import (
    CsraMapping,
    MappingRecord,
    MappingType,
    NonAssociationMapping,
    PrisonerMapping,
)

from .schema import CsraMappingDto, NonAssociationMappingDto, PrisonerMappingDto

if TYPE_CHECKING:
    from collections.abc import Sequence

    from nomismap.domain.model import PrimaryKey, SecondaryKey

    from .schema import MappingDto


class MappingPayloadError(ValueError):
    """A mapping payload or key could not be parsed."""


def dto_class_for(mapping_type: MappingType) -> type[MappingDto]:
    match mapping_type:
        case MappingType.PRISONER:
            return PrisonerMappingDto
        case MappingType.CSRA:
            return CsraMappingDto
        case MappingType.NON_ASSOCIATION:
            return NonAssociationMappingDto
        case _:
            assert_never(mapping_type)


def parse_mapping(
    mapping_type: MappingType, payload: str | bytes | Mapping[str, Any]
) -> MappingRecord:
    """Validate ``payload`` and build the domain record for ``mapping_type``."""

    dto_cls = dto_class_for(mapping_type)
    try:
        if isinstance(payload, Mapping):
            dto = dto_cls.model_validate(payload)
        else:
            dto = dto_cls.model_validate_json(payload)
    except ValidationError as exc:
        raise MappingPayloadError(f"Invalid {mapping_type} mapping: {exc}") from exc
    return to_record(dto)


def to_record(dto: MappingDto) -> MappingRecord:
    common = {"label": dto.label, "mapping_kind": dto.mapping_kind}
    match dto:
        case PrisonerMappingDto():
            return PrisonerMapping(dps_id=dto.dps_id, nomis_id=dto.nomis_id, **common)
        case CsraMappingDto():
            return CsraMapping(
                dps_csra_id=dto.dps_csra_id,
                nomis_booking_id=dto.nomis_booking_id,
                nomis_sequence=dto.nomis_sequence,
                offender_no=dto.offender_no,
                **common,
            )
        case NonAssociationMappingDto():
            return NonAssociationMapping(
                non_association_id=dto.non_association_id,
                first_offender_no=dto.first_offender_no,
                second_offender_no=dto.second_offender_no,
                nomis_type_sequence=dto.nomis_type_sequence,
                **common,
            )
        case _:
            assert_never(dto)


def from_record(record: MappingRecord) -> MappingDto:
    common = {
        "label": record.label,
        "mapping_kind": record.mapping_kind,
        "created_at": record.created_at,
    }
    match record:
        case PrisonerMapping():
            return PrisonerMappingDto(dps_id=record.dps_id, nomis_id=record.nomis_id, **common)
        case CsraMapping():
            return CsraMappingDto(
                dps_csra_id=record.dps_csra_id,
                nomis_booking_id=record.nomis_booking_id,
                nomis_sequence=record.nomis_sequence,
                offender_no=record.offender_no,
                **common,
            )
        case NonAssociationMapping():
            return NonAssociationMappingDto(
                non_association_id=record.non_association_id,
                first_offender_no=record.first_offender_no,
                second_offender_no=record.second_offender_no,
                nomis_type_sequence=record.nomis_type_sequence,
                **common,
            )
        case _:
            raise TypeError(f"Unsupported mapping record: {type(record).__name__}")


def dump_record(record: MappingRecord) -> dict[str, Any]:
    """Render ``record`` as a camelCase JSON-ready dictionary."""

    return from_record(record).model_dump(mode="json", by_alias=True)


def parse_primary_key(mapping_type: MappingType, raw: str) -> PrimaryKey:
    match mapping_type:
        case MappingType.PRISONER | MappingType.CSRA:
            if not raw.strip():
                raise MappingPayloadError(f"Empty {mapping_type} id")
            return raw.strip()
        case MappingType.NON_ASSOCIATION:
            return _parse_int(raw, "nonAssociationId")
        case _:
            assert_never(mapping_type)


def parse_secondary_key(mapping_type: MappingType, parts: Sequence[str]) -> SecondaryKey:
    match mapping_type:
        case MappingType.PRISONER:
            _expect_parts(mapping_type, parts, "nomisId")
            return (_parse_int(parts[0], "nomisId"),)
        case MappingType.CSRA:
            _expect_parts(mapping_type, parts, "nomisBookingId", "nomisSequence")
            return (
                _parse_int(parts[0], "nomisBookingId"),
                _parse_int(parts[1], "nomisSequence"),
            )
        case MappingType.NON_ASSOCIATION:
            _expect_parts(
                mapping_type, parts, "firstOffenderNo", "secondOffenderNo", "nomisTypeSequence"
            )
            return (parts[0], parts[1], _parse_int(parts[2], "nomisTypeSequence"))
        case _:
            assert_never(mapping_type)


def _expect_parts(mapping_type: MappingType, parts: Sequence[str], *names: str) -> None:
    if len(parts) != len(names):
        raise MappingPayloadError(
            f"{mapping_type} secondary key needs {len(names)} values ({', '.join(names)}), "
            f"got {len(parts)}"
        )


def _parse_int(raw: str, name: str) -> int:
    try:
        return int(raw)
    except ValueError as exc:
        raise MappingPayloadError(f"{name} must be an integer, got {raw!r}") from exc
