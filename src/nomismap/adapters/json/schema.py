"""Pydantic models for the JSON mapping payloads exchanged with sync clients."""

from __future__ import annotations

from datetime import datetime  # noqa: TC003

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from nomismap.domain.model import MappingKind

LEGACY_KIND_ALIASES: dict[str, MappingKind] = {
    "NON_ASSOCIATION_CREATED": MappingKind.DPS_CREATED,
}


def _blank_to_none(value: object) -> object:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


def _parse_kind(value: object) -> object:
    if isinstance(value, str):
        return LEGACY_KIND_ALIASES.get(value.strip().upper(), value.strip().upper())
    return value


class MappingDtoBase(BaseModel):
    model_config = ConfigDict(
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
    )

    label: str | None = Field(default=None, max_length=20)
    mapping_kind: MappingKind = Field(alias="mappingType")
    created_at: datetime | None = Field(default=None, alias="whenCreated")

    _normalize_label = field_validator("label", mode="before")(_blank_to_none)
    _normalize_kind = field_validator("mapping_kind", mode="before")(_parse_kind)


class PrisonerMappingDto(MappingDtoBase):
    dps_id: str = Field(min_length=1)
    nomis_id: int


class CsraMappingDto(MappingDtoBase):
    dps_csra_id: str = Field(min_length=1)
    nomis_booking_id: int
    nomis_sequence: int
    offender_no: str = Field(min_length=1, max_length=10)


class NonAssociationMappingDto(MappingDtoBase):
    non_association_id: int
    first_offender_no: str = Field(min_length=1, max_length=10)
    second_offender_no: str = Field(min_length=1, max_length=10)
    nomis_type_sequence: int

    @model_validator(mode="after")
    def _distinct_offenders(self) -> NonAssociationMappingDto:
        if self.first_offender_no == self.second_offender_no:
            raise ValueError("firstOffenderNo and secondOffenderNo must differ")
        return self


type MappingDto = PrisonerMappingDto | CsraMappingDto | NonAssociationMappingDto
