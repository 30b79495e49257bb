"""JSON wire format for mapping records."""

from __future__ import annotations

from .schema import CsraMappingDto, MappingDto, NonAssociationMappingDto, PrisonerMappingDto
from .translator import (
    MappingPayloadError,
    dto_class_for,
    dump_record,
    from_record,
    parse_mapping,
    parse_primary_key,
    parse_secondary_key,
    to_record,
)

__all__ = [
    "CsraMappingDto",
    "MappingDto",
    "MappingPayloadError",
    "NonAssociationMappingDto",
    "PrisonerMappingDto",
    "dto_class_for",
    "dump_record",
    "from_record",
    "parse_mapping",
    "parse_primary_key",
    "parse_secondary_key",
    "to_record",
]
