"""Idempotent, race-tolerant creation of correlation records."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from nomismap.domain.outcomes import (
    Conflict,
    Created,
    Inserted,
    PrimaryKeyTaken,
    SecondaryKeyTaken,
)

if TYPE_CHECKING:
    from nomismap.domain.model import MappingRecord
    from nomismap.domain.outcomes import CreateResult
    from nomismap.domain.ports.persistence import MappingStore

log = getLogger(__name__)


class DuplicateSafeCreator[TRecord: MappingRecord]:
    """Create records so that client retries are harmless and real clashes are reported.

    Re-submitting a record identical to the stored one (``created_at`` aside) succeeds
    with the stored record. A different record on either key yields a ``Conflict``
    carrying both sides, whether the clash was seen up front or lost as a race when
    the store enforced its unique constraints.
    """

    def __init__(self, store: MappingStore[TRecord]) -> None:
        self.store = store

    def create(self, record: TRecord) -> CreateResult[TRecord]:
        existing = self.store.find_by_secondary(record.secondary_key)
        if existing is not None and existing.same_mapping(record):
            log.debug("Not creating, identical mapping already stored: %s", existing.describe())
            return Created(record=existing, reused=True)

        result = self.store.insert(record)
        match result:
            case Inserted(record=stored):
                log.info(
                    "%s-mapping-created primary_key=%s secondary_key=%s kind=%s batch=%s",
                    stored.mapping_type,
                    stored.primary_key,
                    stored.secondary_key,
                    stored.mapping_kind,
                    stored.label,
                )
                return Created(record=stored)
            case PrimaryKeyTaken() | SecondaryKeyTaken():
                conflict = Conflict(existing=self._resolve_existing(record), duplicate=record)
                log.warning("%s", conflict.message)
                return conflict

    def _resolve_existing(self, record: TRecord) -> TRecord | None:
        existing = self.store.find_by_primary(record.primary_key)
        if existing is None:
            existing = self.store.find_by_secondary(record.secondary_key)
        return existing
