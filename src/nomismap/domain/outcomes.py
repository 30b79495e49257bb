"""Typed outcomes returned by the store and the mapping operations.

Expected outcomes (a duplicate, a missing record, a rejected merge) are values, not
exceptions; each carries a literal ``status`` so callers can ``match`` on it.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Literal

if TYPE_CHECKING:
    from nomismap.domain.model import MappingRecord


class OutcomeStatus(StrEnum):
    INSERTED = "inserted"
    PRIMARY_KEY_TAKEN = "primary_key_taken"
    SECONDARY_KEY_TAKEN = "secondary_key_taken"
    CREATED = "created"
    CONFLICT = "conflict"
    NOT_FOUND = "not_found"
    DELETED = "deleted"
    UPDATED = "updated"
    VALIDATION_FAILURE = "validation_failure"


# Store-level insert outcomes -------------------------------------------------


@dataclass(slots=True, kw_only=True)
class Inserted[TRecord: MappingRecord]:
    """The record was stored."""

    record: TRecord
    status: Literal[OutcomeStatus.INSERTED] = OutcomeStatus.INSERTED


@dataclass(slots=True, kw_only=True)
class PrimaryKeyTaken[TRecord: MappingRecord]:
    """Another record already owns the primary key.

    ``existing`` is ``None`` when the collision surfaced at flush time and the
    winning row could not be read back.
    """

    existing: TRecord | None
    status: Literal[OutcomeStatus.PRIMARY_KEY_TAKEN] = OutcomeStatus.PRIMARY_KEY_TAKEN


@dataclass(slots=True, kw_only=True)
class SecondaryKeyTaken[TRecord: MappingRecord]:
    """Another record already owns the secondary (natural) key."""

    existing: TRecord | None
    status: Literal[OutcomeStatus.SECONDARY_KEY_TAKEN] = OutcomeStatus.SECONDARY_KEY_TAKEN


type InsertResult[TRecord: MappingRecord] = (
    Inserted[TRecord] | PrimaryKeyTaken[TRecord] | SecondaryKeyTaken[TRecord]
)


# Operation outcomes ----------------------------------------------------------


@dataclass(slots=True, kw_only=True)
class Created[TRecord: MappingRecord]:
    """Create succeeded; ``reused`` marks an identical re-submission."""

    record: TRecord
    reused: bool = False
    status: Literal[OutcomeStatus.CREATED] = OutcomeStatus.CREATED


@dataclass(slots=True, kw_only=True)
class Conflict[TRecord: MappingRecord]:
    """Create collided with a different record on one of its keys."""

    existing: TRecord | None
    duplicate: TRecord
    status: Literal[OutcomeStatus.CONFLICT] = OutcomeStatus.CONFLICT

    @property
    def message(self) -> str:
        existing = self.existing.describe() if self.existing is not None else "<gone>"
        return (
            f"{type(self.duplicate).__name__} already exists.\n"
            f"Existing mapping: {existing}\n"
            f"Duplicate mapping: {self.duplicate.describe()}"
        )


type CreateResult[TRecord: MappingRecord] = Created[TRecord] | Conflict[TRecord]


@dataclass(slots=True, kw_only=True)
class NotFound:
    reason: str
    status: Literal[OutcomeStatus.NOT_FOUND] = OutcomeStatus.NOT_FOUND


@dataclass(slots=True, kw_only=True)
class Deleted:
    """Delete finished; ``count`` rows were removed (zero is still success)."""

    count: int = 0
    status: Literal[OutcomeStatus.DELETED] = OutcomeStatus.DELETED


@dataclass(slots=True, kw_only=True)
class Updated:
    count: int
    status: Literal[OutcomeStatus.UPDATED] = OutcomeStatus.UPDATED


@dataclass(slots=True, kw_only=True)
class ValidationFailure:
    """An operation would break an invariant; nothing was changed."""

    reason: str
    record: MappingRecord | None = None
    status: Literal[OutcomeStatus.VALIDATION_FAILURE] = OutcomeStatus.VALIDATION_FAILURE


type LookupResult[TRecord: MappingRecord] = TRecord | NotFound
type UpdateResult = Updated | ValidationFailure
type ResequenceResult = Updated | NotFound | ValidationFailure
