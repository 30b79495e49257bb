"""Rewriting offender identities inside non-association natural keys.

When NOMIS merges two prisoner records, or moves a booking from one prisoner to
another, every non-association naming the old offender number has to be re-keyed
to the new one. Each candidate is checked before anything is written, so a rejected
merge leaves the store exactly as it was.
"""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from nomismap.domain.model import is_self_pairing
from nomismap.domain.outcomes import NotFound, Updated, ValidationFailure

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from nomismap.domain.model import NonAssociationKey, NonAssociationMapping
    from nomismap.domain.outcomes import ResequenceResult, UpdateResult
    from nomismap.domain.ports.persistence import NonAssociationStore

log = getLogger(__name__)


@dataclass(slots=True, frozen=True)
class _Rekey:
    record: NonAssociationMapping
    key: NonAssociationKey


class IdentityMergeEngine:
    def __init__(self, store: NonAssociationStore) -> None:
        self.store = store

    def merge_identity(self, old_offender_no: str, new_offender_no: str) -> UpdateResult:
        """Replace ``old_offender_no`` by ``new_offender_no`` in every non-association."""

        if old_offender_no == new_offender_no:
            return ValidationFailure(
                reason=(
                    f"Merging {old_offender_no} into itself would result in both identities "
                    "being equal"
                ),
            )
        candidates = self.store.find_by_identity(old_offender_no)
        planned = self._plan(candidates, old_offender_no, new_offender_no)
        if isinstance(planned, ValidationFailure):
            return planned
        count = self._apply(planned)
        if isinstance(count, ValidationFailure):
            return count
        for step in planned:
            log.info(
                "non-association-mapping-merged non_association_id=%s old=%s new=%s",
                step.record.non_association_id,
                old_offender_no,
                new_offender_no,
            )
        return Updated(count=count)

    def update_list(
        self,
        old_offender_no: str,
        new_offender_no: str,
        offender_nos: Iterable[str],
    ) -> UpdateResult:
        """Move the non-associations between ``old_offender_no`` and each listed offender.

        Used when a booking moves to another prisoner: only the pairs whose other side
        appears in ``offender_nos`` follow the booking to ``new_offender_no``.
        """

        listed = tuple(dict.fromkeys(offender_nos))
        if old_offender_no in listed:
            return ValidationFailure(
                reason=(
                    f"Old offenderNo is in the list, when updating offender id from "
                    f"{old_offender_no} to {new_offender_no}"
                ),
            )
        if new_offender_no in listed:
            return ValidationFailure(
                reason=(
                    f"New offenderNo is in the list, when updating offender id from "
                    f"{old_offender_no} to {new_offender_no}"
                ),
            )
        if old_offender_no == new_offender_no:
            return ValidationFailure(
                reason=(
                    f"Moving {old_offender_no} onto itself would result in both identities "
                    "being equal"
                ),
            )

        candidates: list[NonAssociationMapping] = []
        for offender_no in listed:
            candidates.extend(self.store.find_by_pair(old_offender_no, offender_no))
        planned = self._plan(candidates, old_offender_no, new_offender_no)
        if isinstance(planned, ValidationFailure):
            return planned
        count = self._apply(planned)
        if isinstance(count, ValidationFailure):
            return count
        log.info(
            "non-association-mapping-booking-moved list=%s old=%s new=%s updated=%s",
            ",".join(listed),
            old_offender_no,
            new_offender_no,
            count,
        )
        return Updated(count=count)

    def set_sequence(self, non_association_id: int, nomis_type_sequence: int) -> ResequenceResult:
        """Change the type sequence of one non-association only."""

        record = self.store.find_by_primary(non_association_id)
        if record is None:
            return NotFound(reason=f"nonAssociationId={non_association_id}")
        key = record.resequenced_key(nomis_type_sequence)
        if key == record.natural_key:
            return Updated(count=0)
        clash = self.store.find_by_secondary(key)
        if clash is not None:
            return ValidationFailure(
                reason=f"Sequence {nomis_type_sequence} is already used by {clash.describe()}",
                record=record,
            )
        if not self.store.rekey(record, key):
            return ValidationFailure(
                reason=f"Sequence {nomis_type_sequence} was taken concurrently",
                record=record,
            )
        log.info(
            "non-association-mapping-resequenced non_association_id=%s sequence=%s",
            non_association_id,
            nomis_type_sequence,
        )
        return Updated(count=1)

    def _plan(
        self,
        candidates: Sequence[NonAssociationMapping],
        old_offender_no: str,
        new_offender_no: str,
    ) -> list[_Rekey] | ValidationFailure:
        planned: list[_Rekey] = []
        for record in sorted(candidates, key=lambda item: item.non_association_id):
            key = record.renamed_key(old_offender_no, new_offender_no)
            if is_self_pairing(key):
                return ValidationFailure(
                    reason=(
                        f"Found non-association clash in {record.describe()} when updating "
                        f"offender id from {old_offender_no} to {new_offender_no}: would result "
                        "in both identities being equal"
                    ),
                    record=record,
                )
            clash = self.store.find_by_secondary(key)
            if clash is not None and clash.non_association_id != record.non_association_id:
                return ValidationFailure(
                    reason=(
                        f"Updating {record.describe()} from {old_offender_no} to "
                        f"{new_offender_no} collides with {clash.describe()}"
                    ),
                    record=record,
                )
            planned.append(_Rekey(record=record, key=key))
        return planned

    def _apply(self, planned: Sequence[_Rekey]) -> int | ValidationFailure:
        for step in planned:
            if not self.store.rekey(step.record, step.key):
                return ValidationFailure(
                    reason=f"{step.record.describe()} could not be re-keyed to {step.key}",
                    record=step.record,
                )
        return len(planned)
