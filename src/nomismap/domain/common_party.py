"""Find the offenders that two given offenders are both kept apart from."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from nomismap.domain.model import NonAssociationMapping
    from nomismap.domain.ports.persistence import NonAssociationStore


class CommonPartyFinder:
    """Read-only queries over pairs of offenders sharing a third party.

    Two non-associations link through a third offender only when their type
    sequences match; the same pair of offenders under different sequences are
    unrelated records.
    """

    def __init__(self, store: NonAssociationStore) -> None:
        self.store = store

    def find_common(
        self, offender_no: str, other_offender_no: str
    ) -> tuple[NonAssociationMapping, ...]:
        """Return the records linking both offenders to a common third party.

        Records come back flat, each once, ordered by non-association id.
        """

        matched: dict[int, NonAssociationMapping] = {}
        for record, other in self._linked_pairs(offender_no, other_offender_no):
            matched[record.non_association_id] = record
            matched[other.non_association_id] = other
        return tuple(matched[key] for key in sorted(matched))

    def common_third_parties(self, offender_no: str, other_offender_no: str) -> tuple[str, ...]:
        """Return the third-party offender numbers shared by both offenders."""

        third_parties = {
            third_party
            for record, _ in self._linked_pairs(offender_no, other_offender_no)
            if (third_party := record.counterpart_of(offender_no)) is not None
        }
        return tuple(sorted(third_parties))

    def _linked_pairs(
        self, offender_no: str, other_offender_no: str
    ) -> list[tuple[NonAssociationMapping, NonAssociationMapping]]:
        others_by_link: dict[tuple[str, int], list[NonAssociationMapping]] = {}
        for other in self.store.find_by_identity(other_offender_no):
            third_party = other.counterpart_of(other_offender_no)
            if third_party is None or third_party == offender_no:
                continue
            others_by_link.setdefault((third_party, other.nomis_type_sequence), []).append(other)

        pairs: list[tuple[NonAssociationMapping, NonAssociationMapping]] = []
        for record in self.store.find_by_identity(offender_no):
            third_party = record.counterpart_of(offender_no)
            if third_party is None or third_party == other_offender_no:
                continue
            for other in others_by_link.get((third_party, record.nomis_type_sequence), ()):
                pairs.append((record, other))
        return pairs
