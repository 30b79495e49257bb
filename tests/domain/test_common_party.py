from __future__ import annotations

from typing import TYPE_CHECKING

from nomismap.domain.common_party import CommonPartyFinder
from tests.helpers.mappings import FakeNonAssociationStore, make_non_association

if TYPE_CHECKING:
    from nomismap.domain.model import NonAssociationMapping


def _store(*records: tuple[int, str, str, int]) -> FakeNonAssociationStore:
    store = FakeNonAssociationStore()
    for non_association_id, first, second, sequence in records:
        store.insert(make_non_association(non_association_id, first, second, sequence))
    return store


def _ids(records: tuple[NonAssociationMapping, ...]) -> list[int]:
    return [record.non_association_id for record in records]


def test_common_third_party_with_matching_sequence() -> None:
    finder = CommonPartyFinder(_store((1, "COMMON", "A", 1), (2, "COMMON", "B", 1)))

    assert _ids(finder.find_common("A", "B")) == [1, 2]
    assert finder.common_third_parties("A", "B") == ("COMMON",)


def test_differing_sequences_do_not_link() -> None:
    finder = CommonPartyFinder(_store((1, "COMMON", "A", 1), (2, "COMMON", "B", 2)))

    assert finder.find_common("A", "B") == ()
    assert finder.common_third_parties("A", "B") == ()


def test_third_party_may_sit_in_either_slot() -> None:
    finder = CommonPartyFinder(_store((3, "A", "C", 1), (1, "C", "B", 1), (2, "B", "D", 1)))

    assert _ids(finder.find_common("A", "B")) == [1, 3]


def test_records_are_returned_once_and_ordered_by_id() -> None:
    finder = CommonPartyFinder(
        _store(
            (5, "A", "C", 1),
            (4, "B", "C", 1),
            (3, "A", "D", 1),
            (2, "D", "B", 1),
            (1, "B", "C", 2),
        )
    )

    assert _ids(finder.find_common("A", "B")) == [2, 3, 4, 5]
    assert finder.common_third_parties("A", "B") == ("C", "D")


def test_direct_pair_between_queried_offenders_is_not_a_third_party() -> None:
    finder = CommonPartyFinder(_store((1, "A", "B", 1), (2, "B", "A", 2)))

    assert finder.find_common("A", "B") == ()


def test_no_records_yields_empty_result() -> None:
    assert CommonPartyFinder(_store()).find_common("A", "B") == ()
