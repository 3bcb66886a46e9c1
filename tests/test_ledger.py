from datetime import date

import pytest

from services.errors import ConflictError
from services.ledger import claim_nights, claimed_nights, nights_between, release_nights
from services.uow import unit_of_work

D = date


def test_nights_exclude_checkout_day():
    assert nights_between(D(2024, 6, 1), D(2024, 6, 3)) == [D(2024, 6, 1), D(2024, 6, 2)]
    assert nights_between(D(2024, 6, 30), D(2024, 7, 2)) == [D(2024, 6, 30), D(2024, 7, 1)]
    assert nights_between(D(2024, 6, 3), D(2024, 6, 3)) == []


def test_overlapping_claim_fails_and_commits_nothing(ctx, make_hotel):
    hotel_id = make_hotel()

    with unit_of_work():
        claim_nights(hotel_id, [D(2024, 6, 1), D(2024, 6, 2)])

    with pytest.raises(ConflictError):
        with unit_of_work():
            claim_nights(hotel_id, [D(2024, 6, 2), D(2024, 6, 3)])

    # 06-03 was free but must not survive the aborted unit of work
    assert claimed_nights(hotel_id, D(2024, 6, 1), D(2024, 6, 10)) == [D(2024, 6, 1), D(2024, 6, 2)]


def test_same_nights_on_other_hotels_do_not_conflict(ctx, make_hotel):
    first, second = make_hotel(name="A"), make_hotel(name="B")

    with unit_of_work():
        claim_nights(first, [D(2024, 6, 1)])
    with unit_of_work():
        claim_nights(second, [D(2024, 6, 1)])

    assert claimed_nights(first, D(2024, 6, 1), D(2024, 6, 2)) == [D(2024, 6, 1)]
    assert claimed_nights(second, D(2024, 6, 1), D(2024, 6, 2)) == [D(2024, 6, 1)]


def test_release_is_scoped_and_idempotent(ctx, make_hotel):
    hotel_id = make_hotel()
    with unit_of_work():
        claim_nights(hotel_id, nights_between(D(2024, 7, 8), D(2024, 7, 14)))

    with unit_of_work():
        assert release_nights(hotel_id, D(2024, 7, 10), D(2024, 7, 12)) == 2
    with unit_of_work():
        assert release_nights(hotel_id, D(2024, 7, 10), D(2024, 7, 12)) == 0

    assert claimed_nights(hotel_id, D(2024, 7, 1), D(2024, 7, 31)) == [
        D(2024, 7, 8), D(2024, 7, 9), D(2024, 7, 12), D(2024, 7, 13),
    ]
