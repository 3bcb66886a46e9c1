from datetime import date

import pytest

from models import db
from models.availability import HotelAvailability
from models.booking import BOOKING_CANCELLED, BOOKING_CONFIRMED, Booking
from services.bookings import cancel_booking, list_all, list_for_user, place_booking
from services.errors import (
    AlreadyCancelledError,
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from services.ledger import claimed_nights
from services.pricing import quote_stay

D = date


def _lock_count():
    return db.session.query(HotelAvailability).count()


def test_booking_claims_each_night_but_not_checkout(ctx, make_hotel, make_user):
    hotel_id, user_id = make_hotel(price_per_night=1000), make_user()
    total = quote_stay(1000, D(2024, 6, 1), D(2024, 6, 3)).total

    booking = place_booking(hotel_id, user_id, D(2024, 6, 1), D(2024, 6, 3), total)

    assert booking.status == BOOKING_CONFIRMED
    assert booking.total_cost == 2740
    assert claimed_nights(hotel_id, D(2024, 5, 1), D(2024, 7, 1)) == [D(2024, 6, 1), D(2024, 6, 2)]


def test_overlapping_booking_is_rejected(ctx, make_hotel, make_user):
    hotel_id = make_hotel()
    first, second = make_user(), make_user()

    place_booking(hotel_id, first, D(2024, 6, 1), D(2024, 6, 3), 2740)
    with pytest.raises(ConflictError) as info:
        place_booking(hotel_id, second, D(2024, 6, 2), D(2024, 6, 4), 2740)

    assert "already booked" in info.value.message
    assert Booking.query.count() == 1
    assert claimed_nights(hotel_id, D(2024, 6, 1), D(2024, 6, 10)) == [D(2024, 6, 1), D(2024, 6, 2)]


def test_back_to_back_stays_share_the_changeover_day(ctx, make_hotel, make_user):
    hotel_id, user_id = make_hotel(), make_user()

    place_booking(hotel_id, user_id, D(2024, 6, 1), D(2024, 6, 3), 100)
    place_booking(hotel_id, user_id, D(2024, 6, 3), D(2024, 6, 5), 100)

    assert Booking.query.count() == 2


def test_failed_booking_creation_leaves_no_locks(ctx, make_hotel, make_user):
    hotel_id, user_id = make_hotel(), make_user()

    with pytest.raises(ValidationError):
        place_booking(hotel_id, user_id, D(2024, 6, 1), D(2024, 6, 3), 0)

    assert _lock_count() == 0
    assert Booking.query.count() == 0


@pytest.mark.parametrize("check_out", [D(2024, 6, 1), D(2024, 5, 28)])
def test_invalid_range_writes_nothing(ctx, make_hotel, make_user, check_out):
    hotel_id, user_id = make_hotel(), make_user()

    with pytest.raises(ValidationError):
        place_booking(hotel_id, user_id, D(2024, 6, 1), check_out, 500)

    assert _lock_count() == 0
    assert Booking.query.count() == 0


def test_unknown_or_inactive_hotel_is_not_found(ctx, make_hotel, make_user):
    user_id = make_user()
    closed = make_hotel(is_active=False)

    with pytest.raises(NotFoundError):
        place_booking(9999, user_id, D(2024, 6, 1), D(2024, 6, 2), 100)
    with pytest.raises(NotFoundError):
        place_booking(closed, user_id, D(2024, 6, 1), D(2024, 6, 2), 100)
    assert _lock_count() == 0


def test_cancel_releases_nights_for_another_guest(ctx, make_hotel, make_user):
    hotel_id = make_hotel(name="Hotel Z")
    owner, other = make_user(), make_user()
    booking = place_booking(hotel_id, owner, D(2024, 7, 10), D(2024, 7, 12), 2740)

    cancelled = cancel_booking(booking.id, owner, reason="plans changed")

    assert cancelled.status == BOOKING_CANCELLED
    assert cancelled.cancelled_at is not None
    assert cancelled.cancel_reason == "plans changed"
    assert claimed_nights(hotel_id, D(2024, 7, 1), D(2024, 8, 1)) == []

    rebooked = place_booking(hotel_id, other, D(2024, 7, 11), D(2024, 7, 13), 2740)
    assert rebooked.status == BOOKING_CONFIRMED
    assert claimed_nights(hotel_id, D(2024, 7, 1), D(2024, 8, 1)) == [D(2024, 7, 11), D(2024, 7, 12)]


def test_cancel_only_releases_own_nights(ctx, make_hotel, make_user):
    hotel_id, user_id = make_hotel(), make_user()
    keep = place_booking(hotel_id, user_id, D(2024, 7, 1), D(2024, 7, 3), 100)
    drop = place_booking(hotel_id, user_id, D(2024, 7, 3), D(2024, 7, 5), 100)

    cancel_booking(drop.id, user_id)

    assert db.session.get(Booking, keep.id).status == BOOKING_CONFIRMED
    assert claimed_nights(hotel_id, D(2024, 7, 1), D(2024, 8, 1)) == [D(2024, 7, 1), D(2024, 7, 2)]


def test_cancel_guards(ctx, make_hotel, make_user):
    hotel_id = make_hotel()
    owner, stranger = make_user(), make_user()
    booking = place_booking(hotel_id, owner, D(2024, 7, 10), D(2024, 7, 12), 100)

    with pytest.raises(NotFoundError):
        cancel_booking(424242, owner)
    with pytest.raises(AuthorizationError):
        cancel_booking(booking.id, stranger)
    assert _lock_count() == 2

    cancel_booking(booking.id, owner)
    with pytest.raises(AlreadyCancelledError) as info:
        cancel_booking(booking.id, owner)
    assert info.value.booking.id == booking.id


def test_listing_is_newest_first_and_paginated(ctx, make_hotel, make_user):
    hotel_id = make_hotel()
    me, other = make_user(), make_user()
    ids = [
        place_booking(hotel_id, me, D(2024, 8, day), D(2024, 8, day + 1), 100).id
        for day in (1, 3, 5)
    ]
    place_booking(hotel_id, other, D(2024, 8, 10), D(2024, 8, 11), 100)

    mine = list_for_user(me)
    assert [b.id for b in mine] == list(reversed(ids))

    cancel_booking(ids[0], me)
    assert [b.id for b in list_for_user(me, status=BOOKING_CANCELLED)] == [ids[0]]

    page = list_all(page=1, page_size=3)
    assert page.total == 4
    assert page.pages == 2
    assert len(page.items) == 3
    assert list_all(page=2, page_size=3).items[0].id == ids[0]
