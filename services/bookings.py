import logging
from datetime import date, datetime
from typing import Optional

from flask import current_app
from sqlalchemy import select
from sqlalchemy.orm import selectinload

from models import db
from models.booking import BOOKING_CANCELLED, BOOKING_CONFIRMED, Booking
from models.hotel import Hotel
from services.errors import (
    AlreadyCancelledError,
    AuthorizationError,
    NotFoundError,
    ValidationError,
)
from services.ledger import claim_nights, nights_between, release_nights
from services.retry import run_with_retries
from services.uow import unit_of_work

logger = logging.getLogger(__name__)


def get_active_hotel(hotel_id: int) -> Hotel:
    hotel = db.session.get(Hotel, hotel_id)
    if not hotel or not hotel.is_active:
        raise NotFoundError("Hotel not found")
    return hotel


# ---------- Booking aggregate ----------

def create_booking_record(hotel_id: int, user_id: int, check_in: date, check_out: date, total_cost: int) -> Booking:
    """Add a CONFIRMED booking to the current unit of work."""
    if not isinstance(check_in, date) or not isinstance(check_out, date) or check_in >= check_out:
        raise ValidationError("check_out must be after check_in")
    if isinstance(total_cost, bool) or not isinstance(total_cost, int) or total_cost <= 0:
        raise ValidationError("total_cost must be a positive amount")

    booking = Booking(
        hotel_id=hotel_id,
        user_id=user_id,
        check_in=check_in,
        check_out=check_out,
        total_cost=total_cost,
        status=BOOKING_CONFIRMED,
    )
    db.session.add(booking)
    return booking


def cancel_booking(booking_id: int, requesting_user_id: int, reason: Optional[str] = None) -> Booking:
    """
    Flip a CONFIRMED booking to CANCELLED and release its nights, atomically.
    The booking row is locked for the duration of the unit of work.
    """
    with unit_of_work():
        booking = db.session.execute(
            select(Booking).where(Booking.id == booking_id).with_for_update()
        ).scalar_one_or_none()

        if not booking:
            raise NotFoundError("Booking not found")
        if booking.user_id != requesting_user_id:
            raise AuthorizationError("You can only cancel your own bookings")
        if booking.status == BOOKING_CANCELLED:
            raise AlreadyCancelledError(booking)

        now = datetime.utcnow()
        booking.status = BOOKING_CANCELLED
        booking.cancelled_at = now
        booking.updated_at = now
        booking.cancel_reason = reason

        released = release_nights(booking.hotel_id, booking.check_in, booking.check_out)

    logger.info("Booking %s cancelled, %s nights released", booking.id, released)
    return booking


def list_for_user(user_id: int, status: Optional[str] = None) -> list[Booking]:
    q = Booking.query.filter_by(user_id=user_id)
    if status:
        q = q.filter_by(status=status)
    return q.order_by(Booking.created_at.desc(), Booking.id.desc()).all()


def list_all(page: int = 1, page_size: int = 10, status: Optional[str] = None):
    """Newest first; returns a Flask-SQLAlchemy Pagination (items, total, pages)."""
    q = Booking.query.options(selectinload(Booking.user))
    if status:
        q = q.filter_by(status=status)
    return q.order_by(Booking.created_at.desc(), Booking.id.desc()).paginate(
        page=page, per_page=page_size, error_out=False
    )


# ---------- Transactional orchestrator ----------

def claim_and_create(hotel_id: int, user_id: int, check_in: date, check_out: date, total_cost: int) -> Booking:
    """
    Claim every night of the stay and create the booking, inside the caller's
    unit of work. This is the only code path that creates Booking rows.
    """
    get_active_hotel(hotel_id)

    claim_nights(hotel_id, nights_between(check_in, check_out))
    booking = create_booking_record(hotel_id, user_id, check_in, check_out, total_cost)
    db.session.flush()
    return booking


def place_booking(hotel_id: int, user_id: int, check_in: date, check_out: date, total_cost: int) -> Booking:
    """Direct booking path: one unit of work around claim_and_create."""

    def attempt():
        with unit_of_work():
            return claim_and_create(hotel_id, user_id, check_in, check_out, total_cost)

    booking = run_with_retries(
        attempt,
        "Booking failed",
        max_attempts=current_app.config.get("CONFIRM_MAX_ATTEMPTS", 3),
        backoff_seconds=current_app.config.get("CONFIRM_BACKOFF_SECONDS", 0.1),
    )
    logger.info("Booking %s created for hotel %s (%s -> %s)", booking.id, hotel_id, check_in, check_out)
    return booking
