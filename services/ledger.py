from datetime import date, timedelta

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from models import db
from models.availability import HotelAvailability
from services.errors import ConflictError


def nights_between(check_in: date, check_out: date) -> list[date]:
    """Calendar nights of a stay: check_in inclusive, check_out exclusive."""
    nights = []
    current = check_in
    while current < check_out:
        nights.append(current)
        current += timedelta(days=1)
    return nights


def claim_nights(hotel_id: int, nights) -> list[HotelAvailability]:
    """
    Insert one lock row per night in the current unit of work.

    The unique (hotel_id, date) constraint decides who wins: if any night is
    already held the flush fails and ConflictError is raised. The caller must
    roll back, which discards every row added here.
    """
    rows = [HotelAvailability(hotel_id=hotel_id, date=night) for night in sorted(set(nights))]
    db.session.add_all(rows)
    try:
        db.session.flush()
    except IntegrityError as exc:
        # Unique constraint uq_hotel_night_once triggers here
        raise ConflictError() from exc
    return rows


def release_nights(hotel_id: int, start: date, end: date) -> int:
    """Delete lock rows for start <= date < end. Releasing nothing is fine."""
    result = db.session.execute(
        HotelAvailability.__table__.delete().where(
            HotelAvailability.hotel_id == hotel_id,
            HotelAvailability.date >= start,
            HotelAvailability.date < end,
        )
    )
    return result.rowcount or 0


def claimed_nights(hotel_id: int, start: date, end: date) -> list[date]:
    rows = db.session.execute(
        select(HotelAvailability.date)
        .where(
            HotelAvailability.hotel_id == hotel_id,
            HotelAvailability.date >= start,
            HotelAvailability.date < end,
        )
        .order_by(HotelAvailability.date.asc())
    ).scalars().all()
    return list(rows)
