from flask import Blueprint, request, jsonify, current_app, g

from models.booking import Booking
from models.user import ROLE_ADMIN
from security.rbac import require_roles
from services import bookings as booking_service
from services.errors import AlreadyCancelledError, ConflictError
from services.inputs import BookingRequest, CancelRequest
from utils.auth_context import login_required
from utils.audit import log_event

bookings_bp = Blueprint("bookings", __name__, url_prefix="/bookings")


def booking_json(b: Booking, include_user: bool = False) -> dict:
    data = {
        "id": b.id,
        "hotel_id": b.hotel_id,
        "user_id": b.user_id,
        "check_in": b.check_in.isoformat(),
        "check_out": b.check_out.isoformat(),
        "total_cost": b.total_cost,
        "status": b.status,
        "created_at": b.created_at.isoformat(),
        "updated_at": b.updated_at.isoformat() if b.updated_at else None,
        "cancelled_at": b.cancelled_at.isoformat() if b.cancelled_at else None,
        "hotel": {
            "id": b.hotel.id,
            "name": b.hotel.name,
            "city": b.hotel.city,
            "country": b.hotel.country,
        } if b.hotel else None,
    }
    if include_user:
        # who booked, for the admin listing
        data["user"] = {"id": b.user.id, "email": b.user.email, "full_name": b.user.full_name}
    return data


# ---------- GUESTS: book a stay (DOUBLE-BOOKING SAFE) ----------
@bookings_bp.post("")
@login_required
def create_booking():
    req = BookingRequest.from_json(request.get_json(silent=True))

    try:
        booking = booking_service.place_booking(
            req.hotel_id, g.user.id, req.check_in, req.check_out, req.total_cost
        )
    except ConflictError:
        log_event(
            "BOOKING_FAIL_ALREADY_BOOKED",
            user_id=g.user.id,
            entity="hotel",
            entity_id=req.hotel_id,
            metadata={"check_in": req.check_in, "check_out": req.check_out},
        )
        raise

    log_event("BOOKING_CREATE", user_id=g.user.id, entity="booking", entity_id=booking.id, metadata={"hotel_id": req.hotel_id})
    return jsonify(message="Booking confirmed", booking=booking_json(booking)), 201


# ---------- GUESTS: view my bookings ----------
@bookings_bp.get("/me")
@login_required
def my_bookings():
    status = request.args.get("status")  # CONFIRMED/CANCELLED
    rows = booking_service.list_for_user(g.user.id, status=status)
    return jsonify([booking_json(b) for b in rows]), 200


# ---------- GUESTS: cancel booking ----------
@bookings_bp.patch("/<int:booking_id>/cancel")
@login_required
def cancel_booking(booking_id: int):
    req = CancelRequest.from_json(request.get_json(silent=True))

    try:
        booking = booking_service.cancel_booking(booking_id, g.user.id, reason=req.reason)
    except AlreadyCancelledError as exc:
        # Repeated cancel is reported, not treated as a failure
        return jsonify(message=exc.message, already_cancelled=True, booking=booking_json(exc.booking)), 200

    log_event("BOOKING_CANCEL", user_id=g.user.id, entity="booking", entity_id=booking.id, metadata={"reason": req.reason})
    return jsonify(message="Cancelled", already_cancelled=False, booking=booking_json(booking)), 200


# ---------- ADMIN: list all bookings ----------
@bookings_bp.get("")
@require_roles(ROLE_ADMIN)
def list_all_bookings():
    default_size = current_app.config.get("BOOKINGS_PAGE_SIZE", 10)
    page = max(request.args.get("page", 1, type=int) or 1, 1)
    limit = request.args.get("limit", default_size, type=int) or default_size
    limit = min(max(limit, 1), 100)
    status = request.args.get("status")

    result = booking_service.list_all(page=page, page_size=limit, status=status)
    return jsonify(
        data=[booking_json(b, include_user=True) for b in result.items],
        pagination={
            "total": result.total,
            "page": page,
            "pages": result.pages,
        },
    ), 200
