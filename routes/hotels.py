from flask import Blueprint, request, jsonify, current_app

from services.bookings import get_active_hotel
from services.errors import ValidationError
from services.inputs import parse_day, parse_stay
from services.ledger import claimed_nights
from services.pricing import quote_stay

hotels_bp = Blueprint("hotels", __name__, url_prefix="/hotels")


@hotels_bp.get("/<int:hotel_id>/quote")
def quote(hotel_id: int):
    hotel = get_active_hotel(hotel_id)
    check_in, check_out = parse_stay(request.args)

    q = quote_stay(
        hotel.price_per_night,
        check_in,
        check_out,
        tax_rate=current_app.config.get("TAX_RATE", 0.12),
        service_fee=current_app.config.get("SERVICE_FEE", 500),
    )
    return jsonify(
        hotel_id=hotel.id,
        price_per_night=hotel.price_per_night,
        currency=current_app.config.get("PAYMENT_CURRENCY", "INR"),
        **q.to_dict(),
    ), 200


@hotels_bp.get("/<int:hotel_id>/availability")
def availability(hotel_id: int):
    hotel = get_active_hotel(hotel_id)
    start = parse_day(request.args.get("start"), "start")
    end = parse_day(request.args.get("end"), "end")
    if end <= start:
        raise ValidationError("end must be after start")
    if (end - start).days > 366:
        raise ValidationError("Range is limited to 366 days")

    booked = claimed_nights(hotel.id, start, end)
    return jsonify(
        hotel_id=hotel.id,
        start=start.isoformat(),
        end=end.isoformat(),
        booked_nights=[d.isoformat() for d in booked],
    ), 200
