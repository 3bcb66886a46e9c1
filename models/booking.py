from datetime import datetime
from models.db import db

BOOKING_CONFIRMED = "CONFIRMED"
BOOKING_CANCELLED = "CANCELLED"

class Booking(db.Model):
    __tablename__ = "bookings"

    id = db.Column(db.Integer, primary_key=True)

    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    hotel_id = db.Column(db.Integer, db.ForeignKey("hotels.id"), nullable=False, index=True)

    check_in = db.Column(db.Date, nullable=False)
    check_out = db.Column(db.Date, nullable=False)  # exclusive
    total_cost = db.Column(db.Integer, nullable=False)

    status = db.Column(db.String(20), nullable=False, default=BOOKING_CONFIRMED)
    # status values: CONFIRMED, CANCELLED

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False, index=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
    cancelled_at = db.Column(db.DateTime, nullable=True)
    cancel_reason = db.Column(db.String(120), nullable=True)

    hotel = db.relationship("Hotel", lazy="joined")
    user = db.relationship("User")

    __table_args__ = (
        db.CheckConstraint("check_in < check_out", name="ck_booking_date_range"),
        db.CheckConstraint("total_cost > 0", name="ck_booking_total_positive"),
    )
