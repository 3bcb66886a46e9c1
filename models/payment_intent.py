from datetime import datetime
from models.db import db

INTENT_CREATED = "CREATED"
INTENT_PAID = "PAID"
INTENT_FAILED = "FAILED"

class PaymentIntent(db.Model):
    __tablename__ = "payment_intents"

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.String(64), unique=True, nullable=False, index=True)

    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    hotel_id = db.Column(db.Integer, db.ForeignKey("hotels.id"), nullable=False)

    check_in = db.Column(db.Date, nullable=False)
    check_out = db.Column(db.Date, nullable=False)
    adult_count = db.Column(db.Integer, nullable=False, default=1)
    child_count = db.Column(db.Integer, nullable=False, default=0)

    amount = db.Column(db.Integer, nullable=False)
    currency = db.Column(db.String(10), nullable=False, default="INR")

    status = db.Column(db.String(20), nullable=False, default=INTENT_CREATED, index=True)  # CREATED, PAID, FAILED
    booking_id = db.Column(db.Integer, db.ForeignKey("bookings.id"), nullable=True)

    provider = db.Column(db.String(20), nullable=False, default="STRIPE")
    payment_session_id = db.Column(db.String(255), nullable=True, unique=True)
    provider_status = db.Column(db.String(40), nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
    paid_at = db.Column(db.DateTime, nullable=True)

    __table_args__ = (
        # booking_id is set exactly when the intent is PAID
        db.CheckConstraint(
            "(status = 'PAID' AND booking_id IS NOT NULL) OR (status != 'PAID' AND booking_id IS NULL)",
            name="ck_intent_booking_iff_paid",
        ),
    )
