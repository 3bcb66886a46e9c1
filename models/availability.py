from datetime import datetime
from models.db import db

class HotelAvailability(db.Model):
    """One row per claimed (hotel, night)."""

    __tablename__ = "hotel_availability"

    id = db.Column(db.Integer, primary_key=True)

    hotel_id = db.Column(db.Integer, db.ForeignKey("hotels.id"), nullable=False)
    date = db.Column(db.Date, nullable=False)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        # Hard business-rule: a night of a hotel can be claimed once (prevents double booking)
        db.UniqueConstraint("hotel_id", "date", name="uq_hotel_night_once"),
    )
