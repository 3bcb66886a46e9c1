import json
from datetime import datetime
from models.db import db


class AuditLog(db.Model):
    """Append-only trail of booking, payment and login events."""

    __tablename__ = "audit_logs"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, nullable=True)  # null for webhook and anonymous events
    action = db.Column(db.String(80), nullable=False, index=True)  # BOOKING_CREATE, PAYMENT_CONFLICT, ...
    entity = db.Column(db.String(80), nullable=True)  # booking, payment_intent, hotel, user
    entity_id = db.Column(db.String(80), nullable=True, index=True)

    ip = db.Column(db.String(64), nullable=True)
    user_agent = db.Column(db.String(255), nullable=True)
    metadata_json = db.Column(db.Text, nullable=True)

    timestamp = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    @property
    def details(self) -> dict:
        return json.loads(self.metadata_json) if self.metadata_json else {}
