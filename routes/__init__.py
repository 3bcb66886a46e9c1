from flask import Blueprint, jsonify

from .auth import auth_bp
from .bookings import bookings_bp
from .hotels import hotels_bp
from .payments import payments_bp
from .stripe_webhook import webhook_bp

health_bp = Blueprint("health", __name__)


@health_bp.get("/health")
def health():
    return jsonify(status="ok"), 200
