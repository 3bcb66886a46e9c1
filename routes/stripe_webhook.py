import logging

import stripe
from flask import Blueprint, request, jsonify, current_app

from routes.payments import settle_order
from services.errors import BookingServiceError, PaymentProviderError, RetriesExhaustedError

logger = logging.getLogger(__name__)

webhook_bp = Blueprint("webhook", __name__, url_prefix="/webhooks")

# Checkout events after which the order can be settled; async_* follow delayed payment methods
SETTLING_EVENTS = (
    "checkout.session.completed",
    "checkout.session.expired",
    "checkout.session.async_payment_succeeded",
    "checkout.session.async_payment_failed",
)


@webhook_bp.post("/stripe")
def stripe_webhook():
    endpoint_secret = current_app.config.get("STRIPE_WEBHOOK_SECRET")
    sig_header = request.headers.get("Stripe-Signature")
    payload = request.data

    if not endpoint_secret:
        return jsonify(error="Webhook secret not configured"), 500

    try:
        event = stripe.Webhook.construct_event(payload, sig_header, endpoint_secret)
    except (ValueError, stripe.SignatureVerificationError):
        return jsonify(error="Invalid webhook signature"), 400

    event_type = event["type"]
    if event_type not in SETTLING_EVENTS:
        return jsonify(received=True), 200

    session = event["data"]["object"]
    order_id = getattr(session, "client_reference_id", None)
    if not order_id:
        metadata = getattr(session, "metadata", None)
        order_id = getattr(metadata, "order_id", None) if metadata else None
    if not order_id:
        return jsonify(received=True, ignored="no order id"), 200

    # Same reconciliation as the redirect path; replays are no-ops.
    # A 5xx makes Stripe deliver the event again later.
    try:
        settle_order(order_id)
    except RetriesExhaustedError:
        return jsonify(error="Failed to confirm payment"), 500
    except PaymentProviderError as exc:
        logger.warning("Webhook %s for order %s: provider unavailable (%s)", event_type, order_id, exc.message)
        return jsonify(error=exc.message), exc.status_code
    except BookingServiceError as exc:
        logger.info("Webhook %s for order %s settled with %s: %s", event_type, order_id, type(exc).__name__, exc.message)

    return jsonify(received=True), 200
