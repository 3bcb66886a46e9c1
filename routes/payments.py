from flask import Blueprint, request, jsonify, current_app, g

from services import payments as payment_service
from services.errors import AuthorizationError, ConflictError, ProviderNotCompletedError, ValidationError
from services.inputs import PaymentOrderRequest, json_object
from services.payment_provider import PENDING_STATUSES
from utils.auth_context import login_required
from utils.audit import log_event

payments_bp = Blueprint("payments", __name__, url_prefix="/payments")


def get_payment_provider():
    return current_app.extensions["payment_provider"]


def intent_json(intent) -> dict:
    return {
        "order_id": intent.order_id,
        "hotel_id": intent.hotel_id,
        "check_in": intent.check_in.isoformat(),
        "check_out": intent.check_out.isoformat(),
        "adult_count": intent.adult_count,
        "child_count": intent.child_count,
        "amount": intent.amount,
        "currency": intent.currency,
        "status": intent.status,
        "provider_status": intent.provider_status,
        "booking_id": intent.booking_id,
        "created_at": intent.created_at.isoformat(),
        "paid_at": intent.paid_at.isoformat() if intent.paid_at else None,
    }


def settle_order(order_id: str, user_id=None):
    """Confirm an order and write the matching audit event; shared with the webhook."""
    try:
        result = payment_service.confirm_payment(get_payment_provider(), order_id)
    except ProviderNotCompletedError as exc:
        action = "PAYMENT_PENDING" if exc.provider_status in PENDING_STATUSES else "PAYMENT_FAILED"
        log_event(action, user_id=user_id, entity="payment_intent", entity_id=order_id, metadata={"status": exc.provider_status})
        raise
    except ConflictError:
        # Money captured but the nights are gone; needs a manual refund
        log_event("PAYMENT_CONFLICT", user_id=user_id, entity="payment_intent", entity_id=order_id)
        raise

    if not result.already_confirmed:
        log_event("PAYMENT_PAID", user_id=user_id, entity="payment_intent", entity_id=order_id, metadata={"booking_id": result.booking_id})
    return result


@payments_bp.post("/create-order")
@login_required
def create_order():
    req = PaymentOrderRequest.from_json(request.get_json(silent=True))
    order = payment_service.start_payment_order(get_payment_provider(), g.user, req)

    log_event("PAYMENT_ORDER_CREATED", user_id=g.user.id, entity="payment_intent", entity_id=order.order_id, metadata={"payment_session_id": order.payment_session_id})
    return jsonify(
        order_id=order.order_id,
        payment_session_id=order.payment_session_id,
        checkout_url=order.checkout_url,
        amount=order.amount,
        currency=order.currency,
    ), 200


@payments_bp.post("/confirm")
@login_required
def confirm():
    data = json_object(request.get_json(silent=True))
    order_id = data.get("order_id")
    if not isinstance(order_id, str) or not order_id.strip():
        raise ValidationError("order_id is required")
    order_id = order_id.strip()

    intent = payment_service.get_intent(order_id)
    if intent.user_id != g.user.id:
        raise AuthorizationError("Payment belongs to another user")

    result = settle_order(order_id, user_id=g.user.id)
    message = "Payment already confirmed" if result.already_confirmed else "Payment confirmed and booking created"
    return jsonify(
        message=message,
        booking_id=result.booking_id,
        already_confirmed=result.already_confirmed,
    ), 200


@payments_bp.get("/<order_id>")
@login_required
def payment_status(order_id: str):
    intent = payment_service.get_intent(order_id)
    if intent.user_id != g.user.id:
        raise AuthorizationError("Payment belongs to another user")
    return jsonify(intent_json(intent)), 200
