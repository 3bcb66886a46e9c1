import logging
import secrets
import time
from dataclasses import dataclass
from datetime import date, datetime

from flask import current_app
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from models import db
from models.payment_intent import INTENT_CREATED, INTENT_FAILED, INTENT_PAID, PaymentIntent
from services.bookings import claim_and_create, get_active_hotel
from services.errors import (
    ConflictError,
    DuplicateOrderError,
    NotFoundError,
    PaymentProviderError,
    ProviderNotCompletedError,
)
from services.inputs import PaymentOrderRequest
from services.payment_provider import PAID_STATUSES, PENDING_STATUSES
from services.pricing import quote_stay
from services.retry import run_with_retries
from services.uow import unit_of_work

logger = logging.getLogger(__name__)

ORDER_CREATE_FAILED = "ORDER_CREATE_FAILED"


@dataclass(frozen=True)
class PaymentOrder:
    order_id: str
    payment_session_id: str
    checkout_url: str
    amount: int
    currency: str


@dataclass(frozen=True)
class Reconciliation:
    order_id: str
    booking_id: int
    already_confirmed: bool


def generate_order_id() -> str:
    return f"order_{int(time.time() * 1000)}_{secrets.token_hex(4)}"


def _lock_intent(order_id: str):
    return db.session.execute(
        select(PaymentIntent).where(PaymentIntent.order_id == order_id).with_for_update()
    ).scalar_one_or_none()


def get_intent(order_id: str) -> PaymentIntent:
    intent = PaymentIntent.query.filter_by(order_id=order_id).first()
    if not intent:
        raise NotFoundError("Payment intent not found")
    return intent


def create_intent(
    order_id: str,
    user_id: int,
    hotel_id: int,
    check_in: date,
    check_out: date,
    adult_count: int,
    child_count: int,
    amount: int,
    currency: str = "INR",
) -> PaymentIntent:
    intent = PaymentIntent(
        order_id=order_id,
        user_id=user_id,
        hotel_id=hotel_id,
        check_in=check_in,
        check_out=check_out,
        adult_count=adult_count,
        child_count=child_count,
        amount=amount,
        currency=currency,
        status=INTENT_CREATED,
    )
    db.session.add(intent)
    try:
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        raise DuplicateOrderError() from exc
    return intent


def start_payment_order(provider, user, request: PaymentOrderRequest) -> PaymentOrder:
    """
    Price the stay, record a CREATED intent and open a checkout with the
    provider. Nothing is reserved until the payment is confirmed.
    """
    hotel = get_active_hotel(request.hotel_id)
    cfg = current_app.config
    quote = quote_stay(
        hotel.price_per_night,
        request.check_in,
        request.check_out,
        tax_rate=cfg.get("TAX_RATE", 0.12),
        service_fee=cfg.get("SERVICE_FEE", 500),
    )
    currency = cfg.get("PAYMENT_CURRENCY", "INR")

    intent = create_intent(
        order_id=generate_order_id(),
        user_id=user.id,
        hotel_id=hotel.id,
        check_in=request.check_in,
        check_out=request.check_out,
        adult_count=request.adult_count,
        child_count=request.child_count,
        amount=quote.total,
        currency=currency,
    )

    try:
        order = provider.create_order(
            intent.order_id,
            quote.total,
            currency,
            {
                "id": user.id,
                "email": getattr(user, "email", None),
                "hotel_id": hotel.id,
                "description": f"{hotel.name}: {quote.nights} night(s) from {request.check_in.isoformat()}",
            },
        )
    except PaymentProviderError:
        intent.status = INTENT_FAILED
        intent.provider_status = ORDER_CREATE_FAILED
        db.session.commit()
        raise

    intent.payment_session_id = order.session_id
    db.session.commit()

    return PaymentOrder(
        order_id=intent.order_id,
        payment_session_id=order.session_id,
        checkout_url=order.checkout_url,
        amount=intent.amount,
        currency=intent.currency,
    )


def reconcile(provider, order_id: str) -> Reconciliation:
    """
    One attempt at settling an order:

    CREATED + provider paid      -> booking created, intent PAID
    CREATED + provider pending   -> ProviderNotCompletedError, intent stays CREATED
    CREATED + provider not paid  -> intent FAILED, ProviderNotCompletedError
    CREATED + nights taken       -> ConflictError, intent stays CREATED
    PAID                         -> existing booking id (replay)
    FAILED                       -> ProviderNotCompletedError (replay)
    """
    failed_status = None

    try:
        with unit_of_work():
            intent = _lock_intent(order_id)
            if not intent:
                raise NotFoundError("Payment intent not found")

            if intent.status == INTENT_PAID:
                return Reconciliation(order_id, intent.booking_id, already_confirmed=True)
            if intent.status == INTENT_FAILED:
                raise ProviderNotCompletedError(intent.provider_status)

            provider_status = (provider.fetch_order_status(order_id, intent.payment_session_id) or "").upper()
            if provider_status in PENDING_STATUSES:
                raise ProviderNotCompletedError(provider_status)

            if provider_status not in PAID_STATUSES:
                intent.status = INTENT_FAILED
                intent.provider_status = provider_status
                failed_status = provider_status
            else:
                booking = claim_and_create(
                    intent.hotel_id,
                    intent.user_id,
                    intent.check_in,
                    intent.check_out,
                    intent.amount,
                )
                intent.status = INTENT_PAID
                intent.booking_id = booking.id
                intent.provider_status = provider_status
                intent.paid_at = datetime.utcnow()
                booking_id = booking.id
    except ConflictError:
        # A concurrent confirmation of the same order may have won the nights
        current = PaymentIntent.query.filter_by(order_id=order_id).first()
        if current and current.status == INTENT_PAID:
            return Reconciliation(order_id, current.booking_id, already_confirmed=True)
        logger.warning("Order %s was paid but its nights are no longer available", order_id)
        raise

    if failed_status is not None:
        logger.info("Order %s not completed by provider (status %s)", order_id, failed_status)
        raise ProviderNotCompletedError(failed_status)

    logger.info("Order %s paid, booking %s created", order_id, booking_id)
    return Reconciliation(order_id, booking_id, already_confirmed=False)


def confirm_payment(provider, order_id: str) -> Reconciliation:
    """reconcile() inside the bounded retry loop."""
    cfg = current_app.config
    return run_with_retries(
        lambda: reconcile(provider, order_id),
        "Failed to confirm payment",
        max_attempts=cfg.get("CONFIRM_MAX_ATTEMPTS", 3),
        backoff_seconds=cfg.get("CONFIRM_BACKOFF_SECONDS", 0.1),
    )
