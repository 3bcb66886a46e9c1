import logging
from dataclasses import dataclass
from typing import Optional, Protocol

import stripe

from services.errors import PaymentProviderError

logger = logging.getLogger(__name__)

# Provider statuses that mean the money was captured
PAID_STATUSES = frozenset({"PAID", "COMPLETED", "SUCCESS"})
# Not settled yet; the intent stays open and a later confirmation decides
PENDING_STATUSES = frozenset({"PENDING"})

# Stripe PaymentIntent states of a delayed payment method still in flight
_IN_FLIGHT_INTENT_STATUSES = {"processing", "requires_action", "requires_confirmation"}


@dataclass(frozen=True)
class ProviderOrder:
    session_id: str
    checkout_url: Optional[str] = None


class PaymentProvider(Protocol):
    def create_order(self, order_id: str, amount: int, currency: str, customer: dict) -> ProviderOrder:
        ...

    def fetch_order_status(self, order_id: str, session_id: Optional[str]) -> str:
        ...


def _fill_order_id(url: str, order_id: str) -> str:
    return url.replace("{order_id}", order_id) if url else url


class StripePaymentProvider:
    """
    Stripe Checkout behind the PaymentProvider interface.

    Built once per app from config; the key is passed on every call rather
    than stored in the module-global stripe.api_key.
    """

    def __init__(self, api_key: Optional[str], success_url: Optional[str], cancel_url: Optional[str]):
        self._api_key = api_key
        self._success_url = success_url
        self._cancel_url = cancel_url

    @classmethod
    def from_config(cls, config) -> "StripePaymentProvider":
        return cls(
            api_key=config.get("STRIPE_SECRET_KEY"),
            success_url=config.get("STRIPE_SUCCESS_URL"),
            cancel_url=config.get("STRIPE_CANCEL_URL"),
        )

    def _require_key(self):
        if not self._api_key:
            raise PaymentProviderError("Stripe secret key missing (STRIPE_SECRET_KEY)")

    def create_order(self, order_id: str, amount: int, currency: str, customer: dict) -> ProviderOrder:
        self._require_key()
        if not self._success_url or not self._cancel_url:
            raise PaymentProviderError("Stripe success/cancel URLs not configured")

        # Stripe expects the smallest currency unit
        unit_amount = int(amount) * 100
        metadata = {"order_id": order_id, "user_id": str(customer.get("id", ""))}
        if customer.get("hotel_id") is not None:
            metadata["hotel_id"] = str(customer["hotel_id"])

        params = dict(
            mode="payment",
            client_reference_id=order_id,
            line_items=[{
                "price_data": {
                    "currency": currency.lower(),
                    "product_data": {"name": customer.get("description") or f"Hotel booking ({order_id})"},
                    "unit_amount": unit_amount,
                },
                "quantity": 1,
            }],
            success_url=_fill_order_id(self._success_url, order_id),
            cancel_url=_fill_order_id(self._cancel_url, order_id),
            metadata=metadata,
            payment_intent_data={"metadata": metadata},
        )
        if customer.get("email"):
            params["customer_email"] = customer["email"]

        try:
            session = stripe.checkout.Session.create(api_key=self._api_key, **params)
        except stripe.StripeError as exc:
            logger.error("Stripe order creation failed for %s: %s", order_id, exc)
            raise PaymentProviderError("Failed to create payment order") from exc

        return ProviderOrder(session_id=session.id, checkout_url=getattr(session, "url", None))

    def fetch_order_status(self, order_id: str, session_id: Optional[str]) -> str:
        self._require_key()
        if not session_id:
            raise PaymentProviderError("No provider session recorded for this order")

        try:
            session = stripe.checkout.Session.retrieve(
                session_id, api_key=self._api_key, expand=["payment_intent"]
            )
        except stripe.StripeError as exc:
            logger.error("Stripe status fetch failed for %s: %s", order_id, exc)
            raise PaymentProviderError("Failed to fetch payment status") from exc

        if getattr(session, "client_reference_id", None) != order_id:
            raise PaymentProviderError("Provider session does not belong to this order")

        payment_status = getattr(session, "payment_status", None)
        if payment_status == "paid":
            return "PAID"
        if payment_status == "no_payment_required":
            return "COMPLETED"
        status = getattr(session, "status", None)
        if status == "complete":
            # Checkout finished with a delayed method (bank debit, voucher, ...)
            intent_status = getattr(getattr(session, "payment_intent", None), "status", None)
            if intent_status is None or intent_status in _IN_FLIGHT_INTENT_STATUSES:
                return "PENDING"
            return intent_status.upper()
        # open / expired
        return (status or "UNKNOWN").upper()
