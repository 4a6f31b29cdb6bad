from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional
from uuid import uuid4

import stripe
from django.conf import settings

logger = logging.getLogger(__name__)


@dataclass
class PaymentIntentStub:
    """
    Lightweight stand-in for stripe.PaymentIntent when running in stub mode.

    Local development does not hit Stripe; instead, we return predictable
    identifiers so the rest of the payment flow (records, client secret,
    webhooks replayed by hand) behaves as if Stripe responded.
    """

    id: str
    client_secret: str
    status: str = "requires_payment_method"


@dataclass
class RefundStub:
    id: str
    amount: Optional[int]
    status: str = "succeeded"


class StripeGateway:
    """Card payments through Stripe PaymentIntents."""

    def __init__(self, api_key: str | None, *, use_stub: bool = False):
        if not api_key and not use_stub:
            raise RuntimeError("Stripe secret key is not configured.")
        self.api_key = api_key
        self.use_stub = use_stub

    def create_payment_intent(
        self,
        *,
        amount: int,
        currency: str,
        description: str,
        customer_email: str,
        customer_name: str,
        booking_reference: str,
        metadata: dict | None = None,
    ):
        if self.use_stub:
            intent_id = f"pi_test_{uuid4().hex}"
            return PaymentIntentStub(id=intent_id, client_secret=f"{intent_id}_secret_{uuid4().hex[:12]}")

        intent_metadata = {
            "booking_reference": booking_reference,
            "customer_name": customer_name,
        }
        intent_metadata.update({key: str(value) for key, value in (metadata or {}).items()})
        return stripe.PaymentIntent.create(
            amount=int(amount),
            currency=currency.lower(),
            description=description,
            receipt_email=customer_email,
            metadata=intent_metadata,
            automatic_payment_methods={"enabled": True},
            api_key=self.api_key,
        )

    def create_refund(self, payment_intent_id: str, amount: int | None = None, reason: str | None = None):
        if self.use_stub:
            return RefundStub(id=f"re_test_{uuid4().hex}", amount=amount)

        kwargs = {"payment_intent": payment_intent_id, "api_key": self.api_key}
        if amount is not None:
            kwargs["amount"] = int(amount)
        if reason:
            kwargs["reason"] = reason
        return stripe.Refund.create(**kwargs)


def construct_webhook_event(payload: bytes, sig_header: str | None, secret: str):
    """Verify the Stripe-Signature header; raises ValueError or SignatureVerificationError."""
    return stripe.Webhook.construct_event(payload, sig_header, secret)


def build_stripe_gateway() -> StripeGateway | None:
    use_stub = getattr(settings, "STRIPE_USE_STUB", False)
    api_key = getattr(settings, "STRIPE_SECRET_KEY", "") or None
    if not api_key and not use_stub:
        logger.warning("Stripe secret key not provided; card payments are disabled.")
        return None
    return StripeGateway(api_key, use_stub=use_stub)
