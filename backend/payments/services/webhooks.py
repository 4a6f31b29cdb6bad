from __future__ import annotations

import logging

from payments.models import Payment
from payments.services.processing import PaymentService

logger = logging.getLogger(__name__)

INTENT_STATUS_BY_EVENT = {
    "payment_intent.succeeded": Payment.COMPLETED,
    "payment_intent.payment_failed": Payment.FAILED,
    "payment_intent.canceled": Payment.CANCELLED,
}


def _failure_message(intent) -> str | None:
    error = intent.get("last_payment_error") or {}
    return error.get("message")


def handle_stripe_event(event, payment_service: PaymentService) -> str:
    """Apply a verified Stripe event to local payment records; returns the action taken."""

    event_type = event["type"]
    data_object = event["data"]["object"]

    if event_type in INTENT_STATUS_BY_EVENT:
        intent_id = data_object.get("id")
        status = INTENT_STATUS_BY_EVENT[event_type]
        payments = Payment.objects.filter(provider=Payment.PROVIDER_STRIPE, transaction_id=intent_id)
        if not payments.exists():
            logger.warning("Stripe event %s for unknown payment intent %s", event_type, intent_id)
            return "unmatched"

        failure_reason = _failure_message(data_object) if status == Payment.FAILED else None
        for payment in payments:
            result = payment_service.update_payment_status(payment.pk, status, failure_reason=failure_reason)
            if not result.success:
                logger.warning("Stripe event %s not applied to payment %s: %s", event_type, payment.pk, result.error)
        return f"payment_{status}"

    if event_type == "charge.dispute.created":
        logger.warning(
            "Stripe dispute %s opened for payment intent %s",
            data_object.get("id"),
            data_object.get("payment_intent"),
        )
        return "dispute_created"

    logger.info("Unhandled Stripe event type: %s", event_type)
    return "unhandled"
