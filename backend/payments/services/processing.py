"""
Unified payment dispatch.

`PaymentService` takes a payment request for a booking, hands it to the
matching provider (Stripe for cards, MTN/Airtel for mobile money, nothing for
bank transfers), records a `Payment` row and answers with a `PaymentResponse`
whatever the provider. Its public methods never raise: failures come back as
structured results so the HTTP layer only has to translate them.

Completion is never decided here for cards; the Stripe webhook (or a manual
status update for bank transfers) drives `update_payment_status`.
"""

from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation

import stripe
from django.conf import settings
from django.db import transaction
from django.utils import timezone

from bookings.models import Booking
from payments.models import Payment
from payments.services import phone
from payments.services.currency import CurrencyConverter, StaticRateConverter, to_minor_units
from payments.services.mobile_money import build_airtel_client, build_mtn_client, generate_reference
from payments.services.stripe_gateway import build_stripe_gateway
from payments.services.types import (
    BankTransferDetails,
    CardDetails,
    MobileMoneyDetails,
    PaymentRecordResult,
    PaymentRequest,
    PaymentResponse,
    PaypalDetails,
    RefundResult,
)

logger = logging.getLogger(__name__)

REFERENCE_ATTEMPTS = 5
STRIPE_REFUND_REASONS = {"duplicate", "fraudulent", "requested_by_customer"}
NETWORK_BY_CARRIER = {phone.MTN: Payment.NETWORK_MTN, phone.AIRTEL: Payment.NETWORK_AIRTEL}


class PaymentService:
    def __init__(
        self,
        *,
        stripe_gateway=None,
        mtn_client=None,
        airtel_client=None,
        converter: CurrencyConverter | None = None,
        local_currency: str = "UGX",
        settlement_currency: str = "USD",
    ):
        self.stripe_gateway = stripe_gateway
        self.mobile_money_clients = {
            Payment.NETWORK_MTN: mtn_client,
            Payment.NETWORK_AIRTEL: airtel_client,
        }
        self.converter = converter or StaticRateConverter()
        self.local_currency = local_currency.upper()
        self.settlement_currency = settlement_currency.upper()
        self._handlers = {
            CardDetails: self._process_card,
            MobileMoneyDetails: self._process_mobile_money,
            BankTransferDetails: self._process_bank_transfer,
            PaypalDetails: self._process_paypal,
        }

    def close(self):
        for client in self.mobile_money_clients.values():
            if client is not None:
                client.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    # -- dispatch -----------------------------------------------------------

    def process_payment(self, request: PaymentRequest) -> PaymentResponse:
        try:
            if not request.booking_id or not _is_positive(request.amount):
                return PaymentResponse.failure(
                    "Invalid payment request",
                    error="Missing required fields or invalid amount",
                )

            booking = _get_booking(request.booking_id)
            if booking is None:
                return PaymentResponse.failure("Invalid payment request", error="Booking not found")

            handler = self._handlers.get(type(request.details))
            if handler is None:
                return PaymentResponse.failure("Unsupported payment method", error="Invalid payment method")
            return handler(request, booking)
        except Exception as exc:
            logger.exception("Payment processing error for booking %s", request.booking_id)
            return PaymentResponse.failure("Payment processing failed", error=str(exc))

    def _process_card(self, request: PaymentRequest, booking: Booking) -> PaymentResponse:
        if self.stripe_gateway is None:
            return PaymentResponse.failure("Card payment service not available", error="Stripe not configured")

        amount_minor, charge_currency = self._charge_amount(request.amount, request.currency)
        try:
            intent = self.stripe_gateway.create_payment_intent(
                amount=amount_minor,
                currency=charge_currency,
                description=_description(request, booking),
                customer_email=request.customer.email,
                customer_name=request.customer.name,
                booking_reference=booking.booking_reference,
                metadata=request.metadata,
            )
        except stripe.StripeError as exc:
            logger.warning("Stripe payment intent creation failed for %s: %s", booking.booking_reference, exc)
            message = getattr(exc, "user_message", None) or "Card payment setup failed"
            return PaymentResponse.failure(message, error=str(exc))

        payment = self._record_payment(
            request,
            booking,
            status=Payment.PENDING,
            transaction_id=intent.id,
            metadata={"charged_amount": amount_minor, "charged_currency": charge_currency},
        )
        return PaymentResponse(
            success=True,
            status="requires_action",
            message="Complete payment on the secure form",
            payment_id=payment.id,
            transaction_id=intent.id,
            client_secret=intent.client_secret,
        )

    def _process_mobile_money(self, request: PaymentRequest, booking: Booking) -> PaymentResponse:
        phone_number = request.phone_number
        if not phone_number:
            return PaymentResponse.failure(
                "Phone number required for mobile money payment",
                error="Missing phone number",
            )

        network = NETWORK_BY_CARRIER.get(phone.classify(phone_number))
        if network is None:
            return PaymentResponse.failure(
                "Unsupported phone number. Please use MTN or Airtel number.",
                error="Unsupported phone number",
            )

        client = self.mobile_money_clients.get(network)
        if client is None:
            return PaymentResponse.failure(
                "Mobile money service not available",
                error="Mobile money not configured",
            )

        reference = _unique_payment_reference()
        result = client.request_payment(
            amount=Decimal(request.amount),
            currency=request.currency.upper(),
            phone_number=phone_number,
            reference=reference,
            description=_description(request, booking),
        )
        if not result.success:
            logger.warning("Mobile money payment %s rejected: %s", reference, result.message)

        payment = self._record_payment(
            request,
            booking,
            status=result.status,
            transaction_id=result.transaction_id or "",
            reference=reference,
            network=network,
            failure_reason="" if result.success else result.message,
            metadata={"provider_response": result.provider_response},
        )
        return PaymentResponse(
            success=result.success,
            status=result.status,
            message=result.message,
            payment_id=payment.id,
            transaction_id=result.transaction_id,
            reference=reference,
            error=None if result.success else result.message,
            provider_response=result.provider_response,
        )

    def _process_bank_transfer(self, request: PaymentRequest, booking: Booking) -> PaymentResponse:
        payment = self._record_payment(request, booking, status=Payment.PENDING)
        return PaymentResponse(
            success=True,
            status=Payment.PENDING,
            message="Bank transfer details have been sent to your email",
            payment_id=payment.id,
            redirect_url=f"/payment/bank-details/{payment.id}",
        )

    def _process_paypal(self, request: PaymentRequest, booking: Booking) -> PaymentResponse:
        return PaymentResponse.failure("PayPal payment not yet implemented", error="Not implemented")

    # -- helpers ------------------------------------------------------------

    def _charge_amount(self, amount: Decimal, currency: str) -> tuple[int, str]:
        """Amount in Stripe minor units, settling local currency in USD."""
        currency = currency.upper()
        amount = Decimal(amount)
        if currency == self.local_currency:
            amount = self.converter.convert(amount, currency, self.settlement_currency)
            currency = self.settlement_currency
        return to_minor_units(amount, currency), currency

    def _record_payment(
        self,
        request: PaymentRequest,
        booking: Booking,
        *,
        status: str,
        transaction_id: str = "",
        reference: str | None = None,
        network: str = "",
        failure_reason: str = "",
        metadata: dict | None = None,
    ) -> Payment:
        return Payment.objects.create(
            booking=booking,
            method=request.method,
            provider=Payment.PROVIDER_BY_METHOD[request.method],
            network=network,
            transaction_id=transaction_id,
            reference_number=reference,
            amount=Decimal(request.amount),
            currency=request.currency.upper(),
            status=status,
            phone_number=request.phone_number,
            failure_reason=failure_reason,
            metadata={**(request.metadata or {}), **(metadata or {})},
        )

    # -- reconciliation -----------------------------------------------------

    def get_payment_status(self, payment_id) -> PaymentRecordResult:
        payment = _get_payment(payment_id)
        if payment is None:
            return PaymentRecordResult(success=False, error="Payment not found")
        return PaymentRecordResult(success=True, payment=payment)

    def update_payment_status(
        self,
        payment_id,
        status: str,
        transaction_id: str | None = None,
        failure_reason: str | None = None,
    ) -> PaymentRecordResult:
        """
        Overwrite a payment's status and cascade completion to its booking.

        Only `completed` touches the booking (`confirmed` / `paid`). Payments in
        a terminal state accept the same status again, or `completed` to
        `refunded`; anything else is rejected without writing.
        """

        if status not in dict(Payment.STATUSES):
            return PaymentRecordResult(success=False, error=f"Unknown payment status: {status}")

        try:
            with transaction.atomic():
                try:
                    payment = Payment.objects.select_for_update().get(pk=payment_id)
                except (Payment.DoesNotExist, ValueError, TypeError):
                    return PaymentRecordResult(success=False, error="Payment not found")

                if not payment.can_transition_to(status):
                    logger.warning(
                        "Rejected payment %s status change %s -> %s", payment.pk, payment.status, status
                    )
                    return PaymentRecordResult(
                        success=False,
                        payment=payment,
                        error=f"Cannot change payment status from {payment.status} to {status}",
                    )

                payment.status = status
                if transaction_id:
                    payment.transaction_id = transaction_id
                if failure_reason is not None:
                    payment.failure_reason = failure_reason
                if status == Payment.COMPLETED and payment.processed_at is None:
                    payment.processed_at = timezone.now()
                payment.save(
                    update_fields=["status", "transaction_id", "failure_reason", "processed_at", "updated_at"]
                )

                if status == Payment.COMPLETED:
                    booking = Booking.objects.select_for_update().get(pk=payment.booking_id)
                    booking.payment_status = Booking.PAYMENT_PAID
                    booking.status = Booking.CONFIRMED
                    booking.save(update_fields=["payment_status", "status", "updated_at"])
        except Exception as exc:
            logger.exception("Failed to update payment %s to %s", payment_id, status)
            return PaymentRecordResult(success=False, error=str(exc))

        logger.info("Payment %s is now %s", payment.pk, status)
        return PaymentRecordResult(success=True, payment=payment)

    def check_mobile_money_status(self, payment_id) -> PaymentResponse:
        payment = _get_payment(payment_id)
        if payment is None:
            return PaymentResponse.failure("Payment not found", error="Payment not found")
        if payment.method != Payment.MOBILE_MONEY:
            return PaymentResponse.failure(
                "Status checks are only available for mobile money payments",
                error="not supported",
                payment_id=payment.id,
            )
        if payment.is_terminal:
            return PaymentResponse(
                success=payment.status == Payment.COMPLETED,
                status=payment.status,
                message=f"Payment {payment.status}",
                payment_id=payment.id,
                transaction_id=payment.transaction_id or None,
            )
        if payment.network == Payment.NETWORK_AIRTEL:
            # Airtel reports outcomes through its callback only.
            return PaymentResponse(
                success=False,
                status=Payment.PENDING,
                message="Status check pending for Airtel Money",
                payment_id=payment.id,
                transaction_id=payment.transaction_id or None,
            )

        client = self.mobile_money_clients.get(Payment.NETWORK_MTN)
        if client is None:
            return PaymentResponse.failure(
                "Mobile money service not available",
                error="Mobile money not configured",
                payment_id=payment.id,
            )

        try:
            result = client.check_status(payment.reference_number or payment.transaction_id)
            if result.status != Payment.PENDING:
                failure_reason = result.message if result.status == Payment.FAILED else None
                self.update_payment_status(payment.id, result.status, failure_reason=failure_reason)
        except Exception as exc:
            logger.exception("Mobile money status check failed for payment %s", payment.id)
            return PaymentResponse.failure("Status check failed", error=str(exc), payment_id=payment.id)

        return PaymentResponse(
            success=result.success,
            status=result.status,
            message=result.message,
            payment_id=payment.id,
            transaction_id=result.transaction_id,
            provider_response=result.provider_response,
        )

    def process_refund(self, payment_id, amount=None, reason: str | None = None) -> RefundResult:
        """
        Refund a card payment through Stripe.

        Mobile money and bank transfers have no refund API wired in and are
        refunded by hand; they get a "not supported" result. Partial refunds
        accumulate in `metadata["refunds"]`; the payment becomes `refunded`
        once they add up to its amount, and nothing beyond that is accepted.
        """

        payment = _get_payment(payment_id)
        if payment is None:
            return RefundResult(success=False, message="Payment not found", error="not found")

        if payment.provider != Payment.PROVIDER_STRIPE or not payment.transaction_id or self.stripe_gateway is None:
            return RefundResult(
                success=False,
                message="Refund not supported for this payment method",
                error="not supported",
            )
        if payment.status != Payment.COMPLETED:
            return RefundResult(
                success=False,
                message="Only completed payments can be refunded",
                error="invalid status",
            )

        remaining = payment.amount - _refunded_total(payment)
        if amount is not None and not _is_positive(amount):
            return RefundResult(success=False, message="Invalid refund amount", error="invalid amount")
        refund_amount = remaining if amount is None else Decimal(amount)
        if refund_amount <= 0 or refund_amount > remaining:
            return RefundResult(success=False, message="Invalid refund amount", error="invalid amount")

        # Stripe refunds whatever is left on the intent when no amount is given.
        amount_minor = None
        if refund_amount != payment.amount:
            amount_minor, _ = self._charge_amount(refund_amount, payment.currency)

        try:
            refund = self.stripe_gateway.create_refund(
                payment.transaction_id,
                amount_minor,
                reason if reason in STRIPE_REFUND_REASONS else None,
            )
        except stripe.StripeError as exc:
            logger.warning("Stripe refund failed for payment %s: %s", payment.pk, exc)
            return RefundResult(success=False, message="Refund failed", error=str(exc))

        try:
            with transaction.atomic():
                locked = Payment.objects.select_for_update().get(pk=payment.pk)
                refunds = list(locked.metadata.get("refunds", []))
                refunds.append({"id": refund.id, "amount": str(refund_amount), "reason": reason or ""})
                locked.metadata = {**locked.metadata, "refunds": refunds}
                full_refund = _refunded_total(locked) >= locked.amount
                update_fields = ["metadata", "updated_at"]
                if full_refund:
                    locked.status = Payment.REFUNDED
                    update_fields.append("status")
                locked.save(update_fields=update_fields)

                if full_refund:
                    Booking.objects.filter(pk=locked.booking_id).update(
                        payment_status=Booking.PAYMENT_REFUNDED,
                        updated_at=timezone.now(),
                    )
        except Exception as exc:
            # The money has moved at this point; surface the bookkeeping failure.
            logger.exception("Refund %s succeeded but could not be recorded", refund.id)
            return RefundResult(
                success=True,
                message="Refund processed but not recorded",
                refund_id=refund.id,
                amount=refund.amount,
                status=refund.status,
                error=str(exc),
            )

        return RefundResult(
            success=True,
            message="Refund processed",
            refund_id=refund.id,
            amount=refund.amount,
            status=refund.status,
        )


def _is_positive(amount) -> bool:
    try:
        return amount is not None and Decimal(amount) > 0
    except (InvalidOperation, TypeError, ValueError):
        return False


def _refunded_total(payment: Payment) -> Decimal:
    return sum((Decimal(entry["amount"]) for entry in payment.metadata.get("refunds", [])), Decimal("0"))


def _get_booking(booking_id) -> Booking | None:
    try:
        return Booking.objects.get(pk=booking_id)
    except (Booking.DoesNotExist, ValueError, TypeError):
        return None


def _get_payment(payment_id) -> Payment | None:
    try:
        return Payment.objects.select_related("booking").get(pk=payment_id)
    except (Payment.DoesNotExist, ValueError, TypeError):
        return None


def _description(request: PaymentRequest, booking: Booking) -> str:
    return request.description or f"Payment for booking {booking.booking_reference}"


def _unique_payment_reference() -> str:
    reference = generate_reference()
    for _ in range(REFERENCE_ATTEMPTS - 1):
        if not Payment.objects.filter(reference_number=reference).exists():
            break
        reference = generate_reference()
    return reference


def build_payment_service() -> PaymentService:
    """Wire a PaymentService from settings; called once per request."""
    return PaymentService(
        stripe_gateway=build_stripe_gateway(),
        mtn_client=build_mtn_client(),
        airtel_client=build_airtel_client(),
        local_currency=getattr(settings, "LOCAL_CURRENCY", "UGX"),
    )
