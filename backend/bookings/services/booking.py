"""
Booking lifecycle: guest upsert, booking row, payment dispatch.

The steps run strictly in order because each needs the id produced by the one
before. The guest and booking rows are written in one transaction; the payment
is dispatched only after that commits so no transaction stays open across a
provider call.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, Optional

from django.db import transaction

from bookings.models import Booking
from bookings.services.emails import send_booking_confirmation_email
from bookings.services.guests import upsert_guest
from bookings.services.references import unique_booking_reference
from payments.models import Payment
from payments.services.processing import PaymentService
from payments.services.types import (
    CustomerInfo,
    PaymentDetails,
    PaymentRequest,
    PaymentResponse,
    build_payment_details,
)

logger = logging.getLogger(__name__)


@dataclass
class BookingRequest:
    service_type: str
    guest: Dict[str, Any]
    total_amount: Decimal
    currency: str
    payment_method: str
    service_fields: Dict[str, Any] = field(default_factory=dict)
    payment_details: Dict[str, Any] = field(default_factory=dict)
    special_requests: str = ""


@dataclass
class BookingResponse:
    success: bool
    message: str
    booking_id: Optional[int] = None
    booking_reference: Optional[str] = None
    payment_status: Optional[str] = None
    payment: Optional[PaymentResponse] = None
    error: Optional[str] = None

    def to_dict(self) -> dict:
        data = {
            "success": self.success,
            "message": self.message,
            "bookingId": self.booking_id,
            "bookingReference": self.booking_reference,
            "paymentStatus": self.payment_status,
            "payment": self.payment.to_dict() if self.payment else None,
            "error": self.error,
        }
        return {key: value for key, value in data.items() if value is not None}


class BookingService:
    def __init__(self, payment_service: PaymentService):
        self.payment_service = payment_service

    def create_booking(self, request: BookingRequest) -> BookingResponse:
        try:
            details = build_payment_details(request.payment_method, request.payment_details)

            with transaction.atomic():
                guest = upsert_guest(request.guest)
                booking = Booking.objects.create(
                    booking_reference=unique_booking_reference(),
                    guest=guest,
                    service_type=request.service_type,
                    status=Booking.PENDING,
                    payment_status=Booking.PAYMENT_PENDING,
                    total_amount=request.total_amount,
                    currency=request.currency.upper(),
                    special_requests=request.special_requests or "",
                    **request.service_fields,
                )

            payment_result = self._dispatch_payment(booking, details)
        except Exception as exc:
            logger.exception("Booking creation error")
            return BookingResponse(
                success=False,
                message="Failed to create booking. Please try again.",
                error=str(exc),
            )

        self._send_confirmation(booking, payment_result)
        return BookingResponse(
            success=True,
            message=f"Booking created successfully! Reference: {booking.booking_reference}. {payment_result.message}",
            booking_id=booking.pk,
            booking_reference=booking.booking_reference,
            payment_status=payment_result.status,
            payment=payment_result,
        )

    def retry_payment(self, booking: Booking, payment_method: str, payment_details: dict | None = None) -> BookingResponse:
        """Start a new payment attempt for an unpaid booking; earlier attempts are left as they are."""

        if booking.payment_status == Booking.PAYMENT_PAID or booking.status == Booking.CANCELLED:
            return BookingResponse(
                success=False,
                message="This booking does not accept new payments.",
                booking_id=booking.pk,
                booking_reference=booking.booking_reference,
                error="Booking is not payable",
            )
        try:
            details = build_payment_details(payment_method, payment_details)
            payment_result = self._dispatch_payment(booking, details)
        except Exception as exc:
            logger.exception("Payment retry failed for booking %s", booking.booking_reference)
            return BookingResponse(
                success=False,
                message="Payment could not be started. Please try again.",
                booking_id=booking.pk,
                booking_reference=booking.booking_reference,
                error=str(exc),
            )

        return BookingResponse(
            success=payment_result.success,
            message=payment_result.message,
            booking_id=booking.pk,
            booking_reference=booking.booking_reference,
            payment_status=payment_result.status,
            payment=payment_result,
        )

    def _dispatch_payment(self, booking: Booking, details: PaymentDetails) -> PaymentResponse:
        guest = booking.guest
        payment_result = self.payment_service.process_payment(
            PaymentRequest(
                booking_id=booking.pk,
                amount=booking.total_amount,
                currency=booking.currency,
                details=details,
                customer=CustomerInfo(
                    email=guest.email,
                    name=guest.full_name or guest.email,
                    phone=guest.phone or None,
                ),
                description=f"Payment for booking {booking.booking_reference}",
                metadata={
                    "booking_reference": booking.booking_reference,
                    "service_type": booking.service_type,
                },
            )
        )

        # Only instant confirmations settle here; everything else waits for
        # the webhook or a manual status update.
        if payment_result.success and payment_result.status == Payment.COMPLETED:
            booking.payment_status = Booking.PAYMENT_PAID
            booking.status = Booking.CONFIRMED
            booking.save(update_fields=["payment_status", "status", "updated_at"])
        return payment_result

    def _send_confirmation(self, booking: Booking, payment_result: PaymentResponse):
        try:
            send_booking_confirmation_email(booking=booking, payment_message=payment_result.message)
        except Exception:
            logger.exception("Could not send confirmation email for booking %s", booking.booking_reference)


def get_booking(booking_reference: str) -> Booking | None:
    return (
        Booking.objects.select_related("guest")
        .prefetch_related("payments")
        .filter(booking_reference=booking_reference)
        .first()
    )
