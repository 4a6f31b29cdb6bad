from datetime import date, time
from decimal import Decimal

import pytest

from bookings.models import Booking, Guest
from bookings.services.booking import BookingRequest, BookingService
from payments.models import Payment
from payments.services.mobile_money import MTNMoMoClient
from payments.services.processing import PaymentService
from payments.services.types import PaymentResponse


def _room_request(**overrides):
    fields = {
        "service_type": Booking.ROOM,
        "guest": {"email": "amos@example.com", "first_name": "Amos", "last_name": "Okello", "phone": "0771234567"},
        "total_amount": Decimal("450000"),
        "currency": "UGX",
        "payment_method": Payment.BANK_TRANSFER,
        "service_fields": {
            "room_id": "204",
            "check_in_date": date(2026, 12, 20),
            "check_out_date": date(2026, 12, 23),
            "adults": 2,
        },
    }
    fields.update(overrides)
    return BookingRequest(**fields)


class InstantPaymentService:
    """Settles every payment on the spot, like a provider with synchronous capture."""

    def __init__(self):
        self.requests = []

    def process_payment(self, request):
        self.requests.append(request)
        return PaymentResponse(success=True, status=Payment.COMPLETED, message="Paid", payment_id=1)


@pytest.mark.django_db
def test_bank_transfer_booking_stays_pending(mailoutbox):
    result = BookingService(PaymentService()).create_booking(_room_request())

    assert result.success is True
    assert result.payment_status == Payment.PENDING
    assert result.message == (
        f"Booking created successfully! Reference: {result.booking_reference}. "
        "Bank transfer details have been sent to your email"
    )
    booking = Booking.objects.get(pk=result.booking_id)
    assert booking.status == Booking.PENDING
    assert booking.payment_status == Booking.PAYMENT_PENDING
    assert booking.room_id == "204"
    assert booking.guest.email == "amos@example.com"
    assert booking.payments.get().method == Payment.BANK_TRANSFER

    assert len(mailoutbox) == 1
    assert mailoutbox[0].to == ["amos@example.com"]
    assert result.booking_reference in mailoutbox[0].subject
    assert "December 20, 2026" in mailoutbox[0].body


@pytest.mark.django_db
def test_returning_guest_is_reused(guest):
    request = _room_request(guest={"email": guest.email, "first_name": "Grace", "last_name": "Nakato-Ssali"})

    result = BookingService(PaymentService()).create_booking(request)

    assert result.success is True
    assert Guest.objects.count() == 1
    guest.refresh_from_db()
    assert guest.last_name == "Nakato-Ssali"
    assert Booking.objects.get(pk=result.booking_id).guest_id == guest.pk


@pytest.mark.django_db
def test_instant_payment_confirms_booking():
    payment_service = InstantPaymentService()

    result = BookingService(payment_service).create_booking(_room_request(payment_method=Payment.CARD))

    assert result.success is True
    booking = Booking.objects.get(pk=result.booking_id)
    assert booking.status == Booking.CONFIRMED
    assert booking.payment_status == Booking.PAYMENT_PAID
    sent = payment_service.requests[0]
    assert sent.booking_id == booking.pk
    assert sent.amount == Decimal("450000")
    assert sent.customer.name == "Amos Okello"
    assert sent.metadata["booking_reference"] == booking.booking_reference


@pytest.mark.django_db
def test_failed_payment_keeps_booking_pending(provider_api):
    provider_api.add("POST", "/collection/token/", status_code=401, payload={"message": "expired"})
    mtn = MTNMoMoClient(
        api_key="k", user_id="u", subscription_key="s", base_url="https://mtn.test", http_client=provider_api.client()
    )
    request = _room_request(payment_method=Payment.MOBILE_MONEY, payment_details={"phone_number": "0771234567"})

    result = BookingService(PaymentService(mtn_client=mtn)).create_booking(request)

    assert result.success is True
    assert result.payment.success is False
    assert result.payment_status == Payment.FAILED
    booking = Booking.objects.get(pk=result.booking_id)
    assert booking.status == Booking.PENDING
    assert booking.payment_status == Booking.PAYMENT_PENDING
    assert booking.payments.get().status == Payment.FAILED


@pytest.mark.django_db
def test_unsupported_method_creates_nothing():
    result = BookingService(PaymentService()).create_booking(_room_request(payment_method="crypto"))

    assert result.success is False
    assert result.message == "Failed to create booking. Please try again."
    assert Booking.objects.count() == 0
    assert Guest.objects.count() == 0


@pytest.mark.django_db
def test_booking_write_failure_rolls_back_guest():
    request = _room_request(service_fields={"room_id": "204", "not_a_field": True})

    result = BookingService(PaymentService()).create_booking(request)

    assert result.success is False
    assert result.error
    assert Guest.objects.count() == 0
    assert Booking.objects.count() == 0


@pytest.mark.django_db
def test_email_failure_does_not_fail_booking(monkeypatch):
    def broken_mail(**kwargs):
        raise ConnectionError("SMTP down")

    monkeypatch.setattr("bookings.services.booking.send_booking_confirmation_email", broken_mail)

    result = BookingService(PaymentService()).create_booking(_room_request())

    assert result.success is True
    assert Booking.objects.filter(pk=result.booking_id).exists()


@pytest.mark.django_db
def test_dining_booking_fields_are_stored(mailoutbox):
    request = _room_request(
        service_type=Booking.DINING,
        total_amount=Decimal("120000"),
        service_fields={
            "dining_venue_id": "terrace",
            "dining_date": date(2026, 11, 14),
            "dining_time": time(19, 30),
            "party_size": 4,
        },
    )

    result = BookingService(PaymentService()).create_booking(request)

    booking = Booking.objects.get(pk=result.booking_id)
    assert booking.party_size == 4
    assert booking.room_id == ""
    assert "Table for 4" in mailoutbox[0].body


@pytest.mark.django_db
def test_retry_adds_a_new_payment(booking):
    service = BookingService(PaymentService())

    first = service.retry_payment(booking, Payment.BANK_TRANSFER)
    second = service.retry_payment(booking, Payment.BANK_TRANSFER)

    assert first.success and second.success
    assert booking.payments.count() == 2


@pytest.mark.django_db
def test_retry_rejected_for_paid_booking(booking):
    booking.payment_status = Booking.PAYMENT_PAID
    booking.save()

    result = BookingService(PaymentService()).retry_payment(booking, Payment.BANK_TRANSFER)

    assert result.success is False
    assert result.error == "Booking is not payable"
    assert booking.payments.count() == 0
