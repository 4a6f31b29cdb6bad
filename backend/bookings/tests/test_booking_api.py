import pytest
from django.urls import reverse
from rest_framework.test import APIClient

from bookings.models import Booking, Guest
from payments.models import Payment


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture(autouse=True)
def payment_settings(settings):
    settings.STRIPE_SECRET_KEY = ""
    settings.STRIPE_USE_STUB = True
    settings.MTN_API_KEY = ""
    settings.AIRTEL_CLIENT_ID = ""
    settings.LOCAL_CURRENCY = "UGX"
    return settings


def _payload(**overrides):
    payload = {
        "service_type": "room",
        "guest": {"email": "amos@example.com", "first_name": "Amos", "last_name": "Okello"},
        "total_amount": "450000",
        "payment_method": "bank_transfer",
        "room_id": "204",
        "check_in_date": "2026-12-20",
        "check_out_date": "2026-12-23",
        "adults": 2,
    }
    payload.update(overrides)
    return payload


@pytest.mark.django_db
def test_room_booking_with_bank_transfer(api_client):
    response = api_client.post(reverse("booking-create"), _payload(), format="json")

    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["paymentStatus"] == "pending"
    assert body["payment"]["redirectUrl"].startswith("/payment/bank-details/")
    booking = Booking.objects.get(booking_reference=body["bookingReference"])
    assert booking.currency == "UGX"
    assert booking.adults == 2


@pytest.mark.django_db
def test_card_booking_returns_client_secret(api_client):
    response = api_client.post(reverse("booking-create"), _payload(payment_method="card"), format="json")

    assert response.status_code == 201
    payment = response.json()["payment"]
    assert payment["status"] == "requires_action"
    assert payment["clientSecret"].startswith("pi_test_")
    assert Payment.objects.get(pk=payment["paymentId"]).metadata["charged_currency"] == "USD"


@pytest.mark.django_db
def test_event_booking(api_client):
    payload = _payload(
        service_type="event",
        event_space_id="hall-a",
        event_date="2026-11-30",
        event_start_time="09:00",
        event_end_time="17:00",
        attendees=80,
    )

    response = api_client.post(reverse("booking-create"), payload, format="json")

    assert response.status_code == 201
    booking = Booking.objects.get(pk=response.json()["bookingId"])
    assert booking.event_space_id == "hall-a"
    assert booking.attendees == 80


@pytest.mark.django_db
def test_missing_service_fields_are_rejected(api_client):
    response = api_client.post(
        reverse("booking-create"),
        _payload(service_type="dining", party_size=2),
        format="json",
    )

    assert response.status_code == 400
    assert "dining_venue_id" in response.data
    assert Booking.objects.count() == 0


@pytest.mark.django_db
def test_check_out_must_follow_check_in(api_client):
    response = api_client.post(
        reverse("booking-create"),
        _payload(check_out_date="2026-12-20"),
        format="json",
    )

    assert response.status_code == 400
    assert "check_out_date" in response.data


@pytest.mark.django_db
@pytest.mark.parametrize("amount", ["0", "-5"])
def test_non_positive_amount_is_rejected(api_client, amount):
    response = api_client.post(reverse("booking-create"), _payload(total_amount=amount), format="json")

    assert response.status_code == 400
    assert Guest.objects.count() == 0


@pytest.mark.django_db
def test_unsupported_phone_is_rejected_before_booking(api_client):
    payload = _payload(payment_method="mobile_money", payment_details={"phone_number": "0711234567"})

    response = api_client.post(reverse("booking-create"), payload, format="json")

    assert response.status_code == 400
    assert "phone_number" in response.data["payment_details"]
    assert Booking.objects.count() == 0
    assert Payment.objects.count() == 0


@pytest.mark.django_db
def test_short_phone_number_is_rejected(api_client):
    payload = _payload(payment_method="mobile_money", payment_details={"phone_number": "077123"})

    response = api_client.post(reverse("booking-create"), payload, format="json")

    assert response.status_code == 400
    assert Booking.objects.count() == 0


@pytest.mark.django_db
def test_paypal_is_not_offered(api_client):
    response = api_client.post(reverse("booking-create"), _payload(payment_method="paypal"), format="json")

    assert response.status_code == 400
    assert "payment_method" in response.data


@pytest.mark.django_db
def test_booking_detail_hides_provider_data(api_client, booking):
    Payment.objects.create(
        booking=booking,
        method=Payment.MOBILE_MONEY,
        provider=Payment.PROVIDER_MOBILE_MONEY,
        amount=booking.total_amount,
        currency=booking.currency,
        metadata={"provider_response": {"msisdn": "256771234567"}},
    )

    response = api_client.get(reverse("booking-detail", args=[booking.booking_reference]))

    assert response.status_code == 200
    assert response.data["guest"]["full_name"] == "Grace Nakato"
    assert len(response.data["payments"]) == 1
    assert "metadata" not in response.data["payments"][0]
    assert "256771234567" not in response.content.decode()

    missing = api_client.get(reverse("booking-detail", args=["ARM-000000-NONE"]))
    assert missing.status_code == 404


@pytest.mark.django_db
def test_retry_payment_endpoint(api_client, booking):
    url = reverse("booking-payment", args=[booking.booking_reference])

    response = api_client.post(url, {"payment_method": "bank_transfer"}, format="json")

    assert response.status_code == 201
    assert booking.payments.count() == 1

    booking.status = Booking.CANCELLED
    booking.save()
    rejected = api_client.post(url, {"payment_method": "bank_transfer"}, format="json")
    assert rejected.status_code == 400
    assert booking.payments.count() == 1
