import json

import pytest
from django.contrib.auth import get_user_model
from django.urls import reverse
from rest_framework.test import APIClient

from bookings.models import Booking
from payments import api as payments_api
from payments.models import Payment


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def staff_client(db):
    user = get_user_model().objects.create_user(username="frontdesk", password="pass", is_staff=True)
    client = APIClient()
    client.force_authenticate(user)
    return client


@pytest.fixture
def card_payment(booking):
    return Payment.objects.create(
        booking=booking,
        method=Payment.CARD,
        provider=Payment.PROVIDER_STRIPE,
        transaction_id="pi_test_abc",
        amount=booking.total_amount,
        currency=booking.currency,
    )


@pytest.fixture
def stripe_settings(settings):
    settings.STRIPE_SECRET_KEY = ""
    settings.STRIPE_USE_STUB = True
    settings.STRIPE_WEBHOOK_SECRET = "whsec_test"
    return settings


def _post_webhook(api_client, event_type="payment_intent.succeeded"):
    return api_client.post(
        reverse("stripe-webhook"),
        data=json.dumps({"type": event_type}),
        content_type="application/json",
        HTTP_STRIPE_SIGNATURE="t=1,v1=bad",
    )


@pytest.mark.django_db
def test_webhook_rejects_invalid_signature(api_client, stripe_settings, card_payment):
    response = _post_webhook(api_client)

    assert response.status_code == 400
    card_payment.refresh_from_db()
    assert card_payment.status == Payment.PENDING
    card_payment.booking.refresh_from_db()
    assert card_payment.booking.status == Booking.PENDING


@pytest.mark.django_db
def test_webhook_rejects_malformed_payload(api_client, stripe_settings, monkeypatch):
    def bad_payload(payload, sig_header, secret):
        raise ValueError("Invalid payload")

    monkeypatch.setattr(payments_api, "construct_webhook_event", bad_payload)

    assert _post_webhook(api_client).status_code == 400


@pytest.mark.django_db
def test_webhook_requires_secret(api_client, stripe_settings):
    stripe_settings.STRIPE_WEBHOOK_SECRET = ""

    assert _post_webhook(api_client).status_code == 500


@pytest.mark.django_db
def test_succeeded_event_completes_payment_and_confirms_booking(api_client, stripe_settings, card_payment, monkeypatch):
    captured = {}

    def fake_construct(payload, sig_header, secret):
        captured["secret"] = secret
        return {"type": "payment_intent.succeeded", "data": {"object": {"id": "pi_test_abc"}}}

    monkeypatch.setattr(payments_api, "construct_webhook_event", fake_construct)

    response = _post_webhook(api_client)

    assert response.status_code == 200
    assert response.json() == {"received": True, "action": "payment_completed"}
    assert captured["secret"] == "whsec_test"
    card_payment.refresh_from_db()
    assert card_payment.status == Payment.COMPLETED
    assert card_payment.processed_at is not None
    booking = card_payment.booking
    booking.refresh_from_db()
    assert booking.status == Booking.CONFIRMED
    assert booking.payment_status == Booking.PAYMENT_PAID


@pytest.mark.django_db
def test_failed_event_records_reason(api_client, stripe_settings, card_payment, monkeypatch):
    event = {
        "type": "payment_intent.payment_failed",
        "data": {"object": {"id": "pi_test_abc", "last_payment_error": {"message": "Your card was declined."}}},
    }
    monkeypatch.setattr(payments_api, "construct_webhook_event", lambda *args: event)

    response = _post_webhook(api_client)

    assert response.json()["action"] == "payment_failed"
    card_payment.refresh_from_db()
    assert card_payment.status == Payment.FAILED
    assert card_payment.failure_reason == "Your card was declined."
    card_payment.booking.refresh_from_db()
    assert card_payment.booking.payment_status == Booking.PAYMENT_PENDING


@pytest.mark.django_db
def test_event_for_unknown_intent_is_acknowledged(api_client, stripe_settings, monkeypatch):
    event = {"type": "payment_intent.succeeded", "data": {"object": {"id": "pi_unknown"}}}
    monkeypatch.setattr(payments_api, "construct_webhook_event", lambda *args: event)

    response = _post_webhook(api_client)

    assert response.status_code == 200
    assert response.json()["action"] == "unmatched"


@pytest.mark.django_db
def test_staff_confirms_bank_transfer(staff_client, stripe_settings, booking):
    payment = Payment.objects.create(
        booking=booking,
        method=Payment.BANK_TRANSFER,
        provider=Payment.PROVIDER_BANK,
        amount=booking.total_amount,
        currency=booking.currency,
    )
    url = reverse("payment-status-update", args=[payment.id])

    response = staff_client.post(url, {"status": "completed", "transaction_id": "BANK-778"}, format="json")

    assert response.status_code == 200
    assert response.data["status"] == Payment.COMPLETED
    assert response.data["transaction_id"] == "BANK-778"
    booking.refresh_from_db()
    assert booking.status == Booking.CONFIRMED

    rollback = staff_client.post(url, {"status": "pending"}, format="json")
    assert rollback.status_code == 409


@pytest.mark.django_db
def test_status_update_requires_staff(api_client, stripe_settings, card_payment):
    response = api_client.post(
        reverse("payment-status-update", args=[card_payment.id]),
        {"status": "completed"},
        format="json",
    )

    assert response.status_code in (401, 403)
    card_payment.refresh_from_db()
    assert card_payment.status == Payment.PENDING


@pytest.mark.django_db
def test_staff_payment_detail(staff_client, stripe_settings, card_payment):
    response = staff_client.get(reverse("payment-detail", args=[card_payment.id]))

    assert response.status_code == 200
    assert response.data["booking_reference"] == card_payment.booking.booking_reference
    assert "metadata" not in response.data

    missing = staff_client.get(reverse("payment-detail", args=[card_payment.id + 100]))
    assert missing.status_code == 404


@pytest.mark.django_db
def test_staff_refund(staff_client, stripe_settings, card_payment):
    url = reverse("payment-refund", args=[card_payment.id])

    pending = staff_client.post(url, {}, format="json")
    assert pending.status_code == 400
    assert pending.data["error"] == "invalid status"

    card_payment.status = Payment.COMPLETED
    card_payment.save(update_fields=["status"])
    response = staff_client.post(url, {"reason": "duplicate"}, format="json")

    assert response.status_code == 200
    assert response.data["success"] is True
    card_payment.refresh_from_db()
    assert card_payment.status == Payment.REFUNDED


@pytest.fixture
def airtel_payment(booking):
    return Payment.objects.create(
        booking=booking,
        method=Payment.MOBILE_MONEY,
        provider=Payment.PROVIDER_MOBILE_MONEY,
        network=Payment.NETWORK_AIRTEL,
        phone_number="0701234567",
        reference_number="ARM-1-KKKKKK",
        transaction_id="AIRTEL-TXN-1",
        amount=booking.total_amount,
        currency=booking.currency,
    )


@pytest.mark.django_db
def test_status_check_is_addressed_by_references(api_client, stripe_settings, booking, airtel_payment):
    url = reverse("payment-status-check", args=[booking.booking_reference, airtel_payment.reference_number])

    response = api_client.post(url)

    assert response.status_code == 200
    assert response.data["status"] == Payment.PENDING
    assert "transactionId" not in response.data
    assert "paymentId" not in response.data


@pytest.mark.django_db
def test_status_check_requires_matching_booking(api_client, stripe_settings, booking, airtel_payment):
    other = Booking.objects.create(
        booking_reference="ARM-654321-ZZ99",
        guest=booking.guest,
        service_type=Booking.ROOM,
        total_amount=booking.total_amount,
        currency=booking.currency,
    )

    wrong_booking = api_client.post(
        reverse("payment-status-check", args=[other.booking_reference, airtel_payment.reference_number])
    )
    unknown_reference = api_client.post(
        reverse("payment-status-check", args=[booking.booking_reference, "ARM-1-NOPE00"])
    )

    assert wrong_booking.status_code == 404
    assert unknown_reference.status_code == 404


@pytest.mark.django_db
def test_card_payment_has_no_public_status_check(api_client, stripe_settings, booking, card_payment):
    response = api_client.post(reverse("payment-status-check", args=[booking.booking_reference, "None"]))

    assert response.status_code == 404
