import stripe
from django.apps import apps

from payments.services.stripe_gateway import StripeGateway, build_stripe_gateway


def test_gateway_leaves_sdk_settings_alone(monkeypatch):
    monkeypatch.setattr(stripe, "max_network_retries", 7)

    StripeGateway("sk_test_123")
    StripeGateway(None, use_stub=True)

    assert stripe.max_network_retries == 7


def test_app_ready_applies_retry_setting(monkeypatch, settings):
    monkeypatch.setattr(stripe, "max_network_retries", 0)
    settings.STRIPE_MAX_NETWORK_RETRIES = 4

    apps.get_app_config("payments").ready()

    assert stripe.max_network_retries == 4


def test_no_gateway_without_key_or_stub(settings):
    settings.STRIPE_SECRET_KEY = ""
    settings.STRIPE_USE_STUB = False

    assert build_stripe_gateway() is None

    settings.STRIPE_USE_STUB = True
    assert build_stripe_gateway().use_stub is True
