import stripe
from django.apps import AppConfig
from django.conf import settings


class PaymentsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "payments"

    def ready(self):
        # Process-wide SDK setting, applied once at startup.
        stripe.max_network_retries = settings.STRIPE_MAX_NETWORK_RETRIES
