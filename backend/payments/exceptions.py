class PaymentError(Exception):
    """Base class for errors raised inside the payments app."""


class UnsupportedPaymentMethod(PaymentError):
    pass


class ProviderError(PaymentError):
    """A payment provider could not be reached or rejected the request outright."""

    def __init__(self, message: str, provider_response: dict | None = None):
        super().__init__(message)
        self.provider_response = provider_response or {}
