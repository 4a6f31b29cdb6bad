from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, Optional, Union

from payments.exceptions import UnsupportedPaymentMethod
from payments.models import Payment


@dataclass
class CustomerInfo:
    email: str
    name: str
    phone: str | None = None


@dataclass
class CardDetails:
    card_token: str | None = None
    return_url: str | None = None

    method = Payment.CARD


@dataclass
class MobileMoneyDetails:
    phone_number: str = ""

    method = Payment.MOBILE_MONEY


@dataclass
class BankTransferDetails:
    method = Payment.BANK_TRANSFER


@dataclass
class PaypalDetails:
    method = Payment.PAYPAL


PaymentDetails = Union[CardDetails, MobileMoneyDetails, BankTransferDetails, PaypalDetails]


@dataclass
class PaymentRequest:
    booking_id: Any
    amount: Decimal
    currency: str
    details: PaymentDetails
    customer: CustomerInfo
    description: str = ""
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def method(self) -> str:
        return self.details.method

    @property
    def phone_number(self) -> str:
        return getattr(self.details, "phone_number", "") or ""


@dataclass
class PaymentResponse:
    success: bool
    status: str
    message: str
    payment_id: Optional[int] = None
    transaction_id: Optional[str] = None
    reference: Optional[str] = None
    client_secret: Optional[str] = None
    redirect_url: Optional[str] = None
    error: Optional[str] = None
    # Logged and persisted, never rendered to clients.
    provider_response: Optional[dict] = None

    @classmethod
    def failure(cls, message: str, error: str | None = None, **kwargs) -> "PaymentResponse":
        return cls(success=False, status=Payment.FAILED, message=message, error=error, **kwargs)

    def to_dict(self) -> dict:
        data = {
            "success": self.success,
            "status": self.status,
            "message": self.message,
            "paymentId": self.payment_id,
            "transactionId": self.transaction_id,
            "paymentReference": self.reference,
            "clientSecret": self.client_secret,
            "redirectUrl": self.redirect_url,
            "error": self.error,
        }
        return {key: value for key, value in data.items() if value is not None}


@dataclass
class ProviderResult:
    """Normalized outcome of a single call to a mobile money network."""

    success: bool
    status: str
    message: str
    transaction_id: str | None = None
    reference: str | None = None
    provider_response: dict = field(default_factory=dict)


@dataclass
class PaymentRecordResult:
    success: bool
    payment: Payment | None = None
    error: str | None = None


@dataclass
class RefundResult:
    success: bool
    message: str = ""
    refund_id: str | None = None
    amount: int | None = None
    status: str | None = None
    error: str | None = None

    def to_dict(self) -> dict:
        data = {
            "success": self.success,
            "message": self.message,
            "refundId": self.refund_id,
            "amount": self.amount,
            "status": self.status,
            "error": self.error,
        }
        return {key: value for key, value in data.items() if value not in (None, "")}


_DETAILS_BY_METHOD = {
    Payment.CARD: lambda details: CardDetails(
        card_token=details.get("card_token") or None,
        return_url=details.get("return_url") or None,
    ),
    Payment.MOBILE_MONEY: lambda details: MobileMoneyDetails(phone_number=details.get("phone_number") or ""),
    Payment.BANK_TRANSFER: lambda details: BankTransferDetails(),
    Payment.PAYPAL: lambda details: PaypalDetails(),
}


def build_payment_details(method: str, payment_details: dict | None = None) -> PaymentDetails:
    try:
        factory = _DETAILS_BY_METHOD[method]
    except KeyError:
        raise UnsupportedPaymentMethod(f"Unsupported payment method: {method}") from None
    return factory(payment_details or {})
