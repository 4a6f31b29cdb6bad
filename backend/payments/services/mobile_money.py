"""Collections through MTN MoMo and Airtel Money (Uganda)."""

from __future__ import annotations

import logging
import secrets
import string
import time
from decimal import Decimal

import httpx
from django.conf import settings

from payments.exceptions import ProviderError
from payments.models import Payment
from payments.services import phone
from payments.services.types import ProviderResult

logger = logging.getLogger(__name__)

_REFERENCE_ALPHABET = string.digits + string.ascii_uppercase

MTN_STATUS_MAP = {
    "SUCCESSFUL": Payment.COMPLETED,
    "FAILED": Payment.FAILED,
}


def generate_reference(prefix: str = "ARM") -> str:
    """Return ``<prefix>-<epoch ms>-<6 random base36 chars>``."""
    timestamp = int(time.time() * 1000)
    suffix = "".join(secrets.choice(_REFERENCE_ALPHABET) for _ in range(6))
    return f"{prefix}-{timestamp}-{suffix}"


def _format_amount(amount: Decimal) -> str:
    amount = Decimal(amount)
    if amount == amount.to_integral_value():
        return str(amount.quantize(Decimal("1")))
    return str(amount.normalize())


def _json_or_empty(response: httpx.Response) -> dict:
    try:
        data = response.json()
    except ValueError:
        return {"body": response.text}
    return data if isinstance(data, dict) else {"body": data}


class _MobileMoneyClient:
    network = ""
    label = ""

    def __init__(self, base_url: str, *, timeout: float = 20.0, http_client: httpx.Client | None = None):
        self.base_url = base_url.rstrip("/")
        self._http = http_client or httpx.Client(timeout=timeout)

    def close(self):
        self._http.close()

    def request_payment(
        self,
        *,
        amount: Decimal,
        currency: str,
        phone_number: str,
        reference: str,
        description: str,
    ) -> ProviderResult:
        try:
            return self._request_payment(
                amount=amount,
                currency=currency,
                msisdn=phone.format_msisdn(phone_number, self.network),
                reference=reference,
                description=description,
            )
        except (ProviderError, httpx.HTTPError) as exc:
            provider_response = getattr(exc, "provider_response", None) or {"error": str(exc)}
            logger.warning("%s payment request %s failed: %s", self.label, reference, exc)
            return ProviderResult(
                success=False,
                status=Payment.FAILED,
                message=f"{self.label} payment error: {exc}",
                provider_response=provider_response,
            )

    def _request_payment(self, **kwargs) -> ProviderResult:
        raise NotImplementedError


class MTNMoMoClient(_MobileMoneyClient):
    network = phone.MTN
    label = "MTN"

    def __init__(
        self,
        *,
        api_key: str,
        user_id: str,
        subscription_key: str,
        base_url: str,
        target_environment: str = "sandbox",
        timeout: float = 20.0,
        http_client: httpx.Client | None = None,
    ):
        super().__init__(base_url, timeout=timeout, http_client=http_client)
        self.api_key = api_key
        self.user_id = user_id
        self.subscription_key = subscription_key
        self.target_environment = target_environment

    def _access_token(self) -> str:
        response = self._http.post(
            f"{self.base_url}/collection/token/",
            auth=(self.user_id, self.api_key),
            headers={"Ocp-Apim-Subscription-Key": self.subscription_key},
        )
        if response.status_code >= 400:
            raise ProviderError("Failed to get MTN access token", _json_or_empty(response))
        token = _json_or_empty(response).get("access_token")
        if not token:
            raise ProviderError("MTN token response did not include an access token")
        return token

    def _headers(self, token: str) -> dict:
        return {
            "Authorization": f"Bearer {token}",
            "X-Target-Environment": self.target_environment,
            "Ocp-Apim-Subscription-Key": self.subscription_key,
        }

    def _request_payment(self, *, amount, currency, msisdn, reference, description) -> ProviderResult:
        token = self._access_token()
        payload = {
            "amount": _format_amount(amount),
            "currency": currency,
            "externalId": reference,
            "payer": {"partyIdType": "MSISDN", "partyId": msisdn},
            "payerMessage": description,
            "payeeNote": f"Payment for booking {reference}",
        }
        headers = self._headers(token)
        headers["X-Reference-Id"] = reference
        response = self._http.post(
            f"{self.base_url}/collection/v1_0/requesttopay",
            json=payload,
            headers=headers,
        )
        if response.is_success:
            return ProviderResult(
                success=True,
                status=Payment.PENDING,
                message="Payment request sent to MTN Mobile Money. Please approve on your phone.",
                transaction_id=reference,
                reference=reference,
                provider_response={"provider": "MTN", "msisdn": msisdn},
            )

        error_data = _json_or_empty(response)
        return ProviderResult(
            success=False,
            status=Payment.FAILED,
            message=f"MTN payment failed: {error_data.get('message') or 'Unknown error'}",
            reference=reference,
            provider_response=error_data,
        )

    def check_status(self, reference: str) -> ProviderResult:
        try:
            token = self._access_token()
            response = self._http.get(
                f"{self.base_url}/collection/v1_0/requesttopay/{reference}",
                headers=self._headers(token),
            )
            response.raise_for_status()
            data = response.json()
        except (ProviderError, httpx.HTTPError, ValueError) as exc:
            logger.warning("MTN status check for %s failed: %s", reference, exc)
            return ProviderResult(
                success=False,
                status=Payment.PENDING,
                message=f"Status check failed: {exc}",
                transaction_id=reference,
            )

        provider_status = str(data.get("status") or "PENDING")
        status = MTN_STATUS_MAP.get(provider_status, Payment.PENDING)
        return ProviderResult(
            success=status == Payment.COMPLETED,
            status=status,
            message=f"Payment {provider_status.lower()}",
            transaction_id=reference,
            reference=reference,
            provider_response=data,
        )


class AirtelMoneyClient(_MobileMoneyClient):
    """
    Airtel Money collections.

    `partner_id` (`AIRTEL_PARTNER_ID`) is kept for configuration parity with the
    Airtel merchant account; the collection and token calls do not send it.
    """

    network = phone.AIRTEL
    label = "Airtel"

    def __init__(
        self,
        *,
        client_id: str,
        client_secret: str,
        base_url: str,
        partner_id: str = "",
        country: str = "UG",
        timeout: float = 20.0,
        http_client: httpx.Client | None = None,
    ):
        super().__init__(base_url, timeout=timeout, http_client=http_client)
        self.client_id = client_id
        self.client_secret = client_secret
        self.partner_id = partner_id
        self.country = country

    def _access_token(self) -> str:
        response = self._http.post(
            f"{self.base_url}/auth/oauth2/token",
            json={
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "grant_type": "client_credentials",
            },
        )
        if response.status_code >= 400:
            raise ProviderError("Failed to get Airtel access token", _json_or_empty(response))
        token = _json_or_empty(response).get("access_token")
        if not token:
            raise ProviderError("Airtel token response did not include an access token")
        return token

    def _request_payment(self, *, amount, currency, msisdn, reference, description) -> ProviderResult:
        token = self._access_token()
        payload = {
            "reference": reference,
            "subscriber": {"country": self.country, "currency": currency, "msisdn": msisdn},
            "transaction": {
                "amount": float(amount),
                "country": self.country,
                "currency": currency,
                "id": reference,
            },
        }
        response = self._http.post(
            f"{self.base_url}/merchant/v1/payments/",
            json=payload,
            headers={
                "Authorization": f"Bearer {token}",
                "X-Country": self.country,
                "X-Currency": currency,
            },
        )
        data = _json_or_empty(response)
        if response.is_success and data.get("status") == "TXN_SUCCESS":
            transaction = (data.get("data") or {}).get("transaction") or {}
            return ProviderResult(
                success=True,
                status=Payment.PENDING,
                message="Payment request sent to Airtel Money. Please approve on your phone.",
                transaction_id=transaction.get("id") or reference,
                reference=reference,
                provider_response=data,
            )

        return ProviderResult(
            success=False,
            status=Payment.FAILED,
            message=f"Airtel payment failed: {data.get('message') or 'Unknown error'}",
            reference=reference,
            provider_response=data,
        )


def build_mtn_client() -> MTNMoMoClient | None:
    if not (settings.MTN_API_KEY and settings.MTN_USER_ID and settings.MTN_SUBSCRIPTION_KEY):
        return None
    return MTNMoMoClient(
        api_key=settings.MTN_API_KEY,
        user_id=settings.MTN_USER_ID,
        subscription_key=settings.MTN_SUBSCRIPTION_KEY,
        base_url=settings.MTN_BASE_URL,
        target_environment=settings.MTN_TARGET_ENVIRONMENT,
        timeout=settings.PAYMENT_PROVIDER_TIMEOUT,
    )


def build_airtel_client() -> AirtelMoneyClient | None:
    if not (settings.AIRTEL_CLIENT_ID and settings.AIRTEL_CLIENT_SECRET):
        return None
    return AirtelMoneyClient(
        client_id=settings.AIRTEL_CLIENT_ID,
        client_secret=settings.AIRTEL_CLIENT_SECRET,
        base_url=settings.AIRTEL_BASE_URL,
        partner_id=settings.AIRTEL_PARTNER_ID,
        country=settings.AIRTEL_COUNTRY,
        timeout=settings.PAYMENT_PROVIDER_TIMEOUT,
    )
