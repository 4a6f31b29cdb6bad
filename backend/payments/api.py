import logging

import stripe
from django.conf import settings
from rest_framework import permissions, status
from rest_framework.response import Response
from rest_framework.views import APIView

from payments.models import Payment
from payments.serializers import (
    PaymentSerializer,
    PaymentStatusUpdateSerializer,
    RefundRequestSerializer,
)
from payments.services.processing import build_payment_service
from payments.services.stripe_gateway import construct_webhook_event
from payments.services.webhooks import handle_stripe_event

logger = logging.getLogger(__name__)

PRIVATE_STATUS_KEYS = {"paymentId", "transactionId"}


class PaymentDetailView(APIView):
    permission_classes = [permissions.IsAdminUser]

    def get(self, request, payment_id):
        with build_payment_service() as payment_service:
            result = payment_service.get_payment_status(payment_id)
        if not result.success:
            return Response({"detail": result.error}, status=status.HTTP_404_NOT_FOUND)
        return Response(PaymentSerializer(result.payment).data)


class PaymentStatusUpdateView(APIView):
    """Manual status change, e.g. confirming a received bank transfer."""

    permission_classes = [permissions.IsAdminUser]

    def post(self, request, payment_id):
        serializer = PaymentStatusUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        with build_payment_service() as payment_service:
            result = payment_service.update_payment_status(
                payment_id,
                data["status"],
                transaction_id=data.get("transaction_id") or None,
                failure_reason=data.get("failure_reason"),
            )
        if not result.success:
            code = status.HTTP_404_NOT_FOUND if result.payment is None else status.HTTP_409_CONFLICT
            return Response({"detail": result.error}, status=code)
        return Response(PaymentSerializer(result.payment).data)


class PaymentRefundView(APIView):
    permission_classes = [permissions.IsAdminUser]

    def post(self, request, payment_id):
        serializer = RefundRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        with build_payment_service() as payment_service:
            result = payment_service.process_refund(
                payment_id,
                amount=data.get("amount"),
                reason=data.get("reason") or None,
            )
        if result.success:
            return Response(result.to_dict())
        if result.error == "not found":
            return Response(result.to_dict(), status=status.HTTP_404_NOT_FOUND)
        return Response(result.to_dict(), status=status.HTTP_400_BAD_REQUEST)


class MobileMoneyStatusCheckView(APIView):
    """Poll the network for a mobile money payment the guest is approving on their phone.

    Addressed by booking reference plus payment reference, both of which only
    the guest holds; internal ids and provider transaction ids are not returned.
    """

    permission_classes = [permissions.AllowAny]
    authentication_classes: list = []

    def post(self, request, reference, payment_reference):
        payment = Payment.objects.filter(
            booking__booking_reference=reference,
            reference_number=payment_reference,
        ).first()
        if payment is None:
            return Response({"detail": "Payment not found."}, status=status.HTTP_404_NOT_FOUND)

        with build_payment_service() as payment_service:
            result = payment_service.check_mobile_money_status(payment.pk)
        data = {key: value for key, value in result.to_dict().items() if key not in PRIVATE_STATUS_KEYS}
        return Response(data)


class StripeWebhookView(APIView):
    """Receive Stripe payment intent events."""

    permission_classes: list = []
    authentication_classes: list = []

    def post(self, request, *args, **kwargs):
        payload = request.body
        sig_header = request.META.get("HTTP_STRIPE_SIGNATURE")
        if not settings.STRIPE_WEBHOOK_SECRET:
            logger.error("Stripe webhook secret not configured.")
            return Response(status=status.HTTP_500_INTERNAL_SERVER_ERROR)

        try:
            event = construct_webhook_event(payload, sig_header, settings.STRIPE_WEBHOOK_SECRET)
        except ValueError:
            logger.warning("Invalid payload received on Stripe webhook.")
            return Response(status=status.HTTP_400_BAD_REQUEST)
        except stripe.SignatureVerificationError:
            logger.warning("Invalid Stripe signature.")
            return Response(status=status.HTTP_400_BAD_REQUEST)

        with build_payment_service() as payment_service:
            action = handle_stripe_event(event, payment_service)
        return Response({"received": True, "action": action})
