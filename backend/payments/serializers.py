from rest_framework import serializers

from payments.models import Payment


class PaymentSerializer(serializers.ModelSerializer):
    booking_reference = serializers.CharField(source="booking.booking_reference", read_only=True)

    class Meta:
        model = Payment
        fields = [
            "id",
            "booking",
            "booking_reference",
            "method",
            "provider",
            "network",
            "transaction_id",
            "reference_number",
            "amount",
            "currency",
            "status",
            "phone_number",
            "failure_reason",
            "processed_at",
            "created_at",
        ]
        read_only_fields = fields


class PaymentSummarySerializer(serializers.ModelSerializer):
    """Guest-facing view of a payment; no provider diagnostics."""

    class Meta:
        model = Payment
        fields = ["id", "method", "amount", "currency", "status", "reference_number", "created_at"]
        read_only_fields = fields


class PaymentStatusUpdateSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Payment.STATUSES)
    transaction_id = serializers.CharField(required=False, allow_blank=True, max_length=200)
    failure_reason = serializers.CharField(required=False, allow_blank=True)


class RefundRequestSerializer(serializers.Serializer):
    amount = serializers.DecimalField(max_digits=12, decimal_places=2, required=False, min_value=0)
    reason = serializers.CharField(required=False, allow_blank=True)
