from decimal import Decimal

from django.conf import settings
from rest_framework import serializers

from bookings.models import Booking, Guest
from bookings.services.booking import BookingRequest
from payments.models import Payment
from payments.serializers import PaymentSummarySerializer
from payments.services import phone

BOOKING_PAYMENT_METHODS = [
    (Payment.CARD, "Card"),
    (Payment.MOBILE_MONEY, "Mobile money"),
    (Payment.BANK_TRANSFER, "Bank transfer"),
]


class GuestInputSerializer(serializers.Serializer):
    email = serializers.EmailField()
    first_name = serializers.CharField(max_length=120)
    last_name = serializers.CharField(max_length=120)
    phone = serializers.CharField(max_length=30, required=False, allow_blank=True)
    country = serializers.CharField(max_length=80, required=False, allow_blank=True)
    city = serializers.CharField(max_length=120, required=False, allow_blank=True)
    nationality = serializers.CharField(max_length=80, required=False, allow_blank=True)


class _StaySerializer(serializers.Serializer):
    check_in_date = serializers.DateField()
    check_out_date = serializers.DateField()
    adults = serializers.IntegerField(min_value=1, required=False, default=1)
    children = serializers.IntegerField(min_value=0, required=False, default=0)

    def validate(self, attrs):
        if attrs["check_out_date"] <= attrs["check_in_date"]:
            raise serializers.ValidationError({"check_out_date": "Check-out must be after check-in."})
        return attrs


class RoomBookingSerializer(_StaySerializer):
    room_id = serializers.CharField(max_length=64)


class PackageBookingSerializer(_StaySerializer):
    package_id = serializers.CharField(max_length=64)


class DiningBookingSerializer(serializers.Serializer):
    dining_venue_id = serializers.CharField(max_length=64)
    dining_date = serializers.DateField()
    dining_time = serializers.TimeField()
    party_size = serializers.IntegerField(min_value=1)


class EventBookingSerializer(serializers.Serializer):
    event_space_id = serializers.CharField(max_length=64)
    event_date = serializers.DateField()
    event_start_time = serializers.TimeField()
    event_end_time = serializers.TimeField()
    event_type = serializers.CharField(max_length=80, required=False, allow_blank=True)
    attendees = serializers.IntegerField(min_value=1, required=False)

    def validate(self, attrs):
        if attrs["event_end_time"] <= attrs["event_start_time"]:
            raise serializers.ValidationError({"event_end_time": "Event must end after it starts."})
        return attrs


class FacilityBookingSerializer(serializers.Serializer):
    facility_service_id = serializers.CharField(max_length=64)
    service_date = serializers.DateField()
    service_time = serializers.TimeField()


SERVICE_SERIALIZERS = {
    Booking.ROOM: RoomBookingSerializer,
    Booking.DINING: DiningBookingSerializer,
    Booking.EVENT: EventBookingSerializer,
    Booking.FACILITY: FacilityBookingSerializer,
    Booking.PACKAGE: PackageBookingSerializer,
}


class PaymentDetailsSerializer(serializers.Serializer):
    phone_number = serializers.CharField(max_length=30, required=False, allow_blank=True)
    card_token = serializers.CharField(required=False, allow_blank=True)
    return_url = serializers.URLField(required=False, allow_blank=True)


def _validate_payment_details(method: str, details: dict) -> None:
    if method != Payment.MOBILE_MONEY:
        return
    phone_number = details.get("phone_number")
    if not phone_number:
        raise serializers.ValidationError(
            {"payment_details": {"phone_number": "Phone number required for mobile money payment."}}
        )
    if phone.classify(phone_number) == phone.UNKNOWN:
        raise serializers.ValidationError(
            {"payment_details": {"phone_number": "Unsupported phone number. Please use MTN or Airtel number."}}
        )
    if not phone.is_valid_local_number(phone_number):
        raise serializers.ValidationError({"payment_details": {"phone_number": "Enter a valid phone number."}})


class BookingCreateSerializer(serializers.Serializer):
    """
    Booking payload. Service-specific fields sit at the top level next to
    `service_type` and are validated by the matching entry in
    `SERVICE_SERIALIZERS`.
    """

    service_type = serializers.ChoiceField(choices=Booking.SERVICE_TYPES)
    guest = GuestInputSerializer()
    total_amount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal("0.01"))
    currency = serializers.RegexField(r"^[A-Za-z]{3}$", required=False)
    payment_method = serializers.ChoiceField(choices=BOOKING_PAYMENT_METHODS)
    payment_details = PaymentDetailsSerializer(required=False)
    special_requests = serializers.CharField(required=False, allow_blank=True)

    def validate(self, attrs):
        service_serializer = SERVICE_SERIALIZERS[attrs["service_type"]](data=self.initial_data)
        if not service_serializer.is_valid():
            raise serializers.ValidationError(service_serializer.errors)
        attrs["service_fields"] = dict(service_serializer.validated_data)
        attrs["currency"] = (attrs.get("currency") or settings.LOCAL_CURRENCY).upper()
        _validate_payment_details(attrs["payment_method"], attrs.get("payment_details") or {})
        return attrs

    def to_booking_request(self) -> BookingRequest:
        data = self.validated_data
        return BookingRequest(
            service_type=data["service_type"],
            guest=dict(data["guest"]),
            total_amount=data["total_amount"],
            currency=data["currency"],
            payment_method=data["payment_method"],
            service_fields=data["service_fields"],
            payment_details=dict(data.get("payment_details") or {}),
            special_requests=data.get("special_requests", ""),
        )


class BookingPaymentSerializer(serializers.Serializer):
    payment_method = serializers.ChoiceField(choices=BOOKING_PAYMENT_METHODS)
    payment_details = PaymentDetailsSerializer(required=False)

    def validate(self, attrs):
        _validate_payment_details(attrs["payment_method"], attrs.get("payment_details") or {})
        return attrs


class GuestSummarySerializer(serializers.ModelSerializer):
    full_name = serializers.CharField(read_only=True)

    class Meta:
        model = Guest
        fields = ["email", "first_name", "last_name", "full_name"]


class BookingSerializer(serializers.ModelSerializer):
    guest = GuestSummarySerializer(read_only=True)
    payments = PaymentSummarySerializer(many=True, read_only=True)

    class Meta:
        model = Booking
        fields = [
            "id",
            "booking_reference",
            "service_type",
            "status",
            "payment_status",
            "total_amount",
            "currency",
            "special_requests",
            "room_id",
            "package_id",
            "check_in_date",
            "check_out_date",
            "adults",
            "children",
            "dining_venue_id",
            "dining_date",
            "dining_time",
            "party_size",
            "event_space_id",
            "event_date",
            "event_start_time",
            "event_end_time",
            "event_type",
            "attendees",
            "facility_service_id",
            "service_date",
            "service_time",
            "guest",
            "payments",
            "created_at",
        ]
        read_only_fields = fields
