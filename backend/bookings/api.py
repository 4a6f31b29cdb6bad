from rest_framework import permissions, status
from rest_framework.response import Response
from rest_framework.views import APIView

from bookings.serializers import BookingCreateSerializer, BookingPaymentSerializer, BookingSerializer
from bookings.services.booking import BookingService, get_booking
from payments.services.processing import build_payment_service


class BookingCreateView(APIView):
    """Public booking flow: creates the booking and starts its payment."""

    permission_classes = [permissions.AllowAny]
    authentication_classes: list = []

    def post(self, request):
        serializer = BookingCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        with build_payment_service() as payment_service:
            result = BookingService(payment_service).create_booking(serializer.to_booking_request())

        code = status.HTTP_201_CREATED if result.success else status.HTTP_400_BAD_REQUEST
        return Response(result.to_dict(), status=code)


class BookingDetailView(APIView):
    permission_classes = [permissions.AllowAny]
    authentication_classes: list = []

    def get(self, request, reference):
        booking = get_booking(reference)
        if booking is None:
            return Response({"detail": "Booking not found."}, status=status.HTTP_404_NOT_FOUND)
        return Response(BookingSerializer(booking).data)


class BookingPaymentView(APIView):
    """Start another payment attempt for a booking, e.g. after a declined mobile money prompt."""

    permission_classes = [permissions.AllowAny]
    authentication_classes: list = []

    def post(self, request, reference):
        serializer = BookingPaymentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        booking = get_booking(reference)
        if booking is None:
            return Response({"detail": "Booking not found."}, status=status.HTTP_404_NOT_FOUND)

        with build_payment_service() as payment_service:
            result = BookingService(payment_service).retry_payment(
                booking,
                serializer.validated_data["payment_method"],
                dict(serializer.validated_data.get("payment_details") or {}),
            )

        code = status.HTTP_201_CREATED if result.success else status.HTTP_400_BAD_REQUEST
        return Response(result.to_dict(), status=code)
