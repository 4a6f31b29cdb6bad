from __future__ import annotations

from django.conf import settings
from django.core.mail import send_mail

from bookings.models import Booking


def _format_from_email() -> str:
    default_from = settings.DEFAULT_FROM_EMAIL
    email_addr = default_from
    if '<' in default_from and default_from.endswith('>'):
        email_addr = default_from.split('<', 1)[1].rstrip('>')
    return f"{settings.HOTEL_NAME} Reservations <{email_addr}>"


def _service_summary(booking: Booking) -> str:
    if booking.service_type in (Booking.ROOM, Booking.PACKAGE):
        return f"Stay: {booking.check_in_date:%B %d, %Y} to {booking.check_out_date:%B %d, %Y}."
    if booking.service_type == Booking.DINING:
        return f"Table for {booking.party_size} on {booking.dining_date:%B %d, %Y} at {booking.dining_time:%H:%M}."
    if booking.service_type == Booking.EVENT:
        return (
            f"Event on {booking.event_date:%B %d, %Y}, "
            f"{booking.event_start_time:%H:%M} to {booking.event_end_time:%H:%M}."
        )
    return f"Appointment on {booking.service_date:%B %d, %Y} at {booking.service_time:%H:%M}."


def send_booking_confirmation_email(*, booking: Booking, payment_message: str):
    guest = booking.guest
    subject = f"Booking {booking.booking_reference} received"

    body_lines = [
        f"Hi {guest.full_name or guest.email},",
        "",
        f"Thank you for booking with {settings.HOTEL_NAME}.",
        f"Your booking reference is {booking.booking_reference}.",
        _service_summary(booking),
        f"Total: {booking.total_amount} {booking.currency}",
        "",
        payment_message,
        f"View your booking: {settings.FRONTEND_URL.rstrip('/')}/booking/{booking.booking_reference}",
        "",
        f"The {settings.HOTEL_NAME} Team",
    ]
    send_mail(
        subject,
        "\n".join(body_lines),
        _format_from_email(),
        [guest.email],
        fail_silently=False,
    )
