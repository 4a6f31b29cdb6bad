import secrets
import string
import time

from bookings.models import Booking

REFERENCE_PREFIX = "ARM"
REFERENCE_ATTEMPTS = 5

_ALPHABET = string.digits + string.ascii_uppercase


def generate_booking_reference(prefix: str = REFERENCE_PREFIX) -> str:
    """``<prefix>-<last 6 digits of epoch ms>-<4 random base36 chars>``, e.g. ``ARM-482913-7QK2``."""
    timestamp = str(int(time.time() * 1000))[-6:]
    suffix = "".join(secrets.choice(_ALPHABET) for _ in range(4))
    return f"{prefix}-{timestamp}-{suffix}"


def unique_booking_reference() -> str:
    """
    Generate a reference not used by any booking yet.

    Gives up after a few attempts and returns the last candidate; the unique
    constraint on `Booking.booking_reference` is the final guard.
    """

    reference = generate_booking_reference()
    for _ in range(REFERENCE_ATTEMPTS - 1):
        if not Booking.objects.filter(booking_reference=reference).exists():
            break
        reference = generate_booking_reference()
    return reference
