from __future__ import annotations

from typing import Any, Dict

from bookings.models import Guest

CONTACT_FIELDS = ("first_name", "last_name", "phone", "country", "city", "nationality")


def upsert_guest(data: Dict[str, Any]) -> Guest:
    """Find the guest by email and overwrite contact details, or create them."""

    email = (data.get("email") or "").strip().lower()
    if not email:
        raise ValueError("Guest email is required")

    defaults = {field: (data.get(field) or "").strip() for field in CONTACT_FIELDS}
    guest, _ = Guest.objects.update_or_create(email=email, defaults=defaults)
    return guest
