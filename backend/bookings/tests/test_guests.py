import pytest

from bookings.models import Guest
from bookings.services.guests import upsert_guest


@pytest.mark.django_db
def test_upsert_creates_then_updates_by_email():
    created = upsert_guest({"email": "Amos@Example.com ", "first_name": "Amos", "last_name": "Okello"})
    updated = upsert_guest(
        {"email": "amos@example.com", "first_name": "Amos", "last_name": "Okello", "phone": "0751234567"}
    )

    assert created.pk == updated.pk
    assert Guest.objects.count() == 1
    updated.refresh_from_db()
    assert updated.email == "amos@example.com"
    assert updated.phone == "0751234567"
    assert updated.full_name == "Amos Okello"


@pytest.mark.django_db
def test_upsert_requires_email():
    with pytest.raises(ValueError):
        upsert_guest({"first_name": "Nobody"})
