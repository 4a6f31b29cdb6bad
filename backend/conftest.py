from datetime import date
from decimal import Decimal

import httpx
import pytest

from bookings.models import Booking, Guest


class FakeProviderAPI:
    """Routes httpx requests to canned (status, json) answers and records them."""

    def __init__(self):
        self.routes = {}
        self.requests = []

    def add(self, method, path, status_code=200, payload=None):
        self.routes[(method, path)] = (status_code, payload)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get((request.method, request.url.path))
        if route is None:
            return httpx.Response(404, json={"message": "no route"})
        status_code, payload = route
        if payload is None:
            return httpx.Response(status_code)
        return httpx.Response(status_code, json=payload)

    def client(self) -> httpx.Client:
        return httpx.Client(transport=httpx.MockTransport(self))

    def paths(self):
        return [request.url.path for request in self.requests]


@pytest.fixture
def provider_api():
    return FakeProviderAPI()


@pytest.fixture
def guest(db):
    return Guest.objects.create(
        email="grace@example.com",
        first_name="Grace",
        last_name="Nakato",
        phone="0771234567",
        country="Uganda",
    )


@pytest.fixture
def booking(guest):
    return Booking.objects.create(
        booking_reference="ARM-123456-AB12",
        guest=guest,
        service_type=Booking.ROOM,
        total_amount=Decimal("370000"),
        currency="UGX",
        room_id="101",
        check_in_date=date(2026, 11, 1),
        check_out_date=date(2026, 11, 3),
    )
