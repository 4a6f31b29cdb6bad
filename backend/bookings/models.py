from django.core.validators import MinValueValidator
from django.db import models


class Guest(models.Model):
    """A hotel guest; one row per email address."""

    email = models.EmailField(unique=True)
    first_name = models.CharField(max_length=120, blank=True)
    last_name = models.CharField(max_length=120, blank=True)
    phone = models.CharField(max_length=30, blank=True)
    country = models.CharField(max_length=80, blank=True)
    city = models.CharField(max_length=120, blank=True)
    nationality = models.CharField(max_length=80, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["last_name", "first_name", "email"]

    def __str__(self):
        return self.full_name or self.email

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class Booking(models.Model):
    """Reservation for a room, table, event space, facility slot or package."""

    ROOM = "room"
    DINING = "dining"
    EVENT = "event"
    FACILITY = "facility"
    PACKAGE = "package"
    SERVICE_TYPES = [
        (ROOM, "Room"),
        (DINING, "Dining"),
        (EVENT, "Event"),
        (FACILITY, "Facility"),
        (PACKAGE, "Package"),
    ]

    PENDING = "pending"
    CONFIRMED = "confirmed"
    CHECKED_IN = "checked_in"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"
    STATUSES = [
        (PENDING, "Pending"),
        (CONFIRMED, "Confirmed"),
        (CHECKED_IN, "Checked in"),
        (COMPLETED, "Completed"),
        (CANCELLED, "Cancelled"),
        (NO_SHOW, "No show"),
    ]

    PAYMENT_PENDING = "pending"
    PAYMENT_PARTIAL = "partial"
    PAYMENT_PAID = "paid"
    PAYMENT_REFUNDED = "refunded"
    PAYMENT_STATUSES = [
        (PAYMENT_PENDING, "Pending"),
        (PAYMENT_PARTIAL, "Partial"),
        (PAYMENT_PAID, "Paid"),
        (PAYMENT_REFUNDED, "Refunded"),
    ]

    booking_reference = models.CharField(max_length=32, unique=True)
    guest = models.ForeignKey("Guest", on_delete=models.PROTECT, related_name="bookings")
    service_type = models.CharField(max_length=12, choices=SERVICE_TYPES)
    status = models.CharField(max_length=12, choices=STATUSES, default=PENDING)
    payment_status = models.CharField(max_length=12, choices=PAYMENT_STATUSES, default=PAYMENT_PENDING)
    total_amount = models.DecimalField(max_digits=12, decimal_places=2, validators=[MinValueValidator(0)])
    currency = models.CharField(max_length=3, default="UGX")
    special_requests = models.TextField(blank=True)

    # room / package
    room_id = models.CharField(max_length=64, blank=True)
    package_id = models.CharField(max_length=64, blank=True)
    check_in_date = models.DateField(null=True, blank=True)
    check_out_date = models.DateField(null=True, blank=True)
    adults = models.PositiveIntegerField(default=1)
    children = models.PositiveIntegerField(default=0)

    # dining
    dining_venue_id = models.CharField(max_length=64, blank=True)
    dining_date = models.DateField(null=True, blank=True)
    dining_time = models.TimeField(null=True, blank=True)
    party_size = models.PositiveIntegerField(null=True, blank=True)

    # event
    event_space_id = models.CharField(max_length=64, blank=True)
    event_date = models.DateField(null=True, blank=True)
    event_start_time = models.TimeField(null=True, blank=True)
    event_end_time = models.TimeField(null=True, blank=True)
    event_type = models.CharField(max_length=80, blank=True)
    attendees = models.PositiveIntegerField(null=True, blank=True)

    # facility
    facility_service_id = models.CharField(max_length=64, blank=True)
    service_date = models.DateField(null=True, blank=True)
    service_time = models.TimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at", "id"]

    def __str__(self):
        return f"{self.booking_reference} ({self.get_service_type_display()})"
