import django.core.validators
import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Guest",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("email", models.EmailField(max_length=254, unique=True)),
                ("first_name", models.CharField(blank=True, max_length=120)),
                ("last_name", models.CharField(blank=True, max_length=120)),
                ("phone", models.CharField(blank=True, max_length=30)),
                ("country", models.CharField(blank=True, max_length=80)),
                ("city", models.CharField(blank=True, max_length=120)),
                ("nationality", models.CharField(blank=True, max_length=80)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "ordering": ["last_name", "first_name", "email"],
            },
        ),
        migrations.CreateModel(
            name="Booking",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("booking_reference", models.CharField(max_length=32, unique=True)),
                (
                    "service_type",
                    models.CharField(
                        choices=[
                            ("room", "Room"),
                            ("dining", "Dining"),
                            ("event", "Event"),
                            ("facility", "Facility"),
                            ("package", "Package"),
                        ],
                        max_length=12,
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("confirmed", "Confirmed"),
                            ("checked_in", "Checked in"),
                            ("completed", "Completed"),
                            ("cancelled", "Cancelled"),
                            ("no_show", "No show"),
                        ],
                        default="pending",
                        max_length=12,
                    ),
                ),
                (
                    "payment_status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("partial", "Partial"),
                            ("paid", "Paid"),
                            ("refunded", "Refunded"),
                        ],
                        default="pending",
                        max_length=12,
                    ),
                ),
                (
                    "total_amount",
                    models.DecimalField(
                        decimal_places=2,
                        max_digits=12,
                        validators=[django.core.validators.MinValueValidator(0)],
                    ),
                ),
                ("currency", models.CharField(default="UGX", max_length=3)),
                ("special_requests", models.TextField(blank=True)),
                ("room_id", models.CharField(blank=True, max_length=64)),
                ("package_id", models.CharField(blank=True, max_length=64)),
                ("check_in_date", models.DateField(blank=True, null=True)),
                ("check_out_date", models.DateField(blank=True, null=True)),
                ("adults", models.PositiveIntegerField(default=1)),
                ("children", models.PositiveIntegerField(default=0)),
                ("dining_venue_id", models.CharField(blank=True, max_length=64)),
                ("dining_date", models.DateField(blank=True, null=True)),
                ("dining_time", models.TimeField(blank=True, null=True)),
                ("party_size", models.PositiveIntegerField(blank=True, null=True)),
                ("event_space_id", models.CharField(blank=True, max_length=64)),
                ("event_date", models.DateField(blank=True, null=True)),
                ("event_start_time", models.TimeField(blank=True, null=True)),
                ("event_end_time", models.TimeField(blank=True, null=True)),
                ("event_type", models.CharField(blank=True, max_length=80)),
                ("attendees", models.PositiveIntegerField(blank=True, null=True)),
                ("facility_service_id", models.CharField(blank=True, max_length=64)),
                ("service_date", models.DateField(blank=True, null=True)),
                ("service_time", models.TimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "guest",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="bookings",
                        to="bookings.guest",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at", "id"],
            },
        ),
    ]
