from django.contrib import admin

from payments.models import Payment

from .models import Booking, Guest


@admin.register(Guest)
class GuestAdmin(admin.ModelAdmin):
    list_display = ("email", "first_name", "last_name", "phone", "country", "updated_at")
    search_fields = ("email", "first_name", "last_name", "phone")
    ordering = ("last_name", "first_name")


class PaymentInline(admin.TabularInline):
    model = Payment
    extra = 0
    can_delete = False
    fields = ("method", "provider", "amount", "currency", "status", "reference_number", "created_at")
    readonly_fields = fields


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = ("booking_reference", "guest", "service_type", "status", "payment_status", "total_amount", "currency")
    list_filter = ("service_type", "status", "payment_status")
    search_fields = ("booking_reference", "guest__email", "guest__last_name")
    inlines = [PaymentInline]
