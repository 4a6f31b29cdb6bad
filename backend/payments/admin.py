from django.contrib import admin, messages

from .models import Payment
from .services.processing import build_payment_service


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = ("id", "booking", "method", "network", "amount", "currency", "status", "created_at")
    list_filter = ("method", "provider", "status")
    search_fields = ("booking__booking_reference", "transaction_id", "reference_number", "phone_number")
    readonly_fields = ("metadata", "processed_at", "created_at", "updated_at")
    actions = ["mark_completed"]

    def has_delete_permission(self, request, obj=None):
        return False

    @admin.action(description="Mark selected payments as completed")
    def mark_completed(self, request, queryset):
        with build_payment_service() as payment_service:
            for payment in queryset:
                result = payment_service.update_payment_status(payment.pk, Payment.COMPLETED)
                if not result.success:
                    self.message_user(request, f"Payment {payment.pk}: {result.error}", level=messages.WARNING)
