from django.db import models


class Payment(models.Model):
    """One attempt to move money for a booking. Rows are never deleted."""

    CARD = "card"
    MOBILE_MONEY = "mobile_money"
    BANK_TRANSFER = "bank_transfer"
    PAYPAL = "paypal"
    METHODS = [
        (CARD, "Card"),
        (MOBILE_MONEY, "Mobile money"),
        (BANK_TRANSFER, "Bank transfer"),
        (PAYPAL, "PayPal"),
    ]

    PROVIDER_STRIPE = "stripe"
    PROVIDER_MOBILE_MONEY = "mobile_money"
    PROVIDER_BANK = "bank"
    PROVIDER_PAYPAL = "paypal"
    PROVIDER_BY_METHOD = {
        CARD: PROVIDER_STRIPE,
        MOBILE_MONEY: PROVIDER_MOBILE_MONEY,
        BANK_TRANSFER: PROVIDER_BANK,
        PAYPAL: PROVIDER_PAYPAL,
    }

    NETWORK_MTN = "mtn"
    NETWORK_AIRTEL = "airtel"

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"
    STATUSES = [
        (PENDING, "Pending"),
        (PROCESSING, "Processing"),
        (COMPLETED, "Completed"),
        (FAILED, "Failed"),
        (CANCELLED, "Cancelled"),
        (REFUNDED, "Refunded"),
    ]
    TERMINAL_STATUSES = {COMPLETED, FAILED, CANCELLED, REFUNDED}

    booking = models.ForeignKey("bookings.Booking", on_delete=models.PROTECT, related_name="payments")
    method = models.CharField(max_length=20, choices=METHODS)
    provider = models.CharField(max_length=20)
    network = models.CharField(max_length=10, blank=True)
    transaction_id = models.CharField(max_length=200, blank=True)
    reference_number = models.CharField(max_length=64, unique=True, null=True, blank=True)
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    currency = models.CharField(max_length=3)
    status = models.CharField(max_length=12, choices=STATUSES, default=PENDING)
    phone_number = models.CharField(max_length=30, blank=True)
    failure_reason = models.TextField(blank=True)
    metadata = models.JSONField(default=dict, blank=True)
    processed_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at", "-id"]
        indexes = [models.Index(fields=["provider", "transaction_id"], name="payment_provider_txn_idx")]

    def __str__(self):
        return f"{self.get_method_display()} {self.amount} {self.currency} ({self.status})"

    @property
    def is_terminal(self) -> bool:
        return self.status in self.TERMINAL_STATUSES

    def can_transition_to(self, status: str) -> bool:
        if not self.is_terminal:
            return True
        if status == self.status:
            return True
        return self.status == self.COMPLETED and status == self.REFUNDED
