from django.conf import settings
from django.db import models


def _default_currency() -> str:
    return getattr(settings, "BOOKING_CURRENCY", "USD")


class Payment(models.Model):
    """A deposit payment attempt for a booking, keyed by the provider intent id."""

    class Status(models.TextChoices):
        PENDING = "PENDING", "Pending"
        PAID = "PAID", "Paid"
        REFUNDED = "REFUNDED", "Refunded"

    booking = models.ForeignKey(
        "bookings.Booking",
        on_delete=models.PROTECT,
        related_name="payments",
    )
    amount = models.DecimalField(max_digits=10, decimal_places=2)
    currency = models.CharField(max_length=8, default=_default_currency)
    status = models.CharField(
        max_length=16,
        choices=Status.choices,
        default=Status.PENDING,
    )
    transaction_id = models.CharField(
        max_length=255,
        unique=True,
        null=True,
        blank=True,
        help_text="Stripe PaymentIntent id.",
    )
    paid_at = models.DateTimeField(null=True, blank=True)
    refunded_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["booking", "created_at"]),
            models.Index(fields=["status"]),
        ]

    def __str__(self) -> str:
        label = self.transaction_id or self.pk
        return f"Payment {label} {self.amount} {self.currency} ({self.status})"
