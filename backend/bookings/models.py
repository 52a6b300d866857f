"""Database models for vehicle bookings."""

from __future__ import annotations

from django.conf import settings
from django.db import models
from django.db.models import F, Q

from vehicles.models import Location, Vehicle


class Booking(models.Model):
    """A reservation of one vehicle over a half-open [start_at, end_at) window."""

    class Status(models.TextChoices):
        PENDING = "PENDING", "Pending"
        APPROVED = "APPROVED", "Approved"
        ONGOING = "ONGOING", "Ongoing"
        COMPLETED = "COMPLETED", "Completed"
        CANCELLED = "CANCELLED", "Cancelled"
        OVERDUE = "OVERDUE", "Overdue"

    vehicle = models.ForeignKey(
        Vehicle,
        related_name="bookings",
        on_delete=models.PROTECT,
    )
    pickup_location = models.ForeignKey(
        Location,
        related_name="pickup_bookings",
        on_delete=models.PROTECT,
    )
    return_location = models.ForeignKey(
        Location,
        related_name="return_bookings",
        on_delete=models.PROTECT,
    )
    start_at = models.DateTimeField()
    end_at = models.DateTimeField(help_text="Exclusive end of the rental window.")
    total_price = models.DecimalField(max_digits=10, decimal_places=2)
    deposit_amount = models.DecimalField(max_digits=10, decimal_places=2)
    status = models.CharField(
        max_length=16,
        choices=Status.choices,
        default=Status.PENDING,
    )
    actual_return_at = models.DateTimeField(null=True, blank=True)
    notes = models.TextField(blank=True, default="")
    approved_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        related_name="approved_bookings",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
    )
    guest_name = models.CharField(max_length=120, blank=True, default="")
    guest_phone = models.CharField(max_length=32, blank=True, default="")
    guest_email = models.EmailField(blank=True, default="")
    stripe_payment_id = models.CharField(max_length=120, blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["vehicle", "start_at", "end_at"]),
            models.Index(fields=["status", "created_at"]),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(end_at__gt=F("start_at")),
                name="booking_end_after_start",
            ),
            models.CheckConstraint(
                condition=Q(deposit_amount__lte=F("total_price")),
                name="booking_deposit_within_total",
            ),
        ]

    def __str__(self) -> str:
        return f"Booking #{self.pk} for vehicle {self.vehicle_id} ({self.status})"

    @property
    def deposit_cents(self) -> int:
        """Deposit in minor units, as charged by the payment provider."""
        return int((self.deposit_amount * 100).to_integral_value())

    def is_terminal(self) -> bool:
        return self.status in {self.Status.COMPLETED, self.Status.CANCELLED}


class BookingEvent(models.Model):
    """Append-only audit trail of what happened to a booking."""

    class Type(models.TextChoices):
        STATUS_CHANGE = "status_change", "Status change"
        PAYMENT = "payment", "Payment"
        EMAIL_SENT = "email_sent", "Email sent"
        EMAIL_FAILED = "email_failed", "Email failed"

    booking = models.ForeignKey(
        Booking,
        on_delete=models.CASCADE,
        related_name="events",
    )
    type = models.CharField(max_length=32, choices=Type.choices)
    payload = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    actor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="booking_events",
    )

    class Meta:
        ordering = ["created_at", "id"]
        indexes = [
            models.Index(fields=["booking", "created_at"]),
            models.Index(fields=["type", "created_at"]),
        ]

    def __str__(self) -> str:
        return f"BookingEvent {self.pk} for booking {self.booking_id} ({self.type})"
