"""Read-only booking projections for the staff dashboard."""

from __future__ import annotations

from decimal import Decimal

from django.db.models import Count, Sum

from .models import Booking

REVENUE_STATUSES = (
    Booking.Status.COMPLETED,
    Booking.Status.APPROVED,
    Booking.Status.ONGOING,
)


def booking_status_counts() -> dict[str, int]:
    """Bookings per status, keyed by lower-case status, zero-filled."""
    counts = {value.lower(): 0 for value in Booking.Status.values}
    rows = Booking.objects.order_by().values("status").annotate(count=Count("id"))
    for row in rows:
        counts[row["status"].lower()] = row["count"]
    return counts


def total_revenue() -> Decimal:
    """Sum of collected deposits over bookings that went ahead."""
    total = Booking.objects.filter(status__in=REVENUE_STATUSES).aggregate(
        total=Sum("deposit_amount")
    )["total"]
    return (total or Decimal("0")).quantize(Decimal("0.01"))
