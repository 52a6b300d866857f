"""Calendar availability of vehicles."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from django.db.models import Exists, OuterRef, QuerySet

from core.exceptions import ConflictError
from vehicles.models import Location, Vehicle

from .models import Booking

# Statuses that hold a vehicle's calendar. Cancelled, completed and overdue
# bookings no longer block new reservations.
HOLDING_STATUSES = (
    Booking.Status.PENDING,
    Booking.Status.APPROVED,
    Booking.Status.ONGOING,
)

UNAVAILABLE_FOR_DATES = "Vehicle is not available for the selected dates"


@dataclass(frozen=True)
class AvailabilityResult:
    available: bool
    reason: str = ""

    def as_dict(self) -> dict:
        payload = {"available": self.available}
        if self.reason:
            payload["reason"] = self.reason
        return payload


def active_bookings_for_vehicle(vehicle: Vehicle) -> QuerySet[Booking]:
    return Booking.objects.filter(vehicle=vehicle, status__in=HOLDING_STATUSES)


def overlapping_bookings(
    vehicle: Vehicle,
    start_at: datetime,
    end_at: datetime,
    *,
    exclude_booking_id: Optional[int] = None,
) -> QuerySet[Booking]:
    """
    Holding bookings of the vehicle that intersect [start_at, end_at).

    Intervals are half-open, so a booking ending exactly when another starts
    does not overlap it.
    """
    qs = active_bookings_for_vehicle(vehicle).filter(start_at__lt=end_at, end_at__gt=start_at)
    if exclude_booking_id is not None:
        qs = qs.exclude(pk=exclude_booking_id)
    return qs


def check_availability(
    vehicle: Vehicle,
    start_at: datetime,
    end_at: datetime,
    *,
    location: Location | None = None,
) -> AvailabilityResult:
    """Answer whether the vehicle can be booked for the window, with a reason if not."""
    if vehicle.status != Vehicle.Status.AVAILABLE:
        return AvailabilityResult(False, f"Vehicle is currently {vehicle.status}")
    if location is not None and vehicle.location_id != location.pk:
        return AvailabilityResult(False, "Vehicle is not available at the selected location")
    if overlapping_bookings(vehicle, start_at, end_at).exists():
        return AvailabilityResult(False, UNAVAILABLE_FOR_DATES)
    return AvailabilityResult(True)


def ensure_available(
    vehicle: Vehicle,
    start_at: datetime,
    end_at: datetime,
    *,
    exclude_booking_id: Optional[int] = None,
) -> None:
    """Raise ConflictError when another holding booking overlaps the window."""
    conflicts = overlapping_bookings(
        vehicle, start_at, end_at, exclude_booking_id=exclude_booking_id
    )
    if conflicts.exists():
        raise ConflictError(UNAVAILABLE_FOR_DATES, field="start_at")


def available_vehicles_in_range(
    start_at: datetime,
    end_at: datetime,
    *,
    location: Location | None = None,
) -> QuerySet[Vehicle]:
    """AVAILABLE vehicles with no holding booking intersecting the window."""
    clashes = Booking.objects.filter(
        vehicle=OuterRef("pk"),
        status__in=HOLDING_STATUSES,
        start_at__lt=end_at,
        end_at__gt=start_at,
    )
    qs = Vehicle.objects.filter(status=Vehicle.Status.AVAILABLE).filter(~Exists(clashes))
    if location is not None:
        qs = qs.filter(location=location)
    return qs.select_related("location").order_by("daily_rate", "id")
