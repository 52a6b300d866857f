"""Vehicle and location lookups used by the booking engine."""

from __future__ import annotations

import logging
from datetime import datetime

from django.db import transaction
from django.db.models.deletion import ProtectedError
from django.db.models import QuerySet

from bookings.availability import active_bookings_for_vehicle, available_vehicles_in_range
from core.exceptions import NotFoundError, PreconditionError, ValidationError

from .models import Location, Vehicle

logger = logging.getLogger(__name__)


def find_vehicle(vehicle_id: int, *, for_update: bool = False) -> Vehicle:
    """
    Return the vehicle or raise NotFoundError.

    for_update takes a row lock that is held until the surrounding
    transaction ends; bookings of one vehicle are serialized on it.
    """
    qs = Vehicle.objects.all()
    if for_update:
        qs = qs.select_for_update()
    try:
        return qs.get(pk=vehicle_id)
    except (Vehicle.DoesNotExist, ValueError, TypeError):
        raise NotFoundError("Vehicle not found", field="vehicle")


def find_location(location_id: int, *, field: str = "location") -> Location:
    try:
        return Location.objects.get(pk=location_id)
    except (Location.DoesNotExist, ValueError, TypeError):
        label = field.replace("_", " ").capitalize()
        raise NotFoundError(f"{label} not found", field=field)


def find_available_in_range(
    start_at: datetime,
    end_at: datetime,
    *,
    location_id: int | None = None,
) -> QuerySet[Vehicle]:
    if start_at >= end_at:
        raise ValidationError("Start date must be before end date.", field="end_at")
    location = find_location(location_id) if location_id is not None else None
    return available_vehicles_in_range(start_at, end_at, location=location)


def set_vehicle_status(vehicle_id: int, status: str) -> Vehicle:
    """Staff-driven status change (maintenance, damage, back to service)."""
    if status not in Vehicle.Status.values:
        raise ValidationError(f"Unknown vehicle status {status}.", field="status")
    with transaction.atomic():
        vehicle = find_vehicle(vehicle_id, for_update=True)
        previous = vehicle.status
        vehicle.status = status
        vehicle.save(update_fields=["status", "updated_at"])
    logger.info("vehicles: vehicle %s status %s -> %s", vehicle.id, previous, status)
    return vehicle


def delete_vehicle(vehicle_id: int) -> None:
    """Delete a vehicle unless a pending, approved or ongoing booking holds it."""
    with transaction.atomic():
        vehicle = find_vehicle(vehicle_id, for_update=True)
        if active_bookings_for_vehicle(vehicle).exists():
            raise PreconditionError("Cannot delete vehicle with active bookings")
        try:
            vehicle.delete()
        except ProtectedError as exc:
            # Bookings are kept forever, so finished ones still pin the vehicle.
            raise PreconditionError(
                "Cannot delete vehicle with booking history", field="vehicle"
            ) from exc
    logger.info("vehicles: vehicle %s deleted", vehicle_id)
