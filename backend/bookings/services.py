"""Booking lifecycle operations: creation and staff-driven status changes."""

from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Optional

from django.db import transaction
from django.db.models import QuerySet

from core.exceptions import (
    InvalidTransitionError,
    NotFoundError,
    PreconditionError,
    ValidationError,
)
from core.pricing import round2, validate_rental_window
from notifications.dispatch import notify
from vehicles.services import find_location, find_vehicle

from .availability import ensure_available
from .domain import allowed_targets, assert_transition, record_event, set_status
from .models import Booking, BookingEvent

logger = logging.getLogger(__name__)

DEFAULT_REJECTION_NOTE = "Booking rejected by staff"

# Guest-facing email sent when staff move a booking into these statuses.
STATUS_NOTIFICATIONS = {
    Booking.Status.APPROVED: "booking_approved",
    Booking.Status.CANCELLED: "booking_rejected",
    Booking.Status.COMPLETED: "booking_completed",
}


def _money(value, field: str) -> Decimal:
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError) as exc:
        raise ValidationError(f"{field} must be a number.", field=field) from exc
    if amount < 0:
        raise ValidationError(f"{field} cannot be negative.", field=field)
    return round2(amount)


def create_booking(
    *,
    vehicle_id: int,
    pickup_location_id: int,
    return_location_id: int,
    start_at: datetime,
    end_at: datetime,
    total_price,
    deposit_amount,
    guest_name: str = "",
    guest_phone: str = "",
    guest_email: str = "",
    notes: str = "",
    now: Optional[datetime] = None,
) -> Booking:
    """
    Validate and persist a new PENDING booking.

    Checks run cheapest and most specific first: dates, vehicle, vehicle
    status, locations, calendar overlap, then the price fields. The vehicle
    row stays locked until commit so two overlapping requests for the same
    vehicle cannot both pass the overlap check.
    """
    validate_rental_window(start_at, end_at, now=now)
    total = _money(total_price, "total_price")
    deposit = _money(deposit_amount, "deposit_amount")

    with transaction.atomic():
        vehicle = find_vehicle(vehicle_id, for_update=True)
        if vehicle.status != vehicle.Status.AVAILABLE:
            raise PreconditionError(
                f"Vehicle is currently {vehicle.status} and cannot be booked",
                field="vehicle",
            )
        pickup_location = find_location(pickup_location_id, field="pickup_location")
        return_location = find_location(return_location_id, field="return_location")
        ensure_available(vehicle, start_at, end_at)
        if deposit > total:
            raise ValidationError(
                "Deposit amount cannot exceed total price", field="deposit_amount"
            )

        booking = Booking.objects.create(
            vehicle=vehicle,
            pickup_location=pickup_location,
            return_location=return_location,
            start_at=start_at,
            end_at=end_at,
            total_price=total,
            deposit_amount=deposit,
            status=Booking.Status.PENDING,
            guest_name=guest_name,
            guest_phone=guest_phone,
            guest_email=guest_email,
            notes=notes or "",
        )
        record_event(
            booking,
            BookingEvent.Type.STATUS_CHANGE,
            {"from": None, "to": Booking.Status.PENDING},
        )
        notify("booking_received", booking)

    logger.info(
        "bookings: created booking %s for vehicle %s",
        booking.pk,
        vehicle.pk,
        extra={"booking_id": booking.pk, "vehicle_id": vehicle.pk},
    )
    return booking


def get_booking(booking_id: int, *, for_update: bool = False) -> Booking:
    if for_update:
        qs = Booking.objects.select_for_update()
    else:
        qs = Booking.objects.select_related(
            "vehicle", "pickup_location", "return_location", "approved_by"
        )
    try:
        return qs.get(pk=booking_id)
    except (Booking.DoesNotExist, ValueError, TypeError):
        raise NotFoundError(f"Booking with ID {booking_id} not found", field="booking")


def list_bookings(status: Optional[str] = None) -> QuerySet[Booking]:
    qs = Booking.objects.select_related(
        "vehicle", "pickup_location", "return_location", "approved_by"
    ).order_by("-created_at", "-id")
    if status:
        if status not in Booking.Status.values:
            raise ValidationError(f"Unknown booking status {status}.", field="status")
        qs = qs.filter(status=status)
    return qs


def pending_bookings() -> QuerySet[Booking]:
    return list_bookings(Booking.Status.PENDING)


def _require_pending(booking: Booking, target: str, verb: str, done: str) -> None:
    if booking.status != Booking.Status.PENDING:
        raise InvalidTransitionError(
            booking.status,
            target,
            allowed_targets(booking.status),
            message=(
                f"Cannot {verb} booking with status {booking.status}. "
                f"Only PENDING bookings can be {done}."
            ),
        )


def approve_booking(booking_id: int, approver, notes: Optional[str] = None) -> Booking:
    with transaction.atomic():
        booking = get_booking(booking_id, for_update=True)
        _require_pending(booking, Booking.Status.APPROVED, "approve", "approved")
        booking.approved_by = approver
        update_fields = ["approved_by"]
        if notes:
            booking.notes = notes
            update_fields.append("notes")
        set_status(booking, Booking.Status.APPROVED, actor=approver, update_fields=update_fields)
        notify("booking_approved", booking)
    return booking


def reject_booking(booking_id: int, approver, notes: Optional[str] = None) -> Booking:
    with transaction.atomic():
        booking = get_booking(booking_id, for_update=True)
        _require_pending(booking, Booking.Status.CANCELLED, "reject", "rejected")
        booking.approved_by = approver
        booking.notes = notes or DEFAULT_REJECTION_NOTE
        set_status(
            booking,
            Booking.Status.CANCELLED,
            actor=approver,
            update_fields=["approved_by", "notes"],
        )
        notify("booking_rejected", booking)
    return booking


def update_status(
    booking_id: int,
    target: str,
    *,
    actor=None,
    notes: Optional[str] = None,
) -> Booking:
    """Generic transition entry point, validated against ALLOWED_TRANSITIONS."""
    if target not in Booking.Status.values:
        raise ValidationError(f"Unknown booking status {target}.", field="status")
    with transaction.atomic():
        booking = get_booking(booking_id, for_update=True)
        assert_transition(booking, target)
        update_fields = []
        if notes:
            booking.notes = notes
            update_fields.append("notes")
        if target == Booking.Status.APPROVED and booking.approved_by_id is None and actor:
            booking.approved_by = actor
            update_fields.append("approved_by")
        set_status(booking, target, actor=actor, update_fields=update_fields)
        event = STATUS_NOTIFICATIONS.get(target)
        if event:
            notify(event, booking)
    return booking


def complete_booking(
    booking_id: int,
    actual_return_at: Optional[datetime] = None,
    *,
    actor=None,
) -> Booking:
    """Close an ONGOING rental; actual_return_at is stored only when given."""
    with transaction.atomic():
        booking = get_booking(booking_id, for_update=True)
        if booking.status != Booking.Status.ONGOING:
            raise InvalidTransitionError(
                booking.status,
                Booking.Status.COMPLETED,
                allowed_targets(booking.status),
                message="Only ONGOING bookings can be completed",
            )
        update_fields = []
        if actual_return_at is not None:
            booking.actual_return_at = actual_return_at
            update_fields.append("actual_return_at")
        set_status(booking, Booking.Status.COMPLETED, actor=actor, update_fields=update_fields)
        notify("booking_completed", booking)
    return booking
