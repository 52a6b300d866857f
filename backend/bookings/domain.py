"""Domain helpers for booking state transitions."""

from __future__ import annotations

import logging
from typing import Any, Optional

from core.exceptions import InvalidTransitionError

from .models import Booking, BookingEvent

logger = logging.getLogger(__name__)

Status = Booking.Status

# COMPLETED and CANCELLED are terminal.
ALLOWED_TRANSITIONS: dict[str, frozenset[str]] = {
    Status.PENDING: frozenset({Status.APPROVED, Status.CANCELLED}),
    Status.APPROVED: frozenset({Status.ONGOING, Status.CANCELLED}),
    Status.ONGOING: frozenset({Status.COMPLETED, Status.OVERDUE}),
    Status.OVERDUE: frozenset({Status.COMPLETED}),
    Status.COMPLETED: frozenset(),
    Status.CANCELLED: frozenset(),
}


def allowed_targets(current: str) -> tuple[str, ...]:
    """Sorted statuses reachable from ``current`` in one step."""
    return tuple(sorted(ALLOWED_TRANSITIONS.get(current, frozenset())))


def can_transition(current: str, target: str) -> bool:
    return target in ALLOWED_TRANSITIONS.get(current, frozenset())


def assert_transition(booking: Booking, target: str) -> None:
    """Raise InvalidTransitionError unless the table permits booking.status -> target."""
    if not can_transition(booking.status, target):
        raise InvalidTransitionError(booking.status, target, allowed_targets(booking.status))


def record_event(
    booking: Booking,
    event_type: str,
    payload: Optional[dict[str, Any]] = None,
    *,
    actor=None,
) -> BookingEvent:
    actor_id = getattr(actor, "pk", None) if actor is not None else None
    return BookingEvent.objects.create(
        booking=booking,
        type=event_type,
        payload=payload or {},
        actor_id=actor_id if getattr(actor, "is_authenticated", False) else None,
    )


def set_status(
    booking: Booking,
    target: str,
    *,
    actor=None,
    update_fields: Optional[list[str]] = None,
    source: str = "",
) -> Booking:
    """
    Write ``target`` to the booking and append a status_change event.

    Does not consult the transition table; callers that must respect it
    call assert_transition first. Extra ``update_fields`` are saved with
    the status.
    """
    previous = booking.status
    booking.status = target
    fields = ["status", "updated_at", *(update_fields or [])]
    booking.save(update_fields=list(dict.fromkeys(fields)))
    payload: dict[str, Any] = {"from": previous, "to": target}
    if source:
        payload["source"] = source
    record_event(booking, BookingEvent.Type.STATUS_CHANGE, payload, actor=actor)
    logger.info(
        "bookings: booking %s status %s -> %s",
        booking.pk,
        previous,
        target,
        extra={"booking_id": booking.pk, "source": source or "engine"},
    )
    return booking
