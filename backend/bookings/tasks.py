"""Celery tasks for bookings."""

from __future__ import annotations

import logging

from celery import shared_task
from django.db import transaction
from django.utils import timezone

from notifications.dispatch import notify
from payments.models import Payment

from .domain import can_transition, set_status
from .models import Booking

logger = logging.getLogger(__name__)

EXPIRED_NOTE = "Booking expired before staff approval."


@shared_task(name="bookings.mark_overdue_bookings")
def mark_overdue_bookings() -> int:
    """
    Move ONGOING bookings whose return time has passed into OVERDUE.

    Returns the number of bookings marked overdue.
    """
    now = timezone.now()
    marked = 0
    candidate_ids = list(
        Booking.objects.filter(status=Booking.Status.ONGOING, end_at__lte=now).values_list(
            "id", flat=True
        )
    )
    for booking_id in candidate_ids:
        with transaction.atomic():
            booking = Booking.objects.select_for_update().get(pk=booking_id)
            # Completed by staff since the candidate query ran.
            if not can_transition(booking.status, Booking.Status.OVERDUE):
                continue
            set_status(booking, Booking.Status.OVERDUE, source="mark_overdue_bookings")
        marked += 1

    if marked:
        logger.info("bookings: marked %s booking(s) overdue", marked)
    return marked


@shared_task(name="bookings.expire_stale_pending_bookings")
def expire_stale_pending_bookings() -> int:
    """
    Cancel PENDING bookings whose start passed without staff approval.

    Bookings with a PENDING deposit payment are skipped so a late webhook
    never lands a paid deposit on a cancelled booking.

    Returns the number of bookings cancelled.
    """
    now = timezone.now()
    expired = 0
    candidate_ids = list(
        Booking.objects.filter(status=Booking.Status.PENDING, start_at__lte=now).values_list(
            "id", flat=True
        )
    )
    for booking_id in candidate_ids:
        with transaction.atomic():
            booking = Booking.objects.select_for_update().get(pk=booking_id)
            if booking.status != Booking.Status.PENDING:
                continue
            if booking.payments.filter(status=Payment.Status.PENDING).exists():
                logger.warning(
                    "bookings: booking %s has a deposit payment in flight; left for staff review",
                    booking.pk,
                    extra={"booking_id": booking.pk},
                )
                continue
            booking.notes = EXPIRED_NOTE
            set_status(
                booking,
                Booking.Status.CANCELLED,
                update_fields=["notes"],
                source="expire_stale_pending_bookings",
            )
            notify("booking_rejected", booking)
        expired += 1

    if expired:
        logger.info("bookings: expired %s stale pending booking(s)", expired)
    return expired
