"""Fire-and-forget booking notifications.

Emails are queued once the surrounding transaction commits, so a rolled
back booking never produces one. Queueing failures are logged and never
propagate into the booking flow.
"""

from __future__ import annotations

import logging

from django.db import transaction

from notifications import tasks as notification_tasks

logger = logging.getLogger(__name__)

EVENTS = frozenset(notification_tasks.BOOKING_EMAILS)


def _queue(event: str, booking_id: int) -> None:
    try:
        notification_tasks.send_booking_event_email.delay(booking_id, event)
        if event == "booking_received":
            notification_tasks.send_staff_booking_alert_email.delay(booking_id)
    except Exception:
        logger.info(
            "notifications: could not queue %s for booking %s",
            event,
            booking_id,
            exc_info=True,
        )


def notify(event: str, booking) -> None:
    if event not in EVENTS:
        logger.warning("notifications: ignoring unknown event %s", event)
        return
    booking_id = booking.pk
    transaction.on_commit(lambda: _queue(event, booking_id))
