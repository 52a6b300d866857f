"""Booking emails sent from Celery workers.

Every attempt leaves a NotificationLog row and, when it belongs to a
booking, an ``email_sent`` or ``email_failed`` BookingEvent.
"""

from __future__ import annotations

import logging
from typing import Optional

from celery import shared_task
from django.conf import settings
from django.core.mail import EmailMessage
from django.template.loader import render_to_string
from django.utils import timezone

from bookings.models import Booking, BookingEvent
from notifications.models import NotificationLog

logger = logging.getLogger(__name__)

# event -> (subject, template under templates/email/)
BOOKING_EMAILS = {
    "booking_received": ("Booking received - your car rental", "booking_received.txt"),
    "booking_approved": ("Booking approved - car rental confirmation", "booking_approved.txt"),
    "booking_rejected": ("Booking status update - car rental", "booking_rejected.txt"),
    "booking_completed": ("Thank you - rental completed", "booking_completed.txt"),
    "payment_confirmed": ("Payment confirmed - car rental booking", "payment_confirmed.txt"),
    "payment_refunded": ("Deposit refunded - car rental booking", "payment_refunded.txt"),
}
STAFF_ALERT = "staff_booking_alert"


def booking_reference(booking) -> str:
    return f"BK-{booking.pk:06d}"


def _format_datetime(value) -> str:
    if not value:
        return "TBD"
    local = timezone.localtime(value) if timezone.is_aware(value) else value
    return local.strftime("%b %d, %Y %H:%M")


def _booking_context(booking: Booking) -> dict:
    vehicle = booking.vehicle
    return {
        "site_name": getattr(settings, "SITE_NAME", "Fleet Rentals"),
        "site_url": (getattr(settings, "FRONTEND_ORIGIN", "") or "").rstrip("/"),
        "booking": booking,
        "guest_name": booking.guest_name or "Valued Customer",
        "booking_reference": booking_reference(booking),
        "vehicle_details": f"{vehicle.year} {vehicle.make} {vehicle.model}",
        "pickup_location": booking.pickup_location.name,
        "return_location": booking.return_location.name,
        "pickup_date": _format_datetime(booking.start_at),
        "return_date": _format_datetime(booking.actual_return_at or booking.end_at),
        "total_price": booking.total_price,
        "deposit_amount": booking.deposit_amount,
        "currency": getattr(settings, "BOOKING_CURRENCY", "USD"),
        "notes": booking.notes,
    }


def render_booking_email(template: str, booking: Booking) -> str:
    return render_to_string(f"email/{template}", _booking_context(booking)).strip()


def _record_delivery(
    event: str,
    status: str,
    *,
    recipient: str,
    subject: str,
    booking_id: Optional[int],
    error: str = "",
) -> None:
    try:
        NotificationLog.objects.create(
            event=event,
            booking_id=booking_id,
            recipient=recipient,
            subject=subject[:200],
            status=status,
            error=error,
        )
        if booking_id:
            payload = {"notification_type": event, "channel": "email", "status": status}
            if error:
                payload["error"] = error
            BookingEvent.objects.create(
                booking_id=booking_id,
                type=(
                    BookingEvent.Type.EMAIL_SENT
                    if status == NotificationLog.Status.SENT
                    else BookingEvent.Type.EMAIL_FAILED
                ),
                payload=payload,
            )
    except Exception:
        logger.exception(
            "notifications: could not record %s delivery",
            event,
            extra={"booking_id": booking_id, "status": status},
        )


def deliver_email(
    event: str,
    *,
    to_email: Optional[str],
    subject: str,
    body: str,
    booking_id: Optional[int] = None,
) -> bool:
    """Send one plain-text email and record the outcome; True when it went out."""
    if not to_email:
        logger.warning("notifications: no recipient for %s (booking %s)", event, booking_id)
        _record_delivery(
            event,
            NotificationLog.Status.FAILED,
            recipient="",
            subject=subject,
            booking_id=booking_id,
            error="missing recipient email",
        )
        return False

    message = EmailMessage(
        subject=subject,
        body=body,
        from_email=settings.DEFAULT_FROM_EMAIL,
        to=[to_email],
    )
    try:
        message.send(fail_silently=False)
    except Exception as exc:
        logger.exception(
            "notifications: sending %s failed",
            event,
            extra={"booking_id": booking_id},
        )
        _record_delivery(
            event,
            NotificationLog.Status.FAILED,
            recipient=to_email,
            subject=subject,
            booking_id=booking_id,
            error=str(exc) or exc.__class__.__name__,
        )
        return False

    _record_delivery(
        event,
        NotificationLog.Status.SENT,
        recipient=to_email,
        subject=subject,
        booking_id=booking_id,
    )
    return True


def _load_booking(booking_id: int) -> Optional[Booking]:
    booking = (
        Booking.objects.select_related("vehicle", "pickup_location", "return_location")
        .filter(pk=booking_id)
        .first()
    )
    if booking is None:
        logger.warning("notifications: booking %s no longer exists", booking_id)
    return booking


@shared_task(queue="emails")
def send_booking_event_email(booking_id: int, event: str):
    """Email the guest about a booking lifecycle or payment event."""
    if event not in BOOKING_EMAILS:
        logger.warning("notifications: unknown booking email event %s", event)
        return
    booking = _load_booking(booking_id)
    if booking is None:
        return

    subject, template = BOOKING_EMAILS[event]
    deliver_email(
        event,
        to_email=booking.guest_email,
        subject=subject,
        body=render_booking_email(template, booking),
        booking_id=booking.pk,
    )


@shared_task(queue="emails")
def send_staff_booking_alert_email(booking_id: int):
    """Tell the staff inbox that a new booking is waiting for approval."""
    staff_email = getattr(settings, "STAFF_NOTIFICATION_EMAIL", "")
    if not staff_email:
        logger.info("notifications: STAFF_NOTIFICATION_EMAIL not set; skipping staff alert")
        return
    booking = _load_booking(booking_id)
    if booking is None:
        return

    deliver_email(
        STAFF_ALERT,
        to_email=staff_email,
        subject=f"New booking {booking_reference(booking)} awaiting approval",
        body=render_booking_email(f"{STAFF_ALERT}.txt", booking),
        booking_id=booking.pk,
    )
