from datetime import timedelta

import pytest
from django.utils import timezone

from bookings import tasks
from bookings.models import Booking
from payments.models import Payment

pytestmark = pytest.mark.django_db


def _past_window(hours_ago: int = 48, days: int = 1):
    start = timezone.now() - timedelta(hours=hours_ago)
    return start, start + timedelta(days=days)


def test_mark_overdue_moves_late_ongoing(booking_factory, vehicle_factory):
    start, end = _past_window()
    late = booking_factory(start_at=start, end_at=end, status=Booking.Status.ONGOING)
    future_end = booking_factory(
        start_at=start,
        end_at=timezone.now() + timedelta(days=1),
        vehicle_override=vehicle_factory(),
        status=Booking.Status.ONGOING,
    )
    approved = booking_factory(
        start_at=start,
        end_at=end,
        vehicle_override=vehicle_factory(),
        status=Booking.Status.APPROVED,
    )

    assert tasks.mark_overdue_bookings() == 1

    late.refresh_from_db()
    future_end.refresh_from_db()
    approved.refresh_from_db()
    assert late.status == Booking.Status.OVERDUE
    assert future_end.status == Booking.Status.ONGOING
    assert approved.status == Booking.Status.APPROVED
    event = late.events.get()
    assert event.payload == {
        "from": "ONGOING",
        "to": "OVERDUE",
        "source": "mark_overdue_bookings",
    }


def test_mark_overdue_is_idempotent(booking_factory):
    start, end = _past_window()
    booking_factory(start_at=start, end_at=end, status=Booking.Status.ONGOING)

    assert tasks.mark_overdue_bookings() == 1
    assert tasks.mark_overdue_bookings() == 0


def test_overdue_booking_can_still_be_completed(booking_factory):
    from bookings.services import update_status

    start, end = _past_window()
    booking = booking_factory(start_at=start, end_at=end, status=Booking.Status.ONGOING)
    tasks.mark_overdue_bookings()

    update_status(booking.id, Booking.Status.COMPLETED)

    booking.refresh_from_db()
    assert booking.status == Booking.Status.COMPLETED


def test_expire_stale_pending(booking_factory, vehicle_factory, window):
    start, end = _past_window(hours_ago=2, days=3)
    stale = booking_factory(start_at=start, end_at=end)
    future_start, future_end = window()
    fresh = booking_factory(
        start_at=future_start, end_at=future_end, vehicle_override=vehicle_factory()
    )

    assert tasks.expire_stale_pending_bookings() == 1

    stale.refresh_from_db()
    fresh.refresh_from_db()
    assert stale.status == Booking.Status.CANCELLED
    assert stale.notes == tasks.EXPIRED_NOTE
    assert fresh.status == Booking.Status.PENDING


def test_expire_skips_booking_with_payment_in_flight(booking_factory, vehicle_factory):
    start, end = _past_window(hours_ago=2, days=3)
    awaiting_webhook = booking_factory(start_at=start, end_at=end)
    Payment.objects.create(
        booking=awaiting_webhook, amount=awaiting_webhook.deposit_amount, transaction_id="pi_wait"
    )
    unpaid = booking_factory(start_at=start, end_at=end, vehicle_override=vehicle_factory())

    assert tasks.expire_stale_pending_bookings() == 1

    awaiting_webhook.refresh_from_db()
    unpaid.refresh_from_db()
    assert awaiting_webhook.status == Booking.Status.PENDING
    assert unpaid.status == Booking.Status.CANCELLED
