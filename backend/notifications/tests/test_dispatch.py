import pytest

from notifications import dispatch
from notifications import tasks as notification_tasks

pytestmark = pytest.mark.django_db


@pytest.fixture
def queued(monkeypatch):
    calls = []
    monkeypatch.setattr(
        notification_tasks.send_booking_event_email,
        "delay",
        lambda booking_id, event: calls.append((event, booking_id)),
    )
    monkeypatch.setattr(
        notification_tasks.send_staff_booking_alert_email,
        "delay",
        lambda booking_id: calls.append(("staff_alert", booking_id)),
    )
    return calls


def test_notify_waits_for_commit(queued, window, booking_factory, django_capture_on_commit_callbacks):
    start, end = window()
    booking = booking_factory(start_at=start, end_at=end)

    with django_capture_on_commit_callbacks(execute=False) as callbacks:
        dispatch.notify("booking_approved", booking)

    assert queued == []
    assert len(callbacks) == 1
    callbacks[0]()
    assert queued == [("booking_approved", booking.id)]


def test_received_also_alerts_staff(queued, window, booking_factory, django_capture_on_commit_callbacks):
    start, end = window()
    booking = booking_factory(start_at=start, end_at=end)

    with django_capture_on_commit_callbacks(execute=True):
        dispatch.notify("booking_received", booking)

    assert queued == [("booking_received", booking.id), ("staff_alert", booking.id)]


def test_unknown_event_is_ignored(queued, window, booking_factory, django_capture_on_commit_callbacks):
    start, end = window()
    booking = booking_factory(start_at=start, end_at=end)

    with django_capture_on_commit_callbacks(execute=True) as callbacks:
        dispatch.notify("booking_exploded", booking)

    assert callbacks == []
    assert queued == []


def test_queue_failure_is_swallowed(monkeypatch, window, booking_factory, django_capture_on_commit_callbacks):
    def _broken(*args, **kwargs):
        raise ConnectionError("broker unreachable")

    monkeypatch.setattr(notification_tasks.send_booking_event_email, "delay", _broken)
    start, end = window()
    booking = booking_factory(start_at=start, end_at=end)

    with django_capture_on_commit_callbacks(execute=True):
        dispatch.notify("payment_confirmed", booking)
