from datetime import timedelta

import pytest

from bookings.models import Booking
from bookings.tests.fixtures import auth_client
from notifications import tasks as notification_tasks

pytestmark = pytest.mark.django_db


def booking_payload(vehicle, location, start, end, **overrides):
    payload = {
        "vehicle": vehicle.id,
        "pickup_location": location.id,
        "return_location": location.id,
        "start_at": start.isoformat(),
        "end_at": end.isoformat(),
        "total_price": "300.00",
        "deposit_amount": "30.00",
        "guest_name": "Grace Guest",
        "guest_phone": "+15550100",
        "guest_email": "grace@example.com",
    }
    payload.update(overrides)
    return payload


def test_public_can_submit_booking(
    api_client, vehicle, location, window, monkeypatch, django_capture_on_commit_callbacks
):
    sent = []
    monkeypatch.setattr(
        notification_tasks.send_booking_event_email,
        "delay",
        lambda booking_id, event: sent.append(event),
    )
    monkeypatch.setattr(
        notification_tasks.send_staff_booking_alert_email,
        "delay",
        lambda booking_id: sent.append("staff_alert"),
    )
    start, end = window()

    with django_capture_on_commit_callbacks(execute=True):
        resp = api_client.post(
            "/api/bookings/", booking_payload(vehicle, location, start, end), format="json"
        )

    assert resp.status_code == 201, resp.data
    assert resp.data["status"] == "PENDING"
    assert resp.data["vehicle_label"] == "2022 Toyota Corolla"
    assert resp.data["pickup_location_name"] == "Downtown"
    assert sent == ["booking_received", "staff_alert"]


def test_notification_failure_does_not_fail_booking(
    api_client, vehicle, location, window, monkeypatch, django_capture_on_commit_callbacks
):
    def _broken(*args, **kwargs):
        raise RuntimeError("broker down")

    monkeypatch.setattr(notification_tasks.send_booking_event_email, "delay", _broken)
    start, end = window()

    with django_capture_on_commit_callbacks(execute=True):
        resp = api_client.post(
            "/api/bookings/", booking_payload(vehicle, location, start, end), format="json"
        )

    assert resp.status_code == 201
    assert Booking.objects.filter(pk=resp.data["id"]).exists()


def test_overlapping_submission_conflicts(api_client, vehicle, location, window, booking_factory):
    start, end = window(start_in_days=2, days=3)
    booking_factory(start_at=start, end_at=end)

    resp = api_client.post(
        "/api/bookings/",
        booking_payload(vehicle, location, start + timedelta(days=1), end),
        format="json",
    )

    assert resp.status_code == 409
    assert resp.data["detail"] == "Vehicle is not available for the selected dates"
    assert resp.data["code"] == "conflict"


def test_submission_with_reversed_dates(api_client, vehicle, location, window):
    start, end = window()

    resp = api_client.post(
        "/api/bookings/", booking_payload(vehicle, location, end, start), format="json"
    )

    assert resp.status_code == 400
    assert resp.data["field"] == "end_at"


def test_submission_with_missing_field(api_client, vehicle, location, window):
    start, end = window()
    payload = booking_payload(vehicle, location, start, end)
    del payload["vehicle"]

    resp = api_client.post("/api/bookings/", payload, format="json")

    assert resp.status_code == 400
    assert "vehicle" in resp.data


def test_staff_endpoints_require_auth(api_client):
    assert api_client.get("/api/bookings/").status_code == 401
    assert api_client.get("/api/bookings/pending/").status_code == 401


def test_customer_cannot_list(customer_user):
    client = auth_client(customer_user)

    assert client.get("/api/bookings/").status_code == 403


def test_staff_lists_and_filters(sales_user, window, booking_factory, vehicle_factory):
    start, end = window()
    booking_factory(start_at=start, end_at=end)
    approved = booking_factory(
        start_at=start,
        end_at=end,
        vehicle_override=vehicle_factory(),
        status=Booking.Status.APPROVED,
    )
    client = auth_client(sales_user)

    resp = client.get("/api/bookings/")
    assert resp.status_code == 200
    assert resp.data["count"] == 2

    resp = client.get("/api/bookings/", {"status": "APPROVED"})
    assert [row["id"] for row in resp.data["results"]] == [approved.id]

    resp = client.get("/api/bookings/", {"status": "LOST"})
    assert resp.status_code == 400


def test_retrieve_and_not_found(sales_user, window, booking_factory):
    start, end = window()
    booking = booking_factory(start_at=start, end_at=end)
    client = auth_client(sales_user)

    assert client.get(f"/api/bookings/{booking.id}/").data["id"] == booking.id
    missing = client.get("/api/bookings/999999/")
    assert missing.status_code == 404
    assert missing.data["detail"] == "Booking with ID 999999 not found"


def test_pending_queue(sales_user, window, booking_factory, vehicle_factory):
    start, end = window()
    pending = booking_factory(start_at=start, end_at=end)
    booking_factory(
        start_at=start,
        end_at=end,
        vehicle_override=vehicle_factory(),
        status=Booking.Status.CANCELLED,
    )

    resp = auth_client(sales_user).get("/api/bookings/pending/")

    assert resp.status_code == 200
    assert [row["id"] for row in resp.data] == [pending.id]


def test_approve_and_events(sales_user, window, booking_factory):
    start, end = window()
    booking = booking_factory(start_at=start, end_at=end)
    client = auth_client(sales_user)

    resp = client.post(f"/api/bookings/{booking.id}/approve/", {"notes": "ok"}, format="json")

    assert resp.status_code == 200, resp.data
    assert resp.data["status"] == "APPROVED"
    assert resp.data["approved_by"] == sales_user.id

    events = client.get(f"/api/bookings/{booking.id}/events/")
    assert events.status_code == 200
    assert events.data[0]["type"] == "status_change"
    assert events.data[0]["actor"] == sales_user.id


def test_approve_non_pending_returns_409(sales_user, window, booking_factory):
    start, end = window()
    booking = booking_factory(start_at=start, end_at=end, status=Booking.Status.COMPLETED)

    resp = auth_client(sales_user).post(f"/api/bookings/{booking.id}/approve/", {}, format="json")

    assert resp.status_code == 409
    assert resp.data["code"] == "invalid_transition"
    assert resp.data["current_status"] == "COMPLETED"


def test_reject(admin_staff, window, booking_factory):
    start, end = window()
    booking = booking_factory(start_at=start, end_at=end)

    resp = auth_client(admin_staff).post(
        f"/api/bookings/{booking.id}/reject/", {"notes": "No licence"}, format="json"
    )

    assert resp.status_code == 200
    assert resp.data["status"] == "CANCELLED"
    assert resp.data["notes"] == "No licence"


def test_status_update_and_complete(sales_user, window, booking_factory):
    start, end = window()
    booking = booking_factory(start_at=start, end_at=end, status=Booking.Status.APPROVED)
    client = auth_client(sales_user)

    resp = client.post(f"/api/bookings/{booking.id}/status/", {"status": "ONGOING"}, format="json")
    assert resp.status_code == 200
    assert resp.data["status"] == "ONGOING"

    returned = (end - timedelta(hours=1)).isoformat()
    resp = client.post(
        f"/api/bookings/{booking.id}/complete/", {"actual_return_at": returned}, format="json"
    )
    assert resp.status_code == 200
    assert resp.data["status"] == "COMPLETED"
    assert resp.data["actual_return_at"] is not None


def test_status_update_rejects_invalid_transition(sales_user, window, booking_factory):
    start, end = window()
    booking = booking_factory(start_at=start, end_at=end, status=Booking.Status.CANCELLED)

    resp = auth_client(sales_user).post(
        f"/api/bookings/{booking.id}/status/", {"status": "APPROVED"}, format="json"
    )

    assert resp.status_code == 409
    assert resp.data["allowed"] == []


def test_stats(sales_user, window, booking_factory):
    start, end = window()
    booking_factory(start_at=start, end_at=end)

    resp = auth_client(sales_user).get("/api/bookings/stats/")

    assert resp.status_code == 200
    assert resp.data["pending"] == 1
    assert resp.data["overdue"] == 0


def test_revenue_is_admin_only(admin_staff, sales_user, window, booking_factory):
    start, end = window()
    booking_factory(start_at=start, end_at=end, status=Booking.Status.COMPLETED)

    assert auth_client(sales_user).get("/api/bookings/revenue/").status_code == 403
    resp = auth_client(admin_staff).get("/api/bookings/revenue/")
    assert resp.status_code == 200
    assert resp.data == {"total_revenue": "30.00"}
