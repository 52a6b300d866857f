from datetime import datetime, timedelta, timezone as dt_timezone
from decimal import Decimal

import pytest

from core.exceptions import ValidationError
from core.pricing import (
    DEPOSIT_PERCENTAGE,
    calculate_pricing,
    deposit_for,
    duration_in_days,
    round2,
)

NOW = datetime(2030, 1, 1, 9, 0, tzinfo=dt_timezone.utc)


def _window(days: float, *, start_offset_hours: int = 24):
    start = NOW + timedelta(hours=start_offset_hours)
    return start, start + timedelta(days=days)


def test_five_days_at_one_hundred():
    start, end = _window(5)

    breakdown = calculate_pricing(Decimal("100.00"), start, end, now=NOW)

    assert breakdown.duration_days == 5
    assert breakdown.base_price == Decimal("500.00")
    assert breakdown.total_price == Decimal("500.00")
    assert breakdown.deposit_amount == Decimal("50.00")
    assert breakdown.deposit_percentage == DEPOSIT_PERCENTAGE == 10
    assert breakdown.currency == "USD"


def test_three_days_at_fifty():
    start, end = _window(3)

    breakdown = calculate_pricing("50", start, end, now=NOW)

    assert breakdown.total_price == Decimal("150.00")
    assert breakdown.deposit_amount == Decimal("15.00")


def test_started_day_counts_as_full_day():
    start, end = _window(2)
    end += timedelta(hours=1)

    assert duration_in_days(start, end) == 3
    assert calculate_pricing(Decimal("40"), start, end, now=NOW).total_price == Decimal("120.00")


def test_short_rental_is_one_day():
    start, _ = _window(1)

    assert duration_in_days(start, start + timedelta(minutes=30)) == 1


def test_deposit_rounds_half_up():
    assert deposit_for(Decimal("33.35")) == Decimal("3.34")
    assert deposit_for(Decimal("0.05")) == Decimal("0.01")
    assert round2(Decimal("2.675")) == Decimal("2.68")


def test_end_before_start_rejected():
    start, end = _window(2)

    with pytest.raises(ValidationError) as excinfo:
        calculate_pricing(Decimal("10"), end, start, now=NOW)

    assert "before end date" in excinfo.value.message
    assert excinfo.value.field == "end_at"


def test_zero_length_window_rejected():
    start, _ = _window(1)

    with pytest.raises(ValidationError):
        calculate_pricing(Decimal("10"), start, start, now=NOW)


def test_past_start_rejected_at_call_time():
    start, end = _window(2, start_offset_hours=-1)

    with pytest.raises(ValidationError) as excinfo:
        calculate_pricing(Decimal("10"), start, end, now=NOW)

    assert excinfo.value.field == "start_at"


def test_negative_rate_rejected():
    start, end = _window(1)

    with pytest.raises(ValidationError):
        calculate_pricing(Decimal("-1"), start, end, now=NOW)


def test_breakdown_serializes_money_as_strings():
    start, end = _window(2)

    payload = calculate_pricing(Decimal("19.99"), start, end, now=NOW).as_dict()

    assert payload["total_price"] == "39.98"
    assert payload["deposit_amount"] == "4.00"
    assert payload["duration_days"] == 2


@pytest.mark.django_db
def test_quote_endpoint_prices_vehicle(api_client, vehicle, window):
    start, end = window(start_in_days=3, days=5)

    resp = api_client.post(
        "/api/pricing/quote/",
        {"vehicle": vehicle.id, "start_at": start.isoformat(), "end_at": end.isoformat()},
        format="json",
    )

    assert resp.status_code == 200, resp.data
    assert resp.data["vehicle"] == vehicle.id
    assert resp.data["total_price"] == "500.00"
    assert resp.data["deposit_amount"] == "50.00"


@pytest.mark.django_db
def test_quote_endpoint_unknown_vehicle(api_client, window):
    start, end = window()

    resp = api_client.post(
        "/api/pricing/quote/",
        {"vehicle": 999999, "start_at": start.isoformat(), "end_at": end.isoformat()},
        format="json",
    )

    assert resp.status_code == 404
    assert resp.data["code"] == "not_found"


@pytest.mark.django_db
def test_quote_endpoint_rejects_reversed_window(api_client, vehicle, window):
    start, end = window()

    resp = api_client.post(
        "/api/pricing/quote/",
        {"vehicle": vehicle.id, "start_at": end.isoformat(), "end_at": start.isoformat()},
        format="json",
    )

    assert resp.status_code == 400
    assert resp.data["code"] == "validation_error"
