"""Shared fixtures for booking, vehicle and payment tests."""

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal
from typing import Callable

import pytest
from django.contrib.auth import get_user_model
from django.utils import timezone
from rest_framework.test import APIClient

from bookings.models import Booking
from vehicles.models import Location, Vehicle

User = get_user_model()


def _create_user(*, username: str, role: str) -> User:
    return User.objects.create_user(
        username=username,
        password="testpass",
        email=f"{username}@example.com",
        role=role,
    )


@pytest.fixture
def admin_staff():
    return _create_user(username="admin-staff", role=User.Role.ADMIN)


@pytest.fixture
def sales_user():
    return _create_user(username="sales", role=User.Role.SALES)


@pytest.fixture
def customer_user():
    return _create_user(username="customer", role=User.Role.CUSTOMER)


@pytest.fixture
def location():
    return Location.objects.create(name="Downtown", address="1 Main St", city="Springfield")


@pytest.fixture
def other_location():
    return Location.objects.create(name="Airport", address="99 Runway Rd", city="Springfield")


@pytest.fixture
def vehicle_factory(location) -> Callable[..., Vehicle]:
    counter = {"n": 0}

    def _create_vehicle(**overrides) -> Vehicle:
        counter["n"] += 1
        n = counter["n"]
        fields = {
            "make": "Toyota",
            "model": "Corolla",
            "year": 2022,
            "license_plate": f"TEST-{n:03d}",
            "vin": f"VIN{n:014d}",
            "daily_rate": Decimal("100.00"),
            "location": location,
            "status": Vehicle.Status.AVAILABLE,
        }
        fields.update(overrides)
        return Vehicle.objects.create(**fields)

    return _create_vehicle


@pytest.fixture
def vehicle(vehicle_factory):
    return vehicle_factory()


@pytest.fixture
def window():
    """Return (start, end) a given number of days from now, on whole hours."""
    base = timezone.now().replace(minute=0, second=0, microsecond=0)

    def _window(start_in_days: int = 2, days: int = 3):
        start = base + timedelta(days=start_in_days)
        return start, start + timedelta(days=days)

    return _window


@pytest.fixture
def booking_factory(vehicle, location) -> Callable[..., Booking]:
    def _create_booking(
        *,
        start_at,
        end_at,
        vehicle_override: Vehicle | None = None,
        status=Booking.Status.PENDING,
        total_price: Decimal = Decimal("300.00"),
        deposit_amount: Decimal | None = None,
        **extra_fields,
    ) -> Booking:
        if deposit_amount is None:
            deposit_amount = (total_price / 10).quantize(Decimal("0.01"))
        return Booking.objects.create(
            vehicle=vehicle_override or vehicle,
            pickup_location=location,
            return_location=location,
            start_at=start_at,
            end_at=end_at,
            total_price=total_price,
            deposit_amount=deposit_amount,
            status=status,
            **extra_fields,
        )

    return _create_booking


def auth_client(user) -> APIClient:
    client = APIClient()
    token_resp = client.post(
        "/api/users/token/",
        {"username": user.username, "password": "testpass"},
        format="json",
    )
    token = token_resp.data["access"]
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {token}")
    return client
