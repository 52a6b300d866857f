"""Rental pricing: duration, base price and the upfront deposit."""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from django.conf import settings
from django.utils import timezone
from rest_framework import serializers, status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from core.exceptions import BookingError, ValidationError

DEPOSIT_PERCENTAGE = 10
_CENT = Decimal("0.01")
_ONE_DAY = timedelta(days=1)


def round2(value: Decimal) -> Decimal:
    """Round a Decimal to cents using HALF_UP."""
    return value.quantize(_CENT, rounding=ROUND_HALF_UP)


def _as_decimal(value: object) -> Decimal:
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError) as exc:
        raise ValidationError("Daily rate must be a number.", field="daily_rate") from exc


@dataclass(frozen=True)
class PricingBreakdown:
    daily_rate: Decimal
    duration_days: int
    base_price: Decimal
    deposit_percentage: int
    deposit_amount: Decimal
    total_price: Decimal
    currency: str

    def as_dict(self) -> dict[str, str | int]:
        """Money values as strings so JSON keeps the exact cents."""
        return {
            "daily_rate": str(self.daily_rate),
            "duration_days": self.duration_days,
            "base_price": str(self.base_price),
            "deposit_percentage": self.deposit_percentage,
            "deposit_amount": str(self.deposit_amount),
            "total_price": str(self.total_price),
            "currency": self.currency,
        }


def validate_rental_window(
    start_at: datetime | None,
    end_at: datetime | None,
    *,
    now: datetime | None = None,
) -> None:
    """Require both ends, end after start, and a start that is not in the past."""
    if not start_at or not end_at:
        raise ValidationError("Start and end date/times are required.")
    if start_at >= end_at:
        raise ValidationError("Start date must be before end date.", field="end_at")
    if now is None:
        now = timezone.now()
    if start_at < now:
        raise ValidationError("Start date cannot be in the past.", field="start_at")


def duration_in_days(start_at: datetime, end_at: datetime) -> int:
    """Whole rental days, any started day counts as a full one."""
    return math.ceil((end_at - start_at) / _ONE_DAY)


def deposit_for(total: Decimal) -> Decimal:
    return round2(_as_decimal(total) * DEPOSIT_PERCENTAGE / Decimal(100))


def calculate_pricing(
    daily_rate: Decimal | str | int,
    start_at: datetime,
    end_at: datetime,
    *,
    now: datetime | None = None,
) -> PricingBreakdown:
    """
    Price a rental window.

    - duration_days: ceil((end - start) / 24h)
    - base_price: daily_rate * duration_days
    - deposit_amount: DEPOSIT_PERCENTAGE of base_price
    - total_price: base_price

    The past-start check uses the time of the call, so callers re-pricing
    an existing booking (e.g. before taking a deposit) get it re-applied.
    """
    validate_rental_window(start_at, end_at, now=now)
    rate = _as_decimal(daily_rate)
    if rate < 0:
        raise ValidationError("Daily rate cannot be negative.", field="daily_rate")

    days = duration_in_days(start_at, end_at)
    base_price = round2(rate * days)
    return PricingBreakdown(
        daily_rate=round2(rate),
        duration_days=days,
        base_price=base_price,
        deposit_percentage=DEPOSIT_PERCENTAGE,
        deposit_amount=deposit_for(base_price),
        total_price=base_price,
        currency=getattr(settings, "BOOKING_CURRENCY", "USD"),
    )


class PricingQuoteSerializer(serializers.Serializer):
    vehicle = serializers.IntegerField()
    start_at = serializers.DateTimeField()
    end_at = serializers.DateTimeField()


@api_view(["POST"])
@permission_classes([AllowAny])
def pricing_quote(request):
    """Public endpoint returning the price breakdown for a vehicle and window."""
    from vehicles.services import find_vehicle

    serializer = PricingQuoteSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data
    try:
        vehicle = find_vehicle(data["vehicle"])
        breakdown = calculate_pricing(vehicle.daily_rate, data["start_at"], data["end_at"])
    except BookingError as exc:
        return Response(exc.as_payload(), status=exc.status_code)

    payload = breakdown.as_dict()
    payload["vehicle"] = vehicle.id
    payload["start_at"] = data["start_at"].isoformat()
    payload["end_at"] = data["end_at"].isoformat()
    return Response(payload, status=status.HTTP_200_OK)
