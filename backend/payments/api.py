"""Deposit payment endpoints."""

from __future__ import annotations

import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from core.exceptions import BookingError
from core.permissions import HasRole
from users.models import STAFF_ROLES

from . import reconciliation
from .serializers import CreateIntentSerializer, PaymentSerializer

logger = logging.getLogger(__name__)
IsBookingStaff = HasRole.with_roles(STAFF_ROLES)


@api_view(["POST"])
@permission_classes([AllowAny])
def create_intent(request):
    """Start the deposit payment for a PENDING booking."""
    serializer = CreateIntentSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data
    try:
        result = reconciliation.create_payment_intent(data["booking"], data["amount_cents"])
    except BookingError as exc:
        logger.info(
            "payments: create intent refused for booking %s: %s",
            data["booking"],
            exc.message,
        )
        return Response(exc.as_payload(), status=exc.status_code)
    return Response(result.as_dict(), status=status.HTTP_201_CREATED)


@api_view(["GET"])
@permission_classes([IsBookingStaff])
def payment_detail(request, payment_id: int):
    try:
        payment = reconciliation.get_payment(payment_id)
    except BookingError as exc:
        return Response(exc.as_payload(), status=exc.status_code)
    return Response(PaymentSerializer(payment).data)


@api_view(["GET"])
@permission_classes([IsBookingStaff])
def payment_for_booking(request, booking_id: int):
    try:
        payment = reconciliation.get_payment_for_booking(booking_id)
    except BookingError as exc:
        return Response(exc.as_payload(), status=exc.status_code)
    return Response(PaymentSerializer(payment).data)


@api_view(["POST"])
@permission_classes([IsBookingStaff])
def refund(request, booking_id: int):
    """Refund the booking's PAID deposit and send the booking back to PENDING."""
    try:
        payment = reconciliation.refund_payment(booking_id)
    except BookingError as exc:
        return Response(exc.as_payload(), status=exc.status_code)
    return Response(PaymentSerializer(payment).data)
