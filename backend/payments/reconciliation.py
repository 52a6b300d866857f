"""
Reconcile Stripe deposit payments with booking state.

Every handler locks the Payment row for its read-check-write sequence and
is idempotent on the Stripe PaymentIntent id, so webhook redeliveries and
out-of-order events are safe to replay.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from django.conf import settings
from django.db import transaction
from django.db.models import Q
from django.utils import timezone

from bookings.domain import record_event, set_status
from bookings.models import Booking, BookingEvent
from core.exceptions import NotFoundError, PreconditionError, ValidationError
from core.pricing import round2, validate_rental_window
from notifications.dispatch import notify

from . import stripe_api
from .models import Payment

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IntentResult:
    client_secret: str
    transaction_id: str
    amount_cents: int
    currency: str
    booking_id: int

    def as_dict(self) -> dict[str, Any]:
        return {
            "client_secret": self.client_secret,
            "transaction_id": self.transaction_id,
            "amount_cents": self.amount_cents,
            "currency": self.currency,
            "booking_id": self.booking_id,
        }


def _find_booking(booking_id: int) -> Booking:
    try:
        return Booking.objects.get(pk=booking_id)
    except (Booking.DoesNotExist, ValueError, TypeError):
        raise NotFoundError(f"Booking with ID {booking_id} not found", field="booking")


def create_payment_intent(booking_id: int, amount_cents: int) -> IntentResult:
    """
    Start a deposit payment for a PENDING booking that has not started yet.

    The client-supplied amount must match the booking deposit exactly.
    Nothing is written when the Stripe call fails.
    """
    booking = _find_booking(booking_id)
    if booking.status != Booking.Status.PENDING:
        raise PreconditionError(
            f"Payment can only be started for PENDING bookings; booking is {booking.status}",
            field="booking",
        )
    validate_rental_window(booking.start_at, booking.end_at)
    expected_cents = stripe_api._to_cents(booking.deposit_amount)
    if amount_cents != expected_cents:
        raise ValidationError(
            f"Payment amount mismatch: expected {expected_cents} cents, got {amount_cents}",
            field="amount_cents",
        )

    currency = getattr(settings, "BOOKING_CURRENCY", "USD")
    intent = stripe_api.create_payment_intent(
        amount_cents,
        {"booking_id": str(booking.pk), "kind": "booking_deposit"},
        currency=currency,
    )

    with transaction.atomic():
        Payment.objects.create(
            booking=booking,
            amount=round2(booking.deposit_amount),
            currency=currency,
            status=Payment.Status.PENDING,
            transaction_id=intent.transaction_id,
        )
        Booking.objects.filter(pk=booking.pk).update(
            stripe_payment_id=intent.transaction_id,
            updated_at=timezone.now(),
        )

    logger.info(
        "payments: created intent %s for booking %s",
        intent.transaction_id,
        booking.pk,
        extra={"booking_id": booking.pk, "amount_cents": amount_cents},
    )
    return IntentResult(
        client_secret=intent.client_secret,
        transaction_id=intent.transaction_id,
        amount_cents=amount_cents,
        currency=currency,
        booking_id=booking.pk,
    )


def _payment_for_intent(transaction_id: str, metadata: Mapping[str, Any]) -> Optional[Payment]:
    """
    Locked Payment for the intent id.

    A PENDING payment of metadata.booking_id that never got an intent id
    is claimed for this intent. Payments tied to another intent are never
    matched.
    """
    if not transaction_id:
        return None
    payment = Payment.objects.select_for_update().filter(transaction_id=transaction_id).first()
    if payment is not None:
        return payment

    booking_id = metadata.get("booking_id")
    if not booking_id:
        return None
    try:
        payment = (
            Payment.objects.select_for_update()
            .filter(booking_id=int(booking_id), status=Payment.Status.PENDING)
            .filter(Q(transaction_id__isnull=True) | Q(transaction_id=""))
            .order_by("-created_at", "-id")
            .first()
        )
    except (TypeError, ValueError):
        return None
    if payment is not None:
        payment.transaction_id = transaction_id
        payment.save(update_fields=["transaction_id", "updated_at"])
    return payment


def handle_payment_succeeded(intent: Mapping[str, Any]) -> Optional[Payment]:
    """
    Apply a payment_intent.succeeded event.

    Unknown intents are logged and ignored; a payment that is already PAID
    is left alone. A booking still PENDING is approved by the payment; a
    booking that has moved on keeps its status.
    """
    transaction_id = intent.get("id") or ""
    metadata = intent.get("metadata") or {}

    with transaction.atomic():
        payment = _payment_for_intent(transaction_id, metadata)
        if payment is None:
            logger.warning(
                "stripe_webhook: no payment for intent %s",
                transaction_id,
                extra={"booking_id": metadata.get("booking_id")},
            )
            return None
        if payment.status != Payment.Status.PENDING:
            logger.info(
                "stripe_webhook: payment %s already %s; ignoring redelivery",
                payment.pk,
                payment.status,
            )
            return payment

        payment.status = Payment.Status.PAID
        payment.paid_at = timezone.now()
        payment.save(update_fields=["status", "paid_at", "updated_at"])

        booking = Booking.objects.select_for_update().get(pk=payment.booking_id)
        record_event(
            booking,
            BookingEvent.Type.PAYMENT,
            {"transaction_id": payment.transaction_id, "status": Payment.Status.PAID},
        )
        if booking.status == Booking.Status.PENDING:
            set_status(booking, Booking.Status.APPROVED, source="payment_succeeded")
        else:
            logger.info(
                "payments: booking %s is %s; payment %s recorded without status change",
                booking.pk,
                booking.status,
                payment.pk,
            )
        notify("payment_confirmed", booking)

    logger.info(
        "payments: payment %s marked PAID",
        payment.pk,
        extra={"booking_id": payment.booking_id, "transaction_id": payment.transaction_id},
    )
    return payment


def get_payment(payment_id: int) -> Payment:
    try:
        return Payment.objects.select_related("booking").get(pk=payment_id)
    except (Payment.DoesNotExist, ValueError, TypeError):
        raise NotFoundError(f"Payment with ID {payment_id} not found", field="payment")


def get_payment_for_booking(booking_id: int) -> Payment:
    """Latest payment recorded for the booking."""
    try:
        payment = (
            Payment.objects.filter(booking_id=booking_id).order_by("-created_at", "-id").first()
        )
    except (ValueError, TypeError):
        payment = None
    if payment is None:
        raise NotFoundError(f"Payment for booking {booking_id} not found", field="booking")
    return payment


def refund_payment(booking_id: int) -> Payment:
    """
    Refund the latest PAID payment of a booking.

    The booking always returns to PENDING afterwards so staff review it
    again, whatever status it had reached.
    """
    with transaction.atomic():
        latest = get_payment_for_booking(booking_id)
        payment = Payment.objects.select_for_update().get(pk=latest.pk)
        if payment.status != Payment.Status.PAID:
            raise PreconditionError(
                f"Only PAID payments can be refunded; payment is {payment.status}",
                field="payment",
            )

        stripe_api.refund_payment_intent(payment.transaction_id)

        payment.status = Payment.Status.REFUNDED
        payment.refunded_at = timezone.now()
        payment.save(update_fields=["status", "refunded_at", "updated_at"])

        booking = Booking.objects.select_for_update().get(pk=payment.booking_id)
        record_event(
            booking,
            BookingEvent.Type.PAYMENT,
            {"transaction_id": payment.transaction_id, "status": Payment.Status.REFUNDED},
        )
        if booking.status != Booking.Status.PENDING:
            set_status(booking, Booking.Status.PENDING, source="refund")
        notify("payment_refunded", booking)

    logger.info(
        "payments: refunded payment %s for booking %s",
        payment.pk,
        payment.booking_id,
    )
    return payment
