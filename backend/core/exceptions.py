"""Error taxonomy shared by the booking and payment services.

Views translate these into HTTP responses via ``status_code``; nothing in
the services retries on them.
"""

from __future__ import annotations

from typing import Iterable


class BookingError(Exception):
    """Base class for failures surfaced to API callers."""

    status_code = 400
    default_code = "error"

    def __init__(self, message: str, *, field: str | None = None):
        super().__init__(message)
        self.message = message
        self.field = field

    def as_payload(self) -> dict:
        payload = {"detail": self.message, "code": self.default_code}
        if self.field:
            payload["field"] = self.field
        return payload


class ValidationError(BookingError):
    """Malformed input: date ordering, amount mismatch, deposit above total."""

    default_code = "validation_error"


class NotFoundError(BookingError):
    """A referenced vehicle, location, booking or payment does not exist."""

    status_code = 404
    default_code = "not_found"


class PreconditionError(BookingError):
    """The entity exists but is in the wrong state for the operation."""

    status_code = 409
    default_code = "precondition_failed"


class ConflictError(BookingError):
    """Resource contention, e.g. an overlapping booking holds the vehicle."""

    status_code = 409
    default_code = "conflict"


class InvalidTransitionError(BookingError):
    """Booking status change not permitted by the transition table."""

    status_code = 409
    default_code = "invalid_transition"

    def __init__(
        self,
        current: str,
        target: str,
        allowed: Iterable[str],
        *,
        message: str | None = None,
    ):
        self.current = current
        self.target = target
        self.allowed = tuple(allowed)
        if message is None:
            allowed_label = ", ".join(self.allowed) or "none"
            message = (
                f"Cannot transition from {current} to {target}. "
                f"Allowed transitions: {allowed_label}"
            )
        super().__init__(message, field="status")

    def as_payload(self) -> dict:
        payload = super().as_payload()
        payload["current_status"] = self.current
        payload["allowed"] = list(self.allowed)
        return payload


class PaymentProviderError(BookingError):
    """The payment provider failed or timed out; callers may retry."""

    status_code = 503
    default_code = "payment_provider_unavailable"

    def __init__(self, message: str, *, retryable: bool = True):
        super().__init__(message)
        self.retryable = retryable
        if not retryable:
            self.status_code = 400
            self.default_code = "payment_failed"

    def as_payload(self) -> dict:
        payload = super().as_payload()
        payload["retryable"] = self.retryable
        return payload
