"""Stripe payment helpers for booking deposits."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

import stripe
from django.conf import settings
from rest_framework import status
from rest_framework.decorators import api_view, authentication_classes, permission_classes
from rest_framework.response import Response

from core.exceptions import PaymentProviderError

logger = logging.getLogger(__name__)
IDEMPOTENCY_VERSION = "v1"
AUTOMATIC_PAYMENT_METHODS_CONFIG = {"enabled": True}


class StripeConfigurationError(PaymentProviderError):
    """STRIPE_SECRET_KEY is missing or rejected by Stripe."""

    default_code = "payment_provider_misconfigured"

    def __init__(self, message: str):
        super().__init__(message, retryable=False)
        self.status_code = 503
        self.default_code = type(self).default_code


class StripeTransientError(PaymentProviderError):
    """Network, rate-limit or Stripe-side failure; the caller may try again."""

    def __init__(self, message: str):
        super().__init__(message, retryable=True)


class StripePaymentError(PaymentProviderError):
    """Permanent payment failure, e.g. a declined card or a rejected request."""

    def __init__(self, message: str):
        super().__init__(message, retryable=False)


@dataclass(frozen=True)
class ProviderIntent:
    transaction_id: str
    client_secret: str


def _get_stripe_api_key() -> str:
    api_key = getattr(settings, "STRIPE_SECRET_KEY", "")
    if not api_key:
        raise StripeConfigurationError("Deposit payments are not configured.")
    return api_key


_http_client: stripe.HTTPClient | None = None


def _configure_stripe() -> None:
    """Set the API key, a bounded HTTP timeout and limited network retries."""
    global _http_client
    stripe.api_key = _get_stripe_api_key()
    stripe.max_network_retries = getattr(settings, "STRIPE_MAX_NETWORK_RETRIES", 2)
    timeout = getattr(settings, "STRIPE_TIMEOUT_SECONDS", 10.0)
    if _http_client is None or getattr(_http_client, "_timeout", None) != timeout:
        _http_client = stripe.RequestsClient(timeout=timeout)
        stripe.default_http_client = _http_client


def _to_cents(amount: Decimal) -> int:
    """Dollars to whole cents, HALF_UP like every other money value."""
    cents = (amount * Decimal("100")).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return int(cents)


def _handle_stripe_error(exc: stripe.StripeError) -> None:
    """Re-raise a Stripe SDK error as a PaymentProviderError subclass."""
    if isinstance(exc, stripe.CardError):
        message = exc.user_message or "Your card was declined."
        raise StripePaymentError(message) from exc
    if isinstance(
        exc,
        (
            stripe.RateLimitError,
            stripe.APIConnectionError,
            stripe.APIError,
        ),
    ):
        raise StripeTransientError("Payment provider unavailable, please retry.") from exc
    if isinstance(exc, (stripe.AuthenticationError, stripe.PermissionError)):
        raise StripeConfigurationError("Payment provider rejected our credentials.") from exc
    if isinstance(exc, stripe.InvalidRequestError):
        raise StripePaymentError(exc.user_message or "Payment request was rejected.") from exc
    raise StripePaymentError(exc.user_message or "Payment failed.") from exc


def create_payment_intent(
    amount_cents: int,
    metadata: dict[str, str],
    *,
    currency: str | None = None,
    idempotency_key: str | None = None,
) -> ProviderIntent:
    """Create an automatic-capture PaymentIntent for a booking deposit."""
    if amount_cents <= 0:
        raise StripePaymentError("Payment amount must be greater than zero.")
    _configure_stripe()
    env_label = settings.STRIPE_ENV or "dev"
    currency_code = (currency or getattr(settings, "BOOKING_CURRENCY", "USD")).lower()
    try:
        intent = stripe.PaymentIntent.create(
            amount=amount_cents,
            currency=currency_code,
            automatic_payment_methods={**AUTOMATIC_PAYMENT_METHODS_CONFIG},
            capture_method="automatic",
            metadata={**metadata, "env": env_label},
            idempotency_key=idempotency_key,
        )
    except stripe.StripeError as exc:
        logger.warning(
            "payments: Stripe PaymentIntent create failed",
            extra={"metadata": metadata, "error": str(exc)},
        )
        _handle_stripe_error(exc)
    return ProviderIntent(transaction_id=intent.id, client_secret=intent.client_secret)


def refund_payment_intent(transaction_id: str) -> str:
    """Refund the full captured amount of a PaymentIntent; returns the refund id."""
    _configure_stripe()
    try:
        refund = stripe.Refund.create(
            payment_intent=transaction_id,
            idempotency_key=f"refund:{transaction_id}:{IDEMPOTENCY_VERSION}",
        )
    except stripe.StripeError as exc:
        logger.warning(
            "payments: Stripe refund failed",
            extra={"transaction_id": transaction_id, "error": str(exc)},
        )
        _handle_stripe_error(exc)
    return refund.id


def construct_event(payload: bytes, signature: str):
    """Verify the Stripe signature header and parse the webhook payload."""
    return stripe.Webhook.construct_event(
        payload=payload,
        sig_header=signature,
        secret=getattr(settings, "STRIPE_WEBHOOK_SECRET", ""),
    )


@api_view(["POST"])
@authentication_classes([])
@permission_classes([])
def stripe_webhook(request):
    """Handle Stripe webhook callbacks for booking deposit PaymentIntents."""
    from payments.reconciliation import handle_payment_succeeded

    sig_header = request.META.get("HTTP_STRIPE_SIGNATURE", "")
    try:
        event = construct_event(request.body, sig_header)
    except ValueError:
        return Response(status=status.HTTP_400_BAD_REQUEST)
    except stripe.SignatureVerificationError:
        logger.warning("stripe_webhook: signature verification failed")
        return Response(status=status.HTTP_400_BAD_REQUEST)

    event_type = event.get("type")
    data_object = event.get("data", {}).get("object", {}) or {}

    if event_type == "payment_intent.succeeded":
        handle_payment_succeeded(data_object)
    else:
        logger.info("stripe_webhook: ignoring event type %s", event_type)

    return Response(status=status.HTTP_200_OK)
