from decimal import Decimal
from types import SimpleNamespace

import pytest
import stripe

from payments import stripe_api


def _raise(exc):
    def _inner(*args, **kwargs):
        raise exc

    return _inner


def test_to_cents_rounds_half_up():
    assert stripe_api._to_cents(Decimal("50.00")) == 5000
    assert stripe_api._to_cents(Decimal("10.005")) == 1001
    assert stripe_api._to_cents(Decimal("0.01")) == 1


def test_create_payment_intent_passes_metadata(monkeypatch, settings):
    settings.STRIPE_ENV = "test"
    captured = {}

    def _create(**kwargs):
        captured.update(kwargs)
        return SimpleNamespace(id="pi_123", client_secret="pi_123_secret")

    monkeypatch.setattr(stripe.PaymentIntent, "create", _create)

    intent = stripe_api.create_payment_intent(
        5000, {"booking_id": "7", "kind": "booking_deposit"}, currency="USD"
    )

    assert intent == stripe_api.ProviderIntent("pi_123", "pi_123_secret")
    assert captured["amount"] == 5000
    assert captured["currency"] == "usd"
    assert captured["capture_method"] == "automatic"
    assert captured["metadata"] == {"booking_id": "7", "kind": "booking_deposit", "env": "test"}
    assert stripe.api_key == "sk_test_fleet"


def test_create_payment_intent_rejects_zero():
    with pytest.raises(stripe_api.StripePaymentError):
        stripe_api.create_payment_intent(0, {})


def test_missing_secret_key(settings):
    settings.STRIPE_SECRET_KEY = ""

    with pytest.raises(stripe_api.StripeConfigurationError) as excinfo:
        stripe_api.create_payment_intent(100, {})

    assert excinfo.value.status_code == 503
    assert excinfo.value.as_payload()["code"] == "payment_provider_misconfigured"


@pytest.mark.parametrize(
    "error,expected",
    [
        (stripe.APIConnectionError("network down"), stripe_api.StripeTransientError),
        (stripe.RateLimitError("slow down"), stripe_api.StripeTransientError),
        (stripe.AuthenticationError("bad key"), stripe_api.StripeConfigurationError),
        (stripe.InvalidRequestError("No such intent", "payment_intent"), stripe_api.StripePaymentError),
    ],
)
def test_stripe_errors_are_mapped(monkeypatch, error, expected):
    monkeypatch.setattr(stripe.PaymentIntent, "create", _raise(error))

    with pytest.raises(expected):
        stripe_api.create_payment_intent(100, {"booking_id": "1"})


def test_card_error_keeps_user_message(monkeypatch):
    monkeypatch.setattr(
        stripe.PaymentIntent,
        "create",
        _raise(stripe.CardError("Your card has insufficient funds.", "card", "card_declined")),
    )

    with pytest.raises(stripe_api.StripePaymentError) as excinfo:
        stripe_api.create_payment_intent(100, {})

    assert excinfo.value.message == "Your card has insufficient funds."
    assert excinfo.value.retryable is False
    assert excinfo.value.status_code == 400


def test_transient_error_is_retryable(monkeypatch):
    monkeypatch.setattr(stripe.PaymentIntent, "create", _raise(stripe.APIConnectionError("x")))

    with pytest.raises(stripe_api.StripeTransientError) as excinfo:
        stripe_api.create_payment_intent(100, {})

    assert excinfo.value.retryable is True
    assert excinfo.value.status_code == 503


def test_refund_uses_stable_idempotency_key(monkeypatch):
    captured = {}

    def _create(**kwargs):
        captured.update(kwargs)
        return SimpleNamespace(id="re_1")

    monkeypatch.setattr(stripe.Refund, "create", _create)

    assert stripe_api.refund_payment_intent("pi_9") == "re_1"
    assert captured == {"payment_intent": "pi_9", "idempotency_key": "refund:pi_9:v1"}


def test_refund_error_is_mapped(monkeypatch):
    monkeypatch.setattr(stripe.Refund, "create", _raise(stripe.APIConnectionError("x")))

    with pytest.raises(stripe_api.StripeTransientError):
        stripe_api.refund_payment_intent("pi_9")
