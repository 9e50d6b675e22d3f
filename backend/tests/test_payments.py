"""Stripe webhook signature checks and event extraction."""

import hashlib
import hmac
import json
import time

import pytest

from memberdir.services.payments import (
    BillingEvent,
    StripeWebhookVerifier,
    WebhookVerificationError,
    billing_event_from_payload,
)

SECRET = "whsec_test"

CHECKOUT = {
    "id": "evt_1",
    "type": "checkout.session.completed",
    "data": {
        "object": {
            "customer": "cus_123",
            "customer_details": {"email": "ada@example.com"},
        }
    },
}


def sign(payload: str, secret: str = SECRET) -> str:
    timestamp = int(time.time())
    digest = hmac.new(
        secret.encode(), f"{timestamp}.{payload}".encode(), hashlib.sha256
    ).hexdigest()
    return f"t={timestamp},v1={digest}"


def test_valid_signature_yields_event():
    payload = json.dumps(CHECKOUT)

    event = StripeWebhookVerifier(SECRET).verify(payload.encode(), sign(payload))

    assert event == BillingEvent("checkout.session.completed", "cus_123", "ada@example.com")


def test_signature_from_another_secret_is_rejected():
    payload = json.dumps(CHECKOUT)

    with pytest.raises(WebhookVerificationError):
        StripeWebhookVerifier(SECRET).verify(payload.encode(), sign(payload, "whsec_other"))


def test_unconfigured_secret_rejects_everything():
    payload = json.dumps(CHECKOUT)

    with pytest.raises(WebhookVerificationError, match="not configured"):
        StripeWebhookVerifier("").verify(payload.encode(), sign(payload))


@pytest.mark.parametrize(
    "obj, customer, email",
    [
        ({"customer": "cus_1", "customer_email": "a@example.com"}, "cus_1", "a@example.com"),
        ({"customer": {"id": "cus_2"}}, "cus_2", None),
        ({"customer": None}, None, None),
    ],
)
def test_event_fields(obj, customer, email):
    event = billing_event_from_payload({"type": "invoice.payment_failed", "data": {"object": obj}})

    assert event.customer_id == customer
    assert event.customer_email == email


def test_malformed_event_is_rejected():
    with pytest.raises(WebhookVerificationError):
        billing_event_from_payload({"type": "invoice.payment_failed"})
