"""
Payment webhook verification.

The payment provider (Stripe) signs every webhook delivery. A verifier
turns the raw body plus signature header into a BillingEvent, or raises
WebhookVerificationError; the router hands the event on to
accounts.apply_billing_event().

Configuration:
  STRIPE_WEBHOOK_SECRET: endpoint signing secret (whsec_...)
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Protocol

import stripe

from memberdir.core.config import settings

logger = logging.getLogger(__name__)


class WebhookVerificationError(ValueError):
    """The delivery is unsigned, badly signed, or not a readable event."""


@dataclass(frozen=True, slots=True)
class BillingEvent:
    type: str
    customer_id: str | None
    customer_email: str | None = None


class WebhookVerifier(Protocol):
    def verify(self, payload: bytes, signature: str) -> BillingEvent:
        """Return the verified event or raise WebhookVerificationError."""


def billing_event_from_payload(event: dict[str, Any]) -> BillingEvent:
    """Pull the fields apply_billing_event needs out of a provider event."""
    try:
        event_type = event["type"]
        obj = event["data"]["object"]
    except (KeyError, TypeError) as exc:
        raise WebhookVerificationError("Malformed event payload") from exc

    customer = obj.get("customer")
    if isinstance(customer, dict):
        customer = customer.get("id")

    email = obj.get("customer_email") or (obj.get("customer_details") or {}).get("email")
    return BillingEvent(type=event_type, customer_id=customer, customer_email=email)


class StripeWebhookVerifier:
    """Checks the Stripe-Signature header against the endpoint secret."""

    def __init__(self, secret: str) -> None:
        self.secret = secret

    def verify(self, payload: bytes, signature: str) -> BillingEvent:
        if not self.secret:
            raise WebhookVerificationError("STRIPE_WEBHOOK_SECRET is not configured")

        body = payload.decode("utf-8", errors="replace")
        try:
            stripe.WebhookSignature.verify_header(
                body, signature, self.secret, tolerance=stripe.Webhook.DEFAULT_TOLERANCE
            )
        except stripe.SignatureVerificationError as exc:
            logger.warning("Webhook signature verification failed: %s", exc)
            raise WebhookVerificationError("Invalid webhook signature") from exc

        try:
            event = json.loads(body)
        except ValueError as exc:
            raise WebhookVerificationError("Malformed event payload") from exc
        return billing_event_from_payload(event)


def get_webhook_verifier() -> WebhookVerifier:
    return StripeWebhookVerifier(settings.STRIPE_WEBHOOK_SECRET)
