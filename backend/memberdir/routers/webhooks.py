"""
Webhooks router — payment provider callbacks.

  POST /webhooks/stripe — employer capability changes

No bearer token: the Stripe-Signature header is the authentication.
Verified events are always acknowledged with 200, including ones we
ignore, so the provider does not retry them.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Header, Request
from pydantic import BaseModel

from memberdir.core.errors import ValidationError
from memberdir.core.unit_of_work import UnitOfWork, get_unit_of_work
from memberdir.services import accounts
from memberdir.services.payments import (
    WebhookVerificationError,
    WebhookVerifier,
    get_webhook_verifier,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Webhooks"])

Uow = Annotated[UnitOfWork, Depends(get_unit_of_work)]
Verifier = Annotated[WebhookVerifier, Depends(get_webhook_verifier)]


class WebhookAck(BaseModel):
    received: bool = True
    applied: bool


@router.post(
    "/stripe",
    response_model=WebhookAck,
    summary="Stripe webhook",
    description=(
        "checkout.session.completed grants employer capability; "
        "customer.subscription.deleted and invoice.payment_failed revoke it."
    ),
)
async def stripe_webhook(
    request: Request,
    uow: Uow,
    verifier: Verifier,
    stripe_signature: Annotated[str | None, Header()] = None,
) -> WebhookAck:
    if not stripe_signature:
        raise ValidationError("Missing stripe-signature header", reason="missing-signature")

    try:
        event = verifier.verify(await request.body(), stripe_signature)
    except WebhookVerificationError as exc:
        raise ValidationError(str(exc), reason="invalid-signature") from exc

    logger.info("Stripe webhook received: %s", event.type)
    if not event.customer_id:
        logger.error("%s: no customer id", event.type)
        return WebhookAck(applied=False)

    applied = await accounts.apply_billing_event(
        uow, event.type, event.customer_id, event.customer_email
    )
    return WebhookAck(applied=applied)
