"""
trok/api/stripe.py

Purpose: Stripe routes

- Webhook receiver (signature verified when a secret is configured)
- Connected account lookup
"""

import json

from fastapi import APIRouter, Depends, Header, Request

from trok.core.config import settings
from trok.core.exceptions import ValidationError
from trok.core.logging import get_logger
from trok.services import user_service
from trok.services.stripe_service import StripeService, construct_event, get_stripe_service

logger = get_logger(__name__)
router = APIRouter()


async def handle_account_updated(account: dict) -> None:
    """Mirrors the connected account's capability flags onto the user."""
    if not account.get("id"):
        logger.warning("account.updated without an account id")
        return

    updated = await user_service.update_user_by_stripe_account(
        account.get("id"),
        {
            "stripe_charges_enabled": bool(account.get("charges_enabled")),
            "stripe_payouts_enabled": bool(account.get("payouts_enabled")),
            "stripe_details_submitted": bool(account.get("details_submitted")),
        }
    )
    if not updated:
        logger.warning(f"account.updated for unknown account {account.get('id')}")


EVENT_HANDLERS = {
    "account.updated": handle_account_updated,
}


@router.post("/webhook")
async def stripe_webhook(
    request: Request,
    stripe_signature: str = Header(default=None, alias="Stripe-Signature")
):
    payload = await request.body()

    if settings.STRIPE_WEBHOOK_SECRET:
        event = construct_event(payload, stripe_signature, settings.STRIPE_WEBHOOK_SECRET)
    else:
        logger.warning("STRIPE_WEBHOOK_SECRET not set; accepting unverified webhook")
        try:
            event = json.loads(payload)
        except ValueError:
            raise ValidationError("Webhook payload is not valid JSON")

    if not isinstance(event, dict):
        raise ValidationError("Webhook payload is not an event object")

    event_type = event.get("type")
    handler = EVENT_HANDLERS.get(event_type)

    if handler:
        data = event.get("data") if isinstance(event.get("data"), dict) else {}
        account = data.get("object") if isinstance(data.get("object"), dict) else {}
        await handler(account)
        logger.info(f"📨 Stripe event handled: {event_type} ({event.get('id')})")
    else:
        logger.info(f"Unhandled Stripe event type: {event_type}")

    return {"received": True}


@router.get("/account/{account_id}")
async def get_account(account_id: str, stripe: StripeService = Depends(get_stripe_service)):
    return await stripe.retrieve_account(account_id)
