"""
app/api/billing.py

Purpose: Stripe endpoints

- Subscription checkout session creation
- Webhook receiver for checkout and subscription events
"""

from typing import Optional

from fastapi import APIRouter, Depends, Header, Request

from app.core.logging import get_logger
from app.core.security import CurrentUser, get_current_user
from app.schemas.billing import CheckoutSessionRequest, CheckoutSessionResponse, WebhookAck
from app.services.billing_service import BillingService, get_billing_service

logger = get_logger(__name__)
router = APIRouter(prefix="/stripe", tags=["Billing"])


@router.post("/checkout-session", response_model=CheckoutSessionResponse)
async def create_checkout_session(
    payload: CheckoutSessionRequest,
    user: CurrentUser = Depends(get_current_user),
    billing: BillingService = Depends(get_billing_service),
):
    """Creates a Stripe subscription checkout for the price."""
    session = await billing.create_checkout_session(user, payload.price_id)
    return CheckoutSessionResponse(**session)


@router.post("/webhook", response_model=WebhookAck)
async def stripe_webhook(
    request: Request,
    stripe_signature: Optional[str] = Header(None, alias="Stripe-Signature"),
    billing: BillingService = Depends(get_billing_service),
):
    """
    Receives Stripe events. The raw body is needed for signature checks.
    """
    payload = await request.body()
    event = billing.construct_event(payload, stripe_signature)
    logger.info(f"Stripe event received: {event['type']}")

    handled = await billing.handle_event(event)
    return WebhookAck(received=True, handled=handled)
