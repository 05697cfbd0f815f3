"""
app/services/billing_service.py

Purpose: Stripe billing

- Creates (or reuses) the Stripe customer for a user
- Creates subscription checkout sessions
- Applies subscription webhook events to user records
"""

import json
from typing import Any, Dict, Optional

import stripe
from fastapi.concurrency import run_in_threadpool

from app.core.config import settings
from app.core.exceptions import ExternalServiceError, ValidationError
from app.core.logging import get_logger, LogContext
from app.core.security import CurrentUser
from app.services import user_service
from utils.constants import CHECKOUT_CANCEL_PATH, CHECKOUT_SUCCESS_PATH, SUBSCRIPTION_EVENTS

logger = get_logger(__name__)


class BillingService:
    """
    Stripe calls are blocking, so they run in the threadpool.
    """

    def __init__(self, api_key: Optional[str] = None, webhook_secret: Optional[str] = None):
        self.api_key = api_key or settings.STRIPE_SECRET_KEY
        self.webhook_secret = webhook_secret or settings.STRIPE_WEBHOOK_SECRET

    async def create_customer(self, user: CurrentUser) -> str:
        customer = await self._call(
            stripe.Customer.create,
            email=user.email,
            metadata={"user_id": user.uid},
        )
        return customer.id

    async def create_checkout_session(self, user: CurrentUser, price_id: str) -> Dict[str, Any]:
        """
        Starts a subscription checkout for the user.

        Returns:
            {"session_id": ..., "url": ...}
        """
        with LogContext(user_id=user.uid):
            record = await user_service.get_user_by_id(user.uid)
            customer_id = record.customer_id if record else None

            if not customer_id:
                customer_id = await self.create_customer(user)
                await user_service.merge_user_fields(user.uid, {"customer_id": customer_id})
                logger.info("Stripe customer created")

            base_url = settings.CLIENT_URL.rstrip("/")
            session = await self._call(
                stripe.checkout.Session.create,
                customer=customer_id,
                client_reference_id=user.uid,
                payment_method_types=["card"],
                mode="subscription",
                line_items=[{"price": price_id, "quantity": 1}],
                success_url=f"{base_url}{CHECKOUT_SUCCESS_PATH}",
                cancel_url=f"{base_url}{CHECKOUT_CANCEL_PATH}",
                subscription_data={"metadata": {"user_id": user.uid}},
            )

            logger.info(f"Checkout session created for price {price_id}")
            return {"session_id": session.id, "url": session.url}

    def construct_event(self, payload: bytes, signature: Optional[str]) -> Dict[str, Any]:
        """
        Verifies a webhook payload against the signing secret.

        Raises:
            ValidationError: If the signature or payload is invalid
        """
        if not self.webhook_secret:
            raise ExternalServiceError("Stripe webhook secret is not configured")
        if not signature:
            raise ValidationError("Missing Stripe-Signature header")
        try:
            stripe.Webhook.construct_event(payload, signature, self.webhook_secret)
            # Plain dicts from here on
            return json.loads(payload)
        except stripe.SignatureVerificationError:
            logger.warning("Stripe webhook signature verification failed")
            raise ValidationError("Invalid Stripe signature")
        except ValueError:
            raise ValidationError("Invalid Stripe payload")

    async def handle_event(self, event: Dict[str, Any]) -> bool:
        """
        Applies a verified event to the matching user.

        Returns:
            True if the event changed a user record
        """
        event_type = event["type"]
        obj = event["data"]["object"]

        with LogContext(event_type=event_type):
            if event_type == "checkout.session.completed":
                user_id = obj.get("client_reference_id")
                if not user_id:
                    logger.warning("Checkout session without client_reference_id")
                    return False
                fields = {
                    "client_reference_id": user_id,
                    "subscription_status": "active",
                }
                if obj.get("subscription"):
                    fields["subscription_id"] = obj["subscription"]
                if obj.get("customer"):
                    fields["customer_id"] = obj["customer"]
                await user_service.merge_user_fields(user_id, fields)
                with LogContext(user_id=user_id):
                    logger.info("Checkout completed")
                return True

            if event_type in SUBSCRIPTION_EVENTS:
                user_id = await self._subscription_owner(obj)
                if not user_id:
                    logger.warning(f"No user for subscription {obj.get('id')}")
                    return False
                status = "canceled" if event_type == "customer.subscription.deleted" else obj.get("status")
                fields = {"subscription_id": obj.get("id"), "subscription_status": status}
                price_id = _first_price_id(obj)
                if price_id:
                    fields["price_id"] = price_id
                await user_service.merge_user_fields(user_id, fields)
                with LogContext(user_id=user_id):
                    logger.info(f"Subscription status {status}")
                return True

            logger.debug("Ignoring Stripe event")
            return False

    async def _subscription_owner(self, subscription: Dict[str, Any]) -> Optional[str]:
        user_id = (subscription.get("metadata") or {}).get("user_id")
        if user_id:
            return user_id
        customer_id = subscription.get("customer")
        if customer_id:
            user = await user_service.find_user_by_customer_id(customer_id)
            if user:
                return user.user_id
        return None

    async def _call(self, fn, **params):
        if not self.api_key:
            raise ExternalServiceError("Stripe is not configured")
        try:
            return await run_in_threadpool(fn, api_key=self.api_key, **params)
        except stripe.StripeError as e:
            logger.error(f"Stripe error: {e.user_message or e}")
            raise ExternalServiceError("Payment provider error", details={"stripe_code": e.code})


def _first_price_id(subscription: Dict[str, Any]) -> Optional[str]:
    items = ((subscription.get("items") or {}).get("data")) or []
    if not items:
        return None
    return (items[0].get("price") or {}).get("id")


# Global billing service instance
_billing_service: Optional[BillingService] = None


def get_billing_service() -> BillingService:
    """Get or create the global billing service instance."""
    global _billing_service
    if _billing_service is None:
        _billing_service = BillingService()
    return _billing_service
