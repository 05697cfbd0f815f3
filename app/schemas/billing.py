"""
app/schemas/billing.py

Purpose: Stripe checkout schemas
"""

from typing import Optional

from pydantic import BaseModel, Field


class CheckoutSessionRequest(BaseModel):
    price_id: str = Field(..., min_length=1, description="Stripe price ID, e.g. price_123")


class CheckoutSessionResponse(BaseModel):
    session_id: str
    url: Optional[str] = None


class WebhookAck(BaseModel):
    received: bool = True
    handled: bool = False
