"""
app/models/user.py

Purpose: User document model

- Identity provider uid and contact fields
- Onboarding flags and location preferences
- Square credentials and OAuth tokens
- Stripe billing identifiers
- Extracted lifestyle characteristics
"""

from datetime import datetime
from typing import Optional, Literal, Dict, Any

from pydantic import BaseModel, Field, ConfigDict


class User(BaseModel):
    model_config = ConfigDict(extra="ignore")

    user_id: str
    email: Optional[str] = None
    name: Optional[str] = None

    on_boarded: bool = False
    survey_completed: bool = False

    looking_for: Optional[Literal["renting", "roommate", "both"]] = None
    zip_code: Optional[str] = None
    phone: Optional[str] = None
    location_seeking_zip_code: Optional[str] = None

    square_app_id: Optional[str] = None
    square_app_secret: Optional[str] = None
    square_access_token: Optional[str] = None
    square_refresh_token: Optional[str] = None
    square_merchant_id: Optional[str] = None
    square_token_expires_at: Optional[datetime] = None

    customer_id: Optional[str] = None
    subscription_id: Optional[str] = None
    subscription_status: Optional[str] = None
    price_id: Optional[str] = None
    client_reference_id: Optional[str] = None

    characteristics: Dict[str, Any] = Field(default_factory=dict)

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_square_connected(self) -> bool:
        return bool(self.square_access_token and self.square_refresh_token)
