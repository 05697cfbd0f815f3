"""
app/schemas/square.py

Purpose: Square settings, OAuth and catalog schemas
"""

from typing import Optional

from pydantic import BaseModel, Field


class SquareCredentialsRequest(BaseModel):
    square_app_id: str = Field(..., min_length=1, description="Square application ID")
    square_app_secret: str = Field(..., min_length=1, description="Square application secret")


class SquareCredentialsResponse(BaseModel):
    square_app_id: Optional[str] = None
    square_app_secret: Optional[str] = None


class AuthorizationUrlResponse(BaseModel):
    authorization_url: str


class OAuthStatusResponse(BaseModel):
    is_connected: bool


class SquareTokens(BaseModel):
    """Normalized response of Square's ObtainToken endpoint."""
    access_token: str
    refresh_token: Optional[str] = None
    merchant_id: Optional[str] = None
    expires_at: Optional[str] = None


class CatalogItem(BaseModel):
    id: str
    name: Optional[str] = None
    description: Optional[str] = None
    image: str = ""
