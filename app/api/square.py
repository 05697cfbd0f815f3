"""
app/api/square.py

Purpose: Square settings endpoints

- Stores Square application credentials and starts OAuth
- Reads stored credentials and connection status
- Searches the connected merchant's catalog
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response

from app.core.config import settings
from app.core.exceptions import ValidationError
from app.core.logging import get_logger, LogContext
from app.core.security import CurrentUser, get_current_user
from app.schemas.square import (
    AuthorizationUrlResponse,
    CatalogItem,
    OAuthStatusResponse,
    SquareCredentialsRequest,
    SquareCredentialsResponse,
)
from app.services import user_service
from app.services.square_service import SquareService, get_square_service
from utils.constants import MSG_SQUARE_NOT_CONNECTED, SQUARE_STATE_COOKIE

logger = get_logger(__name__)
router = APIRouter(prefix="/square", tags=["Square"])


@router.post("/oauth/start", response_model=AuthorizationUrlResponse)
async def start_oauth(
    payload: SquareCredentialsRequest,
    response: Response,
    user: CurrentUser = Depends(get_current_user),
    square: SquareService = Depends(get_square_service),
):
    """
    Saves the Square app credentials and returns the authorization URL.
    The user ID travels as OAuth `state` and in a cookie checked by the callback.
    """
    with LogContext(user_id=user.uid):
        await user_service.merge_user_fields(user.uid, {
            "square_app_id": payload.square_app_id,
            "square_app_secret": payload.square_app_secret,
        })

        authorization_url = square.build_authorization_url(payload.square_app_id, state=user.uid)
        response.set_cookie(
            SQUARE_STATE_COOKIE,
            user.uid,
            path="/",
            httponly=True,
            samesite="strict",
            secure=not settings.is_development,
        )
        logger.info("Square OAuth started")

        return AuthorizationUrlResponse(authorization_url=authorization_url)


@router.get("/credentials", response_model=SquareCredentialsResponse)
async def get_credentials(user: CurrentUser = Depends(get_current_user)):
    """Stored Square app credentials (nulls if none)."""
    record = await user_service.get_user_by_id(user.uid)
    if record is None:
        return SquareCredentialsResponse()
    return SquareCredentialsResponse(
        square_app_id=record.square_app_id,
        square_app_secret=record.square_app_secret,
    )


@router.get("/oauth/status", response_model=OAuthStatusResponse)
async def oauth_status(user: CurrentUser = Depends(get_current_user)):
    """Connected once both access and refresh tokens are stored."""
    record = await user_service.get_user_by_id(user.uid)
    return OAuthStatusResponse(is_connected=bool(record and record.is_square_connected))


@router.get("/catalog/search", response_model=Optional[List[CatalogItem]])
async def search_catalog(
    q: str = Query(..., min_length=1, description="Item name to search for"),
    user: CurrentUser = Depends(get_current_user),
    square: SquareService = Depends(get_square_service),
):
    """
    Up to five matching catalog items, or null if Square could not be queried.
    """
    record = await user_service.get_user_by_id(user.uid)
    if record is None or not record.square_access_token:
        raise ValidationError(MSG_SQUARE_NOT_CONNECTED)

    return await square.search_catalog_items(record.square_access_token, q)
