"""
app/api/square_callback.py

Purpose: Square OAuth redirect endpoint

When the merchant approves access, Square redirects here with:
1. `code` to exchange for tokens
2. `state` carrying the user ID (checked against the state cookie)
3. or `error` / `error_description` when access was denied
"""

import json
from typing import Optional

from fastapi import APIRouter, Cookie, Depends, Query
from fastapi.responses import PlainTextResponse, RedirectResponse

from app.core.exceptions import ExternalServiceError
from app.core.logging import get_logger, LogContext
from app.services import user_service
from app.services.square_service import SquareService, SquareTokenError, get_square_service
from utils.constants import (
    MSG_SQUARE_INTERNAL_ERROR,
    MSG_SQUARE_INVALID_CALLBACK,
    MSG_SQUARE_STATE_MISMATCH,
    MSG_SQUARE_TOKEN_FAILED,
    SQUARE_SETTINGS_PATH,
    SQUARE_STATE_COOKIE,
)
from utils.time_utils import parse_iso_timestamp

logger = get_logger(__name__)
router = APIRouter()


@router.get("/api/square-callback")
async def square_callback(
    code: Optional[str] = Query(None, description="Authorization code"),
    state: Optional[str] = Query(None, description="User ID sent with the authorization request"),
    error: Optional[str] = Query(None),
    error_description: Optional[str] = Query(None),
    state_cookie: Optional[str] = Cookie(None, alias=SQUARE_STATE_COOKIE),
    square: SquareService = Depends(get_square_service),
):
    """
    Exchanges the authorization code and stores the merchant's tokens.

    Returns:
        302 to the settings page on success, plain-text 400/500 otherwise
    """
    # A code wins over an error sent alongside it
    if not code or not state:
        if error:
            reason = error_description or error
            logger.error(f"Square OAuth error: {reason}")
            return PlainTextResponse(f"OAuth error: {json.dumps(reason)}", status_code=400)
        return PlainTextResponse(MSG_SQUARE_INVALID_CALLBACK, status_code=400)

    if state_cookie is not None and state_cookie != state:
        logger.warning("Square OAuth state does not match cookie")
        return PlainTextResponse(MSG_SQUARE_STATE_MISMATCH, status_code=400)

    with LogContext(user_id=state):
        user = await user_service.get_user_by_id(state)
        if user is None or not user.square_app_id or not user.square_app_secret:
            logger.warning("Square callback for user without stored credentials")
            return PlainTextResponse(MSG_SQUARE_INVALID_CALLBACK, status_code=400)

        try:
            tokens = await square.exchange_code(user.square_app_id, user.square_app_secret, code)
        except SquareTokenError:
            return PlainTextResponse(MSG_SQUARE_TOKEN_FAILED, status_code=400)
        except ExternalServiceError as e:
            logger.error(f"Error during token exchange: {e.message}")
            return PlainTextResponse(MSG_SQUARE_INTERNAL_ERROR, status_code=500)

        await user_service.merge_user_fields(state, {
            "square_access_token": tokens.access_token,
            "square_refresh_token": tokens.refresh_token,
            "square_merchant_id": tokens.merchant_id,
            "square_token_expires_at": parse_iso_timestamp(tokens.expires_at),
        })
        logger.info("Square account connected", extra={"merchant_id": tokens.merchant_id})

    response = RedirectResponse(SQUARE_SETTINGS_PATH, status_code=302)
    response.delete_cookie(SQUARE_STATE_COOKIE, path="/")
    return response
