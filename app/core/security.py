"""
app/core/security.py

Purpose: Caller identity for protected endpoints

- Reads the Firebase ID token from the Authorization header
- Verifies it with firebase-admin
- Exposes the caller as a FastAPI dependency
"""

import json
from typing import Optional

import firebase_admin
from firebase_admin import auth as firebase_auth
from firebase_admin import credentials as firebase_credentials
from fastapi import Depends
from fastapi.concurrency import run_in_threadpool
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel

from app.core.config import settings
from app.core.exceptions import AuthenticationError
from app.core.logging import get_logger

logger = get_logger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)

_firebase_app: Optional[firebase_admin.App] = None


class CurrentUser(BaseModel):
    """Authenticated caller."""
    uid: str
    email: Optional[str] = None
    name: Optional[str] = None


def get_firebase_app() -> firebase_admin.App:
    """Get or initialize the Firebase app used for token verification."""
    global _firebase_app
    if _firebase_app is None:
        options = {"projectId": settings.FIREBASE_PROJECT_ID} if settings.FIREBASE_PROJECT_ID else None
        if settings.FIREBASE_CREDENTIALS:
            cred = firebase_credentials.Certificate(json.loads(settings.FIREBASE_CREDENTIALS))
            _firebase_app = firebase_admin.initialize_app(cred, options, name="roommatch")
        else:
            _firebase_app = firebase_admin.initialize_app(options=options, name="roommatch")
        logger.info("Firebase app initialized")
    return _firebase_app


async def verify_id_token(token: str) -> CurrentUser:
    """
    Verifies a Firebase ID token.

    Raises:
        AuthenticationError: If the token is invalid, expired or revoked
    """
    try:
        claims = await run_in_threadpool(
            firebase_auth.verify_id_token, token, get_firebase_app()
        )
    except (ValueError, firebase_auth.InvalidIdTokenError, firebase_auth.ExpiredIdTokenError,
            firebase_auth.RevokedIdTokenError, firebase_auth.CertificateFetchError) as e:
        logger.warning(f"ID token rejected: {type(e).__name__}")
        raise AuthenticationError("Invalid or expired authentication token")

    return CurrentUser(
        uid=claims["uid"],
        email=claims.get("email"),
        name=claims.get("name"),
    )


async def get_current_user(
    creds: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> CurrentUser:
    """FastAPI dependency: the authenticated caller."""
    if creds is None or not creds.credentials:
        raise AuthenticationError("User not authenticated")
    return await verify_id_token(creds.credentials)
