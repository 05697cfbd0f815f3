"""
app/services/user_service.py

Purpose: User data management

- Merge-writes profile, vendor credential and billing fields
- Merges extracted survey characteristics
- User retrieval
"""

from app.db.mongo import get_users_collection
from app.models.user import User
from app.core.exceptions import ResourceNotFoundError
from app.core.logging import get_logger, LogContext
from utils.constants import MSG_USER_NOT_FOUND
from datetime import datetime
from typing import Optional, Dict, Any

logger = get_logger(__name__)


async def get_user_by_id(user_id: str) -> Optional[User]:
    """
    Retrieves a user by ID.

    Returns:
        User or None if not found
    """
    users = get_users_collection()
    doc = await users.find_one({"user_id": user_id})
    if not doc:
        return None
    return User.model_validate(doc)


async def require_user(user_id: str) -> User:
    """
    Retrieves a user by ID.

    Raises:
        ResourceNotFoundError: If the user document does not exist
    """
    user = await get_user_by_id(user_id)
    if user is None:
        raise ResourceNotFoundError(MSG_USER_NOT_FOUND)
    return user


async def merge_user_fields(user_id: str, fields: Dict[str, Any]) -> None:
    """
    Merge-writes fields onto the user document, creating it if needed.
    Fields not named here are left untouched.

    Args:
        user_id: User ID
        fields: Top-level fields to set
    """
    with LogContext(user_id=user_id):
        users = get_users_collection()
        now = datetime.utcnow()

        result = await users.update_one(
            {"user_id": user_id},
            {
                "$set": {**fields, "updated_at": now},
                "$setOnInsert": {"created_at": now},
            },
            upsert=True
        )

        if result.upserted_id is not None:
            logger.info("New user created", extra={"fields": sorted(fields)})
        else:
            logger.debug("User updated", extra={"fields": sorted(fields)})


async def merge_characteristics(user_id: str, characteristics: Dict[str, Any]) -> Dict[str, Any]:
    """
    Merges extracted characteristics key by key.
    Existing keys not present in `characteristics` are kept.

    Returns:
        The user's full characteristics after the merge
    """
    if not characteristics:
        user = await get_user_by_id(user_id)
        return user.characteristics if user else {}

    with LogContext(user_id=user_id):
        fields = {f"characteristics.{key}": value for key, value in characteristics.items()}
        await merge_user_fields(user_id, fields)

        user = await get_user_by_id(user_id)
        merged = user.characteristics if user else {}
        logger.info(f"Merged characteristics: {sorted(characteristics)}")
        return merged


async def find_user_by_customer_id(customer_id: str) -> Optional[User]:
    """Looks up a user by Stripe customer ID."""
    users = get_users_collection()
    doc = await users.find_one({"customer_id": customer_id})
    return User.model_validate(doc) if doc else None
