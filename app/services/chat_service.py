"""
app/services/chat_service.py

Purpose: Survey chat persistence

- Loads or starts a user's chat document
- Saves chats conditionally on the loaded version
- Returns the most recent messages
"""

from typing import Optional

from pymongo.errors import DuplicateKeyError

from app.db.mongo import get_chats_collection
from app.models.chat import Chat
from app.core.exceptions import ConflictError, ResourceNotFoundError
from app.core.logging import get_logger, LogContext
from utils.constants import MSG_CHAT_NOT_FOUND
from utils.time_utils import now_ms

logger = get_logger(__name__)


async def get_chat(user_id: str) -> Optional[Chat]:
    """
    Retrieves the user's chat, messages in order.

    Returns:
        Chat or None if the user has not started the survey
    """
    chats = get_chats_collection()
    doc = await chats.find_one({"user_id": user_id})
    if not doc:
        return None

    chat = Chat.model_validate(doc)
    chat.messages = chat.ordered_messages()
    return chat


async def require_chat(user_id: str) -> Chat:
    chat = await get_chat(user_id)
    if chat is None:
        raise ResourceNotFoundError(MSG_CHAT_NOT_FOUND)
    return chat


async def get_or_start_chat(user_id: str) -> Chat:
    """
    Returns the stored chat or a new, unsaved one (version 0).
    """
    chat = await get_chat(user_id)
    if chat is None:
        chat = Chat(user_id=user_id)
        with LogContext(user_id=user_id, chat_id=chat.chat_id):
            logger.info("Starting new survey chat")
    return chat


async def save_chat(chat: Chat) -> Chat:
    """
    Persists the chat if nobody else saved it since it was loaded.

    Version 0 means the chat was never stored and is inserted.
    Otherwise the write only matches the version that was read.

    Returns:
        The chat with its new version

    Raises:
        ConflictError: If a concurrent request saved the chat first
    """
    with LogContext(user_id=chat.user_id, chat_id=chat.chat_id):
        chats = get_chats_collection()
        expected_version = chat.version

        chat.updated_at = now_ms()
        chat.version = expected_version + 1
        doc = chat.model_dump()

        if expected_version == 0:
            try:
                await chats.insert_one(doc)
            except DuplicateKeyError:
                chat.version = expected_version
                logger.warning("Chat created concurrently")
                raise ConflictError("Survey chat was started by another request")
        else:
            result = await chats.update_one(
                {"user_id": chat.user_id, "version": expected_version},
                {"$set": doc}
            )
            if result.matched_count == 0:
                chat.version = expected_version
                logger.warning(f"Chat version {expected_version} is stale")
                raise ConflictError("Survey chat was updated by another request")

        logger.debug(f"Chat saved at version {chat.version} with {len(chat.messages)} messages")
        return chat


async def get_recent_messages(user_id: str, limit: int) -> Chat:
    """
    Returns the chat trimmed to its last `limit` messages.

    Raises:
        ResourceNotFoundError: If no chat exists
    """
    chat = await require_chat(user_id)
    if limit > 0:
        chat.messages = chat.messages[-limit:]
    return chat
