"""
app/services/survey_service.py

Purpose: Survey turn processing

1. Load or start the user's chat
2. Append the user's message
3. Extract characteristics from the full history
4. Generate the assistant's reply from the same history
5. Append the reply, save the chat, then merge characteristics

Nothing is written until both model calls succeed.
"""

from app.models.chat import Chat
from app.services import chat_service, user_service
from app.services.gemini_service import GeminiService
from app.core.logging import get_logger, LogContext
from utils.constants import REQUIRED_CHARACTERISTICS
from utils.validation_utils import sanitize_input

logger = get_logger(__name__)


def is_survey_complete(characteristics: dict) -> bool:
    """All required characteristic keys are known."""
    return all(characteristics.get(key) not in (None, "", []) for key in REQUIRED_CHARACTERISTICS)


async def process_turn(user_id: str, message: str, gemini: GeminiService) -> Chat:
    """
    Runs one survey turn for the user.

    An empty message opens the survey: a new chat gets the assistant's
    greeting, an existing chat is returned unchanged.

    Raises:
        ExternalServiceError: If either model call fails (nothing is saved)
        ConflictError: If another turn saved the chat first
    """
    text = sanitize_input(message)
    chat = await chat_service.get_or_start_chat(user_id)

    with LogContext(user_id=user_id, chat_id=chat.chat_id):
        if not text and chat.messages:
            logger.debug("Empty message on existing chat, nothing to do")
            return chat

        extracted = {}
        if text:
            chat.append("user", text)
            extracted = await gemini.extract_characteristics(chat.messages)

        reply = await gemini.generate_reply(chat.messages)
        chat.append("assistant", reply)

        chat = await chat_service.save_chat(chat)

        if extracted:
            merged = await user_service.merge_characteristics(user_id, extracted)
            if is_survey_complete(merged):
                await user_service.merge_user_fields(user_id, {"survey_completed": True})
                logger.info("Survey completed")

        logger.info(f"Survey turn processed ({len(chat.messages)} messages)")
        return chat
