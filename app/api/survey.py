"""
app/api/survey.py

Purpose: Survey chat endpoints

- Send a message and receive the assistant's reply
- Fetch recent messages or the whole chat
"""

from fastapi import APIRouter, Depends

from app.core.config import settings
from app.core.security import CurrentUser, get_current_user
from app.models.chat import Chat
from app.schemas.survey import SurveyMessageRequest
from app.services import chat_service, survey_service
from app.services.gemini_service import GeminiService, get_gemini_service

router = APIRouter(prefix="/survey", tags=["Survey"])


@router.post("/messages", response_model=Chat)
async def send_message(
    payload: SurveyMessageRequest,
    user: CurrentUser = Depends(get_current_user),
    gemini: GeminiService = Depends(get_gemini_service),
):
    """
    Runs one survey turn and returns the updated chat.
    Send no message to open the survey.
    """
    return await survey_service.process_turn(user.uid, payload.message or "", gemini)


@router.get("/messages/recent", response_model=Chat)
async def recent_messages(user: CurrentUser = Depends(get_current_user)):
    """The chat with only its most recent messages."""
    return await chat_service.get_recent_messages(user.uid, settings.SURVEY_RECENT_MESSAGES)


@router.get("", response_model=Chat)
async def get_survey(user: CurrentUser = Depends(get_current_user)):
    """The full survey chat."""
    return await chat_service.require_chat(user.uid)
