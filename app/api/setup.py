"""
app/api/setup.py

Purpose: Onboarding endpoints

- Profile setup (zip code, phone, intent, search location)
- Onboarding/survey status for routing the client
"""

from fastapi import APIRouter, Depends

from app.core.logging import get_logger, LogContext
from app.core.security import CurrentUser, get_current_user
from app.schemas.response import ApiResult
from app.schemas.setup import SetupProfileRequest, UserStatusResponse
from app.services import user_service
from utils.constants import MSG_PROFILE_SAVED
from utils.validation_utils import validate_profile

logger = get_logger(__name__)
router = APIRouter(prefix="/setup", tags=["Setup"])


@router.post("/profile", response_model=ApiResult[bool])
async def setup_profile(
    payload: SetupProfileRequest,
    user: CurrentUser = Depends(get_current_user),
):
    """
    Saves the onboarding profile and marks the user as onboarded.

    Invalid fields are reported in `messages` with success=false
    rather than as an HTTP error.
    """
    with LogContext(user_id=user.uid):
        messages = validate_profile(
            zip_code=payload.zip_code,
            phone=payload.phone,
            looking_for=payload.looking_for,
            location_seeking_zip_code=payload.location_seeking_zip_code,
        )
        if messages:
            logger.info(f"Profile rejected: {messages}")
            return ApiResult[bool](success=False, error=True, data=False, messages=messages)

        fields = {
            "zip_code": payload.zip_code,
            "phone": payload.phone,
            "looking_for": payload.looking_for,
            "location_seeking_zip_code": payload.location_seeking_zip_code,
            "on_boarded": True,
        }
        if user.email:
            fields["email"] = user.email

        await user_service.merge_user_fields(user.uid, fields)
        logger.info("Profile saved")

        return ApiResult[bool](success=True, error=False, data=True, messages=[MSG_PROFILE_SAVED])


@router.get("/status", response_model=UserStatusResponse)
async def user_status(user: CurrentUser = Depends(get_current_user)):
    """Onboarding and survey completion flags."""
    record = await user_service.require_user(user.uid)
    return UserStatusResponse(
        on_boarded=record.on_boarded,
        survey_completed=record.survey_completed,
    )
