"""
app/schemas/setup.py

Purpose: Onboarding request/response schemas
"""

from pydantic import BaseModel, Field


class SetupProfileRequest(BaseModel):
    # Plain strings: format checks happen in the service so every
    # failing field is reported as a message rather than a 422
    zip_code: str = Field(..., description="5-digit home zip code")
    phone: str = Field(..., description="US phone number")
    looking_for: str = Field(..., description="renting, roommate or both")
    location_seeking_zip_code: str = Field(..., description="5-digit zip code the user is searching in")

    class Config:
        json_schema_extra = {
            "example": {
                "zip_code": "94107",
                "phone": "(415) 555-0132",
                "looking_for": "roommate",
                "location_seeking_zip_code": "94110"
            }
        }


class UserStatusResponse(BaseModel):
    on_boarded: bool
    survey_completed: bool
