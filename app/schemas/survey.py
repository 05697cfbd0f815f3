"""
app/schemas/survey.py

Purpose: Survey chat schemas
"""

from typing import Optional

from pydantic import BaseModel


class SurveyMessageRequest(BaseModel):
    message: Optional[str] = None

    class Config:
        json_schema_extra = {
            "example": {"message": "I work nights and I'm pretty tidy."}
        }
