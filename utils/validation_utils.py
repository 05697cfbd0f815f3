"""
utils/validation_utils.py

Purpose: Input validation

- US zip code and phone formats
- Onboarding intent values
- Input sanitization
"""

import re
from typing import List, Optional

from utils.constants import (
    LOOKING_FOR_OPTIONS,
    MSG_INVALID_ZIP_CODE,
    MSG_INVALID_PHONE,
    MSG_INVALID_LOOKING_FOR,
    MSG_INVALID_SEEKING_ZIP_CODE,
)

# Used with fullmatch: a trailing newline must not pass
ZIP_CODE_PATTERN = re.compile(r"^\d{5}$")
PHONE_PATTERN = re.compile(r"^(\+\d{1,2}\s)?\(?\d{3}\)?[\s.-]\d{3}[\s.-]\d{4}$")


def validate_zip_code(zip_code: Optional[str]) -> bool:
    """
    Validates a 5-digit US zip code.

    Example: 94107
    """
    if not zip_code:
        return False
    return bool(ZIP_CODE_PATTERN.fullmatch(zip_code))


def validate_phone_number(phone: Optional[str]) -> bool:
    """
    Validates a US phone number.

    Accepted forms:
        555-123-4567
        (555) 123-4567
        555.123.4567
        +1 555-123-4567
    """
    if not phone:
        return False
    return bool(PHONE_PATTERN.fullmatch(phone))


def validate_looking_for(value: Optional[str]) -> bool:
    """Checks the onboarding intent is one of renting/roommate/both."""
    return value in LOOKING_FOR_OPTIONS


def validate_profile(
    zip_code: str,
    phone: str,
    looking_for: str,
    location_seeking_zip_code: str,
) -> List[str]:
    """
    Validates the onboarding profile.

    Returns:
        One message per invalid field, empty if the profile is valid
    """
    messages = []
    if not validate_zip_code(zip_code):
        messages.append(MSG_INVALID_ZIP_CODE)
    if not validate_phone_number(phone):
        messages.append(MSG_INVALID_PHONE)
    if not validate_looking_for(looking_for):
        messages.append(MSG_INVALID_LOOKING_FOR)
    if not validate_zip_code(location_seeking_zip_code):
        messages.append(MSG_INVALID_SEEKING_ZIP_CODE)
    return messages


def sanitize_input(text: Optional[str], max_length: int = 4000) -> str:
    """
    Sanitizes free-text user input.

    - Strips whitespace
    - Removes control characters (keeps newlines and tabs)
    - Truncates to max_length
    """
    if not text:
        return ""

    text = text.strip()
    text = "".join(char for char in text if char in "\n\t" or ord(char) >= 32)

    if len(text) > max_length:
        text = text[:max_length]

    return text
