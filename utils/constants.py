"""
utils/constants.py

Purpose: Centralized static content

- User-facing messages
- Assistant prompts and the extraction tool schema
- Reusable enums and constants

(Prevents hardcoding across the codebase)
"""

# ============================================================
# ONBOARDING
# ============================================================

LOOKING_FOR_OPTIONS = ("renting", "roommate", "both")

MSG_INVALID_ZIP_CODE = "Zip code is not valid"
MSG_INVALID_PHONE = "Phone number is not valid"
MSG_INVALID_LOOKING_FOR = "Looking for is not valid"
MSG_INVALID_SEEKING_ZIP_CODE = "Location seeking zip code is not valid"
MSG_PROFILE_SAVED = "User created"

# ============================================================
# SQUARE
# ============================================================

SQUARE_OAUTH_SCOPES = (
    "MERCHANT_PROFILE_READ",
    "ITEMS_READ",
    "EMPLOYEES_READ",
    "ORDERS_READ",
    "PAYMENTS_READ",
    "TIMECARDS_WRITE",
)
SQUARE_STATE_COOKIE = "square_oauth_state"
SQUARE_CATALOG_SEARCH_LIMIT = 5
SQUARE_API_VERSION = "2025-04-16"
SQUARE_SETTINGS_PATH = "/dashboard/settings"

MSG_SQUARE_INVALID_CALLBACK = "Invalid callback request."
MSG_SQUARE_STATE_MISMATCH = "OAuth state mismatch."
MSG_SQUARE_TOKEN_FAILED = "Failed to retrieve access token."
MSG_SQUARE_INTERNAL_ERROR = "Internal server error."
MSG_SQUARE_NOT_CONNECTED = "Square account is not connected"

# ============================================================
# STRIPE
# ============================================================

CHECKOUT_SUCCESS_PATH = "/dashboard?success=true"
CHECKOUT_CANCEL_PATH = "/dashboard/payments?canceled=true"

SUBSCRIPTION_EVENTS = (
    "customer.subscription.created",
    "customer.subscription.updated",
    "customer.subscription.deleted",
)

# ============================================================
# SURVEY
# ============================================================

SURVEY_SYSTEM_PROMPT = """You are a helpful assistant that is trying to understand the user's needs and preferences in what they are looking for in a roommate.

Ask one friendly question at a time. Cover their daily schedule, cleanliness, noise tolerance, guests, pets, smoking, budget, move-in timing, hobbies and anything they consider a deal breaker.
Do not repeat questions the user has already answered. Keep replies to two or three sentences."""

EXTRACTION_SYSTEM_PROMPT = """You read a conversation between a roommate-matching assistant and a user.
Call record_characteristics with every preference or lifestyle fact the user has stated about themselves or their ideal roommate.
Only include values the user actually said. If the user has not shared anything new, do not call the function."""

EXTRACTION_FUNCTION_NAME = "record_characteristics"

# JSON schema for the extraction tool's arguments
CHARACTERISTICS_SCHEMA = {
    "type": "object",
    "properties": {
        "budget": {"type": "string", "description": "Monthly rent budget, e.g. '$900-1200'"},
        "move_in_date": {"type": "string", "description": "When the user wants to move in"},
        "sleep_schedule": {"type": "string", "description": "Early bird, night owl, shift work, etc."},
        "cleanliness": {"type": "string", "description": "How tidy the user is or expects a roommate to be"},
        "noise_tolerance": {"type": "string", "description": "Tolerance for noise at home"},
        "guests": {"type": "string", "description": "How often guests or partners stay over"},
        "pets": {"type": "string", "description": "Pets the user has or accepts"},
        "smoking": {"type": "string", "description": "Smoking or vaping habits and tolerance"},
        "drinking": {"type": "string", "description": "Drinking habits and tolerance"},
        "religion": {"type": "string", "description": "Religion, if the user chooses to share it"},
        "occupation": {"type": "string", "description": "Job or student status"},
        "work_from_home": {"type": "boolean", "description": "Whether the user works from home"},
        "hobbies": {"type": "array", "items": {"type": "string"}, "description": "Hobbies and interests"},
        "deal_breakers": {"type": "array", "items": {"type": "string"}, "description": "Things the user will not accept"},
    },
}

# Keys that must be known before the survey counts as complete
REQUIRED_CHARACTERISTICS = (
    "budget",
    "move_in_date",
    "sleep_schedule",
    "cleanliness",
    "pets",
    "smoking",
)

MSG_CHAT_NOT_FOUND = "Chat not found"
MSG_USER_NOT_FOUND = "User not found"
