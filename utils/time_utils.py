"""
utils/time_utils.py

Purpose: Time helpers

- Epoch millisecond timestamps for chat documents
- Token expiry parsing
"""

import time
from datetime import datetime
from typing import Optional


def now_ms() -> int:
    """Current time as epoch milliseconds."""
    return int(time.time() * 1000)


def parse_iso_timestamp(value: Optional[str]) -> Optional[datetime]:
    """
    Parses an ISO-8601 timestamp such as Square's "2025-06-01T12:00:00Z".
    Returns None for missing or malformed values.
    """
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
