"""
Utility helper functions for safe data handling.
"""
from datetime import datetime, timezone
from typing import Any, Optional


def safe_str(value: Any, default: str = "") -> str:
    """
    Safely convert value to string, handling None.

    Args:
        value: Any value to convert
        default: Default string if value is None

    Returns:
        String representation or default
    """
    if value is None:
        return default
    return str(value)


def optional_str(value: Any) -> Optional[str]:
    """Like safe_str, but empty or missing values become None."""
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def safe_upper(value: Any) -> str:
    """Safely uppercase a value, handling None."""
    if value is None:
        return ""
    return str(value).upper()


def optional_int(value: Any) -> Optional[int]:
    """
    Convert value to int, returning None for missing or invalid values.

    Scores and minutes are absent before kickoff; callers treat None as
    "not shown" rather than zero.
    """
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (ValueError, TypeError):
        return None


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse an ISO 8601 timestamp from the upstream API.

    Accepts a trailing 'Z'. Naive values are assumed to be UTC.

    Returns:
        Timezone-aware datetime, or None if value is missing or unparsable
    """
    if not value or not isinstance(value, str):
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
