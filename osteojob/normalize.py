from datetime import datetime, timezone
from typing import Any, Optional

LEGACY_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def normalize_text(s: Optional[str]) -> str:
    if not s:
        return ""
    return " ".join(str(s).strip().lower().split())


def normalize_title(title: Optional[str]) -> str:
    return normalize_text(title)


def normalize_location(location: Optional[str]) -> str:
    return normalize_text(location)


def normalize_email(email: Optional[str]) -> str:
    if not email:
        return ""
    return str(email).strip().lower()


def legacy_key(value: Any) -> Optional[str]:
    """Render a legacy numeric id the way the store keeps it (text)."""
    if value is None or value == "":
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip() or None


def parse_legacy_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse a legacy 'YYYY-MM-DD HH:MM:SS' string as UTC; None if unparseable."""
    if not value or not isinstance(value, str):
        return None
    try:
        return datetime.strptime(value.strip(), LEGACY_TIMESTAMP_FORMAT).replace(tzinfo=timezone.utc)
    except ValueError:
        return None


def coerce_timestamp(value: Any) -> Optional[datetime]:
    """
    Coerce a stored timestamp to an aware UTC datetime.

    Accepts datetimes (naive values are taken as UTC), ISO-8601 strings as
    returned by the REST API, and the legacy export format.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(text)
        except ValueError:
            return parse_legacy_timestamp(value)
    else:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def parse_count(value: Any) -> int:
    """Parse a counter from legacy metadata; anything unusable is 0."""
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    try:
        return int(float(str(value).strip()))
    except (ValueError, OverflowError):
        return 0
