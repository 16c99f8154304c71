"""
Datetime utilities for the salon's local calendar.
Booking dates are wall-clock dates in the salon timezone; audit timestamps
are timezone-aware UTC.
"""

from datetime import date, datetime, time, timezone
from typing import Optional, Union
from zoneinfo import ZoneInfo


def utc_now() -> datetime:
    """
    Get current UTC time as timezone-aware datetime.

    Returns:
        Current UTC datetime with timezone info
    """
    return datetime.now(timezone.utc)


def salon_today(tz_name: Optional[str] = None) -> date:
    """
    Current calendar date at the salon.

    Args:
        tz_name: IANA timezone name, settings.timezone when omitted

    Returns:
        Today's date in the salon timezone
    """
    if tz_name is None:
        from config import settings

        tz_name = settings.timezone
    return datetime.now(ZoneInfo(tz_name)).date()


def parse_iso_datetime(iso_string: str) -> datetime:
    """
    Parse ISO format datetime string to timezone-aware datetime.
    Handles both 'Z' suffix and '+00:00' timezone formats.

    Raises:
        ValueError: If datetime string cannot be parsed
    """
    normalized = iso_string.replace("Z", "+00:00")
    try:
        dt = datetime.fromisoformat(normalized)
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return dt
    except ValueError as e:
        raise ValueError(f"Invalid datetime string: {iso_string}") from e


def parse_user_date(text: str) -> Optional[date]:
    """
    Parse a date typed by a user.

    Accepts DD/MM/YYYY (the Brazilian convention) and ISO YYYY-MM-DD.
    Returns None instead of raising for anything else.
    """
    text = (text or "").strip()
    for fmt in ("%d/%m/%Y", "%Y-%m-%d"):
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return None


def normalize_time(value: Union[str, time]) -> str:
    """
    Normalize a time-of-day to HH:MM.

    Stored times come back from the database as HH:MM:SS; seconds are
    dropped so "09:00:00" and "09:00" compare equal. A single-digit hour
    ("9:00") is accepted too.

    Raises:
        ValueError: If the value is not a time of day
    """
    if isinstance(value, time):
        return value.strftime("%H:%M")
    text = str(value).strip()
    try:
        parsed = time.fromisoformat(text)
    except ValueError:
        try:
            parsed = datetime.strptime(text, "%H:%M").time()
        except ValueError as e:
            raise ValueError(f"Invalid time string: {value}") from e
    return parsed.strftime("%H:%M")
