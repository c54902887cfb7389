"""Current time as a tool."""

from datetime import datetime, timedelta, timezone

from langchain_core.tools import tool

_MAX_OFFSET_MINUTES = 14 * 60


@tool
def now(utc_offset_minutes: int = 0) -> str:
    """Return the current time as an ISO 8601 string.

    Args:
        utc_offset_minutes: Fixed offset from UTC in minutes (-840 to 840), 0 for UTC

    Example:
        now(utc_offset_minutes=120) -> "2025-10-23T12:30:00.123456+02:00"
    """
    if abs(utc_offset_minutes) > _MAX_OFFSET_MINUTES:
        raise ValueError(f"utc_offset_minutes must be within ±{_MAX_OFFSET_MINUTES}")
    zone = timezone(timedelta(minutes=utc_offset_minutes))
    return datetime.now(zone).isoformat()


__all__ = ["now"]
