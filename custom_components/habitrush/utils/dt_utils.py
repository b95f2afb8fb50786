# File: utils/dt_utils.py
"""Date and time utilities for HabitRush.

Pure Python date/time functions with ZERO Home Assistant dependencies.
All functions here can be unit tested without Home Assistant mocking.

Server payloads mix plain dates ("2026-01-18"), ISO datetimes with a "Z"
suffix and ISO datetimes with offsets. Everything is normalized here so the
engines only ever see `date` and timezone-aware `datetime` objects.

Functions:
    - set_default_timezone / get_default_timezone: Configure local timezone
    - dt_today_local: Get today's date in local timezone
    - dt_now_utc: Get current datetime in UTC
    - dt_now_iso: Get current UTC datetime as ISO string
    - as_local: Convert an aware datetime to local timezone
    - dt_parse: Parse an ISO datetime string into an aware datetime
    - dt_parse_date: Parse a date or datetime string into a calendar date
    - dt_ms_until: Milliseconds from now until a target datetime
"""

from __future__ import annotations

from datetime import UTC, date, datetime
import logging
from zoneinfo import ZoneInfo

from dateutil import parser as dt_parser

# Module-level logger (no HA dependency)
_LOGGER = logging.getLogger(__name__)

# Default timezone - can be overridden by caller
DEFAULT_TIME_ZONE: ZoneInfo = ZoneInfo("UTC")


# ==============================================================================
# Timezone Configuration
# ==============================================================================


def set_default_timezone(tz: ZoneInfo) -> None:
    """Set the default timezone for all dt_utils functions.

    Call this during integration setup to configure the user's timezone.

    Args:
        tz: ZoneInfo object representing the default timezone
    """
    global DEFAULT_TIME_ZONE  # noqa: PLW0603
    DEFAULT_TIME_ZONE = tz


def get_default_timezone() -> ZoneInfo:
    """Get the current default timezone."""
    return DEFAULT_TIME_ZONE


# ==============================================================================
# Current Date/Time Functions
# ==============================================================================


def dt_today_local(tz: ZoneInfo | None = None) -> date:
    """Return today's date in local timezone as a `datetime.date`.

    Args:
        tz: Optional timezone override. Uses DEFAULT_TIME_ZONE if not provided.

    Returns:
        Today's date in the specified timezone.
    """
    tz_info = tz or DEFAULT_TIME_ZONE
    return datetime.now(tz_info).date()


def dt_now_utc() -> datetime:
    """Return the current datetime in UTC (timezone-aware)."""
    return datetime.now(UTC)


def dt_now_iso() -> str:
    """Return the current UTC datetime as an ISO 8601 string."""
    return dt_now_utc().isoformat()


def as_local(dt_obj: datetime, tz: ZoneInfo | None = None) -> datetime:
    """Convert a datetime to local timezone.

    Naive datetimes are assumed to be UTC, which is what the server sends.

    Args:
        dt_obj: Datetime object
        tz: Optional timezone override. Uses DEFAULT_TIME_ZONE if not provided.

    Returns:
        Datetime in local timezone
    """
    tz_info = tz or DEFAULT_TIME_ZONE
    if dt_obj.tzinfo is None:
        dt_obj = dt_obj.replace(tzinfo=UTC)
    return dt_obj.astimezone(tz_info)


# ==============================================================================
# Parsing
# ==============================================================================


def dt_parse(dt_str: str | datetime | None) -> datetime | None:
    """Parse an ISO 8601 datetime string into a timezone-aware datetime.

    Accepts "2026-01-18T23:30:00Z", "2026-01-18T23:30:00.123+02:00" and plain
    dates (interpreted as midnight UTC). Naive values are assumed to be UTC.

    Args:
        dt_str: ISO string, datetime, or None

    Returns:
        Aware datetime, or None if the input is empty or unparseable.
    """
    if dt_str is None or dt_str == "":
        return None
    if isinstance(dt_str, datetime):
        parsed = dt_str
    else:
        try:
            parsed = dt_parser.isoparse(dt_str)
        except (ValueError, TypeError, OverflowError):
            _LOGGER.debug("DEBUG: Could not parse datetime value '%s'", dt_str)
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def dt_parse_date(date_str: str | date | None) -> date | None:
    """Parse a calendar date from a date or datetime string.

    Completion and habit dates are calendar dates. When the server sends a
    full datetime, only its date part is kept (no timezone shift), matching
    how the day was recorded.

    Args:
        date_str: "YYYY-MM-DD", an ISO datetime string, a date, or None

    Returns:
        datetime.date or None if parsing fails.
    """
    if date_str is None:
        return None
    if isinstance(date_str, datetime):
        return date_str.date()
    if isinstance(date_str, date):
        return date_str
    if not isinstance(date_str, str) or not date_str:
        return None
    try:
        return date.fromisoformat(date_str[:10])
    except ValueError:
        _LOGGER.debug("DEBUG: Could not parse date value '%s'", date_str)
        return None


def dt_ms_until(target: str | datetime | None, now: datetime | None = None) -> int:
    """Return whole milliseconds from now until target, floored at zero.

    Args:
        target: Target datetime or ISO string
        now: Reference time (defaults to current UTC time)

    Returns:
        Non-negative milliseconds; 0 when target is missing or in the past.
    """
    target_dt = dt_parse(target)
    if target_dt is None:
        return 0
    reference = now or dt_now_utc()
    delta_ms = int((target_dt - reference).total_seconds() * 1000)
    return max(0, delta_ms)
