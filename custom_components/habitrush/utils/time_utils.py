# File: utils/time_utils.py
"""Remaining-time formatting for HabitRush redemptions and validations.

Pure functions converting millisecond durations into display strings and
urgency tiers. No state, no Home Assistant imports.

Functions:
    - format_time_remaining: "{h}h {m}m", "{m}m" or "Expired"
    - get_urgency_level: critical / high / medium / low
    - format_review_countdown: "{m}m {s}s" or "{s}s"
    - is_urgent: remaining time below the urgent threshold
"""

from __future__ import annotations

from typing import Literal

UrgencyLevel = Literal["critical", "high", "medium", "low"]

# Local copies of const.py values, kept here so this module stays pure
MS_PER_SECOND = 1000
MS_PER_MINUTE = 60 * MS_PER_SECOND
MS_PER_HOUR = 60 * MS_PER_MINUTE

EXPIRED_TEXT = "Expired"

# Upper bounds (inclusive, in hours) for each tier
CRITICAL_MAX_HOURS = 1
HIGH_MAX_HOURS = 3
MEDIUM_MAX_HOURS = 12


def format_time_remaining(ms: int | float) -> str:
    """Format a remaining-time budget for display.

    Args:
        ms: Remaining milliseconds (may be zero or negative)

    Returns:
        "Expired" when nothing is left, "{h}h {m}m" when at least one full hour
        remains, otherwise "{m}m".

    Examples:
        format_time_remaining(86_400_000) → "24h 0m"
        format_time_remaining(45 * 60_000) → "45m"
        format_time_remaining(0) → "Expired"
    """
    if ms <= 0:
        return EXPIRED_TEXT

    hours = int(ms // MS_PER_HOUR)
    minutes = int((ms % MS_PER_HOUR) // MS_PER_MINUTE)

    if hours > 0:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"


def get_urgency_level(ms: int | float) -> UrgencyLevel:
    """Bucket a remaining-time budget into an urgency tier.

    Tiers use fractional hours remaining: at most 1 is critical, at most 3
    high, at most 12 medium, anything above low.

    Examples:
        get_urgency_level(90 * 60_000) → "high"
        get_urgency_level(3 * 3_600_000) → "high"
        get_urgency_level(12.5 * 3_600_000) → "low"
    """
    hours = ms / MS_PER_HOUR

    if hours <= CRITICAL_MAX_HOURS:
        return "critical"
    if hours <= HIGH_MAX_HOURS:
        return "high"
    if hours <= MEDIUM_MAX_HOURS:
        return "medium"
    return "low"


def format_review_countdown(ms: int | float) -> str:
    """Format the time left in a review window as "{m}m {s}s" or "{s}s"."""
    if ms <= 0:
        return "0s"

    minutes = int(ms // MS_PER_MINUTE)
    seconds = int((ms % MS_PER_MINUTE) // MS_PER_SECOND)

    if minutes > 0:
        return f"{minutes}m {seconds}s"
    return f"{seconds}s"


def is_urgent(ms: int | float, threshold_ms: int) -> bool:
    """Return True when the remaining time is below the threshold."""
    return ms < threshold_ms
