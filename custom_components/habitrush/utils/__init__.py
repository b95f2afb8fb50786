# File: utils/__init__.py
"""Pure Python utilities for HabitRush.

This module contains pure Python functions with ZERO Home Assistant dependencies.
All functions here can be unit tested without Home Assistant mocking.

Submodules:
    - dt_utils: Date/time parsing and timezone helpers for server payloads
    - time_utils: Remaining-time display strings and urgency tiers

Usage:
    from . import dt_utils
    from .time_utils import format_time_remaining
"""

from . import dt_utils, time_utils

__all__ = ["dt_utils", "time_utils"]
