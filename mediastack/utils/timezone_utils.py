#!/usr/bin/env python3
"""
Timezone utilities for MediaStack
Centralized timezone handling with proper fallbacks, plus the en-US style
formatters used for every timestamp shown to the user.

The backend stores timestamps as SQLite UTC strings ('2024-01-05 15:04:00')
without a zone marker; parse_utc_date treats those as UTC.
"""

import datetime
import os
import time
from typing import Optional, Union

import pytz

from mediastack.utils.database import get_database

TIMEZONE_KEY = "app_timezone"

# Cache for timezone to avoid repeated storage lookups
_timezone_cache = None
_cache_timestamp = 0
_cache_ttl = 5  # 5 seconds cache TTL

DateInput = Union[str, datetime.datetime, None]


def clear_timezone_cache():
    """Clear the timezone cache to force a fresh lookup."""
    global _timezone_cache, _cache_timestamp
    _timezone_cache = None
    _cache_timestamp = 0


def validate_timezone(timezone_str: str) -> bool:
    """
    Validate if a timezone string is valid using pytz.

    Args:
        timezone_str: The timezone string to validate (e.g., 'Europe/Bucharest')

    Returns:
        bool: True if valid, False otherwise
    """
    return safe_get_timezone(timezone_str) is not None


def safe_get_timezone(timezone_name: str) -> Optional[pytz.BaseTzInfo]:
    """Return the pytz timezone for timezone_name, or None if it is unknown."""
    if not timezone_name:
        return None
    try:
        return pytz.timezone(timezone_name)
    except pytz.UnknownTimeZoneError:
        return None


def get_user_timezone(use_cache: bool = True) -> pytz.BaseTzInfo:
    """
    Get the effective timezone for display.

    Fallback order:
    1. Timezone stored under app_timezone (chosen in the UI or loaded from the backend)
    2. TZ environment variable
    3. UTC

    Args:
        use_cache: If False, always read the stored timezone.

    Returns:
        pytz.BaseTzInfo: The timezone object to use (always valid)
    """
    global _timezone_cache, _cache_timestamp

    current_time = time.time()
    if use_cache and _timezone_cache and (current_time - _cache_timestamp) < _cache_ttl:
        return _timezone_cache

    tz = safe_get_timezone(get_database().get_local_value(TIMEZONE_KEY))
    if tz is None:
        tz = safe_get_timezone((os.environ.get('TZ') or '').strip())
    if tz is None:
        tz = pytz.UTC

    _timezone_cache = tz
    _cache_timestamp = current_time
    return tz


def get_timezone_name() -> str:
    """Get the timezone name as a string (e.g. 'Pacific/Honolulu', 'UTC')"""
    return str(get_user_timezone())


def set_timezone(timezone_name: str) -> bool:
    """Persist timezone_name as the display timezone. Returns False if it is unknown."""
    if not validate_timezone(timezone_name):
        return False
    get_database().set_local_value(TIMEZONE_KEY, timezone_name)
    clear_timezone_cache()

    from mediastack.utils.logger import refresh_timezone_formatters
    refresh_timezone_formatters()
    return True


def load_timezone_from_backend(client) -> Optional[str]:
    """
    Replace the stored timezone with the backend's 'timezone' setting.

    Only runs when the client holds an auth token. A 401 (not logged in yet)
    is ignored silently; other failures are logged and leave the stored
    value alone.
    """
    from mediastack.utils.api_client import ApiError
    from mediastack.utils.logger import logger

    if not client.get_token():
        return None
    try:
        settings = client.get_settings()
    except ApiError as e:
        if e.status != 401:
            logger.error(f"Failed to load timezone setting: {e}")
        return None

    timezone_name = (settings or {}).get("timezone")
    if timezone_name and set_timezone(timezone_name):
        return timezone_name
    return None


def parse_utc_date(date_str: DateInput) -> Optional[datetime.datetime]:
    """
    Parse a backend timestamp into an aware UTC datetime.

    Strings without a 'Z', '+' or 'T' marker are SQLite UTC timestamps and get
    the space replaced by 'T' and UTC appended. Returns None for empty or
    unparseable input.
    """
    if not date_str:
        return None
    if isinstance(date_str, datetime.datetime):
        parsed = date_str
    else:
        value = str(date_str).strip()
        if not ('Z' in value or '+' in value or 'T' in value):
            value = value.replace(' ', 'T', 1) + 'Z'
        if value.endswith('Z'):
            value = value[:-1] + '+00:00'
        try:
            parsed = datetime.datetime.fromisoformat(value)
        except ValueError:
            return None

    # ISO strings with a 'T' but no offset are UTC as well
    if parsed.tzinfo is None:
        parsed = pytz.UTC.localize(parsed)
    return parsed.astimezone(pytz.UTC)


def _localize(date_str: DateInput, tz=None) -> Optional[datetime.datetime]:
    parsed = parse_utc_date(date_str)
    if parsed is None:
        return None
    return parsed.astimezone(tz or get_user_timezone())


def _date_part(dt: datetime.datetime) -> str:
    return f"{dt.strftime('%b')} {dt.day}, {dt.year}"


def _time_part(dt: datetime.datetime) -> str:
    hour = dt.hour % 12 or 12
    return f"{hour}:{dt.minute:02d} {'AM' if dt.hour < 12 else 'PM'}"


def format_date(date_str: DateInput, tz=None) -> str:
    """'Jan 5, 2024' in the display timezone, '' for empty or invalid input."""
    dt = _localize(date_str, tz)
    return _date_part(dt) if dt else ''


def format_time(date_str: DateInput, tz=None) -> str:
    """'3:04 PM' in the display timezone."""
    dt = _localize(date_str, tz)
    return _time_part(dt) if dt else ''


def format_datetime(date_str: DateInput, tz=None) -> str:
    """'Jan 5, 2024, 3:04 PM' in the display timezone."""
    dt = _localize(date_str, tz)
    return f"{_date_part(dt)}, {_time_part(dt)}" if dt else ''


def format_relative_time(date_str: DateInput, now: Optional[datetime.datetime] = None, tz=None) -> str:
    """
    Short relative description: 'Just now', '5m ago', '2h ago', '3d ago'.
    A week or more in the past falls back to format_date.
    """
    parsed = parse_utc_date(date_str)
    if parsed is None:
        return ''

    now = now or datetime.datetime.now(pytz.UTC)
    diff_mins = int((now - parsed).total_seconds() // 60)
    diff_hours = diff_mins // 60
    diff_days = diff_hours // 24

    if diff_mins < 1:
        return 'Just now'
    if diff_mins < 60:
        return f"{diff_mins}m ago"
    if diff_hours < 24:
        return f"{diff_hours}h ago"
    if diff_days < 7:
        return f"{diff_days}d ago"
    return format_date(parsed, tz)
