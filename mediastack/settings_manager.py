#!/usr/bin/env python3
"""
Settings manager for MediaStack
Handles loading, saving, and providing general settings from the SQLite database
"""

import os
import logging
import time
from typing import Dict, Any, Optional

settings_logger = logging.getLogger("settings_manager")

from mediastack.utils.database import get_database

KNOWN_SECTIONS = ["general"]

# Add a settings cache with timestamps to avoid excessive database reads
settings_cache = {}  # Format: {section: {'timestamp': timestamp, 'data': settings_dict}}
CACHE_TTL = 5  # Cache time-to-live in seconds

# Saving any of these rebuilds the log handlers
LOG_ROTATION_KEYS = {"log_rotation_enabled", "log_max_size_mb", "log_backup_count"}

# Environment variables that override stored settings
ENV_OVERRIDES = {
    "api_url": "MEDIASTACK_API_URL",
}


def clear_cache(section=None):
    """Clear the settings cache for a specific section or all sections."""
    global settings_cache
    if section:
        if section in settings_cache:
            settings_logger.debug(f"Clearing cache for {section}")
            settings_cache.pop(section, None)
    else:
        settings_logger.debug("Clearing entire settings cache")
        settings_cache = {}


def load_default_settings(section: str) -> Dict[str, Any]:
    """Load default settings for a section from default_settings module."""
    try:
        from mediastack.default_settings import get_default_config
        return get_default_config(section)
    except ValueError as e:
        settings_logger.error(f"Failed to load default settings for {section}: {e}")
        return {}


def _apply_env_overrides(settings: Dict[str, Any]) -> Dict[str, Any]:
    for key, env_name in ENV_OVERRIDES.items():
        value = os.environ.get(env_name, "").strip()
        if value:
            settings[key] = value
    return settings


def load_settings(section="general", use_cache=True):
    """
    Load settings for a section from database

    Args:
        section: The settings section to load
        use_cache: Whether to use the cached settings if available and recent

    Returns:
        Dict containing the settings, with defaults filled in and
        environment overrides applied
    """
    global settings_cache

    if section not in KNOWN_SECTIONS:
        settings_logger.warning(f"load_settings called with unexpected section: {section}")

    if use_cache and section in settings_cache:
        cache_entry = settings_cache[section]
        cache_age = time.time() - cache_entry.get('timestamp', 0)

        if cache_age < CACHE_TTL:
            settings_logger.debug(f"Using cached settings for {section} (age: {cache_age:.1f}s)")
            return dict(cache_entry['data'])
        settings_logger.debug(f"Cache expired for {section} (age: {cache_age:.1f}s)")

    try:
        db = get_database()
        current_settings = db.get_general_settings()
    except Exception as e:
        settings_logger.error(f"Database error loading {section}: {e}")
        raise

    # Add missing keys from defaults without overwriting existing values
    default_settings = load_default_settings(section)
    missing = {key: value for key, value in default_settings.items() if key not in current_settings}
    if missing:
        if current_settings:
            settings_logger.info(f"Added missing default keys to {section} settings: {sorted(missing)}")
        else:
            settings_logger.info(f"Created default {section} settings in database")
        current_settings.update(missing)
        db.save_general_settings(missing)

    current_settings = _apply_env_overrides(current_settings)

    settings_cache[section] = {
        'timestamp': time.time(),
        'data': current_settings
    }

    return dict(current_settings)


def save_settings(section: str, settings_data: Dict[str, Any]) -> bool:
    """Save settings for a section to database."""
    if section not in KNOWN_SECTIONS:
        settings_logger.error(f"Attempted to save settings for unknown section: {section}")
        return False

    # Poll intervals and limits must stay positive
    for field in ("api_port", "api_timeout", "notification_poll_interval",
                  "activity_poll_interval", "downloads_poll_interval",
                  "notifications_max", "log_max_size_mb", "log_backup_count"):
        if field in settings_data:
            value = settings_data[field]
            if isinstance(value, (int, float)) and value < 1:
                settings_logger.warning(f"{field} was {value}, automatically set to minimum allowed value of 1")
                settings_data[field] = 1

    try:
        get_database().save_general_settings(settings_data)
    except Exception as e:
        settings_logger.error(f"Database error saving {section}: {e}")
        return False

    clear_cache(section)

    if LOG_ROTATION_KEYS.intersection(settings_data):
        from mediastack.utils.logger import refresh_log_handlers
        refresh_log_handlers()

    # Log formatters and date helpers read the timezone from settings
    from mediastack.utils.timezone_utils import clear_timezone_cache
    clear_timezone_cache()

    return True


def get_setting(section: str, key: str, default: Optional[Any] = None) -> Any:
    """Get a specific setting value."""
    settings = load_settings(section)
    return settings.get(key, default)


def get_advanced_setting(setting_name, default_value=None):
    """
    Get an advanced setting from general settings.

    Args:
        setting_name: The name of the advanced setting to retrieve
        default_value: The default value to return if the setting is not found

    Returns:
        The value of the advanced setting, or default_value if not found
    """
    return get_setting("general", setting_name, default_value)


def get_ssl_verify_setting():
    """
    Get the SSL verification setting from general settings.

    Returns:
        bool: True if SSL verification is enabled, False otherwise
    """
    return get_advanced_setting("ssl_verify", True)


def initialize_database():
    """Initialize database with default configurations if needed"""
    db = get_database()
    db.ensure_database_exists()
    load_settings("general", use_cache=False)
    settings_logger.info("Database initialization completed successfully")
