"""
Default configuration settings for MediaStack.

These defaults are used when initializing a fresh database and to fill in
keys that are missing from an older one.
"""

import copy
from typing import Dict, Any


# General settings default configuration
GENERAL_DEFAULTS = {
    # Backend connection
    "api_url": "",
    "api_host": "localhost",
    "api_port": 5055,
    "api_timeout": 30,
    "ssl_verify": True,
    # Poll intervals (seconds)
    "notification_poll_interval": 5,
    "notification_warmup_seconds": 1,
    "activity_poll_interval": 10,
    "downloads_poll_interval": 5,
    "notifications_max": 50,
    "recent_activity_limit": 30,
    # Logging
    "enable_debug_logs": False,
    "log_rotation_enabled": True,
    "log_max_size_mb": 50,
    "log_backup_count": 5,
    # Companion web server
    "web_host": "0.0.0.0",
    "web_port": 9705,
}

# Per-type toast durations in milliseconds (-1 = never show, 0 = persistent)
TOAST_DEFAULTS = {
    "successDuration": 5000,
    "infoDuration": 5000,
    "warningDuration": 5000,
    "errorDuration": 8000,
}


def get_default_config(section: str) -> Dict[str, Any]:
    """
    Get default configuration for a settings section.

    Args:
        section: 'general' or 'toasts'

    Returns:
        Dictionary containing default configuration for the section

    Raises:
        ValueError: If section is not recognized
    """
    defaults_map = {
        'general': GENERAL_DEFAULTS,
        'toasts': TOAST_DEFAULTS,
    }

    if section not in defaults_map:
        raise ValueError(f"Unknown settings section: {section}")

    return copy.deepcopy(defaults_map[section])
