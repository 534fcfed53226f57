#!/usr/bin/env python3
"""
Logging configuration for MediaStack
One main log plus a separate log file per component (release search, library,
notifications, activity, toasts, web). Timestamps are written in the user's
timezone and DEBUG records are dropped unless debug logs are enabled.
"""

import datetime
import logging
import logging.handlers
import sys
import time
from typing import Dict, Optional

from mediastack.utils.config_paths import LOG_DIR

MAIN_LOG_FILE = LOG_DIR / "mediastack.log"

COMPONENT_LOG_FILES = {
    "release_search": LOG_DIR / "release_search.log",
    "library": LOG_DIR / "library.log",
    "notifications": LOG_DIR / "notifications.log",
    "activity": LOG_DIR / "activity.log",
    "toasts": LOG_DIR / "toasts.log",
    "web": LOG_DIR / "web.log",
}

DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

logger: Optional[logging.Logger] = None
component_loggers: Dict[str, logging.Logger] = {}


def get_rotation_settings():
    """
    Get log rotation settings from settings manager.
    Imports locally to avoid circular dependencies.
    """
    try:
        import mediastack.settings_manager as settings_manager
        settings = settings_manager.load_settings("general")
        return {
            "enabled": settings.get("log_rotation_enabled", True),
            "max_bytes": int(settings.get("log_max_size_mb", 50)) * 1024 * 1024,
            "backup_count": int(settings.get("log_backup_count", 5)),
        }
    except Exception as e:
        print(f"[Logger] Error loading log settings: {e}")
        return {
            "enabled": True,
            "max_bytes": 50 * 1024 * 1024,
            "backup_count": 5,
        }


class LocalTimeFormatter(logging.Formatter):
    """Formatter that stamps records in the user's selected timezone"""

    def formatTime(self, record, datefmt=None):
        try:
            from mediastack.utils.timezone_utils import get_user_timezone
            user_tz = get_user_timezone()
            ct = datetime.datetime.fromtimestamp(record.created, tz=user_tz)
            return f"{ct.strftime(datefmt or DATE_FORMAT)} {user_tz}"
        except Exception:
            # Settings may not be readable yet during early startup
            ct = time.localtime(record.created)
            return time.strftime(datefmt or DATE_FORMAT, ct)


class DebugLogsFilter(logging.Filter):
    """Suppresses DEBUG records when enable_debug_logs is off in settings."""

    def filter(self, record: logging.LogRecord) -> bool:
        if record.levelno != logging.DEBUG:
            return True
        try:
            from mediastack.settings_manager import get_advanced_setting
            return bool(get_advanced_setting("enable_debug_logs", False))
        except Exception:
            return True


def _formatter_for(log_name: str) -> LocalTimeFormatter:
    return LocalTimeFormatter(f"%(asctime)s - {log_name} - %(levelname)s - %(message)s",
                              datefmt=DATE_FORMAT)


def _configure(target: logging.Logger, log_name: str, log_file) -> logging.Logger:
    for handler in list(target.handlers):
        handler.close()
    target.handlers.clear()
    target.setLevel(logging.DEBUG)
    target.propagate = False

    console_handler = logging.StreamHandler(sys.stdout)

    rotation_settings = get_rotation_settings()
    if rotation_settings["enabled"]:
        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=rotation_settings["max_bytes"],
            backupCount=rotation_settings["backup_count"]
        )
    else:
        file_handler = logging.FileHandler(log_file)

    formatter = _formatter_for(log_name)
    for handler in (console_handler, file_handler):
        handler.setLevel(logging.DEBUG)
        handler.addFilter(DebugLogsFilter())
        handler.setFormatter(formatter)
        target.addHandler(handler)
    return target


def setup_main_logger():
    """Set up the main MediaStack logger."""
    global logger
    logger = _configure(logging.getLogger("mediastack"), "mediastack", MAIN_LOG_FILE)
    return logger


def get_logger(component: str) -> logging.Logger:
    """
    Get or create a logger for a component.

    Args:
        component: One of COMPONENT_LOG_FILES (e.g. 'library', 'toasts').

    Returns:
        The component logger, or the main logger if the component is unknown.
    """
    if component not in COMPONENT_LOG_FILES:
        if logger is None:
            setup_main_logger()
        return logger

    log_name = f"mediastack.{component}"
    if log_name in component_loggers:
        return component_loggers[log_name]

    component_logger = _configure(logging.getLogger(log_name), log_name,
                                  COMPONENT_LOG_FILES[component])
    component_loggers[log_name] = component_logger
    return component_logger


def refresh_timezone_formatters():
    """Re-apply formatters after the timezone setting changed."""
    if logger:
        for handler in logger.handlers:
            handler.setFormatter(_formatter_for("mediastack"))
    for log_name, component_logger in component_loggers.items():
        for handler in component_logger.handlers:
            handler.setFormatter(_formatter_for(log_name))


def refresh_log_handlers():
    """
    Recreate log handlers with new rotation settings.
    Should be called when log settings change.
    """
    global component_loggers
    setup_main_logger()
    current = list(component_loggers.keys())
    component_loggers = {}
    for log_name in current:
        get_logger(log_name.split('.')[-1])


logger = setup_main_logger()
