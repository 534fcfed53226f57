#!/usr/bin/env python3
"""
Timezone and general settings API
"""

from flask import Blueprint, jsonify

from mediastack import settings_manager
from mediastack.default_settings import GENERAL_DEFAULTS
from mediastack.routes.common import get_client, json_body, web_logger
from mediastack.utils import timezone_utils

settings_bp = Blueprint("settings", __name__)


@settings_bp.route("/api/timezone", methods=["GET"])
def get_timezone():
    return jsonify({"timezone": timezone_utils.get_timezone_name()})


@settings_bp.route("/api/timezone", methods=["PUT"])
def set_timezone():
    timezone_name = (json_body().get("timezone") or "").strip()
    if not timezone_utils.set_timezone(timezone_name):
        return jsonify({"error": f"Invalid timezone: {timezone_name}"}), 400
    web_logger.info(f"Display timezone set to {timezone_name}")
    return jsonify({"success": True, "timezone": timezone_name})


@settings_bp.route("/api/timezone/sync", methods=["POST"])
def sync_timezone():
    """Take the timezone from the backend's settings."""
    synced = timezone_utils.load_timezone_from_backend(get_client())
    return jsonify({"synced": bool(synced), "timezone": timezone_utils.get_timezone_name()})


@settings_bp.route("/api/settings", methods=["GET"])
def get_settings():
    return jsonify(settings_manager.load_settings("general"))


@settings_bp.route("/api/settings", methods=["PUT"])
def save_settings():
    data = json_body()
    unknown = sorted(set(data) - set(GENERAL_DEFAULTS))
    if unknown:
        return jsonify({"error": f"Unknown settings: {', '.join(unknown)}"}), 400
    if not settings_manager.save_settings("general", data):
        return jsonify({"error": "Failed to save settings"}), 500
    return jsonify(settings_manager.load_settings("general", use_cache=False))
