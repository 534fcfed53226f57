#!/usr/bin/env python3
"""
Shared route helpers plus the health and auth endpoints.
"""

from flask import Blueprint, current_app, jsonify, request

from mediastack import __version__
from mediastack.utils.api_client import ApiError
from mediastack.utils.logger import get_logger

web_logger = get_logger("web")

common_bp = Blueprint("common", __name__)


# --- Shared state ---

def get_client():
    return current_app.extensions["mediastack"]["client"]


def get_toasts():
    return current_app.extensions["mediastack"]["toasts"]


def get_notifications():
    return current_app.extensions["mediastack"]["notifications"]


# --- Request helpers ---

def arg_bool(name, default=False):
    value = request.args.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def arg_int(name, default=None):
    value = request.args.get(name)
    if value in (None, ""):
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"Query parameter '{name}' must be an integer")


def json_body():
    return request.get_json(silent=True) or {}


def backend_error(e, action):
    """JSON response for a failed backend call, keeping the backend's status when it has one."""
    web_logger.error(f"Backend call failed while trying to {action}: {e}")
    status = e.status if isinstance(e, ApiError) and e.status and 400 <= e.status < 600 else 502
    message = e.message if isinstance(e, ApiError) and e.message else f"Failed to {action}"
    return jsonify({"error": message}), status


# --- Health / auth ---

@common_bp.route("/api/health", methods=["GET"])
def health():
    """Companion status plus whatever the backend reports about itself."""
    try:
        backend = get_client().get_health()
        backend_ok = True
    except ApiError as e:
        web_logger.warning(f"Backend health check failed: {e}")
        backend = {"error": str(e)}
        backend_ok = False
    return jsonify({
        "status": "ok",
        "version": __version__,
        "backend_ok": backend_ok,
        "backend": backend,
        "authenticated": bool(get_client().get_token()),
    })


@common_bp.route("/api/auth/login", methods=["POST"])
def login():
    data = json_body()
    username = (data.get("username") or "").strip()
    password = data.get("password") or ""
    if not username or not password:
        return jsonify({"error": "Username and password are required"}), 400
    try:
        result = get_client().login(username, password)
    except ApiError as e:
        return backend_error(e, "log in")

    notifications = get_notifications()
    if current_app.config.get("START_POLLERS"):
        notifications.start()
    web_logger.info(f"User '{username}' logged in")
    return jsonify({"success": True, "user": result.get("user")})


@common_bp.route("/api/auth/logout", methods=["POST"])
def logout():
    get_client().clear_auth()
    get_notifications().stop()
    return jsonify({"success": True})
