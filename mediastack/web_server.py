#!/usr/bin/env python3
"""
Web server for the MediaStack companion.
Builds the Flask app that exposes the companion's state as a JSON API.
"""

import os

from flask import Flask, jsonify

from mediastack import __version__
from mediastack.notification_manager import NotificationCenter
from mediastack.routes.activity_routes import activity_bp
from mediastack.routes.common import common_bp
from mediastack.routes.library_routes import library_bp
from mediastack.routes.notification_routes import notification_bp
from mediastack.routes.release_routes import release_bp
from mediastack.routes.report_routes import report_bp
from mediastack.routes.settings_routes import settings_bp
from mediastack.routes.toast_routes import toast_bp
from mediastack.settings_manager import load_settings
from mediastack.toast_manager import get_toast_manager
from mediastack.utils.api_client import get_api_client
from mediastack.utils.config_paths import LOG_DIR
from mediastack.utils.logger import get_logger

web_logger = get_logger("web")


def create_app(client=None, toasts=None, notifications=None, start_pollers=False):
    """Build the Flask app around one API client, toast store and notification center."""
    app = Flask(__name__)
    app.config["START_POLLERS"] = start_pollers

    client = client or get_api_client()
    app.extensions["mediastack"] = {
        "client": client,
        "toasts": toasts or get_toast_manager(),
        "notifications": notifications or NotificationCenter(client),
    }

    app.register_blueprint(common_bp)
    app.register_blueprint(release_bp)
    app.register_blueprint(toast_bp)
    app.register_blueprint(settings_bp)
    app.register_blueprint(library_bp)
    app.register_blueprint(activity_bp)
    app.register_blueprint(notification_bp)
    app.register_blueprint(report_bp)

    @app.errorhandler(404)
    def not_found(e):
        return jsonify({"error": "Not found"}), 404

    @app.errorhandler(500)
    def internal_error(e):
        web_logger.error(f"Unhandled error: {e}")
        return jsonify({"error": "Internal server error"}), 500

    @app.route("/version.txt")
    def version_txt():
        return __version__, 200, {"Content-Type": "text/plain"}

    return app


def start_web_server(app):
    """Start the web server in debug or production mode"""
    settings = load_settings("general")
    debug_mode = os.environ.get("DEBUG", "false").lower() == "true"
    host = settings.get("web_host", "0.0.0.0")
    port = int(os.environ.get("PORT", settings.get("web_port", 9705)))

    os.makedirs(LOG_DIR, exist_ok=True)

    web_logger.info(f"Starting web server on {host}:{port} (Debug: {debug_mode})")
    app.run(host=host, port=port, debug=debug_mode, use_reloader=False)
