#!/usr/bin/env python3
"""
Notification API
List, refresh and dismiss the notifications built from backend activity.
"""

from flask import Blueprint, jsonify

from mediastack.routes.common import get_notifications

notification_bp = Blueprint("notifications", __name__)


def _notification_id(raw):
    # Activity ids are integers, but ids arrive from the URL as strings
    return int(raw) if raw.isdigit() else raw


def _listing(center):
    return {"notifications": center.notifications, "unread_count": center.unread_count}


@notification_bp.route("/api/notifications", methods=["GET"])
def list_notifications():
    return jsonify(_listing(get_notifications()))


@notification_bp.route("/api/notifications/refresh", methods=["POST"])
def refresh_notifications():
    center = get_notifications()
    new_count = center.refresh()
    result = _listing(center)
    result["new"] = new_count
    return jsonify(result)


@notification_bp.route("/api/notifications/<notification_id>/read", methods=["POST"])
def mark_notification_read(notification_id):
    if not get_notifications().mark_as_read(_notification_id(notification_id)):
        return jsonify({"error": "Notification not found"}), 404
    return jsonify({"success": True})


@notification_bp.route("/api/notifications/read-all", methods=["POST"])
def mark_all_read():
    center = get_notifications()
    center.mark_all_as_read()
    return jsonify(_listing(center))


@notification_bp.route("/api/notifications/<notification_id>", methods=["DELETE"])
def clear_notification(notification_id):
    if not get_notifications().clear_notification(_notification_id(notification_id)):
        return jsonify({"error": "Notification not found"}), 404
    return jsonify({"success": True})


@notification_bp.route("/api/notifications", methods=["DELETE"])
def clear_all_notifications():
    get_notifications().clear_all()
    return jsonify({"success": True})
