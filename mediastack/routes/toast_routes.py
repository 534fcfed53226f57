"""Toast API: list, raise and dismiss toasts, and edit per-type durations."""

from flask import Blueprint, jsonify

from mediastack.toast_manager import TOAST_TYPES
from mediastack.routes.common import get_toasts, json_body

toast_bp = Blueprint("toasts", __name__)


@toast_bp.route("/api/toasts", methods=["GET"])
def list_toasts():
    return jsonify({"toasts": get_toasts().toasts})


@toast_bp.route("/api/toasts", methods=["POST"])
def add_toast():
    data = json_body()
    toast_type = data.get("type", "info")
    message = (data.get("message") or "").strip()
    if toast_type not in TOAST_TYPES:
        return jsonify({"error": f"Unknown toast type: {toast_type}"}), 400
    if not message:
        return jsonify({"error": "message is required"}), 400

    duration = data.get("duration")
    if duration is not None and (not isinstance(duration, int) or duration < -1):
        return jsonify({"error": "duration must be -1, 0 or a positive number of ms"}), 400

    toast_id = get_toasts().add_toast(
        toast_type, message,
        duration=duration,
        progress=data.get("progress"),
        dismissible=bool(data.get("dismissible", True)),
    )
    return jsonify({"id": toast_id}), 201


@toast_bp.route("/api/toasts/<toast_id>", methods=["DELETE"])
def remove_toast(toast_id):
    if not get_toasts().remove_toast(toast_id):
        return jsonify({"error": "Toast not found"}), 404
    return jsonify({"success": True})


@toast_bp.route("/api/toasts", methods=["DELETE"])
def clear_toasts():
    get_toasts().clear_all()
    return jsonify({"success": True})


@toast_bp.route("/api/toasts/settings", methods=["GET"])
def get_toast_settings():
    return jsonify({"settings": dict(get_toasts().settings)})


@toast_bp.route("/api/toasts/settings", methods=["PUT"])
def update_toast_settings():
    data = json_body()
    updates = {}
    for key in ("successDuration", "infoDuration", "warningDuration", "errorDuration"):
        if key in data:
            value = data[key]
            if not isinstance(value, int) or value < -1:
                return jsonify({"error": f"{key} must be -1, 0 or a positive number of ms"}), 400
            updates[key] = value
    return jsonify({"settings": get_toasts().update_settings(**updates)})
