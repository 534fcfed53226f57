"""Download queue API."""

from flask import Blueprint, jsonify, request

from mediastack.apps.activity import CLEARABLE_STATUSES, STATUS_FILTERS, DownloadQueue, format_bytes
from mediastack.routes.common import arg_bool, get_client, get_toasts, json_body

activity_bp = Blueprint("activity", __name__)


def _present(download):
    item = dict(download)
    item["sizeFormatted"] = format_bytes(download.get("size"))
    return item


@activity_bp.route("/api/activity/downloads", methods=["GET"])
def list_downloads():
    status = request.args.get("status", "all")
    if status not in STATUS_FILTERS:
        return jsonify({"error": f"status must be one of {', '.join(STATUS_FILTERS)}"}), 400
    queue = DownloadQueue(get_client(), get_toasts(), status)
    downloads = queue.refresh()
    return jsonify({
        "downloads": [_present(d) for d in downloads],
        "counts": queue.counts,
        "status": status,
    })


@activity_bp.route("/api/activity/downloads/<download_id>", methods=["DELETE"])
def cancel_download(download_id):
    queue = DownloadQueue(get_client(), get_toasts())
    download = {"id": download_id, "title": request.args.get("title") or download_id}
    if not queue.cancel(download, arg_bool("delete_files")):
        return jsonify({"success": False, "error": "Failed to cancel download"}), 502
    return jsonify({"success": True})


@activity_bp.route("/api/activity/downloads/clear", methods=["POST"])
def clear_downloads():
    status = json_body().get("status", "completed")
    if status not in CLEARABLE_STATUSES:
        return jsonify({"error": f"status must be one of {', '.join(CLEARABLE_STATUSES)}"}), 400
    queue = DownloadQueue(get_client(), get_toasts())
    if not queue.clear(status):
        return jsonify({"success": False, "error": "Failed to clear downloads"}), 502
    return jsonify({"success": True})
