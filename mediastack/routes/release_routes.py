#!/usr/bin/env python3
"""
Interactive release search API
Search, rank and grab releases for a movie or an episode.
"""

from flask import Blueprint, jsonify, request

from mediastack.apps.release_search.interactive import InteractiveSearch, format_age
from mediastack.apps.release_search.parsing import detect_source, format_size
from mediastack.apps.release_search.ranking import SORT_FIELDS, composite_score
from mediastack.routes.common import arg_int, get_client, get_toasts, json_body, web_logger

release_bp = Blueprint("releases", __name__)


def _session_from(params):
    return InteractiveSearch(
        get_client(), get_toasts(),
        media_type=params.get("media_type") or "movie",
        media_id=params.get("media_id") or "",
        title=params.get("title") or "",
        year=params.get("year"),
        season_number=params.get("season"),
        episode_number=params.get("episode"),
        quality_profile_id=params.get("profile_id") or None,
    )


def _present(release):
    """Release plus the display fields the list shows."""
    item = dict(release)
    item["source"] = detect_source(release.get("title"))
    item["sizeFormatted"] = format_size(release.get("size"))
    item["age"] = format_age(release.get("publishDate"))
    item["score"] = composite_score(release)
    return item


@release_bp.route("/api/releases/search", methods=["GET"])
def search_releases():
    """Search indexers and return the ranked, filtered release list."""
    try:
        params = {
            "media_type": request.args.get("media_type", "movie"),
            "media_id": request.args.get("media_id", ""),
            "title": (request.args.get("title") or "").strip(),
            "year": arg_int("year"),
            "season": arg_int("season"),
            "episode": arg_int("episode"),
            "profile_id": request.args.get("profile_id"),
        }
    except ValueError as e:
        return jsonify({"error": str(e)}), 400

    if not params["title"]:
        return jsonify({"error": "title is required"}), 400
    if params["media_type"] not in ("movie", "tv"):
        return jsonify({"error": "media_type must be 'movie' or 'tv'"}), 400

    sort_by = request.args.get("sort", "score")
    if sort_by not in SORT_FIELDS:
        return jsonify({"error": f"sort must be one of {', '.join(SORT_FIELDS)}"}), 400
    order = request.args.get("order", "desc")

    session = _session_from(params)
    session.open()
    ranked = session.view(
        quality=request.args.get("quality", "all"),
        protocol=request.args.get("protocol", "all"),
        text=request.args.get("q", ""),
        sort_by=sort_by,
        order=order,
    )
    return jsonify({
        "releases": [_present(r) for r in ranked],
        "total": len(session.releases),
        "error": session.error,
        "indexer_status": session.indexer_status,
        "quality_profiles": session.quality_profiles,
        "download_clients": session.download_clients,
        "selected_profile_id": session.selected_profile_id,
        "selected_client_id": session.selected_client_id,
    })


@release_bp.route("/api/releases/grab", methods=["POST"])
def grab_release():
    """Send a release to a download client."""
    data = json_body()
    release = data.get("release")
    if not isinstance(release, dict) or not release.get("downloadUrl"):
        return jsonify({"error": "release with a downloadUrl is required"}), 400
    if data.get("media_type", "movie") not in ("movie", "tv"):
        return jsonify({"error": "media_type must be 'movie' or 'tv'"}), 400

    session = _session_from(data)
    session.load_download_clients()
    if data.get("download_client_id"):
        session.select_client(data["download_client_id"])

    if not session.grab(release):
        web_logger.warning(f"Grab failed for '{release.get('title')}'")
        return jsonify({"success": False, "error": "Failed to start download"}), 502
    return jsonify({"success": True})


@release_bp.route("/api/releases/view-mode", methods=["GET"])
def get_view_mode():
    session = InteractiveSearch(get_client(), get_toasts(), "movie", "", "")
    return jsonify({"view_mode": session.load_view_mode()})


@release_bp.route("/api/releases/view-mode", methods=["PUT"])
def set_view_mode():
    mode = json_body().get("view_mode")
    session = InteractiveSearch(get_client(), get_toasts(), "movie", "", "")
    try:
        saved = session.save_view_mode(mode)
    except ValueError as e:
        return jsonify({"error": str(e)}), 400
    if not saved:
        return jsonify({"error": "Failed to save view preference"}), 502
    return jsonify({"success": True, "view_mode": mode})
