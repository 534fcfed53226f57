#!/usr/bin/env python3
"""
Library API
Movie list with filters and the A-Z index, custom filters, and the movie and
series detail actions.
"""

from flask import Blueprint, jsonify, request

from mediastack.apps.library import custom_filters
from mediastack.apps.library.detail import MovieDetail, SeriesDetail
from mediastack.apps.library.filtering import BUILTIN_FILTERS, alpha_index, filter_movies, load_library
from mediastack.routes.common import arg_bool, backend_error, get_client, get_toasts, json_body, web_logger
from mediastack.utils.api_client import ApiError

library_bp = Blueprint("library", __name__)


# --- Movie list ---

@library_bp.route("/api/library/movies", methods=["GET"])
def list_movies():
    """Filtered, title-sorted movies with the A-Z index of the filtered list."""
    filter_id = request.args.get("filter", "all")
    saved_filters = custom_filters.load_custom_filters()
    if filter_id not in BUILTIN_FILTERS and not any(f.get("id") == filter_id for f in saved_filters):
        web_logger.debug(f"Unknown library filter '{filter_id}', showing all movies")

    movies, profiles = load_library(get_client(), web_logger)
    visible = filter_movies(movies, filter_id, request.args.get("q", ""), profiles, saved_filters)
    return jsonify({
        "movies": visible,
        "total": len(movies),
        "index": alpha_index(visible),
        "profiles": profiles,
    })


@library_bp.route("/api/library/movies/bulk-update", methods=["POST"])
def bulk_update_movies():
    data = json_body()
    ids = data.get("ids") or []
    updates = data.get("updates") or {}
    if not ids or not updates:
        return jsonify({"error": "ids and updates are required"}), 400
    try:
        get_client().bulk_update_movies(ids, updates)
    except ApiError as e:
        get_toasts().error('Failed to update movies')
        return backend_error(e, "update movies")
    get_toasts().success(f'Updated {len(ids)} movie(s)')
    return jsonify({"success": True, "updated": len(ids)})


@library_bp.route("/api/library/movies/bulk-delete", methods=["POST"])
def bulk_delete_movies():
    data = json_body()
    ids = data.get("ids") or []
    if not ids:
        return jsonify({"error": "ids are required"}), 400
    try:
        get_client().bulk_delete_movies(ids, bool(data.get("delete_files")))
    except ApiError as e:
        get_toasts().error('Failed to delete movies')
        return backend_error(e, "delete movies")
    get_toasts().success(f'Deleted {len(ids)} movie(s)')
    return jsonify({"success": True, "deleted": len(ids)})


# --- Custom filters ---

@library_bp.route("/api/library/custom-filters", methods=["GET"])
def list_custom_filters():
    return jsonify({"filters": custom_filters.load_custom_filters()})


@library_bp.route("/api/library/custom-filters", methods=["PUT"])
def save_custom_filter():
    """Create a filter, or replace the one whose id is given."""
    data = json_body()
    try:
        custom = custom_filters.build_custom_filter(data.get("name"), data.get("conditions") or {},
                                                    filter_id=data.get("id"))
    except (TypeError, ValueError) as e:
        return jsonify({"error": str(e)}), 400
    filters = custom_filters.upsert_custom_filter(custom)
    return jsonify({"filter": custom, "filters": filters})


@library_bp.route("/api/library/custom-filters/<filter_id>", methods=["DELETE"])
def remove_custom_filter(filter_id):
    return jsonify({"filters": custom_filters.delete_custom_filter(filter_id)})


# --- Movie detail ---

def _loaded_item(detail):
    """Fetch just the item so a mutation can run. Returns an error response or None."""
    try:
        detail.fetch()
    except ApiError as e:
        return backend_error(e, f"load {detail.media_type}")
    if not detail.item:
        return jsonify({"error": f"{detail.media_type.capitalize()} not found"}), 404
    return None


@library_bp.route("/api/library/movies/<movie_id>", methods=["GET"])
def get_movie(movie_id):
    snapshot = MovieDetail(get_client(), get_toasts(), movie_id).load()
    if snapshot["movie"] is None:
        return jsonify({"error": "Movie not found"}), 404
    return jsonify(snapshot)


@library_bp.route("/api/library/movies/<movie_id>/monitored", methods=["PUT"])
def toggle_movie_monitored(movie_id):
    detail = MovieDetail(get_client(), get_toasts(), movie_id)
    error = _loaded_item(detail)
    if error:
        return error
    monitored = detail.toggle_monitored()
    if monitored is None:
        return jsonify({"success": False, "error": "Failed to update"}), 502
    return jsonify({"success": True, "monitored": monitored})


@library_bp.route("/api/library/movies/<movie_id>", methods=["DELETE"])
def delete_movie(movie_id):
    detail = MovieDetail(get_client(), get_toasts(), movie_id)
    if not detail.delete(arg_bool("delete_files"), arg_bool("add_exclusion")):
        return jsonify({"success": False, "error": "Failed to delete movie"}), 502
    return jsonify({"success": True})


@library_bp.route("/api/library/movies/<movie_id>/scan", methods=["POST"])
def scan_movie(movie_id):
    found = MovieDetail(get_client(), get_toasts(), movie_id).scan()
    if found < 0:
        return jsonify({"success": False, "error": "Failed to scan movie folder"}), 502
    return jsonify({"success": True, "found": found})


@library_bp.route("/api/library/movies/<movie_id>/search", methods=["POST"])
def search_movie(movie_id):
    """Ask the backend to run an automatic search for the movie."""
    try:
        result = get_client().search_movie(movie_id)
    except ApiError as e:
        get_toasts().error('Failed to start search')
        return backend_error(e, "search for movie")
    get_toasts().info('Search started')
    return jsonify({"success": True, "result": result})


@library_bp.route("/api/library/movies/<movie_id>/files/<file_id>", methods=["DELETE"])
def delete_movie_file(movie_id, file_id):
    detail = MovieDetail(get_client(), get_toasts(), movie_id)
    if not detail.delete_file(file_id):
        return jsonify({"success": False, "error": "Failed to delete file"}), 502
    return jsonify({"success": True, "files": detail.files})


# --- Series detail ---

@library_bp.route("/api/library/series/<series_id>", methods=["GET"])
def get_series(series_id):
    snapshot = SeriesDetail(get_client(), get_toasts(), series_id).load()
    if snapshot["series"] is None:
        return jsonify({"error": "Series not found"}), 404
    return jsonify(snapshot)


@library_bp.route("/api/library/series/<series_id>/monitored", methods=["PUT"])
def toggle_series_monitored(series_id):
    detail = SeriesDetail(get_client(), get_toasts(), series_id)
    error = _loaded_item(detail)
    if error:
        return error
    monitored = detail.toggle_monitored()
    if monitored is None:
        return jsonify({"success": False, "error": "Failed to update"}), 502
    return jsonify({"success": True, "monitored": monitored})


@library_bp.route("/api/library/series/<series_id>", methods=["DELETE"])
def delete_series(series_id):
    detail = SeriesDetail(get_client(), get_toasts(), series_id)
    if not detail.delete(arg_bool("delete_files"), arg_bool("add_exclusion")):
        return jsonify({"success": False, "error": "Failed to delete series"}), 502
    return jsonify({"success": True})
