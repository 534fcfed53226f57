"""Dashboard and library report API."""

from flask import Blueprint, jsonify, request

from mediastack.apps.reporting import (
    load_dashboard,
    load_report_overview,
    search_episodes_report,
    search_movies_report,
)
from mediastack.routes.common import get_client
from mediastack.utils.api_client import report_params

report_bp = Blueprint("reports", __name__)

_BOOL_FILTERS = ("hasFile", "monitored", "titleMismatch", "multipleFiles", "missingFile", "noRating")


def _report_filters():
    """Query args as report filters; boolean filters accept true/false."""
    filters = {}
    for key, value in request.args.items():
        if key in _BOOL_FILTERS:
            lowered = value.strip().lower()
            if lowered in ("true", "1"):
                filters[key] = True
            elif lowered in ("false", "0"):
                filters[key] = False
        else:
            filters[key] = value
    return report_params(filters)


@report_bp.route("/api/dashboard", methods=["GET"])
def dashboard():
    return jsonify(load_dashboard(get_client()))


@report_bp.route("/api/reports/stats", methods=["GET"])
def report_stats():
    return jsonify(load_report_overview(get_client()))


@report_bp.route("/api/reports/movies", methods=["GET"])
def report_movies():
    return jsonify({"results": search_movies_report(get_client(), _report_filters())})


@report_bp.route("/api/reports/episodes", methods=["GET"])
def report_episodes():
    return jsonify({"results": search_episodes_report(get_client(), _report_filters())})
