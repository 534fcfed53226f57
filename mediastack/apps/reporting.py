"""Dashboard overview and library reports."""

from typing import Any, Dict

import requests

from mediastack.utils.api_client import ApiError
from mediastack.utils.logger import get_logger
from mediastack.utils.page_loader import load_all

reports_logger = get_logger("library")

DASHBOARD_RECENT_LIMIT = 8
DASHBOARD_ACTIVITY_LIMIT = 4

MOVIE_REPORT_FILTERS = (
    "quality", "resolution", "videoCodec", "audioCodec", "hdrType", "audioChannels",
    "releaseGroup", "yearFrom", "yearTo", "ratingFrom", "ratingTo", "sizeFrom", "sizeTo",
    "hasFile", "monitored", "titleMismatch", "multipleFiles", "missingFile", "noRating",
    "sortBy", "sortDir", "limit",
)

EPISODE_REPORT_FILTERS = (
    "quality", "videoCodec", "audioCodec", "sizeFrom", "sizeTo",
    "hasFile", "monitored", "sortBy", "sortDir", "limit",
)


def load_dashboard(client) -> Dict[str, Any]:
    """Everything the dashboard shows, loaded in parallel; each part has an empty fallback."""
    loaded = load_all({
        "stats": (client.get_library_stats, {"movies": {"total": 0}, "series": {"total": 0}}),
        "recently_added": (lambda: client.get_recently_added(DASHBOARD_RECENT_LIMIT), []),
        "downloads": (client.get_downloads, []),
        "recent_activity": (lambda: client.get_recent_activity(DASHBOARD_ACTIVITY_LIMIT), []),
        "movies": (client.get_movies, {"items": [], "total": 0}),
        "series": (client.get_series, {"items": [], "total": 0}),
    }, reports_logger, max_workers=6)

    downloads = loaded["downloads"]
    loaded["active_downloads"] = sum(1 for d in downloads if d.get("status") in ("downloading", "importing"))
    return loaded


def load_report_overview(client) -> Dict[str, Any]:
    return load_all({
        "filters": (client.get_report_filter_options, {}),
        "stats": (client.get_report_stats, {}),
    }, reports_logger)


def _pick(filters, allowed):
    return {k: v for k, v in (filters or {}).items() if k in allowed}


def search_movies_report(client, filters: Dict[str, Any]):
    try:
        return client.search_report_movies(_pick(filters, MOVIE_REPORT_FILTERS)) or []
    except (ApiError, requests.exceptions.RequestException) as e:
        reports_logger.error(f"Movie report search failed: {e}")
        return []


def search_episodes_report(client, filters: Dict[str, Any]):
    try:
        return client.search_report_episodes(_pick(filters, EPISODE_REPORT_FILTERS)) or []
    except (ApiError, requests.exceptions.RequestException) as e:
        reports_logger.error(f"Episode report search failed: {e}")
        return []
