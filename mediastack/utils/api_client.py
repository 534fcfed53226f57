"""
HTTP client for the MediaStack backend REST API.

Every call goes through ApiClient._request, which attaches the stored bearer
token, turns HTTP failures into ApiError and clears the stored credentials on
a 401.
"""

from typing import Any, Dict, List, Optional

import requests

from mediastack.settings_manager import load_settings, get_ssl_verify_setting
from mediastack.utils.database import get_database
from mediastack.utils.logger import logger

TOKEN_KEY = "auth_token"
USER_KEY = "user"
API_PORT_KEY = "apiPort"
DEFAULT_API_PORT = 5055


class ApiError(Exception):
    """Backend call failed. status is None for transport errors."""

    def __init__(self, status: Optional[int], message: str):
        super().__init__(message)
        self.status = status
        self.message = message

    def __str__(self):
        if self.status is None:
            return self.message
        return f"{self.status}: {self.message}"


class AuthenticationError(ApiError):
    """Backend answered 401; stored credentials have been cleared."""


def resolve_base_url(api_port=None) -> str:
    """
    Backend base URL.

    An explicit api_url setting (or MEDIASTACK_API_URL) wins. Otherwise the
    URL is built from api_host and the port: the api_port argument (which is
    then remembered), the remembered port, or the api_port setting.
    """
    settings = load_settings("general")
    api_url = (settings.get("api_url") or "").strip()
    if api_url:
        return api_url.rstrip("/")

    db = get_database()
    if api_port:
        db.set_local_value(API_PORT_KEY, str(api_port))
    port = api_port or db.get_local_value(API_PORT_KEY) or settings.get("api_port") or DEFAULT_API_PORT
    host = settings.get("api_host") or "localhost"
    return f"http://{host}:{port}/api"


def _clean_params(params: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Drop unset params and send booleans as 'true'/'false'."""
    if not params:
        return None
    cleaned = {}
    for key, value in params.items():
        if value is None:
            continue
        cleaned[key] = str(value).lower() if isinstance(value, bool) else value
    return cleaned or None


def _error_message(response: requests.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return response.text[:200] or response.reason or f"HTTP {response.status_code}"
    if isinstance(data, dict) and data.get("error"):
        return str(data["error"])
    return response.reason or f"HTTP {response.status_code}"


def _as_page(data) -> Dict[str, Any]:
    # Older backends return a bare list instead of {items, total}
    if isinstance(data, list):
        return {"items": data, "total": len(data)}
    data = data or {}
    return {"items": data.get("items") or [], "total": data.get("total") or 0}


class ApiClient:
    """Client for the MediaStack backend API."""

    def __init__(self, base_url: Optional[str] = None, api_port=None,
                 timeout: Optional[int] = None, session: Optional[requests.Session] = None):
        self.base_url = (base_url or resolve_base_url(api_port)).rstrip("/")
        self.timeout = timeout or int(load_settings("general").get("api_timeout", 30))
        self._session = session or requests.Session()
        self._session.headers.update({
            "Content-Type": "application/json",
            "User-Agent": "MediaStack-Companion/1.0",
        })

    # ── Stored credentials ──

    def get_token(self) -> Optional[str]:
        return get_database().get_local_value(TOKEN_KEY)

    def set_token(self, token: str, user: Optional[Dict[str, Any]] = None):
        db = get_database()
        db.set_local_value(TOKEN_KEY, token)
        if user is not None:
            db.set_local_value(USER_KEY, user)

    def clear_auth(self):
        db = get_database()
        db.remove_local_value(TOKEN_KEY)
        db.remove_local_value(USER_KEY)

    # ── Transport ──

    def _request(self, method: str, endpoint: str, params: Optional[Dict[str, Any]] = None,
                 json: Any = None) -> Any:
        url = f"{self.base_url}{endpoint}"
        headers = {}
        token = self.get_token()
        if token:
            headers["Authorization"] = f"Bearer {token}"

        try:
            response = self._session.request(
                method, url,
                params=_clean_params(params),
                json=json,
                headers=headers,
                timeout=self.timeout,
                verify=get_ssl_verify_setting(),
            )
        except requests.exceptions.RequestException as e:
            logger.error("API %s %s failed: %s", method, endpoint, e)
            raise ApiError(None, str(e)) from e

        if response.status_code == 401:
            self.clear_auth()
            raise AuthenticationError(401, _error_message(response))
        if response.status_code >= 400:
            raise ApiError(response.status_code, _error_message(response))

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return response.text

    def _get(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> Any:
        return self._request("GET", endpoint, params=params)

    def _post(self, endpoint: str, json: Any = None) -> Any:
        return self._request("POST", endpoint, json=json)

    def _put(self, endpoint: str, json: Any = None) -> Any:
        return self._request("PUT", endpoint, json=json)

    def _delete(self, endpoint: str, params: Optional[Dict[str, Any]] = None, json: Any = None) -> Any:
        return self._request("DELETE", endpoint, params=params, json=json)

    # ── Auth / system ──

    def login(self, username: str, password: str) -> Dict[str, Any]:
        """Log in and remember the returned token and user."""
        data = self._post("/auth/login", {"username": username, "password": password}) or {}
        if data.get("token"):
            self.set_token(data["token"], data.get("user"))
        return data

    def register(self, username: str, email: str, password: str) -> Dict[str, Any]:
        data = self._post("/auth/register", {"username": username, "email": email, "password": password}) or {}
        if data.get("token"):
            self.set_token(data["token"], data.get("user"))
        return data

    def get_me(self):
        return self._get("/auth/me")

    def get_health(self):
        return self._get("/system/health")

    # ── Library: movies ──

    def get_movies(self, monitored: Optional[bool] = None, missing: Optional[bool] = None) -> Dict[str, Any]:
        return _as_page(self._get("/library/movies", {"monitored": monitored, "missing": missing}))

    def get_movie_by_id(self, movie_id: str):
        return self._get(f"/library/movies/{movie_id}")

    def get_movie_files(self, movie_id: str):
        return self._get(f"/library/movies/{movie_id}/files")

    def get_movie_activity(self, movie_id: str, limit: int = 50):
        return self._get(f"/library/movies/{movie_id}/activity", {"limit": limit})

    def update_movie(self, movie_id: str, data: Dict[str, Any]):
        return self._put(f"/library/movies/{movie_id}", data)

    def delete_movie(self, movie_id: str, delete_files: bool = False, add_exclusion: bool = False):
        return self._delete(f"/library/movies/{movie_id}",
                            params={"deleteFiles": delete_files, "addExclusion": add_exclusion})

    def bulk_update_movies(self, ids: List[str], updates: Dict[str, Any]):
        return self._put("/library/movies/bulk/update", {"ids": ids, "updates": updates})

    def bulk_delete_movies(self, ids: List[str], delete_files: bool = False):
        return self._delete("/library/movies/bulk/delete", json={"ids": ids, "deleteFiles": delete_files})

    def search_movie(self, movie_id: str):
        return self._post(f"/library/movies/{movie_id}/search")

    def delete_movie_file(self, movie_id: str, file_id: str):
        return self._delete(f"/library/movies/{movie_id}/files/{file_id}")

    def scan_movie(self, movie_id: str):
        return self._post(f"/scanner/movies/{movie_id}/scan")

    # ── Library: series ──

    def get_series(self, monitored: Optional[bool] = None) -> Dict[str, Any]:
        return _as_page(self._get("/library/series", {"monitored": monitored}))

    def get_series_by_id(self, series_id: str):
        return self._get(f"/library/series/{series_id}")

    def get_series_activity(self, series_id: str, limit: int = 50):
        return self._get(f"/library/series/{series_id}/activity", {"limit": limit})

    def get_seasons(self, series_id: str):
        return self._get(f"/library/series/{series_id}/seasons")

    def update_series(self, series_id: str, data: Dict[str, Any]):
        return self._put(f"/library/series/{series_id}", data)

    def delete_series(self, series_id: str, delete_files: bool = False, add_exclusion: bool = False):
        return self._delete(f"/library/series/{series_id}",
                            params={"deleteFiles": delete_files, "addExclusion": add_exclusion})

    # ── Library: overview ──

    def get_recent_activity(self, limit: int = 10):
        return self._get("/library/activity", {"limit": limit})

    def get_recently_added(self, limit: int = 12):
        return self._get("/library/recently-added", {"limit": limit})

    def get_library_stats(self):
        return self._get("/library/stats")

    # ── Release search / downloads ──

    def search_movie_releases(self, title: str, year: Optional[int] = None):
        logger.debug("searchMovieReleases: title=%s year=%s", title, year)
        return self._get("/search/releases/movie", {"title": title, "year": year})

    def search_tv_releases(self, title: str, season: Optional[int] = None, episode: Optional[int] = None):
        logger.debug("searchTVReleases: title=%s season=%s episode=%s", title, season, episode)
        return self._get("/search/releases/tv", {"title": title, "season": season, "episode": episode})

    def score_releases(self, releases: List[Dict[str, Any]], profile_id: str):
        """POST {releases: [{title, size}], profileId} -> {scores: {title: score}}"""
        return self._post("/customformats/score", {"releases": releases, "profileId": profile_id})

    def start_download(self, data: Dict[str, Any]):
        return self._post("/automation/downloads", data)

    def get_enabled_download_clients(self):
        return self._get("/automation/download-clients/enabled")

    def get_indexer_status(self):
        return self._get("/automation/indexers/status")

    def get_downloads(self, status: Optional[str] = None):
        return self._get("/automation/downloads", {"status": status})

    def sync_downloads(self):
        return self._post("/automation/downloads/sync")

    def cancel_download(self, download_id: str, delete_files: bool = False):
        return self._delete(f"/automation/downloads/{download_id}", json={"deleteFiles": delete_files})

    def clear_downloads(self, status: str):
        return self._delete("/automation/downloads/clear", params={"status": status})

    # ── Quality profiles / settings ──

    def get_quality_profiles(self):
        return self._get("/mediamanagement/quality/profiles")

    def get_quality_profile(self, profile_id: str):
        return self._get(f"/mediamanagement/quality/profiles/{profile_id}")

    def get_settings(self):
        return self._get("/settings")

    def update_setting(self, key: str, value: Any):
        return self._put("/settings", {"key": key, "value": value})

    def get_ui_settings(self) -> Dict[str, Any]:
        return self._get("/settings/ui") or {"ui_settings": None}

    def update_ui_settings(self, settings: Dict[str, Any]):
        return self._put("/settings/ui", {"value": settings})

    # ── Reports ──

    def get_report_filter_options(self):
        return self._get("/reports/filters")

    def search_report_movies(self, filters: Dict[str, Any]):
        return self._get("/reports/movies", report_params(filters))

    def search_report_episodes(self, filters: Dict[str, Any]):
        return self._get("/reports/episodes", report_params(filters))

    def get_report_stats(self):
        return self._get("/reports/stats")


# Tri-state filters: an explicit False is still sent
_REPORT_TRISTATE = ("hasFile", "monitored")


def report_params(filters: Dict[str, Any]) -> Dict[str, Any]:
    """Keep only the report filters that are set."""
    params = {}
    for key, value in (filters or {}).items():
        if key in _REPORT_TRISTATE:
            if value is not None:
                params[key] = value
        elif value:
            params[key] = value
    return params


def get_api_client(api_port=None) -> ApiClient:
    """Build a client against the configured backend."""
    return ApiClient(api_port=api_port)
