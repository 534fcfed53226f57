"""
Interactive release search for one movie or TV episode.

A session loads the indexer status, quality profiles and enabled download
clients, searches the indexers through the backend, asks the backend to
score the results against the selected quality profile and finally submits a
chosen release to a download client.
"""

from typing import Any, Dict, List, Optional

import requests

from mediastack.apps.release_search.parsing import normalize_release
from mediastack.apps.release_search.ranking import rank_releases
from mediastack.utils.api_client import ApiError
from mediastack.utils.logger import get_logger
from mediastack.utils.page_loader import load_all
from mediastack.utils.timezone_utils import format_relative_time

release_logger = get_logger("release_search")

VIEW_MODE_KEY = "searchReleasesViewMode"
VIEW_MODES = ("cards", "table")


def format_age(publish_date):
    if not publish_date:
        return 'N/A'
    return format_relative_time(publish_date)


def _error_text(error, default):
    if isinstance(error, ApiError) and error.status is not None and error.message:
        return error.message
    return default


class InteractiveSearch:
    """State of one interactive search dialog."""

    def __init__(self, client, toasts, media_type: str, media_id: str, title: str,
                 year: Optional[int] = None, season_number: Optional[int] = None,
                 episode_number: Optional[int] = None, quality_profile_id: Optional[str] = None):
        if media_type not in ('movie', 'tv'):
            raise ValueError(f"Unsupported media type: {media_type}")
        self.client = client
        self.toasts = toasts
        self.media_type = media_type
        self.media_id = media_id
        self.title = title
        self.year = year
        self.season_number = season_number
        self.episode_number = episode_number
        self.item_profile_id = quality_profile_id

        self.releases: List[Dict[str, Any]] = []
        self.quality_profiles: List[Dict[str, Any]] = []
        self.download_clients: List[Dict[str, Any]] = []
        self.indexer_status: Optional[Dict[str, Any]] = None
        self.selected_profile_id: Optional[str] = quality_profile_id
        self.selected_client_id: Optional[str] = None
        self.error: Optional[str] = None

    # ── Loading ──

    def open(self) -> List[Dict[str, Any]]:
        """Load the dialog's reference data, run the search and score the results."""
        loaded = load_all({
            "indexer_status": (self.client.get_indexer_status, None),
            "quality_profiles": (self.client.get_quality_profiles, []),
            "download_clients": (self.client.get_enabled_download_clients, []),
        }, release_logger)

        self.indexer_status = loaded["indexer_status"]
        self.quality_profiles = loaded["quality_profiles"]
        self.download_clients = loaded["download_clients"]

        if self.download_clients and not self.selected_client_id:
            self.selected_client_id = self.download_clients[0].get("id")
        if self.quality_profiles and not self.selected_profile_id:
            self.selected_profile_id = self.item_profile_id or self.quality_profiles[0].get("id")

        self.search()
        return self.releases

    def load_download_clients(self) -> List[Dict[str, Any]]:
        try:
            self.download_clients = self.client.get_enabled_download_clients() or []
        except (ApiError, requests.exceptions.RequestException) as e:
            release_logger.error(f"Failed to load download clients: {e}")
            self.download_clients = []
        if self.download_clients and not self.selected_client_id:
            self.selected_client_id = self.download_clients[0].get("id")
        return self.download_clients

    def search(self) -> List[Dict[str, Any]]:
        self.error = None
        try:
            if self.media_type == 'movie':
                results = self.client.search_movie_releases(self.title, self.year)
            else:
                results = self.client.search_tv_releases(self.title, self.season_number, self.episode_number)
        except (ApiError, requests.exceptions.RequestException) as e:
            release_logger.error(f"Release search failed for '{self.title}': {e}")
            self.error = _error_text(e, 'Failed to search releases')
            self.releases = []
            return self.releases

        self.releases = [normalize_release(r) for r in results or []]
        release_logger.info(f"Found {len(self.releases)} release(s) for '{self.title}'")

        profile_id = self.selected_profile_id or self.item_profile_id
        if profile_id and self.releases:
            self.load_scores(profile_id)
        return self.releases

    def load_scores(self, profile_id: str) -> bool:
        """Apply the backend's custom format scores for profile_id, keyed by release title."""
        payload = [{"title": r.get("title"), "size": r.get("size")} for r in self.releases]
        try:
            result = self.client.score_releases(payload, profile_id) or {}
        except (ApiError, requests.exceptions.RequestException) as e:
            release_logger.error(f"Failed to load custom format scores: {e}")
            return False

        scores = result.get("scores")
        if not scores:
            return False
        for release in self.releases:
            release["customFormatScore"] = scores.get(release.get("title")) or 0
        return True

    def select_profile(self, profile_id: str):
        self.selected_profile_id = profile_id
        if profile_id and self.releases:
            self.load_scores(profile_id)

    def select_client(self, client_id: str):
        self.selected_client_id = client_id

    # ── View ──

    def view(self, quality='all', protocol='all', text='', sort_by='score', order='desc'):
        return rank_releases(self.releases, quality, protocol, text, sort_by, order)

    def load_view_mode(self) -> str:
        try:
            ui_settings = self.client.get_ui_settings().get("ui_settings") or {}
        except (ApiError, requests.exceptions.RequestException) as e:
            release_logger.error(f"Failed to load view preference: {e}")
            return "cards"
        mode = ui_settings.get(VIEW_MODE_KEY)
        return mode if mode in VIEW_MODES else "cards"

    def save_view_mode(self, mode: str) -> bool:
        if mode not in VIEW_MODES:
            raise ValueError(f"Unknown view mode: {mode}")
        try:
            ui_settings = self.client.get_ui_settings().get("ui_settings") or {}
            ui_settings[VIEW_MODE_KEY] = mode
            self.client.update_ui_settings(ui_settings)
        except (ApiError, requests.exceptions.RequestException) as e:
            release_logger.error(f"Failed to save view preference: {e}")
            return False
        return True

    # ── Grab ──

    def build_download_request(self, release: Dict[str, Any]) -> Dict[str, Any]:
        payload = {
            "movieId": self.media_id if self.media_type == 'movie' else None,
            "seriesId": self.media_id if self.media_type == 'tv' else None,
            "seasonNumber": self.season_number,
            "episodeNumber": self.episode_number,
            "downloadUrl": release.get("downloadUrl"),
            "title": release.get("title"),
            "quality": release.get("quality"),
            "size": release.get("size"),
            "seeders": release.get("seeders"),
            "indexer": release.get("indexer"),
            "protocol": release.get("protocol"),
            "downloadClientId": self.selected_client_id or None,
        }
        return {k: v for k, v in payload.items() if v is not None}

    def grab(self, release: Dict[str, Any]) -> bool:
        """Send release to the selected download client and report the outcome as a toast."""
        if not self.download_clients:
            self.toasts.error('No download clients configured')
            return False

        try:
            self.client.start_download(self.build_download_request(release))
        except (ApiError, requests.exceptions.RequestException) as e:
            release_logger.error(f"Failed to start download for '{release.get('title')}': {e}")
            self.toasts.error(_error_text(e, 'Failed to start download'))
            return False

        release_logger.info(f"Download started: {release.get('title')}")
        self.toasts.success('Download started!')
        return True
