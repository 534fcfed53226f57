"""
Movie and series detail controllers.

Each controller loads the item and its related data concurrently (a failed
part falls back to an empty value), performs the item's mutations with toast
feedback and, while the activity panel is expanded, keeps the activity log
fresh with a background poller.
"""

from typing import Any, Dict, List, Optional

import requests

from mediastack.settings_manager import load_settings
from mediastack.utils.api_client import ApiError
from mediastack.utils.logger import get_logger
from mediastack.utils.page_loader import load_all
from mediastack.utils.polling import Poller

library_logger = get_logger("library")

_CALL_ERRORS = (ApiError, requests.exceptions.RequestException)


def _backend_error(error, default):
    if isinstance(error, ApiError) and error.status is not None and error.message:
        return error.message
    return default


class MediaDetail:
    """Shared behaviour of the movie and series detail pages."""

    media_type = None
    activity_limit = 50

    def __init__(self, client, toasts, item_id: str):
        self.client = client
        self.toasts = toasts
        self.item_id = item_id
        self.item: Optional[Dict[str, Any]] = None
        self.activity: List[Dict[str, Any]] = []
        interval = float(load_settings("general").get("activity_poll_interval", 10))
        self._activity_poller = Poller(f"{self.media_type}-{item_id}-activity", self.load_activity,
                                       interval=interval, logger=library_logger,
                                       run_immediately=False)

    def _fetch_item(self):
        raise NotImplementedError

    def _fetch_activity(self):
        raise NotImplementedError

    def _update(self, data):
        raise NotImplementedError

    def _delete(self, delete_files, add_exclusion):
        raise NotImplementedError

    def fetch(self) -> Optional[Dict[str, Any]]:
        """Load only the item itself, letting backend errors propagate."""
        self.item = self._fetch_item()
        return self.item

    def load_activity(self) -> List[Dict[str, Any]]:
        try:
            self.activity = self._fetch_activity() or []
        except _CALL_ERRORS as e:
            library_logger.error(f"Failed to load activity log for {self.media_type} {self.item_id}: {e}")
        return self.activity

    # ── Activity panel ──

    def expand_activity(self) -> bool:
        return self._activity_poller.start()

    def collapse_activity(self):
        self._activity_poller.stop()

    @property
    def activity_expanded(self) -> bool:
        return self._activity_poller.running

    def close(self):
        self.collapse_activity()

    # ── Mutations ──

    def toggle_monitored(self) -> Optional[bool]:
        """Flip the monitored flag. Returns the new value, or None if the update failed."""
        if not self.item:
            return None
        new_value = not self.item.get("monitored")
        try:
            self._update({"monitored": new_value})
        except _CALL_ERRORS as e:
            library_logger.error(f"Failed to update {self.media_type} {self.item_id}: {e}")
            self.toasts.error('Failed to update')
            return None
        self.item["monitored"] = new_value
        self.toasts.success('Now monitoring' if new_value else 'Unmonitored')
        return new_value

    def delete(self, delete_files: bool = False, add_exclusion: bool = False) -> bool:
        try:
            self._delete(delete_files, add_exclusion)
        except _CALL_ERRORS as e:
            library_logger.error(f"Failed to delete {self.media_type} {self.item_id}: {e}")
            self.toasts.error(f'Failed to delete {self.media_type}')
            return False
        library_logger.info(f"Deleted {self.media_type} {self.item_id} (files={delete_files}, exclusion={add_exclusion})")
        self.close()
        return True


class MovieDetail(MediaDetail):
    media_type = "movie"
    activity_limit = 20

    def __init__(self, client, toasts, movie_id: str):
        super().__init__(client, toasts, movie_id)
        self.profiles: List[Dict[str, Any]] = []
        self.files: List[Dict[str, Any]] = []

    def _fetch_item(self):
        return self.client.get_movie_by_id(self.item_id)

    def _fetch_activity(self):
        return self.client.get_movie_activity(self.item_id, self.activity_limit)

    def _update(self, data):
        return self.client.update_movie(self.item_id, data)

    def _delete(self, delete_files, add_exclusion):
        return self.client.delete_movie(self.item_id, delete_files, add_exclusion)

    def load(self) -> Dict[str, Any]:
        loaded = load_all({
            "movie": (self._fetch_item, None),
            "profiles": (self.client.get_quality_profiles, []),
            "files": (lambda: self.client.get_movie_files(self.item_id), []),
            "activity": (self._fetch_activity, []),
        }, library_logger)
        self.item = loaded["movie"]
        self.profiles = loaded["profiles"]
        self.files = loaded["files"]
        self.activity = loaded["activity"]
        return self.snapshot()

    def reload_files(self):
        try:
            self.item = self._fetch_item() or self.item
            self.files = self.client.get_movie_files(self.item_id) or []
        except _CALL_ERRORS as e:
            library_logger.error(f"Failed to reload movie {self.item_id}: {e}")

    def delete_file(self, file_id: str) -> bool:
        try:
            self.client.delete_movie_file(self.item_id, file_id)
        except _CALL_ERRORS as e:
            library_logger.error(f"Failed to delete file {file_id}: {e}")
            self.toasts.error(_backend_error(e, 'Failed to delete file'))
            return False
        self.toasts.success('File deleted successfully')
        self.reload_files()
        return True

    def scan(self) -> int:
        """Rescan the movie folder. Returns the number of files found, -1 on failure."""
        try:
            result = self.client.scan_movie(self.item_id) or {}
        except _CALL_ERRORS as e:
            library_logger.error(f"Failed to scan movie {self.item_id}: {e}")
            self.toasts.error('Failed to scan movie folder')
            return -1

        found = int(result.get("found") or 0)
        if found > 0:
            self.toasts.success(f'Found {found} file(s)')
        else:
            self.toasts.warning('No video files found in folder')
        self.reload_files()
        return found

    def snapshot(self) -> Dict[str, Any]:
        return {
            "movie": self.item,
            "profiles": self.profiles,
            "files": self.files,
            "activity": self.activity,
        }


class SeriesDetail(MediaDetail):
    media_type = "series"

    def __init__(self, client, toasts, series_id: str):
        super().__init__(client, toasts, series_id)
        self.seasons: List[Dict[str, Any]] = []
        self.profiles: List[Dict[str, Any]] = []

    def _fetch_item(self):
        return self.client.get_series_by_id(self.item_id)

    def _fetch_activity(self):
        return self.client.get_series_activity(self.item_id, self.activity_limit)

    def _update(self, data):
        return self.client.update_series(self.item_id, data)

    def _delete(self, delete_files, add_exclusion):
        return self.client.delete_series(self.item_id, delete_files, add_exclusion)

    def load(self) -> Dict[str, Any]:
        loaded = load_all({
            "series": (self._fetch_item, None),
            "seasons": (lambda: self.client.get_seasons(self.item_id), []),
            "profiles": (self.client.get_quality_profiles, []),
            "activity": (self._fetch_activity, []),
        }, library_logger)
        self.item = loaded["series"]
        self.seasons = loaded["seasons"]
        self.profiles = loaded["profiles"]
        self.activity = loaded["activity"]
        return self.snapshot()

    def snapshot(self) -> Dict[str, Any]:
        return {
            "series": self.item,
            "seasons": self.seasons,
            "profiles": self.profiles,
            "activity": self.activity,
        }
