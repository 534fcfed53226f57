"""
Download queue shown on the activity page.

Every refresh first asks the backend to sync with the download clients and
then reloads the queue for the selected status ('all' sends no filter).
"""

import math
from typing import Any, Dict, List

import requests

from mediastack.settings_manager import load_settings
from mediastack.utils.api_client import ApiError
from mediastack.utils.logger import get_logger
from mediastack.utils.polling import Poller

activity_logger = get_logger("activity")

STATUS_FILTERS = ("all", "queued", "downloading", "importing", "completed", "failed")
CLEARABLE_STATUSES = ("completed", "failed", "queued", "all")

_SIZE_UNITS = ('B', 'KB', 'MB', 'GB', 'TB')


def format_bytes(size_bytes):
    """'Unknown' for missing sizes, else base-1024 units rounded to two decimals."""
    if not size_bytes:
        return 'Unknown'
    exponent = min(int(math.floor(math.log(size_bytes, 1024))), len(_SIZE_UNITS) - 1)
    value = round(size_bytes / (1024 ** exponent), 2)
    if value == int(value):
        value = int(value)
    return f"{value} {_SIZE_UNITS[exponent]}"


def queue_counts(downloads: List[Dict[str, Any]]) -> Dict[str, int]:
    statuses = [d.get("status") for d in downloads]
    return {
        "active": sum(1 for s in statuses if s in ("downloading", "importing")),
        "queued": statuses.count("queued"),
        "completed": statuses.count("completed"),
        "failed": statuses.count("failed"),
        "import_warnings": sum(1 for d in downloads if d.get("import_warning")),
    }


class DownloadQueue:
    """Download list for one status filter, refreshed in the background while open."""

    def __init__(self, client, toasts, status_filter: str = "all"):
        if status_filter not in STATUS_FILTERS:
            raise ValueError(f"Unknown download status filter: {status_filter}")
        self.client = client
        self.toasts = toasts
        self.status_filter = status_filter
        self.downloads: List[Dict[str, Any]] = []
        interval = float(load_settings("general").get("downloads_poll_interval", 5))
        self._poller = Poller("downloads", self.refresh, interval=interval,
                              logger=activity_logger, run_immediately=False)

    def refresh(self) -> List[Dict[str, Any]]:
        try:
            self.client.sync_downloads()
            status = None if self.status_filter == "all" else self.status_filter
            self.downloads = self.client.get_downloads(status) or []
        except (ApiError, requests.exceptions.RequestException) as e:
            activity_logger.error(f"Failed to sync downloads: {e}")
        return self.downloads

    def set_filter(self, status_filter: str):
        if status_filter not in STATUS_FILTERS:
            raise ValueError(f"Unknown download status filter: {status_filter}")
        self.status_filter = status_filter
        self.refresh()

    @property
    def counts(self) -> Dict[str, int]:
        return queue_counts(self.downloads)

    def open(self):
        self.refresh()
        self._poller.start()

    def close(self):
        self._poller.stop()

    @property
    def polling(self) -> bool:
        return self._poller.running

    def cancel(self, download: Dict[str, Any], delete_files: bool = False) -> bool:
        try:
            self.client.cancel_download(download["id"], delete_files)
        except (ApiError, requests.exceptions.RequestException) as e:
            activity_logger.error(f"Failed to cancel download {download.get('id')}: {e}")
            self.toasts.error('Failed to cancel download')
            return False
        activity_logger.info(f"Cancelled download: {download.get('title')}")
        self.toasts.success(f"Cancelled: {download.get('title')}")
        self.refresh()
        return True

    def clear(self, status: str) -> bool:
        if status not in CLEARABLE_STATUSES:
            raise ValueError(f"Cannot clear downloads with status: {status}")
        label = "all" if status == "all" else status
        try:
            self.client.clear_downloads(status)
        except (ApiError, requests.exceptions.RequestException) as e:
            activity_logger.error(f"Failed to clear {label} downloads: {e}")
            self.toasts.error('Failed to clear downloads' if status == "all" else f'Failed to clear {label} downloads')
            return False
        self.toasts.success(f'Cleared {label} downloads')
        self.refresh()
        return True
