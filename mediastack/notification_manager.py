#!/usr/bin/env python3
"""
Notification Manager for MediaStack
Turns backend activity (grabs, imports, failures, ...) into an in-app
notification list.

The backend activity log is polled while an auth token is stored. The first
poll only records the newest activity id so that history is not replayed;
later polls convert unseen, newer activity of the notification-worthy event
types into notifications, newest first. The list is persisted under the
'mediastack_notifications' key.
"""

import datetime
import threading
import time
from typing import Any, Dict, List, Optional

from mediastack.settings_manager import load_settings
from mediastack.utils.api_client import ApiError
from mediastack.utils.database import get_database
from mediastack.utils.logger import get_logger
from mediastack.utils.polling import Poller

logger = get_logger("notifications")

STORAGE_KEY = "mediastack_notifications"
MAX_NOTIFICATIONS = 50
RECENT_ACTIVITY_LIMIT = 30

NOTIFICATION_EVENTS = {
    "grabbed", "downloaded", "imported", "unmonitored",
    "scan_completed", "failed", "deleted",
}

EVENT_TYPES = {
    "imported": "success",
    "downloaded": "success",
    "failed": "error",
    "deleted": "error",
    "unmonitored": "warning",
}

EVENT_TITLES = {
    "grabbed": "Release Grabbed",
    "downloaded": "Download Complete",
    "imported": "Download Imported",
    "scan_completed": "Library Scan Complete",
    "unmonitored": "Auto-Unmonitored",
    "failed": "Download Failed",
    "deleted": "Deleted",
}


def notification_type_for(event_type: str) -> str:
    return EVENT_TYPES.get(event_type, "info")


def notification_title_for(event_type: str, event_label: Optional[str] = None) -> str:
    if event_label:
        return event_label
    return EVENT_TITLES.get(event_type, (event_type or "").replace("_", " "))


def activity_to_notification(activity: Dict[str, Any]) -> Dict[str, Any]:
    event_type = activity.get("event_type")
    return {
        "id": activity.get("id"),
        "type": notification_type_for(event_type),
        "title": notification_title_for(event_type, activity.get("event_label")),
        "message": activity.get("message"),
        "timestamp": activity.get("created_at"),
        "read": False,
        "entity_type": activity.get("entity_type"),
        "entity_id": activity.get("entity_id"),
    }


class NotificationCenter:
    """Notification list fed by polling the backend activity log."""

    def __init__(self, client, max_notifications: Optional[int] = None):
        self.client = client
        settings = load_settings("general")
        self.max_notifications = max_notifications or int(settings.get("notifications_max", MAX_NOTIFICATIONS))
        self.activity_limit = int(settings.get("recent_activity_limit", RECENT_ACTIVITY_LIMIT))
        self._lock = threading.Lock()
        self._seen_ids = set()
        self._last_id = 0
        self._notifications: List[Dict[str, Any]] = self._load()
        for notification in self._notifications:
            self._seen_ids.add(notification.get("id"))
        self._poller = Poller(
            "notifications", self.poll,
            interval=float(settings.get("notification_poll_interval", 5)),
            initial_delay=float(settings.get("notification_warmup_seconds", 1)),
            logger=logger,
        )

    # ── Persistence ──

    def _load(self) -> List[Dict[str, Any]]:
        stored = get_database().get_local_value(STORAGE_KEY, [])
        if not isinstance(stored, list):
            logger.error("Stored notifications are not a list, ignoring them")
            return []
        return stored

    def _save(self):
        get_database().set_local_value(STORAGE_KEY, self._notifications)

    # ── Polling ──

    def poll(self) -> int:
        """Fetch recent activity once. Returns the number of new notifications."""
        if not self.client.get_token():
            return 0

        try:
            activity = self.client.get_recent_activity(self.activity_limit) or []
        except ApiError as e:
            if e.status != 401:
                logger.error(f"Poll error: {e}")
            return 0

        if not activity:
            return 0

        max_id = max(a.get("id") or 0 for a in activity)

        with self._lock:
            # First poll only establishes the cursor
            if self._last_id == 0:
                self._last_id = max_id
                return 0

            fresh = [
                a for a in activity
                if a.get("event_type") in NOTIFICATION_EVENTS
                and (a.get("id") or 0) > self._last_id
                and a.get("id") not in self._seen_ids
            ]

            if max_id > self._last_id:
                self._last_id = max_id

            if not fresh:
                return 0

            new_notifications = [activity_to_notification(a) for a in fresh]
            self._seen_ids.update(a.get("id") for a in fresh)
            new_notifications.reverse()
            self._notifications = (new_notifications + self._notifications)[:self.max_notifications]
            self._save()

        logger.info(f"{len(new_notifications)} new notification(s)")
        return len(new_notifications)

    def refresh(self) -> int:
        return self.poll()

    def start(self) -> bool:
        """Start background polling. Does nothing until a user is logged in."""
        if not self.client.get_token():
            logger.debug("No auth token stored, notification polling not started")
            return False
        return self._poller.start()

    def stop(self):
        self._poller.stop()

    # ── Operations ──

    @property
    def notifications(self) -> List[Dict[str, Any]]:
        with self._lock:
            return [dict(n) for n in self._notifications]

    @property
    def unread_count(self) -> int:
        with self._lock:
            return sum(1 for n in self._notifications if not n.get("read"))

    def add_notification(self, notif_type: str, title: str, message: str,
                         entity_type: Optional[str] = None, entity_id: Optional[str] = None) -> Dict[str, Any]:
        notification = {
            "type": notif_type,
            "title": title,
            "message": message,
            "timestamp": datetime.datetime.now(datetime.timezone.utc).isoformat(),
            "read": False,
            "entity_type": entity_type,
            "entity_id": entity_id,
        }
        with self._lock:
            # Millisecond ids, bumped when two notifications land in the same ms
            notification_id = int(time.time() * 1000)
            taken = {n.get("id") for n in self._notifications}
            while notification_id in taken:
                notification_id += 1
            notification["id"] = notification_id
            self._notifications = ([notification] + self._notifications)[:self.max_notifications]
            self._save()
        return notification

    def mark_as_read(self, notification_id) -> bool:
        with self._lock:
            found = False
            for notification in self._notifications:
                if notification.get("id") == notification_id:
                    notification["read"] = True
                    found = True
            if found:
                self._save()
            return found

    def mark_all_as_read(self):
        with self._lock:
            for notification in self._notifications:
                notification["read"] = True
            self._save()

    def clear_notification(self, notification_id) -> bool:
        with self._lock:
            before = len(self._notifications)
            self._notifications = [n for n in self._notifications if n.get("id") != notification_id]
            removed = len(self._notifications) != before
            if removed:
                self._save()
            return removed

    def clear_all(self):
        """Drop every notification and forget the polling cursor."""
        with self._lock:
            self._notifications = []
            self._seen_ids.clear()
            self._last_id = 0
            get_database().remove_local_value(STORAGE_KEY)
