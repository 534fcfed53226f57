#!/usr/bin/env python3
"""
Toast store for MediaStack

Short-lived user messages with per-type auto-dismiss. Durations are in
milliseconds: -1 means the toast type is disabled (nothing is stored, an id is
still returned), 0 keeps the toast until dismissed, anything positive removes
it after that long. Durations per type persist under the 'toast_settings' key.
"""

import random
import string
import threading
import time
from typing import Any, Callable, Dict, List, Optional

from mediastack.default_settings import get_default_config
from mediastack.utils.database import get_database
from mediastack.utils.logger import get_logger

toast_logger = get_logger("toasts")

SETTINGS_KEY = "toast_settings"
TOAST_TYPES = ("info", "success", "warning", "error", "progress")

_BASE36 = string.digits + string.ascii_lowercase


def _random_suffix(length: int = 9) -> str:
    return "".join(random.choice(_BASE36) for _ in range(length))


def generate_toast_id() -> str:
    return f"toast-{int(time.time() * 1000)}-{_random_suffix()}"


def load_toast_settings() -> Dict[str, int]:
    """Stored per-type durations merged over the defaults.

    Older installs stored {defaultDuration, errorDuration}; those are migrated
    to the per-type shape on read.
    """
    defaults = get_default_config("toasts")
    saved = get_database().get_local_value(SETTINGS_KEY)
    if not isinstance(saved, dict):
        return defaults

    if "defaultDuration" in saved and "successDuration" not in saved:
        legacy = saved["defaultDuration"]
        return {
            "successDuration": legacy,
            "infoDuration": legacy,
            "warningDuration": legacy,
            "errorDuration": saved.get("errorDuration") or defaults["errorDuration"],
        }

    defaults.update({k: v for k, v in saved.items() if k in defaults})
    return defaults


def save_toast_settings(updates: Dict[str, int]) -> Dict[str, int]:
    current = load_toast_settings()
    current.update({k: int(v) for k, v in updates.items() if k in current})
    get_database().set_local_value(SETTINGS_KEY, current)
    return current


class ToastManager:
    """In-memory toast list with dismissal timers and change subscribers."""

    def __init__(self, timer_factory: Callable[..., Any] = threading.Timer):
        self._lock = threading.RLock()
        self._toasts: List[Dict[str, Any]] = []
        self._timers: Dict[str, Any] = {}
        self._subscribers: List[Callable[[List[Dict[str, Any]]], None]] = []
        self._timer_factory = timer_factory
        self.settings = load_toast_settings()

    # ── Subscribers ──

    def subscribe(self, callback: Callable[[List[Dict[str, Any]]], None]) -> Callable[[], None]:
        """Register callback(toasts) for every change. Returns an unsubscribe function."""
        with self._lock:
            self._subscribers.append(callback)

        def unsubscribe():
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)
        return unsubscribe

    def _notify(self):
        snapshot = self.toasts
        for callback in list(self._subscribers):
            try:
                callback(snapshot)
            except Exception as e:
                toast_logger.error(f"Toast subscriber failed: {e}")

    @property
    def toasts(self) -> List[Dict[str, Any]]:
        with self._lock:
            return [dict(t) for t in self._toasts]

    # ── Timers ──

    def _schedule_removal(self, toast_id: str, duration_ms: int):
        self._cancel_timer(toast_id)
        timer = self._timer_factory(duration_ms / 1000.0, self.remove_toast, args=(toast_id,))
        timer.daemon = True
        self._timers[toast_id] = timer
        timer.start()

    def _cancel_timer(self, toast_id: str):
        timer = self._timers.pop(toast_id, None)
        if timer is not None:
            timer.cancel()

    def _duration_for(self, toast_type: str) -> int:
        if toast_type == "progress":
            return 0
        return self.settings.get(f"{toast_type}Duration", self.settings["infoDuration"])

    # ── Operations ──

    def add_toast(self, toast_type: str, message: str, duration: Optional[int] = None,
                  progress: Optional[Dict[str, int]] = None, dismissible: bool = True) -> str:
        toast_id = generate_toast_id()
        if duration is None:
            duration = self._duration_for(toast_type)

        if duration == -1:
            toast_logger.debug(f"{toast_type} toasts are disabled, dropping: {message}")
            return toast_id

        toast = {
            "id": toast_id,
            "type": toast_type,
            "message": message,
            "duration": duration,
            "dismissible": dismissible,
        }
        if progress is not None:
            toast["progress"] = dict(progress)

        with self._lock:
            self._toasts.append(toast)
            if duration > 0:
                self._schedule_removal(toast_id, duration)
        self._notify()
        return toast_id

    def remove_toast(self, toast_id: str) -> bool:
        with self._lock:
            self._cancel_timer(toast_id)
            before = len(self._toasts)
            self._toasts = [t for t in self._toasts if t["id"] != toast_id]
            removed = len(self._toasts) != before
        if removed:
            self._notify()
        return removed

    def update_toast(self, toast_id: str, **updates) -> bool:
        """Merge updates into a toast. A new positive duration restarts its removal timer."""
        with self._lock:
            toast = next((t for t in self._toasts if t["id"] == toast_id), None)
            if toast is None:
                return False
            updates.pop("id", None)
            toast.update(updates)
            new_duration = updates.get("duration")
            if new_duration and new_duration > 0:
                self._schedule_removal(toast_id, new_duration)
        self._notify()
        return True

    def clear_all(self):
        with self._lock:
            for toast_id in list(self._timers):
                self._cancel_timer(toast_id)
            self._toasts = []
        self._notify()

    def update_settings(self, **durations) -> Dict[str, int]:
        with self._lock:
            self.settings = save_toast_settings(durations)
            return dict(self.settings)

    def close(self):
        """Cancel every pending dismissal timer."""
        with self._lock:
            for toast_id in list(self._timers):
                self._cancel_timer(toast_id)

    # ── Convenience helpers ──

    def info(self, message: str, duration: Optional[int] = None) -> str:
        return self.add_toast("info", message, duration)

    def success(self, message: str, duration: Optional[int] = None) -> str:
        return self.add_toast("success", message, duration)

    def warning(self, message: str, duration: Optional[int] = None) -> str:
        return self.add_toast("warning", message, duration)

    def error(self, message: str, duration: Optional[int] = None) -> str:
        return self.add_toast("error", message, duration)

    def progress(self, message: str, current: int, total: int) -> str:
        return self.add_toast("progress", message, 0, progress={"current": current, "total": total})


_toast_manager = None


def get_toast_manager() -> ToastManager:
    """Get the global toast store"""
    global _toast_manager
    if _toast_manager is None:
        _toast_manager = ToastManager()
    return _toast_manager
