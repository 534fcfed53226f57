import os
import tempfile

# Must be set before mediastack is imported: the config dir is resolved at import time
os.environ.setdefault("MEDIASTACK_CONFIG_DIR", tempfile.mkdtemp(prefix="mediastack-tests-"))

from unittest.mock import MagicMock

import pytest

from mediastack import settings_manager
from mediastack.utils import database as database_module
from mediastack.utils import timezone_utils
from mediastack.utils.database import MediaStackDatabase


@pytest.fixture(autouse=True)
def db(tmp_path, monkeypatch):
    """Fresh database per test, with the settings and timezone caches emptied."""
    monkeypatch.delenv("MEDIASTACK_API_URL", raising=False)
    monkeypatch.delenv("TZ", raising=False)
    database = MediaStackDatabase(tmp_path / "test.db")
    monkeypatch.setattr(database_module, "_database_instance", database)
    settings_manager.clear_cache()
    timezone_utils.clear_timezone_cache()
    yield database
    settings_manager.clear_cache()
    timezone_utils.clear_timezone_cache()


class FakeTimer:
    """Stands in for threading.Timer; fire() runs the callback on demand."""

    created = []

    def __init__(self, interval, function, args=None, kwargs=None):
        self.interval = interval
        self.function = function
        self.args = args or ()
        self.kwargs = kwargs or {}
        self.daemon = False
        self.started = False
        self.cancelled = False
        FakeTimer.created.append(self)

    def start(self):
        self.started = True

    def cancel(self):
        self.cancelled = True

    def fire(self):
        if not self.cancelled:
            self.function(*self.args, **self.kwargs)


@pytest.fixture
def fake_timer():
    FakeTimer.created = []
    yield FakeTimer
    FakeTimer.created = []


@pytest.fixture
def toasts():
    """A toast store that records calls without scheduling anything."""
    return MagicMock()


@pytest.fixture
def client():
    """API client double with a stored token."""
    api = MagicMock()
    api.get_token.return_value = "token-123"
    return api
