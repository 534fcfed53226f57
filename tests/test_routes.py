import pytest

from mediastack import __version__
from mediastack.apps.library.custom_filters import load_custom_filters
from mediastack.notification_manager import NotificationCenter
from mediastack.toast_manager import ToastManager
from mediastack.utils.api_client import ApiError, AuthenticationError
from mediastack.web_server import create_app


@pytest.fixture
def toast_store(fake_timer):
    store = ToastManager(timer_factory=fake_timer)
    yield store
    store.close()


@pytest.fixture
def notifications(client):
    center = NotificationCenter(client)
    yield center
    center.stop()


@pytest.fixture
def app(client, toast_store, notifications):
    app = create_app(client=client, toasts=toast_store, notifications=notifications)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def http(app):
    return app.test_client()


class TestHealthAndAuth:
    def test_health(self, http, client):
        client.get_health.return_value = {"status": "ok"}
        data = http.get("/api/health").get_json()
        assert data["version"] == __version__
        assert data["backend_ok"] is True
        assert data["authenticated"] is True

    def test_health_backend_down(self, http, client):
        client.get_health.side_effect = ApiError(None, "Connection refused")
        data = http.get("/api/health").get_json()
        assert data["status"] == "ok"
        assert data["backend_ok"] is False

    def test_login_requires_credentials(self, http, client):
        response = http.post("/api/auth/login", json={"username": "me"})
        assert response.status_code == 400
        client.login.assert_not_called()

    def test_login(self, http, client):
        client.login.return_value = {"token": "t", "user": {"username": "me"}}
        response = http.post("/api/auth/login", json={"username": "me", "password": "pw"})
        assert response.status_code == 200
        assert response.get_json()["user"] == {"username": "me"}

    def test_login_rejected(self, http, client):
        client.login.side_effect = AuthenticationError(401, "Invalid credentials")
        response = http.post("/api/auth/login", json={"username": "me", "password": "bad"})
        assert response.status_code == 401
        assert response.get_json()["error"] == "Invalid credentials"

    def test_logout(self, http, client):
        assert http.post("/api/auth/logout").status_code == 200
        client.clear_auth.assert_called_once()

    def test_unknown_route_is_json(self, http):
        response = http.get("/api/nothing-here")
        assert response.status_code == 404
        assert response.get_json() == {"error": "Not found"}


class TestReleaseRoutes:
    def _prepare(self, client):
        client.get_indexer_status.return_value = {"enabled": 1}
        client.get_quality_profiles.return_value = [{"id": "p1"}]
        client.get_enabled_download_clients.return_value = [{"id": "dc1"}]
        client.search_movie_releases.return_value = [
            {"title": "Heat.1995.720p.HDTV", "seeders": 50, "protocol": "torrent", "size": 1024 ** 3},
            {"title": "Heat.1995.1080p.BluRay", "seeders": 2, "protocol": "usenet"},
        ]
        client.score_releases.return_value = {"scores": {"Heat.1995.1080p.BluRay": 100}}

    def test_search_requires_title(self, http):
        assert http.get("/api/releases/search").status_code == 400

    def test_search_rejects_bad_sort(self, http):
        assert http.get("/api/releases/search?title=Heat&sort=name").status_code == 400

    def test_search_rejects_bad_year(self, http):
        assert http.get("/api/releases/search?title=Heat&year=soon").status_code == 400

    def test_search_ranks_results(self, http, client):
        self._prepare(client)
        data = http.get("/api/releases/search?title=Heat&year=1995").get_json()

        assert [r["title"] for r in data["releases"]] == ["Heat.1995.1080p.BluRay", "Heat.1995.720p.HDTV"]
        assert data["releases"][0]["source"] == "Bluray"
        assert data["releases"][1]["sizeFormatted"] == "1.0 GB"
        assert data["selected_client_id"] == "dc1"
        client.search_movie_releases.assert_called_once_with("Heat", 1995)

    def test_search_filters(self, http, client):
        self._prepare(client)
        data = http.get("/api/releases/search?title=Heat&protocol=torrent").get_json()
        assert [r["title"] for r in data["releases"]] == ["Heat.1995.720p.HDTV"]
        assert data["total"] == 2

    def test_grab(self, http, client, toast_store):
        client.get_enabled_download_clients.return_value = [{"id": "dc1"}]
        response = http.post("/api/releases/grab", json={
            "media_type": "movie", "media_id": "m1",
            "release": {"title": "Heat", "downloadUrl": "http://x"},
        })
        assert response.status_code == 200
        assert client.start_download.call_args[0][0]["downloadClientId"] == "dc1"
        assert toast_store.toasts[0]["message"] == "Download started!"

    def test_grab_requires_download_url(self, http):
        assert http.post("/api/releases/grab", json={"release": {"title": "x"}}).status_code == 400

    def test_grab_without_clients(self, http, client, toast_store):
        client.get_enabled_download_clients.return_value = []
        response = http.post("/api/releases/grab", json={"release": {"title": "Heat", "downloadUrl": "http://x"}})
        assert response.status_code == 502
        assert toast_store.toasts[0]["message"] == "No download clients configured"

    def test_view_mode(self, http, client):
        client.get_ui_settings.return_value = {"ui_settings": None}
        assert http.get("/api/releases/view-mode").get_json() == {"view_mode": "cards"}
        assert http.put("/api/releases/view-mode", json={"view_mode": "table"}).status_code == 200
        assert http.put("/api/releases/view-mode", json={"view_mode": "grid"}).status_code == 400


class TestToastRoutes:
    def test_add_list_and_remove(self, http):
        response = http.post("/api/toasts", json={"type": "success", "message": "Saved"})
        assert response.status_code == 201
        toast_id = response.get_json()["id"]

        toasts = http.get("/api/toasts").get_json()["toasts"]
        assert [t["id"] for t in toasts] == [toast_id]

        assert http.delete(f"/api/toasts/{toast_id}").status_code == 200
        assert http.delete(f"/api/toasts/{toast_id}").status_code == 404

    def test_validation(self, http):
        assert http.post("/api/toasts", json={"type": "loud", "message": "x"}).status_code == 400
        assert http.post("/api/toasts", json={"type": "info"}).status_code == 400
        assert http.post("/api/toasts", json={"message": "x", "duration": "long"}).status_code == 400
        assert http.post("/api/toasts", json={"message": "x", "duration": -5}).status_code == 400

    def test_add_with_disabled_duration_stores_nothing(self, http, toast_store):
        response = http.post("/api/toasts", json={"type": "error", "message": "x", "duration": -1})
        assert response.status_code == 201
        assert toast_store.toasts == []

    def test_clear(self, http, toast_store):
        toast_store.info("one")
        assert http.delete("/api/toasts").status_code == 200
        assert toast_store.toasts == []

    def test_settings(self, http):
        assert http.get("/api/toasts/settings").get_json()["settings"]["errorDuration"] == 8000
        response = http.put("/api/toasts/settings", json={"infoDuration": -1})
        assert response.get_json()["settings"]["infoDuration"] == -1
        assert http.put("/api/toasts/settings", json={"infoDuration": -5}).status_code == 400


class TestSettingsRoutes:
    def test_timezone(self, http):
        assert http.get("/api/timezone").get_json() == {"timezone": "UTC"}
        assert http.put("/api/timezone", json={"timezone": "Nowhere/Land"}).status_code == 400
        assert http.put("/api/timezone", json={"timezone": "Europe/Rome"}).status_code == 200
        assert http.get("/api/timezone").get_json() == {"timezone": "Europe/Rome"}

    def test_timezone_sync(self, http, client):
        client.get_settings.return_value = {"timezone": "Asia/Tokyo"}
        assert http.post("/api/timezone/sync").get_json() == {"synced": True, "timezone": "Asia/Tokyo"}

    def test_general_settings(self, http):
        assert http.get("/api/settings").get_json()["api_port"] == 5055
        saved = http.put("/api/settings", json={"api_port": 6055}).get_json()
        assert saved["api_port"] == 6055
        assert http.put("/api/settings", json={"bogus": 1}).status_code == 400


MOVIES = [
    {"id": "2", "title": "Heat", "monitored": False, "has_file": True},
    {"id": "1", "title": "Alien", "monitored": True, "has_file": False},
]


class TestLibraryRoutes:
    def test_movies(self, http, client):
        client.get_movies.return_value = {"items": list(MOVIES), "total": 2}
        client.get_quality_profiles.return_value = []

        data = http.get("/api/library/movies").get_json()
        assert [m["id"] for m in data["movies"]] == ["1", "2"]
        assert data["index"]["letters"] == ["A", "H"]

        data = http.get("/api/library/movies?filter=monitored").get_json()
        assert [m["id"] for m in data["movies"]] == ["1"]
        assert data["total"] == 2

    def test_custom_filters(self, http):
        response = http.put("/api/library/custom-filters",
                            json={"id": "custom_1", "name": "Missing", "conditions": {"hasFile": "false"}})
        assert response.get_json()["filter"]["conditions"] == {"hasFile": False}
        assert [f["id"] for f in http.get("/api/library/custom-filters").get_json()["filters"]] == ["custom_1"]

        assert http.put("/api/library/custom-filters", json={"name": ""}).status_code == 400

        http.delete("/api/library/custom-filters/custom_1")
        assert load_custom_filters() == []

    def test_movie_detail(self, http, client):
        client.get_movie_by_id.return_value = {"id": "1", "title": "Alien"}
        client.get_quality_profiles.return_value = []
        client.get_movie_files.return_value = []
        client.get_movie_activity.return_value = []
        assert http.get("/api/library/movies/1").get_json()["movie"]["title"] == "Alien"

    def test_movie_detail_not_found(self, http, client):
        client.get_movie_by_id.side_effect = ApiError(404, "Movie not found")
        client.get_quality_profiles.return_value = []
        client.get_movie_files.return_value = []
        client.get_movie_activity.return_value = []
        assert http.get("/api/library/movies/404").status_code == 404

    def test_toggle_monitored(self, http, client):
        client.get_movie_by_id.return_value = {"id": "1", "monitored": True}
        data = http.put("/api/library/movies/1/monitored").get_json()
        assert data == {"success": True, "monitored": False}
        client.update_movie.assert_called_once_with("1", {"monitored": False})

    def test_toggle_monitored_missing_movie(self, http, client):
        client.get_movie_by_id.side_effect = ApiError(404, "Movie not found")
        assert http.put("/api/library/movies/9/monitored").status_code == 404

    def test_delete_movie(self, http, client):
        assert http.delete("/api/library/movies/1?delete_files=true").status_code == 200
        client.delete_movie.assert_called_once_with("1", True, False)

    def test_scan(self, http, client):
        client.scan_movie.return_value = {"found": 1}
        client.get_movie_by_id.return_value = {"id": "1"}
        client.get_movie_files.return_value = []
        assert http.post("/api/library/movies/1/scan").get_json() == {"success": True, "found": 1}

    def test_bulk_update_requires_ids(self, http):
        assert http.post("/api/library/movies/bulk-update", json={"updates": {"monitored": True}}).status_code == 400

    def test_series_detail(self, http, client):
        client.get_series_by_id.return_value = {"id": "s1", "title": "The Wire"}
        client.get_seasons.return_value = []
        client.get_quality_profiles.return_value = []
        client.get_series_activity.return_value = []
        assert http.get("/api/library/series/s1").get_json()["series"]["title"] == "The Wire"


class TestActivityRoutes:
    def test_downloads(self, http, client):
        client.get_downloads.return_value = [{"id": "d1", "status": "downloading", "size": 1024}]
        data = http.get("/api/activity/downloads").get_json()
        assert data["downloads"][0]["sizeFormatted"] == "1 KB"
        assert data["counts"]["active"] == 1

    def test_bad_status(self, http):
        assert http.get("/api/activity/downloads?status=paused").status_code == 400
        assert http.post("/api/activity/downloads/clear", json={"status": "downloading"}).status_code == 400

    def test_cancel(self, http, client):
        client.get_downloads.return_value = []
        assert http.delete("/api/activity/downloads/d1?delete_files=1").status_code == 200
        client.cancel_download.assert_called_once_with("d1", True)

    def test_clear_failure(self, http, client):
        client.clear_downloads.side_effect = ApiError(500, "nope")
        assert http.post("/api/activity/downloads/clear", json={"status": "failed"}).status_code == 502


class TestNotificationRoutes:
    def test_flow(self, http, notifications):
        first = notifications.add_notification("info", "One", "first")
        notifications.add_notification("info", "Two", "second")

        data = http.get("/api/notifications").get_json()
        assert data["unread_count"] == 2

        assert http.post(f"/api/notifications/{first['id']}/read").status_code == 200
        assert http.post("/api/notifications/12345/read").status_code == 404
        assert http.get("/api/notifications").get_json()["unread_count"] == 1

        assert http.post("/api/notifications/read-all").get_json()["unread_count"] == 0
        assert http.delete(f"/api/notifications/{first['id']}").status_code == 200
        assert http.delete("/api/notifications").status_code == 200
        assert notifications.notifications == []

    def test_refresh(self, http, client):
        client.get_recent_activity.return_value = [{"id": 1, "event_type": "imported"}]
        assert http.post("/api/notifications/refresh").get_json()["new"] == 0


class TestReportRoutes:
    def test_dashboard(self, http, client):
        client.get_library_stats.return_value = {"movies": {"total": 1}}
        client.get_recently_added.return_value = []
        client.get_downloads.return_value = []
        client.get_recent_activity.return_value = []
        client.get_movies.return_value = {"items": [], "total": 0}
        client.get_series.return_value = {"items": [], "total": 0}
        data = http.get("/api/dashboard").get_json()
        assert data["stats"] == {"movies": {"total": 1}}
        assert data["active_downloads"] == 0

    def test_movie_report_parses_booleans(self, http, client):
        client.search_report_movies.return_value = [{"id": 1}]
        data = http.get("/api/reports/movies?hasFile=false&quality=1080p&bogus=1").get_json()
        assert data == {"results": [{"id": 1}]}
        client.search_report_movies.assert_called_once_with({"hasFile": False, "quality": "1080p"})

    def test_report_stats(self, http, client):
        client.get_report_filter_options.return_value = {}
        client.get_report_stats.return_value = {"movies": 3}
        assert http.get("/api/reports/stats").get_json() == {"filters": {}, "stats": {"movies": 3}}
