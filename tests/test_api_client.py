from unittest.mock import MagicMock

import pytest
import requests

from mediastack import settings_manager
from mediastack.utils.api_client import (
    API_PORT_KEY,
    TOKEN_KEY,
    USER_KEY,
    ApiClient,
    ApiError,
    AuthenticationError,
    report_params,
    resolve_base_url,
)


def _response(status=200, payload=None, text=None):
    response = MagicMock()
    response.status_code = status
    response.reason = "Reason"
    if payload is None and text is None:
        response.content = b""
    else:
        response.content = b"x"
    if payload is not None:
        response.json.return_value = payload
    else:
        response.json.side_effect = ValueError("no json")
    response.text = text or ""
    return response


@pytest.fixture
def session():
    http = MagicMock()
    http.headers = {}
    http.request.return_value = _response(200, {})
    return http


@pytest.fixture
def api(session):
    return ApiClient(base_url="http://backend:5055/api", session=session)


def _call(session):
    args, kwargs = session.request.call_args
    return args[0], args[1], kwargs


class TestBaseUrl:
    def test_default(self):
        assert resolve_base_url() == "http://localhost:5055/api"

    def test_port_argument_is_remembered(self, db):
        assert resolve_base_url(6000) == "http://localhost:6000/api"
        assert db.get_local_value(API_PORT_KEY) == "6000"
        assert resolve_base_url() == "http://localhost:6000/api"

    def test_api_url_setting_wins(self):
        settings_manager.save_settings("general", {"api_url": "https://media.example.com/api/"})
        assert resolve_base_url(6000) == "https://media.example.com/api"

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("MEDIASTACK_API_URL", "http://env-host:1234/api")
        settings_manager.clear_cache()
        assert resolve_base_url() == "http://env-host:1234/api"


class TestRequests:
    def test_bearer_token_and_params(self, api, session, db):
        db.set_local_value(TOKEN_KEY, "abc")
        session.request.return_value = _response(200, [{"id": 1}])

        assert api.get_movies(monitored=True) == {"items": [{"id": 1}], "total": 1}

        method, url, kwargs = _call(session)
        assert method == "GET"
        assert url == "http://backend:5055/api/library/movies"
        assert kwargs["params"] == {"monitored": "true"}
        assert kwargs["headers"]["Authorization"] == "Bearer abc"

    def test_no_token_no_header(self, api, session):
        api.get_library_stats()
        assert "Authorization" not in _call(session)[2]["headers"]

    def test_unauthorized_clears_credentials(self, api, session, db):
        db.set_local_value(TOKEN_KEY, "abc")
        db.set_local_value(USER_KEY, {"username": "me"})
        session.request.return_value = _response(401, {"error": "Token expired"})

        with pytest.raises(AuthenticationError) as exc:
            api.get_me()

        assert exc.value.status == 401
        assert exc.value.message == "Token expired"
        assert db.get_local_value(TOKEN_KEY) is None
        assert db.get_local_value(USER_KEY) is None

    def test_http_error_uses_backend_message(self, api, session):
        session.request.return_value = _response(404, {"error": "Movie not found"})
        with pytest.raises(ApiError) as exc:
            api.get_movie_by_id("42")
        assert exc.value.status == 404
        assert str(exc.value) == "404: Movie not found"

    def test_transport_error_has_no_status(self, api, session):
        session.request.side_effect = requests.exceptions.ConnectionError("refused")
        with pytest.raises(ApiError) as exc:
            api.get_health()
        assert exc.value.status is None

    def test_empty_body_is_none(self, api, session):
        session.request.return_value = _response(204)
        assert api.sync_downloads() is None

    def test_text_body(self, api, session):
        session.request.return_value = _response(200, text="OK")
        assert api.get_health() == "OK"

    def test_login_stores_token(self, api, session, db):
        session.request.return_value = _response(200, {"token": "t1", "user": {"username": "me"}})
        api.login("me", "secret")
        assert db.get_local_value(TOKEN_KEY) == "t1"
        assert db.get_local_value(USER_KEY) == {"username": "me"}
        assert api.get_token() == "t1"

    def test_delete_movie_flags(self, api, session):
        api.delete_movie("7", delete_files=True)
        method, url, kwargs = _call(session)
        assert method == "DELETE"
        assert url.endswith("/library/movies/7")
        assert kwargs["params"] == {"deleteFiles": "true", "addExclusion": "false"}

    def test_cancel_download_sends_json_body(self, api, session):
        api.cancel_download("d1", delete_files=True)
        assert _call(session)[2]["json"] == {"deleteFiles": True}

    def test_search_tv_drops_unset_params(self, api, session):
        session.request.return_value = _response(200, [])
        api.search_tv_releases("The Wire", season=1)
        assert _call(session)[2]["params"] == {"title": "The Wire", "season": 1}

    def test_ui_settings_default(self, api, session):
        session.request.return_value = _response(204)
        assert api.get_ui_settings() == {"ui_settings": None}


def test_report_params_keep_explicit_false_for_tristate():
    params = report_params({"hasFile": False, "monitored": None, "quality": "", "limit": 50, "noRating": False})
    assert params == {"hasFile": False, "limit": 50}
