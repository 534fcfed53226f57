import pytest

from mediastack.apps.library import custom_filters
from mediastack.apps.library.detail import MovieDetail, SeriesDetail
from mediastack.apps.library.filtering import (
    alpha_index,
    filter_movies,
    is_cutoff_met,
    load_library,
    movie_profiles,
    quality_rank,
)
from mediastack.utils.api_client import ApiError
from mediastack.utils.logger import get_logger

PROFILES = [
    {"id": "hd", "cutoff_quality": "Bluray-1080p", "media_type": "movie"},
    {"id": "tv", "cutoff_quality": "HDTV-720p", "media_type": "series"},
    {"id": "any"},
]

MOVIES = [
    {"id": "1", "title": "Alien", "monitored": True, "has_file": True, "quality": "WEBDL-1080p",
     "quality_profile_id": "hd", "year": 1979},
    {"id": "2", "title": "Blade Runner", "monitored": True, "has_file": False, "year": 1982},
    {"id": "3", "title": "Heat", "monitored": False, "has_file": True, "quality": "Bluray-1080p",
     "quality_profile_id": "hd", "year": 1995},
    {"id": "4", "title": "12 Monkeys", "monitored": False, "has_file": False, "year": 1995},
]


def _ids(movies):
    return [m["id"] for m in movies]


class TestFiltering:
    def test_quality_rank_orders_source_within_resolution(self):
        assert quality_rank("Bluray-1080p") > quality_rank("WEBDL-1080p") > quality_rank("HDTV-1080p")
        assert quality_rank("HDTV-1080p") > quality_rank("Bluray-720p")
        assert quality_rank("Remux-2160p") > quality_rank("Bluray-2160p")

    def test_movie_profiles_excludes_series_only(self):
        assert [p["id"] for p in movie_profiles(PROFILES)] == ["hd", "any"]

    def test_cutoff(self):
        assert is_cutoff_met(MOVIES[0], PROFILES) is False
        assert is_cutoff_met(MOVIES[2], PROFILES) is True
        # No file or no profile means there is nothing to upgrade
        assert is_cutoff_met(MOVIES[1], PROFILES) is True
        assert is_cutoff_met({**MOVIES[0], "quality_profile_id": "missing"}, PROFILES) is True

    @pytest.mark.parametrize(
        "filter_id, expected",
        [
            ("all", ["1", "2", "3", "4"]),
            ("monitored", ["1", "2"]),
            ("unmonitored", ["3", "4"]),
            ("missing", ["2", "4"]),
            ("wanted", ["2"]),
            ("downloaded", ["1", "3"]),
            ("cutoff_unmet", ["1"]),
            ("something_else", ["1", "2", "3", "4"]),
        ],
    )
    def test_builtin_filters(self, filter_id, expected):
        assert _ids(filter_movies(MOVIES, filter_id, profiles=PROFILES)) == expected

    def test_search_term_is_case_insensitive(self):
        assert _ids(filter_movies(MOVIES, "all", "RUNNER")) == ["2"]

    def test_alpha_index(self):
        index = alpha_index(MOVIES)
        assert index["letters"] == ["#", "A", "B", "H"]
        assert index["first_movie_by_letter"]["#"] == "4"
        assert index["first_movie_by_letter"]["A"] == "1"

    def test_load_library_sorts_and_falls_back(self, client):
        client.get_movies.return_value = {"items": [MOVIES[2], MOVIES[0]], "total": 2}
        client.get_quality_profiles.side_effect = ApiError(500, "boom")
        movies, profiles = load_library(client, get_logger("library"))
        assert _ids(movies) == ["1", "3"]
        assert profiles == []


class TestCustomFilters:
    def test_build_requires_name(self):
        with pytest.raises(ValueError):
            custom_filters.build_custom_filter("  ", {})

    def test_clean_conditions_drops_unset_values(self):
        conditions = custom_filters.clean_conditions({
            "monitored": "any", "hasFile": "true", "cutoffMet": "", "quality": "WEB-DL",
            "minYear": "1990", "maxYear": None,
        })
        assert conditions == {"hasFile": True, "quality": "WEB-DL", "minYear": 1990}

    def test_custom_filter_matching(self):
        flt = custom_filters.build_custom_filter("Old web", {"quality": "webdl", "maxYear": 1980})
        assert flt["id"].startswith(custom_filters.CUSTOM_PREFIX)
        assert _ids(filter_movies(MOVIES, flt["id"], profiles=PROFILES, custom_filters=[flt])) == ["1"]

    def test_cutoff_condition_skips_movies_without_files(self):
        flt = custom_filters.build_custom_filter("Met", {"cutoffMet": True}, filter_id="custom_1")
        assert _ids(filter_movies(MOVIES, "custom_1", profiles=PROFILES, custom_filters=[flt])) == ["3"]

    def test_year_bounds_keep_movies_without_a_year(self):
        conditions = {"minYear": 2000, "maxYear": 2010}
        assert custom_filters.matches_conditions({"title": "x", "monitored": True}, conditions, bool) is True
        assert custom_filters.matches_conditions({"title": "x", "year": 1995}, conditions, bool) is False
        assert custom_filters.matches_conditions({"title": "x", "year": 2005}, conditions, bool) is True

    def test_unknown_custom_filter_matches_everything(self):
        assert len(filter_movies(MOVIES, "custom_404", custom_filters=[])) == len(MOVIES)

    def test_persistence(self):
        first = custom_filters.build_custom_filter("One", {}, filter_id="custom_1")
        second = custom_filters.build_custom_filter("Two", {}, filter_id="custom_2")
        custom_filters.upsert_custom_filter(first)
        custom_filters.upsert_custom_filter(second)
        custom_filters.upsert_custom_filter({**first, "name": "Renamed"})

        names = {f["id"]: f["name"] for f in custom_filters.load_custom_filters()}
        assert names == {"custom_1": "Renamed", "custom_2": "Two"}

        custom_filters.delete_custom_filter("custom_1")
        assert _ids(custom_filters.load_custom_filters()) == ["custom_2"]

    def test_corrupt_storage_is_ignored(self, db):
        db.set_local_value(custom_filters.STORAGE_KEY, {"not": "a list"})
        assert custom_filters.load_custom_filters() == []


class TestMovieDetail:
    def test_load_falls_back_per_section(self, client, toasts):
        client.get_movie_by_id.return_value = {"id": "1", "title": "Alien", "monitored": True}
        client.get_quality_profiles.return_value = PROFILES
        client.get_movie_files.side_effect = ApiError(500, "disk offline")
        client.get_movie_activity.return_value = [{"id": 1}]

        snapshot = MovieDetail(client, toasts, "1").load()

        assert snapshot["movie"]["title"] == "Alien"
        assert snapshot["files"] == []
        assert snapshot["activity"] == [{"id": 1}]
        client.get_movie_activity.assert_called_once_with("1", 20)

    def test_toggle_monitored(self, client, toasts):
        detail = MovieDetail(client, toasts, "1")
        detail.item = {"id": "1", "monitored": True}

        assert detail.toggle_monitored() is False
        client.update_movie.assert_called_once_with("1", {"monitored": False})
        toasts.success.assert_called_once_with("Unmonitored")

    def test_toggle_monitored_failure_keeps_state(self, client, toasts):
        client.update_movie.side_effect = ApiError(500, "nope")
        detail = MovieDetail(client, toasts, "1")
        detail.item = {"id": "1", "monitored": False}

        assert detail.toggle_monitored() is None
        assert detail.item["monitored"] is False
        toasts.error.assert_called_once_with("Failed to update")

    def test_delete_passes_flags(self, client, toasts):
        assert MovieDetail(client, toasts, "1").delete(delete_files=True, add_exclusion=True) is True
        client.delete_movie.assert_called_once_with("1", True, True)

    def test_delete_failure(self, client, toasts):
        client.delete_movie.side_effect = ApiError(500, "nope")
        assert MovieDetail(client, toasts, "1").delete() is False
        toasts.error.assert_called_once_with("Failed to delete movie")

    @pytest.mark.parametrize(
        "result, found, toast",
        [
            ({"found": 2}, 2, ("success", "Found 2 file(s)")),
            ({"found": 0}, 0, ("warning", "No video files found in folder")),
        ],
    )
    def test_scan(self, client, toasts, result, found, toast):
        client.scan_movie.return_value = result
        assert MovieDetail(client, toasts, "1").scan() == found
        getattr(toasts, toast[0]).assert_called_once_with(toast[1])

    def test_scan_failure(self, client, toasts):
        client.scan_movie.side_effect = ApiError(None, "timeout")
        assert MovieDetail(client, toasts, "1").scan() == -1
        toasts.error.assert_called_once_with("Failed to scan movie folder")

    def test_delete_file_reports_backend_error(self, client, toasts):
        client.delete_movie_file.side_effect = ApiError(409, "File is in use")
        assert MovieDetail(client, toasts, "1").delete_file("f1") is False
        toasts.error.assert_called_once_with("File is in use")

    def test_activity_poller_lifecycle(self, client, toasts):
        detail = MovieDetail(client, toasts, "1")
        assert detail.activity_expanded is False
        assert detail.expand_activity() is True
        assert detail.activity_expanded is True
        detail.close()
        assert detail.activity_expanded is False


class TestSeriesDetail:
    def test_load(self, client, toasts):
        client.get_series_by_id.return_value = {"id": "s1", "title": "The Wire"}
        client.get_seasons.return_value = [{"season_number": 1}]
        client.get_quality_profiles.return_value = []
        client.get_series_activity.return_value = []

        snapshot = SeriesDetail(client, toasts, "s1").load()

        assert snapshot["series"]["title"] == "The Wire"
        assert snapshot["seasons"] == [{"season_number": 1}]
        client.get_series_activity.assert_called_once_with("s1", 50)

    def test_delete_failure_names_series(self, client, toasts):
        client.delete_series.side_effect = ApiError(500, "nope")
        assert SeriesDetail(client, toasts, "s1").delete() is False
        toasts.error.assert_called_once_with("Failed to delete series")
