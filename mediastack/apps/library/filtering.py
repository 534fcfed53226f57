"""
Movie library list: built-in and custom filters, quality cutoff and the A-Z index.
"""

from typing import Any, Dict, List, Optional

from mediastack.apps.library.custom_filters import CUSTOM_PREFIX, matches_conditions
from mediastack.utils.page_loader import load_all

BUILTIN_FILTERS = ("all", "monitored", "unmonitored", "missing", "wanted", "downloaded", "cutoff_unmet")

# Resolution gives the base rank, source adds a bonus so Bluray-1080p > WEBDL-1080p > HDTV-1080p
_RESOLUTION_RANKS = (
    (("2160", "4k", "uhd"), 400),
    (("1080",), 300),
    (("720",), 200),
    (("480", "sd"), 100),
)

_SOURCE_RANKS = (
    (("remux",), 50),
    (("bluray", "blu-ray", "bdrip", "brrip"), 40),
    (("webdl", "web-dl", "web dl"), 30),
    (("webrip", "web-rip", "web rip"), 25),
    (("hdtv",), 20),
    (("dvd", "sdtv"), 10),
)


def _first_rank(text, table):
    for needles, rank in table:
        if any(n in text for n in needles):
            return rank
    return 0


def quality_rank(quality):
    q = (quality or '').lower()
    return _first_rank(q, _RESOLUTION_RANKS) + _first_rank(q, _SOURCE_RANKS)


def movie_profiles(profiles):
    """Quality profiles usable for movies (no media_type, 'both' or 'movie')."""
    return [p for p in profiles or [] if not p.get("media_type") or p.get("media_type") in ("both", "movie")]


def is_cutoff_met(movie, profiles):
    """True unless the movie has a file whose quality ranks below its profile's cutoff."""
    if not movie.get("quality_profile_id") or not movie.get("has_file") or not movie.get("quality"):
        return True
    profile = next((p for p in profiles or [] if p.get("id") == movie.get("quality_profile_id")), None)
    if not profile or not profile.get("cutoff_quality"):
        return True
    return quality_rank(movie.get("quality")) >= quality_rank(profile.get("cutoff_quality"))


def sort_by_title(movies):
    return sorted(movies or [], key=lambda m: (m.get("title") or "").lower())


def _matches_filter(movie, filter_id, profiles, custom_filters):
    if filter_id in (None, "", "all"):
        return True
    if filter_id == "monitored":
        return bool(movie.get("monitored"))
    if filter_id == "unmonitored":
        return not movie.get("monitored")
    if filter_id == "missing":
        return not movie.get("has_file")
    if filter_id == "wanted":
        return bool(movie.get("monitored")) and not movie.get("has_file")
    if filter_id == "downloaded":
        return bool(movie.get("has_file"))
    if filter_id == "cutoff_unmet":
        return bool(movie.get("has_file")) and not is_cutoff_met(movie, profiles)
    if filter_id.startswith(CUSTOM_PREFIX):
        custom = next((f for f in custom_filters or [] if f.get("id") == filter_id), None)
        if custom is None:
            return True
        return matches_conditions(movie, custom.get("conditions") or {},
                                  lambda m: is_cutoff_met(m, profiles))
    return True


def filter_movies(movies: List[Dict[str, Any]], filter_id: str = "all", search_term: str = "",
                  profiles: Optional[List[Dict[str, Any]]] = None,
                  custom_filters: Optional[List[Dict[str, Any]]] = None) -> List[Dict[str, Any]]:
    needle = (search_term or "").lower()
    return [
        m for m in movies
        if needle in (m.get("title") or "").lower()
        and _matches_filter(m, filter_id, profiles, custom_filters)
    ]


def index_letter(title):
    first = (title or "")[:1].upper()
    return first if "A" <= first <= "Z" else "#"


def alpha_index(movies):
    """Letters present (with '#' first) and the id of the first movie under each."""
    first_by_letter = {}
    for movie in movies:
        first_by_letter.setdefault(index_letter(movie.get("title")), movie.get("id"))
    letters = sorted(first_by_letter, key=lambda letter: (letter != "#", letter))
    return {"letters": letters, "first_movie_by_letter": first_by_letter}


def load_library(client, logger):
    """Movies sorted by title plus the movie quality profiles, each defaulting to [] on failure."""
    loaded = load_all({
        "movies": (lambda: client.get_movies()["items"], []),
        "profiles": (client.get_quality_profiles, []),
    }, logger)
    return sort_by_title(loaded["movies"]), movie_profiles(loaded["profiles"])
