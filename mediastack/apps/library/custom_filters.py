"""
User-defined library filters.

A custom filter is {id: 'custom_<ms>', name, conditions}; every condition
that is present must hold. Filters are stored as a list under the
'customFilters_movies' key.
"""

import time
from typing import Any, Callable, Dict, List, Optional

from mediastack.utils.database import get_database
from mediastack.utils.logger import get_logger

library_logger = get_logger("library")

STORAGE_KEY = "customFilters_movies"
CUSTOM_PREFIX = "custom_"

CONDITION_KEYS = ("monitored", "hasFile", "cutoffMet", "qualityProfileId", "quality", "minYear", "maxYear")


def normalize_quality(quality):
    """Lower-case and strip '-' and whitespace so WEB-DL, WEBDL and 'web dl' compare equal."""
    return ''.join(ch for ch in (quality or '').lower() if ch != '-' and not ch.isspace())


def _as_bool(value):
    if isinstance(value, str):
        return value.strip().lower() == 'true'
    return bool(value)


def clean_conditions(raw: Dict[str, Any]) -> Dict[str, Any]:
    """Drop unset conditions ('any', '', None) and coerce the remaining values."""
    conditions = {}
    for key in ("monitored", "hasFile", "cutoffMet"):
        value = raw.get(key)
        if value is not None and value != 'any' and value != '':
            conditions[key] = _as_bool(value)
    if raw.get("qualityProfileId"):
        conditions["qualityProfileId"] = str(raw["qualityProfileId"])
    if raw.get("quality"):
        conditions["quality"] = str(raw["quality"])
    for key in ("minYear", "maxYear"):
        if raw.get(key):
            conditions[key] = int(raw[key])
    return conditions


def build_custom_filter(name: str, conditions: Dict[str, Any], filter_id: Optional[str] = None) -> Dict[str, Any]:
    name = (name or '').strip()
    if not name:
        raise ValueError("Custom filter name is required")
    return {
        "id": filter_id or f"{CUSTOM_PREFIX}{int(time.time() * 1000)}",
        "name": name,
        "conditions": clean_conditions(conditions or {}),
    }


def matches_conditions(movie: Dict[str, Any], conditions: Dict[str, Any],
                       is_cutoff_met: Callable[[Dict[str, Any]], bool]) -> bool:
    if "monitored" in conditions and movie.get("monitored") != conditions["monitored"]:
        return False
    if "hasFile" in conditions and movie.get("has_file") != conditions["hasFile"]:
        return False
    if "cutoffMet" in conditions:
        # Items without a file never match a cutoff condition
        if not movie.get("has_file"):
            return False
        if is_cutoff_met(movie) != conditions["cutoffMet"]:
            return False
    if conditions.get("qualityProfileId") and movie.get("quality_profile_id") != conditions["qualityProfileId"]:
        return False
    if conditions.get("quality"):
        wanted = normalize_quality(conditions["quality"])
        actual = normalize_quality(movie.get("quality"))
        if wanted not in actual and actual not in wanted:
            return False
    year = movie.get("year")
    # Movies with no year never fail a year bound
    if year is None:
        return True
    if conditions.get("minYear") and year < conditions["minYear"]:
        return False
    if conditions.get("maxYear") and year > conditions["maxYear"]:
        return False
    return True


# --- Persistence ---

def load_custom_filters() -> List[Dict[str, Any]]:
    saved = get_database().get_local_value(STORAGE_KEY, [])
    if not isinstance(saved, list):
        library_logger.error("Failed to parse custom filters, ignoring stored value")
        return []
    return saved


def save_custom_filters(filters: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    get_database().set_local_value(STORAGE_KEY, filters)
    return filters


def upsert_custom_filter(custom_filter: Dict[str, Any]) -> List[Dict[str, Any]]:
    filters = [f for f in load_custom_filters() if f.get("id") != custom_filter["id"]]
    filters.append(custom_filter)
    return save_custom_filters(filters)


def delete_custom_filter(filter_id: str) -> List[Dict[str, Any]]:
    return save_custom_filters([f for f in load_custom_filters() if f.get("id") != filter_id])
