"""
Filtering and ordering of interactive search results.

The default order is the composite score: the backend's custom format score
plus a seeders bonus of half the seeder count, capped at 50. Every sort is
stable so releases that compare equal keep the order the indexers returned.
"""

import functools

from mediastack.utils.timezone_utils import parse_utc_date

SORT_FIELDS = ('score', 'seeders', 'size', 'age', 'quality')
SEEDERS_BONUS_CAP = 50

QUALITY_WEIGHTS = {
    '4K': 4,
    '2160p': 4,
    '1080p': 3,
    '720p': 2,
    '480p': 1,
}


def composite_score(release):
    seeders = release.get('seeders') or 0
    return (release.get('customFormatScore') or 0) + min(seeders / 2, SEEDERS_BONUS_CAP)


def _publish_timestamp(release):
    parsed = parse_utc_date(release.get('publishDate'))
    # Unparseable dates sort as the oldest
    return parsed.timestamp() if parsed else float('-inf')


_SORT_KEYS = {
    'score': composite_score,
    'seeders': lambda r: r.get('seeders') or 0,
    'size': lambda r: r.get('size') or 0,
    'age': _publish_timestamp,
    'quality': lambda r: QUALITY_WEIGHTS.get(r.get('quality'), 0),
}


def quality_matches(release_quality, quality_filter):
    if quality_filter in (None, '', 'all'):
        return True
    if quality_filter == '4K':
        return release_quality in ('4K', '2160p')
    return release_quality == quality_filter


def filter_releases(releases, quality='all', protocol='all', text=''):
    needle = (text or '').lower()
    return [
        r for r in releases
        if quality_matches(r.get('quality'), quality)
        and (protocol in (None, '', 'all') or r.get('protocol') == protocol)
        and (not needle or needle in (r.get('title') or '').lower())
    ]


def sort_releases(releases, sort_by='score', order='desc'):
    """Stable sort on one field. 'desc' puts the largest first; unknown fields keep order."""
    key = _SORT_KEYS.get(sort_by)
    if key is None:
        return list(releases)

    def compare(a, b):
        # Descending comparison, negated for ascending
        ka, kb = key(a), key(b)
        result = (kb > ka) - (kb < ka)
        return result if order == 'desc' else -result

    return sorted(releases, key=functools.cmp_to_key(compare))


def rank_releases(releases, quality='all', protocol='all', text='', sort_by='score', order='desc'):
    """Filtered and sorted view of a search result list."""
    return sort_releases(filter_releases(releases, quality, protocol, text), sort_by, order)
