"""Release title parsing: resolution, source and display size."""

import re

# Ordered: first match wins
_QUALITY_PATTERNS = (
    (re.compile(r'2160p|4K|UHD', re.IGNORECASE), '4K'),
    (re.compile(r'1080p', re.IGNORECASE), '1080p'),
    (re.compile(r'720p', re.IGNORECASE), '720p'),
    (re.compile(r'480p', re.IGNORECASE), '480p'),
)

_SOURCE_PATTERNS = (
    (re.compile(r'Remux', re.IGNORECASE), 'Remux'),
    (re.compile(r'BluRay|BDRip', re.IGNORECASE), 'Bluray'),
    (re.compile(r'WEB-DL|WEBDL', re.IGNORECASE), 'WEB-DL'),
    (re.compile(r'WEBRip', re.IGNORECASE), 'WEBRip'),
    (re.compile(r'HDTV', re.IGNORECASE), 'HDTV'),
)

GB = 1024 * 1024 * 1024
MB = 1024 * 1024


def detect_quality(title):
    """Resolution label for a release title: '4K', '1080p', '720p', '480p' or 'Unknown'."""
    for pattern, label in _QUALITY_PATTERNS:
        if pattern.search(title or ''):
            return label
    return 'Unknown'


def detect_source(title):
    """Source label ('Remux', 'Bluray', 'WEB-DL', 'WEBRip', 'HDTV'), '' when none is present."""
    for pattern, label in _SOURCE_PATTERNS:
        if pattern.search(title or ''):
            return label
    return ''


def format_size(size_bytes):
    if not size_bytes:
        return 'N/A'
    gb = size_bytes / GB
    if gb >= 1:
        return '%.1f GB' % gb
    return '%.0f MB' % (size_bytes / MB)


def normalize_release(raw):
    """Copy of a search result with quality detected and numeric fields defaulted.

    The custom format score always starts at 0 until the backend scores it.
    """
    release = dict(raw or {})
    release['quality'] = detect_quality(release.get('title') or '')
    release['size'] = release.get('size') or 0
    release['seeders'] = release.get('seeders') or 0
    release['leechers'] = release.get('leechers') or 0
    release['customFormatScore'] = 0
    return release
