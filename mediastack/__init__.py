"""MediaStack companion: client tier for the MediaStack media-library backend."""

__version__ = "1.4.0"
