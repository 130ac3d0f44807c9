"""Verdict caching for linkshield.

This package provides :class:`VerdictCache`, the explicit cache object owned
by every :class:`~linkshield.client.LinkShield` client, together with the
storage backends it persists through.  The default backend is
:class:`JsonFileStorage`, a single JSON object file at the configured
``cache_file`` path.
"""

from linkshield.cache.cache import DETAILED_KEY_SUFFIX, VerdictCache
from linkshield.cache.storage import (
    CacheStorage,
    DiskCacheStorage,
    JsonFileStorage,
    MemoryStorage,
)

__all__ = [
    "DETAILED_KEY_SUFFIX",
    "CacheStorage",
    "DiskCacheStorage",
    "JsonFileStorage",
    "MemoryStorage",
    "VerdictCache",
]
