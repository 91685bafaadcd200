# File: url_scout/cache/__init__.py
"""url_scout.cache: persisted fingerprints of known URLs and the incremental diff."""

from .base import CacheBackend, CacheEntry, cache_key, fingerprint
from .store import CacheStore, build_cache_store, diff

__all__ = [
    "CacheBackend",
    "CacheEntry",
    "cache_key",
    "fingerprint",
    "CacheStore",
    "build_cache_store",
    "diff",
]
