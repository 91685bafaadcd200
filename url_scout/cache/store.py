# File: url_scout/cache/store.py
"""
url_scout.cache.store: TTL-aware cache facade and the incremental diff.

Cache failures never abort a run: reads degrade to a miss and writes to a
logged warning, so a broken backend only costs the "new since last run"
reduction.
"""
from __future__ import annotations

import time
from typing import TYPE_CHECKING, Callable, Iterable, List, Optional, Sequence, Set, Union

from url_scout.cache.base import CacheBackend, CacheEntry, cache_key, decode_entry, encode_entry, fingerprint
from url_scout.errors import CacheError, ConfigError
from url_scout.logger import logger
from url_scout.models import Scope

if TYPE_CHECKING:
    from url_scout.config import CacheSettings

__all__: Sequence[str] = ("CacheStore", "diff", "build_cache_store")


def _fingerprints(urls: Iterable[str]) -> Set[str]:
    return {fingerprint(u) for u in urls}


def diff(previous: Optional[CacheEntry], current: Sequence[str]) -> List[str]:
    """URLs of *current* not recorded in *previous*, in their original order."""
    if previous is None:
        return list(current)
    known = previous.fingerprints
    return [url for url in current if fingerprint(url) not in known]


class CacheStore:
    """Reads and writes :class:`CacheEntry` objects through a backend."""

    def __init__(
        self,
        backend: CacheBackend,
        *,
        ttl_seconds: int = 86400,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.backend = backend
        self.ttl_seconds = ttl_seconds
        self._clock = clock

    async def load(self, domain: str, scope: Union[Scope, str]) -> Optional[CacheEntry]:
        """Return the live entry for (domain, scope), or None on miss/expiry/error."""
        key = cache_key(domain, Scope(scope))
        try:
            raw = await self.backend.get(key)
            if raw is None:
                return None
            entry = decode_entry(raw[0])
        except CacheError as exc:
            logger.warning("Cache read for %s failed, treating as miss: %s", domain, exc)
            return None
        if entry.is_expired(self._clock()):
            logger.debug("Cache entry for %s expired", domain)
            return None
        return entry

    async def save(
        self,
        domain: str,
        scope: Union[Scope, str],
        urls: Iterable[str],
        ttl: Optional[int] = None,
        *,
        hashed: bool = False,
    ) -> bool:
        """Persist the URL set (or ready fingerprints when *hashed*). False on backend failure."""
        ttl = self.ttl_seconds if ttl is None else ttl
        prints = set(urls) if hashed else _fingerprints(urls)
        key = cache_key(domain, Scope(scope))
        try:
            await self.backend.put(key, encode_entry(prints, self._clock(), ttl), ttl)
        except CacheError as exc:
            logger.warning("Cache write for %s failed: %s", domain, exc)
            return False
        logger.debug("Cached %d fingerprints for %s", len(prints), domain)
        return True

    async def update(
        self,
        domain: str,
        scope: Union[Scope, str],
        previous: Optional[CacheEntry],
        current: Iterable[str],
        ttl: Optional[int] = None,
    ) -> bool:
        """Store the union of previous fingerprints and *current* with a fresh timestamp."""
        prints = _fingerprints(current)
        if previous is not None:
            prints |= previous.fingerprints
        return await self.save(domain, scope, prints, ttl, hashed=True)

    diff = staticmethod(diff)

    async def purge_expired(self) -> int:
        try:
            return await self.backend.purge_expired()
        except CacheError as exc:
            logger.warning("Cache purge failed: %s", exc)
            return 0

    async def close(self) -> None:
        try:
            await self.backend.close()
        except CacheError as exc:
            logger.debug("Cache close failed: %s", exc)


def build_cache_store(settings: CacheSettings, clock: Callable[[], float] = time.time) -> Optional[CacheStore]:
    """Create the configured store, or None when caching is disabled."""
    if not settings.enabled:
        return None
    backend: CacheBackend
    if settings.backend == "sqlite":
        from url_scout.cache.sqlite_backend import SqliteCacheBackend

        backend = SqliteCacheBackend(settings.path, clock=clock)
    elif settings.backend == "redis":
        if not settings.redis_url:
            raise ConfigError("cache.redis_url is required for the redis backend")
        from url_scout.cache.redis_backend import RedisCacheBackend

        backend = RedisCacheBackend(settings.redis_url, settings.namespace, clock=clock)
    else:
        raise ConfigError(f"unknown cache backend: {settings.backend}")
    return CacheStore(backend, ttl_seconds=settings.ttl_seconds, clock=clock)
