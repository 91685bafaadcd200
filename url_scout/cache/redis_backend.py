# File: url_scout/cache/redis_backend.py
"""Networked cache backend on Redis, shared between hosts."""

from __future__ import annotations

import time
from typing import Any, Callable, Optional, Tuple

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from url_scout.errors import CacheError
from url_scout.logger import logger


class RedisCacheBackend:
    """Stores each entry as a hash ``{namespace}:{key}`` with ``data`` and ``ts`` fields.

    Expiry is delegated to Redis (``EXPIRE``), so :meth:`purge_expired` has
    nothing to do.
    """

    def __init__(
        self,
        url: str,
        namespace: str = "url_scout",
        client: Optional[Any] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.url = url
        self.namespace = namespace
        self._client = client
        self._clock = clock

    def _name(self, key: str) -> str:
        return f"{self.namespace}:{key}"

    def _redis(self) -> Any:
        if self._client is None:
            try:
                self._client = aioredis.from_url(self.url)
            except ValueError as exc:
                raise CacheError(f"bad redis url {self.url!r}: {exc}") from exc
            logger.debug("Connected Redis cache at %s", self.url)
        return self._client

    async def get(self, key: str) -> Optional[Tuple[bytes, float]]:
        try:
            fields = await self._redis().hgetall(self._name(key))
        except (RedisError, OSError) as exc:
            raise CacheError(f"redis cache get failed: {exc}") from exc
        if not fields:
            return None
        data = fields.get(b"data", fields.get("data"))
        ts = fields.get(b"ts", fields.get("ts"))
        if data is None or ts is None:
            raise CacheError(f"redis cache entry {key} is incomplete")
        if isinstance(data, str):
            data = data.encode("utf-8")
        try:
            return bytes(data), float(ts)
        except ValueError as exc:
            raise CacheError(f"redis cache entry {key} has bad timestamp: {exc}") from exc

    async def put(self, key: str, data: bytes, ttl: int) -> None:
        name = self._name(key)
        try:
            async with self._redis().pipeline(transaction=True) as pipe:
                pipe.hset(name, mapping={"data": data, "ts": str(self._clock())})
                pipe.expire(name, max(1, int(ttl)))
                await pipe.execute()
        except (RedisError, OSError) as exc:
            raise CacheError(f"redis cache put failed: {exc}") from exc

    async def delete(self, key: str) -> None:
        try:
            await self._redis().delete(self._name(key))
        except (RedisError, OSError) as exc:
            raise CacheError(f"redis cache delete failed: {exc}") from exc

    async def purge_expired(self) -> int:
        return 0

    async def close(self) -> None:
        if self._client is not None:
            try:
                await self._client.aclose()
            except (RedisError, OSError) as exc:
                raise CacheError(f"redis cache close failed: {exc}") from exc
            finally:
                self._client = None
