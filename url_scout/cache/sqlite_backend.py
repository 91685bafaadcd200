# File: url_scout/cache/sqlite_backend.py
"""Embedded cache backend on top of a local SQLite file."""

from __future__ import annotations

import asyncio
import sqlite3
import time
from pathlib import Path
from typing import Callable, Optional, Tuple, TypeVar, Union

from url_scout.errors import CacheError
from url_scout.logger import logger

_T = TypeVar("_T")

_SCHEMA = """
    CREATE TABLE IF NOT EXISTS url_cache (
        key TEXT PRIMARY KEY,
        value BLOB NOT NULL,
        written_at REAL NOT NULL,
        ttl INTEGER NOT NULL
    )
"""


class SqliteCacheBackend:
    """Single-host cache. Blocking sqlite calls run in a worker thread."""

    def __init__(self, path: Union[str, Path], clock: Callable[[], float] = time.time) -> None:
        self.path = Path(path).expanduser()
        self._clock = clock
        self._conn: Optional[sqlite3.Connection] = None
        self._lock = asyncio.Lock()

    def _connect(self) -> sqlite3.Connection:
        if self._conn is None:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(str(self.path), check_same_thread=False)
            with conn:
                conn.execute(_SCHEMA)
                conn.execute("CREATE INDEX IF NOT EXISTS idx_url_cache_written ON url_cache(written_at)")
            self._conn = conn
            logger.debug("Opened SQLite cache at %s", self.path)
        return self._conn

    async def _run(self, fn: Callable[[sqlite3.Connection], _T]) -> _T:
        async with self._lock:
            try:
                return await asyncio.to_thread(lambda: fn(self._connect()))
            except (sqlite3.Error, OSError) as exc:
                raise CacheError(f"sqlite cache {self.path}: {exc}") from exc

    async def get(self, key: str) -> Optional[Tuple[bytes, float]]:
        def _get(conn: sqlite3.Connection) -> Optional[Tuple[bytes, float]]:
            row = conn.execute(
                "SELECT value, written_at FROM url_cache WHERE key = ?", (key,)
            ).fetchone()
            return None if row is None else (bytes(row[0]), float(row[1]))

        return await self._run(_get)

    async def put(self, key: str, data: bytes, ttl: int) -> None:
        now = self._clock()

        def _put(conn: sqlite3.Connection) -> None:
            with conn:
                conn.execute(
                    "INSERT INTO url_cache (key, value, written_at, ttl) VALUES (?, ?, ?, ?) "
                    "ON CONFLICT(key) DO UPDATE SET value = excluded.value, "
                    "written_at = excluded.written_at, ttl = excluded.ttl",
                    (key, sqlite3.Binary(data), now, int(ttl)),
                )

        await self._run(_put)

    async def delete(self, key: str) -> None:
        def _delete(conn: sqlite3.Connection) -> None:
            with conn:
                conn.execute("DELETE FROM url_cache WHERE key = ?", (key,))

        await self._run(_delete)

    async def purge_expired(self) -> int:
        now = self._clock()

        def _purge(conn: sqlite3.Connection) -> int:
            with conn:
                cur = conn.execute("DELETE FROM url_cache WHERE written_at + ttl < ?", (now,))
            return cur.rowcount

        removed = await self._run(_purge)
        logger.debug("Purged %d expired cache entries", removed)
        return removed

    async def close(self) -> None:
        async with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None
