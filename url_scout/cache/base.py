# File: url_scout/cache/base.py
"""
Cache backend interface, entry model and the persisted payload layout.
"""
from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass
from typing import FrozenSet, Iterable, Optional, Protocol, Sequence, Tuple, runtime_checkable

from url_scout.errors import CacheError
from url_scout.models import Scope

__all__: Sequence[str] = (
    "CacheBackend",
    "CacheEntry",
    "cache_key",
    "fingerprint",
    "encode_entry",
    "decode_entry",
)


@runtime_checkable
class CacheBackend(Protocol):
    """Key/value store with per-key TTL. Implementations raise CacheError on failure."""

    async def get(self, key: str) -> Optional[Tuple[bytes, float]]:
        """Return ``(payload, written_at_epoch)`` or None."""

    async def put(self, key: str, data: bytes, ttl: int) -> None: ...

    async def delete(self, key: str) -> None: ...

    async def purge_expired(self) -> int:
        """Drop expired entries, return how many were removed."""

    async def close(self) -> None: ...


@dataclass(frozen=True, slots=True)
class CacheEntry:
    """Fingerprints of previously observed canonical URLs for one (domain, scope)."""

    fingerprints: FrozenSet[str]
    last_seen: float
    ttl_seconds: int

    def is_expired(self, now: float) -> bool:
        return now > self.last_seen + self.ttl_seconds


def cache_key(domain: str, scope: Scope) -> str:
    """Stable key for a (domain, scope) pair."""
    raw = f"{domain.lower()}|{Scope(scope).value}"
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()


def fingerprint(url: str) -> str:
    return hashlib.sha256(url.encode("utf-8")).hexdigest()


def encode_entry(fingerprints: Iterable[str], last_seen: float, ttl: int) -> bytes:
    payload = {"fingerprints": sorted(set(fingerprints)), "last_seen": last_seen, "ttl": ttl}
    return json.dumps(payload, separators=(",", ":")).encode("utf-8")


def decode_entry(data: bytes) -> CacheEntry:
    try:
        payload = json.loads(data.decode("utf-8"))
        return CacheEntry(
            fingerprints=frozenset(str(f) for f in payload["fingerprints"]),
            last_seen=float(payload["last_seen"]),
            ttl_seconds=int(payload["ttl"]),
        )
    except (UnicodeDecodeError, json.JSONDecodeError, KeyError, TypeError, ValueError) as exc:
        raise CacheError(f"corrupt cache payload: {exc}") from exc
