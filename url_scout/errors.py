# File: url_scout/errors.py
"""url_scout.errors: exception taxonomy shared by providers, cache and config."""

from __future__ import annotations

from enum import Enum
from typing import Optional, Sequence

__all__: Sequence[str] = (
    "UrlScoutError",
    "ProviderErrorKind",
    "ProviderError",
    "CacheError",
    "ConfigError",
)


class UrlScoutError(Exception):
    """Base class for all url_scout errors."""


class ProviderErrorKind(str, Enum):
    NETWORK = "network"
    TIMEOUT = "timeout"
    RATE_LIMITED = "rate_limited"
    HTTP_STATUS = "http_status"
    MALFORMED = "malformed"
    AUTH = "auth"


_TRANSIENT_KINDS = frozenset(
    {ProviderErrorKind.NETWORK, ProviderErrorKind.TIMEOUT, ProviderErrorKind.RATE_LIMITED}
)


class ProviderError(UrlScoutError):
    """A provider could not deliver URLs for a domain.

    ``transient`` tells the orchestrator whether another attempt may succeed.
    When not given explicitly it is derived from ``kind`` (and, for
    ``HTTP_STATUS``, from the status code: 5xx is transient, 4xx is not).
    """

    def __init__(
        self,
        provider: str,
        message: str,
        *,
        kind: ProviderErrorKind = ProviderErrorKind.NETWORK,
        transient: Optional[bool] = None,
        status: Optional[int] = None,
    ) -> None:
        super().__init__(f"{provider}: {message}")
        self.provider = provider
        self.message = message
        self.kind = kind
        self.status = status
        if transient is None:
            if kind is ProviderErrorKind.HTTP_STATUS:
                transient = status is not None and status >= 500
            else:
                transient = kind in _TRANSIENT_KINDS
        self.transient = transient

    @classmethod
    def from_status(cls, provider: str, status: int, url: str = "") -> ProviderError:
        """Classify a non-successful HTTP status."""
        where = f" for {url}" if url else ""
        if status == 429:
            return cls(provider, f"rate limited (HTTP 429){where}", kind=ProviderErrorKind.RATE_LIMITED, status=status)
        if status in (401, 403):
            return cls(provider, f"authentication failed (HTTP {status}){where}", kind=ProviderErrorKind.AUTH, status=status)
        return cls(provider, f"HTTP {status}{where}", kind=ProviderErrorKind.HTTP_STATUS, status=status)


class CacheError(UrlScoutError):
    """Cache backend unreachable or payload could not be (de)serialized."""


class ConfigError(UrlScoutError):
    """Invalid run configuration. Fatal, raised before any network activity."""
