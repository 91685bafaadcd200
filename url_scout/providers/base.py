# File: url_scout/providers/base.py
"""
Provider interface and the per-call fetch context handed to providers.
"""
from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Mapping, Optional, Protocol, Sequence, runtime_checkable

from aiohttp import ClientConnectorCertificateError, ClientError, ClientSession, ClientSSLError, ClientTimeout

from url_scout.config import NetworkSettings
from url_scout.errors import ProviderError, ProviderErrorKind
from url_scout.models import DiscoveryMethod, DomainTarget
from url_scout.ratelimit import RateLimiter

__all__: Sequence[str] = ("Provider", "FetchContext")

_MISSING_STATUS = (404, 410)


@runtime_checkable
class Provider(Protocol):
    """A source of historical or discovered URLs for a domain."""

    name: str
    method: DiscoveryMethod
    requires_api_key: bool

    async def fetch(self, target: DomainTarget, ctx: FetchContext) -> Sequence[str]:
        """Return raw URLs for *target*; raise :class:`ProviderError` on failure."""


class FetchContext:
    """What a provider may use during one attempt: HTTP session, limits and its API key.

    Every HTTP request goes through :meth:`slot`, which first takes one of the
    provider's parallel slots, then waits on the global rate limiter and only
    then starts the request timeout, so time spent queueing never counts.
    """

    def __init__(
        self,
        provider: str,
        session: ClientSession,
        network: NetworkSettings,
        *,
        semaphore: Optional[asyncio.Semaphore] = None,
        limiter: Optional[RateLimiter] = None,
        api_key: Optional[str] = None,
        options: Optional[Mapping[str, Any]] = None,
    ) -> None:
        self.provider = provider
        self.session = session
        self.network = network
        self.api_key = api_key
        self.options: Mapping[str, Any] = options or {}
        self._semaphore = semaphore or asyncio.Semaphore(1)
        self._limiter = limiter or RateLimiter(None)

    @property
    def timeout(self) -> float:
        return self.network.timeout

    @asynccontextmanager
    async def slot(self) -> AsyncIterator[None]:
        async with self._semaphore:
            await self._limiter.wait()
            # the clock starts only once the request may actually be sent
            try:
                async with asyncio.timeout(self.timeout):
                    yield
            except TimeoutError as exc:
                raise ProviderError(
                    self.provider, f"no answer within {self.timeout:g}s", kind=ProviderErrorKind.TIMEOUT
                ) from exc

    async def get_text(
        self,
        url: str,
        *,
        params: Optional[Mapping[str, str]] = None,
        headers: Optional[Mapping[str, str]] = None,
        missing_ok: bool = False,
    ) -> Optional[str]:
        """GET *url* and return the body as text.

        With ``missing_ok`` a 404/410 answer returns None instead of raising.
        Other non-2xx statuses and transport problems raise ProviderError.
        """
        request_headers = {"User-Agent": self.network.user_agent}
        if headers:
            request_headers.update(headers)
        async with self.slot():
            try:
                async with self.session.get(
                    url,
                    params=params,
                    headers=request_headers,
                    proxy=self.network.proxy,
                    ssl=not self.network.insecure,
                    timeout=ClientTimeout(total=self.network.timeout),
                ) as resp:
                    if missing_ok and resp.status in _MISSING_STATUS:
                        return None
                    if resp.status >= 400:
                        raise ProviderError.from_status(self.provider, resp.status, url)
                    return await resp.text(errors="replace")
            except asyncio.TimeoutError as exc:
                raise ProviderError(self.provider, f"timeout fetching {url}", kind=ProviderErrorKind.TIMEOUT) from exc
            except (ClientConnectorCertificateError, ClientSSLError) as exc:
                # a bad certificate stays bad on the next attempt
                raise ProviderError(
                    self.provider, f"TLS failure for {url}: {exc}", kind=ProviderErrorKind.NETWORK, transient=False
                ) from exc
            except ClientError as exc:
                raise ProviderError(self.provider, f"{url}: {exc}", kind=ProviderErrorKind.NETWORK) from exc
