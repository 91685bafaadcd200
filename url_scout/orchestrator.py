# File: url_scout/orchestrator.py
"""
url_scout.orchestrator: fans provider calls out over domains with bounded
concurrency, retry/backoff, API-key rotation and per-provider failure isolation.
"""
from __future__ import annotations

import asyncio
import random
from typing import Awaitable, Callable, Dict, List, Optional, Sequence

from aiohttp import ClientSession

from url_scout.config import ProviderSettings, RunConfig
from url_scout.errors import ProviderError, ProviderErrorKind
from url_scout.events import DomainCompleted, DomainStarted, EventBus, ProviderCompleted, RetryScheduled
from url_scout.logger import logger
from url_scout.models import (
    DomainOutcome,
    DomainTarget,
    ProviderFailure,
    ProviderResult,
    ProviderSkipped,
    ProviderSuccess,
    RawUrl,
)
from url_scout.providers.base import FetchContext, Provider
from url_scout.providers.keys import KeyRotator
from url_scout.ratelimit import RateLimiter

__all__: Sequence[str] = ("Orchestrator",)


class Orchestrator:
    """Runs every enabled provider for every target and collects the results.

    Two caps apply: at most ``concurrency.max_domains`` domains are in flight,
    and each provider has at most ``parallel`` HTTP requests open at once
    (enforced per request through :meth:`FetchContext.slot`). The request
    timeout also starts in the slot, after both waits.
    """

    def __init__(
        self,
        config: RunConfig,
        providers: Sequence[Provider],
        *,
        session: Optional[ClientSession] = None,
        events: Optional[EventBus] = None,
        limiter: Optional[RateLimiter] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        jitter: Callable[[], float] = random.random,
    ) -> None:
        self.config = config
        self.providers = list(providers)
        self.events = events or EventBus()
        self._session = session
        self._limiter = limiter or RateLimiter(config.network.rate_limit)
        self._sleep = sleep
        self._jitter = jitter
        self._settings: Dict[str, ProviderSettings] = {
            p.name: config.providers.get(p.name, ProviderSettings()) for p in self.providers
        }
        self._semaphores: Dict[str, asyncio.Semaphore] = {
            name: asyncio.Semaphore(ps.parallel) for name, ps in self._settings.items()
        }
        self._rotators: Dict[str, KeyRotator] = {
            name: KeyRotator(ps.api_keys) for name, ps in self._settings.items()
        }

    async def run(self, targets: Sequence[DomainTarget]) -> List[DomainOutcome]:
        """Fetch all targets; outcome order follows *targets*."""
        own_session = self._session is None
        if own_session:
            self._session = ClientSession(
                headers={"User-Agent": self.config.network.user_agent},
                raise_for_status=False,
            )
        domain_sem = asyncio.Semaphore(self.config.concurrency.max_domains)

        async def _bounded(target: DomainTarget) -> DomainOutcome:
            async with domain_sem:
                return await self._fetch_domain(target)

        try:
            return list(await asyncio.gather(*(_bounded(t) for t in targets)))
        finally:
            if own_session and self._session is not None:
                await self._session.close()
                self._session = None

    async def _fetch_domain(self, target: DomainTarget) -> DomainOutcome:
        """Query every provider for one target. Results keep provider order."""
        self.events.emit(DomainStarted(target.host, len(self.providers)))
        logger.info("Fetching %s from %d providers", target.host, len(self.providers))
        results: List[ProviderResult] = list(
            await asyncio.gather(*(self._call_provider(p, target) for p in self.providers))
        )
        outcome = DomainOutcome(target=target, results=results)
        self.events.emit(DomainCompleted(target.host, len(outcome.raw_urls), len(outcome.failures)))
        for failure in outcome.failures:
            logger.warning("%s: %s", target.host, failure.error)
        return outcome

    def _backoff(self, attempt: int) -> float:
        net = self.config.network
        return min(net.backoff_cap, net.backoff_base * 2**attempt + self._jitter() * net.backoff_base)

    async def _call_provider(self, provider: Provider, target: DomainTarget) -> ProviderResult:
        name = provider.name
        result = await self._attempts(provider, target)
        if isinstance(result, ProviderSuccess):
            self.events.emit(ProviderCompleted(target.host, name, "ok", len(result.urls)))
            logger.debug("%s: %s returned %d URLs", target.host, name, len(result.urls))
        elif isinstance(result, ProviderSkipped):
            self.events.emit(ProviderCompleted(target.host, name, "skipped"))
            logger.warning("%s: provider %s skipped: %s", target.host, name, result.reason)
        else:
            self.events.emit(ProviderCompleted(target.host, name, "failed"))
        return result

    async def _attempts(self, provider: Provider, target: DomainTarget) -> ProviderResult:
        name = provider.name
        settings = self._settings[name]
        rotator = self._rotators[name]
        if provider.requires_api_key and not len(rotator):
            return ProviderSkipped(
                name,
                f"API key required: set providers.{name}.api_keys or URL_SCOUT_{name.upper()}_API_KEYS",
            )

        net = self.config.network
        if self._session is None:
            raise RuntimeError("Session not initialized")
        attempt = 0
        while True:
            ctx = FetchContext(
                name,
                self._session,
                net,
                semaphore=self._semaphores[name],
                limiter=self._limiter,
                api_key=rotator.next_key(),
                options=settings.options,
            )
            try:
                urls = await provider.fetch(target, ctx)
                return ProviderSuccess(name, [RawUrl(u, name, provider.method) for u in urls])
            except asyncio.TimeoutError:
                # a provider enforcing its own deadline outside FetchContext.slot()
                error = ProviderError(name, "provider deadline exceeded", kind=ProviderErrorKind.TIMEOUT)
            except ProviderError as exc:
                error = exc
            except Exception as exc:  # noqa: BLE001
                logger.exception("Provider %s crashed on %s", name, target.host)
                error = ProviderError(name, f"unexpected error: {exc!r}", kind=ProviderErrorKind.MALFORMED)

            if not error.transient:
                return ProviderFailure(name, error)
            if attempt >= net.retries:
                return ProviderFailure(name, error, retries_exhausted=True)

            delay = self._backoff(attempt)
            attempt += 1
            self.events.emit(RetryScheduled(target.host, name, attempt, delay, error.message))
            logger.debug("Retry %d/%d for %s on %s after %.2f s: %s", attempt, net.retries, name, target.host, delay, error.message)
            await self._sleep(delay)
