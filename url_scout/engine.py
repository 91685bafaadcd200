# File: url_scout/engine.py
"""url_scout.engine: фасад конвейера: провайдеры (или файлы) → проверка хоста → нормализация → кэш → фильтры → тестер."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Union

from url_scout.cache import CacheStore, build_cache_store, diff
from url_scout.config import RunConfig
from url_scout.events import EventBus
from url_scout.filters import HostValidator, StatusFilter, UrlFilter
from url_scout.logger import logger
from url_scout.models import DomainOutcome, RunReport
from url_scout.normalizer import UrlNormalizer, dedupe
from url_scout.orchestrator import Orchestrator
from url_scout.providers import Provider, build_providers
from url_scout.readers import read_urls
from url_scout.tester import HttpTester, Tester

__all__ = ["Engine"]


class Engine:
    """Фасад для CLI и тестов: сборка компонентов по RunConfig и запуск полного конвейера.

    Все ошибки конфигурации (неизвестный провайдер, пресет, статус-паттерн)
    возникают в конструкторе, до какой-либо сетевой активности.
    """

    def __init__(
        self,
        config: RunConfig,
        *,
        providers: Optional[Sequence[Provider]] = None,
        cache: Optional[CacheStore] = None,
        tester: Optional[Tester] = None,
        events: Optional[EventBus] = None,
    ) -> None:
        self.config = config
        self.providers = list(providers) if providers is not None else build_providers(config)
        self.cache = cache if cache is not None else build_cache_store(config.cache)
        self.events = events or EventBus()
        self.host_validator = HostValidator()
        self.normalizer = UrlNormalizer.from_settings(config.normalize)
        self.url_filter = UrlFilter.from_spec(config.filters)
        self.status_filter = StatusFilter(config.filters.include_status, config.filters.exclude_status)
        self._tester = tester

    @property
    def tester(self) -> Optional[Tester]:
        if self._tester is None and self.config.needs_tester:
            self._tester = HttpTester(
                self.config.network,
                parallel=self.config.concurrency.tester_parallel,
                extract=self.config.testing.extract_links,
            )
        return self._tester

    async def run(self, domains: Iterable[str] = ()) -> RunReport:
        """Асинхронный запуск для доменов из конфига и `domains`."""
        targets = self.config.targets(domains)
        if not targets:
            logger.warning("No domains to scan")
            return RunReport()

        orchestrator = Orchestrator(self.config, self.providers, events=self.events)
        try:
            outcomes = await orchestrator.run(targets)
            report = RunReport(outcomes=outcomes)
            for outcome in outcomes:
                report.domains[outcome.target.host] = await self._process_domain(outcome)
                report.warnings.extend(outcome.warnings())
        finally:
            if self.cache is not None:
                await self.cache.close()

        urls = dedupe([u for per_domain in report.domains.values() for u in per_domain])
        await self._finish(report, urls)
        logger.info("Run finished: %d URLs for %d domains", len(report.urls), len(targets))
        return report

    async def run_files(self, paths: Iterable[Union[str, Path]]) -> RunReport:
        """URL из локальных файлов (текст, URLTeam, WARC) вместо провайдеров.

        Проверка хоста и кэш не применяются: у таких URL нет целевого домена.
        Нормализация, фильтры и тестер работают как обычно.
        """
        raw: List[str] = []
        for path in paths:
            raw.extend(await asyncio.to_thread(read_urls, path))
        report = RunReport()
        urls = self.url_filter.apply(self.normalizer.process(raw))
        await self._finish(report, urls)
        logger.info("Run finished: %d URLs from files", len(report.urls))
        return report

    async def _finish(self, report: RunReport, urls: List[str]) -> None:
        """Тестер, фильтр по статусу и проекция show_only над итоговым списком."""
        if self.tester is not None and urls:
            report.tests = await self.tester.check(urls)
            if self.status_filter.active:
                urls = self.status_filter.apply(urls, report.tests)
        report.urls = self.normalizer.present(urls)

    async def _process_domain(self, outcome: DomainOutcome) -> List[str]:
        target = outcome.target
        raw = outcome.raw_urls
        if self.config.strict:
            raw = self.host_validator.filter(raw, target)
        canonical = self.normalizer.process(raw)

        fresh = canonical
        if self.cache is not None:
            previous = await self.cache.load(target.host, target.scope)
            if self.config.cache.incremental:
                fresh = diff(previous, canonical)
                logger.info("%s: %d new of %d URLs", target.host, len(fresh), len(canonical))
            if outcome.succeeded:
                await self.cache.update(target.host, target.scope, previous, canonical)
        return self.url_filter.apply(fresh)

    def start_scan(
        self,
        domains: Iterable[str] = (),
        timeout: Optional[float] = None,
        files: Sequence[Union[str, Path]] = (),
    ) -> RunReport:
        """Синхронная обёртка для CLI: asyncio.run с общим таймаутом.

        При заданных `files` провайдеры не вызываются, домены игнорируются.
        """
        logger.info("Starting scan…")
        scan = self.run_files(files) if files else self.run(domains)
        try:
            return asyncio.run(asyncio.wait_for(scan, timeout=timeout))
        except asyncio.TimeoutError:
            logger.error("Scanning did not finish within %s seconds", timeout)
            raise

    async def purge_cache(self) -> int:
        """Удаляет просроченные записи кэша; 0, если кэш выключен."""
        if self.cache is None:
            return 0
        try:
            removed = await self.cache.purge_expired()
        finally:
            await self.cache.close()
        logger.info("Purged %d expired cache entries", removed)
        return removed
