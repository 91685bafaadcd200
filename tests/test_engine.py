# File: tests/test_engine.py
from __future__ import annotations

from typing import Dict, List, Sequence

import pytest

from conftest import FakeProvider
from url_scout.cache import CacheStore
from url_scout.cache.sqlite_backend import SqliteCacheBackend
from url_scout.engine import Engine
from url_scout.errors import ConfigError, ProviderError
from url_scout.models import RunReport, TestResult


class FakeTester:
    def __init__(self, statuses: Dict[str, int]) -> None:
        self.statuses = statuses
        self.checked: List[str] = []

    async def check(self, urls: Sequence[str]) -> Dict[str, TestResult]:
        self.checked.extend(urls)
        return {u: TestResult(status_code=self.statuses.get(u)) for u in urls}


def _cache(tmp_path, clock) -> CacheStore:
    return CacheStore(SqliteCacheBackend(tmp_path / "cache.db", clock=clock), ttl_seconds=3600, clock=clock)


@pytest.mark.asyncio()
async def test_pipeline_validates_normalizes_and_filters(make_config):
    provider = FakeProvider(
        "p",
        [
            "https://Example.com/app.js?b=2&a=1",
            "https://example.com/app.js?a=1&b=2",
            "https://evil.com/app.js",
            "https://cdn.example.com/lib.js",
            "https://example.com/logo.png",
            "mailto:root@example.com",
        ],
    )
    config = make_config(
        domains=["example.com"],
        scope="subdomains",
        providers={"p": {}},
        normalize={"normalize_url": True},
        filters={"presets": ["no-images"]},
    )
    report = await Engine(config, providers=[provider]).run()
    assert report.urls == ["https://example.com/app.js?a=1&b=2", "https://cdn.example.com/lib.js"]
    assert report.domains == {"example.com": report.urls}
    assert report.warnings == []


@pytest.mark.asyncio()
async def test_non_strict_keeps_foreign_hosts(make_config):
    provider = FakeProvider("p", ["https://example.com/", "https://other.org/"])
    config = make_config(strict=False, providers={"p": {}})
    report = await Engine(config, providers=[provider]).run(["example.com"])
    assert report.urls == ["https://example.com/", "https://other.org/"]


@pytest.mark.asyncio()
async def test_incremental_run_reports_only_new_urls(make_config, tmp_path, clock):
    config = make_config(providers={"p": {}}, cache={"enabled": True, "incremental": True})

    first = FakeProvider("p", ["https://example.com/u1", "https://example.com/u2"])
    report = await Engine(config, providers=[first], cache=_cache(tmp_path, clock)).run(["example.com"])
    assert report.urls == ["https://example.com/u1", "https://example.com/u2"]

    second = FakeProvider("p", ["https://example.com/u2", "https://example.com/u3"])
    report = await Engine(config, providers=[second], cache=_cache(tmp_path, clock)).run(["example.com"])
    assert report.urls == ["https://example.com/u3"]

    third = FakeProvider("p", ["https://example.com/u1", "https://example.com/u3"])
    report = await Engine(config, providers=[third], cache=_cache(tmp_path, clock)).run(["example.com"])
    assert report.urls == []


@pytest.mark.asyncio()
async def test_expired_cache_reports_everything_again(make_config, tmp_path, clock):
    config = make_config(providers={"p": {}}, cache={"enabled": True, "incremental": True})
    urls = ["https://example.com/u1"]
    await Engine(config, providers=[FakeProvider("p", urls)], cache=_cache(tmp_path, clock)).run(["example.com"])
    clock.advance(3601)
    report = await Engine(config, providers=[FakeProvider("p", urls)], cache=_cache(tmp_path, clock)).run(
        ["example.com"]
    )
    assert report.urls == urls


@pytest.mark.asyncio()
async def test_failed_run_does_not_refresh_cache(make_config, tmp_path, clock):
    config = make_config(providers={"p": {}}, network={"retries": 0}, cache={"enabled": True, "incremental": True})
    store = _cache(tmp_path, clock)
    failing = FakeProvider("p", ProviderError.from_status("p", 500))
    report = await Engine(config, providers=[failing], cache=store).run(["example.com"])
    assert report.urls == []
    assert report.warnings and "all providers failed" in report.warnings[0]
    assert await _cache(tmp_path, clock).load("example.com", "exact") is None


@pytest.mark.asyncio()
async def test_status_filter_uses_tester(make_config):
    provider = FakeProvider("p", ["https://example.com/ok", "https://example.com/gone", "https://example.com/moved"])
    tester = FakeTester({"https://example.com/ok": 200, "https://example.com/gone": 404, "https://example.com/moved": 301})
    config = make_config(providers={"p": {}}, filters={"include_status": ["2xx", "3xx"], "exclude_status": ["301"]})
    report = await Engine(config, providers=[provider], tester=tester).run(["example.com"])
    assert report.urls == ["https://example.com/ok"]
    assert report.tests["https://example.com/gone"].status_code == 404
    assert len(tester.checked) == 3


@pytest.mark.asyncio()
async def test_show_only_projection_applies_last(make_config):
    provider = FakeProvider("p", ["https://example.com/a?x=1", "https://api.example.com/b"])
    config = make_config(scope="subdomains", providers={"p": {}}, normalize={"show_only": "host"})
    report = await Engine(config, providers=[provider]).run(["example.com"])
    assert report.urls == ["example.com", "api.example.com"]


@pytest.mark.asyncio()
async def test_urls_shared_by_domains_are_reported_once(make_config):
    provider = FakeProvider("p", ["https://a.example.com/x"])
    config = make_config(scope="subdomains", providers={"p": {}})
    report = await Engine(config, providers=[provider]).run(["example.com", "a.example.com"])
    assert report.urls == ["https://a.example.com/x"]
    assert set(report.domains) == {"example.com", "a.example.com"}


@pytest.mark.asyncio()
async def test_no_domains_gives_empty_report(make_config):
    report = await Engine(make_config(providers={"p": {}}), providers=[FakeProvider("p")]).run()
    assert report == RunReport()


def test_config_errors_surface_before_network(make_config):
    with pytest.raises(ConfigError):
        Engine(make_config(providers={"no-such-provider": {}}))


def test_start_scan_sync_wrapper(make_config):
    provider = FakeProvider("p", ["https://example.com/sync"])
    report = Engine(make_config(providers={"p": {}}), providers=[provider]).start_scan(["example.com"], timeout=10)
    assert report.urls == ["https://example.com/sync"]


@pytest.mark.asyncio()
async def test_file_urls_skip_providers_and_host_checks(make_config, tmp_path):
    listing = tmp_path / "urls.txt"
    listing.write_text(
        "https://Example.com/app.js?b=2&a=1\nhttps://other.org/lib.js\nhttps://example.com/logo.png\n"
        "https://example.com/app.js?a=1&b=2\n",
        encoding="utf-8",
    )
    warc = tmp_path / "crawl.warc"
    warc.write_text("WARC/1.0\nWARC-Target-URI: https://third.net/x.js\n", encoding="utf-8")
    provider = FakeProvider("p", ["https://example.com/never"])
    tester = FakeTester({"https://third.net/x.js": 404})
    config = make_config(
        domains=["example.com"],
        providers={"p": {}},
        normalize={"normalize_url": True},
        filters={"extensions": ["js"], "exclude_status": ["404"]},
    )

    report = await Engine(config, providers=[provider], tester=tester).run_files([listing, warc])

    assert provider.calls == []
    assert report.urls == ["https://example.com/app.js?a=1&b=2", "https://other.org/lib.js"]
    assert report.domains == {} and report.warnings == []
    assert tester.checked == [
        "https://example.com/app.js?a=1&b=2",
        "https://other.org/lib.js",
        "https://third.net/x.js",
    ]


def test_start_scan_prefers_files(make_config, tmp_path):
    listing = tmp_path / "urls.txt"
    listing.write_text("https://example.com/from-file\n", encoding="utf-8")
    provider = FakeProvider("p", ["https://example.com/from-provider"])
    engine = Engine(make_config(providers={"p": {}}), providers=[provider])
    report = engine.start_scan(["example.com"], timeout=10, files=[listing])
    assert report.urls == ["https://example.com/from-file"]
    assert provider.calls == []
