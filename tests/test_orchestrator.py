# File: tests/test_orchestrator.py
from __future__ import annotations

import asyncio
from typing import List

import pytest

from conftest import FakeProvider
from url_scout.errors import ProviderError, ProviderErrorKind
from url_scout.events import DomainCompleted, DomainStarted, EventBus, ProviderCompleted, RetryScheduled
from url_scout.models import DomainTarget, ProviderFailure, ProviderSkipped, ProviderSuccess
from url_scout.orchestrator import Orchestrator
from url_scout.ratelimit import RateLimiter

TARGET = DomainTarget("example.com")


class Recorder:
    def __init__(self) -> None:
        self.sleeps: List[float] = []

    async def sleep(self, delay: float) -> None:
        self.sleeps.append(delay)


def server_error(name: str) -> ProviderError:
    return ProviderError.from_status(name, 503)


@pytest.mark.asyncio()
async def test_partial_failure_keeps_successful_urls(make_config):
    good = FakeProvider("good", ["https://example.com/a", "https://example.com/b"])
    not_found = FakeProvider("notfound", ProviderError.from_status("notfound", 404))
    flaky = FakeProvider("flaky", server_error("flaky"))
    config = make_config(providers={"good": {}, "notfound": {}, "flaky": {}})
    rec = Recorder()

    [outcome] = await Orchestrator(config, [good, not_found, flaky], sleep=rec.sleep).run([TARGET])

    assert [r.url for r in outcome.raw_urls] == ["https://example.com/a", "https://example.com/b"]
    assert outcome.succeeded == ["good"]
    failures = {f.provider: f for f in outcome.failures}
    assert set(failures) == {"notfound", "flaky"}
    assert failures["notfound"].retries_exhausted is False
    assert failures["flaky"].retries_exhausted is True
    # non-transient errors are not retried, transient ones use every retry
    assert len(not_found.calls) == 1
    assert len(flaky.calls) == 1 + config.network.retries
    assert len(rec.sleeps) == config.network.retries

    [warning] = outcome.warnings()
    assert "notfound" in warning and "flaky" in warning and "retries exhausted" in warning


@pytest.mark.asyncio()
async def test_all_providers_failing_yields_empty_result_and_warning(make_config):
    config = make_config(providers={"x": {}, "y": {}}, network={"retries": 0})
    providers = [FakeProvider("x", server_error("x")), FakeProvider("y", server_error("y"))]
    [outcome] = await Orchestrator(config, providers).run([TARGET])
    assert outcome.raw_urls == []
    assert outcome.warnings()[0].startswith("example.com: all providers failed")


@pytest.mark.asyncio()
async def test_transient_failure_then_success(make_config):
    provider = FakeProvider("p", server_error("p"), ["https://example.com/ok"])
    events = []
    bus = EventBus()
    bus.subscribe(events.append)
    rec = Recorder()
    config = make_config(providers={"p": {}}, network={"backoff_base": 0.5, "backoff_cap": 10.0})

    [outcome] = await Orchestrator(config, [provider], events=bus, sleep=rec.sleep, jitter=lambda: 0.0).run([TARGET])

    assert isinstance(outcome.results[0], ProviderSuccess)
    assert rec.sleeps == [0.5]
    kinds = [type(e) for e in events]
    assert kinds == [DomainStarted, RetryScheduled, ProviderCompleted, DomainCompleted]
    assert events[2].status == "ok" and events[2].urls == 1


@pytest.mark.asyncio()
async def test_backoff_is_exponential_and_capped(make_config):
    provider = FakeProvider("p", server_error("p"))
    rec = Recorder()
    config = make_config(providers={"p": {}}, network={"retries": 4, "backoff_base": 1.0, "backoff_cap": 5.0})
    await Orchestrator(config, [provider], sleep=rec.sleep, jitter=lambda: 0.0).run([TARGET])
    assert rec.sleeps == [1.0, 2.0, 4.0, 5.0]


@pytest.mark.asyncio()
async def test_each_retry_uses_next_api_key(make_config):
    provider = FakeProvider(
        "keyed",
        ProviderError.from_status("keyed", 429),
        ProviderError.from_status("keyed", 429),
        ["https://example.com/k"],
        requires_api_key=True,
    )
    config = make_config(providers={"keyed": {"api_keys": ["k1", "k2"]}})
    [outcome] = await Orchestrator(config, [provider], sleep=Recorder().sleep).run([TARGET])
    assert isinstance(outcome.results[0], ProviderSuccess)
    assert [c["api_key"] for c in provider.calls] == ["k1", "k2", "k1"]


@pytest.mark.asyncio()
async def test_missing_api_key_skips_provider(make_config):
    keyed = FakeProvider("keyed", ["https://example.com/never"], requires_api_key=True)
    plain = FakeProvider("plain", ["https://example.com/p"])
    config = make_config(providers={"keyed": {}, "plain": {}})

    [outcome] = await Orchestrator(config, [keyed, plain]).run([TARGET])

    assert keyed.calls == []
    [skipped] = outcome.skipped
    assert isinstance(skipped, ProviderSkipped) and "URL_SCOUT_KEYED_API_KEYS" in skipped.reason
    assert outcome.succeeded == ["plain"]
    assert any("skipped" in w for w in outcome.warnings())


@pytest.mark.asyncio()
async def test_request_timeout_is_a_transient_failure(make_config):
    async def hang(target, ctx):
        async with ctx.slot():
            await asyncio.sleep(5)
        return []

    provider = FakeProvider("slow", hang)
    config = make_config(providers={"slow": {}}, network={"timeout": 0.05, "retries": 1})
    [outcome] = await Orchestrator(config, [provider], sleep=Recorder().sleep).run([TARGET])
    [failure] = outcome.failures
    assert failure.error.kind is ProviderErrorKind.TIMEOUT
    assert failure.retries_exhausted
    assert len(provider.calls) == 2


def _one_request(duration: float):
    async def fetch(target, ctx):
        async with ctx.slot():
            await asyncio.sleep(duration)
        return [f"https://{target.host}/"]

    return fetch


@pytest.mark.asyncio()
async def test_waiting_for_rate_limit_is_not_a_timeout(make_config):
    # the last of 6 requests waits ~0.25 s for its turn, well past the timeout
    config = make_config(
        providers={"p": {}},
        network={"timeout": 0.08, "retries": 0, "rate_limit": 20.0},
        concurrency={"max_domains": 6},
    )
    provider = FakeProvider("p", _one_request(0.01))
    targets = [DomainTarget(f"d{i}.com") for i in range(6)]
    outcomes = await Orchestrator(config, [provider]).run(targets)
    assert [o.succeeded for o in outcomes] == [["p"]] * 6


@pytest.mark.asyncio()
async def test_waiting_for_provider_slot_is_not_a_timeout(make_config):
    # parallel=1: the third request queues for ~0.12 s behind the others
    config = make_config(
        providers={"p": {"parallel": 1}},
        network={"timeout": 0.1, "retries": 0},
        concurrency={"max_domains": 3},
    )
    provider = FakeProvider("p", _one_request(0.06))
    targets = [DomainTarget(f"d{i}.com") for i in range(3)]
    outcomes = await Orchestrator(config, [provider]).run(targets)
    assert [o.failures for o in outcomes] == [[], [], []]
    assert [o.succeeded for o in outcomes] == [["p"]] * 3


@pytest.mark.asyncio()
async def test_unexpected_exception_is_isolated(make_config):
    broken = FakeProvider("broken", RuntimeError("boom"))
    fine = FakeProvider("fine", ["https://example.com/f"])
    config = make_config(providers={"broken": {}, "fine": {}})
    [outcome] = await Orchestrator(config, [broken, fine]).run([TARGET])
    [failure] = outcome.failures
    assert isinstance(failure, ProviderFailure)
    assert failure.error.kind is ProviderErrorKind.MALFORMED
    assert len(broken.calls) == 1
    assert outcome.succeeded == ["fine"]


@pytest.mark.asyncio()
async def test_results_follow_configured_order_not_completion(make_config):
    async def late(target, ctx):
        await asyncio.sleep(0.05)
        return ["https://example.com/late"]

    slow = FakeProvider("slow", late)
    fast = FakeProvider("fast", ["https://example.com/fast"])
    config = make_config(providers={"slow": {}, "fast": {}})
    [outcome] = await Orchestrator(config, [slow, fast]).run([TARGET])
    assert [r.provider for r in outcome.results] == ["slow", "fast"]
    assert [r.url for r in outcome.raw_urls] == ["https://example.com/late", "https://example.com/fast"]


@pytest.mark.asyncio()
async def test_domain_concurrency_cap(make_config):
    active = 0
    peak = 0

    async def track(target, ctx):
        nonlocal active, peak
        active += 1
        peak = max(peak, active)
        await asyncio.sleep(0.02)
        active -= 1
        return [f"https://{target.host}/"]

    config = make_config(providers={"p": {"parallel": 10}}, concurrency={"max_domains": 2})
    targets = [DomainTarget(f"d{i}.com") for i in range(5)]
    outcomes = await Orchestrator(config, [FakeProvider("p", track)]).run(targets)
    assert [o.target.host for o in outcomes] == [t.host for t in targets]
    assert peak == 2


@pytest.mark.asyncio()
async def test_provider_parallel_cap_applies_per_request(make_config):
    active = 0
    peak = 0

    async def paginate(target, ctx):
        nonlocal active, peak

        async def page() -> None:
            nonlocal active, peak
            async with ctx.slot():
                active += 1
                peak = max(peak, active)
                await asyncio.sleep(0.01)
                active -= 1

        await asyncio.gather(*(page() for _ in range(4)))
        return []

    config = make_config(providers={"p": {"parallel": 2}}, concurrency={"max_domains": 4})
    targets = [DomainTarget(f"d{i}.com") for i in range(4)]
    await Orchestrator(config, [FakeProvider("p", paginate)]).run(targets)
    assert peak == 2


@pytest.mark.asyncio()
async def test_failing_listener_does_not_break_run(make_config):
    bus = EventBus()

    def explode(event):
        raise ValueError("listener bug")

    bus.subscribe(explode)
    config = make_config(providers={"p": {}})
    [outcome] = await Orchestrator(config, [FakeProvider("p", ["https://example.com/"])], events=bus).run([TARGET])
    assert outcome.succeeded == ["p"]


@pytest.mark.asyncio()
async def test_rate_limiter_spaces_requests():
    now = [0.0]
    slept: List[float] = []

    async def fake_sleep(delay: float) -> None:
        slept.append(delay)
        now[0] += delay

    limiter = RateLimiter(4.0, clock=lambda: now[0], sleep=fake_sleep)
    for _ in range(3):
        await limiter.wait()
    assert slept == [0.25, 0.25]

    unlimited = RateLimiter(None, clock=lambda: now[0], sleep=fake_sleep)
    await unlimited.wait()
    await unlimited.wait()
    assert slept == [0.25, 0.25]
