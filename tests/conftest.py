# File: tests/conftest.py
from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

import pytest
from aiohttp import web

from url_scout.config import RunConfig
from url_scout.logger import LOGGER_NAME
from url_scout.models import DiscoveryMethod, DomainTarget
from url_scout.providers.base import FetchContext


class FakeClock:
    """Manually advanced clock for TTL tests."""

    def __init__(self, now: float = 1_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


Step = Union[Sequence[str], Exception, Callable[[DomainTarget, FetchContext], Any]]


class FakeProvider:
    """Provider that replays scripted answers, one per call (last one repeats)."""

    method = DiscoveryMethod.ARCHIVE

    def __init__(self, name: str, *steps: Step, requires_api_key: bool = False) -> None:
        self.name = name
        self.requires_api_key = requires_api_key
        self.steps: List[Step] = list(steps) or [[]]
        self.calls: List[Dict[str, Any]] = []

    async def fetch(self, target: DomainTarget, ctx: FetchContext) -> Sequence[str]:
        step = self.steps[min(len(self.calls), len(self.steps) - 1)]
        self.calls.append({"host": target.host, "api_key": ctx.api_key})
        if isinstance(step, Exception):
            raise step
        if callable(step):
            return await step(target, ctx)
        return list(step)


@pytest.fixture(autouse=True)
def reset_logger():
    """CLI tests reconfigure the project logger; give every test a propagating one."""
    lg = logging.getLogger(LOGGER_NAME)
    yield
    lg.handlers.clear()
    lg.propagate = True
    lg.setLevel(logging.NOTSET)


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def make_config(tmp_path) -> Callable[..., RunConfig]:
    """Build a RunConfig with fast network settings and the cache under tmp_path."""

    def _make(**overrides: Any) -> RunConfig:
        data: Dict[str, Any] = {
            "network": {"timeout": 2.0, "retries": 2, "backoff_base": 0.0, "backoff_cap": 0.0},
            "cache": {"enabled": False},
        }
        for key, value in overrides.items():
            if isinstance(value, dict) and isinstance(data.get(key), dict):
                data[key] = {**data[key], **value}
            else:
                data[key] = value
        if data["cache"].get("enabled", True) and "path" not in data["cache"]:
            data["cache"]["path"] = str(tmp_path / "cache.db")
        return RunConfig(**data)

    return _make


async def serve_app(app: web.Application, port: int) -> AsyncIterator[str]:
    """Start *app* on *port*, yield base URL, ensure cleanup."""
    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, "127.0.0.1", port)
    await site.start()
    try:
        yield f"http://127.0.0.1:{port}"
    finally:
        await runner.cleanup()


def fetch_context(session, *, network=None, api_key: Optional[str] = None) -> FetchContext:
    return FetchContext("test", session, network or RunConfig().network, api_key=api_key)
