# File: url_scout/tester.py
"""
url_scout.tester: optional HTTP re-validation of discovered URLs.

Fetches each URL once, records the status code and, when asked, the links
found on HTML pages. Failures are recorded on the result, never raised.
"""
from __future__ import annotations

import asyncio
from typing import Dict, List, Optional, Protocol, Sequence
from urllib.parse import urljoin, urlparse

from aiohttp import ClientError, ClientSession, ClientTimeout
from bs4 import BeautifulSoup
from bs4.element import Tag

from url_scout.config import NetworkSettings
from url_scout.logger import logger
from url_scout.models import TestResult

__all__: Sequence[str] = ("Tester", "HttpTester", "extract_links")

_LINK_ATTRS = (("a", "href"), ("link", "href"), ("script", "src"), ("img", "src"), ("iframe", "src"), ("form", "action"))


class Tester(Protocol):
    async def check(self, urls: Sequence[str]) -> Dict[str, TestResult]: ...


def extract_links(html: str, page_url: str) -> List[str]:
    """Absolute http(s) links referenced by *html*, first occurrence order."""
    soup = BeautifulSoup(html, "html.parser")
    links: List[str] = []
    for tag_name, attr in _LINK_ATTRS:
        for tag in soup.find_all(tag_name):
            if not isinstance(tag, Tag):
                continue
            value = tag.get(attr)
            if not isinstance(value, str):
                continue
            raw = value.strip()
            if not raw or raw.startswith(("mailto:", "javascript:", "data:", "#")):
                continue
            absolute = urljoin(page_url, raw)
            if urlparse(absolute).scheme in ("http", "https"):
                links.append(absolute)
    return list(dict.fromkeys(links))


class HttpTester:
    """Status checker and link extractor bounded by ``tester_parallel`` requests."""

    def __init__(
        self,
        network: NetworkSettings,
        *,
        parallel: int = 10,
        extract: bool = False,
        session: Optional[ClientSession] = None,
    ) -> None:
        self.network = network
        self.extract = extract
        self._parallel = parallel
        self._session = session

    async def check(self, urls: Sequence[str]) -> Dict[str, TestResult]:
        own_session = self._session is None
        session = self._session or ClientSession(
            headers={"User-Agent": self.network.user_agent},
            raise_for_status=False,
        )
        sem = asyncio.Semaphore(self._parallel)

        async def _bounded(url: str) -> TestResult:
            async with sem:
                return await self._check_one(session, url)

        try:
            unique = list(dict.fromkeys(urls))
            results = await asyncio.gather(*(_bounded(u) for u in unique))
        finally:
            if own_session:
                await session.close()
        logger.info("Tested %d URLs", len(unique))
        return dict(zip(unique, results))

    async def _check_one(self, session: ClientSession, url: str) -> TestResult:
        try:
            async with session.get(
                url,
                proxy=self.network.proxy,
                ssl=not self.network.insecure,
                timeout=ClientTimeout(total=self.network.timeout),
                allow_redirects=False,
            ) as resp:
                result = TestResult(status_code=resp.status)
                ctype = resp.headers.get("Content-Type", "").split(";", 1)[0].lower()
                if self.extract and resp.status == 200 and ctype == "text/html":
                    result.extracted_links = extract_links(await resp.text(errors="replace"), url)
                return result
        except asyncio.TimeoutError:
            return TestResult(error="timeout")
        except ClientError as exc:
            logger.debug("Test request for %s failed: %s", url, exc)
            return TestResult(error=str(exc) or exc.__class__.__name__)
