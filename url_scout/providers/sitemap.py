# File: url_scout/providers/sitemap.py
"""url_scout.providers.sitemap: URLs listed in sitemap.xml, sitemap indexes and sitemap.txt."""

from __future__ import annotations

from typing import List, Optional, Sequence, Set, Tuple

from lxml import etree

from url_scout.errors import ProviderError
from url_scout.logger import logger
from url_scout.models import DiscoveryMethod, DomainTarget
from url_scout.providers.base import FetchContext

SITEMAP_PATHS: Tuple[str, ...] = ("/sitemap.xml", "/sitemap_index.xml", "/sitemap.txt")


def parse_sitemap(content: str) -> Tuple[List[str], List[str]]:
    """Split sitemap content into ``(page_urls, nested_sitemap_urls)``.

    A ``<sitemapindex>`` yields nested sitemaps, a ``<urlset>`` yields pages.
    Content that is not XML is read as a plain list, one URL per line.
    """
    parser = etree.XMLParser(ns_clean=True, resolve_entities=False, no_network=True)
    try:
        root = etree.fromstring(content.strip().encode("utf-8"), parser=parser)
    except etree.XMLSyntaxError:
        lines = (line.strip() for line in content.splitlines())
        return [line for line in lines if line.startswith("http")], []
    if root is None:
        return [], []

    def _locs(path: str) -> List[str]:
        return [loc.text.strip() for loc in root.findall(path) if loc.text and loc.text.strip()]

    if etree.QName(root).localname == "sitemapindex":
        return [], _locs(".//{*}sitemap/{*}loc")
    return _locs(".//{*}url/{*}loc"), []


class SitemapProvider:
    """Probes the usual sitemap locations and follows sitemap indexes."""

    name = "sitemap"
    method = DiscoveryMethod.SITEMAP
    requires_api_key = False

    def __init__(
        self,
        schemes: Sequence[str] = ("https", "http"),
        port: Optional[int] = None,
        max_depth: int = 3,
    ) -> None:
        self.schemes = tuple(schemes)
        self.port = port
        self.max_depth = max_depth

    def _locations(self, host: str) -> List[str]:
        netloc = host + (f":{self.port}" if self.port else "")
        return [f"{scheme}://{netloc}{path}" for scheme in self.schemes for path in SITEMAP_PATHS]

    async def _walk(self, url: str, ctx: FetchContext, depth: int, seen: Set[str], out: List[str]) -> bool:
        """Collect pages reachable from *url*. Returns False when *url* does not exist."""
        if url in seen:
            return True
        seen.add(url)
        text = await ctx.get_text(url, missing_ok=True)
        if text is None:
            return False
        pages, nested = parse_sitemap(text)
        out.extend(pages)
        if nested and depth >= self.max_depth:
            logger.debug("Sitemap index %s nested deeper than %d, not following", url, self.max_depth)
            return True
        for child in nested:
            try:
                await self._walk(child, ctx, depth + 1, seen, out)
            except ProviderError as exc:
                logger.debug("Nested sitemap %s skipped: %s", child, exc)
        return True

    async def fetch(self, target: DomainTarget, ctx: FetchContext) -> Sequence[str]:
        urls: List[str] = []
        seen: Set[str] = set()
        errors: List[ProviderError] = []
        answered = False
        for location in self._locations(target.host):
            try:
                await self._walk(location, ctx, 0, seen, urls)
                answered = True
            except ProviderError as exc:
                errors.append(exc)
        if not answered and errors:
            raise errors[-1]
        return urls
