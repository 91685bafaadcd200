# File: url_scout/providers/robots.py
"""url_scout.providers.robots: URLs hidden in robots.txt (Disallow paths and Sitemap links)."""

from __future__ import annotations

from typing import List, Optional, Sequence, Tuple

from url_scout.errors import ProviderError
from url_scout.models import DiscoveryMethod, DomainTarget
from url_scout.providers.base import FetchContext


def _prepare_lines(text: str) -> List[Tuple[str, str]]:
    """Strip comments and split lines into (directive, value) pairs."""
    lines: List[Tuple[str, str]] = []
    for raw in text.splitlines():
        line = raw.split("#", 1)[0].strip()
        if not line or ":" not in line:
            continue
        key, val = (part.strip() for part in line.split(":", 1))
        lines.append((key.lower(), val))
    return lines


def extract_robots_urls(text: str, origin: str) -> List[str]:
    """Turn robots.txt content into absolute URLs.

    Disallow paths are joined to *origin* (``https://example.com``); the
    empty path and ``/`` carry no information and are skipped. Sitemap values
    are already absolute and are kept as they are.
    """
    urls: List[str] = []
    for directive, value in _prepare_lines(text):
        if directive == "disallow":
            if value and value != "/":
                path = value if value.startswith("/") else "/" + value
                urls.append(origin + path)
        elif directive == "sitemap" and value:
            urls.append(value)
    return urls


class RobotsProvider:
    """Reads ``/robots.txt`` over HTTPS, falling back to plain HTTP."""

    name = "robots"
    method = DiscoveryMethod.ROBOTS
    requires_api_key = False

    def __init__(self, schemes: Sequence[str] = ("https", "http"), port: Optional[int] = None) -> None:
        self.schemes = tuple(schemes)
        self.port = port

    def _origin(self, scheme: str, host: str) -> str:
        return f"{scheme}://{host}" + (f":{self.port}" if self.port else "")

    async def fetch(self, target: DomainTarget, ctx: FetchContext) -> Sequence[str]:
        last_error: Optional[ProviderError] = None
        answered = False
        for scheme in self.schemes:
            origin = self._origin(scheme, target.host)
            try:
                text = await ctx.get_text(f"{origin}/robots.txt", missing_ok=True)
            except ProviderError as exc:
                last_error = exc
                continue
            answered = True
            if text is not None:
                return extract_robots_urls(text, origin)
        # 404 on every scheme: the site simply has no robots.txt
        if not answered and last_error is not None:
            raise last_error
        return []
