# File: url_scout/filters/host.py
"""url_scout.filters.host: decides whether a discovered URL belongs to a target's scope."""

from __future__ import annotations

from typing import Iterable, List, Optional, Sequence
from urllib.parse import urlsplit

from url_scout.logger import logger
from url_scout.models import DomainTarget, RawUrl, is_valid_hostname

__all__: Sequence[str] = ("url_host", "accepts", "HostValidator")


def url_host(url: str) -> Optional[str]:
    """Lowercased host of an absolute URL, or None when it has no usable host."""
    try:
        parts = urlsplit(url.strip())
        host = parts.hostname
        parts.port  # raises ValueError on a malformed port
    except ValueError:
        return None
    if not parts.scheme or not host or not is_valid_hostname(host):
        return None
    return host


def accepts(url: str, target: DomainTarget) -> bool:
    host = url_host(url)
    if host is None:
        return False
    if host == target.host:
        return True
    return target.include_subdomains and host.endswith("." + target.host)


class HostValidator:
    """Scope check applied to provider output before normalization."""

    def accepts(self, url: str, target: DomainTarget) -> bool:
        return accepts(url, target)

    def filter(self, raw_urls: Iterable[RawUrl], target: DomainTarget) -> List[RawUrl]:
        kept: List[RawUrl] = []
        rejected = 0
        for raw in raw_urls:
            if accepts(raw.url, target):
                kept.append(raw)
            else:
                rejected += 1
        if rejected:
            logger.debug("Host validation dropped %d URLs for %s", rejected, target.host)
        return kept
