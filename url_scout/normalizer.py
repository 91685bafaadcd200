# File: url_scout/normalizer.py
"""url_scout.normalizer: canonicalization, endpoint merging and deduplication of URLs.

All functions are pure. :class:`UrlNormalizer` processes a complete batch at
once, so for the same input and settings the output (content and order) is
always identical.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Collection, Dict, Iterable, List, Optional, Sequence, Tuple, Union
from urllib.parse import urlsplit, urlunsplit

from url_scout.logger import logger
from url_scout.models import RawUrl

if TYPE_CHECKING:
    from url_scout.config import NormalizeSettings

__all__: Sequence[str] = (
    "normalize_url",
    "strip_fragment",
    "merge_endpoints",
    "dedupe",
    "project_parts",
    "UrlNormalizer",
)

# (key, "=" or "", value) keeps "k" and "k=" distinct
_Param = Tuple[str, str, str]


def _split_query(query: str) -> List[_Param]:
    return [seg.partition("=") for seg in query.split("&") if seg]


def _join_query(params: Iterable[_Param]) -> str:
    return "&".join(k + sep + v for k, sep, v in params)


_DEFAULT_PORTS = {"http": "80", "https": "443"}


def _canonical_netloc(scheme: str, netloc: str) -> str:
    userinfo, at, hostport = netloc.rpartition("@")
    host, colon, port = hostport.rpartition(":")
    if colon and "]" not in port and _DEFAULT_PORTS.get(scheme) == port:
        hostport = host
    return userinfo + at + hostport.lower()


def normalize_url(url: str, *, drop_fragment: bool = False) -> str:
    """Canonical form of one URL.

    Lowercases scheme and host, drops the default port, sorts query segments
    by key and then value (without re-encoding them), strips trailing slashes
    from any path other than ``/``. Strings that are not absolute URLs come back unchanged.
    """
    try:
        parts = urlsplit(url.strip())
    except ValueError:
        return url
    if not parts.scheme or not parts.netloc:
        return url

    path = parts.path
    if len(path) > 1 and path.endswith("/"):
        path = path.rstrip("/") or "/"
    query = _join_query(sorted(_split_query(parts.query)))
    fragment = "" if drop_fragment else parts.fragment
    scheme = parts.scheme.lower()
    return urlunsplit((scheme, _canonical_netloc(scheme, parts.netloc), path, query, fragment))


def strip_fragment(url: str) -> str:
    base, _, _ = url.partition("#")
    return base


def _endpoint_key(url: str) -> str:
    try:
        parts = urlsplit(url)
    except ValueError:
        return url
    if not parts.scheme or not parts.netloc:
        return url
    return f"{parts.scheme}://{parts.netloc}{parts.path}"


def _merge_group(members: Sequence[str]) -> str:
    base = urlsplit(members[0])
    params: Dict[str, List[_Param]] = {}
    for member in members:
        own: Dict[str, List[_Param]] = {}
        for param in _split_query(urlsplit(member).query):
            own.setdefault(param[0], []).append(param)
        for key, values in own.items():
            params.setdefault(key, values)
    query = _join_query(p for values in params.values() for p in values)
    return urlunsplit((base.scheme, base.netloc, base.path, query, base.fragment))


def merge_endpoints(urls: Sequence[str]) -> List[str]:
    """Merge URLs sharing scheme+host+path into one URL with the union of parameter keys.

    For every key the values of the first URL carrying that key are kept. A
    merged URL takes the position of the first member of its group.
    """
    groups: Dict[str, List[str]] = {}
    for url in urls:
        groups.setdefault(_endpoint_key(url), []).append(url)
    return [members[0] if len(members) == 1 else _merge_group(members) for members in groups.values()]


def dedupe(urls: Collection[str]) -> List[str]:
    """Remove duplicates keeping the first occurrence and the original order."""
    unique = list(dict.fromkeys(urls))
    removed = len(urls) - len(unique)
    if removed:
        logger.debug("Removed %d duplicate URLs", removed)
    return unique


def project_parts(urls: Iterable[str], mode: str) -> List[str]:
    """Reduce URLs to their host, path or query string."""
    parts_out: List[str] = []
    for url in urls:
        try:
            parts = urlsplit(url)
        except ValueError:
            parts_out.append(url)
            continue
        if mode == "host":
            if parts.hostname:
                parts_out.append(parts.hostname)
        elif mode == "path":
            if parts.path not in ("", "/"):
                parts_out.append(parts.path)
        elif mode == "param":
            if parts.query:
                parts_out.append(parts.query)
        else:
            raise ValueError(f"unknown projection mode: {mode}")
    return dedupe(parts_out)


class UrlNormalizer:
    """Turns a batch of raw URLs into the ordered, deduplicated canonical set."""

    def __init__(
        self,
        *,
        normalize: bool = False,
        merge: bool = False,
        drop_fragment: bool = False,
        show_only: Optional[str] = None,
    ) -> None:
        self.normalize = normalize
        self.merge = merge
        self.drop_fragment = drop_fragment
        self.show_only = show_only

    @classmethod
    def from_settings(cls, settings: NormalizeSettings) -> UrlNormalizer:
        return cls(
            normalize=settings.normalize_url,
            merge=settings.merge_endpoints,
            drop_fragment=settings.strip_fragment,
            show_only=settings.show_only,
        )

    def canonical(self, url: str) -> str:
        if self.normalize:
            return normalize_url(url, drop_fragment=self.drop_fragment)
        if self.drop_fragment:
            return strip_fragment(url)
        return url

    def process(self, urls: Iterable[Union[RawUrl, str]]) -> List[str]:
        strings = [u.url if isinstance(u, RawUrl) else u for u in urls]
        result = dedupe([self.canonical(u) for u in strings])
        if self.merge:
            result = dedupe([self.canonical(u) for u in merge_endpoints(result)])
        return result

    def present(self, urls: Iterable[str]) -> List[str]:
        """Apply the optional host/path/param projection for output."""
        if self.show_only is None:
            return list(urls)
        return project_parts(urls, self.show_only)
