# File: url_scout/models.py
"""
Data models for url_scout: targets, raw URLs, provider results and the run report.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Sequence, Union
from urllib.parse import urlsplit

from url_scout.errors import ConfigError, ProviderError

__all__: Sequence[str] = (
    "Scope",
    "DiscoveryMethod",
    "DomainTarget",
    "RawUrl",
    "ProviderSuccess",
    "ProviderFailure",
    "ProviderSkipped",
    "ProviderResult",
    "DomainOutcome",
    "TestResult",
    "RunReport",
)

_LABEL_RE = re.compile(r"^(?!-)[a-z0-9_-]{1,63}(?<!-)$")


class Scope(str, Enum):
    SUBDOMAINS = "subdomains"
    EXACT = "exact"


class DiscoveryMethod(str, Enum):
    ARCHIVE = "archive"
    ROBOTS = "robots"
    SITEMAP = "sitemap"


def is_valid_hostname(host: str) -> bool:
    """True for a syntactically valid, already lowercased DNS name."""
    if not host or len(host) > 253:
        return False
    return all(_LABEL_RE.match(label) for label in host.split("."))


@dataclass(frozen=True, slots=True)
class DomainTarget:
    """A host to scan plus the scope used to accept discovered URLs."""

    host: str
    scope: Scope = Scope.EXACT

    @property
    def include_subdomains(self) -> bool:
        return self.scope is Scope.SUBDOMAINS

    @classmethod
    def parse(cls, text: str, scope: Union[Scope, str] = Scope.EXACT) -> DomainTarget:
        """Build a target from ``example.com`` or ``https://example.com/path``."""
        raw = text.strip()
        if "://" not in raw:
            raw = "//" + raw
        try:
            host = urlsplit(raw).hostname or ""
        except ValueError:
            host = ""
        host = host.rstrip(".")
        if not is_valid_hostname(host):
            raise ConfigError(f"invalid domain: {text!r}")
        return cls(host=host, scope=Scope(scope))

    def __str__(self) -> str:
        return self.host


@dataclass(frozen=True, slots=True)
class RawUrl:
    """URL string as a provider returned it."""

    url: str
    provider: str
    method: DiscoveryMethod = DiscoveryMethod.ARCHIVE


@dataclass(frozen=True, slots=True)
class ProviderSuccess:
    provider: str
    urls: List[RawUrl]


@dataclass(frozen=True, slots=True)
class ProviderFailure:
    provider: str
    error: ProviderError
    retries_exhausted: bool = False


@dataclass(frozen=True, slots=True)
class ProviderSkipped:
    """Provider not called because of a configuration problem (e.g. no API key)."""

    provider: str
    reason: str


ProviderResult = Union[ProviderSuccess, ProviderFailure, ProviderSkipped]


@dataclass(slots=True)
class DomainOutcome:
    """Everything the orchestrator learned about one domain."""

    target: DomainTarget
    results: List[ProviderResult] = field(default_factory=list)

    @property
    def raw_urls(self) -> List[RawUrl]:
        merged: List[RawUrl] = []
        for result in self.results:
            if isinstance(result, ProviderSuccess):
                merged.extend(result.urls)
        return merged

    @property
    def succeeded(self) -> List[str]:
        return [r.provider for r in self.results if isinstance(r, ProviderSuccess)]

    @property
    def failures(self) -> List[ProviderFailure]:
        return [r for r in self.results if isinstance(r, ProviderFailure)]

    @property
    def skipped(self) -> List[ProviderSkipped]:
        return [r for r in self.results if isinstance(r, ProviderSkipped)]

    def warnings(self) -> List[str]:
        """Operator-facing messages about failed or skipped providers."""
        messages = [
            f"{self.target.host}: provider {s.provider} skipped ({s.reason})" for s in self.skipped
        ]
        if self.failures:
            details = "; ".join(
                f"{f.provider}: {f.error.message}"
                + (" (retries exhausted)" if f.retries_exhausted else "")
                for f in self.failures
            )
            prefix = "all providers failed" if not self.succeeded else "providers failed"
            messages.append(f"{self.target.host}: {prefix}: {details}")
        return messages


@dataclass(slots=True)
class TestResult:
    """Tester annotation for one URL."""

    __test__ = False  # not a pytest class

    status_code: Optional[int] = None
    extracted_links: List[str] = field(default_factory=list)
    error: Optional[str] = None


@dataclass(slots=True)
class RunReport:
    """Final result of a run, handed to the renderers."""

    domains: Dict[str, List[str]] = field(default_factory=dict)
    urls: List[str] = field(default_factory=list)
    tests: Dict[str, TestResult] = field(default_factory=dict)
    warnings: List[str] = field(default_factory=list)
    outcomes: List[DomainOutcome] = field(default_factory=list)
