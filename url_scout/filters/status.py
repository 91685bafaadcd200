# File: url_scout/filters/status.py
"""url_scout.filters.status: include/exclude filtering by HTTP status code.

Patterns are exact codes (``"404"``) or class wildcards where trailing
characters are ``x``: ``"30x"`` matches 300-309, ``"5xx"`` matches 500-599.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, Mapping, Optional, Sequence, Tuple

from url_scout.errors import ConfigError
from url_scout.models import TestResult

__all__: Sequence[str] = ("StatusPattern", "parse_status_pattern", "StatusFilter")

_PATTERN_RE = re.compile(r"^[1-5][0-9x]{2}$")


@dataclass(frozen=True, slots=True)
class StatusPattern:
    text: str
    low: int
    high: int

    def matches(self, code: int) -> bool:
        return self.low <= code <= self.high


def parse_status_pattern(text: str) -> StatusPattern:
    pattern = str(text).strip().lower()
    # a wildcard digit may only be followed by wildcards: "3x0" is rejected
    if not _PATTERN_RE.match(pattern) or "x0" in pattern or re.search(r"x[1-9]", pattern):
        raise ConfigError(f"invalid status pattern {text!r}; use e.g. 200, 30x or 5xx")
    low = int(pattern.replace("x", "0"))
    high = int(pattern.replace("x", "9"))
    return StatusPattern(pattern, low, high)


class StatusFilter:
    """Filters tester-annotated URLs. Exclude wins over include."""

    def __init__(self, include: Iterable[str] = (), exclude: Iterable[str] = ()) -> None:
        self.include: Tuple[StatusPattern, ...] = tuple(parse_status_pattern(p) for p in include)
        self.exclude: Tuple[StatusPattern, ...] = tuple(parse_status_pattern(p) for p in exclude)

    @property
    def active(self) -> bool:
        return bool(self.include or self.exclude)

    def accepts(self, status: Optional[int]) -> bool:
        if status is None:
            return not self.include
        if any(p.matches(status) for p in self.exclude):
            return False
        if self.include:
            return any(p.matches(status) for p in self.include)
        return True

    def apply(self, urls: Sequence[str], results: Mapping[str, TestResult]) -> list[str]:
        """Keep URLs (in order) whose annotated status passes."""
        kept = []
        for url in urls:
            result = results.get(url)
            if self.accepts(result.status_code if result else None):
                kept.append(url)
        return kept
