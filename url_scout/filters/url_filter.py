# File: url_scout/filters/url_filter.py
"""url_scout.filters.url_filter: extension / pattern / length filtering of canonical URLs."""

from __future__ import annotations

import posixpath
from dataclasses import dataclass
from typing import TYPE_CHECKING, FrozenSet, Iterable, List, Optional, Sequence, Tuple
from urllib.parse import urlsplit

from url_scout.filters.presets import resolve_preset

if TYPE_CHECKING:
    from url_scout.config import FilterSpec

__all__: Sequence[str] = ("url_extension", "RuleSet", "UrlFilter")


def url_extension(url: str) -> str:
    """Lowercased extension of the last path segment (``""`` when there is none)."""
    try:
        path = urlsplit(url).path
    except ValueError:
        return ""
    segment = posixpath.basename(path)
    stem, dot, ext = segment.rpartition(".")
    if not dot or not stem:
        return ""
    return ext.lower()


@dataclass(frozen=True, slots=True)
class RuleSet:
    """One independent group of rules; a URL must satisfy all of its parts."""

    include_extensions: FrozenSet[str] = frozenset()
    exclude_extensions: FrozenSet[str] = frozenset()
    include_patterns: Tuple[str, ...] = ()
    exclude_patterns: Tuple[str, ...] = ()
    min_length: Optional[int] = None
    max_length: Optional[int] = None

    def accepts(self, url: str) -> bool:
        length = len(url)
        if self.min_length is not None and length < self.min_length:
            return False
        if self.max_length is not None and length > self.max_length:
            return False

        if self.include_extensions or self.exclude_extensions:
            ext = url_extension(url)
            if self.include_extensions and ext not in self.include_extensions:
                return False
            if ext and ext in self.exclude_extensions:
                return False

        if self.include_patterns or self.exclude_patterns:
            lowered = url.lower()
            if self.include_patterns and not any(p in lowered for p in self.include_patterns):
                return False
            if any(p in lowered for p in self.exclude_patterns):
                return False
        return True


class UrlFilter:
    """Stateless, order-preserving filter. A URL passes when every rule set accepts it."""

    def __init__(self, rule_sets: Iterable[RuleSet] = ()) -> None:
        self.rule_sets: Tuple[RuleSet, ...] = tuple(rule_sets)

    @classmethod
    def from_spec(cls, spec: FilterSpec) -> UrlFilter:
        rule_sets: List[RuleSet] = [
            RuleSet(
                include_extensions=frozenset(spec.extensions),
                exclude_extensions=frozenset(spec.exclude_extensions),
                include_patterns=tuple(p.lower() for p in spec.patterns),
                exclude_patterns=tuple(p.lower() for p in spec.exclude_patterns),
                min_length=spec.min_length,
                max_length=spec.max_length,
            )
        ]
        for name in spec.presets:
            preset = resolve_preset(name)
            rule_sets.append(
                RuleSet(
                    include_extensions=preset.include_extensions,
                    exclude_extensions=preset.exclude_extensions,
                )
            )
        return cls(rs for rs in rule_sets if rs != RuleSet())

    def accepts(self, url: str) -> bool:
        return all(rs.accepts(url) for rs in self.rule_sets)

    def apply(self, urls: Iterable[str]) -> List[str]:
        return [url for url in urls if self.accepts(url)]
