# File: url_scout/filters/__init__.py
"""url_scout.filters: host scope validation, URL filters, presets and status filters."""

from .host import HostValidator, accepts, url_host
from .presets import PRESETS, Preset, resolve_preset
from .status import StatusFilter, parse_status_pattern
from .url_filter import RuleSet, UrlFilter, url_extension

__all__ = [
    "HostValidator",
    "accepts",
    "url_host",
    "PRESETS",
    "Preset",
    "resolve_preset",
    "StatusFilter",
    "parse_status_pattern",
    "RuleSet",
    "UrlFilter",
    "url_extension",
]
