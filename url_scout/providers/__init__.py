# File: url_scout/providers/__init__.py
"""url_scout.providers: provider interface, built-in discovery providers and the registry.

Further sources (web archives, threat-intel feeds) plug in through
:func:`register_provider`; the orchestrator only sees the :class:`Provider`
protocol.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable, Dict, List

from url_scout.errors import ConfigError

from .base import FetchContext, Provider
from .keys import KeyRotator
from .robots import RobotsProvider
from .sitemap import SitemapProvider

if TYPE_CHECKING:
    from url_scout.config import ProviderSettings, RunConfig

ProviderFactory = Callable[["ProviderSettings"], Provider]

_REGISTRY: Dict[str, ProviderFactory] = {}


def register_provider(name: str, factory: ProviderFactory) -> None:
    """Make *factory* available under *name* in the ``providers`` config section."""
    _REGISTRY[name] = factory


def registered_providers() -> List[str]:
    return sorted(_REGISTRY)


def build_providers(config: RunConfig) -> List[Provider]:
    """Instantiate the enabled providers in configuration order."""
    providers: List[Provider] = []
    for name in config.enabled_providers:
        factory = _REGISTRY.get(name)
        if factory is None:
            raise ConfigError(f"unknown provider: {name} (known: {', '.join(registered_providers())})")
        providers.append(factory(config.providers[name]))
    return providers


def _robots_factory(settings: ProviderSettings) -> Provider:
    opts = settings.options
    return RobotsProvider(schemes=opts.get("schemes", ("https", "http")), port=opts.get("port"))


def _sitemap_factory(settings: ProviderSettings) -> Provider:
    opts = settings.options
    return SitemapProvider(
        schemes=opts.get("schemes", ("https", "http")),
        port=opts.get("port"),
        max_depth=int(opts.get("max_depth", 3)),
    )


register_provider("robots", _robots_factory)
register_provider("sitemap", _sitemap_factory)

__all__ = [
    "FetchContext",
    "KeyRotator",
    "Provider",
    "ProviderFactory",
    "RobotsProvider",
    "SitemapProvider",
    "build_providers",
    "register_provider",
    "registered_providers",
]
