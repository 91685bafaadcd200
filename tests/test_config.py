# File: tests/test_config.py
import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from url_scout.config import RunConfig, load_config
from url_scout.errors import ConfigError
from url_scout.models import DomainTarget, Scope


def write_file(tmp_path: Path, content: str, suffix: str) -> Path:
    path = tmp_path / f"config{suffix}"
    path.write_text(content, encoding="utf-8")
    return path


@pytest.mark.parametrize(
    "content,suffix,expect_exc",
    [
        ("domains: example.com, example.org\nscope: subdomains", ".yaml", None),
        (json.dumps({"domains": ["example.com", "example.org"], "scope": "subdomains"}), ".json", None),
        ("scope: everywhere", ".yaml", ValidationError),
        ("unknown_key: 1", ".yaml", ValidationError),
        ("::invalid yaml: [", ".yaml", ValueError),
        ("- just\n- a list", ".yaml", TypeError),
        ("{not json", ".json", ValueError),
        ("domains = 1", ".toml", ValueError),
    ],
)
def test_load_config_variants(tmp_path, content, suffix, expect_exc):
    cfg_path = write_file(tmp_path, content, suffix)
    if expect_exc:
        with pytest.raises(expect_exc):
            load_config(cfg_path)
    else:
        cfg = load_config(cfg_path)
        assert isinstance(cfg, RunConfig)
        assert cfg.domains == ("example.com", "example.org")
        assert cfg.scope is Scope.SUBDOMAINS


def test_missing_explicit_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "nope.yaml")


def test_defaults_without_file(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    cfg = load_config(None)
    assert cfg == RunConfig()
    assert cfg.enabled_providers == ["robots", "sitemap"]
    assert cfg.network.timeout == 30 and cfg.network.retries == 3
    assert cfg.cache.enabled and not cfg.cache.incremental


def test_default_file_in_cwd_is_used(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "url_scout.yaml").write_text("strict: false\n", encoding="utf-8")
    assert load_config(None).strict is False


def test_config_is_immutable():
    cfg = RunConfig()
    with pytest.raises(ValidationError):
        cfg.strict = False


def test_cache_rules():
    with pytest.raises(ConfigError):
        RunConfig(cache={"enabled": False, "incremental": True})
    with pytest.raises(ConfigError):
        RunConfig(cache={"backend": "redis"})
    assert RunConfig(cache={"enabled": False, "backend": "redis"}).cache.backend == "redis"


@pytest.mark.parametrize("url", ["localhost:6379", "http://localhost:6379", "127.0.0.1"])
def test_redis_url_needs_redis_scheme(url):
    with pytest.raises(ConfigError):
        RunConfig(cache={"backend": "redis", "redis_url": url})
    for ok in ("redis://localhost:6379/0", "rediss://cache.internal", "unix:///tmp/redis.sock"):
        assert RunConfig(cache={"backend": "redis", "redis_url": ok}).cache.redis_url == ok


def test_invalid_status_pattern_in_config():
    with pytest.raises(ConfigError):
        RunConfig(filters={"include_status": ["2x0"]})
    assert RunConfig(filters={"exclude_status": [404, "5xx"]}).filters.exclude_status == ("404", "5xx")


def test_targets_deduplicate_and_validate():
    cfg = RunConfig(domains=["Example.com", "https://example.com/x", "b.org"], scope="subdomains")
    assert cfg.targets(["b.org", "c.net"]) == [
        DomainTarget("example.com", Scope.SUBDOMAINS),
        DomainTarget("b.org", Scope.SUBDOMAINS),
        DomainTarget("c.net", Scope.SUBDOMAINS),
    ]
    with pytest.raises(ConfigError):
        RunConfig(domains=["bad host"]).targets()


def test_env_keys_are_merged_into_copy():
    cfg = RunConfig(providers={"robots": {"api_keys": "k1, k2"}, "sitemap": {}})
    merged = cfg.with_env_keys({"URL_SCOUT_ROBOTS_API_KEYS": "k2,k3", "URL_SCOUT_SITEMAP_API_KEYS": "s1"})
    assert merged.providers["robots"].api_keys == ("k1", "k2", "k3")
    assert merged.providers["sitemap"].api_keys == ("s1",)
    assert cfg.providers["robots"].api_keys == ("k1", "k2")


def test_override_deep_merges_and_revalidates():
    cfg = RunConfig(network={"timeout": 5})
    updated = cfg.override({"network": {"retries": 0}, "normalize": {"normalize_url": True}})
    assert updated.network.timeout == 5 and updated.network.retries == 0
    assert updated.normalize.normalize_url
    with pytest.raises(ConfigError):
        cfg.override({"network": {"retries": -1}})
