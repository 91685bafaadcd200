# === FILE: url_scout/config.py ===
"""
Модуль для загрузки и валидации конфигурации запуска url_scout.
Используется Pydantic для описания схемы и проверки данных.
Объект RunConfig неизменяем: ядро получает его по ссылке и никогда не модифицирует.
"""
from __future__ import annotations

import json
import os
import errno
from pathlib import Path
from urllib.parse import urlsplit
from typing import Any, Dict, Iterable, List, Literal, Mapping, Optional, Tuple, Union

import yaml
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

from url_scout.errors import ConfigError
from url_scout.filters.presets import resolve_preset
from url_scout.filters.status import parse_status_pattern
from url_scout.models import DomainTarget, Scope

ENV_KEYS_TEMPLATE = "URL_SCOUT_{name}_API_KEYS"
_REDIS_SCHEMES = ("redis", "rediss", "unix")


class _Frozen(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)


class ProviderSettings(_Frozen):
    """Настройки одного провайдера."""

    enabled: bool = Field(True, description="Включён ли провайдер.")
    parallel: int = Field(5, ge=1, description="Макс. одновременных запросов к провайдеру.")
    api_keys: Tuple[str, ...] = Field((), description="Пул API-ключей (ротация по кругу).")
    options: Dict[str, Any] = Field(default_factory=dict, description="Параметры конкретного провайдера.")

    @field_validator("api_keys", mode="before")
    def _split_keys(cls, v: Any) -> Any:
        if isinstance(v, str):
            return tuple(k.strip() for k in v.split(",") if k.strip())
        return v


class NetworkSettings(_Frozen):
    timeout: float = Field(30.0, gt=0, description="Таймаут одной попытки (секунд).")
    retries: int = Field(3, ge=0, description="Число повторов при временных ошибках.")
    backoff_base: float = Field(0.5, ge=0, description="Базовая задержка экспоненциального backoff.")
    backoff_cap: float = Field(30.0, ge=0, description="Верхняя граница задержки backoff.")
    rate_limit: Optional[float] = Field(None, gt=0, description="Глобальный лимит запросов в секунду.")
    proxy: Optional[str] = Field(None, description="HTTP-прокси для всех запросов.")
    insecure: bool = Field(False, description="Не проверять TLS-сертификаты.")
    user_agent: str = Field("url-scout/0.1", min_length=1, description="Заголовок User-Agent.")


class ConcurrencySettings(_Frozen):
    max_domains: int = Field(4, ge=1, description="Сколько доменов обрабатывается одновременно.")
    tester_parallel: int = Field(10, ge=1, description="Параллелизм HTTP-тестера.")


class NormalizeSettings(_Frozen):
    normalize_url: bool = False
    merge_endpoints: bool = False
    strip_fragment: bool = False
    show_only: Optional[Literal["host", "path", "param"]] = None


class FilterSpec(_Frozen):
    """Правила фильтрации URL. Пресеты и явные правила комбинируются пересечением."""

    extensions: Tuple[str, ...] = ()
    exclude_extensions: Tuple[str, ...] = ()
    patterns: Tuple[str, ...] = ()
    exclude_patterns: Tuple[str, ...] = ()
    min_length: Optional[int] = Field(None, ge=0)
    max_length: Optional[int] = Field(None, ge=0)
    presets: Tuple[str, ...] = ()
    include_status: Tuple[str, ...] = ()
    exclude_status: Tuple[str, ...] = ()

    @field_validator("extensions", "exclude_extensions", mode="before")
    def _clean_extensions(cls, v: Any) -> Any:
        if isinstance(v, str):
            v = v.split(",")
        if isinstance(v, (list, tuple)):
            return tuple(str(e).strip().lstrip(".").lower() for e in v if str(e).strip())
        return v

    @field_validator("include_status", "exclude_status", mode="before")
    def _stringify_status(cls, v: Any) -> Any:
        if isinstance(v, (list, tuple)):
            return tuple(str(s).strip() for s in v)
        return v

    @model_validator(mode="after")
    def _check_rules(self) -> FilterSpec:
        if (
            self.min_length is not None
            and self.max_length is not None
            and self.min_length > self.max_length
        ):
            raise ConfigError(f"min_length {self.min_length} > max_length {self.max_length}")
        for name in self.presets:
            resolve_preset(name)
        for pattern in self.include_status + self.exclude_status:
            parse_status_pattern(pattern)
        return self

    @property
    def has_status_rules(self) -> bool:
        return bool(self.include_status or self.exclude_status)


class CacheSettings(_Frozen):
    enabled: bool = True
    backend: Literal["sqlite", "redis"] = "sqlite"
    path: Path = Field(Path("~/.url_scout/cache.db"), description="Файл SQLite-кэша.")
    redis_url: Optional[str] = None
    namespace: str = Field("url_scout", min_length=1)
    ttl_seconds: int = Field(86400, ge=1, description="Срок жизни записи кэша.")
    incremental: bool = Field(False, description="Выводить только новые URL.")

    @model_validator(mode="after")
    def _check_backend(self) -> CacheSettings:
        if self.incremental and not self.enabled:
            raise ConfigError("incremental mode requires caching to be enabled")
        if self.enabled and self.backend == "redis" and not self.redis_url:
            raise ConfigError("redis cache backend selected but no redis_url given")
        if self.redis_url and urlsplit(self.redis_url).scheme not in _REDIS_SCHEMES:
            raise ConfigError(f"redis_url must start with redis://, rediss:// or unix://, got {self.redis_url!r}")
        return self


class TestingSettings(_Frozen):
    __test__ = False

    check_status: bool = False
    extract_links: bool = False


def _default_providers() -> Dict[str, ProviderSettings]:
    return {"robots": ProviderSettings(), "sitemap": ProviderSettings()}


class RunConfig(_Frozen):
    """Полный неизменяемый снимок параметров одного запуска."""

    domains: Tuple[str, ...] = Field((), description="Домены для сканирования.")
    scope: Scope = Field(Scope.EXACT, description="exact или subdomains.")
    strict: bool = Field(True, description="Отбрасывать URL вне области домена.")
    providers: Dict[str, ProviderSettings] = Field(default_factory=_default_providers)
    network: NetworkSettings = Field(default_factory=NetworkSettings)
    concurrency: ConcurrencySettings = Field(default_factory=ConcurrencySettings)
    normalize: NormalizeSettings = Field(default_factory=NormalizeSettings)
    filters: FilterSpec = Field(default_factory=FilterSpec)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    testing: TestingSettings = Field(default_factory=TestingSettings)

    @field_validator("domains", mode="before")
    def _split_domains(cls, v: Any) -> Any:
        if isinstance(v, str):
            return tuple(d.strip() for d in v.split(",") if d.strip())
        return v

    @field_validator("providers", mode="before")
    def _providers_from_list(cls, v: Any) -> Any:
        # `providers: [robots, sitemap]` is shorthand for default settings
        if isinstance(v, (list, tuple)):
            return {str(name): {} for name in v}
        return v

    @property
    def enabled_providers(self) -> List[str]:
        return [name for name, ps in self.providers.items() if ps.enabled]

    @property
    def needs_tester(self) -> bool:
        return self.testing.check_status or self.testing.extract_links or self.filters.has_status_rules

    def targets(self, extra: Iterable[str] = ()) -> List[DomainTarget]:
        """Проверенные DomainTarget для доменов из конфига и `extra` без повторов."""
        seen: Dict[str, DomainTarget] = {}
        for text in (*self.domains, *extra):
            target = DomainTarget.parse(text, self.scope)
            seen.setdefault(target.host, target)
        return list(seen.values())

    def with_env_keys(self, environ: Optional[Mapping[str, str]] = None) -> RunConfig:
        """Return a copy whose key pools also contain keys from the environment."""
        env = os.environ if environ is None else environ
        providers: Dict[str, ProviderSettings] = {}
        for name, ps in self.providers.items():
            raw = env.get(ENV_KEYS_TEMPLATE.format(name=name.upper()), "")
            extra = [k.strip() for k in raw.split(",") if k.strip() and k.strip() not in ps.api_keys]
            providers[name] = ps.model_copy(update={"api_keys": ps.api_keys + tuple(extra)}) if extra else ps
        return self.model_copy(update={"providers": providers})

    def override(self, updates: Mapping[str, Any]) -> RunConfig:
        """Return a re-validated copy with `updates` deep-merged (used by the CLI)."""
        data = _deep_merge(self.model_dump(), updates)
        try:
            return RunConfig.model_validate(data)
        except ValidationError as exc:
            raise ConfigError(str(exc)) from exc


def _deep_merge(base: Dict[str, Any], updates: Mapping[str, Any]) -> Dict[str, Any]:
    merged = dict(base)
    for key, value in updates.items():
        if isinstance(value, Mapping) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


_DEFAULT_CFG = Path("url_scout.yaml")


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ValueError(f"Неправильный YAML в {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Верхний уровень YAML должен быть mapping, получено {type(data).__name__}")
    return data


def _read_json(path: Path) -> dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8")) or {}
    except json.JSONDecodeError as exc:
        raise ValueError(f"Неправильный JSON в {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Верхний уровень JSON должен быть mapping, получено {type(data).__name__}")
    return data


def load_config(path: Union[str, Path, None]) -> RunConfig:
    """
    Читает YAML или JSON и возвращает проверенный объект RunConfig.
    Без пути использует ./url_scout.yaml, а при его отсутствии значения по умолчанию.
    Явно указанный, но отсутствующий файл даёт FileNotFoundError.
    """
    if path is None:
        if not _DEFAULT_CFG.exists():
            return RunConfig()
        path_obj = _DEFAULT_CFG
    else:
        path_obj = Path(path).expanduser().resolve()
        if not path_obj.is_file():
            raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(path_obj))

    suffix = path_obj.suffix.lower()
    if suffix in (".yaml", ".yml"):
        data = _read_yaml(path_obj)
    elif suffix == ".json":
        data = _read_json(path_obj)
    else:
        raise ValueError(f"Неподдерживаемый формат конфига: {suffix}")

    return RunConfig(**data)


__all__ = [
    "ProviderSettings",
    "NetworkSettings",
    "ConcurrencySettings",
    "NormalizeSettings",
    "FilterSpec",
    "CacheSettings",
    "TestingSettings",
    "RunConfig",
    "load_config",
]
