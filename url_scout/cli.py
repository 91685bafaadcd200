#!/usr/bin/env python3
"""
Точка входа url-scout в командной строке.

Команды:
  scan [DOMAINS]...   Собрать URL для доменов (аргументы, конфиг или stdin) или из файлов (--files)
  config              Показать итоговую конфигурацию (ключи API скрыты)
  cache purge         Удалить просроченные записи кэша

Общие опции:
  --config PATH       Путь к YAML/JSON-конфигу (по умолчанию ./url_scout.yaml, если есть)
  --log-level LEVEL   Уровень логирования (DEBUG, INFO, ...)
  --log-file PATH     Файл для логов (stderr, если не указан)

Пример:
  url-scout scan example.com --subs --preset no-images --format json -o urls.json
"""
import asyncio
import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import click

from url_scout import __version__
from url_scout.config import RunConfig, load_config
from url_scout.engine import Engine
from url_scout.errors import ConfigError
from url_scout.events import DomainCompleted, Event
from url_scout.logger import init_logging
from url_scout.report import FORMATS, render, write_report

CONTEXT_SETTINGS = dict(help_option_names=["--help", "-h"])


def print_error(message: str):
    click.secho(message, fg="red", err=True)
    sys.exit(1)


def _csv(values: Optional[str]) -> Optional[List[str]]:
    if values is None:
        return None
    return [v.strip() for v in values.split(",") if v.strip()]


def _scan_overrides(base: RunConfig, opts: Dict[str, Any]) -> Dict[str, Any]:
    """Собирает частичный словарь конфига только из явно заданных опций."""
    updates: Dict[str, Any] = {}

    def put(section: Optional[str], key: str, value: Any) -> None:
        if value is None:
            return
        target = updates if section is None else updates.setdefault(section, {})
        target[key] = value

    if opts["subs"]:
        put(None, "scope", "subdomains")
    put(None, "strict", opts["strict"])
    if opts["providers"] is not None:
        chosen = _csv(opts["providers"]) or []
        selection: Dict[str, Any] = {name: {"enabled": name in chosen} for name in base.providers}
        selection.update({name: {"enabled": True} for name in chosen})
        put(None, "providers", selection)
    put("network", "timeout", opts["timeout"])
    put("network", "retries", opts["retries"])
    put("network", "rate_limit", opts["rate_limit"])
    put("network", "proxy", opts["proxy"])
    if opts["insecure"]:
        put("network", "insecure", True)
    if opts["normalize_url"]:
        put("normalize", "normalize_url", True)
    if opts["merge_endpoint"]:
        put("normalize", "merge_endpoints", True)
    put("normalize", "show_only", opts["show_only"])
    put("filters", "extensions", _csv(opts["extensions"]))
    put("filters", "exclude_extensions", _csv(opts["exclude_extensions"]))
    put("filters", "patterns", _csv(opts["patterns"]))
    put("filters", "exclude_patterns", _csv(opts["exclude_patterns"]))
    put("filters", "min_length", opts["min_length"])
    put("filters", "max_length", opts["max_length"])
    if opts["presets"]:
        put("filters", "presets", [p for raw in opts["presets"] for p in _csv(raw) or []])
    put("filters", "include_status", _csv(opts["include_status"]))
    put("filters", "exclude_status", _csv(opts["exclude_status"]))
    if opts["no_cache"]:
        put("cache", "enabled", False)
        put("cache", "incremental", False)
    if opts["incremental"]:
        put("cache", "incremental", True)
    if opts["check_status"]:
        put("testing", "check_status", True)
    if opts["extract_links"]:
        put("testing", "extract_links", True)
    return updates


def _read_stdin_domains() -> List[str]:
    stream = click.get_text_stream("stdin")
    if stream.isatty():
        return []
    return [line.strip() for line in stream if line.strip() and not line.startswith("#")]


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(__version__, "--version", "-v", message="url-scout, version %(version)s")
@click.option(
    "--config", "-c", "config_path",
    default=None,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Путь к файлу конфигурации YAML/JSON.",
)
@click.option(
    "--log-level", "log_level",
    default="WARNING", show_default=True,
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]),
    help="Уровень логирования",
)
@click.option(
    "--log-file", "log_file",
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help="Путь к файлу логов (stderr, если не указан)",
)
@click.pass_context
def cli(ctx, config_path, log_level, log_file):
    """Группа команд url-scout CLI."""
    init_logging(level=log_level, log_file=str(log_file) if log_file else None)
    try:
        cfg = load_config(config_path)
    except (ConfigError, FileNotFoundError, ValueError, TypeError) as e:
        print_error(f"Ошибка загрузки конфигурации: {e}")
    ctx.ensure_object(dict)
    ctx.obj["config"] = cfg.with_env_keys()


@cli.command("scan", context_settings=CONTEXT_SETTINGS)
@click.argument("domains", nargs=-1)
@click.option("--subs", is_flag=True, help="Включать поддомены целевых доменов")
@click.option("--strict/--no-strict", default=None, help="Отбрасывать URL вне области домена")
@click.option("--providers", "-p", default=None, help="Провайдеры через запятую (robots,sitemap)")
@click.option("--format", "-f", "fmt", type=click.Choice(FORMATS), default="plain", show_default=True)
@click.option(
    "--output", "-o", "output",
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help="Сохранить результат в файл вместо stdout",
)
@click.option("--timeout", type=float, default=None, help="Таймаут одной попытки провайдера (секунд)")
@click.option("--retries", type=int, default=None, help="Число повторов при временных ошибках")
@click.option("--rate-limit", "rate_limit", type=float, default=None, help="Запросов в секунду (глобально)")
@click.option("--proxy", default=None, help="HTTP-прокси")
@click.option("--insecure", is_flag=True, help="Не проверять TLS-сертификаты")
@click.option("--normalize-url", "normalize_url", is_flag=True, help="Канонизировать URL")
@click.option("--merge-endpoint", "merge_endpoint", is_flag=True, help="Объединять URL одного эндпоинта")
@click.option("--show-only", "show_only", type=click.Choice(["host", "path", "param"]), default=None)
@click.option("--extensions", "-e", default=None, help="Оставить только эти расширения")
@click.option("--exclude-extensions", default=None, help="Исключить эти расширения")
@click.option("--patterns", default=None, help="Оставить URL с этими подстроками")
@click.option("--exclude-patterns", default=None, help="Исключить URL с этими подстроками")
@click.option("--min-length", type=int, default=None)
@click.option("--max-length", type=int, default=None)
@click.option("--preset", "presets", multiple=True, help="Пресет фильтров (можно несколько)")
@click.option("--include-status", default=None, help="Оставить статусы (200,30x,...)")
@click.option("--exclude-status", default=None, help="Исключить статусы (404,5xx,...)")
@click.option("--check-status", is_flag=True, help="Проверить HTTP-статус каждого URL")
@click.option("--extract-links", is_flag=True, help="Извлечь ссылки со страниц HTML")
@click.option("--incremental", is_flag=True, help="Выводить только URL, новые с прошлого запуска")
@click.option("--no-cache", "no_cache", is_flag=True, help="Не читать и не писать кэш")
@click.option("--silent", is_flag=True, help="Не печатать прогресс в stderr")
@click.option("--scan-timeout", "scan_timeout", type=float, default=None, help="Таймаут всего запуска (секунд)")
@click.option(
    "--files", "files",
    multiple=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Читать URL из файлов (текст, URLTeam .gz, WARC) вместо провайдеров",
)
@click.pass_context
def scan(ctx, domains, fmt, output, silent, scan_timeout, files, **opts):
    """Собрать URL для доменов и вывести/сохранить результат."""
    base: RunConfig = ctx.obj["config"]
    domain_list = list(domains)
    if not files and not domain_list and not base.domains:
        domain_list = _read_stdin_domains()
    try:
        cfg = base.override(_scan_overrides(base, opts))
        engine = Engine(cfg)
        if not silent:
            engine.events.subscribe(_progress)
        report = engine.start_scan(domain_list, timeout=scan_timeout, files=list(files))
    except ConfigError as e:
        print_error(f"Ошибка конфигурации: {e}")
    except asyncio.TimeoutError:
        print_error(f"Сканирование не завершено за {scan_timeout} секунд")
    except OSError as e:
        print_error(f"Ошибка чтения файла: {e}")

    for warning in report.warnings:
        click.secho(f"warning: {warning}", fg="yellow", err=True)

    if output:
        saved = write_report(report, output, fmt)
        click.secho(f"{len(report.urls)} URLs saved to {saved}", err=True)
    else:
        click.echo(render(report, fmt), nl=False)


def _progress(event: Event) -> None:
    if isinstance(event, DomainCompleted):
        suffix = f", {event.failed} provider(s) failed" if event.failed else ""
        click.echo(f"[{event.domain}] {event.urls} raw URLs{suffix}", err=True)


@cli.command("config", context_settings=CONTEXT_SETTINGS)
@click.pass_context
def show_config(ctx):
    """Показать текущую конфигурацию в JSON (API-ключи скрыты)."""
    cfg: RunConfig = ctx.obj["config"]
    data = cfg.model_dump(mode="json")
    for settings in data["providers"].values():
        settings["api_keys"] = ["***"] * len(settings["api_keys"])
    click.echo(json.dumps(data, indent=2, ensure_ascii=False))


@cli.group("cache", context_settings=CONTEXT_SETTINGS)
def cache_group():
    """Обслуживание кэша."""


@cache_group.command("purge", context_settings=CONTEXT_SETTINGS)
@click.pass_context
def cache_purge(ctx):
    """Удалить просроченные записи кэша."""
    cfg: RunConfig = ctx.obj["config"]
    try:
        removed = asyncio.run(Engine(cfg).purge_cache())
    except ConfigError as e:
        print_error(f"Ошибка конфигурации: {e}")
    click.echo(f"Removed {removed} expired entries")


if __name__ == "__main__":
    cli()
