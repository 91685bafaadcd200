# File: url_scout/report/__init__.py
"""url_scout.report: вывод RunReport в форматах plain, JSON и CSV (stdout или файл)."""

from __future__ import annotations

import csv
import io
import json
from pathlib import Path
from typing import Any, Callable, Dict, List, Union

from url_scout.models import RunReport, TestResult

FORMATS = ("plain", "json", "csv")


def _status_text(result: TestResult | None) -> str:
    if result is None:
        return ""
    if result.error:
        return f"error: {result.error}"
    return "" if result.status_code is None else str(result.status_code)


def render_plain(report: RunReport) -> str:
    """Один URL на строку; при наличии результатов тестера добавляется ``[статус]``."""
    lines: List[str] = []
    for url in report.urls:
        status = _status_text(report.tests.get(url))
        lines.append(f"{url} [{status}]" if status else url)
        result = report.tests.get(url)
        if result is not None:
            lines.extend(f"  -> {link}" for link in result.extracted_links)
    return "\n".join(lines) + ("\n" if lines else "")


def _url_record(report: RunReport, url: str) -> Dict[str, Any]:
    record: Dict[str, Any] = {"url": url}
    result = report.tests.get(url)
    if result is not None:
        record["status"] = result.status_code
        if result.error:
            record["error"] = result.error
        if result.extracted_links:
            record["links"] = result.extracted_links
    return record


def render_json(report: RunReport, *, pretty: bool = True) -> str:
    """Сериализует отчёт: URL, разбивка по доменам, предупреждения и статусы провайдеров."""
    data = {
        "urls": [_url_record(report, url) for url in report.urls],
        "domains": report.domains,
        "providers": {
            o.target.host: {
                "succeeded": o.succeeded,
                "failed": [f.provider for f in o.failures],
                "skipped": [s.provider for s in o.skipped],
            }
            for o in report.outcomes
        },
        "warnings": report.warnings,
    }
    return json.dumps(data, ensure_ascii=False, indent=2 if pretty else None) + "\n"


def render_csv(report: RunReport) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(["url", "status", "error", "links"])
    for url in report.urls:
        result = report.tests.get(url) or TestResult()
        writer.writerow([
            url,
            "" if result.status_code is None else result.status_code,
            result.error or "",
            " ".join(result.extracted_links),
        ])
    return buf.getvalue()


_RENDERERS: Dict[str, Callable[[RunReport], str]] = {
    "plain": render_plain,
    "json": render_json,
    "csv": render_csv,
}


def render(report: RunReport, fmt: str = "plain") -> str:
    try:
        renderer = _RENDERERS[fmt]
    except KeyError:
        raise ValueError(f"Неизвестный формат вывода: {fmt}") from None
    return renderer(report)


def write_report(report: RunReport, path: Union[str, Path], fmt: str = "plain") -> Path:
    """Сохраняет отчёт в файл, создавая каталоги по пути."""
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(render(report, fmt), encoding="utf-8")
    return p


__all__ = ["FORMATS", "render", "render_plain", "render_json", "render_csv", "write_report"]
