# File: url_scout/readers/text.py
"""Plain URL lists and URLTeam dumps."""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional, Union

from ._io import is_http_url, iter_lines


def read_text_urls(path: Union[str, Path]) -> List[str]:
    """One URL per line; blank lines, ``#`` comments and non-http(s) lines are skipped."""
    urls: List[str] = []
    for line in iter_lines(path):
        line = line.strip()
        if line and not line.startswith("#") and is_http_url(line):
            urls.append(line)
    return urls


def _first_url(line: str) -> Optional[str]:
    for token in line.split():
        if is_http_url(token):
            return token
    return None


def read_urlteam_urls(path: Union[str, Path]) -> List[str]:
    """URLTeam dumps carry extra columns (short code, timestamp); the first http(s) token wins."""
    urls: List[str] = []
    for line in iter_lines(path):
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        url = _first_url(line)
        if url is not None:
            urls.append(url)
    return urls
