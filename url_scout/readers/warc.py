# File: url_scout/readers/warc.py
"""URLs from WARC (Web ARChive) files.

Only a line scan: ``WARC-Target-URI`` headers give the archived URL, and
bare http(s) lines in record bodies (URL lists, redirects) are kept as well.
Record payloads are not parsed.
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Union

from ._io import is_http_url, iter_lines

_TARGET_HEADER = "warc-target-uri:"


def read_warc_urls(path: Union[str, Path]) -> List[str]:
    urls: List[str] = []
    for line in iter_lines(path):
        if line.lower().startswith(_TARGET_HEADER):
            # WARC/1.1 allows the URI in angle brackets
            value = line[len(_TARGET_HEADER):].strip().strip("<>")
            if is_http_url(value):
                urls.append(value)
            continue
        stripped = line.strip()
        if is_http_url(stripped) and " " not in stripped:
            urls.append(stripped)
    return urls
