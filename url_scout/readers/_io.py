# File: url_scout/readers/_io.py
from __future__ import annotations

import gzip
from pathlib import Path
from typing import Iterator, Union

_GZIP_MAGIC = b"\x1f\x8b"


def is_gzip(path: Union[str, Path]) -> bool:
    with open(path, "rb") as fh:
        return fh.read(2) == _GZIP_MAGIC


def iter_lines(path: Union[str, Path]) -> Iterator[str]:
    """Decoded lines of a plain or gzip-compressed file, without line endings."""
    if is_gzip(path):
        fh = gzip.open(path, "rt", encoding="utf-8", errors="replace")
    else:
        fh = open(path, "r", encoding="utf-8", errors="replace")
    with fh:
        for line in fh:
            yield line.rstrip("\r\n")


def is_http_url(text: str) -> bool:
    return text.startswith(("http://", "https://"))
