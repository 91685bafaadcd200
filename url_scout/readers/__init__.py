# File: url_scout/readers/__init__.py
"""url_scout.readers: URL lists read from local files instead of providers.

The reader is chosen by file name: ``*.warc`` / ``*.warc.gz`` are read as
WARC archives, other ``*.gz`` files as URLTeam dumps, anything else as a
plain list with one URL per line. Gzip compression is detected from the
file's magic bytes, not from its name.
"""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Dict, List, Sequence, Union

from url_scout.logger import logger

from .text import read_text_urls, read_urlteam_urls
from .warc import read_warc_urls

__all__: Sequence[str] = ("read_urls", "reader_for", "read_text_urls", "read_urlteam_urls", "read_warc_urls")

Reader = Callable[[Union[str, Path]], List[str]]

_READERS: Dict[str, Reader] = {
    "text": read_text_urls,
    "urlteam": read_urlteam_urls,
    "warc": read_warc_urls,
}


def reader_for(path: Union[str, Path]) -> str:
    """Name of the reader used for *path*."""
    suffixes = [s.lower() for s in Path(path).suffixes]
    if suffixes[-2:] == [".warc", ".gz"] or suffixes[-1:] == [".warc"]:
        return "warc"
    if suffixes[-1:] == [".gz"]:
        return "urlteam"
    return "text"


def read_urls(path: Union[str, Path]) -> List[str]:
    """Read the http(s) URLs stored in *path*. I/O and gzip errors raise OSError."""
    kind = reader_for(path)
    urls = _READERS[kind](path)
    logger.info("Read %d URLs from %s (%s)", len(urls), path, kind)
    return urls
