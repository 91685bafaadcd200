# File: url_scout/providers/keys.py
"""Round-robin rotation over a provider's API keys."""

from __future__ import annotations

from itertools import cycle
from typing import Iterable, Iterator, Optional, Tuple


class KeyRotator:
    """Hands out keys in order, wrapping around. An empty pool yields None."""

    def __init__(self, keys: Iterable[str] = ()) -> None:
        self.keys: Tuple[str, ...] = tuple(k for k in (key.strip() for key in keys) if k)
        self._cursor: Optional[Iterator[str]] = cycle(self.keys) if self.keys else None

    def __len__(self) -> int:
        return len(self.keys)

    def next_key(self) -> Optional[str]:
        return None if self._cursor is None else next(self._cursor)
