# File: url_scout/events.py
"""Progress events published by the orchestrator (CLI progress, tests)."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, List, Union

from url_scout.logger import logger


@dataclass(frozen=True, slots=True)
class DomainStarted:
    domain: str
    providers: int


@dataclass(frozen=True, slots=True)
class ProviderCompleted:
    domain: str
    provider: str
    status: str  # "ok" | "failed" | "skipped"
    urls: int = 0


@dataclass(frozen=True, slots=True)
class RetryScheduled:
    domain: str
    provider: str
    attempt: int
    delay: float
    reason: str


@dataclass(frozen=True, slots=True)
class DomainCompleted:
    domain: str
    urls: int
    failed: int


Event = Union[DomainStarted, ProviderCompleted, RetryScheduled, DomainCompleted]
Listener = Callable[[Event], None]


class EventBus:
    """Synchronous fan-out to listeners. ``emit`` never blocks and never raises."""

    def __init__(self) -> None:
        self._listeners: List[Listener] = []

    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def emit(self, event: Event) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as exc:  # noqa: BLE001 - a listener must not break a scan
                logger.debug("Event listener %r failed on %r: %s", listener, event, exc)
