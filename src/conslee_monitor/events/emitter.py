"""Verdict event dataclass, listener protocol and emitter."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Protocol

from conslee_monitor.registry.models import Layer, Verdict

logger = logging.getLogger(__name__)

SETTLED = "verdict.settled"
RESET = "verdict.reset"


@dataclass
class VerdictEvent:
    """A verdict published by one layer of one service."""

    event_type: str  # SETTLED after a probe completes, RESET when a cycle restarts or idles
    service: str
    layer: Layer
    verdict: Verdict
    previous: Verdict = Verdict.UNKNOWN
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def changed(self) -> bool:
        return self.verdict is not self.previous

    def to_dict(self) -> dict[str, Any]:
        return {
            "event_type": self.event_type,
            "timestamp": self.timestamp.isoformat(),
            "service": self.service,
            "layer": self.layer.value,
            "verdict": self.verdict.value,
            "previous": self.previous.value,
        }


class EventListener(Protocol):
    """Protocol for consuming verdict events."""

    def on_event(self, event: VerdictEvent) -> None: ...


class EventEmitter:
    """Dispatches verdict events to listeners, in registration order.

    Dispatch is synchronous so a listener sees the event before the publishing
    cycle resumes.
    """

    def __init__(self) -> None:
        self._listeners: list[EventListener] = []

    def add_listener(self, listener: EventListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: EventListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def emit(self, event: VerdictEvent) -> None:
        for listener in list(self._listeners):
            try:
                listener.on_event(event)
            except Exception:
                logger.exception("Event listener error")
