"""In-memory ring buffer for recent verdict events."""

from __future__ import annotations

from collections import deque

from conslee_monitor.events.emitter import VerdictEvent


class EventLog:
    """Bounded in-memory event log. Implements EventListener protocol."""

    def __init__(self, max_size: int = 100) -> None:
        self._events: deque[VerdictEvent] = deque(maxlen=max_size)

    def on_event(self, event: VerdictEvent) -> None:
        self._events.append(event)

    def get_recent(self, limit: int = 20, service: str | None = None) -> list[VerdictEvent]:
        events: list[VerdictEvent]
        if service:
            events = [e for e in self._events if e.service == service]
        else:
            events = list(self._events)
        # Most recent first
        events.reverse()
        return events[:limit]
