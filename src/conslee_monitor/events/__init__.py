"""Verdict event system for conslee-monitor."""

from __future__ import annotations

from conslee_monitor.events.emitter import RESET, SETTLED, EventEmitter, EventListener, VerdictEvent
from conslee_monitor.events.log import EventLog

__all__ = [
    "RESET",
    "SETTLED",
    "EventEmitter",
    "EventListener",
    "EventLog",
    "VerdictEvent",
]
