"""Reusable async coordination primitives."""

from __future__ import annotations

from conslee_monitor.coordination.gate import MinDurationGate
from conslee_monitor.coordination.validator import (
    DebouncedValidator,
    ListenAddrValidator,
    ValidationState,
    ValidationStatus,
    listen_addr_validator,
)

__all__ = [
    "DebouncedValidator",
    "ListenAddrValidator",
    "MinDurationGate",
    "ValidationState",
    "ValidationStatus",
    "listen_addr_validator",
]
