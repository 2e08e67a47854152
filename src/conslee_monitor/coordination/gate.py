"""Busy flag whose falling edge is held back to a minimum visible duration."""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable, Optional

logger = logging.getLogger(__name__)

MIN_BUSY_DURATION = 0.3


class MinDurationGate:
    """Keeps ``busy`` true for at least ``floor`` seconds once it is raised.

    Raising is immediate and always cancels a pending delayed lowering.
    Lowering early schedules the drop for the remaining time instead. The
    guarded operation itself is never delayed, only the published flag.
    """

    def __init__(
        self,
        floor: float = MIN_BUSY_DURATION,
        on_change: Optional[Callable[[bool], None]] = None,
    ) -> None:
        self.floor = floor
        self._on_change = on_change
        self._busy = False
        self._started_at: Optional[float] = None
        self._pending: Optional[asyncio.TimerHandle] = None

    @property
    def busy(self) -> bool:
        return self._busy

    def set_busy(self, value: bool) -> None:
        loop = asyncio.get_running_loop()
        if value:
            self._started_at = loop.time()
            self.cancel()
            self._publish(True)
            return
        if self._pending is not None:
            return
        if self._started_at is None:
            # Never raised: the flag is already down.
            return
        remaining = self.floor - (loop.time() - self._started_at)
        if remaining > 0:
            self._pending = loop.call_later(remaining, self._lower)
        else:
            self._lower()

    def cancel(self) -> None:
        """Forget any scheduled lowering."""
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None

    @asynccontextmanager
    async def hold(self) -> AsyncIterator[None]:
        self.set_busy(True)
        try:
            yield
        finally:
            self.set_busy(False)

    def _lower(self) -> None:
        self._pending = None
        self._started_at = None
        self._publish(False)

    def _publish(self, value: bool) -> None:
        if value is self._busy:
            return
        self._busy = value
        if self._on_change is not None:
            try:
                self._on_change(value)
            except Exception:
                logger.exception("Busy flag listener error")
