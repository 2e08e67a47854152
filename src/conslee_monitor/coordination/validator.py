"""Debounced remote validation of a rapidly edited value."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Optional

import httpx

from conslee_monitor.registry.client import CheckResult, ConsleeClient
from conslee_monitor.validation import is_valid_listen_addr

logger = logging.getLogger(__name__)

DEBOUNCE_DELAY = 0.5

Check = Callable[[str], Awaitable[CheckResult]]


class ValidationStatus(str, Enum):
    IDLE = "idle"
    CHECKING = "checking"
    AVAILABLE = "available"
    UNAVAILABLE = "unavailable"
    ERROR = "error"


@dataclass(frozen=True)
class ValidationState:
    status: ValidationStatus = ValidationStatus.IDLE
    message: Optional[str] = None


class DebouncedValidator:
    """Coalesces bursts of edits into one delayed remote check.

    Only the most recently scheduled check may run, and a result only lands in
    ``state`` if nothing newer has been asked for in the meantime. Values equal
    to the committed ``baseline`` are never sent anywhere.
    """

    invalid_message = "Invalid format"
    unavailable_message = "Not available"
    failed_message = "Failed to check"
    error_message = "Error while checking"

    def __init__(
        self,
        check: Check,
        baseline: str = "",
        *,
        delay: float = DEBOUNCE_DELAY,
        is_well_formed: Optional[Callable[[str], bool]] = None,
        on_change: Optional[Callable[[ValidationState], None]] = None,
    ) -> None:
        self._check = check
        self._baseline = baseline
        self._baseline_result = CheckResult(available=True)
        self.delay = delay
        self._is_well_formed = is_well_formed
        self._on_change = on_change
        self._state = ValidationState()
        self._task: Optional[asyncio.Task[None]] = None
        self._seq = 0

    @property
    def state(self) -> ValidationState:
        return self._state

    @property
    def baseline(self) -> str:
        return self._baseline

    def rebase(self, baseline: str, result: Optional[CheckResult] = None) -> None:
        """Adopt a newly committed value, e.g. after it was saved."""
        self.cancel()
        self._baseline = baseline
        self._baseline_result = result or CheckResult(available=True)
        self._set_state(ValidationState())

    def on_input_changed(self, value: str) -> None:
        self.cancel()
        if value == self._baseline:
            self._set_state(ValidationState())
            return
        seq = self._seq
        self._task = asyncio.create_task(self._debounced(value, seq), name="debounced-validation")

    async def validate_now(self, value: str) -> CheckResult:
        """Check immediately, skipping the delay. Also updates ``state``."""
        self.cancel()
        if value == self._baseline:
            self._set_state(ValidationState())
            return self._baseline_result
        return await self._run(value, self._seq)

    def cancel(self) -> None:
        """Supersede whatever is scheduled or in flight."""
        self._seq += 1
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()

    async def _debounced(self, value: str, seq: int) -> None:
        await asyncio.sleep(self.delay)
        await self._run(value, seq)

    async def _run(self, value: str, seq: int) -> CheckResult:
        if not value.strip():
            self._apply(seq, ValidationState())
            return CheckResult(available=True)
        if self._is_well_formed is not None and not self._is_well_formed(value):
            self._apply(seq, ValidationState(ValidationStatus.ERROR, self.invalid_message))
            return CheckResult(available=False, error=self.invalid_message)

        self._apply(seq, ValidationState(ValidationStatus.CHECKING))
        try:
            result = await self._check(value)
        except httpx.HTTPStatusError as exc:
            logger.warning("Validation of %r rejected: %s", value, exc.response.status_code)
            self._apply(seq, ValidationState(ValidationStatus.ERROR, self.failed_message))
            return CheckResult(available=False, error=self.failed_message)
        except Exception as exc:
            logger.warning("Validation of %r failed: %s", value, exc)
            self._apply(seq, ValidationState(ValidationStatus.ERROR, self.error_message))
            return CheckResult(available=False, error=self.error_message)

        if result.available:
            self._apply(seq, ValidationState(ValidationStatus.AVAILABLE))
            return CheckResult(available=True)
        message = result.error or self.unavailable_message
        self._apply(seq, ValidationState(ValidationStatus.UNAVAILABLE, message))
        return CheckResult(available=False, error=message)

    def _apply(self, seq: int, state: ValidationState) -> None:
        if seq == self._seq:
            self._set_state(state)

    def _set_state(self, state: ValidationState) -> None:
        if state == self._state:
            return
        self._state = state
        if self._on_change is not None:
            try:
                self._on_change(state)
            except Exception:
                logger.exception("Validation listener error")


class ListenAddrValidator(DebouncedValidator):
    """Debounced "is this listen address free" check against the console."""

    unavailable_message = "Port is not available"
    failed_message = "Failed to check port"
    error_message = "Error checking port"


def listen_addr_validator(
    client: ConsleeClient,
    baseline: str = "",
    delay: float = DEBOUNCE_DELAY,
    on_change: Optional[Callable[[ValidationState], None]] = None,
) -> ListenAddrValidator:
    return ListenAddrValidator(
        client.check_port,
        baseline,
        delay=delay,
        is_well_formed=is_valid_listen_addr,
        on_change=on_change,
    )
