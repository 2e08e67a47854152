"""Long-running monitor session: refresh loop + probe scheduler."""

from __future__ import annotations

import asyncio
import logging
from typing import List, Optional

from conslee_monitor.config.models import MonitorConfig
from conslee_monitor.coordination.gate import MinDurationGate
from conslee_monitor.coordination.validator import ListenAddrValidator, listen_addr_validator
from conslee_monitor.events.emitter import EventEmitter
from conslee_monitor.events.log import EventLog
from conslee_monitor.registry.client import ConsleeClient
from conslee_monitor.registry.models import ServiceHealth, filter_services
from conslee_monitor.registry.registry import ServiceRegistry
from conslee_monitor.registry.scheduler import ProbeScheduler

logger = logging.getLogger(__name__)


class MonitorSession:
    """Keeps the probe scheduler fed from a periodically refreshed registry.

    Use as an async context manager; leaving it always stops the refresh loop
    and every probe cycle.
    """

    def __init__(
        self,
        config: MonitorConfig,
        client: Optional[ConsleeClient] = None,
        emitter: Optional[EventEmitter] = None,
    ) -> None:
        self._config = config
        self.client = client or ConsleeClient(
            config.console.base_url,
            timeout=config.console.timeout,
            api_key=config.console.api_key,
        )
        self.emitter = emitter or EventEmitter()
        self.event_log = EventLog(config.event_log_size)
        self.registry = ServiceRegistry(self.client, MinDurationGate(config.refresh.loading_floor))
        self.scheduler = ProbeScheduler(self.client, self.emitter, interval=config.probes.interval)
        self.validator: ListenAddrValidator = listen_addr_validator(
            self.client, delay=config.validator.debounce
        )
        self._loop_task: Optional[asyncio.Task[None]] = None

    @property
    def loading(self) -> bool:
        return self.registry.loading.busy

    async def refresh(self) -> None:
        await self.registry.refresh_all()
        self.scheduler.sync(self.registry.services)
        system = self.registry.system
        if system is not None and system.listen_addr != self.validator.baseline:
            self.validator.rebase(system.listen_addr)

    async def run(self) -> None:
        while True:
            try:
                await self.refresh()
            except Exception:
                logger.exception("Refresh cycle failed")
            await asyncio.sleep(self._config.refresh.interval)

    def snapshot(self, tab: str = "all") -> List[ServiceHealth]:
        out: List[ServiceHealth] = []
        for service in filter_services(self.registry.services, tab):
            health = self.scheduler.get(service.name)
            out.append(health or ServiceHealth(name=service.name, enabled=service.enabled))
        return out

    async def start(self) -> None:
        if self._loop_task is None:
            self.emitter.add_listener(self.event_log)
            self._loop_task = asyncio.create_task(self.run(), name="monitor-refresh")

    async def close(self) -> None:
        task, self._loop_task = self._loop_task, None
        try:
            if task is not None:
                task.cancel()
                await asyncio.gather(task, return_exceptions=True)
        finally:
            self.validator.cancel()
            self.registry.loading.cancel()
            self.emitter.remove_listener(self.event_log)
            await self.scheduler.close()

    async def __aenter__(self) -> MonitorSession:
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()
