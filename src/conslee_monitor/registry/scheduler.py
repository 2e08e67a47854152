"""Per-service, per-layer periodic probing with dependency ordering.

Each monitored service owns two ``ProbeCycle`` loops. The proxy cycle probes
the edge host; the target cycle only runs while the latest published proxy
verdict is healthy. Cycles never call each other: the proxy cycle publishes a
``VerdictEvent`` and the owning ``ServiceMonitor`` reacts to it by re-arming
the target cycle.

A cycle is restarted (in-flight probe cancelled, verdict reset to unknown)
whenever the probe request derived from its inputs changes. A probe that is
cancelled never publishes.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Callable, Dict, Iterable, List, Optional

from conslee_monitor.events.emitter import RESET, SETTLED, EventEmitter, VerdictEvent
from conslee_monitor.registry.client import ConsleeClient
from conslee_monitor.registry.health import build_proxy_request, build_target_request, run_probe
from conslee_monitor.registry.models import Layer, ManagedService, ProbeRequest, ServiceHealth, Verdict

logger = logging.getLogger(__name__)

PROBE_INTERVAL = 10.0


class CycleState(str, Enum):
    IDLE = "idle"
    ARMED = "armed"
    CHECKING = "checking"
    SETTLED = "settled"


class ProbeCycle:
    """A re-armable probe loop for one layer of one service."""

    def __init__(
        self,
        service: str,
        layer: Layer,
        client: ConsleeClient,
        publish: Callable[[VerdictEvent], None],
        interval: float = PROBE_INTERVAL,
    ) -> None:
        self.service = service
        self.layer = layer
        self._client = client
        self._publish = publish
        self._interval = interval
        self._request: Optional[ProbeRequest] = None
        self._task: Optional[asyncio.Task[None]] = None
        self._pending: set[asyncio.Task[None]] = set()
        self.state = CycleState.IDLE
        self.verdict = Verdict.UNKNOWN

    @property
    def request(self) -> Optional[ProbeRequest]:
        return self._request

    @property
    def closed(self) -> bool:
        """True once no loop started by this cycle is still running."""
        return not self._pending

    def arm(self, request: Optional[ProbeRequest]) -> bool:
        """Point the cycle at *request* (None = idle). Returns True if it restarted."""
        if request == self._request:
            return False
        self.cancel()
        self._request = request
        if request is None:
            self.state = CycleState.IDLE
        else:
            self.state = CycleState.ARMED
            self._task = asyncio.create_task(
                self._run(request),
                name=f"probe-{self.layer.value}-{self.service}",
            )
            self._pending.add(self._task)
            self._task.add_done_callback(self._pending.discard)
        self._set_verdict(Verdict.UNKNOWN, RESET)
        return True

    def cancel(self) -> None:
        """Drop the timer and any in-flight probe without publishing."""
        self._request = None
        self.state = CycleState.IDLE
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()

    async def close(self) -> None:
        """Cancel and wait for every loop this cycle has started."""
        self.cancel()
        pending = [t for t in self._pending if not t.done()]
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)

    async def _run(self, request: ProbeRequest) -> None:
        while True:
            self.state = CycleState.CHECKING
            verdict = await run_probe(self._client, request)
            self.state = CycleState.SETTLED
            self._set_verdict(verdict, SETTLED)
            await asyncio.sleep(self._interval)

    def _set_verdict(self, verdict: Verdict, event_type: str) -> None:
        previous, self.verdict = self.verdict, verdict
        if event_type == RESET and previous is verdict:
            return
        self._publish(
            VerdictEvent(
                event_type=event_type,
                service=self.service,
                layer=self.layer,
                verdict=verdict,
                previous=previous,
            )
        )


class ServiceMonitor:
    """Explicit lifecycle handle for the two probe cycles of one service."""

    def __init__(
        self,
        service: ManagedService,
        client: ConsleeClient,
        emitter: EventEmitter,
        interval: float = PROBE_INTERVAL,
        scheme: str = "http",
    ) -> None:
        self.service = service
        self._emitter = emitter
        self._scheme = scheme
        self._active = False
        self.proxy = ProbeCycle(service.name, Layer.PROXY, client, self._publish, interval)
        self.target = ProbeCycle(service.name, Layer.TARGET, client, self._publish, interval)

    @property
    def name(self) -> str:
        return self.service.name

    @property
    def active(self) -> bool:
        return self._active

    @property
    def closed(self) -> bool:
        return self.proxy.closed and self.target.closed

    def start(self) -> None:
        if self._active:
            return
        self._active = True
        self._sync()

    def update(self, service: ManagedService) -> None:
        if service.name != self.service.name:
            raise ValueError(f"Monitor for {self.service.name!r} cannot track {service.name!r}")
        self.service = service
        if self._active:
            self._sync()

    def stop(self) -> None:
        """Cancel both cycles and forget their verdicts. Nothing is published afterwards."""
        self._active = False
        for cycle in (self.proxy, self.target):
            cycle.cancel()
            cycle.verdict = Verdict.UNKNOWN

    async def wait_closed(self) -> None:
        try:
            await self.proxy.close()
        finally:
            await self.target.close()

    def health(self) -> ServiceHealth:
        return ServiceHealth(
            name=self.service.name,
            enabled=self.service.enabled,
            proxy=self.proxy.verdict,
            target=self.target.verdict,
        )

    def _publish(self, event: VerdictEvent) -> None:
        if not self._active:
            return
        # Dependent layer first: no listener may observe a target verdict behind
        # a proxy that is not healthy.
        if event.layer is Layer.PROXY and event.changed:
            self._sync_target()
        self._emitter.emit(event)

    def _sync(self) -> None:
        self.proxy.arm(build_proxy_request(self.service, self._scheme))
        self._sync_target()

    def _sync_target(self) -> None:
        if self._active:
            self.target.arm(build_target_request(self.service, self.proxy.verdict))


class ProbeScheduler:
    """Keeps one ServiceMonitor per displayed service in step with the service list."""

    def __init__(
        self,
        client: ConsleeClient,
        emitter: EventEmitter | None = None,
        interval: float = PROBE_INTERVAL,
        scheme: str | None = None,
    ) -> None:
        self._client = client
        self.emitter = emitter or EventEmitter()
        self._interval = interval
        self._scheme = scheme or client.edge_scheme
        self._monitors: Dict[str, ServiceMonitor] = {}
        # Stopped monitors whose cancelled loops have not finished yet
        self._retired: set[ServiceMonitor] = set()

    @property
    def names(self) -> List[str]:
        return list(self._monitors.keys())

    def sync(self, services: Iterable[ManagedService]) -> None:
        """Start, update or retire monitors so they match *services*."""
        wanted = {s.name: s for s in services}
        for name in [n for n in self._monitors if n not in wanted]:
            self._retire(name)
        for name, service in wanted.items():
            monitor = self._monitors.get(name)
            if monitor is None:
                monitor = ServiceMonitor(service, self._client, self.emitter, self._interval, self._scheme)
                self._monitors[name] = monitor
                monitor.start()
                logger.debug("Monitoring %s", name)
            else:
                monitor.update(service)

    async def remove(self, name: str) -> None:
        monitor = self._monitors.pop(name, None)
        if monitor is not None:
            monitor.stop()
            await monitor.wait_closed()

    def get(self, name: str) -> ServiceHealth | None:
        monitor = self._monitors.get(name)
        return monitor.health() if monitor else None

    def snapshot(self) -> List[ServiceHealth]:
        return [m.health() for m in self._monitors.values()]

    async def close(self) -> None:
        for name in list(self._monitors):
            self._retire(name)
        monitors, self._retired = list(self._retired), set()
        results = await asyncio.gather(*(m.wait_closed() for m in monitors), return_exceptions=True)
        for result in results:
            if isinstance(result, Exception):
                logger.warning("Error while closing probe cycle: %s", result)

    async def __aenter__(self) -> ProbeScheduler:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    def _retire(self, name: str) -> None:
        monitor = self._monitors.pop(name)
        monitor.stop()
        self._retired = {m for m in self._retired if not m.closed}
        self._retired.add(monitor)
        logger.debug("Stopped monitoring %s", name)
