"""Service registry: last-known-good view of the console's services."""

from __future__ import annotations

import asyncio
import logging
from typing import Dict, List, Optional

from pydantic import ValidationError

from conslee_monitor.coordination.gate import MinDurationGate
from conslee_monitor.registry.client import ConsleeClient
from conslee_monitor.registry.health import check_all_services, check_service_once
from conslee_monitor.registry.models import (
    DockerContainer,
    ManagedService,
    ServiceHealth,
    SystemStatus,
)

logger = logging.getLogger(__name__)


class ServiceRegistry:
    """Caches the service list, system settings and container inventory.

    A refresh that fails leaves the previous data in place.
    """

    def __init__(self, client: ConsleeClient, loading: Optional[MinDurationGate] = None) -> None:
        self._client = client
        self.loading = loading or MinDurationGate()
        self._services: Dict[str, ManagedService] = {}
        self.system: Optional[SystemStatus] = None
        self.containers: List[DockerContainer] = []

    @property
    def client(self) -> ConsleeClient:
        return self._client

    @property
    def services(self) -> List[ManagedService]:
        return list(self._services.values())

    @property
    def service_names(self) -> List[str]:
        return list(self._services.keys())

    def get_service(self, name: str) -> Optional[ManagedService]:
        return self._services.get(name)

    async def refresh_services(self) -> bool:
        async with self.loading.hold():
            try:
                raw = await self._client.list_services()
            except Exception as exc:
                logger.warning("Failed to load services: %s", exc)
                return False
        services: Dict[str, ManagedService] = {}
        for item in raw:
            try:
                service = ManagedService.from_api(item)
            except (ValidationError, AttributeError) as exc:
                logger.warning("Skipping malformed service entry: %s", exc)
                continue
            services[service.name] = service
        self._services = services
        return True

    async def refresh_system(self) -> bool:
        try:
            self.system = SystemStatus.model_validate(await self._client.get_system())
        except Exception as exc:
            logger.warning("Failed to load system settings: %s", exc)
            return False
        return True

    async def refresh_containers(self) -> bool:
        try:
            raw = await self._client.list_containers()
            self.containers = [DockerContainer.model_validate(c) for c in raw]
        except Exception as exc:
            logger.warning("Failed to load docker containers: %s", exc)
            return False
        return True

    async def refresh_all(self) -> None:
        await asyncio.gather(
            self.refresh_services(),
            self.refresh_system(),
            self.refresh_containers(),
        )

    @property
    def stacks(self) -> List[str]:
        return sorted({c.stack for c in self.containers if c.stack})

    @property
    def busy_containers(self) -> List[str]:
        """Containers already claimed by some service."""
        return sorted({c for s in self._services.values() for c in s.containers})

    async def check_one(self, name: str) -> ServiceHealth:
        service = self._services.get(name)
        if service is None:
            return ServiceHealth(name=name)
        return await check_service_once(self._client, service, self._client.edge_scheme)

    async def check_all(self) -> Dict[str, ServiceHealth]:
        return await check_all_services(self._client, self.services, self._client.edge_scheme)

    async def get_all_statuses(self) -> List[ServiceHealth]:
        await self.refresh_services()
        health_map = await self.check_all()
        return [health_map.get(s.name, ServiceHealth(name=s.name)) for s in self.services]

    def get_all_statuses_sync(self) -> List[ServiceHealth]:
        return asyncio.run(self.get_all_statuses())
