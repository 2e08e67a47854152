"""Probe construction and the single-shot probe client."""

from __future__ import annotations

import asyncio
import logging
from typing import Dict, Iterable
from urllib.parse import urljoin, urlsplit, urlunsplit

import httpx

from conslee_monitor.registry.client import ConsleeClient
from conslee_monitor.registry.models import ManagedService, ProbeRequest, ServiceHealth, Verdict

logger = logging.getLogger(__name__)

_DEFAULT_PORTS = {"http": 80, "https": 443}


def normalize_health_path(path: str) -> str:
    """Default an empty path to ``/`` and make sure it is rooted."""
    path = (path or "").strip()
    if not path:
        return "/"
    return path if path.startswith("/") else f"/{path}"


def _authority(url: str) -> str:
    """Lowercased host[:port] of *url*, leaving out the scheme's default port."""
    try:
        parts = urlsplit(url)
        host = parts.hostname
        port = parts.port
    except ValueError:
        return ""
    if not host:
        return ""
    if ":" in host:
        host = f"[{host}]"
    if port is not None and port != _DEFAULT_PORTS.get(parts.scheme):
        return f"{host}:{port}"
    return host


def _resolve_target_url(target: str, health_path: str) -> str:
    try:
        parts = urlsplit(target)
    except ValueError:
        return target
    if not parts.scheme or not parts.netloc:
        return target
    if health_path.strip():
        return urljoin(target, normalize_health_path(health_path))
    return urlunsplit(parts._replace(path=parts.path or "/"))


def build_proxy_request(service: ManagedService, scheme: str = "http") -> ProbeRequest | None:
    """Edge-layer probe, or None when the service cannot be probed at that layer."""
    host = service.host.strip()
    if not service.enabled or not host or not service.target_url.strip():
        return None
    return ProbeRequest(
        url=f"{scheme}://{host}{normalize_health_path(service.health_path)}",
        expect_host=host.lower(),
        allow_wake=False,
        require_signature=True,
    )


def build_target_request(service: ManagedService, proxy: Verdict) -> ProbeRequest | None:
    """Target-layer probe; only exists behind a healthy proxy of a running service."""
    if not service.enabled or not service.running or proxy is not Verdict.HEALTHY:
        return None
    target = service.target_url.strip()
    if not service.host.strip() or not target:
        return None
    url = _resolve_target_url(target, service.health_path)
    return ProbeRequest(
        url=url,
        expect_host=_authority(url),
        allow_wake=True,
        require_signature=False,
    )


async def run_probe(client: ConsleeClient, request: ProbeRequest) -> Verdict:
    """Ask the console to probe *request.url*.

    Never raises for remote failures: they all read as unhealthy. Task
    cancellation is not caught, so an aborted probe never yields a verdict.
    """
    try:
        data = await client.probe(request.to_payload())
    except httpx.HTTPStatusError as exc:
        logger.debug("Probe of %s rejected: %s", request.url, exc.response.status_code)
        return Verdict.UNHEALTHY
    except httpx.TimeoutException:
        logger.debug("Probe of %s timed out", request.url)
        return Verdict.UNHEALTHY
    except Exception as exc:
        logger.debug("Probe of %s failed: %s", request.url, exc)
        return Verdict.UNHEALTHY
    if isinstance(data, dict) and data.get("status") == "healthy":
        return Verdict.HEALTHY
    return Verdict.UNHEALTHY


async def check_service_once(
    client: ConsleeClient,
    service: ManagedService,
    scheme: str = "http",
) -> ServiceHealth:
    """Evaluate both layers once, proxy first."""
    health = ServiceHealth(name=service.name, enabled=service.enabled)
    proxy_request = build_proxy_request(service, scheme)
    if proxy_request is None:
        return health
    health.proxy = await run_probe(client, proxy_request)
    target_request = build_target_request(service, health.proxy)
    if target_request is not None:
        health.target = await run_probe(client, target_request)
    return health


async def check_all_services(
    client: ConsleeClient,
    services: Iterable[ManagedService],
    scheme: str = "http",
) -> Dict[str, ServiceHealth]:
    """Run layered checks for all services concurrently."""
    tasks = {s.name: check_service_once(client, s, scheme) for s in services}
    results = await asyncio.gather(*tasks.values(), return_exceptions=True)
    out: Dict[str, ServiceHealth] = {}
    for name, result in zip(tasks.keys(), results):
        if isinstance(result, BaseException):
            logger.warning("Health check for %s crashed: %s", name, result)
            out[name] = ServiceHealth(name=name)
        else:
            out[name] = result
    return out
