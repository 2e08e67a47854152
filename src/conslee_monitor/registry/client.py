"""HTTP client for the conslee management console."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any
from urllib.parse import urlsplit

import httpx


@dataclass(frozen=True)
class CheckResult:
    """Answer of a remote availability check."""

    available: bool
    error: str | None = None


class ConsleeClient:
    """Thin async wrapper over the console's JSON endpoints.

    Every call opens its own ``httpx.AsyncClient``; non-2xx responses raise
    ``httpx.HTTPStatusError`` and transport problems raise ``httpx.HTTPError``.
    Callers decide how to absorb them.
    """

    def __init__(self, base_url: str, timeout: float = 10.0, api_key: str = "") -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._api_key = api_key

    @property
    def edge_scheme(self) -> str:
        """Scheme used to reach edge hosts, mirroring the console's own."""
        return "https" if urlsplit(self.base_url).scheme == "https" else "http"

    def _headers(self) -> dict[str, str]:
        headers: dict[str, str] = {"Accept": "application/json"}
        if self._api_key:
            headers["X-API-Key"] = self._api_key
        return headers

    async def _get(self, path: str, params: dict[str, str] | None = None) -> Any:
        url = f"{self.base_url}{path}"
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            resp = await client.get(url, params=params, headers=self._headers())
            resp.raise_for_status()
            return resp.json()

    async def _post(self, path: str, payload: dict[str, Any]) -> Any:
        url = f"{self.base_url}{path}"
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            resp = await client.post(url, json=payload, headers=self._headers())
            resp.raise_for_status()
            return resp.json()

    async def list_services(self) -> list[dict[str, Any]]:
        data = await self._get("/api/services")
        return list(data or [])

    async def get_system(self) -> dict[str, Any]:
        data: dict[str, Any] = await self._get("/api/system")
        return data

    async def list_containers(self) -> list[dict[str, Any]]:
        data = await self._get("/api/docker/containers")
        return list(data or [])

    async def check_port(self, listen_addr: str) -> CheckResult:
        data = await self._get("/api/system/check-port", params={"listenAddr": listen_addr})
        return CheckResult(available=bool(data.get("available")), error=data.get("error") or None)

    async def probe(self, payload: dict[str, Any]) -> dict[str, Any]:
        data: dict[str, Any] = await self._post("/api/probes", payload)
        return data
