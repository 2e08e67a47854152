"""Shared fixtures for conslee-monitor tests."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, Dict

import pytest
import yaml

from conslee_monitor.config.models import MonitorConfig
from conslee_monitor.registry.client import ConsleeClient
from conslee_monitor.registry.models import ManagedService

SAMPLE_CONFIG: Dict[str, Any] = {
    "monitor": {"name": "Conslee Monitor", "version": "0.1.0"},
    "console": {"base_url": "http://console.local:8800", "timeout": 5.0},
    "probes": {"interval": 10.0},
    "refresh": {"interval": 10.0, "loading_floor": 0.3},
    "validator": {"debounce": 0.5},
    "server": {"host": "127.0.0.1", "port": 8900},
}

SAMPLE_SERVICES: list[Dict[str, Any]] = [
    {
        "name": "app",
        "host": "app.local",
        "containers": ["app-web"],
        "mode": "on_demand",
        "enabled": True,
        "running": True,
        "targetUrl": "http://127.0.0.1:9000",
        "healthPath": "/health",
    },
    {
        "name": "blog",
        "host": "blog.local",
        "containers": ["blog"],
        "enabled": True,
        "running": False,
        "targetUrl": "http://127.0.0.1:9100",
        "healthPath": "",
        "schedule": {"mode": "scheduled", "days": ["mon"], "start": "08:00", "stop": "18:00"},
    },
]


async def settle(delay: float = 0.01) -> None:
    """Let scheduled tasks run."""
    await asyncio.sleep(delay)


def make_service(**overrides: Any) -> ManagedService:
    data: Dict[str, Any] = {
        "name": "app",
        "host": "app.local",
        "enabled": True,
        "running": True,
        "targetUrl": "http://127.0.0.1:9000",
        "healthPath": "/health",
    }
    data.update(overrides)
    return ManagedService.from_api(data)


@pytest.fixture()
def sample_config() -> MonitorConfig:
    """Return a parsed MonitorConfig from sample data."""
    return MonitorConfig(**SAMPLE_CONFIG)


@pytest.fixture()
def sample_config_dict() -> Dict[str, Any]:
    """Return raw sample config dict."""
    return dict(SAMPLE_CONFIG)


@pytest.fixture()
def config_file(tmp_path: Path) -> Path:
    """Write sample config to a temp .conslee-monitor.yaml and return the path."""
    path = tmp_path / ".conslee-monitor.yaml"
    with path.open("w") as fh:
        yaml.dump(SAMPLE_CONFIG, fh)
    return path


@pytest.fixture()
def client() -> ConsleeClient:
    """A console client whose network methods are replaced per test."""
    return ConsleeClient("http://console.local:8800", timeout=1.0)
