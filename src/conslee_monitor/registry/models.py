"""Data models for managed services, probe requests and health verdicts."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Optional

from pydantic import BaseModel, ConfigDict, Field


class Verdict(str, Enum):
    """Tri-state health of one layer of one service."""

    UNKNOWN = "unknown"
    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"


class Layer(str, Enum):
    PROXY = "proxy"
    TARGET = "target"


class HealthIssue(str, Enum):
    NONE = "none"
    PROXY = "proxy"
    TARGET = "target"


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class ServiceSchedule(_WireModel):
    mode: str = "on_demand"
    days: list[str] = Field(default_factory=list)
    start: str = ""
    stop: str = ""


class ManagedService(_WireModel):
    """A proxied service as reported by the console. Owned externally, read-only here."""

    name: str
    host: str = ""
    containers: list[str] = Field(default_factory=list)
    mode: str = "on_demand"
    enabled: bool = True
    running: bool = False
    last_activity: str = Field("", alias="lastActivity")
    idle_timeout: str = Field("", alias="idleTimeout")
    startup_timeout: str = Field("", alias="startupTimeout")
    target_url: str = Field("", alias="targetUrl")
    health_path: str = Field("", alias="healthPath")
    schedule: Optional[ServiceSchedule] = None

    @classmethod
    def from_api(cls, raw: dict[str, Any]) -> ManagedService:
        """Normalize a raw console resource; null fields fall back to defaults."""
        data = {k: v for k, v in raw.items() if v is not None}
        data["running"] = bool(data.get("running"))
        schedule = data.get("schedule")
        if isinstance(schedule, dict):
            data["schedule"] = {k: v for k, v in schedule.items() if v is not None}
        elif not schedule:
            data.pop("schedule", None)
        return cls.model_validate(data)


class SystemStatus(_WireModel):
    listen_addr: str = Field("", alias="listenAddr")
    idle_reaper_interval: str = Field("", alias="idleReaperInterval")


class DockerPort(_WireModel):
    ip: str = ""
    private: int = 0
    public: int = 0
    type: str = ""


class DockerContainer(_WireModel):
    id: str
    name: str = ""
    image: str = ""
    state: str = ""
    status: str = ""
    ports: list[DockerPort] = Field(default_factory=list)
    stack: str = ""


@dataclass(frozen=True)
class ProbeRequest:
    """One reachability check to be run by the console's probing endpoint."""

    url: str
    expect_host: str = ""
    allow_wake: bool = False
    require_signature: bool = False

    def to_payload(self) -> dict[str, Any]:
        return {
            "url": self.url,
            "expectHost": self.expect_host,
            "allowWake": self.allow_wake,
            "requireSignature": self.require_signature,
        }


@dataclass
class ServiceHealth:
    """Latest published verdicts for both layers of a service."""

    name: str
    enabled: bool = True
    proxy: Verdict = Verdict.UNKNOWN
    target: Verdict = Verdict.UNKNOWN

    @property
    def issue(self) -> HealthIssue:
        # A proxy problem always wins; a target problem is only meaningful behind a healthy proxy.
        if self.proxy is Verdict.UNHEALTHY:
            return HealthIssue.PROXY
        if self.proxy is Verdict.HEALTHY and self.target is Verdict.UNHEALTHY:
            return HealthIssue.TARGET
        return HealthIssue.NONE

    @property
    def status_label(self) -> str:
        if not self.enabled:
            return "disabled"
        issue = self.issue
        if issue is HealthIssue.PROXY:
            return "proxy-unhealthy"
        if issue is HealthIssue.TARGET:
            return "target-unhealthy"
        if self.proxy is Verdict.HEALTHY:
            return "healthy"
        return "unknown"

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "proxy": self.proxy.value,
            "target": self.target.value,
            "issue": self.issue.value,
            "status": self.status_label,
        }


TABS = ("all", "running", "scheduled")


def filter_services(services: Iterable[ManagedService], tab: str = "all") -> list[ManagedService]:
    """Sort by name and keep only the services shown on the given listing tab."""
    if tab not in TABS:
        raise ValueError(f"Unknown tab: {tab}")
    ordered = sorted(services, key=lambda s: s.name)
    if tab == "running":
        return [s for s in ordered if s.running]
    if tab == "scheduled":
        return [s for s in ordered if s.schedule is not None]
    return ordered
