"""Pydantic models for conslee-monitor configuration."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field


class MonitorIdentity(BaseModel):
    """Top-level identity metadata."""

    name: str = "Conslee Monitor"
    version: str = "0.1.0"


class ConsoleConfig(BaseModel):
    """Where the conslee management console lives."""

    base_url: str = "http://localhost:8800"
    timeout: float = 10.0
    api_key: str = ""  # sent as X-API-Key when set, supports ${ENV_VAR}


class ProbeConfig(BaseModel):
    """Layered reachability probing."""

    interval: float = 10.0


class RefreshConfig(BaseModel):
    """Service list / system / container refresh loop."""

    interval: float = 10.0
    loading_floor: float = 0.3


class ValidatorConfig(BaseModel):
    """Debounced listen-address validation."""

    debounce: float = 0.5


class ServerConfig(BaseModel):
    """Local monitor API server."""

    host: str = "127.0.0.1"
    port: int = 8900
    api_key: str = ""  # empty = auth disabled


class MonitorConfig(BaseModel):
    """Root configuration model for .conslee-monitor.yaml."""

    monitor: MonitorIdentity = Field(default_factory=MonitorIdentity)
    console: ConsoleConfig = Field(default_factory=ConsoleConfig)
    probes: ProbeConfig = Field(default_factory=ProbeConfig)
    refresh: RefreshConfig = Field(default_factory=RefreshConfig)
    validator: ValidatorConfig = Field(default_factory=ValidatorConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    event_log_size: int = 100
    preferences_path: str = "~/.config/conslee-monitor/preferences.yaml"


Theme = Literal["dark", "light"]
Language = Literal["en", "ru", "es", "fr", "de", "zh", "ja", "pt", "it"]


class Preferences(BaseModel):
    """Per-user display preferences, persisted separately from the config."""

    theme: Theme = "dark"
    language: Language = "en"
