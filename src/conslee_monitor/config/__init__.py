"""conslee-monitor configuration system."""

from conslee_monitor.config.loader import (
    find_config_file,
    load_config,
    load_preferences,
    save_preferences,
)
from conslee_monitor.config.models import (
    ConsoleConfig,
    MonitorConfig,
    Preferences,
    ProbeConfig,
    RefreshConfig,
    ServerConfig,
    ValidatorConfig,
)

__all__ = [
    "ConsoleConfig",
    "MonitorConfig",
    "Preferences",
    "ProbeConfig",
    "RefreshConfig",
    "ServerConfig",
    "ValidatorConfig",
    "find_config_file",
    "load_config",
    "load_preferences",
    "save_preferences",
]
