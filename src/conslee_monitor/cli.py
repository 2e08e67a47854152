"""conslee-monitor CLI entry point."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import List, Optional

import httpx
import typer
from rich.console import Console
from rich.live import Live
from rich.table import Table

from conslee_monitor.config.models import MonitorConfig
from conslee_monitor.coordination.validator import ValidationState
from conslee_monitor.registry.client import CheckResult, ConsleeClient
from conslee_monitor.registry.models import ManagedService, ServiceHealth

app = typer.Typer(
    name="conslee-monitor",
    help="Layered reachability monitor for conslee services",
    no_args_is_help=True,
)
console = Console()

_STYLES = {
    "healthy": "green",
    "unknown": "dim",
    "disabled": "dim",
    "proxy-unhealthy": "red",
    "target-unhealthy": "yellow",
}


@app.callback()
def main_options(
    log_level: str = typer.Option("WARNING", "--log-level", help="Python logging level"),
) -> None:
    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _load(path: Optional[Path] = None) -> MonitorConfig:
    from conslee_monitor.config.loader import load_config

    try:
        return load_config(path=path)
    except (FileNotFoundError, ValueError) as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(1)


def _client(config: MonitorConfig) -> ConsleeClient:
    return ConsleeClient(config.console.base_url, timeout=config.console.timeout, api_key=config.console.api_key)


def _health_table(
    title: str,
    services: List[ManagedService],
    health: List[ServiceHealth],
) -> Table:
    from conslee_monitor.validation import is_valid_host, is_valid_url

    by_name = {h.name: h for h in health}
    table = Table(title=title)
    table.add_column("Service", style="bold")
    table.add_column("Host")
    table.add_column("Target")
    table.add_column("Proxy")
    table.add_column("Target health")
    table.add_column("Status")
    for service in services:
        h = by_name.get(service.name, ServiceHealth(name=service.name, enabled=service.enabled))
        label = h.status_label
        style = _STYLES.get(label, "red")
        host = service.host or "-"
        if service.host and not is_valid_host(service.host):
            host = f"[yellow]{service.host} (invalid)[/yellow]"
        target = service.target_url or "-"
        if service.target_url and not is_valid_url(service.target_url):
            target = f"[yellow]{service.target_url} (invalid)[/yellow]"
        table.add_row(
            service.name,
            host,
            target,
            h.proxy.value,
            h.target.value,
            f"[{style}]{label}[/{style}]",
        )
    return table


@app.command()
def status(
    tab: str = typer.Option("all", help="all, running or scheduled"),
) -> None:
    """Probe every service once and show the layered health."""
    from conslee_monitor.registry.models import TABS, filter_services
    from conslee_monitor.registry.registry import ServiceRegistry

    if tab not in TABS:
        console.print(f"[red]Unknown tab: {tab}[/red]")
        raise typer.Exit(1)
    config = _load()
    registry = ServiceRegistry(_client(config))
    health = registry.get_all_statuses_sync()
    services = filter_services(registry.services, tab)
    console.print(_health_table("Conslee Service Health", services, health))


@app.command()
def watch(
    tab: str = typer.Option("all", help="all, running or scheduled"),
) -> None:
    """Continuously probe services and keep a live table on screen."""
    from conslee_monitor.monitor import MonitorSession
    from conslee_monitor.registry.models import TABS, filter_services

    if tab not in TABS:
        console.print(f"[red]Unknown tab: {tab}[/red]")
        raise typer.Exit(1)
    config = _load()

    async def _watch() -> None:
        async with MonitorSession(config) as session:
            with Live(console=console, auto_refresh=False) as live:
                while True:
                    services = filter_services(session.registry.services, tab)
                    title = "Conslee Service Health" + (" (loading…)" if session.loading else "")
                    live.update(_health_table(title, services, session.snapshot(tab)), refresh=True)
                    await asyncio.sleep(0.5)

    try:
        asyncio.run(_watch())
    except KeyboardInterrupt:
        pass


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, help="Bind host (default: server.host)"),
    port: Optional[int] = typer.Option(None, help="Bind port (default: server.port)"),
) -> None:
    """Start the local monitor API."""
    import uvicorn

    from conslee_monitor.config.loader import load_config
    from conslee_monitor.config.models import ServerConfig

    try:
        server = load_config().server
    except FileNotFoundError:
        server = ServerConfig()
    except ValueError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(1)
    host = host or server.host
    port = port or server.port

    console.print(f"[bold]conslee-monitor[/bold] starting on http://{host}:{port}")
    uvicorn.run("conslee_monitor.api.app:app", host=host, port=port, reload=False)


@app.command("check-port")
def check_port(
    listen_addr: str = typer.Argument(help="Candidate listen address, e.g. :8801"),
) -> None:
    """Ask the console whether a listen address is free."""
    from conslee_monitor.coordination.validator import listen_addr_validator

    config = _load()
    client = _client(config)

    async def _check() -> tuple[CheckResult, ValidationState]:
        try:
            baseline = (await client.get_system()).get("listenAddr", "")
        except httpx.HTTPError:
            baseline = ""
        validator = listen_addr_validator(client, baseline)
        return await validator.validate_now(listen_addr), validator.state

    result, state = asyncio.run(_check())
    if result.available:
        console.print(f"[green]✓[/green] {listen_addr} is available")
        return
    label = "unavailable" if state.status.value == "unavailable" else "error"
    console.print(f"[red]✗ {listen_addr} {label}: {result.error}[/red]")
    raise typer.Exit(1)


@app.command()
def system() -> None:
    """Show console system settings and the container inventory."""
    from conslee_monitor.registry.registry import ServiceRegistry
    from conslee_monitor.validation import is_valid_duration

    config = _load()
    registry = ServiceRegistry(_client(config))
    asyncio.run(registry.refresh_all())

    if registry.system is None:
        console.print("[red]Could not load system settings[/red]")
        raise typer.Exit(1)
    console.print(f"[bold]Listen address:[/bold] {registry.system.listen_addr}")
    interval = registry.system.idle_reaper_interval
    if interval and not is_valid_duration(interval):
        interval = f"[yellow]{interval} (invalid)[/yellow]"
    console.print(f"[bold]Idle reaper interval:[/bold] {interval or '-'}")
    if registry.stacks:
        console.print(f"[bold]Stacks:[/bold] {', '.join(registry.stacks)}")

    table = Table(title="Containers")
    table.add_column("Name", style="bold")
    table.add_column("Image")
    table.add_column("State")
    table.add_column("Stack")
    busy = set(registry.busy_containers)
    for c in registry.containers:
        name = f"{c.name} *" if c.name in busy else c.name
        table.add_row(name, c.image, c.state, c.stack or "-")
    console.print(table)


config_app = typer.Typer(name="config", help="Configuration commands")
app.add_typer(config_app)


@config_app.command("validate")
def config_validate(
    path: Optional[Path] = typer.Option(None, "--path", "-p", help="Path to .conslee-monitor.yaml"),
) -> None:
    """Validate configuration file."""
    import yaml

    from conslee_monitor.config.loader import load_config
    from conslee_monitor.validation import is_valid_url

    errors: list[str] = []
    try:
        config = load_config(path=path)
        console.print("[green]✓[/green] YAML parses correctly")
        console.print("[green]✓[/green] Pydantic validation passes")
    except FileNotFoundError as exc:
        console.print(f"[red]✗ {exc}[/red]")
        raise typer.Exit(1)
    except yaml.YAMLError as exc:
        console.print(f"[red]✗ YAML parsing failed: {exc}[/red]")
        raise typer.Exit(1)
    except ValueError as exc:
        console.print("[green]✓[/green] YAML parses correctly")
        console.print(f"[red]✗ Pydantic validation failed: {exc}[/red]")
        raise typer.Exit(1)

    if not is_valid_url(config.console.base_url):
        errors.append(f"Console URL is invalid: '{config.console.base_url}'")
    for label, value in (
        ("probes.interval", config.probes.interval),
        ("refresh.interval", config.refresh.interval),
    ):
        if value <= 0:
            errors.append(f"{label} must be positive, got {value}")
    for label, value in (
        ("validator.debounce", config.validator.debounce),
        ("refresh.loading_floor", config.refresh.loading_floor),
    ):
        if value < 0:
            errors.append(f"{label} must not be negative, got {value}")

    if not errors:
        console.print("[green]✓[/green] Console URL is valid")
        console.print("[green]✓[/green] Timing settings are sane")
        console.print("\n[green bold]Configuration is valid.[/green bold]")
    else:
        for err in errors:
            console.print(f"[red]✗ {err}[/red]")
        console.print(f"\n[red bold]{len(errors)} validation error(s) found.[/red bold]")
        raise typer.Exit(1)


@config_app.command("show")
def config_show(
    path: Optional[Path] = typer.Option(None, "--path", "-p", help="Path to .conslee-monitor.yaml"),
) -> None:
    """Print resolved configuration."""
    config = _load(path)

    console.print(f"[bold]{config.monitor.name}[/bold] v{config.monitor.version}\n")
    console.print("[bold]Console:[/bold]")
    console.print(f"  URL: {config.console.base_url}")
    console.print(f"  Timeout: {config.console.timeout}s")
    console.print(f"  API key: {'set' if config.console.api_key else 'not set'}\n")
    console.print("[bold]Timing:[/bold]")
    console.print(f"  Probe interval: {config.probes.interval}s")
    console.print(f"  Refresh interval: {config.refresh.interval}s")
    console.print(f"  Loading floor: {config.refresh.loading_floor}s")
    console.print(f"  Port check debounce: {config.validator.debounce}s\n")
    console.print("[bold]Server:[/bold]")
    console.print(f"  {config.server.host}:{config.server.port}")


prefs_app = typer.Typer(name="prefs", help="Display preferences")
app.add_typer(prefs_app)


@prefs_app.command("show")
def prefs_show() -> None:
    """Print saved preferences."""
    from conslee_monitor.config.loader import load_preferences, preferences_file

    prefs = load_preferences(preferences_file(_load()))
    console.print(f"Theme: {prefs.theme}")
    console.print(f"Language: {prefs.language}")


@prefs_app.command("set")
def prefs_set(
    theme: Optional[str] = typer.Option(None, help="dark or light"),
    language: Optional[str] = typer.Option(None, help="en, ru, es, fr, de, zh, ja, pt or it"),
) -> None:
    """Update saved preferences."""
    from pydantic import ValidationError

    from conslee_monitor.config.loader import load_preferences, preferences_file, save_preferences
    from conslee_monitor.config.models import Preferences

    path = preferences_file(_load())
    current = load_preferences(path).model_dump()
    if theme is not None:
        current["theme"] = theme
    if language is not None:
        current["language"] = language
    try:
        prefs = Preferences(**current)
    except ValidationError as exc:
        console.print(f"[red]Invalid preference: {exc}[/red]")
        raise typer.Exit(1)
    save_preferences(prefs, path)
    console.print(f"[green]✓[/green] Saved preferences to {path}")


def main() -> None:
    app()
