"""FastAPI application factory for the local monitor API."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from conslee_monitor.api.routes import services, system
from conslee_monitor.config.loader import load_config
from conslee_monitor.config.models import MonitorConfig
from conslee_monitor.monitor import MonitorSession


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
    session: MonitorSession = app.state.session
    async with session:
        yield


def create_app(config: MonitorConfig | None = None, session: MonitorSession | None = None) -> FastAPI:
    if config is None:
        try:
            config = load_config()
        except (FileNotFoundError, ValueError):
            # Fallback for environments without a config file (e.g. testing)
            config = MonitorConfig()

    app = FastAPI(
        title=config.monitor.name,
        version=config.monitor.version,
        description="Layered reachability monitor for conslee services",
        lifespan=_lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.config = config
    app.state.session = session or MonitorSession(config)

    @app.get("/health", tags=["meta"])
    async def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    app.include_router(services.router, prefix="/api")
    app.include_router(system.router, prefix="/api")

    return app


app = create_app()
