"""Service health, verdict events and refresh endpoints."""

from __future__ import annotations

from typing import Any, Dict, List

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from conslee_monitor.api.auth import require_api_key
from conslee_monitor.monitor import MonitorSession
from conslee_monitor.registry.models import TABS

router = APIRouter(tags=["services"])


def _session(request: Request) -> MonitorSession:
    session: MonitorSession = request.app.state.session
    return session


@router.get("/services")
async def list_services(request: Request, tab: str = Query("all")) -> List[Dict[str, Any]]:
    if tab not in TABS:
        raise HTTPException(status_code=400, detail=f"Unknown tab: {tab}")
    session = _session(request)
    rows: List[Dict[str, Any]] = []
    for health in session.snapshot(tab):
        service = session.registry.get_service(health.name)
        row = health.to_dict()
        row["host"] = service.host if service else ""
        row["running"] = service.running if service else False
        rows.append(row)
    return rows


@router.get("/services/{name}/health")
async def service_health(request: Request, name: str) -> Dict[str, Any]:
    session = _session(request)
    if session.registry.get_service(name) is None:
        raise HTTPException(status_code=404, detail=f"Unknown service: {name}")
    health = session.scheduler.get(name)
    if health is None:
        raise HTTPException(status_code=503, detail=f"Service {name} is not monitored yet")
    return health.to_dict()


@router.get("/events")
async def recent_events(
    request: Request,
    limit: int = Query(20, ge=1, le=500),
    service: str | None = Query(None),
) -> List[Dict[str, Any]]:
    events = _session(request).event_log.get_recent(limit=limit, service=service)
    return [e.to_dict() for e in events]


@router.post("/refresh", dependencies=[Depends(require_api_key)])
async def refresh(request: Request) -> Dict[str, Any]:
    session = _session(request)
    await session.refresh()
    return {"services": len(session.registry.services), "loading": session.loading}
