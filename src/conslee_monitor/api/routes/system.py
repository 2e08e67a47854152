"""System settings passthrough and listen-address check."""

from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, HTTPException, Query, Request

router = APIRouter(tags=["system"])


@router.get("/system")
async def system(request: Request) -> Dict[str, Any]:
    registry = request.app.state.session.registry
    if registry.system is None:
        raise HTTPException(status_code=503, detail="System settings not loaded yet")
    return {
        "listenAddr": registry.system.listen_addr,
        "idleReaperInterval": registry.system.idle_reaper_interval,
        "stacks": registry.stacks,
        "busyContainers": registry.busy_containers,
    }


@router.get("/system/check-port")
async def check_port(request: Request, listen_addr: str = Query(..., alias="listenAddr")) -> Dict[str, Any]:
    validator = request.app.state.session.validator
    result = await validator.validate_now(listen_addr)
    return {
        "available": result.available,
        "error": result.error,
        "status": validator.state.status.value,
    }
