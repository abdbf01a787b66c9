"""Status endpoints for a running remote component.

Implements:
  GET /status            — lifecycle state, port, remote paths, gate counters
  GET /status/whitelist  — current whitelist addresses

/status returns 503 until the component is RUNNING. /status/whitelist returns
404 when no whitelist is configured.
"""

from __future__ import annotations

from typing import Any, Iterable

from fastapi import APIRouter, FastAPI, HTTPException, Request

from rpcgate.remote.component import ComponentState, RemoteComponent
from rpcgate.status.middleware import LoopbackOnlyMiddleware

router = APIRouter(tags=["status"])


def _component(request: Request) -> RemoteComponent:
    return request.app.state.component


@router.get("/status")
async def status(request: Request) -> dict[str, Any]:
    component = _component(request)
    if component.state is not ComponentState.RUNNING:
        raise HTTPException(
            status_code=503,
            detail={"state": component.state.value, "message": "Remote component is not running"},
        )

    snapshot = component.store.snapshot() if component.store is not None else None
    gate = component.gate
    return {
        "name": component.name,
        "state": component.state.value,
        "port": component.port,
        "paths": [
            {"namespace": p.namespace, "server_type": p.server_type, "path": p.path}
            for p in component.paths
        ],
        "whitelist": {
            "enabled": component.store is not None,
            "path": component.whitelist_path,
            "size": len(snapshot) if snapshot is not None else 0,
            "loaded_at": snapshot.loaded_at if snapshot is not None else None,
            "interval_ms": component.config.whitelist_interval,
        },
        "connections": {
            "allowed": gate.allowed if gate else 0,
            "kicked": gate.kicked if gate else 0,
            "ignored": gate.ignored if gate else 0,
        },
    }


@router.get("/status/whitelist")
async def whitelist(request: Request) -> dict[str, Any]:
    component = _component(request)
    snapshot = component.store.snapshot() if component.store is not None else None
    if snapshot is None:
        raise HTTPException(status_code=404, detail={"message": "No whitelist configured"})
    return {
        "path": snapshot.source,
        "loaded_at": snapshot.loaded_at,
        "addresses": list(snapshot.addresses),
    }


def create_status_app(
    component: RemoteComponent, allowed_hosts: Iterable[str] = ()
) -> FastAPI:
    """FastAPI app serving the status router for one component.

    Only loopback clients and the given allowed_hosts are answered.
    """
    application = FastAPI(
        title="rpcgate status",
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    application.state.component = component
    application.include_router(router)
    application.add_middleware(LoopbackOnlyMiddleware, allowed_hosts=allowed_hosts)
    return application
