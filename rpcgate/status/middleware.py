"""Client-address guard for the rpcgate status API.

/status and /status/whitelist reveal which addresses may reach the RPC
endpoint, so they are served only to loopback clients (any address in
127.0.0.0/8, or ::1) plus hosts the embedding application names explicitly.
Everything else gets 403 with the same error body as other rpcgate errors.

RPCGATE_STATUS_LOCALHOST_ONLY=false turns the check off (test environments).
"""

from __future__ import annotations

import ipaddress
import os
from typing import Iterable, Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp

from rpcgate.utils.logger import get_logger

logger = get_logger(__name__)


def is_loopback_host(host: Optional[str]) -> bool:
    """True for an IP literal in a loopback range; names are never trusted."""
    if not host:
        return False
    try:
        return ipaddress.ip_address(host).is_loopback
    except ValueError:
        return False


def _check_enabled() -> bool:
    return os.environ.get("RPCGATE_STATUS_LOCALHOST_ONLY", "true").lower() != "false"


class LoopbackOnlyMiddleware(BaseHTTPMiddleware):
    def __init__(self, app: ASGIApp, allowed_hosts: Iterable[str] = ()) -> None:
        super().__init__(app)
        self.allowed_hosts = frozenset(allowed_hosts)

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if not _check_enabled():
            return await call_next(request)

        client_host = request.client.host if request.client else None
        if client_host in self.allowed_hosts or is_loopback_host(client_host):
            return await call_next(request)

        logger.warning("Status request refused", client_host=client_host, path=request.url.path)
        return JSONResponse(
            status_code=403,
            content={
                "error": {
                    "message": f"status endpoints are not served to {client_host or 'unknown clients'}",
                    "code": "forbidden",
                }
            },
        )
