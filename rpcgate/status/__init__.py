"""rpcgate status — loopback-only HTTP status endpoints."""
from rpcgate.status.api import create_status_app

__all__ = ["create_status_app"]
