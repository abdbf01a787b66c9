"""rpcgate remote — remote path discovery and RPC server collaborator protocols.

The RemoteComponent lifecycle lives in rpcgate.remote.component.
"""
from rpcgate.remote.paths import RemotePathRecord, resolve_app_paths, resolve_paths
from rpcgate.remote.protocol import Application, ConnectionListener, RpcServer, RpcServerFactory

__all__ = [
    "Application",
    "ConnectionListener",
    "RemotePathRecord",
    "RpcServer",
    "RpcServerFactory",
    "resolve_app_paths",
    "resolve_paths",
]
