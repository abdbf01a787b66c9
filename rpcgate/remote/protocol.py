"""Collaborator interfaces for the remote component.

The RPC server and the hosting application are supplied from outside rpcgate.
This module pins down the narrow surface rpcgate relies on:

    RpcServer          — built by a RpcServerFactory from RemoteOptions
    ServerInfo         — the current server's registration record
    Application        — handle for the hosting application
    ConnectionListener — receiver of "connection" events
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, Protocol, runtime_checkable

if TYPE_CHECKING:
    from rpcgate.config import RemoteOptions


@runtime_checkable
class ConnectionListener(Protocol):
    def on_connection(self, event: Any) -> None:
        """Handle one connection event ({ip, id})."""
        ...


@runtime_checkable
class RpcServer(Protocol):
    """RPC server surface used by the remote component.

    start()/stop() return once the request has been issued; any completion
    inside the server is its own business.
    """

    def on(self, event: str, handler: Callable[..., Any]) -> Any:
        ...

    def start(self) -> Any:
        ...

    def stop(self, force: bool = False) -> Any:
        ...

    def kick_by_id(self, connection_id: Any, reason: str) -> Any:
        ...


class ServerInfo(Protocol):
    port: int


@runtime_checkable
class Application(Protocol):
    """Hosting application handle, passed to the RPC server as its context."""

    def get_cur_server(self) -> ServerInfo:
        ...

    def is_frontend(self) -> bool:
        ...

    def get_server_type(self) -> str:
        ...

    def get_base(self) -> str:
        ...

    def enabled(self, setting: str) -> bool:
        ...


RpcServerFactory = Callable[["RemoteOptions"], RpcServer]
