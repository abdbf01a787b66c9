"""Per-connection whitelist enforcement.

ConnectionGate.on_connection() is registered as the RPC server's
"connection" handler. Each event is checked against the whitelist snapshot
current at that moment; a connection whose IP is not in it is kicked with
reason "unauthorized". The kick is fire-and-forget.

Events that carry no ip or no id cannot be filtered and are let through.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Mapping, Optional

from rpcgate.constants import KICK_REASON_UNAUTHORIZED
from rpcgate.utils.logger import clear_connection_id, get_logger, set_connection_id
from rpcgate.whitelist.store import WhitelistStore

if TYPE_CHECKING:
    from rpcgate.remote.protocol import RpcServer

logger = get_logger(__name__)


@dataclass(frozen=True)
class ConnectionEvent:
    """A single inbound connection as reported by the RPC server."""

    ip: Optional[str]
    id: Optional[Any]

    @classmethod
    def from_raw(cls, raw: Any) -> "ConnectionEvent":
        """Accept a ConnectionEvent, a mapping, or any object with ip/id attributes."""
        if isinstance(raw, ConnectionEvent):
            return raw
        if raw is None:
            return cls(ip=None, id=None)
        if isinstance(raw, Mapping):
            return cls(ip=raw.get("ip"), id=raw.get("id"))
        return cls(ip=getattr(raw, "ip", None), id=getattr(raw, "id", None))


class ConnectionGate:
    """Allow/kick decision for inbound RPC connections.

    With store=None the gate is a no-op: every connection is allowed.
    After close() every event is ignored.
    """

    def __init__(self, server: RpcServer, store: Optional[WhitelistStore] = None) -> None:
        self._server = server
        self._store = store
        self._closed = False
        self.allowed = 0
        self.kicked = 0
        self.ignored = 0

    @property
    def enabled(self) -> bool:
        return self._store is not None

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        self._closed = True

    def on_connection(self, raw_event: Any) -> None:
        if self._closed or self._store is None:
            self.ignored += 1
            return

        event = ConnectionEvent.from_raw(raw_event)
        if not event.ip or not event.id:
            self.ignored += 1
            return

        # One snapshot read per event; a concurrent reload replaces the
        # reference but never mutates this object.
        snapshot = self._store.snapshot()
        if snapshot is None or event.ip in snapshot:
            self.allowed += 1
            return

        set_connection_id(str(event.id))
        try:
            logger.warning(
                "Connection not in whitelist — kicking",
                ip=event.ip,
                reason=KICK_REASON_UNAUTHORIZED,
            )
            self.kicked += 1
            self._server.kick_by_id(event.id, KICK_REASON_UNAUTHORIZED)
        except Exception as exc:  # noqa: BLE001
            logger.error("kick_by_id failed (non-fatal)", ip=event.ip, error=str(exc))
        finally:
            clear_connection_id()

    __call__ = on_connection
