"""rpcgate whitelist — IP whitelist for inbound RPC connections.

Public API:
    Whitelist         — immutable snapshot of allowed addresses
    WhitelistStore    — loads the whitelist file and swaps snapshots
    WhitelistWatcher  — mtime-polling hot reload
    ConnectionEvent   — {ip, id} as reported by the RPC server
    ConnectionGate    — kicks connections outside the whitelist
"""
from rpcgate.whitelist.gate import ConnectionEvent, ConnectionGate
from rpcgate.whitelist.store import Whitelist, WhitelistStore
from rpcgate.whitelist.watcher import WhitelistWatcher

__all__ = [
    "ConnectionEvent",
    "ConnectionGate",
    "Whitelist",
    "WhitelistStore",
    "WhitelistWatcher",
]
