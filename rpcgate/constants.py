"""Shared constants for rpcgate.

No magic numbers in other modules — import from here.
"""

import os

# ─── Remote component ────────────────────────────────────────────────────────

# Component name registered with the hosting application.
REMOTE_COMPONENT_NAME: str = "__remote__"

# Default RPC heartbeat interval passed to the RPC server.
DEFAULT_RPC_INTERVAL: int = 30

# Name of the logger handed to the RPC server when rpcDebugLog is enabled.
RPC_DEBUG_LOGGER_NAME: str = "rpc-debug"

# Application switch that turns on verbose RPC logging.
RPC_DEBUG_LOG_SETTING: str = "rpcDebugLog"

# Event emitted by the RPC server for every accepted connection.
CONNECTION_EVENT: str = "connection"

# ─── Remote path layout ──────────────────────────────────────────────────────

ROLE_FRONTEND: str = "frontend"
ROLE_BACKEND: str = "backend"
VALID_ROLES: frozenset[str] = frozenset({ROLE_FRONTEND, ROLE_BACKEND})

NAMESPACE_SYS: str = "sys"
NAMESPACE_USER: str = "user"

# System remote modules live under <SYS_REMOTE_ROOT>/<role>.
SYS_REMOTE_ROOT: str = os.path.join(os.path.dirname(os.path.abspath(__file__)), "remote", "sys")

# User remote modules live under <base>/app/servers/<serverType>/remote.
USER_REMOTE_DIR_PARTS: tuple[str, ...] = ("app", "servers")
USER_REMOTE_LEAF: str = "remote"

# ─── Whitelist ───────────────────────────────────────────────────────────────

# Polling interval for the whitelist file watcher (milliseconds).
DEFAULT_WHITELIST_INTERVAL_MS: int = 60_000

# Always part of every effective whitelist.
LOOPBACK_ADDRESS: str = "127.0.0.1"

# Reason sent with kick_by_id() for connections outside the whitelist.
KICK_REASON_UNAUTHORIZED: str = "unauthorized"

# Network interface whose IPv4 addresses join the whitelist, per platform family.
# Platforms not listed contribute no interface addresses.
LOCAL_INTERFACE_BY_PLATFORM: dict[str, str] = {
    "linux": "eth0",
    "darwin": "en0",
    "win32": "Ethernet",
}
