"""Remote module path discovery.

A server exposes two kinds of remote modules to the RPC server:

  sys   — shipped with the framework, one directory per role
          (<sys_root>/frontend or <sys_root>/backend)
  user  — written by the application, one directory per server type
          (<base>/app/servers/<serverType>/remote)

Only directories that exist are returned, always in [sys, user] order; the
RPC server lets later records shadow earlier ones.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

from rpcgate.constants import (
    NAMESPACE_SYS,
    NAMESPACE_USER,
    ROLE_BACKEND,
    ROLE_FRONTEND,
    SYS_REMOTE_ROOT,
    USER_REMOTE_DIR_PARTS,
    USER_REMOTE_LEAF,
    VALID_ROLES,
)
from rpcgate.utils.logger import get_logger

if TYPE_CHECKING:
    from rpcgate.remote.protocol import Application

logger = get_logger(__name__)


@dataclass(frozen=True)
class RemotePathRecord:
    namespace: str
    server_type: str
    path: str


def role_for(is_frontend: bool) -> str:
    return ROLE_FRONTEND if is_frontend else ROLE_BACKEND


def get_sys_remote_path(role: str, sys_root: Optional[str] = None) -> str:
    if role not in VALID_ROLES:
        raise ValueError(f"unknown server role {role!r}; expected one of {sorted(VALID_ROLES)}")
    return os.path.join(sys_root or SYS_REMOTE_ROOT, role)


def get_user_remote_path(base_dir: str, server_type: str) -> str:
    return os.path.abspath(
        os.path.join(base_dir, *USER_REMOTE_DIR_PARTS, server_type, USER_REMOTE_LEAF)
    )


def remote_path_record(namespace: str, server_type: str, path: str) -> RemotePathRecord:
    return RemotePathRecord(namespace=namespace, server_type=server_type, path=path)


def resolve_paths(
    role: str,
    server_type: str,
    base_dir: str,
    sys_root: Optional[str] = None,
) -> list[RemotePathRecord]:
    """Existing remote directories for this server, system first."""
    paths: list[RemotePathRecord] = []

    sys_path = get_sys_remote_path(role, sys_root)
    if os.path.exists(sys_path):
        paths.append(remote_path_record(NAMESPACE_SYS, server_type, sys_path))

    user_path = get_user_remote_path(base_dir, server_type)
    if os.path.exists(user_path):
        paths.append(remote_path_record(NAMESPACE_USER, server_type, user_path))

    logger.debug(
        "Remote paths resolved",
        role=role,
        server_type=server_type,
        paths=[p.path for p in paths],
    )
    return paths


def resolve_app_paths(app: "Application", sys_root: Optional[str] = None) -> list[RemotePathRecord]:
    # master servers never load the remote component
    return resolve_paths(
        role_for(app.is_frontend()),
        app.get_server_type(),
        app.get_base(),
        sys_root=sys_root,
    )
