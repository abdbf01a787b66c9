"""Remote component: lifecycle of the server-side RPC endpoint.

Startup sequence (start()):
  1. port from the application's current server record
  2. resolve_app_paths()              → [sys, user] remote directories
  3. server_factory(RemoteOptions)    → RPC server (external collaborator)
  4. server.on("connection", gate)    → whitelist enforcement
  5. whitelist (only if whitelist_path is configured):
       interval check → realpath → stat → initial reload → WhitelistWatcher.start()
  6. server.start()
  7. yield one event-loop tick, then return

Shutdown (stop(force)):
  gate closed → watcher cancelled → server.stop(force) → yield one tick

States: CREATED → STARTING → RUNNING → STOPPING → STOPPED.
A failure during start() leaves the component STOPPED and re-raises.
"""

from __future__ import annotations

import asyncio
import dataclasses
import enum
import os
from typing import Any, Mapping, Optional, Union

from rpcgate.config import RemoteConfig, RemoteOptions
from rpcgate.constants import (
    CONNECTION_EVENT,
    REMOTE_COMPONENT_NAME,
    RPC_DEBUG_LOG_SETTING,
    RPC_DEBUG_LOGGER_NAME,
)
from rpcgate.errors import ConfigurationError
from rpcgate.remote.paths import RemotePathRecord, resolve_app_paths
from rpcgate.remote.protocol import (
    Application,
    ConnectionListener,
    RpcServer,
    RpcServerFactory,
)
from rpcgate.utils.logger import get_logger
from rpcgate.whitelist.gate import ConnectionGate
from rpcgate.whitelist.store import WhitelistStore
from rpcgate.whitelist.watcher import WhitelistWatcher

logger = get_logger(__name__)


class ComponentState(str, enum.Enum):
    CREATED = "created"
    STARTING = "starting"
    RUNNING = "running"
    STOPPING = "stopping"
    STOPPED = "stopped"


def create_remote_component(
    app: Application,
    opts: Union[RemoteConfig, Mapping[str, Any], None],
    server_factory: RpcServerFactory,
) -> "RemoteComponent":
    """Normalise options and build a RemoteComponent.

    cacheMsg is the deprecated spelling of bufferMsg and is still honoured.
    When the application enables rpcDebugLog the RPC server receives a
    dedicated "rpc-debug" logger.
    """
    # a RemoteConfig passed in is copied, never mutated
    if isinstance(opts, RemoteConfig):
        config = dataclasses.replace(opts, extra=dict(opts.extra))
    else:
        config = RemoteConfig.from_dict(opts)
    if app.enabled(RPC_DEBUG_LOG_SETTING):
        config = dataclasses.replace(config, rpc_debug_log=True)
    return RemoteComponent(app, config, server_factory)


class RemoteComponent:
    """Owns the RPC server, the whitelist store/watcher and the connection gate."""

    name = REMOTE_COMPONENT_NAME

    def __init__(
        self,
        app: Application,
        config: RemoteConfig,
        server_factory: RpcServerFactory,
    ) -> None:
        self.app = app
        self.config = config
        self._server_factory = server_factory
        self.state = ComponentState.CREATED
        self.port: Optional[int] = None
        self.paths: list[RemotePathRecord] = []
        self.server: Optional[RpcServer] = None
        self.gate: Optional[ConnectionGate] = None
        self.store: Optional[WhitelistStore] = None
        self.watcher: Optional[WhitelistWatcher] = None
        self.whitelist_path: Optional[str] = None

    # ── Lifecycle ─────────────────────────────────────────────────────────────

    async def start(self) -> None:
        if self.state is not ComponentState.CREATED:
            raise RuntimeError(f"{self.name} cannot start from state {self.state.value}")
        self.state = ComponentState.STARTING

        try:
            self.port = self.app.get_cur_server().port
            self.paths = resolve_app_paths(self.app, sys_root=self.config.sys_remote_root)
            self.server = self._server_factory(self._build_options())

            if self.config.whitelist_path:
                self.store = WhitelistStore()
            self.gate = ConnectionGate(self.server, self.store)
            listener: ConnectionListener = self.gate
            self.server.on(CONNECTION_EVENT, listener.on_connection)

            if self.config.whitelist_path:
                await self._start_whitelist(self.config.whitelist_path)

            self.server.start()
        except Exception:
            await self._abort_start()
            raise

        self.state = ComponentState.RUNNING
        logger.info(
            "Remote component started",
            port=self.port,
            paths=[p.path for p in self.paths],
            whitelist=self.whitelist_path,
        )
        await asyncio.sleep(0)

    async def stop(self, force: bool = False) -> None:
        if self.state is not ComponentState.RUNNING:
            logger.debug("Remote component stop ignored", state=self.state.value)
            return
        self.state = ComponentState.STOPPING

        if self.gate is not None:
            self.gate.close()
        if self.watcher is not None:
            await self.watcher.stop()
        try:
            if self.server is not None:
                self.server.stop(force)
        finally:
            self.state = ComponentState.STOPPED
        logger.info("Remote component stopped", port=self.port, force=force)
        await asyncio.sleep(0)

    # ── Internals ─────────────────────────────────────────────────────────────

    def _build_options(self) -> RemoteOptions:
        rpc_logger = get_logger(RPC_DEBUG_LOGGER_NAME) if self.config.rpc_debug_log else None
        return RemoteOptions(
            port=self.port,  # type: ignore[arg-type]
            paths=list(self.paths),
            context=self.app,
            buffer_msg=self.config.buffer_msg,
            interval=self.config.interval,
            rpc_debug_log=self.config.rpc_debug_log,
            rpc_logger=rpc_logger,
            extra=dict(self.config.extra),
        )

    async def _start_whitelist(self, configured_path: str) -> None:
        self.config.validate()
        try:
            real_path = os.path.realpath(configured_path, strict=True)
        except OSError as exc:
            raise ConfigurationError(
                f"whitelist path {configured_path} cannot be resolved: {exc}",
                path=configured_path,
            ) from exc

        self.whitelist_path = real_path
        assert self.store is not None, "whitelist store not initialised"
        # mtime taken before the load so a write racing it is seen on the first tick
        try:
            baseline_mtime = os.stat(real_path).st_mtime
        except OSError as exc:
            raise ConfigurationError(
                f"whitelist path {real_path} cannot be stat'ed: {exc}", path=real_path
            ) from exc
        self.store.reload(real_path)

        self.watcher = WhitelistWatcher(
            real_path,
            self.config.whitelist_interval,
            on_change=self._reload_whitelist,
        )
        await self.watcher.start(baseline_mtime=baseline_mtime)

    async def _reload_whitelist(self, path: str) -> None:
        assert self.store is not None, "whitelist store not initialised"
        await asyncio.to_thread(self.store.reload, path)

    async def _abort_start(self) -> None:
        if self.gate is not None:
            self.gate.close()
        if self.watcher is not None:
            await self.watcher.stop()
        self.state = ComponentState.STOPPED
