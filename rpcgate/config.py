"""Config loading for the rpcgate remote component.

Options may come from code (a dict handed to create_remote_component) or from
a YAML file. Both camelCase keys (whitelistPath, whitelistInterval, bufferMsg,
cacheMsg, rpcDebugLog) and snake_case keys are accepted. Unknown keys are kept
in RemoteConfig.extra and passed through to the RPC server untouched.

Config file search order:
  1. ``config_path`` argument (if provided)
  2. RPCGATE_CONFIG environment variable (if set)
  3. ``.rpcgate/config.yaml`` (working directory)

Environment variable overrides:
  RPCGATE_WHITELIST_PATH — overrides whitelist_path

A missing config file is not an error (defaults apply). A file that cannot be
parsed, or whose root is not a mapping, raises ConfigurationError.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

import yaml

from rpcgate.constants import DEFAULT_RPC_INTERVAL, DEFAULT_WHITELIST_INTERVAL_MS
from rpcgate.errors import ConfigurationError
from rpcgate.remote.paths import RemotePathRecord
from rpcgate.utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_CONFIG_PATHS = [
    ".rpcgate/config.yaml",
]

# camelCase option names → RemoteConfig attribute names
_OPTION_ALIASES: dict[str, str] = {
    "whitelistPath": "whitelist_path",
    "whitelistInterval": "whitelist_interval",
    "bufferMsg": "buffer_msg",
    "cacheMsg": "cache_msg",
    "rpcDebugLog": "rpc_debug_log",
    "sysRemoteRoot": "sys_remote_root",
}


# ─── Validation ──────────────────────────────────────────────────────────────


def check_whitelist_interval(value: Any) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ConfigurationError(
            f"whitelistInterval must be a positive integer (ms), got {value!r}"
        )


# ─── Dataclasses ─────────────────────────────────────────────────────────────


@dataclass
class RemoteConfig:
    """Options recognised by the remote component.

    whitelist_path:     whitelist file; None disables connection filtering.
    whitelist_interval: poll interval for the whitelist watcher, in ms.
    buffer_msg:         buffer outgoing RPC messages (cache_msg is the legacy name).
    interval:           RPC heartbeat / flush interval.
    rpc_debug_log:      hand a verbose "rpc-debug" logger to the RPC server.
    sys_remote_root:    root of the system remote directories (package default).
    """

    whitelist_path: Optional[str] = None
    whitelist_interval: int = DEFAULT_WHITELIST_INTERVAL_MS
    buffer_msg: bool = False
    cache_msg: bool = False
    interval: int = DEFAULT_RPC_INTERVAL
    rpc_debug_log: bool = False
    sys_remote_root: Optional[str] = None
    extra: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        # cacheMsg is the legacy spelling of bufferMsg
        self.buffer_msg = bool(self.buffer_msg or self.cache_msg)

    @classmethod
    def defaults(cls) -> "RemoteConfig":
        return cls()

    def validate(self) -> None:
        """Raise ConfigurationError for option values start() cannot use."""
        check_whitelist_interval(self.whitelist_interval)

    @classmethod
    def from_dict(cls, raw: Optional[Mapping[str, Any]]) -> "RemoteConfig":
        """Build a RemoteConfig from an options mapping.

        Falsy values fall back to defaults, matching how the options have
        always been read (``interval: 0`` means "use the default").

        Raises:
            ConfigurationError: whitelistInterval is not a positive integer.
        """
        values: dict[str, Any] = {}
        extra: dict[str, Any] = {}
        known = set(cls.__dataclass_fields__) - {"extra"}
        for key, value in (raw or {}).items():
            name = _OPTION_ALIASES.get(key, key)
            if name in known:
                values[name] = value
            else:
                extra[key] = value

        whitelist_interval = values.get("whitelist_interval") or DEFAULT_WHITELIST_INTERVAL_MS
        check_whitelist_interval(whitelist_interval)

        whitelist_path = values.get("whitelist_path") or None
        if whitelist_path is not None:
            whitelist_path = os.path.expanduser(str(whitelist_path))

        return cls(
            whitelist_path=whitelist_path,
            whitelist_interval=whitelist_interval,
            buffer_msg=bool(values.get("buffer_msg", False)),
            cache_msg=bool(values.get("cache_msg", False)),
            interval=values.get("interval") or DEFAULT_RPC_INTERVAL,
            rpc_debug_log=bool(values.get("rpc_debug_log", False)),
            sys_remote_root=values.get("sys_remote_root") or None,
            extra=extra,
        )


@dataclass
class RemoteOptions:
    """Constructor options handed to the RPC server factory."""

    port: int
    paths: list[RemotePathRecord]
    context: Any
    buffer_msg: bool = False
    interval: int = DEFAULT_RPC_INTERVAL
    rpc_debug_log: bool = False
    rpc_logger: Any = None
    extra: dict[str, Any] = field(default_factory=dict)


# ─── Config loading ───────────────────────────────────────────────────────────


def load_config(config_path: Optional[str] = None) -> RemoteConfig:
    """Load remote component options from YAML.

    The file may hold the options at its root or under a ``remote:`` key.

    Raises:
        ConfigurationError: YAML parse error or non-mapping root / section.
    """
    search_paths: list[str] = []
    if config_path:
        search_paths.append(config_path)
    env_config = os.environ.get("RPCGATE_CONFIG")
    if env_config:
        search_paths.append(env_config)
    search_paths.extend(DEFAULT_CONFIG_PATHS)

    found_path: Optional[str] = None
    for candidate in search_paths:
        expanded = os.path.expanduser(candidate)
        if os.path.isfile(expanded):
            found_path = expanded
            break

    raw: Mapping[str, Any] = {}
    if found_path is None:
        logger.debug("No rpcgate config file found — using defaults", searched=search_paths)
    else:
        try:
            with open(found_path, encoding="utf-8") as fh:
                loaded = yaml.safe_load(fh)
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"{found_path}: invalid YAML: {exc}", path=found_path) from exc
        except OSError as exc:
            raise ConfigurationError(f"{found_path}: could not be read: {exc}", path=found_path) from exc

        if loaded is None:
            loaded = {}
        if not isinstance(loaded, dict):
            raise ConfigurationError(
                f"{found_path}: config root must be a mapping, got {type(loaded).__name__}",
                path=found_path,
            )
        section = loaded.get("remote", loaded)
        if not isinstance(section, dict):
            raise ConfigurationError(
                f"{found_path}: 'remote' section must be a mapping", path=found_path
            )
        raw = section
        logger.info("rpcgate config loaded", path=found_path)

    env_whitelist = os.environ.get("RPCGATE_WHITELIST_PATH")
    if env_whitelist:
        raw = {**raw, "whitelist_path": env_whitelist}

    return RemoteConfig.from_dict(raw)
