"""rpcgate — remote component lifecycle and IP whitelist for RPC servers."""
from rpcgate.config import RemoteConfig, RemoteOptions, load_config
from rpcgate.errors import ConfigurationError, RpcGateError, TransientIOError
from rpcgate.remote.component import ComponentState, RemoteComponent, create_remote_component

__version__ = "1.0.0"

__all__ = [
    "ComponentState",
    "ConfigurationError",
    "RemoteComponent",
    "RemoteConfig",
    "RemoteOptions",
    "RpcGateError",
    "TransientIOError",
    "create_remote_component",
    "load_config",
]
