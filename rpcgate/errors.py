"""Exception types raised by rpcgate.

ConfigurationError is fatal: it propagates out of RemoteComponent.start() and
the component never reaches RUNNING.

TransientIOError is raised only inside the whitelist watcher for a failed
stat() and is handled there (treated as "no change" for that tick).

An unauthorized connection is not an exception; the gate kicks it.
"""

from __future__ import annotations

from typing import Optional


class RpcGateError(Exception):
    """Base class for all rpcgate errors."""


class ConfigurationError(RpcGateError):
    """Invalid or unresolvable configuration (whitelist path, whitelist shape, options)."""

    def __init__(self, message: str, path: Optional[str] = None) -> None:
        super().__init__(message)
        self.path = path


class TransientIOError(RpcGateError):
    """A single failed filesystem probe; retried on the next watcher tick."""

    def __init__(self, path: str, cause: OSError) -> None:
        super().__init__(f"{path}: {cause}")
        self.path = path
        self.cause = cause
