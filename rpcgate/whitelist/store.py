"""Whitelist store for the remote component.

Loads the whitelist source (a YAML or JSON file whose root is a list of IP
strings), merges it with the loopback address and the host's local interface
addresses, and publishes the result as an immutable Whitelist snapshot.

Every load() re-reads the file; nothing is cached between calls. reload()
swaps the snapshot under a lock with a single reference assignment, so a
reader sees either the old or the new Whitelist, never a partial one.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field
from typing import Callable, Iterable, Optional

import yaml

from rpcgate.constants import LOOPBACK_ADDRESS
from rpcgate.errors import ConfigurationError
from rpcgate.utils.logger import get_logger, log_duration
from rpcgate.utils.netif import local_ipv4_addresses

logger = get_logger(__name__)


# ─── Whitelist value object ───────────────────────────────────────────────────


@dataclass(frozen=True)
class Whitelist:
    """Effective set of IP addresses allowed to connect.

    Fields:
        addresses: Ordered addresses, first occurrence wins on duplicates.
        source:    Path the base list was read from (None for ad-hoc lists).
        loaded_at: Epoch seconds at which the snapshot was built.
    """

    addresses: tuple[str, ...]
    source: Optional[str] = None
    loaded_at: float = field(default_factory=time.time)
    _members: frozenset[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "_members", frozenset(self.addresses))

    def __contains__(self, ip: object) -> bool:
        return ip in self._members

    def __len__(self) -> int:
        return len(self.addresses)

    def __iter__(self):
        return iter(self.addresses)

    @property
    def members(self) -> frozenset[str]:
        return self._members

    @classmethod
    def build(
        cls,
        base: Iterable[str],
        local_addresses: Iterable[str] = (),
        source: Optional[str] = None,
    ) -> "Whitelist":
        """Merge base list + loopback + local addresses, de-duplicated in order."""
        seen: dict[str, None] = {}
        for ip in (*base, LOOPBACK_ADDRESS, *local_addresses):
            seen.setdefault(ip, None)
        return cls(addresses=tuple(seen), source=source)


# ─── WhitelistStore ───────────────────────────────────────────────────────────


class WhitelistStore:
    """Owner of the current Whitelist snapshot.

    Usage:
        store = WhitelistStore()
        store.reload("/etc/game/whitelist.yaml")   # raises ConfigurationError
        "10.0.0.5" in store.snapshot()

    Thread-safety:
        snapshot() and reload() share one threading.Lock. reload() may run in a
        worker thread (the watcher uses asyncio.to_thread) while the event loop
        reads snapshots.
    """

    def __init__(
        self,
        local_addresses: Optional[Callable[[], list[str]]] = None,
    ) -> None:
        self._snapshot: Optional[Whitelist] = None
        self._lock = threading.Lock()
        self._local_addresses = local_addresses or local_ipv4_addresses

    # ── Public read API ───────────────────────────────────────────────────────

    def snapshot(self) -> Optional[Whitelist]:
        """Current Whitelist, or None before the first successful reload."""
        with self._lock:
            return self._snapshot

    def contains(self, ip: str) -> bool:
        snap = self.snapshot()
        return snap is not None and ip in snap

    # ── Load / reload ─────────────────────────────────────────────────────────

    def load(self, path: str) -> Whitelist:
        """Read path and build a new Whitelist without publishing it.

        Raises:
            ConfigurationError: unreadable file, YAML error, or non-list root.
        """
        try:
            with open(path, encoding="utf-8") as fh:
                raw = yaml.safe_load(fh)
        except yaml.YAMLError as exc:
            raise ConfigurationError(
                f"{path}: whitelist is not valid YAML/JSON: {exc}", path=path
            ) from exc
        except OSError as exc:
            raise ConfigurationError(
                f"{path}: whitelist could not be read: {exc}", path=path
            ) from exc

        base = _parse_whitelist_raw(raw, path)
        return Whitelist.build(base, self._local_addresses(), source=path)

    def reload(self, path: str) -> Whitelist:
        """load() then atomically replace the current snapshot."""
        with log_duration(logger, "Whitelist parsed", path=path):
            whitelist = self.load(path)
        with self._lock:
            self._snapshot = whitelist
        logger.info(
            "Whitelist reloaded",
            path=path,
            count=len(whitelist),
            addresses=list(whitelist.addresses),
        )
        return whitelist

    def replace(self, whitelist: Whitelist) -> None:
        """Publish an already-built snapshot."""
        with self._lock:
            self._snapshot = whitelist


# ─── Parsing helpers ──────────────────────────────────────────────────────────


def _parse_whitelist_raw(raw: object, path: str) -> list[str]:
    """Validate the top-level shape and normalise list items to strings.

    Only a list root is accepted. Items that are None, empty, or containers
    are skipped with a WARNING; other scalars are converted with str().
    """
    if not isinstance(raw, list):
        raise ConfigurationError(
            f"{path} should be a list of IP addresses, got {type(raw).__name__}",
            path=path,
        )

    result: list[str] = []
    for i, item in enumerate(raw):
        if item is None or isinstance(item, (dict, list)):
            logger.warning(
                "Whitelist entry is not an address — skipping",
                index=i,
                actual_type=type(item).__name__,
                path=path,
            )
            continue
        ip = str(item).strip()
        if not ip:
            logger.warning("Empty whitelist entry — skipping", index=i, path=path)
            continue
        result.append(ip)
    return result
