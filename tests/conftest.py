"""Root test configuration for rpcgate.

Disables the status API loopback check for the whole suite (httpx test
clients do not always come from 127.0.0.1) and pins the host's local
interface addresses so whitelist contents do not depend on the machine
running the tests.

Shared fakes:
  FakeApplication — minimal Application handle (port, role, type, base dir)
  rpc_server      — MagicMock standing in for the RPC server collaborator
  server_factory  — MagicMock factory returning rpc_server
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from unittest.mock import MagicMock

import pytest

LOCAL_TEST_ADDRESSES = ["10.9.8.7"]


@dataclass
class FakeServerInfo:
    port: int = 3150
    id: str = "connector-server-1"


@dataclass
class FakeApplication:
    base: str
    server_type: str = "connector"
    frontend: bool = True
    port: int = 3150
    settings: dict = field(default_factory=dict)

    def get_cur_server(self) -> FakeServerInfo:
        return FakeServerInfo(port=self.port)

    def is_frontend(self) -> bool:
        return self.frontend

    def get_server_type(self) -> str:
        return self.server_type

    def get_base(self) -> str:
        return self.base

    def enabled(self, setting: str) -> bool:
        return bool(self.settings.get(setting, False))


@pytest.fixture(autouse=True)
def disable_status_localhost_check(monkeypatch: pytest.MonkeyPatch) -> None:
    """Status API tests that verify the loopback check re-enable it themselves."""
    monkeypatch.setenv("RPCGATE_STATUS_LOCALHOST_ONLY", "false")
    monkeypatch.delenv("RPCGATE_CONFIG", raising=False)
    monkeypatch.delenv("RPCGATE_WHITELIST_PATH", raising=False)


@pytest.fixture(autouse=True)
def fixed_local_addresses(monkeypatch: pytest.MonkeyPatch) -> list[str]:
    """Replace interface discovery in the whitelist store with a fixed list."""
    monkeypatch.setattr(
        "rpcgate.whitelist.store.local_ipv4_addresses",
        lambda: list(LOCAL_TEST_ADDRESSES),
    )
    return LOCAL_TEST_ADDRESSES


@pytest.fixture
def app_base(tmp_path) -> str:
    return str(tmp_path / "game-server")


@pytest.fixture
def fake_app(app_base: str) -> FakeApplication:
    os.makedirs(app_base, exist_ok=True)
    return FakeApplication(base=app_base)


@pytest.fixture
def rpc_server() -> MagicMock:
    return MagicMock(name="rpc_server")


@pytest.fixture
def server_factory(rpc_server: MagicMock) -> MagicMock:
    return MagicMock(name="server_factory", return_value=rpc_server)


@pytest.fixture
def whitelist_file(tmp_path):
    """Write a whitelist file and return its path. Call again to rewrite it."""
    path = tmp_path / "whitelist.yaml"

    def _write(content: str) -> str:
        path.write_text(content, encoding="utf-8")
        return str(path)

    return _write
