"""Tests for Whitelist and WhitelistStore.

Tests:
  - Non-list roots (mapping, scalar, empty file) → ConfigurationError
  - Unreadable / invalid YAML → ConfigurationError
  - Loopback and every listed address always present
  - Local interface addresses appended, duplicates collapsed in order
  - load() re-reads the file; reload() swaps the snapshot
  - A failed reload leaves the prior snapshot in force
  - Reload logs the new address list
"""

from __future__ import annotations

import json
import os

import pytest
from structlog.testing import capture_logs

from rpcgate.constants import LOOPBACK_ADDRESS
from rpcgate.errors import ConfigurationError
from rpcgate.whitelist.store import Whitelist, WhitelistStore, _parse_whitelist_raw

# ─── Whitelist value object ────────────────────────────────────────────────────


class TestWhitelist:
    def test_build_appends_loopback_then_local(self):
        wl = Whitelist.build(["1.2.3.4"], ["10.0.0.1"])
        assert wl.addresses == ("1.2.3.4", LOOPBACK_ADDRESS, "10.0.0.1")

    def test_build_deduplicates_keeping_first(self):
        wl = Whitelist.build(["127.0.0.1", "1.2.3.4", "1.2.3.4"], ["1.2.3.4"])
        assert wl.addresses == ("127.0.0.1", "1.2.3.4")

    def test_membership(self):
        wl = Whitelist.build(["1.2.3.4"])
        assert "1.2.3.4" in wl
        assert LOOPBACK_ADDRESS in wl
        assert "9.9.9.9" not in wl

    def test_is_immutable(self):
        wl = Whitelist.build(["1.2.3.4"])
        with pytest.raises(AttributeError):
            wl.addresses = ()  # type: ignore[misc]

    def test_len_and_iter(self):
        wl = Whitelist.build(["1.2.3.4"], [])
        assert len(wl) == 2
        assert list(wl) == ["1.2.3.4", LOOPBACK_ADDRESS]


# ─── _parse_whitelist_raw ─────────────────────────────────────────────────────


class TestParseWhitelistRaw:
    @pytest.mark.parametrize("raw", [{"ips": ["1.2.3.4"]}, "1.2.3.4", 42, None, True])
    def test_non_list_root_rejected(self, raw):
        with pytest.raises(ConfigurationError) as exc_info:
            _parse_whitelist_raw(raw, "/etc/whitelist.yaml")
        assert "should be a list" in str(exc_info.value)
        assert exc_info.value.path == "/etc/whitelist.yaml"

    def test_empty_list_allowed(self):
        assert _parse_whitelist_raw([], "p") == []

    def test_items_are_stripped(self):
        assert _parse_whitelist_raw([" 1.2.3.4 "], "p") == ["1.2.3.4"]

    def test_invalid_items_skipped(self):
        raw = [None, {"ip": "1.1.1.1"}, ["2.2.2.2"], "", "3.3.3.3"]
        assert _parse_whitelist_raw(raw, "p") == ["3.3.3.3"]

    def test_skipped_item_logs_warning(self):
        with capture_logs() as logs:
            _parse_whitelist_raw([None, "3.3.3.3"], "p")
        assert any(
            e["event"] == "Whitelist entry is not an address — skipping" and e["index"] == 0
            for e in logs
        )


# ─── WhitelistStore.load() ────────────────────────────────────────────────────


class TestWhitelistStoreLoad:
    def test_yaml_list(self, whitelist_file):
        path = whitelist_file("- 1.2.3.4\n- 5.6.7.8\n")
        wl = WhitelistStore().load(path)
        assert {"1.2.3.4", "5.6.7.8", LOOPBACK_ADDRESS} <= wl.members
        assert wl.source == path

    def test_json_list(self, whitelist_file):
        path = whitelist_file(json.dumps(["1.2.3.4"]))
        wl = WhitelistStore().load(path)
        assert "1.2.3.4" in wl

    def test_local_addresses_included(self, whitelist_file, fixed_local_addresses):
        wl = WhitelistStore().load(whitelist_file("- 1.2.3.4\n"))
        for ip in fixed_local_addresses:
            assert ip in wl

    def test_custom_local_address_provider(self, whitelist_file):
        store = WhitelistStore(local_addresses=lambda: ["192.168.0.2"])
        wl = store.load(whitelist_file("[]"))
        assert wl.addresses == (LOOPBACK_ADDRESS, "192.168.0.2")

    def test_no_local_addresses_still_has_loopback(self, whitelist_file):
        store = WhitelistStore(local_addresses=lambda: [])
        wl = store.load(whitelist_file("- 1.2.3.4\n"))
        assert wl.addresses == ("1.2.3.4", LOOPBACK_ADDRESS)

    def test_mapping_root_raises(self, whitelist_file):
        with pytest.raises(ConfigurationError):
            WhitelistStore().load(whitelist_file("allow:\n  - 1.2.3.4\n"))

    def test_empty_file_raises(self, whitelist_file):
        with pytest.raises(ConfigurationError):
            WhitelistStore().load(whitelist_file(""))

    def test_invalid_yaml_raises(self, whitelist_file):
        with pytest.raises(ConfigurationError) as exc_info:
            WhitelistStore().load(whitelist_file("[1.2.3.4, unclosed\n"))
        assert "not valid YAML/JSON" in str(exc_info.value)

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(ConfigurationError) as exc_info:
            WhitelistStore().load(os.path.join(str(tmp_path), "nope.yaml"))
        assert "could not be read" in str(exc_info.value)

    def test_load_does_not_publish(self, whitelist_file):
        store = WhitelistStore()
        store.load(whitelist_file("- 1.2.3.4\n"))
        assert store.snapshot() is None

    def test_load_twice_unchanged_file_same_membership(self, whitelist_file):
        path = whitelist_file("- 1.2.3.4\n- 5.6.7.8\n")
        store = WhitelistStore()
        first = store.load(path)
        second = store.load(path)
        assert first is not second
        assert first.members == second.members

    def test_load_rereads_file(self, whitelist_file):
        store = WhitelistStore()
        path = whitelist_file("- 1.2.3.4\n")
        assert "1.2.3.4" in store.load(path)
        whitelist_file("- 5.6.7.8\n")
        wl = store.load(path)
        assert "5.6.7.8" in wl
        assert "1.2.3.4" not in wl


# ─── WhitelistStore.reload() / snapshot() ─────────────────────────────────────


class TestWhitelistStoreReload:
    def test_snapshot_none_before_reload(self):
        store = WhitelistStore()
        assert store.snapshot() is None
        assert store.contains(LOOPBACK_ADDRESS) is False

    def test_reload_publishes_snapshot(self, whitelist_file):
        store = WhitelistStore()
        wl = store.reload(whitelist_file("- 1.2.3.4\n"))
        assert store.snapshot() is wl
        assert store.contains("1.2.3.4")

    def test_reload_replaces_not_mutates(self, whitelist_file):
        store = WhitelistStore()
        path = whitelist_file("- 1.2.3.4\n")
        old = store.reload(path)
        whitelist_file("- 5.6.7.8\n")
        new = store.reload(path)
        assert store.snapshot() is new
        # A reader still holding the old snapshot sees it unchanged
        assert "1.2.3.4" in old
        assert "5.6.7.8" not in old

    def test_failed_reload_keeps_prior_snapshot(self, whitelist_file):
        store = WhitelistStore()
        path = whitelist_file("- 1.2.3.4\n")
        prior = store.reload(path)
        whitelist_file("not: a list\n")
        with pytest.raises(ConfigurationError):
            store.reload(path)
        assert store.snapshot() is prior

    def test_reload_logs_addresses(self, whitelist_file):
        with capture_logs() as logs:
            WhitelistStore().reload(whitelist_file("- 1.2.3.4\n"))
        reloaded = [e for e in logs if e["event"] == "Whitelist reloaded"]
        assert len(reloaded) == 1
        assert "1.2.3.4" in reloaded[0]["addresses"]
        assert reloaded[0]["log_level"] == "info"

    def test_replace_publishes_given_snapshot(self):
        store = WhitelistStore()
        wl = Whitelist.build(["1.2.3.4"])
        store.replace(wl)
        assert store.snapshot() is wl
