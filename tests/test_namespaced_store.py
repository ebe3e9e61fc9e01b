from __future__ import annotations

import json
import logging
from typing import Optional

import pytest

from storage.kv_store import MemoryStore, StorageError
from storage.namespaced import NamespacedStore


class FailingStore(MemoryStore):
    """Store whose selected operations raise, for fail-soft checks."""

    def __init__(self, fail_on: set[str]) -> None:
        super().__init__()
        self.fail_on = fail_on

    def get_item(self, key: str) -> Optional[str]:
        if "get" in self.fail_on:
            raise StorageError("read failed")
        return super().get_item(key)

    def set_item(self, key: str, value: str) -> None:
        if "set" in self.fail_on:
            raise StorageError("quota exceeded")
        super().set_item(key, value)

    def remove_item(self, key: str) -> None:
        if "remove" in self.fail_on:
            raise StorageError("remove failed")
        super().remove_item(key)


@pytest.fixture()
def store() -> MemoryStore:
    return MemoryStore()


@pytest.mark.parametrize(
    "value",
    [{"chlorine": 2.0, "tags": ["a", "b"], "nested": {"ok": True}}, [1, 2, 3], "text", 0, None],
)
def test_set_then_get_round_trips(store: MemoryStore, value) -> None:
    namespaced = NamespacedStore(store, "pool")

    assert namespaced.set("k", value) is True
    assert namespaced.get("k", "default") == value


def test_physical_keys_are_prefixed(store: MemoryStore) -> None:
    NamespacedStore(store, "pool").set("reading-1", {"ph": 7.4})

    assert store.keys() == ["pool:reading-1"]
    assert json.loads(store.get_item("pool:reading-1")) == {"ph": 7.4}


def test_get_missing_or_corrupt_returns_default(store: MemoryStore) -> None:
    namespaced = NamespacedStore(store, "pool")
    store.set_item("pool:bad", "{not json")

    assert namespaced.get("missing", 42) == 42
    assert namespaced.get("bad", "fallback") == "fallback"


def test_namespaces_are_isolated(store: MemoryStore) -> None:
    pool = NamespacedStore(store, "pool")
    settings = NamespacedStore(store, "settings")
    pool.set("a", 1)
    pool.set("b", 2)
    settings.set("a", "theme")
    store.set_item("unprefixed", "x")

    assert sorted(pool.get_all_keys()) == ["a", "b"]
    assert pool.get_all() == {"a": 1, "b": 2}
    assert settings.get_all() == {"a": "theme"}

    assert pool.clear() is True
    assert pool.get_all() == {}
    assert settings.get("a") == "theme"
    assert store.get_item("unprefixed") == "x"


def test_has_and_remove(store: MemoryStore) -> None:
    namespaced = NamespacedStore(store, "pool")
    namespaced.set("a", None)

    assert namespaced.has("a") is True
    assert namespaced.remove("a") is True
    assert namespaced.has("a") is False


def test_get_all_keeps_non_json_values_raw(store: MemoryStore) -> None:
    store.set_item("pool:raw", "plain text")

    assert NamespacedStore(store, "pool").get_all() == {"raw": "plain text"}


def test_failures_are_reported_not_raised(caplog) -> None:
    namespaced = NamespacedStore(FailingStore({"get", "set", "remove"}), "pool")

    with caplog.at_level(logging.WARNING):
        assert namespaced.set("a", 1) is False
        assert namespaced.get("a", "default") == "default"
        assert namespaced.has("a") is False
        assert namespaced.remove("a") is False

    records = [record for record in caplog.records if record.name == "storage.namespaced"]
    assert len(records) == 4
    assert all(getattr(record, "namespace", None) == "pool" for record in records)
    assert all(getattr(record, "key", None) == "a" for record in records)


def test_unserializable_value_fails_soft(store: MemoryStore) -> None:
    namespaced = NamespacedStore(store, "pool")

    assert namespaced.set("a", object()) is False
    assert len(store) == 0


def test_clear_reports_partial_failure() -> None:
    backend = FailingStore(set())
    namespaced = NamespacedStore(backend, "pool")
    namespaced.set("a", 1)
    backend.fail_on = {"remove"}

    assert namespaced.clear() is False
    assert namespaced.get_all_keys() == ["a"]


def test_export_and_import(store: MemoryStore) -> None:
    source = NamespacedStore(store, "pool")
    source.set("a", {"ph": 7.4})
    source.set("b", [1, 2])
    exported = source.export_json()

    assert json.loads(exported) == {"a": {"ph": 7.4}, "b": [1, 2]}

    target = NamespacedStore(store, "restored")
    target.set("stale", True)
    assert target.import_json(exported) is True
    assert target.get_all() == {"a": {"ph": 7.4}, "b": [1, 2]}

    merged = NamespacedStore(store, "merged")
    merged.set("keep", 1)
    assert merged.import_json(exported, merge=True) is True
    assert merged.get_all() == {"keep": 1, "a": {"ph": 7.4}, "b": [1, 2]}


def test_import_rejects_invalid_payloads(store: MemoryStore) -> None:
    namespaced = NamespacedStore(store, "pool")
    namespaced.set("a", 1)

    assert namespaced.import_json("{oops") is False
    assert namespaced.import_json("[1, 2]") is False
    assert namespaced.get_all() == {"a": 1}


def test_size_counts_only_namespace(store: MemoryStore) -> None:
    namespaced = NamespacedStore(store, "ns")
    namespaced.set("k", "v")
    store.set_item("other", "ignored")

    assert namespaced.size() == len("ns:k") + len('"v"')


def test_empty_namespace_is_rejected(store: MemoryStore) -> None:
    with pytest.raises(ValueError):
        NamespacedStore(store, "")
