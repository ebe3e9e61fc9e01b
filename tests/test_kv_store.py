"""Unit tests for the key-value store backends."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from storage.kv_store import (
    JsonFileStore,
    MemoryStore,
    QuotaExceededError,
    StorageError,
    build_default_store,
    is_store_available,
)
from storage.namespaced import NamespacedStore


def test_memory_store_enumerates_by_index() -> None:
    store = MemoryStore()
    store.set_item("a", "1")
    store.set_item("b", "2")

    assert len(store) == 2
    assert store.key(0) == "a"
    assert store.key(1) == "b"
    assert store.key(2) is None
    assert store.keys() == ["a", "b"]
    assert store.get_item("missing") is None


def test_memory_store_clear_removes_everything() -> None:
    store = MemoryStore()
    store.set_item("a", "1")
    store.set_item("b", "2")

    store.clear()

    assert len(store) == 0


def test_memory_store_quota_rejects_oversized_write() -> None:
    store = MemoryStore(quota_bytes=10)
    store.set_item("k", "1234")

    with pytest.raises(QuotaExceededError):
        store.set_item("other", "123456789")
    assert store.get_item("other") is None

    # Overwriting an existing key does not count its old value twice.
    store.set_item("k", "12345678")
    assert store.get_item("k") == "12345678"


def test_json_file_store_persists_and_reloads(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "store.json"
    store = JsonFileStore(persistence_path=path)

    store.set_item("pool:a", '{"x": 1}')
    store.set_item("pool:b", "2")
    store.remove_item("pool:b")

    assert json.loads(path.read_text()) == {"pool:a": '{"x": 1}'}
    reloaded = JsonFileStore(persistence_path=path)
    assert reloaded.get_item("pool:a") == '{"x": 1}'
    assert len(reloaded) == 1


def test_json_file_store_ignores_corrupt_file(tmp_path: Path) -> None:
    path = tmp_path / "store.json"
    path.write_text("{not json")

    store = JsonFileStore(persistence_path=path)

    assert len(store) == 0


def test_is_store_available() -> None:
    assert is_store_available(MemoryStore()) is True
    assert is_store_available(MemoryStore(quota_bytes=1)) is False


def test_build_default_store_honors_path_override(tmp_path: Path) -> None:
    path = tmp_path / "store.json"
    try:
        store = build_default_store(str(path))
        assert isinstance(store, JsonFileStore)
        assert store.persistence_path == path
        assert isinstance(build_default_store(""), MemoryStore)
    finally:
        build_default_store.cache_clear()


def _break_file(path: Path) -> None:
    path.unlink()
    path.mkdir()


def test_json_file_store_failed_write_leaves_no_trace(tmp_path: Path) -> None:
    path = tmp_path / "store.json"
    store = JsonFileStore(persistence_path=path)
    store.set_item("pool:a", "1")
    _break_file(path)

    with pytest.raises(StorageError):
        store.set_item("pool:b", "2")
    with pytest.raises(StorageError):
        store.set_item("pool:a", "changed")

    assert store.get_item("pool:b") is None
    assert store.get_item("pool:a") == "1"
    assert store.keys() == ["pool:a"]


def test_json_file_store_failed_remove_keeps_value(tmp_path: Path) -> None:
    path = tmp_path / "store.json"
    store = JsonFileStore(persistence_path=path)
    store.set_item("pool:a", "1")
    _break_file(path)

    with pytest.raises(StorageError):
        store.remove_item("pool:a")

    assert store.get_item("pool:a") == "1"


def test_namespaced_set_on_unwritable_file_is_not_visible(tmp_path: Path) -> None:
    path = tmp_path / "store.json"
    records = NamespacedStore(JsonFileStore(persistence_path=path), "pool")
    path.mkdir()

    assert records.set("k", 1) is False
    assert records.get("k", "default") == "default"
    assert records.has("k") is False