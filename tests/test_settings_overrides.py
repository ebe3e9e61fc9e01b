from __future__ import annotations

from typing import Iterable

from services.readings import build_default_service
from settings import get_settings
from storage.kv_store import JsonFileStore, build_default_store


def _clear_caches(caches: Iterable) -> None:
    for cache in caches:
        cache.cache_clear()


def test_environment_overrides_apply(monkeypatch, tmp_path) -> None:
    store_path = tmp_path / "store.json"

    monkeypatch.setenv("POOL_STORE_PATH", str(store_path))
    monkeypatch.setenv("POOL_READINGS_NAMESPACE", "backyard")
    monkeypatch.setenv("POOL_CACHE_NAMESPACE", "backyard-cache")
    monkeypatch.setenv("POOL_CACHE_TTL_MS", "5000")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    caches = (get_settings, build_default_store, build_default_service)
    _clear_caches(caches)

    try:
        settings = get_settings()
        store = build_default_store()
        service = build_default_service()

        assert settings.log_level == "DEBUG"
        assert isinstance(store, JsonFileStore)
        assert store.persistence_path == store_path
        assert service.repository.records.namespace == "backyard"
        assert service.repository.draft_records.namespace == "backyard-drafts"
        assert service.cache.entries.namespace == "backyard-cache"
        assert service.summary_ttl_ms == 5000
    finally:
        _clear_caches(caches)


def test_invalid_ttl_falls_back_to_default(monkeypatch) -> None:
    monkeypatch.setenv("POOL_CACHE_TTL_MS", "-1")
    get_settings.cache_clear()
    try:
        assert get_settings().cache_ttl_ms == 3_600_000
    finally:
        get_settings.cache_clear()
