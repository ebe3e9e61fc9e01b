from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional


_STORE_PATH_ENV = "POOL_STORE_PATH"
_READINGS_NAMESPACE_ENV = "POOL_READINGS_NAMESPACE"
_DRAFTS_NAMESPACE_ENV = "POOL_DRAFTS_NAMESPACE"
_CACHE_NAMESPACE_ENV = "POOL_CACHE_NAMESPACE"
_CACHE_TTL_ENV = "POOL_CACHE_TTL_MS"
_LOG_LEVEL_ENV = "LOG_LEVEL"

DEFAULT_CACHE_TTL_MS = 3_600_000


@dataclass(frozen=True)
class Settings:
    store_path: Optional[str]
    readings_namespace: str
    drafts_namespace: str
    cache_namespace: str
    cache_ttl_ms: int
    log_level: str


def _read_str_env(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or default


def _read_optional_env(name: str, default: Optional[str]) -> Optional[str]:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or None


def _read_cache_ttl(default: int) -> int:
    value = os.getenv(_CACHE_TTL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = int(candidate)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_log_level(default: str) -> str:
    value = os.getenv(_LOG_LEVEL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    return candidate.upper()


@lru_cache
def get_settings() -> Settings:
    readings_namespace = _read_str_env(_READINGS_NAMESPACE_ENV, "pool-maintainer")
    return Settings(
        store_path=_read_optional_env(_STORE_PATH_ENV, "./tmp/pool_store.json"),
        readings_namespace=readings_namespace,
        drafts_namespace=_read_str_env(_DRAFTS_NAMESPACE_ENV, f"{readings_namespace}-drafts"),
        cache_namespace=_read_str_env(_CACHE_NAMESPACE_ENV, "cache"),
        cache_ttl_ms=_read_cache_ttl(DEFAULT_CACHE_TTL_MS),
        log_level=_read_log_level("INFO"),
    )
