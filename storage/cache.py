from __future__ import annotations

import logging
import time
from typing import Any, Callable, Optional

from settings import DEFAULT_CACHE_TTL_MS
from storage.kv_store import KeyValueStore
from storage.namespaced import NamespacedStore

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


def wall_clock_ms() -> float:
    return time.time() * 1000


class TTLCache:
    """Expiring values stored as ``{"value": ..., "expires": <unix ms>}``.

    Expiry is checked only when an entry is read or swept with
    :meth:`clear_expired`; nothing runs in the background.
    """

    def __init__(
        self,
        store: KeyValueStore,
        namespace: str = "cache",
        clock: Optional[Clock] = None,
    ) -> None:
        self.entries = NamespacedStore(store, namespace)
        self._clock = clock or wall_clock_ms

    def _now(self) -> int:
        return int(self._clock())

    def set(self, key: str, value: Any, ttl_ms: int = DEFAULT_CACHE_TTL_MS) -> bool:
        item = {"value": value, "expires": self._now() + int(ttl_ms)}
        return self.entries.set(key, item)

    def get(self, key: str) -> Optional[Any]:
        item = self.entries.get(key)
        if not _is_cache_item(item):
            return None

        if self._now() > item["expires"]:
            self.entries.remove(key)
            return None

        return item["value"]

    def has(self, key: str) -> bool:
        return self.get(key) is not None

    def remove(self, key: str) -> bool:
        return self.entries.remove(key)

    def clear(self) -> bool:
        return self.entries.clear()

    def clear_expired(self) -> int:
        """Evict every expired entry and return how many were removed."""
        now = self._now()
        cleared = 0
        for key in self.entries.get_all_keys():
            item = self.entries.get(key)
            if _is_cache_item(item) and now > item["expires"]:
                if self.entries.remove(key):
                    cleared += 1

        if cleared:
            logger.debug(
                "Evicted expired cache entries",
                extra={"namespace": self.entries.namespace, "count": cleared},
            )
        return cleared


def _is_cache_item(item: Any) -> bool:
    if not isinstance(item, dict) or "value" not in item:
        return False
    expires = item.get("expires")
    return isinstance(expires, (int, float)) and not isinstance(expires, bool)
