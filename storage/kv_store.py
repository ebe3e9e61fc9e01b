from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from functools import lru_cache
from pathlib import Path
from threading import Lock
from typing import Dict, List, Optional

from settings import get_settings

logger = logging.getLogger(__name__)

_PROBE_KEY = "__storage_test__"


class StorageError(Exception):
    """Raised by a backend when an operation cannot be completed."""


class QuotaExceededError(StorageError):
    pass


class KeyValueStore(ABC):
    """Synchronous string-keyed, string-valued store.

    Keys are enumerated by index through :meth:`key` and :func:`len`, the
    same minimal surface a browser storage area offers.
    """

    @abstractmethod
    def get_item(self, key: str) -> Optional[str]:
        ...

    @abstractmethod
    def set_item(self, key: str, value: str) -> None:
        ...

    @abstractmethod
    def remove_item(self, key: str) -> None:
        ...

    @abstractmethod
    def key(self, index: int) -> Optional[str]:
        ...

    @abstractmethod
    def __len__(self) -> int:
        ...

    def keys(self) -> List[str]:
        found: List[str] = []
        for index in range(len(self)):
            name = self.key(index)
            if name is not None:
                found.append(name)
        return found

    def clear(self) -> None:
        for name in self.keys():
            self.remove_item(name)


class MemoryStore(KeyValueStore):
    """In-process store with an optional size quota in characters."""

    def __init__(self, quota_bytes: Optional[int] = None) -> None:
        self._items: Dict[str, str] = {}
        self.quota_bytes = quota_bytes
        self._lock = Lock()

    def get_item(self, key: str) -> Optional[str]:
        with self._lock:
            return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        with self._lock:
            if self.quota_bytes is not None:
                current = sum(len(k) + len(v) for k, v in self._items.items() if k != key)
                if current + len(key) + len(value) > self.quota_bytes:
                    raise QuotaExceededError(
                        f"Writing {key!r} would exceed the {self.quota_bytes} byte quota."
                    )
            self._items[key] = value

    def remove_item(self, key: str) -> None:
        with self._lock:
            self._items.pop(key, None)

    def key(self, index: int) -> Optional[str]:
        with self._lock:
            if 0 <= index < len(self._items):
                return list(self._items)[index]
            return None

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)


class JsonFileStore(MemoryStore):
    """Memory store that writes its full contents to a JSON file on change."""

    def __init__(self, persistence_path: Path, quota_bytes: Optional[int] = None) -> None:
        super().__init__(quota_bytes=quota_bytes)
        self.persistence_path = persistence_path
        persistence_path.parent.mkdir(parents=True, exist_ok=True)
        self._load_from_disk()

    def set_item(self, key: str, value: str) -> None:
        previous = self.get_item(key)
        super().set_item(key, value)
        try:
            self._persist()
        except StorageError:
            self._restore(key, previous)
            raise

    def remove_item(self, key: str) -> None:
        previous = self.get_item(key)
        super().remove_item(key)
        try:
            self._persist()
        except StorageError:
            self._restore(key, previous)
            raise

    def _restore(self, key: str, previous: Optional[str]) -> None:
        # The file was not written, so memory must match what is on disk.
        with self._lock:
            if previous is None:
                self._items.pop(key, None)
            else:
                self._items[key] = previous

    def _persist(self) -> None:
        with self._lock:
            payload = dict(self._items)
        try:
            self.persistence_path.write_text(json.dumps(payload, indent=2))
        except OSError as exc:
            raise StorageError(f"Failed to write {self.persistence_path}: {exc}") from exc

    def _load_from_disk(self) -> None:
        if not self.persistence_path.exists():
            return

        try:
            raw = self.persistence_path.read_text() or "{}"
            data = json.loads(raw)
        except (OSError, json.JSONDecodeError):
            logger.warning("Ignoring unreadable store file %s", self.persistence_path)
            data = {}

        if not isinstance(data, dict):
            data = {}
        for key, value in data.items():
            if isinstance(value, str):
                self._items[key] = value


def is_store_available(store: KeyValueStore) -> bool:
    """Probe the store with a throwaway write."""
    try:
        store.set_item(_PROBE_KEY, "test")
        store.remove_item(_PROBE_KEY)
    except Exception:  # noqa: BLE001 - any backend failure means unavailable
        return False
    return True


@lru_cache
def build_default_store(path: Optional[str] = None) -> KeyValueStore:
    settings = get_settings()
    store_path = settings.store_path if path is None else path
    if store_path:
        return JsonFileStore(persistence_path=Path(store_path))
    return MemoryStore()
