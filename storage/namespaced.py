"""Key prefixing over a shared :class:`KeyValueStore`."""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional, TypeVar

from storage.kv_store import KeyValueStore

logger = logging.getLogger(__name__)

T = TypeVar("T")


class NamespacedStore:
    """JSON values under ``"<namespace>:<key>"`` in a shared store.

    Every operation is best effort. Backend failures are logged and reported
    as ``False``, the caller's default, or an empty collection.
    """

    def __init__(self, store: KeyValueStore, namespace: str) -> None:
        if not namespace:
            raise ValueError("Namespace must be a non-empty string.")
        self.store = store
        self.namespace = namespace
        self._prefix = f"{namespace}:"

    def _physical(self, key: str) -> str:
        return f"{self._prefix}{key}"

    def _log_failure(self, action: str, key: Optional[str], exc: Exception) -> None:
        logger.warning(
            "Storage %s failed: %s",
            action,
            exc,
            extra={"namespace": self.namespace, "key": key},
        )

    def set(self, key: str, value: Any) -> bool:
        try:
            serialized = json.dumps(value)
            self.store.set_item(self._physical(key), serialized)
        except Exception as exc:  # noqa: BLE001 - persistence is advisory
            self._log_failure("set", key, exc)
            return False
        return True

    def get(self, key: str, default: Optional[T] = None) -> Optional[T]:
        try:
            raw = self.store.get_item(self._physical(key))
            if raw is None:
                return default
            return json.loads(raw)
        except Exception as exc:  # noqa: BLE001 - persistence is advisory
            self._log_failure("get", key, exc)
            return default

    def remove(self, key: str) -> bool:
        try:
            self.store.remove_item(self._physical(key))
        except Exception as exc:  # noqa: BLE001 - persistence is advisory
            self._log_failure("remove", key, exc)
            return False
        return True

    def has(self, key: str) -> bool:
        try:
            return self.store.get_item(self._physical(key)) is not None
        except Exception as exc:  # noqa: BLE001 - persistence is advisory
            self._log_failure("has", key, exc)
            return False

    def _physical_keys(self) -> List[str]:
        return [name for name in self.store.keys() if name.startswith(self._prefix)]

    def get_all_keys(self) -> List[str]:
        try:
            return [name[len(self._prefix):] for name in self._physical_keys()]
        except Exception as exc:  # noqa: BLE001 - persistence is advisory
            self._log_failure("list", None, exc)
            return []

    def get_all(self) -> Dict[str, Any]:
        """All entries in this namespace; non-JSON values come back as raw strings."""
        items: Dict[str, Any] = {}
        try:
            for name in self._physical_keys():
                raw = self.store.get_item(name)
                if raw is None:
                    continue
                try:
                    value = json.loads(raw)
                except json.JSONDecodeError:
                    value = raw
                items[name[len(self._prefix):]] = value
        except Exception as exc:  # noqa: BLE001 - persistence is advisory
            self._log_failure("scan", None, exc)
            return {}
        return items

    def clear(self) -> bool:
        try:
            names = self._physical_keys()
        except Exception as exc:  # noqa: BLE001 - persistence is advisory
            self._log_failure("clear", None, exc)
            return False

        success = True
        for name in names:
            if not self.remove(name[len(self._prefix):]):
                success = False
        return success

    def size(self) -> int:
        """Approximate footprint of this namespace in characters."""
        total = 0
        try:
            for name in self._physical_keys():
                raw = self.store.get_item(name)
                if raw is not None:
                    total += len(name) + len(raw)
        except Exception as exc:  # noqa: BLE001 - persistence is advisory
            self._log_failure("size", None, exc)
            return 0
        return total

    def export_json(self, indent: Optional[int] = 2) -> str:
        return json.dumps(self.get_all(), indent=indent)

    def import_json(self, data: str, merge: bool = False) -> bool:
        """Load a ``{key: value}`` object, replacing the namespace unless ``merge``."""
        try:
            items = json.loads(data)
        except (TypeError, json.JSONDecodeError) as exc:
            self._log_failure("import", None, exc)
            return False
        if not isinstance(items, dict):
            self._log_failure("import", None, ValueError("payload is not a JSON object"))
            return False

        if not merge and not self.clear():
            return False

        success = True
        for key, value in items.items():
            if not self.set(key, value):
                success = False
        logger.info(
            "Imported %d entries",
            len(items),
            extra={"namespace": self.namespace, "count": len(items)},
        )
        return success
